"""Subject adapter for an external actor process (newline-delimited JSON).

Request:  {"id": N, "op": "cSHAKE-128", "params": {"args": [hex, ...], "expect": k}}
Response: {"id": N, "ok": true, "result": {"outputs": [hex, ...]}}
      or: {"id": N, "ok": false, "error": {"code": "...", "message": "..."}}

Requests are pipelined: several may be in flight at once and the actor may
answer in any order. Responses are matched back to callers by id.
"""

from __future__ import annotations

import itertools
import json
import subprocess
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict, List, Optional, Sequence

from .errors import MalformedEncoding, SubjectFailure
from .hexcodec import hex_decode, hex_encode
from .transact import PooledTransactor


def _outputs(resp: Dict[str, Any]) -> List[bytes]:
    result = resp.get("result")
    outs = result.get("outputs") if isinstance(result, dict) else None
    if not isinstance(outs, list) or not all(isinstance(o, str) for o in outs):
        raise SubjectFailure("actor result missing 'outputs' list of hex strings")
    try:
        return [hex_decode(o) for o in outs]
    except MalformedEncoding as e:
        raise SubjectFailure(f"bad result encoding: {e}") from e


def _error_text(resp: Dict[str, Any]) -> str:
    err = resp.get("error")
    if isinstance(err, dict):
        code = err.get("code") or "ERROR"
        return f"{code}: {err.get('message') or ''}".rstrip(": ")
    return str(err or "actor returned ok=false")


class ActorTransactor(PooledTransactor):
    def __init__(
        self,
        actor: str,
        actor_args: Sequence[str] = (),
        workers: int = 4,
        timeout_secs: float = 30.0,
    ):
        super().__init__(workers=workers)
        self.actor = actor
        self.timeout_secs = timeout_secs
        # Actor stderr stays attached to ours; subject diagnostics should be visible.
        try:
            self._proc = subprocess.Popen(
                [actor, *actor_args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            self._pool.shutdown(wait=False)
            raise SubjectFailure(f"cannot start actor {actor}: {e}") from e
        self._ids = itertools.count(1)
        # _state_lock guards _waiting and _dead. _write_lock only serialises stdin
        # writes and is never taken by the reader, which must keep draining stdout.
        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._waiting: Dict[int, Future] = {}
        self._dead: Optional[str] = None
        self._reader = threading.Thread(target=self._read_loop, name="xofv-actor-reader", daemon=True)
        self._reader.start()

    def _fail_all(self, reason: str) -> None:
        with self._state_lock:
            self._dead = reason
            waiting, self._waiting = self._waiting, {}
        for fut in waiting.values():
            fut.set_exception(SubjectFailure(reason))

    def _read_loop(self) -> None:
        stdout = self._proc.stdout
        if stdout is None:
            self._fail_all("actor stdout is not a pipe")
            return
        for line in stdout:
            line = line.strip()
            if not line:
                continue
            try:
                resp = json.loads(line)
            except json.JSONDecodeError as e:
                self._fail_all(f"actor wrote non-JSON output: {e}")
                return
            rid = resp.get("id") if isinstance(resp, dict) else None
            with self._state_lock:
                fut = self._waiting.pop(rid, None)
            if fut is None:
                self._fail_all(f"actor response with unknown id: {rid!r}")
                return
            if resp.get("ok") is not True:
                fut.set_exception(SubjectFailure(_error_text(resp)))
                continue
            try:
                fut.set_result(_outputs(resp))
            except SubjectFailure as e:
                fut.set_exception(e)
        code = self._proc.poll()
        self._fail_all(f"actor terminated unexpectedly (exit={code})")

    def _roundtrip(self, op: str, expected: int, args: Sequence[bytes]) -> List[bytes]:
        rid = next(self._ids)
        params = {"args": [hex_encode(a) for a in args], "expect": expected}
        line = json.dumps({"id": rid, "op": op, "params": params}, separators=(",", ":")) + "\n"
        stdin = self._proc.stdin
        if stdin is None:
            raise SubjectFailure("actor stdin is not a pipe")
        fut: Future = Future()
        with self._state_lock:
            if self._dead is not None:
                raise SubjectFailure(self._dead)
            self._waiting[rid] = fut
        try:
            with self._write_lock:
                stdin.write(line)
                stdin.flush()
        except (BrokenPipeError, OSError, ValueError) as e:
            with self._state_lock:
                self._waiting.pop(rid, None)
            raise SubjectFailure(f"actor stdin closed: {e}") from e
        try:
            return fut.result(timeout=self.timeout_secs)
        except FutureTimeout as e:
            with self._state_lock:
                self._waiting.pop(rid, None)
            raise SubjectFailure(f"{op}: no response from actor within {self.timeout_secs}s") from e

    def close(self) -> None:
        super().close()
        try:
            if self._proc.stdin:
                self._proc.stdin.close()
        except OSError:
            pass
        try:
            self._proc.wait(timeout=self.timeout_secs)
        except subprocess.TimeoutExpired:
            self._proc.terminate()
            self._proc.wait()
        self._reader.join(timeout=2)
