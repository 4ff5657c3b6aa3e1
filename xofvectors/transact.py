"""Request/response contract between algorithm handlers and the subject.

Handlers only see ``Transactable``. ``PooledTransactor`` supplies the async
half on a thread pool so a concrete subject only has to implement one
blocking ``_roundtrip``.
"""

from __future__ import annotations

import abc
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

from .errors import SubjectFailure, VectorError

Callback = Callable[[List[bytes]], None]


class Transactable(abc.ABC):
    @abc.abstractmethod
    def transact(self, op: str, expected: int, *args: bytes) -> List[bytes]:
        """Run ``op`` and block until its ``expected`` results are available."""

    @abc.abstractmethod
    def transact_async(self, op: str, expected: int, args: Sequence[bytes], callback: Callback) -> None:
        """Queue ``op``; ``callback`` runs later with the results, in no particular order."""

    @abc.abstractmethod
    def checkpoint(self, action: Callable[[], None]) -> None:
        """Run ``action`` once every previously queued async call has completed.

        If one of them failed, the first such error is raised instead.
        """

    @abc.abstractmethod
    def drain(self) -> None:
        """Wait for all outstanding work and raise the first error seen, if any."""


def _as_failure(e: BaseException) -> VectorError:
    if isinstance(e, VectorError):
        return e
    return SubjectFailure(f"{type(e).__name__}: {e}")


class PooledTransactor(Transactable):
    def __init__(self, workers: int = 4):
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="xofv")
        self._lock = threading.Lock()
        self._pending: List[Future] = []
        self._error: Optional[VectorError] = None

    @abc.abstractmethod
    def _roundtrip(self, op: str, expected: int, args: Sequence[bytes]) -> List[bytes]:
        ...

    def transact(self, op: str, expected: int, *args: bytes) -> List[bytes]:
        try:
            result = self._roundtrip(op, expected, args)
        except VectorError:
            raise
        except Exception as e:
            raise _as_failure(e) from e
        if len(result) != expected:
            raise SubjectFailure(f"{op}: expected {expected} results, got {len(result)}")
        return result

    def _run_async(self, op: str, expected: int, args: Sequence[bytes], callback: Callback) -> None:
        callback(self.transact(op, expected, *args))

    def transact_async(self, op: str, expected: int, args: Sequence[bytes], callback: Callback) -> None:
        fut = self._pool.submit(self._run_async, op, expected, list(args), callback)
        with self._lock:
            self._pending.append(fut)

    def _join(self) -> None:
        with self._lock:
            pending, self._pending = self._pending, []
        if not pending:
            return
        wait(pending)
        for fut in pending:
            e = fut.exception()
            if e is not None and self._error is None:
                self._error = _as_failure(e)

    def checkpoint(self, action: Callable[[], None]) -> None:
        self._join()
        # Left recorded; drain() clears it.
        if self._error is not None:
            raise self._error
        action()

    def drain(self) -> None:
        self._join()
        err, self._error = self._error, None
        if err is not None:
            raise err

    def close(self) -> None:
        self._pool.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()
