#!/usr/bin/env python3
"""Run an ACVP XOF vector set against an actor and write the response.

Fail-closed: any parse, validation or subject error yields no response file
and exit code 2. The JSON report is the authoritative record of the run.
"""

from __future__ import annotations

import argparse
import json
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .actor import ActorTransactor
from .compare import compare_responses
from .config import RunnerConfig
from .cshake import handler_for
from .errors import VectorError
from .junit import write_junit
from .vectorset import VectorSet, parse_vector_set


def jdump(p: Path, obj: Any) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def wrap_response(vs: VectorSet, algorithm: str, groups: List[Dict[str, Any]]) -> Any:
    if vs.acv_version is None:
        return {"testGroups": groups}
    body: Dict[str, Any] = {"algorithm": algorithm, "testGroups": groups}
    if vs.vs_id is not None:
        body["vsId"] = vs.vs_id
    if vs.revision is not None:
        body["revision"] = vs.revision
    if vs.is_sample is not None:
        body["isSample"] = vs.is_sample
    return [{"acvVersion": vs.acv_version or "1.0"}, body]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Run ACVP cSHAKE vectors against an actor process.")
    ap.add_argument("--vectors", required=True, help="ACVP prompt / vector set JSON")
    ap.add_argument("--config", default=None, help="YAML runner config")
    ap.add_argument("--actor", default=None, help="Actor executable (overrides config)")
    ap.add_argument("--algorithm", default=None, help="Algorithm name when the vector set omits it")
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("--out", default=None, help="Where to write the response JSON")
    ap.add_argument("--expected", default=None, help="ACVP expectedResults JSON to compare against")
    ap.add_argument("--report", default="artifacts/xof/vector_report.json")
    ap.add_argument("--junit", default=None)
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    vec_p = Path(args.vectors)
    if not vec_p.exists():
        print(f"ERROR: vectors not found: {vec_p}", file=sys.stderr)
        return 2
    if args.expected and not Path(args.expected).exists():
        print(f"ERROR: expected results not found: {args.expected}", file=sys.stderr)
        return 2

    report: Dict[str, Any] = {
        "ok": False,
        "vectors_file": str(vec_p),
        "actor": None,
        "algorithm": None,
        "groups": 0,
        "tests": 0,
        "ran": 0,
        "passed": 0,
        "failed": 0,
        "failures": [],
        "error": None,
    }

    def finish(code: int) -> int:
        jdump(Path(args.report), report)
        return code

    try:
        cfg = RunnerConfig.load(Path(args.config) if args.config else None)
        overrides: Dict[str, Any] = {}
        if args.actor:
            overrides["actor"] = args.actor
        if args.workers is not None:
            overrides["workers"] = args.workers
        cfg = RunnerConfig.from_mapping(overrides, cfg)
        report["actor"] = cfg.actor

        vs = parse_vector_set(vec_p.read_bytes())
        algorithm = args.algorithm or vs.algorithm or ""
        handler = handler_for(algorithm)
        report["algorithm"] = handler.algo
        report["groups"] = len(vs.groups)
        report["tests"] = sum(len(g.tests) for g in vs.groups)

        if not Path(cfg.actor).exists() and shutil.which(cfg.actor) is None:
            print(f"ERROR: actor binary not found: {cfg.actor}", file=sys.stderr)
            report["error"] = {"reason_code": "config_error", "message": f"actor not found: {cfg.actor}"}
            return finish(2)

        with ActorTransactor(cfg.actor, cfg.actor_args, workers=cfg.workers, timeout_secs=cfg.timeout_secs) as m:
            groups = handler.process(vs, m)
    except VectorError as e:
        report["error"] = {"reason_code": e.reason_code, "message": str(e)}
        print(f"ERROR: {e.reason_code}: {e}", file=sys.stderr)
        return finish(2)

    if args.out:
        jdump(Path(args.out), wrap_response(vs, handler.algo, groups))

    if args.expected:
        try:
            cmp = compare_responses(groups, Path(args.expected).read_bytes())
        except VectorError as e:
            report["error"] = {"reason_code": e.reason_code, "message": str(e)}
            print(f"ERROR: {e.reason_code}: {e}", file=sys.stderr)
            return finish(2)
        for k in ("ran", "passed", "failed", "failures"):
            report[k] = cmp[k]
        if args.junit:
            write_junit(Path(args.junit), f"xof.{handler.algo}", cmp["cases"])
    else:
        report["ran"] = report["passed"] = report["tests"]

    report["ok"] = report["failed"] == 0
    if not report["ok"]:
        print(f"XOF vectors FAILED: {report['failed']} failing of {report['ran']}", file=sys.stderr)
        for f in report["failures"][:10]:
            print(f"- tg{f.get('tgId')}/tc{f.get('tcId')}: {f.get('error')}", file=sys.stderr)
        return finish(2)

    print(f"XOF vectors OK: {report['passed']} / {report['ran']} ({handler.algo})")
    return finish(0)


if __name__ == "__main__":
    raise SystemExit(main())
