"""Compare a produced response against an ACVP expectedResults document."""

from __future__ import annotations

from typing import Any, Dict, List, Union

from .errors import MalformedInput
from .vectorset import load_document, unwrap_acvp


def _norm(v: Any) -> Any:
    # Digests are compared case-insensitively; ACVP servers emit upper-case hex.
    if isinstance(v, dict):
        return {k: (_norm(x) if k != "md" else str(x).lower()) for k, x in sorted(v.items())}
    if isinstance(v, list):
        return [_norm(x) for x in v]
    return v


def deep_equal(a: Any, b: Any) -> bool:
    return _norm(a) == _norm(b)


def _index(groups: Any, what: str) -> Dict[int, Dict[int, Dict[str, Any]]]:
    if not isinstance(groups, list):
        raise MalformedInput(f"{what}: 'testGroups' must be a list")
    out: Dict[int, Dict[int, Dict[str, Any]]] = {}
    for g in groups:
        if not isinstance(g, dict) or not isinstance(g.get("tests"), list):
            raise MalformedInput(f"{what}: test group missing 'tests' list")
        out[g.get("tgId")] = {t.get("tcId"): t for t in g["tests"] if isinstance(t, dict)}
    return out


def _mismatch(got: Dict[str, Any], exp: Dict[str, Any]) -> str:
    got_mct = got.get("resultsArray")
    exp_mct = exp.get("resultsArray")
    if exp_mct is not None:
        if not isinstance(got_mct, list):
            return "missing resultsArray"
        if len(got_mct) != len(exp_mct):
            return f"resultsArray length {len(got_mct)} != expected {len(exp_mct)}"
        for i, (g, e) in enumerate(zip(got_mct, exp_mct)):
            if not deep_equal(g, e):
                return f"resultsArray[{i}] mismatch"
        return ""
    for k in ("md", "outLen"):
        if k in exp and not deep_equal({k: got.get(k)}, {k: exp[k]}):
            return f"{k} mismatch"
    return ""


def compare_responses(got_groups: List[Dict[str, Any]], expected: Union[bytes, str, Any]) -> Dict[str, Any]:
    body, _ = unwrap_acvp(load_document(expected))
    if not isinstance(body, dict):
        raise MalformedInput("expected results must be an object")
    exp_idx = _index(body.get("testGroups"), "expected results")
    got_idx = _index(got_groups, "response")

    report: Dict[str, Any] = {"ran": 0, "passed": 0, "failed": 0, "failures": [], "cases": []}
    for tg_id, exp_tests in exp_idx.items():
        got_tests = got_idx.get(tg_id, {})
        for tc_id, exp in exp_tests.items():
            report["ran"] += 1
            case_id = f"tg{tg_id}/tc{tc_id}"
            got = got_tests.get(tc_id)
            err = "missing from response" if got is None else _mismatch(got, exp)
            if err:
                report["failed"] += 1
                report["failures"].append({"tgId": tg_id, "tcId": tc_id, "error": err})
                report["cases"].append({"id": case_id, "status": "failed", "error": err, "expected": exp, "actual": got})
            else:
                report["passed"] += 1
                report["cases"].append({"id": case_id, "status": "passed"})
    return report
