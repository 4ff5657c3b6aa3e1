"""ACVP XOF vector-set decoding.

Accepts either a bare vector-set object or the ACVP array framing
``[{"acvVersion": ...}, {"vsId": ..., "testGroups": [...]}]`` and returns
read-only dataclasses. Any shape problem is a MalformedInput.
"""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from jsonschema import Draft202012Validator

from .errors import MalformedInput

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "xof_vector_set.schema.v1.json"

# Cap on schema errors quoted back in a MalformedInput message.
MAX_REPORTED_ERRORS = 10


@dataclass(frozen=True, slots=True)
class TestCase:
    __test__ = False

    tc_id: int
    msg_hex: str
    bit_length: int
    function_name: str = ""
    customization: str = ""
    hex_customization: str = ""
    out_len: int = 0


@dataclass(frozen=True, slots=True)
class TestGroup:
    __test__ = False

    tg_id: int
    test_type: str
    tests: Tuple[TestCase, ...]
    hex_customization: bool = False
    max_out_len: Optional[int] = None
    min_out_len: Optional[int] = None
    out_len_increment: Optional[int] = None


@dataclass(frozen=True, slots=True)
class VectorSet:
    groups: Tuple[TestGroup, ...]
    vs_id: Optional[int] = None
    algorithm: Optional[str] = None
    revision: Optional[str] = None
    is_sample: Optional[bool] = None
    # Set when the payload arrived in the ACVP array framing.
    acv_version: Optional[str] = None


@functools.lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def unwrap_acvp(doc: Any) -> Tuple[Any, Optional[str]]:
    if not isinstance(doc, list):
        return doc, None
    version = None
    body = None
    for ent in doc:
        if not isinstance(ent, dict):
            raise MalformedInput("ACVP framing: array entries must be objects")
        if "acvVersion" in ent and version is None:
            version = str(ent["acvVersion"])
        elif "testGroups" in ent and body is None:
            body = ent
    if body is None:
        raise MalformedInput("ACVP framing: no object with 'testGroups'")
    return body, version or ""


def load_document(raw: Union[bytes, str, Any]) -> Any:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInput(f"vector set is not valid UTF-8: {e}") from e
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"json_parse: {e}") from e
    return raw


def _schema_check(body: Any) -> None:
    errs = sorted(_validator().iter_errors(body), key=lambda e: [str(x) for x in e.path])
    if not errs:
        return
    msgs = []
    for e in errs[:MAX_REPORTED_ERRORS]:
        loc = "/".join([str(x) for x in e.path]) if e.path else "(root)"
        msgs.append(f"{loc}: {e.message}")
    raise MalformedInput("vector set does not match schema: " + "; ".join(msgs))


def _test_case(t: dict) -> TestCase:
    return TestCase(
        tc_id=t["tcId"],
        msg_hex=t["msg"],
        bit_length=t["len"],
        function_name=t.get("functionName", ""),
        customization=t.get("customization", ""),
        hex_customization=t.get("hexCustomization", ""),
        out_len=t.get("outLen", 0),
    )


def _test_group(g: dict) -> TestGroup:
    return TestGroup(
        tg_id=g["tgId"],
        test_type=g["testType"],
        tests=tuple(_test_case(t) for t in g["tests"]),
        hex_customization=g.get("hexCustomization", False),
        max_out_len=g.get("maxOutLen"),
        min_out_len=g.get("minOutLen"),
        out_len_increment=g.get("outLenIncrement"),
    )


def parse_vector_set(raw: Union[bytes, str, Any]) -> VectorSet:
    body, version = unwrap_acvp(load_document(raw))
    _schema_check(body)
    return VectorSet(
        groups=tuple(_test_group(g) for g in body["testGroups"]),
        vs_id=body.get("vsId"),
        algorithm=body.get("algorithm"),
        revision=body.get("revision"),
        is_sample=body.get("isSample"),
        acv_version=version,
    )
