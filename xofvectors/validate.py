"""Cross-field checks applied to a whole vector set before any subject call.

A single bad case rejects the whole set: conformance submissions must be
well-formed end to end, so nothing here skips and continues.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import InvalidTestVector, MalformedEncoding
from .hexcodec import bit_length, hex_decode
from .vectorset import TestCase, TestGroup, VectorSet

AFT = "AFT"
MCT = "MCT"
TEST_TYPES = (AFT, MCT)


@dataclass(frozen=True, slots=True)
class PreparedCase:
    tc_id: int
    msg: bytes
    function_name: bytes
    customization: bytes
    out_len: int


@dataclass(frozen=True, slots=True)
class PreparedGroup:
    tg_id: int
    test_type: str
    cases: Tuple[PreparedCase, ...]
    min_out_len: int = 0
    max_out_len: int = 0
    out_len_increment: int = 0


def customization_bytes(group: TestGroup, test: TestCase) -> bytes:
    if test.customization and test.hex_customization:
        raise InvalidTestVector(
            f"test case {group.tg_id}/{test.tc_id} has both customization and hex customization",
            group.tg_id, test.tc_id,
        )
    if test.customization:
        return test.customization.encode("utf-8")
    if test.hex_customization:
        try:
            return hex_decode(test.hex_customization)
        except MalformedEncoding as e:
            raise InvalidTestVector(
                f"test case {group.tg_id}/{test.tc_id} has invalid customization: {e}",
                group.tg_id, test.tc_id,
            ) from e
    return b""


def prepare_case(group: TestGroup, test: TestCase) -> PreparedCase:
    customization = customization_bytes(group, test)

    try:
        msg = hex_decode(test.msg_hex)
    except MalformedEncoding as e:
        raise InvalidTestVector(
            f"failed to decode hex in test case {group.tg_id}/{test.tc_id}: {e}",
            group.tg_id, test.tc_id,
        ) from e
    if bit_length(msg) != test.bit_length:
        raise InvalidTestVector(
            f"test case {group.tg_id}/{test.tc_id} contains hex message of length {len(test.msg_hex)} "
            f"but specifies a bit length of {test.bit_length}",
            group.tg_id, test.tc_id,
        )

    if test.out_len % 8 != 0:
        raise InvalidTestVector(
            f"test case {group.tg_id}/{test.tc_id} has bit length {test.out_len} - fractional bytes not supported",
            group.tg_id, test.tc_id,
        )

    return PreparedCase(
        tc_id=test.tc_id,
        msg=msg,
        function_name=test.function_name.encode("utf-8"),
        customization=customization,
        out_len=test.out_len,
    )


def _mct_bound(group: TestGroup, name: str, value: Optional[int]) -> int:
    if value is None:
        raise InvalidTestVector(f"MCT test group {group.tg_id} is missing {name}", group.tg_id)
    if value % 8 != 0:
        raise InvalidTestVector(
            f"MCT test group {group.tg_id} has {name} {value} - fractional bytes not supported",
            group.tg_id,
        )
    return value


def prepare_group(group: TestGroup) -> PreparedGroup:
    if group.test_type not in TEST_TYPES:
        raise InvalidTestVector(f"test group {group.tg_id} has unknown type {group.test_type!r}", group.tg_id)

    min_out = max_out = inc = 0
    if group.test_type == MCT:
        min_out = _mct_bound(group, "minOutLen", group.min_out_len)
        max_out = _mct_bound(group, "maxOutLen", group.max_out_len)
        inc = _mct_bound(group, "outLenIncrement", group.out_len_increment)
        if min_out > max_out:
            raise InvalidTestVector(
                f"MCT test group {group.tg_id} has minOutLen {min_out} above maxOutLen {max_out}",
                group.tg_id,
            )

    seen = set()
    cases: List[PreparedCase] = []
    for test in group.tests:
        if test.tc_id in seen:
            raise InvalidTestVector(f"test group {group.tg_id} repeats tcId {test.tc_id}", group.tg_id, test.tc_id)
        seen.add(test.tc_id)
        cases.append(prepare_case(group, test))

    return PreparedGroup(
        tg_id=group.tg_id,
        test_type=group.test_type,
        cases=tuple(cases),
        min_out_len=min_out,
        max_out_len=max_out,
        out_len_increment=inc,
    )


def validate_vector_set(vs: VectorSet) -> List[PreparedGroup]:
    seen = set()
    out: List[PreparedGroup] = []
    for group in vs.groups:
        if group.tg_id in seen:
            raise InvalidTestVector(f"vector set repeats tgId {group.tg_id}", group.tg_id)
        seen.add(group.tg_id)
        out.append(prepare_group(group))
    return out
