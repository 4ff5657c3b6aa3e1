"""Algorithm Functional Test dispatch.

Each case is independent, so every one goes out as a non-blocking
transaction. Completions land in the slot matching the case's position in
its group, which keeps the output in input order however the subject
schedules the work.
"""

from __future__ import annotations

from typing import List

from .hexcodec import hex_encode, uint32le
from .response import GroupResponse, TestResponse
from .transact import Transactable
from .validate import PreparedCase, PreparedGroup


def aft_args(case: PreparedCase) -> List[bytes]:
    return [case.msg, uint32le(case.out_len // 8), case.function_name, case.customization]


def _completion(pending: GroupResponse, index: int, case: PreparedCase):
    def on_complete(result: List[bytes]) -> None:
        pending.slots[index] = TestResponse(
            tc_id=case.tc_id,
            md=hex_encode(result[0]),
            out_len=case.out_len,
        )
    return on_complete


def run_aft_group(algo: str, group: PreparedGroup, pending: GroupResponse, m: Transactable) -> None:
    for index, case in enumerate(group.cases):
        m.transact_async(algo, 1, aft_args(case), _completion(pending, index, case))
