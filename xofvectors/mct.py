"""Monte Carlo Test chains.

Round n+1 consumes round n's outputs, so every round is a blocking
transaction. The working state is an immutable ChainState threaded through
a fixed-length loop; chains never share anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .errors import MalformedEncoding, SubjectFailure
from .hexcodec import bit_length, hex_encode, read_uint32le, uint32le
from .response import MctResult, TestResponse
from .transact import Transactable
from .validate import PreparedCase, PreparedGroup

MCT_ROUNDS = 100


@dataclass(frozen=True, slots=True)
class ChainState:
    msg: bytes
    out_len_bits: int
    customization: bytes = b""


def mct_args(group: PreparedGroup, state: ChainState) -> List[bytes]:
    # Lengths stay in bits here; the MCT update rule is defined over bit counts.
    return [
        state.msg,
        uint32le(group.min_out_len),
        uint32le(group.max_out_len),
        uint32le(state.out_len_bits),
        uint32le(group.out_len_increment),
        state.customization,
    ]


def mct_round(algo: str, group: PreparedGroup, state: ChainState, m: Transactable) -> Tuple[ChainState, MctResult]:
    try:
        msg, out_len, customization = m.transact(algo + "/MCT", 3, *mct_args(group, state))
        nxt = ChainState(msg=msg, out_len_bits=read_uint32le(out_len), customization=customization)
    except (SubjectFailure, MalformedEncoding) as e:
        raise SubjectFailure(f"{algo} mct operation failed: {e}") from e
    return nxt, MctResult(md=hex_encode(nxt.msg), out_len=bit_length(nxt.msg))


def run_mct_case(algo: str, group: PreparedGroup, case: PreparedCase, m: Transactable) -> TestResponse:
    state = ChainState(msg=case.msg, out_len_bits=group.max_out_len)
    results: List[MctResult] = []
    for _ in range(MCT_ROUNDS):
        state, result = mct_round(algo, group, state, m)
        results.append(result)
    return TestResponse(tc_id=case.tc_id, mct_results=tuple(results))
