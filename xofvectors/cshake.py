"""cSHAKE-128 / cSHAKE-256 handlers.

See https://pages.nist.gov/ACVP/draft-celi-acvp-xof.html for the test types.
"""

from __future__ import annotations

import contextlib
from typing import Any, Dict, List, Union

from .aft import run_aft_group
from .assemble import ResponseAssembler
from .errors import MalformedInput, VectorError
from .mct import run_mct_case
from .transact import Transactable
from .validate import AFT, MCT, validate_vector_set
from .vectorset import VectorSet, parse_vector_set


class CShake:
    def __init__(self, algo: str):
        self.algo = algo

    def process(self, vector_set: Union[bytes, str, VectorSet], m: Transactable) -> List[Dict[str, Any]]:
        vs = vector_set if isinstance(vector_set, VectorSet) else parse_vector_set(vector_set)
        groups = validate_vector_set(vs)

        out = ResponseAssembler(m)
        try:
            for group in groups:
                pending = out.open_group(group.tg_id, len(group.cases))
                if group.test_type == AFT:
                    run_aft_group(self.algo, group, pending, m)
                elif group.test_type == MCT:
                    for index, case in enumerate(group.cases):
                        pending.slots[index] = run_mct_case(self.algo, group, case, m)
                out.close_group(pending)
        except Exception:
            # Leave m idle and error-free for the next set.
            with contextlib.suppress(VectorError):
                m.drain()
            raise
        return out.finish()


HANDLERS: Dict[str, CShake] = {
    "cSHAKE-128": CShake("cSHAKE-128"),
    "cSHAKE-256": CShake("cSHAKE-256"),
}


def handler_for(algorithm: str) -> CShake:
    for name, h in HANDLERS.items():
        if name.lower() == (algorithm or "").lower():
            return h
    raise MalformedInput(f"unsupported algorithm {algorithm!r}; expected one of {sorted(HANDLERS)}")
