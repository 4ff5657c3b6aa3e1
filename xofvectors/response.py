from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class MctResult:
    md: str
    out_len: int

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"md": self.md}
        if self.out_len:
            d["outLen"] = self.out_len
        return d


@dataclass(frozen=True, slots=True)
class TestResponse:
    __test__ = False

    tc_id: int
    md: str = ""
    out_len: int = 0
    mct_results: Tuple[MctResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        # Empty fields are omitted, as ACVP response documents do.
        d: Dict[str, Any] = {"tcId": self.tc_id}
        if self.md:
            d["md"] = self.md
        if self.out_len:
            d["outLen"] = self.out_len
        if self.mct_results:
            d["resultsArray"] = [r.to_dict() for r in self.mct_results]
        return d


@dataclass(slots=True)
class GroupResponse:
    """Per-group slots, filled by runners in any order and read at the checkpoint."""

    tg_id: int
    slots: List[Optional[TestResponse]]

    def missing(self) -> List[int]:
        return [i for i, s in enumerate(self.slots) if s is None]

    def to_dict(self) -> Dict[str, Any]:
        return {"tgId": self.tg_id, "tests": [s.to_dict() for s in self.slots if s is not None]}
