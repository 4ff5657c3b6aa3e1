from __future__ import annotations

from typing import Any, Dict, List

from .errors import SubjectFailure
from .response import GroupResponse
from .transact import Transactable


class ResponseAssembler:
    """Collects group responses in submission order.

    The output list is only appended to from checkpoint actions, and each
    checkpoint runs after every completion queued before it, so groups come
    out in the order they were opened.
    """

    def __init__(self, m: Transactable):
        self._m = m
        self._groups: List[Dict[str, Any]] = []

    def open_group(self, tg_id: int, count: int) -> GroupResponse:
        return GroupResponse(tg_id=tg_id, slots=[None] * count)

    def close_group(self, pending: GroupResponse) -> None:
        def emit() -> None:
            missing = pending.missing()
            if missing:
                raise SubjectFailure(f"test group {pending.tg_id} has {len(missing)} test(s) without a result")
            self._groups.append(pending.to_dict())
        self._m.checkpoint(emit)

    def finish(self) -> List[Dict[str, Any]]:
        self._m.drain()
        return list(self._groups)
