# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Command log for savings groups.
Each entry records which command changed which group, in which round and
for which member. Bounded by MAX_HISTORY_SIZE, oldest entries dropped first.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from kutu.core.config import settings


class HistoryRepository:
    """In-memory, append-only command log."""

    def __init__(self) -> None:
        self._events: list[dict[str, Any]] = []

    # ── Read ──

    def get_all(
        self,
        group_id: Optional[str] = None,
        event_type: Optional[str] = None,
        round_number: Optional[int] = None,
        member_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        effective_limit = limit or settings.DEFAULT_HISTORY_LIMIT
        result = [
            e for e in self._events
            if (group_id is None or e["group_id"] == group_id)
            and (event_type is None or e["event_type"] == event_type)
            and (round_number is None or e["round_number"] == round_number)
            and (member_id is None or e["member_id"] == member_id)
        ]
        return result[-effective_limit:]

    def payout_timeline(self, group_id: str) -> list[dict[str, Any]]:
        """Completed payouts of a group, in round order."""
        payouts = [
            e for e in self._events
            if e["group_id"] == group_id and e["event_type"] == "payout_completed"
        ]
        return sorted(payouts, key=lambda e: e["round_number"])

    def count(self) -> int:
        return len(self._events)

    def count_by_type(self, group_id: Optional[str] = None) -> dict[str, int]:
        counts: dict[str, int] = {}
        for e in self._events:
            if group_id is None or e["group_id"] == group_id:
                counts[e["event_type"]] = counts.get(e["event_type"], 0) + 1
        return counts

    # ── Write ──

    def record_event(
        self,
        event_type: str,
        group_id: str,
        details: dict[str, Any],
        round_number: Optional[int] = None,
        member_id: Optional[str] = None,
    ) -> dict[str, Any]:
        event: dict[str, Any] = {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "group_id": group_id,
            "round_number": round_number,
            "member_id": member_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details,
        }
        self._events.append(event)
        overflow = len(self._events) - settings.MAX_HISTORY_SIZE
        if overflow > 0:
            del self._events[:overflow]
        return event

    def clear(self) -> None:
        self._events.clear()
