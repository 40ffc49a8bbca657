# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Group data access.
Authoritative in-memory snapshot of every group, keyed by group id.
NO business rules here — pure CRUD.
"""

from typing import Optional

from kutu.models.domain import Group


class GroupRepository:
    """In-memory group storage."""

    def __init__(self) -> None:
        self._store: dict[str, Group] = {}

    # ── Read ──

    def get_all(self) -> list[Group]:
        return list(self._store.values())

    def get_by_id(self, group_id: str) -> Optional[Group]:
        return self._store.get(group_id)

    def exists(self, group_id: str) -> bool:
        return group_id in self._store

    def count(self) -> int:
        return len(self._store)

    def count_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for g in self._store.values():
            counts[g.status.value] = counts.get(g.status.value, 0) + 1
        return counts

    # ── Write ──

    def save(self, group: Group) -> None:
        self._store[group.id] = group

    def delete(self, group_id: str) -> Optional[Group]:
        return self._store.pop(group_id, None)

    # ── Bulk / internal ──

    def replace_all(self, groups: list[Group]) -> None:
        self._store = {g.id: g for g in groups}

    def clear(self) -> None:
        self._store.clear()
