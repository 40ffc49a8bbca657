# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Reports — read-only projections of group state.
Nothing here mutates a group.
"""

from typing import Any, Optional

from kutu.core.exceptions import GroupNotFound
from kutu.models.domain import Group, PaymentStatus
from kutu.repositories.group_repository import GroupRepository
from kutu.repositories.history_repository import HistoryRepository
from kutu.services import rotation


def _member_name(group: Group, member_id: Optional[str]) -> Optional[str]:
    if member_id is None:
        return None
    member = group.member(member_id)
    return member.name if member else None


def export_group(group: Group) -> dict[str, Any]:
    """Flat tabular export of a group: roster, payout order and every round."""
    return {
        "group_id": group.id,
        "group_name": group.name,
        "contribution_amount": group.contribution_amount,
        "status": group.status.value,
        "members": [
            {"id": m.id, "name": m.name, "phone": m.phone}
            for m in group.members
        ],
        "payout_order": [
            {"position": i, "member_id": mid, "member_name": _member_name(group, mid)}
            for i, mid in enumerate(group.payout_order, start=1)
        ],
        "rounds": [
            {
                "round_number": r.round_number,
                "recipient_name": _member_name(group, r.payout_member_id),
                "payout_completed": r.payout_completed,
                "payments": [
                    {
                        "member_id": p.member_id,
                        "member_name": _member_name(group, p.member_id),
                        "status": p.status.value,
                    }
                    for p in r.payments
                ],
            }
            for r in group.rounds
        ],
    }


def ledger_rows(group: Group) -> list[dict[str, Any]]:
    """
    One row per payer for every round that has a recipient.
    The recipient's own contribution is not a transfer and is left out.
    """
    rows: list[dict[str, Any]] = []
    for r in group.rounds:
        if r.payout_member_id is None:
            continue
        recipient_name = _member_name(group, r.payout_member_id)
        for p in r.payments:
            if p.member_id == r.payout_member_id:
                continue
            rows.append({
                "id": f"{group.id}-{r.round_number}-{p.member_id}",
                "group_id": group.id,
                "group_name": group.name,
                "round_number": r.round_number,
                "payer_name": _member_name(group, p.member_id) or "N/A",
                "recipient_name": recipient_name or "N/A",
                "amount": group.contribution_amount,
                "status": p.status.value,
            })
    return rows


def group_summary(group: Group) -> dict[str, Any]:
    rnd = rotation.current_round(group)
    return {
        "id": group.id,
        "name": group.name,
        "status": group.status.value,
        "current_round": group.current_round,
        "total_rounds": len(group.members),
        "phase": rotation.round_phase(rnd).value,
        "recipient_id": rnd.payout_member_id,
        "recipient_name": _member_name(group, rnd.payout_member_id),
        "paid_count": rotation.paid_count(rnd),
        "members_count": len(group.members),
        "pot": group.contribution_amount * len(group.members),
        "completed_payouts": sum(1 for r in group.rounds if r.payout_completed),
    }


class ReportService:
    """Exports, payment ledger and aggregate statistics."""

    def __init__(
        self,
        group_repo: GroupRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self._groups = group_repo
        self._history = history_repo

    def _require(self, group_id: str) -> Group:
        group = self._groups.get_by_id(group_id)
        if group is None:
            raise GroupNotFound(group_id)
        return group

    def export_group(self, group_id: str) -> dict[str, Any]:
        return export_group(self._require(group_id))

    def group_summary(self, group_id: str) -> dict[str, Any]:
        return group_summary(self._require(group_id))

    def payment_ledger(
        self,
        group_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        groups = [self._require(group_id)] if group_id else self._groups.get_all()
        rows = [row for g in groups for row in ledger_rows(g)]
        if status:
            rows = [row for row in rows if row["status"] == status]
        return rows

    def get_stats(self) -> dict[str, Any]:
        """Aggregated operational statistics."""
        groups = self._groups.get_all()
        paid = PaymentStatus.PAID.value
        total_value_paid = sum(
            row["amount"]
            for g in groups
            for row in ledger_rows(g)
            if row["status"] == paid
        )
        return {
            "total_groups": len(groups),
            "groups_by_status": self._groups.count_by_status(),
            "total_members": sum(len(g.members) for g in groups),
            "total_value_paid": total_value_paid,
            "total_history_events": self._history.count(),
            "event_types": self._history.count_by_type(),
        }
