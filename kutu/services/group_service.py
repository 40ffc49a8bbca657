# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Group management — delivery-side coordination of the rotation engine.
Read-modify-write against the repository, one command at a time, followed by
a best-effort write-through save, an audit event, metrics and a log line.
"""

import threading
import uuid
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from kutu.core.config import settings
from kutu.core.exceptions import (
    GroupNotFound,
    InvalidStateError,
    RotationError,
    ValidationError,
)
from kutu.core.logging import get_logger
from kutu.metrics.prometheus import (
    COMMAND_FAILURES,
    CYCLES_COMPLETED,
    GROUP_RESETS,
    GROUPS_BY_STATUS,
    GROUPS_CREATED,
    PAYMENTS_RECORDED,
    PAYOUTS_COMPLETED,
    PERSIST_FAILURES,
    ROUNDS_ADVANCED,
)
from kutu.models.domain import Group, GroupStatus, Member
from kutu.repositories.group_repository import GroupRepository
from kutu.repositories.group_store import GroupStore
from kutu.repositories.history_repository import HistoryRepository
from kutu.services import rotation

logger = get_logger(__name__)


class GroupService:
    """Business logic for savings group lifecycle commands."""

    def __init__(
        self,
        group_repo: GroupRepository,
        history_repo: HistoryRepository,
        store: GroupStore,
    ) -> None:
        self._groups = group_repo
        self._history = history_repo
        self._store = store
        self._lock = threading.RLock()

    # ── Internal helpers ──

    def _require(self, group_id: str) -> Group:
        group = self._groups.get_by_id(group_id)
        if group is None:
            raise GroupNotFound(group_id)
        return group

    def _run(self, command: str, fn: Callable[..., Group], *args: Any, **kwargs: Any) -> Group:
        try:
            return fn(*args, **kwargs)
        except RotationError as exc:
            COMMAND_FAILURES.labels(command=command, error=exc.code).inc()
            logger.info("Command rejected: command=%s, error=%s", command, exc.message)
            raise

    def _commit(
        self,
        group: Group,
        event_type: str,
        details: dict[str, Any],
        round_number: Optional[int] = None,
        member_id: Optional[str] = None,
    ) -> Group:
        """Save, persist and log one command. The round defaults to the group's current one."""
        self._groups.save(group)
        self._persist()
        self._history.record_event(
            event_type,
            group.id,
            details,
            round_number=round_number or group.current_round,
            member_id=member_id,
        )
        self._refresh_gauges()
        return group

    def _persist(self) -> None:
        """Write-through save. Failures never roll back the in-memory snapshot."""
        try:
            self._store.save(self._groups.get_all())
        except Exception as exc:
            PERSIST_FAILURES.inc()
            logger.warning("Persisting groups failed: %s", exc)

    def _refresh_gauges(self) -> None:
        counts = self._groups.count_by_status()
        for status in GroupStatus:
            GROUPS_BY_STATUS.labels(status=status.value).set(counts.get(status.value, 0))

    @staticmethod
    def _build_member(data: dict[str, Any]) -> Member:
        member_id = data.get("id") or f"m-{uuid.uuid4().hex[:8]}"
        try:
            return Member(
                id=member_id,
                name=data.get("name", ""),
                phone=data.get("phone") or None,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid member: {exc.errors()[0]['msg']}") from exc

    # ── Commands ──

    def create_group(
        self,
        name: str,
        contribution_amount: float,
        members: list[dict[str, Any]],
        payout_order: Optional[list[str]] = None,
        group_id: Optional[str] = None,
    ) -> Group:
        """Create a Pending group. Raises ValidationError on bad input."""
        roster = [self._build_member(m) for m in members]
        with self._lock:
            if group_id and self._groups.exists(group_id):
                raise ValidationError(f"Group id '{group_id}' is already in use")
            group = self._run(
                "create_group",
                rotation.create_group,
                name,
                contribution_amount,
                roster,
                payout_order=payout_order,
                group_id=group_id,
                shuffle=settings.RANDOMIZE_PAYOUT_ORDER,
            )
            self._commit(group, "group_created", {
                "members_count": len(group.members),
                "contribution_amount": group.contribution_amount,
                "payout_order": list(group.payout_order),
            })
        GROUPS_CREATED.inc()
        logger.info("Group created: id=%s, name=%s, members=%d",
                    group.id, group.name, len(group.members))
        return group

    def record_payment(self, group_id: str, member_id: str) -> Group:
        with self._lock:
            group = self._require(group_id)
            updated = self._run("record_payment", rotation.record_payment, group, member_id)
            if updated is group:
                logger.info("Payment already recorded: group=%s, member=%s", group_id, member_id)
                return group
            rnd = rotation.current_round(updated)
            self._commit(updated, "payment_recorded", {
                "paid": rotation.paid_count(rnd),
                "total": len(rnd.payments),
            }, member_id=member_id)
            if rnd.payout_member_id and rotation.current_round(group).payout_member_id is None:
                self._history.record_event(
                    "recipient_assigned",
                    group_id,
                    {"source": "all_paid"},
                    round_number=rnd.round_number,
                    member_id=rnd.payout_member_id,
                )
        PAYMENTS_RECORDED.inc()
        logger.info("Payment recorded: group=%s, round=%d, member=%s",
                    group_id, rnd.round_number, member_id)
        return updated

    def assign_recipient(self, group_id: str) -> Group:
        with self._lock:
            group = self._require(group_id)
            updated = self._run("assign_recipient", rotation.assign_recipient, group)
            if updated is group:
                return group
            rnd = rotation.current_round(updated)
            self._commit(updated, "recipient_assigned", {
                "source": "manual",
            }, member_id=rnd.payout_member_id)
        logger.info("Recipient pre-assigned: group=%s, round=%d, member=%s",
                    group_id, rnd.round_number, rnd.payout_member_id)
        return updated

    def complete_payout(self, group_id: str) -> Group:
        with self._lock:
            group = self._require(group_id)
            updated = self._run("complete_payout", rotation.complete_payout, group)
            if updated is group:
                return group
            rnd = rotation.current_round(updated)
            self._commit(updated, "payout_completed", {
                "amount": updated.contribution_amount * len(updated.members),
            }, member_id=rnd.payout_member_id)
        PAYOUTS_COMPLETED.inc()
        logger.info("Payout completed: group=%s, round=%d, recipient=%s",
                    group_id, rnd.round_number, rnd.payout_member_id)
        return updated

    def advance_round(self, group_id: str) -> Group:
        with self._lock:
            group = self._require(group_id)
            updated = self._run("advance_round", rotation.advance_round, group)
            if updated is group:
                return group
            if updated.status is GroupStatus.COMPLETED:
                self._commit(updated, "group_completed", {
                    "rounds": len(updated.rounds),
                })
                CYCLES_COMPLETED.inc()
                logger.info("Group cycle completed: group=%s", group_id)
                return updated
            self._commit(updated, "round_advanced", {
                "from_round": group.current_round,
                "to_round": updated.current_round,
            })
        ROUNDS_ADVANCED.inc()
        logger.info("Round advanced: group=%s, round=%d", group_id, updated.current_round)
        return updated

    def set_payout_order(self, group_id: str, order: list[str]) -> Group:
        with self._lock:
            group = self._require(group_id)
            updated = self._run(
                "set_payout_order",
                rotation.set_payout_order,
                group,
                order,
                strict=settings.STRICT_PAYOUT_ORDER,
            )
            if updated is group:
                return group
            self._commit(updated, "payout_order_changed", {
                "old": list(group.payout_order),
                "new": list(updated.payout_order),
            })
        logger.info("Payout order changed: group=%s", group_id)
        return updated

    def add_member(self, group_id: str, member: dict[str, Any]) -> Group:
        """Add a member. Destructive: discards all round progress."""
        new_member = self._build_member(member)
        with self._lock:
            group = self._require(group_id)
            updated = self._run("add_member", rotation.add_member, group, new_member)
            self._commit(updated, "member_added", {
                "name": new_member.name,
                "discarded_rounds": len(group.rounds),
            }, member_id=new_member.id)
        GROUP_RESETS.labels(reason="member_added").inc()
        logger.info("Member added, progress reset: group=%s, member=%s", group_id, new_member.id)
        return updated

    def remove_member(self, group_id: str, member_id: str) -> Group:
        """Remove a member. Destructive: discards all round progress."""
        with self._lock:
            group = self._require(group_id)
            updated = self._run("remove_member", rotation.remove_member, group, member_id)
            self._commit(updated, "member_removed", {
                "discarded_rounds": len(group.rounds),
            }, member_id=member_id)
        GROUP_RESETS.labels(reason="member_removed").inc()
        logger.info("Member removed, progress reset: group=%s, member=%s", group_id, member_id)
        return updated

    def reset_group(self, group_id: str) -> Group:
        """Start the cycle over. Only allowed once the cycle is completed."""
        with self._lock:
            group = self._require(group_id)
            if settings.RESET_REQUIRES_COMPLETED and group.status is not GroupStatus.COMPLETED:
                COMMAND_FAILURES.labels(command="reset_group", error=InvalidStateError.code).inc()
                raise InvalidStateError(
                    f"Only a completed group can be reset (status is {group.status.value})"
                )
            updated = self._run("reset_group", rotation.reset_group, group)
            self._commit(updated, "group_reset", {
                "previous_status": group.status.value,
                "discarded_rounds": len(group.rounds),
            })
        GROUP_RESETS.labels(reason="manual").inc()
        logger.info("Group reset: group=%s", group_id)
        return updated

    def delete_group(self, group_id: str) -> dict[str, str]:
        with self._lock:
            if self._groups.delete(group_id) is None:
                raise GroupNotFound(group_id)
            self._persist()
            self._history.record_event("group_deleted", group_id, {})
            self._refresh_gauges()
        logger.info("Group deleted: id=%s", group_id)
        return {"status": "deleted", "id": group_id}

    # ── Queries ──

    def list_groups(self, status: Optional[str] = None) -> list[Group]:
        groups = self._groups.get_all()
        if status:
            groups = [g for g in groups if g.status.value == status]
        return groups

    def get_group(self, group_id: str) -> Group:
        return self._require(group_id)

    # ── Startup ──

    def load_from_store(self) -> int:
        """Replace the in-memory snapshot with the persisted groups."""
        groups = self._store.load()
        with self._lock:
            self._groups.replace_all(groups)
            self._refresh_gauges()
        logger.info("Loaded %d groups from store", len(groups))
        return len(groups)

    def seed_defaults(self) -> None:
        """Create sample groups so the service is usable immediately."""
        members = [
            Member(id="m1", name="Ali bin Abu", phone="60123456789"),
            Member(id="m2", name="Siti Nurhaliza", phone="60198765432"),
            Member(id="m3", name="John Doe", phone="60112345678"),
            Member(id="m4", name="Mei Ling", phone="60167891234"),
            Member(id="m5", name="Rajesh Kumar", phone="60178901234"),
        ]
        family = rotation.create_group(
            "Kutu Keluarga Bahagia",
            200,
            members,
            payout_order=["m3", "m1", "m2", "m4", "m5"],
            group_id="g1",
        )
        for m in members:
            family = rotation.record_payment(family, m.id)
        family = rotation.advance_round(rotation.complete_payout(family))

        office = rotation.create_group(
            "Sahabat Office 2024",
            500,
            members[:3],
            group_id="g2",
        )

        with self._lock:
            for group in (family, office):
                self._groups.save(group)
                self._history.record_event(
                    "group_created",
                    group.id,
                    {"members_count": len(group.members), "source": "seed"},
                )
            self._persist()
            self._refresh_gauges()
        logger.info("Seeded %d default groups", 2)
