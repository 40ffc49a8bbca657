# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation cycle engine — pure computation, no side effects.

Every command takes a Group value and returns a new Group value, or raises a
RotationError and leaves the input untouched. No I/O, no metrics, no logging.

Round lifecycle:
    Collecting ─► AwaitingPayout ─► PayoutComplete ─► (next round | Completed)
Group lifecycle:
    Pending ─► Active ─► Completed   (reset / roster edit ─► Pending)
"""

import math
import random
import uuid
from collections.abc import Iterable, Sequence
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from kutu.core.exceptions import (
    InvalidStateError,
    InvariantViolation,
    PrerequisiteNotMetError,
    ValidationError,
)
from kutu.models.domain import (
    Group,
    GroupStatus,
    Member,
    Payment,
    PaymentStatus,
    Round,
    RoundPhase,
)

MIN_MEMBERS = 2


# ── Helpers ──

def _fresh_round(round_number: int, members: Iterable[Member]) -> Round:
    return Round(
        round_number=round_number,
        payments=tuple(Payment(member_id=m.id) for m in members),
    )


def _validate_roster(members: Sequence[Member]) -> tuple[Member, ...]:
    if len(members) < MIN_MEMBERS:
        raise ValidationError(f"A group needs at least {MIN_MEMBERS} members")
    cleaned: list[Member] = []
    seen: set[str] = set()
    for m in members:
        name = m.name.strip()
        if not name:
            raise ValidationError("Member name must not be blank")
        if m.id in seen:
            raise ValidationError(f"Duplicate member id '{m.id}'")
        seen.add(m.id)
        cleaned.append(m if name == m.name else m.model_copy(update={"name": name}))
    return tuple(cleaned)


def _validate_order(order: Sequence[str], member_ids: Sequence[str]) -> tuple[str, ...]:
    order = tuple(order)
    if len(order) != len(member_ids) or set(order) != set(member_ids):
        raise ValidationError("Payout order must be a permutation of the member ids")
    return order


def _with_current_round(group: Group, new_round: Round) -> tuple[Round, ...]:
    return tuple(
        new_round if r.round_number == group.current_round else r
        for r in group.rounds
    )


def _restart(group: Group, members: tuple[Member, ...], payout_order: tuple[str, ...]) -> Group:
    return group.model_copy(update={
        "members": members,
        "payout_order": payout_order,
        "current_round": 1,
        "status": GroupStatus.PENDING,
        "rounds": (_fresh_round(1, members),),
    })


# ── Queries ──

def current_round(group: Group) -> Round:
    """Return the active round (the one numbered ``current_round``)."""
    for r in group.rounds:
        if r.round_number == group.current_round:
            return r
    raise InvariantViolation(
        f"Group '{group.id}' has no round {group.current_round}"
    )


def paid_count(rnd: Round) -> int:
    return sum(1 for p in rnd.payments if p.is_paid)


def round_phase(rnd: Round) -> RoundPhase:
    if rnd.payout_completed:
        return RoundPhase.PAYOUT_COMPLETE
    if rnd.payout_member_id is not None:
        return RoundPhase.AWAITING_PAYOUT
    return RoundPhase.COLLECTING


def check_invariants(group: Group) -> Group:
    """Raise InvariantViolation unless ``group`` satisfies the data model rules."""
    ids = group.member_ids
    id_set = set(ids)

    if not group.name.strip():
        raise InvariantViolation("Group name is blank")
    if group.contribution_amount <= 0:
        raise InvariantViolation("Contribution amount must be positive")
    if len(ids) < MIN_MEMBERS:
        raise InvariantViolation(f"Group has fewer than {MIN_MEMBERS} members")
    if len(id_set) != len(ids):
        raise InvariantViolation("Member ids are not unique")
    if len(group.payout_order) != len(ids) or set(group.payout_order) != id_set:
        raise InvariantViolation("Payout order is not a permutation of the member ids")
    if group.current_round > len(ids):
        raise InvariantViolation("Current round is past the last payout slot")

    numbers = [r.round_number for r in group.rounds]
    if numbers != list(range(1, group.current_round + 1)):
        raise InvariantViolation(
            f"Rounds {numbers} do not cover 1..{group.current_round} contiguously"
        )

    for r in group.rounds:
        payer_ids = [p.member_id for p in r.payments]
        if len(payer_ids) != len(ids) or set(payer_ids) != id_set:
            raise InvariantViolation(
                f"Round {r.round_number} payments do not mirror the member roster"
            )
        if r.payout_member_id is not None:
            if r.payout_member_id != group.payout_order[r.round_number - 1]:
                raise InvariantViolation(
                    f"Round {r.round_number} recipient does not match its payout slot"
                )
        elif r.payout_completed:
            raise InvariantViolation(
                f"Round {r.round_number} is paid out without a recipient"
            )
        if r.round_number < group.current_round and not r.payout_completed:
            raise InvariantViolation(
                f"Round {r.round_number} was left behind without a payout"
            )

    completed = [r for r in group.rounds if r.payout_completed]
    if group.status is GroupStatus.PENDING and completed:
        raise InvariantViolation("A pending group cannot have completed payouts")
    if group.status is GroupStatus.ACTIVE and not completed:
        raise InvariantViolation("An active group needs at least one completed payout")
    if group.status is GroupStatus.COMPLETED and len(completed) != len(ids):
        raise InvariantViolation("A completed group must have paid out every member")
    return group


# ── Commands ──

def create_group(
    name: str,
    contribution_amount: float,
    members: Sequence[Member],
    payout_order: Optional[Sequence[str]] = None,
    group_id: Optional[str] = None,
    shuffle: bool = False,
    rng: Optional[random.Random] = None,
) -> Group:
    """
    Build a Pending group with a single all-Unpaid round 1.
    Without an explicit ``payout_order`` members are paid in insertion order,
    or in a random permutation when ``shuffle`` is set.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Group name must not be blank")
    if (
        contribution_amount is None
        or not math.isfinite(contribution_amount)
        or contribution_amount <= 0
    ):
        raise ValidationError("Contribution amount must be greater than zero")
    roster = _validate_roster(list(members))
    ids = [m.id for m in roster]

    if payout_order is None:
        order = list(ids)
        if shuffle:
            (rng or random).shuffle(order)
        payout_order = order
    order = _validate_order(payout_order, ids)

    try:
        group = Group(
            id=group_id or str(uuid.uuid4()),
            name=name,
            contribution_amount=contribution_amount,
            members=roster,
            payout_order=order,
            current_round=1,
            status=GroupStatus.PENDING,
            rounds=(_fresh_round(1, roster),),
        )
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid group: {exc.errors()[0]['msg']}") from exc
    return check_invariants(group)


def record_payment(group: Group, member_id: str) -> Group:
    """
    Mark ``member_id`` as Paid in the current round. Re-marking is a no-op.
    When the last payment lands, the recipient is taken from the payout order.
    """
    if group.status is GroupStatus.COMPLETED:
        raise InvalidStateError("The group cycle is already completed")
    if group.member(member_id) is None:
        raise ValidationError(f"'{member_id}' is not a member of this group")
    rnd = current_round(group)
    if rnd.payout_completed:
        raise InvalidStateError(
            f"Round {rnd.round_number} has already been paid out"
        )

    if any(p.member_id == member_id and p.is_paid for p in rnd.payments):
        return group
    payments = tuple(
        p.model_copy(update={"status": PaymentStatus.PAID})
        if p.member_id == member_id else p
        for p in rnd.payments
    )

    recipient = rnd.payout_member_id
    if recipient is None and all(p.is_paid for p in payments):
        recipient = group.payout_order[group.current_round - 1]

    updated = rnd.model_copy(update={"payments": payments, "payout_member_id": recipient})
    return check_invariants(
        group.model_copy(update={"rounds": _with_current_round(group, updated)})
    )


def assign_recipient(group: Group) -> Group:
    """Pre-assign the current round's recipient before everyone has paid."""
    if group.status is GroupStatus.COMPLETED:
        raise InvalidStateError("The group cycle is already completed")
    rnd = current_round(group)
    if rnd.payout_completed:
        raise InvalidStateError(
            f"Round {rnd.round_number} has already been paid out"
        )
    if rnd.payout_member_id is not None:
        return group
    updated = rnd.model_copy(update={
        "payout_member_id": group.payout_order[group.current_round - 1],
    })
    return check_invariants(
        group.model_copy(update={"rounds": _with_current_round(group, updated)})
    )


def complete_payout(group: Group) -> Group:
    """Close the current round's payout. Idempotent once completed."""
    rnd = current_round(group)
    if rnd.payout_completed:
        return group
    if rnd.payout_member_id is None:
        raise PrerequisiteNotMetError(
            f"Round {rnd.round_number} has no recipient yet: "
            f"{paid_count(rnd)}/{len(rnd.payments)} payments received"
        )
    updated = rnd.model_copy(update={"payout_completed": True})
    status = group.status
    if status is GroupStatus.PENDING:
        status = GroupStatus.ACTIVE
    return check_invariants(group.model_copy(update={
        "rounds": _with_current_round(group, updated),
        "status": status,
    }))


def advance_round(group: Group) -> Group:
    """Open the next round, or complete the cycle after the last slot."""
    rnd = current_round(group)
    if not rnd.payout_completed:
        raise PrerequisiteNotMetError(
            f"Round {rnd.round_number} payout must be completed before advancing"
        )
    if group.current_round >= len(group.members):
        if group.status is GroupStatus.COMPLETED:
            return group
        return check_invariants(
            group.model_copy(update={"status": GroupStatus.COMPLETED})
        )

    next_number = group.current_round + 1
    return check_invariants(group.model_copy(update={
        "current_round": next_number,
        "rounds": group.rounds + (_fresh_round(next_number, group.members),),
    }))


def set_payout_order(group: Group, new_order: Sequence[str], strict: bool = False) -> Group:
    """
    Replace the payout order. Slots whose round already has a recipient are
    fixed; in strict mode the order can only change while the group is Pending.
    """
    order = _validate_order(new_order, group.member_ids)
    if strict and group.status is not GroupStatus.PENDING:
        raise InvalidStateError(
            f"Payout order can only be changed while the group is Pending "
            f"(status is {group.status.value})"
        )
    for r in group.rounds:
        if r.payout_member_id is not None and order[r.round_number - 1] != r.payout_member_id:
            raise InvalidStateError(
                f"Slot {r.round_number} is already assigned to '{r.payout_member_id}'"
            )
    if order == group.payout_order:
        return group
    return check_invariants(group.model_copy(update={"payout_order": order}))


def add_member(group: Group, member: Member) -> Group:
    """Append a member to the roster and the end of the payout order, then reset."""
    if group.member(member.id) is not None:
        raise ValidationError(f"Duplicate member id '{member.id}'")
    members = _validate_roster(group.members + (member,))
    return check_invariants(
        _restart(group, members, group.payout_order + (member.id,))
    )


def remove_member(group: Group, member_id: str) -> Group:
    """Drop a member from the roster and the payout order, then reset."""
    if group.member(member_id) is None:
        raise ValidationError(f"'{member_id}' is not a member of this group")
    if len(group.members) - 1 < MIN_MEMBERS:
        raise ValidationError(f"A group needs at least {MIN_MEMBERS} members")
    members = tuple(m for m in group.members if m.id != member_id)
    order = tuple(mid for mid in group.payout_order if mid != member_id)
    return check_invariants(_restart(group, members, order))


def reset_group(group: Group) -> Group:
    """Discard all round history and return to Pending/round 1."""
    return check_invariants(_restart(group, group.members, group.payout_order))
