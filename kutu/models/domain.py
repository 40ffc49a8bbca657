# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.

Every model is frozen and holds tuples, so a Group is an immutable value.
Attribute names are snake_case; serialized names (``by_alias=True``) are the
camelCase field names of the persisted JSON contract and must not change.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"


class GroupStatus(str, Enum):
    PENDING = "Pending"
    ACTIVE = "Active"
    COMPLETED = "Completed"


class RoundPhase(str, Enum):
    """Derived per-round sub-state, never persisted."""
    COLLECTING = "Collecting"
    AWAITING_PAYOUT = "AwaitingPayout"
    PAYOUT_COMPLETE = "PayoutComplete"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Member(_Frozen):
    """A single member of a savings group."""
    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)


class Payment(_Frozen):
    """One member's contribution status for one round."""
    member_id: str = Field(..., min_length=1, alias="memberId")
    status: PaymentStatus = PaymentStatus.UNPAID

    @property
    def is_paid(self) -> bool:
        return self.status is PaymentStatus.PAID


class Round(_Frozen):
    round_number: int = Field(..., ge=1, alias="roundNumber")
    payout_member_id: Optional[str] = Field(default=None, alias="payoutMemberId")
    payments: tuple[Payment, ...] = ()
    payout_completed: bool = Field(default=False, alias="payoutCompleted")


class Group(_Frozen):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    contribution_amount: float = Field(..., gt=0, alias="contributionAmount")
    members: tuple[Member, ...]
    payout_order: tuple[str, ...] = Field(..., alias="payoutOrder")
    current_round: int = Field(default=1, ge=1, alias="currentRound")
    status: GroupStatus = GroupStatus.PENDING
    rounds: tuple[Round, ...] = ()

    @property
    def member_ids(self) -> tuple[str, ...]:
        return tuple(m.id for m in self.members)

    def member(self, member_id: str) -> Optional[Member]:
        return next((m for m in self.members if m.id == member_id), None)

    def to_record(self) -> dict:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)
