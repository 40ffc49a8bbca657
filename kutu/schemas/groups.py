# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
Group bodies themselves are returned in the persisted camelCase shape.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ── Group Schemas ──

class MemberIn(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255, description="Member name")
    phone: Optional[str] = Field(default=None, max_length=32, description="Phone number")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class GroupCreateRequest(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255, description="Group name")
    contribution_amount: float = Field(..., description="Contribution per member per round")
    members: list[MemberIn] = Field(..., description="Group roster")
    payout_order: Optional[list[str]] = Field(
        default=None,
        description="Member ids in payout sequence; defaults to roster order",
    )


class PaymentRequest(BaseModel):
    member_id: str = Field(..., min_length=1)


class PayoutOrderRequest(BaseModel):
    order: list[str] = Field(..., description="Permutation of the member ids")


# ── Report Schemas ──

class GroupSummaryResponse(BaseModel):
    id: str
    name: str
    status: str
    current_round: int
    total_rounds: int
    phase: str
    recipient_id: Optional[str] = None
    recipient_name: Optional[str] = None
    paid_count: int
    members_count: int
    pot: float
    completed_payouts: int


class LedgerRow(BaseModel):
    id: str
    group_id: str
    group_name: str
    round_number: int
    payer_name: str
    recipient_name: str
    amount: float
    status: str


class StatsResponse(BaseModel):
    total_groups: int
    groups_by_status: dict[str, int]
    total_members: int
    total_value_paid: float
    total_history_events: int
    event_types: dict[str, int]


class TipResponse(BaseModel):
    language: str
    tip: str
    source: str


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    request_id: Optional[str] = None
