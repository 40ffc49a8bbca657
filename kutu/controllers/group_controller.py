# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Group lifecycle endpoints.
Thin HTTP layer — delegates ALL logic to GroupService.
Domain errors are turned into responses by the handler registered in main.py.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from kutu.schemas.groups import (
    GroupCreateRequest,
    MemberIn,
    PaymentRequest,
    PayoutOrderRequest,
)
from kutu.services.group_service import GroupService
from kutu.core.dependencies import get_group_service

router = APIRouter(prefix="/api/v1", tags=["Groups"])


@router.post("/groups", status_code=201)
def create_group(
    payload: GroupCreateRequest,
    service: GroupService = Depends(get_group_service),
):
    """Create a savings group in Pending state with an all-unpaid round 1."""
    group = service.create_group(
        name=payload.name,
        contribution_amount=payload.contribution_amount,
        members=[m.model_dump() for m in payload.members],
        payout_order=payload.payout_order,
        group_id=payload.id,
    )
    return group.to_record()


@router.get("/groups")
def list_groups(
    status: Optional[str] = Query(default=None, pattern="^(Pending|Active|Completed)$"),
    service: GroupService = Depends(get_group_service),
):
    """List all groups, optionally filtered by status."""
    return [g.to_record() for g in service.list_groups(status=status)]


@router.get("/groups/{group_id}")
def get_group(
    group_id: str,
    service: GroupService = Depends(get_group_service),
):
    return service.get_group(group_id).to_record()


@router.delete("/groups/{group_id}")
def delete_group(
    group_id: str,
    service: GroupService = Depends(get_group_service),
):
    return service.delete_group(group_id)


# ── Round commands ──

@router.post("/groups/{group_id}/payments")
def record_payment(
    group_id: str,
    payload: PaymentRequest,
    service: GroupService = Depends(get_group_service),
):
    """Mark a member as paid for the current round."""
    return service.record_payment(group_id, payload.member_id).to_record()


@router.post("/groups/{group_id}/recipient")
def assign_recipient(
    group_id: str,
    service: GroupService = Depends(get_group_service),
):
    """Pre-assign the current round's recipient from the payout order."""
    return service.assign_recipient(group_id).to_record()


@router.post("/groups/{group_id}/payout")
def complete_payout(
    group_id: str,
    service: GroupService = Depends(get_group_service),
):
    return service.complete_payout(group_id).to_record()


@router.post("/groups/{group_id}/advance")
def advance_round(
    group_id: str,
    service: GroupService = Depends(get_group_service),
):
    """Open the next round, or complete the cycle after the last slot."""
    return service.advance_round(group_id).to_record()


# ── Roster & order ──

@router.put("/groups/{group_id}/payout-order")
def set_payout_order(
    group_id: str,
    payload: PayoutOrderRequest,
    service: GroupService = Depends(get_group_service),
):
    return service.set_payout_order(group_id, payload.order).to_record()


@router.post("/groups/{group_id}/members", status_code=201)
def add_member(
    group_id: str,
    payload: MemberIn,
    service: GroupService = Depends(get_group_service),
):
    """Add a member. Resets the group to round 1."""
    return service.add_member(group_id, payload.model_dump()).to_record()


@router.delete("/groups/{group_id}/members/{member_id}")
def remove_member(
    group_id: str,
    member_id: str,
    service: GroupService = Depends(get_group_service),
):
    """Remove a member. Resets the group to round 1."""
    return service.remove_member(group_id, member_id).to_record()


@router.post("/groups/{group_id}/reset")
def reset_group(
    group_id: str,
    service: GroupService = Depends(get_group_service),
):
    return service.reset_group(group_id).to_record()
