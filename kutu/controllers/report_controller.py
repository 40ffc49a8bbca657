# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Reports, history and tips.
Read-only endpoints — nothing here changes a group.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from kutu.schemas.groups import (
    GroupSummaryResponse,
    LedgerRow,
    StatsResponse,
    TipResponse,
)
from kutu.repositories.history_repository import HistoryRepository
from kutu.services.report_service import ReportService
from kutu.services.tip_client import TipClient
from kutu.core.dependencies import (
    get_history_repo,
    get_report_service,
    get_tip_client,
)

router = APIRouter(prefix="/api/v1", tags=["Reports"])


@router.get("/groups/{group_id}/export")
def export_group(
    group_id: str,
    service: ReportService = Depends(get_report_service),
):
    """Tabular export of a group's roster, payout order and rounds."""
    return service.export_group(group_id)


@router.get("/groups/{group_id}/summary", response_model=GroupSummaryResponse)
def group_summary(
    group_id: str,
    service: ReportService = Depends(get_report_service),
):
    return service.group_summary(group_id)


@router.get("/reports/payments", response_model=list[LedgerRow])
def payment_ledger(
    group_id: Optional[str] = None,
    status: Optional[str] = Query(default=None, pattern="^(Paid|Unpaid)$"),
    service: ReportService = Depends(get_report_service),
):
    """Payment history across groups, excluding recipients' own contributions."""
    return service.payment_ledger(group_id=group_id, status=status)


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    service: ReportService = Depends(get_report_service),
):
    return service.get_stats()


@router.get("/history")
def get_history(
    group_id: Optional[str] = None,
    event_type: Optional[str] = None,
    round_number: Optional[int] = Query(default=None, ge=1),
    member_id: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    history: HistoryRepository = Depends(get_history_repo),
):
    """Command log, newest last, filterable by group, command, round and member."""
    return history.get_all(
        group_id=group_id,
        event_type=event_type,
        round_number=round_number,
        member_id=member_id,
        limit=limit,
    )


@router.get("/groups/{group_id}/payouts")
def payout_timeline(
    group_id: str,
    history: HistoryRepository = Depends(get_history_repo),
):
    """Completed payouts of a group in round order, kept across resets."""
    return history.payout_timeline(group_id)


@router.get("/tips", response_model=TipResponse)
def get_tip(
    language: str = Query(default="en", pattern="^(en|bm)$"),
    client: TipClient = Depends(get_tip_client),
):
    """A short savings tip; falls back to a static tip when the provider fails."""
    return client.get_tip(language)
