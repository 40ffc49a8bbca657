# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.
"""

from kutu.core.config import settings
from kutu.repositories.group_repository import GroupRepository
from kutu.repositories.group_store import (
    GroupStore,
    InMemoryGroupStore,
    JsonFileGroupStore,
)
from kutu.repositories.history_repository import HistoryRepository
from kutu.services.group_service import GroupService
from kutu.services.report_service import ReportService
from kutu.services.tip_client import TipClient


def build_store() -> GroupStore:
    if settings.STORE_PATH:
        return JsonFileGroupStore(settings.STORE_PATH)
    return InMemoryGroupStore()


# ── Singleton repository instances ──
_group_repo = GroupRepository()
_history_repo = HistoryRepository()
_group_store = build_store()
_tip_client = TipClient()

# ── Service instances (with injected dependencies) ──
_group_service = GroupService(
    group_repo=_group_repo,
    history_repo=_history_repo,
    store=_group_store,
)
_report_service = ReportService(
    group_repo=_group_repo,
    history_repo=_history_repo,
)


# ── FastAPI dependency functions ──
def get_group_service() -> GroupService:
    return _group_service


def get_report_service() -> ReportService:
    return _report_service


def get_tip_client() -> TipClient:
    return _tip_client


def get_group_repo() -> GroupRepository:
    return _group_repo


def get_history_repo() -> HistoryRepository:
    return _history_repo


def get_group_store() -> GroupStore:
    return _group_store
