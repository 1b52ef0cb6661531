"""
Statistics Router

Read-only aggregation views: the status summary and the public
transparency dashboard.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.civicstack.api.cache import cache_result
from src.civicstack.api.dependencies import get_db
from src.civicstack.api.schemas import StatisticsSummaryResponse
from src.civicstack.services.dashboards import fetch_complaint_rows, statistics_summary, transparency_dashboard

router = APIRouter(prefix="/api", tags=["statistics"])


@router.get("/statistics/summary", response_model=StatisticsSummaryResponse)
def get_statistics_summary(db: Session = Depends(get_db)):
    """
    Complaint counts by status.

    Returns:
        total, pending, inProgress, resolved and cancelled counts
    """
    return StatisticsSummaryResponse(data=statistics_summary(fetch_complaint_rows(db)))


# The session is per request and must not become part of the key
@cache_result("transparency:dashboard", key_args=lambda db: ())
def build_transparency_dashboard(db: Session) -> Dict[str, Any]:
    return transparency_dashboard(fetch_complaint_rows(db))


@router.get("/transparency/dashboard")
def get_transparency_dashboard(db: Session = Depends(get_db)):
    """
    Public transparency dashboard.

    Totals, resolution rate, category breakdown, monthly trend, average
    resolution time, impact and voting engagement. Cached in Redis.
    """
    return {"success": True, "data": build_transparency_dashboard(db)}
