"""
Read-only aggregation views over complaint rows.

Reducers are pure functions of the fetched rows so they can be tested
without a database.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.civicstack.db.models import Complaint, ComplaintStage
from src.civicstack.db.utils import ensure_aware, utcnow
from src.civicstack.models.categories import display_name

TREND_MONTHS = 9
MAX_PEOPLE_IMPACTED = 50000
HIGH_ENGAGEMENT_VOTES = 5
HIGH_PRIORITY_SCORE = 0.8

ROW_COLUMNS = ["id", "status", "category", "created_at", "resolved_at", "priority_score", "vote_count"]
STAGE_COLUMNS = ["complaint_id", "stage_order", "stage_name", "status", "estimated_cost"]
STAGE_STATUSES = ("pending", "in_progress", "completed", "cancelled")


def fetch_complaint_rows(session: Session) -> List[Dict[str, Any]]:
    """Fetch the columns the reducers need, newest first."""
    result = session.execute(
        select(
            Complaint.id,
            Complaint.status,
            Complaint.category,
            Complaint.created_at,
            Complaint.resolved_at,
            Complaint.priority_score,
            Complaint.vote_count,
        ).order_by(Complaint.created_at.desc())
    )
    return [dict(row._mapping) for row in result]


def _frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=ROW_COLUMNS)
    # legacy rows used "completed" for resolved
    df["status"] = df["status"].fillna("").str.lower().replace({"completed": "resolved"})
    df["category"] = df["category"].fillna("other")
    df["vote_count"] = pd.to_numeric(df["vote_count"], errors="coerce").fillna(0).astype(int)
    df["priority_score"] = pd.to_numeric(df["priority_score"], errors="coerce").fillna(0.0)
    df["created_at"] = pd.to_datetime(
        [ensure_aware(v) for v in df["created_at"]], utc=True, errors="coerce"
    )
    df["resolved_at"] = pd.to_datetime(
        [ensure_aware(v) for v in df["resolved_at"]], utc=True, errors="coerce"
    )
    return df


def _percent(part: int, whole: int) -> int:
    return int(round(part / whole * 100)) if whole else 0


def statistics_summary(rows: List[Dict[str, Any]]) -> Dict[str, int]:
    df = _frame(rows)
    counts = df["status"].value_counts()
    return {
        "total": int(len(df)),
        "pending": int(counts.get("pending", 0)),
        "inProgress": int(counts.get("in_progress", 0)),
        "resolved": int(counts.get("resolved", 0)),
        "cancelled": int(counts.get("cancelled", 0)),
    }


def category_stats(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []

    grouped = df.groupby("category")["status"]
    stats = []
    for category, statuses in grouped:
        total = int(len(statuses))
        resolved = int((statuses == "resolved").sum())
        stats.append({
            "category": category,
            "name": display_name(category),
            "total": total,
            "resolved": resolved,
            "pending": int((statuses == "pending").sum()),
            "inProgress": int((statuses == "in_progress").sum()),
            "resolutionRate": _percent(resolved, total),
        })
    stats.sort(key=lambda s: (-s["total"], s["category"]))
    return stats


def monthly_trend(df: pd.DataFrame, now: datetime, months: int = TREND_MONTHS) -> List[Dict[str, Any]]:
    """Totals and resolved counts for the trailing months, oldest first."""
    current = pd.Period(pd.Timestamp(now).tz_convert("UTC").tz_localize(None), freq="M")
    periods = [current - offset for offset in range(months - 1, -1, -1)]

    created = df["created_at"].dropna()
    if created.empty:
        return [
            {"month": p.strftime("%b"), "year": int(p.year), "total": 0, "resolved": 0}
            for p in periods
        ]

    by_month = created.dt.tz_localize(None).dt.to_period("M")
    resolved_mask = df.loc[created.index, "status"] == "resolved"

    trend = []
    for period in periods:
        in_month = by_month == period
        trend.append({
            "month": period.strftime("%b"),
            "year": int(period.year),
            "total": int(in_month.sum()),
            "resolved": int((in_month & resolved_mask).sum()),
        })
    return trend


def average_resolution_days(df: pd.DataFrame) -> int:
    done = df[(df["status"] == "resolved") & df["created_at"].notna() & df["resolved_at"].notna()]
    if done.empty:
        return 0
    days = ((done["resolved_at"] - done["created_at"]).dt.total_seconds() / 86400).round().clip(lower=0)
    return int(round(days.mean()))


def impact_multiplier(category: str) -> int:
    category = (category or "").lower()
    if "road" in category or "pothole" in category:
        return 50
    if "water" in category or "sewage" in category or "flood" in category:
        return 30
    if "garbage" in category:
        return 20
    if "streetlight" in category:
        return 15
    return 10


def impact_stats(df: pd.DataFrame) -> Dict[str, Any]:
    if df.empty:
        return {"peopleImpacted": 0, "highPriorityIssues": 0, "communityEngagement": 0, "avgVotesPerComplaint": 0}

    multipliers = df["category"].map(impact_multiplier)
    impacted = ((df["vote_count"] + 1) * multipliers).sum()
    high_priority = ((df["priority_score"] >= HIGH_PRIORITY_SCORE) | (df["vote_count"] >= HIGH_ENGAGEMENT_VOTES)).sum()
    votes = int(df["vote_count"].sum())
    return {
        "peopleImpacted": int(min(impacted, MAX_PEOPLE_IMPACTED)),
        "highPriorityIssues": int(high_priority),
        "communityEngagement": votes,
        "avgVotesPerComplaint": round(votes / len(df), 1),
    }


def voting_stats(df: pd.DataFrame) -> Dict[str, int]:
    with_votes = int((df["vote_count"] > 0).sum())
    return {
        "totalVotes": int(df["vote_count"].sum()),
        "complaintsWithVotes": with_votes,
        "highEngagementComplaints": int((df["vote_count"] >= HIGH_ENGAGEMENT_VOTES).sum()),
        "engagementRate": _percent(with_votes, len(df)),
    }


def transparency_dashboard(rows: List[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Public transparency dashboard.

    Args:
        rows: Complaint rows from fetch_complaint_rows
        now: Reference time for the monthly trend

    Returns:
        JSON-ready dashboard dictionary
    """
    now = ensure_aware(now) or utcnow()
    df = _frame(rows)
    summary = statistics_summary(rows)
    earliest = df["created_at"].min() if not df.empty else None

    return {
        "totalComplaints": summary["total"],
        "resolvedComplaints": summary["resolved"],
        "pendingComplaints": summary["pending"],
        "inProgressComplaints": summary["inProgress"],
        "cancelledComplaints": summary["cancelled"],
        "resolutionRate": _percent(summary["resolved"], summary["total"]),
        "avgResolutionTime": average_resolution_days(df),
        "categoryStats": category_stats(df),
        "monthlyData": monthly_trend(df, now),
        "impactStats": impact_stats(df),
        "votingStats": voting_stats(df),
        "lastUpdated": now.isoformat(),
        "dataRange": {
            "from": earliest.isoformat() if earliest is not None and not pd.isna(earliest) else None,
            "to": now.isoformat(),
        },
    }


def fetch_stage_rows(session: Session) -> List[Dict[str, Any]]:
    result = session.execute(
        select(
            ComplaintStage.complaint_id,
            ComplaintStage.stage_order,
            ComplaintStage.stage_name,
            ComplaintStage.status,
            ComplaintStage.estimated_cost,
        ).order_by(ComplaintStage.stage_order)
    )
    return [dict(row._mapping) for row in result]


def _stage_frame(stage_rows: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(stage_rows, columns=STAGE_COLUMNS)
    df["status"] = df["status"].fillna("pending").str.lower()
    df["estimated_cost"] = pd.to_numeric(df["estimated_cost"], errors="coerce")
    return df.sort_values("stage_order", kind="stable")


def stage_progress(stages: pd.DataFrame) -> Dict[str, Dict[str, int]]:
    """Per stage name, how many complaints sit in each stage status."""
    progress = {}
    for name, statuses in stages.groupby("stage_name", sort=False)["status"]:
        counts = statuses.value_counts()
        progress[name] = {status: int(counts.get(status, 0)) for status in STAGE_STATUSES}
    return progress


def cost_analysis(stages: pd.DataFrame) -> Dict[str, Any]:
    estimated = stages.dropna(subset=["estimated_cost"])
    complaints = int(estimated["complaint_id"].nunique())
    total = float(estimated["estimated_cost"].sum())
    by_stage = estimated.groupby("stage_name", sort=False)["estimated_cost"].sum()
    return {
        "totalEstimated": round(total, 2),
        "complaintsWithEstimate": complaints,
        "averagePerComplaint": round(total / complaints, 2) if complaints else 0,
        "byStage": {name: round(float(cost), 2) for name, cost in by_stage.items()},
    }


def admin_overview(
    rows: List[Dict[str, Any]],
    stage_rows: List[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Staff dashboard: workload headline numbers, stage progress and the
    estimated cost of the work recorded on stages.

    Args:
        rows: Complaint rows from fetch_complaint_rows
        stage_rows: Stage rows from fetch_stage_rows
        now: Reference time stamped on the result

    Returns:
        overview, stageProgress and costAnalysis sections
    """
    now = ensure_aware(now) or utcnow()
    df = _frame(rows)
    stages = _stage_frame(stage_rows)
    summary = statistics_summary(rows)

    return {
        "overview": {
            "totalComplaints": summary["total"],
            "pendingComplaints": summary["pending"],
            "inProgressComplaints": summary["inProgress"],
            "resolvedComplaints": summary["resolved"],
            "highPriorityComplaints": int((df["priority_score"] >= HIGH_PRIORITY_SCORE).sum()),
            "avgResolutionTime": average_resolution_days(df),
            "resolutionRate": _percent(summary["resolved"], summary["total"]),
        },
        "stageProgress": stage_progress(stages),
        "costAnalysis": cost_analysis(stages),
        "lastUpdated": now.isoformat(),
    }
