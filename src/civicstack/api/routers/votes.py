"""
Votes Router

Upvote toggles for signed-in users and anonymous devices.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.civicstack.api.auth import get_current_user_id
from src.civicstack.api.cache import invalidate_cache
from src.civicstack.api.dependencies import get_vote_ledger
from src.civicstack.api.schemas import GuestVoteRequest, GuestVoteStatusResponse, VoteRequest, VoteResponse
from src.civicstack.services.votes import (
    ACTION_ADDED,
    ACTION_CHANGED,
    ACTION_REMOVED,
    ACTION_UNCHANGED,
    VoteLedger,
    VoteOutcome,
    resolve_guest_voter,
)

router = APIRouter(prefix="/api", tags=["votes"])

DASHBOARD_CACHE_PREFIX = "transparency"

ACTION_MESSAGES = {
    ACTION_ADDED: "Vote added",
    ACTION_REMOVED: "Vote removed",
    ACTION_CHANGED: "Vote changed to upvote",
}


def vote_response(outcome: VoteOutcome) -> VoteResponse:
    # votingStats and impactStats read vote counts
    if outcome.action != ACTION_UNCHANGED:
        invalidate_cache(DASHBOARD_CACHE_PREFIX)
    return VoteResponse(
        action=outcome.action,
        vote_count=outcome.vote_count,
        user_voted=outcome.user_voted,
        message=ACTION_MESSAGES.get(outcome.action, "Vote already recorded"),
    )


@router.post("/complaints/vote", response_model=VoteResponse)
def toggle_vote(
    payload: VoteRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    """
    Toggle the caller's upvote.

    Returns:
        Action taken, the complaint's current vote count and whether the
        caller now upvotes it
    """
    return vote_response(ledger.toggle_vote(payload.complaint_id, user_id))


@router.post("/guest-votes", response_model=VoteResponse)
def toggle_guest_vote(
    payload: GuestVoteRequest,
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    """Toggle an anonymous device's upvote."""
    voter_id = resolve_guest_voter(payload.device_id)
    return vote_response(ledger.toggle_vote(payload.complaint_id, voter_id, is_guest=True))


@router.get("/guest-votes/{complaint_id}", response_model=GuestVoteStatusResponse)
def guest_vote_status(
    complaint_id: str,
    device_id: Optional[str] = Query(None, alias="deviceId"),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    return GuestVoteStatusResponse(**ledger.guest_vote_status(complaint_id, device_id))
