"""
Vote ledger.

One vote row per (complaint, voter) with a denormalized upvote count on
the complaint. Un-voting deletes the row; legacy downvote rows flip back
to upvotes. The unique constraint on (complaint_id, voter_id) is the
concurrency guard, and counts are always re-read from the complaint row.
"""
from __future__ import annotations

import hashlib
import uuid
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config.settings import settings
from src.civicstack.db.models import ComplaintVote
from src.civicstack.db.repository import ComplaintRepository, VoteRepository
from src.civicstack.errors import ComplaintNotFound
from src.civicstack.models.complaint import VoteType
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

ACTION_ADDED = "added"
ACTION_REMOVED = "removed"
ACTION_CHANGED = "changed"
ACTION_UNCHANGED = "unchanged"


@dataclass
class VoteOutcome:
    action: str
    vote_count: int
    user_voted: bool
    voter_id: str

    def to_dict(self) -> dict:
        return asdict(self)


def guest_voter_id(device_id: str) -> str:
    """
    Stable pseudo-voter id for an anonymous device.

    MD5 of "guest_<device_id>" with RFC 4122 version-4 and variant bits set.
    """
    digest = hashlib.md5(f"guest_{device_id}".encode("utf-8")).digest()
    return str(uuid.UUID(bytes=digest, version=4))


def resolve_guest_voter(device_id: Optional[str], trackable: Optional[bool] = None) -> str:
    """
    Voter id for a guest request.

    Without a device id, or when anonymous votes are not trackable, a
    one-shot random id is used: the vote counts but can never be toggled.
    """
    trackable = settings.anonymous_votes_trackable if trackable is None else trackable
    if device_id and trackable:
        return guest_voter_id(device_id)
    return str(uuid.uuid4())


class VoteLedger:
    """
    Vote toggle state machine.

    NoVote -> Upvoted (added, +1); Upvoted -> NoVote (removed, -1);
    legacy Downvoted -> Upvoted (changed, +1).
    """

    def __init__(self, session: Session):
        self.session = session
        self.complaints = ComplaintRepository()
        self.votes = VoteRepository()

    def toggle_vote(self, complaint_id: str, voter_id: str, is_guest: bool = False) -> VoteOutcome:
        """
        Toggle the voter's upvote on a complaint.

        The vote row change is committed first; the counter update is a
        separate atomic statement. If the counter update fails the drift is
        logged and the vote row stays.

        Raises:
            ComplaintNotFound: Unknown complaint
        """
        if self.complaints.get_by_id(self.session, complaint_id) is None:
            raise ComplaintNotFound(complaint_id)

        existing = self.votes.get_vote(self.session, complaint_id, voter_id)

        if existing is None:
            action, delta = self._insert(complaint_id, voter_id, is_guest)
        elif existing.vote_type == VoteType.UPVOTE.value:
            action, delta = self._remove(existing.id)
        else:
            action, delta = self._flip_to_upvote(existing.id)

        if delta:
            self._apply_count_delta(complaint_id, delta, action)

        vote_count = self.complaints.read_vote_count(self.session, complaint_id) or 0
        user_voted = self.vote_status(voter_id, [complaint_id])[complaint_id]
        outcome = VoteOutcome(action=action, vote_count=vote_count, user_voted=user_voted, voter_id=voter_id)

        logger.info(
            "vote_toggled",
            complaint_id=complaint_id,
            action=action,
            vote_count=vote_count,
            guest=is_guest
        )
        return outcome

    def record_creator_vote(self, complaint_id: str, voter_id: str) -> VoteOutcome:
        """Creator's own upvote at submission; a no-op if already present."""
        existing = self.votes.get_vote(self.session, complaint_id, voter_id)
        if existing is not None and existing.vote_type == VoteType.UPVOTE.value:
            count = self.complaints.read_vote_count(self.session, complaint_id) or 0
            return VoteOutcome(ACTION_UNCHANGED, count, True, voter_id)
        return self.toggle_vote(complaint_id, voter_id)

    def vote_status(self, voter_id: str, complaint_ids: Iterable[str]) -> Dict[str, bool]:
        """Map each complaint id to whether the voter currently upvotes it."""
        complaint_ids = [cid for cid in complaint_ids if cid]
        voted = self.votes.upvoted_complaint_ids(self.session, voter_id, complaint_ids)
        return {cid: cid in voted for cid in complaint_ids}

    def guest_vote_status(self, complaint_id: str, device_id: Optional[str]) -> dict:
        vote_count = self.complaints.read_vote_count(self.session, complaint_id)
        if vote_count is None:
            raise ComplaintNotFound(complaint_id)

        user_voted = False
        if device_id and settings.anonymous_votes_trackable:
            user_voted = self.vote_status(guest_voter_id(device_id), [complaint_id])[complaint_id]
        return {"complaint_id": complaint_id, "vote_count": vote_count, "user_voted": user_voted}

    def reconcile_count(self, complaint_id: str) -> dict:
        """
        Recount upvote rows and write the count back.

        Returns:
            previous and reconciled counts
        """
        previous = self.complaints.read_vote_count(self.session, complaint_id)
        if previous is None:
            raise ComplaintNotFound(complaint_id)

        actual = self.votes.count_upvotes(self.session, complaint_id)
        if actual != previous:
            self.complaints.set_vote_count(self.session, complaint_id, actual)
            self.session.commit()
            logger.warning(
                "vote_count_reconciled",
                complaint_id=complaint_id,
                previous=previous,
                actual=actual
            )
        return {"complaint_id": complaint_id, "previous_count": previous, "vote_count": actual}

    def _insert(self, complaint_id: str, voter_id: str, is_guest: bool):
        try:
            self.session.add(ComplaintVote(
                complaint_id=complaint_id,
                voter_id=voter_id,
                vote_type=VoteType.UPVOTE.value,
                is_guest=is_guest,
            ))
            self.session.commit()
        except IntegrityError:
            # A concurrent request inserted the same (complaint, voter) first
            self.session.rollback()
            logger.info("vote_duplicate_insert_ignored", complaint_id=complaint_id, voter_id=voter_id)
            return ACTION_UNCHANGED, 0
        return ACTION_ADDED, 1

    def _remove(self, vote_id: str):
        result = self.session.execute(
            delete(ComplaintVote).where(
                ComplaintVote.id == vote_id,
                ComplaintVote.vote_type == VoteType.UPVOTE.value,
            )
        )
        self.session.commit()
        if result.rowcount == 0:
            return ACTION_UNCHANGED, 0
        return ACTION_REMOVED, -1

    def _flip_to_upvote(self, vote_id: str):
        result = self.session.execute(
            update(ComplaintVote)
            .where(
                ComplaintVote.id == vote_id,
                ComplaintVote.vote_type == VoteType.DOWNVOTE.value,
            )
            .values(vote_type=VoteType.UPVOTE.value)
        )
        self.session.commit()
        if result.rowcount == 0:
            return ACTION_UNCHANGED, 0
        return ACTION_CHANGED, 1

    def _apply_count_delta(self, complaint_id: str, delta: int, action: str) -> None:
        try:
            if delta > 0:
                self.complaints.increment_vote_count(self.session, complaint_id)
            else:
                self.complaints.decrement_vote_count(self.session, complaint_id)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                "vote_count_drift",
                complaint_id=complaint_id,
                action=action,
                delta=delta,
                error=str(e),
                error_type=type(e).__name__
            )
