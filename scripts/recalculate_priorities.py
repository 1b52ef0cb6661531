"""
Recalculate Priority Scores

Rescores every open complaint with its current age, vote count and status
and repairs drifted vote counts along the way.
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.civicstack.api.dependencies import get_image_client, get_priority_engine
from src.civicstack.db.repository import ComplaintRepository
from src.civicstack.db.session import get_db_session
from src.civicstack.errors import CivicStackError
from src.civicstack.models.complaint import ComplaintStatus
from src.civicstack.services.complaints import ComplaintService
from src.civicstack.services.votes import VoteLedger
from src.civicstack.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

OPEN_STATUSES = (ComplaintStatus.PENDING.value, ComplaintStatus.IN_PROGRESS.value)


def main():
    parser = argparse.ArgumentParser(description="Recalculate complaint priority scores")
    parser.add_argument("--limit", type=int, default=None, help="Maximum complaints to process")
    parser.add_argument("--skip-votes", action="store_true", help="Do not reconcile vote counts")
    args = parser.parse_args()

    setup_logging()
    processed = 0
    failed = 0
    repaired_votes = 0

    with get_db_session() as session:
        complaint_ids = [
            c.id for c in ComplaintRepository().get_all(session)
            if c.status in OPEN_STATUSES
        ]
        if args.limit:
            complaint_ids = complaint_ids[:args.limit]

        service = ComplaintService(session, get_priority_engine(), get_image_client())
        ledger = VoteLedger(session)

        for complaint_id in complaint_ids:
            try:
                if not args.skip_votes:
                    result = ledger.reconcile_count(complaint_id)
                    if result["previous_count"] != result["vote_count"]:
                        repaired_votes += 1
                service.recalculate(complaint_id)
                processed += 1
            except CivicStackError as e:
                failed += 1
                logger.error("priority_recalculation_failed", complaint_id=complaint_id, code=e.code, error=e.message)

    logger.info(
        "priority_recalculation_complete",
        processed=processed,
        failed=failed,
        repaired_votes=repaired_votes
    )


if __name__ == "__main__":
    main()
