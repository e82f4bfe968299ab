from sqlalchemy.orm import Session

from content_moderation.core.exceptions import DatabaseException
from content_moderation.core.logger import logger
from content_moderation.models.moderation_record import RecordStatus
from content_moderation.schemas.analytics import ModerationStats
from content_moderation.services.record_store import ModerationRecordStore


def get_moderation_stats(db: Session) -> ModerationStats:
    """Record counts per status; all zeros if the database cannot be read."""
    store = ModerationRecordStore(db)
    try:
        total = store.count()
        approved = store.count(RecordStatus.approved)
        rejected = store.count(RecordStatus.rejected)
        pending = store.count(RecordStatus.pending)
    except DatabaseException as e:
        logger.error("Failed to compute moderation stats", extra={"error": e.message})
        return ModerationStats()

    return ModerationStats(
        total=total,
        approved=approved,
        rejected=rejected,
        pending=pending,
        auto_approval_rate=(approved / total) * 100 if total > 0 else 0.0,
    )
