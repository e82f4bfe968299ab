import asyncio
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from content_moderation.clients.classifier_client import RemoteClassifier
from content_moderation.core.config import settings
from content_moderation.core.exceptions import DatabaseException
from content_moderation.core.logger import logger
from content_moderation.models.media_file import MediaFile
from content_moderation.models.moderation_record import RecordStatus
from content_moderation.schemas.moderation import SweepSummary
from content_moderation.services.moderation_service import moderate_media_file
from content_moderation.services.record_store import ModerationRecordStore


async def sweep_unmoderated(
    db: Session,
    classifier: RemoteClassifier,
    limit: Optional[int] = None,
    pace_seconds: Optional[float] = None,
) -> SweepSummary:
    """
    Moderate the most recent media files that have no record yet.

    Items are processed one at a time with a pause between them so the
    remote classifier is not flooded. A failing item is noted in
    ``errors`` and the sweep carries on.

    Args:
        db: Database session
        classifier: Remote classifier adapter
        limit: Maximum number of media files to fetch
        pace_seconds: Pause after each moderated item

    Returns:
        Counts per resulting status plus per-item errors
    """
    limit = settings.sweep_limit if limit is None else limit
    pace_seconds = settings.sweep_pace_seconds if pace_seconds is None else pace_seconds

    logger.info("Starting bulk moderation sweep", extra={"limit": limit})

    try:
        media_files = list(db.execute(
            select(MediaFile).order_by(MediaFile.created_at.desc()).limit(limit)
        ).scalars())
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Bulk moderation could not fetch media", extra={"error": str(e)}, exc_info=True)
        return SweepSummary(errors=[str(e)])

    if not media_files:
        return SweepSummary(errors=["No media files found"])

    store = ModerationRecordStore(db)
    try:
        moderated_ids = store.moderated_content_ids(m.id for m in media_files)
    except DatabaseException as e:
        logger.warning(
            "Could not check existing moderations, treating all media as unmoderated",
            extra={"error": e.message}
        )
        moderated_ids = set()

    unmoderated = [m for m in media_files if m.id not in moderated_ids]
    logger.info(
        f"{len(unmoderated)} of {len(media_files)} media files need moderation",
        extra={"fetched": len(media_files), "unmoderated": len(unmoderated)}
    )

    summary = SweepSummary()
    for media in unmoderated:
        try:
            record = await moderate_media_file(media.id, db, classifier)
        except Exception as e:
            logger.error(
                f"Error moderating media {media.filename}",
                extra={"media_id": media.id, "error": str(e)}
            )
            summary.errors.append(f"{media.filename}: {e}")
            continue

        if record.status is RecordStatus.approved:
            summary.approved += 1
        elif record.status is RecordStatus.rejected:
            summary.rejected += 1
        else:
            summary.pending += 1
        summary.processed += 1

        await asyncio.sleep(pace_seconds)

    logger.info(
        "Bulk moderation completed",
        extra={
            "processed": summary.processed,
            "approved": summary.approved,
            "rejected": summary.rejected,
            "pending": summary.pending,
            "errors": len(summary.errors)
        }
    )
    return summary
