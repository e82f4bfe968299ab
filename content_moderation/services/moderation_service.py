import re
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from content_moderation.clients.classifier_client import RemoteClassifier
from content_moderation.core.exceptions import (
    AuthorizationException,
    ContentNotFoundException,
    DatabaseException,
)
from content_moderation.core.logger import logger
from content_moderation.core.security import (
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_URL_LENGTH,
    check_length,
    sanitize_input,
)
from content_moderation.models.media_file import MediaFile
from content_moderation.models.moderation_record import (
    ContentType,
    ModerationRecord,
    RecordStatus,
    ReviewDecision,
    utcnow,
)
from content_moderation.schemas.moderation import (
    CategoryScores,
    ContentSubmission,
    ModerationRecordResponse,
    ModerationResult,
)
from content_moderation.services import fallback
from content_moderation.services.combiner import combine_results
from content_moderation.services.record_store import ModerationRecordStore

MODERATION_ERROR_FLAG = "moderation_error"

IMAGE_URL_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)


def status_for(result: ModerationResult) -> RecordStatus:
    if result.is_approved:
        return RecordStatus.approved
    if result.requires_human_review:
        return RecordStatus.pending
    return RecordStatus.rejected


def looks_like_image(url: str) -> bool:
    return "image" in url or IMAGE_URL_PATTERN.search(url) is not None


def error_result(error: Exception) -> ModerationResult:
    return ModerationResult(
        is_approved=False,
        confidence=0.0,
        categories=CategoryScores(adult=0.0, violence=0.0, hate=0.0, self_harm=0.0),
        flags=[MODERATION_ERROR_FLAG],
        requires_human_review=True,
        reason=f"Moderation error: {error}",
    )


def _new_record(content_id: str, content_type: ContentType, result: ModerationResult) -> ModerationRecord:
    now = utcnow()
    return ModerationRecord(
        id=uuid.uuid4(),
        content_id=content_id,
        content_type=content_type,
        status=status_for(result),
        auto_result=result.model_dump(by_alias=True),
        human_review=None,
        created_at=now,
        updated_at=now,
    )


def _save_error_record(
    store: ModerationRecordStore,
    content_id: str,
    content_type: ContentType,
    error: Exception,
) -> ModerationRecordResponse:
    """
    Build a pending record describing error and try once to persist it.

    A failure to persist is logged only; the in-memory record is returned
    either way.
    """
    record = _new_record(content_id, content_type, error_result(error))
    response = ModerationRecordResponse.model_validate(record)

    try:
        store.add(record)
    except Exception as save_error:
        logger.error(
            f"Failed to save error record for {content_id}",
            extra={"content_id": content_id, "error": str(save_error)}
        )

    return response


def _existing_record(store: ModerationRecordStore, content_id: str) -> Optional[ModerationRecordResponse]:
    """
    Return the record already stored for content_id, if any.

    A failed lookup is logged and treated as "not moderated yet"; it never
    produces an error record of its own.
    """
    try:
        existing = store.get_by_content_id(content_id)
    except DatabaseException as e:
        logger.warning(
            f"Could not check existing moderation for {content_id}, evaluating anyway",
            extra={"content_id": content_id, "error": e.message}
        )
        return None

    if existing is None:
        return None

    logger.info(
        f"Content {content_id} already moderated, returning existing record",
        extra={"content_id": content_id, "record_id": str(existing.id)}
    )
    return ModerationRecordResponse.model_validate(existing)


async def _evaluate_and_save(
    store: ModerationRecordStore,
    content_id: str,
    content_type: ContentType,
    evaluate,
) -> ModerationRecordResponse:
    try:
        result = await evaluate()
        record = store.add(_new_record(content_id, content_type, result))

        logger.info(
            f"Moderation completed for {content_id}",
            extra={
                "content_id": content_id,
                "status": record.status.value,
                "confidence": result.confidence,
                "flags": result.flags
            }
        )
        return ModerationRecordResponse.model_validate(record)

    except Exception as e:
        logger.error(
            f"Error during moderation of {content_id}",
            extra={"content_id": content_id, "error": str(e)},
            exc_info=True
        )
        return _save_error_record(store, content_id, content_type, e)


async def moderate_content(
    submission: ContentSubmission,
    db: Session,
    classifier: RemoteClassifier,
) -> ModerationRecordResponse:
    """
    Moderate a piece of content once and persist the decision.

    Title and description go through the text path, an image-like media URL
    through the image path and a link's external URL through the text path.
    The per-part results are combined with the worst score winning.

    Args:
        submission: Content to moderate
        db: Database session
        classifier: Remote classifier adapter

    Returns:
        The existing record for ``submission.content_id`` if there is one,
        otherwise the new record. Internal failures produce a pending
        ``moderation_error`` record instead of raising.

    Raises:
        ValidationException: If a submitted field of new content exceeds its
            length limit
    """
    logger.info(
        f"Starting content moderation for {submission.content_id}",
        extra={"content_id": submission.content_id, "content_kind": submission.content_type}
    )
    content_type = ContentType.image if submission.content_type == "media" else ContentType.url

    store = ModerationRecordStore(db)
    existing = _existing_record(store, submission.content_id)
    if existing is not None:
        return existing

    title = sanitize_input(submission.title)
    description = sanitize_input(submission.description)
    check_length(title, MAX_TITLE_LENGTH, "title")
    check_length(description, MAX_DESCRIPTION_LENGTH, "description")
    check_length(submission.media_url, MAX_URL_LENGTH, "media_url")
    check_length(submission.external_url, MAX_URL_LENGTH, "external_url")

    async def evaluate() -> ModerationResult:
        results: List[ModerationResult] = [await classifier.classify_text(title)]

        if description:
            results.append(await classifier.classify_text(description))

        if submission.content_type == "media" and submission.media_url:
            if looks_like_image(submission.media_url):
                results.append(await classifier.classify_image(submission.media_url))

        if submission.content_type == "link" and submission.external_url:
            results.append(await classifier.classify_text(submission.external_url))

        return combine_results(results)

    return await _evaluate_and_save(store, submission.content_id, content_type, evaluate)


async def moderate_media_file(
    media_id: str,
    db: Session,
    classifier: RemoteClassifier,
) -> ModerationRecordResponse:
    """
    Moderate an uploaded media file by id.

    Images use the remote image path, videos the URL heuristic, and any
    other file type is approved as a document.

    Raises:
        ContentNotFoundException: If no media file has this id
    """
    media = db.get(MediaFile, media_id)
    if media is None:
        raise ContentNotFoundException(f"Media {media_id} not found", resource="media")

    mime_type = media.mime_type or ""
    if mime_type.startswith("image/"):
        content_type = ContentType.image
    elif mime_type.startswith("video/"):
        content_type = ContentType.video
    else:
        content_type = ContentType.text

    async def evaluate() -> ModerationResult:
        if content_type is ContentType.image:
            return await classifier.classify_image(media.url)
        if content_type is ContentType.video:
            return fallback.classify_media_url(media.url)
        return fallback.document_result()

    store = ModerationRecordStore(db)
    existing = _existing_record(store, media.id)
    if existing is not None:
        return existing

    return await _evaluate_and_save(store, media.id, content_type, evaluate)


def submit_human_review(
    record_id: str,
    decision: ReviewDecision,
    db: Session,
    reviewer_id: Optional[str],
    reason: Optional[str] = None,
) -> ModerationRecordResponse:
    """
    Apply a reviewer's decision to a moderation record.

    Raises:
        AuthorizationException: If there is no authenticated reviewer
        ContentNotFoundException: If the record does not exist
        DatabaseException: If the update cannot be saved
    """
    if not reviewer_id:
        raise AuthorizationException("Human review requires an authenticated reviewer")

    store = ModerationRecordStore(db)
    record = store.get(record_id)
    if record is None:
        raise ContentNotFoundException(f"Moderation record {record_id} not found", resource="moderation_record")

    human_review = {
        "reviewer_id": reviewer_id,
        "decision": decision.value,
        "reason": reason,
        "reviewed_at": utcnow().isoformat(),
    }
    new_status = RecordStatus.approved if decision is ReviewDecision.approve else RecordStatus.rejected
    record = store.apply_review(record, new_status, human_review)

    logger.info(
        f"Human review submitted for record {record_id}",
        extra={
            "record_id": str(record_id),
            "content_id": record.content_id,
            "status": new_status.value,
            "reviewer_id": reviewer_id
        }
    )
    return ModerationRecordResponse.model_validate(record)


def list_records(
    db: Session,
    status: Optional[RecordStatus] = None,
    limit: int = 50,
) -> List[ModerationRecordResponse]:
    records = ModerationRecordStore(db).recent(status=status, limit=limit)
    return [ModerationRecordResponse.model_validate(r) for r in records]
