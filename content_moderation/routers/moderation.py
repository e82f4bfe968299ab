from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from content_moderation.clients.classifier_client import RemoteClassifier, get_classifier
from content_moderation.core.exceptions import (
    AuthorizationException,
    ContentModerationException,
    create_http_exception,
)
from content_moderation.core.logger import logger
from content_moderation.core.security import get_reviewer_id, rate_limit_dependency
from content_moderation.db.session import get_db
from content_moderation.models.moderation_record import RecordStatus
from content_moderation.schemas.moderation import (
    ClassifierStatus,
    ContentSubmission,
    HumanReviewRequest,
    ModerationRecordResponse,
    SweepSummary,
)
from content_moderation.services.moderation_service import (
    list_records,
    moderate_content,
    moderate_media_file,
    submit_human_review,
)
from content_moderation.services.sweep_service import sweep_unmoderated

router = APIRouter(prefix="/api/v1/moderate", tags=["moderation"])


def _unexpected(operation: str, e: Exception) -> HTTPException:
    logger.error(
        f"Unexpected error in {operation}",
        extra={"error": str(e)},
        exc_info=True
    )
    return HTTPException(
        status_code=500,
        detail={
            "error_code": "INTERNAL_SERVER_ERROR",
            "message": f"An unexpected error occurred during {operation}",
            "details": {"error": str(e)}
        }
    )


@router.post("/content", response_model=ModerationRecordResponse, status_code=200)
async def moderate_content_endpoint(
    payload: ContentSubmission,
    request: Request,
    db: Session = Depends(get_db),
    classifier: RemoteClassifier = Depends(get_classifier),
    _: None = Depends(rate_limit_dependency)
):
    """
    Moderate a content item (title, description, media or link).

    Content that already has a moderation record gets that record back
    unchanged.
    """
    logger.info(
        "Content moderation request received",
        extra={
            "content_id": payload.content_id,
            "client_ip": request.client.host if request.client else "unknown"
        }
    )
    try:
        return await moderate_content(payload, db, classifier)
    except ContentModerationException as e:
        logger.warning(
            "Content moderation rejected",
            extra={"content_id": payload.content_id, "error": e.message}
        )
        raise create_http_exception(e)
    except Exception as e:
        raise _unexpected("content moderation", e)


@router.post("/media/{media_id}", response_model=ModerationRecordResponse, status_code=200)
async def moderate_media_endpoint(
    media_id: str,
    db: Session = Depends(get_db),
    classifier: RemoteClassifier = Depends(get_classifier),
    _: None = Depends(rate_limit_dependency)
):
    """Moderate an uploaded media file by id."""
    try:
        return await moderate_media_file(media_id, db, classifier)
    except ContentModerationException as e:
        raise create_http_exception(e)
    except Exception as e:
        raise _unexpected("media moderation", e)


@router.post("/sweep", response_model=SweepSummary, status_code=200)
async def sweep_endpoint(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
    classifier: RemoteClassifier = Depends(get_classifier),
    reviewer_id: Optional[str] = Depends(get_reviewer_id)
):
    """Moderate recent media that has no record yet. Reviewer only."""
    if not reviewer_id:
        raise create_http_exception(AuthorizationException("Bulk moderation requires an authenticated reviewer"))

    logger.info("Bulk moderation requested", extra={"reviewer_id": reviewer_id, "limit": limit})
    return await sweep_unmoderated(db, classifier, limit=limit)


@router.get("/records", response_model=List[ModerationRecordResponse], status_code=200)
async def list_records_endpoint(
    status: Optional[RecordStatus] = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Newest moderation records first, optionally filtered by status."""
    try:
        return list_records(db, status=status, limit=limit)
    except ContentModerationException as e:
        raise create_http_exception(e)


@router.post("/records/{record_id}/review", response_model=ModerationRecordResponse, status_code=200)
async def review_record_endpoint(
    record_id: str,
    payload: HumanReviewRequest,
    db: Session = Depends(get_db),
    reviewer_id: Optional[str] = Depends(get_reviewer_id)
):
    """
    Submit a human decision for a moderation record.

    Requires a reviewer bearer key; the record's status becomes approved or
    rejected according to the decision.
    """
    try:
        return submit_human_review(record_id, payload.decision, db, reviewer_id, reason=payload.reason)
    except ContentModerationException as e:
        logger.warning(
            "Human review rejected",
            extra={"record_id": record_id, "error_code": e.error_code}
        )
        raise create_http_exception(e)
    except Exception as e:
        raise _unexpected("human review", e)


@router.get("/classifier/status", response_model=ClassifierStatus, status_code=200)
async def classifier_status_endpoint(
    classifier: RemoteClassifier = Depends(get_classifier)
):
    configured, message = classifier.config.status()
    return ClassifierStatus(configured=configured, message=message)
