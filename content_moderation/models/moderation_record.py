import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Enum, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID
import enum

from content_moderation.db.session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentType(str, enum.Enum):
    image = "image"
    video = "video"
    text = "text"
    url = "url"


class RecordStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    reviewing = "reviewing"


class ReviewDecision(str, enum.Enum):
    approve = "approve"
    reject = "reject"


class ModerationRecord(Base):
    __tablename__ = "content_moderation"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    # Not unique: idempotency is a read-before-insert check in the pipeline
    content_id = Column(String, nullable=False, index=True)
    content_type = Column(Enum(ContentType), nullable=False)
    status = Column(Enum(RecordStatus), default=RecordStatus.pending, nullable=False, index=True)

    auto_result = Column(JSON, nullable=False)  # ModerationResult, camelCase keys
    human_review = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
