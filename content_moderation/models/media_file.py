import uuid
from sqlalchemy import Column, String, DateTime

from content_moderation.db.session import Base
from content_moderation.models.moderation_record import utcnow


class MediaFile(Base):
    __tablename__ = "mediafile"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    filename = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    url = Column(String, nullable=False)
    creator_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
