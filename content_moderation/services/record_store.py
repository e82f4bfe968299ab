from typing import Any, Dict, Iterable, List, Optional, Set, Union
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from content_moderation.core.exceptions import DatabaseException
from content_moderation.core.logger import logger
from content_moderation.models.moderation_record import ModerationRecord, RecordStatus, utcnow


class ModerationRecordStore:
    """
    Sole owner of moderation records, keyed by content id.

    Every SQLAlchemy failure is rolled back and surfaced as DatabaseException.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, error: SQLAlchemyError) -> DatabaseException:
        self.db.rollback()
        logger.error(
            f"Database error during {operation}",
            extra={"operation": operation, "error": str(error)},
            exc_info=True
        )
        return DatabaseException(f"Failed to {operation.replace('_', ' ')}: {error}", operation=operation)

    def get_by_content_id(self, content_id: str) -> Optional[ModerationRecord]:
        try:
            return self.db.execute(
                select(ModerationRecord)
                .where(ModerationRecord.content_id == content_id)
                .order_by(ModerationRecord.created_at)
                .limit(1)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail("lookup_record", e)

    def get(self, record_id: Union[UUID, str]) -> Optional[ModerationRecord]:
        if not isinstance(record_id, UUID):
            try:
                record_id = UUID(str(record_id))
            except ValueError:
                return None
        try:
            return self.db.get(ModerationRecord, record_id)
        except SQLAlchemyError as e:
            raise self._fail("get_record", e)

    def add(self, record: ModerationRecord) -> ModerationRecord:
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("save_record", e)

        logger.info(
            f"Saved moderation record {record.id}",
            extra={
                "record_id": str(record.id),
                "content_id": record.content_id,
                "status": record.status.value
            }
        )
        return record

    def apply_review(
        self,
        record: ModerationRecord,
        status: RecordStatus,
        human_review: Dict[str, Any],
    ) -> ModerationRecord:
        try:
            record.status = status
            record.human_review = human_review
            record.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("save_review", e)
        return record

    def moderated_content_ids(self, content_ids: Iterable[str]) -> Set[str]:
        content_ids = list(content_ids)
        if not content_ids:
            return set()
        try:
            rows = self.db.execute(
                select(ModerationRecord.content_id).where(ModerationRecord.content_id.in_(content_ids))
            ).scalars()
            return set(rows)
        except SQLAlchemyError as e:
            raise self._fail("lookup_moderated_ids", e)

    def count(self, status: Optional[RecordStatus] = None) -> int:
        query = select(func.count(ModerationRecord.id))
        if status is not None:
            query = query.where(ModerationRecord.status == status)
        try:
            return self.db.execute(query).scalar() or 0
        except SQLAlchemyError as e:
            raise self._fail("count_records", e)

    def recent(self, status: Optional[RecordStatus] = None, limit: int = 50) -> List[ModerationRecord]:
        query = select(ModerationRecord).order_by(ModerationRecord.created_at.desc()).limit(limit)
        if status is not None:
            query = query.where(ModerationRecord.status == status)
        try:
            return list(self.db.execute(query).scalars())
        except SQLAlchemyError as e:
            raise self._fail("list_records", e)
