from content_moderation.core.logger import logger
from content_moderation.db.session import engine, Base
from content_moderation.models.media_file import MediaFile
from content_moderation.models.moderation_record import ModerationRecord


def init_db(bind=engine):
    logger.info("Creating tables...")
    Base.metadata.create_all(bind=bind)
    logger.info("Tables created successfully")


if __name__ == "__main__":
    init_db()
