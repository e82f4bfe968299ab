from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from content_moderation.db.session import get_db
from content_moderation.services.analytics_service import get_moderation_stats
from content_moderation.schemas.analytics import ModerationStats

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])

@router.get("/stats", response_model=ModerationStats, status_code=200)
async def moderation_stats(db: Session = Depends(get_db)):
    return get_moderation_stats(db)
