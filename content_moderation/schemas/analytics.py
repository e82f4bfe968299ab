from pydantic import BaseModel


class ModerationStats(BaseModel):
    total: int = 0
    approved: int = 0
    rejected: int = 0
    pending: int = 0
    auto_approval_rate: float = 0.0
