from datetime import datetime
from uuid import UUID
from typing import Optional, Literal, List

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from content_moderation.models.moderation_record import ContentType, RecordStatus, ReviewDecision


# ---- Classification ----
class CategoryScores(BaseModel):
    """Per-category risk, 0 (clean) to 1 (certain)."""

    adult: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    violence: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    hate: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    self_harm: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def max_score(self) -> float:
        return max(self.adult, self.violence, self.hate, self.self_harm)


class ModerationResult(BaseModel):
    """
    Outcome of one classification.

    Serialised with camelCase keys (``isApproved``, ``requiresHumanReview``),
    the shape the remote classifier returns and the shape stored on records.
    """

    is_approved: bool
    confidence: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    categories: CategoryScores
    flags: List[str] = Field(default_factory=list)
    requires_human_review: bool
    reason: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @model_validator(mode="after")
    def check_decision(self) -> "ModerationResult":
        if self.is_approved and self.requires_human_review:
            raise ValueError("a result cannot be both approved and awaiting human review")
        return self


# ---- Requests ----
class ContentSubmission(BaseModel):
    content_id: str = Field(min_length=1)
    title: str
    description: Optional[str] = None
    content_type: Literal["media", "link"]
    media_url: Optional[str] = None
    external_url: Optional[str] = None


class HumanReviewRequest(BaseModel):
    decision: ReviewDecision
    reason: Optional[str] = None


# ---- Responses ----
class HumanReview(BaseModel):
    reviewer_id: str
    decision: ReviewDecision
    reason: Optional[str] = None
    reviewed_at: datetime


class ModerationRecordResponse(BaseModel):
    id: UUID
    content_id: str
    content_type: ContentType
    status: RecordStatus
    auto_result: ModerationResult
    human_review: Optional[HumanReview] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SweepSummary(BaseModel):
    processed: int = 0
    approved: int = 0
    rejected: int = 0
    pending: int = 0
    errors: List[str] = Field(default_factory=list)


class ClassifierStatus(BaseModel):
    configured: bool
    message: str
