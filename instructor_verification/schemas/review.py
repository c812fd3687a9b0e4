"""
Pydantic schemas for review-side operations
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import Any, Dict, List, Optional

from instructor_verification.models import (
    AIRecommendation, AIProcessingStatus, ReviewDecision,
    InterviewFormat, VerificationStatus
)

Score = Optional[float]


class ReviewScores(BaseModel):
    """Reviewer scores on a 0-10 scale"""
    documentation_score: Score = Field(None, ge=0, le=10)
    experience_score: Score = Field(None, ge=0, le=10)
    communication_score: Score = Field(None, ge=0, le=10)
    technical_score: Score = Field(None, ge=0, le=10)
    professionalism_score: Score = Field(None, ge=0, le=10)
    overall_score: Score = Field(None, ge=0, le=10)


class ManualReviewCreate(ReviewScores):
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    concerns: Optional[str] = None
    recommendations: Optional[str] = None
    decision: ReviewDecision
    decision_reason: Optional[str] = None
    conditional_requirements: List[str] = Field(default_factory=list)
    requires_interview: bool = False
    requires_additional_docs: bool = False
    required_documents: List[str] = Field(default_factory=list)


class ManualReviewResponse(ReviewScores):
    id: str
    application_id: str
    reviewer_id: str
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    concerns: Optional[str] = None
    recommendations: Optional[str] = None
    decision: ReviewDecision
    decision_reason: Optional[str] = None
    conditional_requirements: List[str] = Field(default_factory=list)
    requires_interview: bool = False
    requires_additional_docs: bool = False
    required_documents: List[str] = Field(default_factory=list)
    response_deadline: Optional[datetime] = None
    reviewed_at: datetime

    model_config = {
        "from_attributes": True
    }


class ReviewRecordResponse(BaseModel):
    """Audit log entry"""
    id: str
    application_id: str
    reviewer_id: str
    decision: ReviewDecision
    decision_reason: Optional[str] = None
    snapshot: Dict[str, Any]
    superseded_at: Optional[datetime] = None
    superseded_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class StartReviewRequest(BaseModel):
    application_id: str


class ApproveRequest(BaseModel):
    application_id: str
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    application_id: str
    reason: str = Field(..., min_length=1)
    requires_resubmission: bool = False


class RequestMoreInfoRequest(BaseModel):
    application_id: str
    required_info: List[str] = Field(..., min_length=1)
    deadline: Optional[datetime] = None


class ReviewDocumentRequest(BaseModel):
    verification_status: VerificationStatus
    notes: Optional[str] = None


class AIVerificationResponse(BaseModel):
    id: str
    application_id: str
    identity_verified: bool = False
    identity_confidence: Optional[float] = None
    identity_flags: List[str] = Field(default_factory=list)
    education_verified: bool = False
    education_confidence: Optional[float] = None
    education_flags: List[str] = Field(default_factory=list)
    experience_verified: bool = False
    experience_confidence: Optional[float] = None
    experience_flags: List[str] = Field(default_factory=list)
    content_quality_score: Optional[float] = None
    language_proficiency: Optional[float] = None
    professionalism_score: Optional[float] = None
    risk_score: Optional[float] = None
    risk_factors: List[str] = Field(default_factory=list)
    overall_score: Optional[float] = None
    recommendation: AIRecommendation
    recommendation_reason: Optional[str] = None
    processing_status: AIProcessingStatus
    verification_provider: Optional[str] = None
    processing_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    processed_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class InterviewCreate(BaseModel):
    application_id: str
    scheduled_at: datetime
    format: InterviewFormat = InterviewFormat.VIDEO_CALL
    meeting_link: Optional[str] = None
    interview_notes: Optional[str] = None


class InterviewUpdate(BaseModel):
    """Actuals and outcome recorded after the interview"""
    scheduled_at: Optional[datetime] = None
    meeting_link: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(scheduled|completed|cancelled)$")
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    communication_score: Score = Field(None, ge=0, le=10)
    technical_knowledge: Score = Field(None, ge=0, le=10)
    teaching_demonstration: Score = Field(None, ge=0, le=10)
    cultural_fit: Score = Field(None, ge=0, le=10)
    overall_score: Score = Field(None, ge=0, le=10)
    passed: Optional[bool] = None
    feedback: Optional[str] = None
    next_steps: Optional[str] = None
    recording_url: Optional[str] = None
    recording_consent: Optional[bool] = None

    @field_validator("scheduled_at", "recording_consent")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value

    @model_validator(mode="after")
    def check_actuals(self):
        if self.actual_start_time and self.actual_end_time and self.actual_end_time < self.actual_start_time:
            raise ValueError("actual_end_time must not be before actual_start_time")
        return self


class InterviewResponse(BaseModel):
    id: str
    application_id: str
    interviewer_id: str
    scheduled_at: datetime
    format: InterviewFormat
    meeting_link: Optional[str] = None
    interview_notes: Optional[str] = None
    status: Optional[str] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    communication_score: Optional[float] = None
    technical_knowledge: Optional[float] = None
    teaching_demonstration: Optional[float] = None
    cultural_fit: Optional[float] = None
    overall_score: Optional[float] = None
    passed: Optional[bool] = None
    feedback: Optional[str] = None
    next_steps: Optional[str] = None
    recording_url: Optional[str] = None
    recording_consent: bool = False

    model_config = {
        "from_attributes": True
    }
