"""
Review-side records: AI verification, manual review (with audit log) and interviews
"""
from sqlalchemy import Column, String, Integer, DateTime, Text, Boolean, Float, ForeignKey, Enum, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from instructor_verification.database import Base


class AIRecommendation(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    MANUAL_REVIEW_REQUIRED = "MANUAL_REVIEW_REQUIRED"


class AIProcessingStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ReviewDecision(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_MORE_INFO = "REQUEST_MORE_INFO"


class InterviewFormat(str, enum.Enum):
    VIDEO_CALL = "VIDEO_CALL"
    PHONE_CALL = "PHONE_CALL"
    IN_PERSON = "IN_PERSON"


class AIVerification(Base):
    """Advisory scoring produced by the external AI scorer"""
    __tablename__ = "ai_verifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    application_id = Column(
        String(36),
        ForeignKey("instructor_applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    # Identity / education / experience checks
    identity_verified = Column(Boolean, default=False)
    identity_confidence = Column(Float)
    identity_flags = Column(JSON, default=list)
    education_verified = Column(Boolean, default=False)
    education_confidence = Column(Float)
    education_flags = Column(JSON, default=list)
    experience_verified = Column(Boolean, default=False)
    experience_confidence = Column(Float)
    experience_flags = Column(JSON, default=list)

    # Content scores (0-1)
    content_quality_score = Column(Float)
    language_proficiency = Column(Float)
    professionalism_score = Column(Float)

    # Aggregates
    risk_score = Column(Float)
    risk_factors = Column(JSON, default=list)
    overall_score = Column(Float)
    recommendation = Column(
        Enum(AIRecommendation),
        default=AIRecommendation.MANUAL_REVIEW_REQUIRED,
        nullable=False
    )
    recommendation_reason = Column(Text)

    # Processing metadata
    processing_status = Column(Enum(AIProcessingStatus), default=AIProcessingStatus.PENDING, nullable=False)
    verification_provider = Column(String(50))  # 'openai' or 'heuristic'
    processing_time_ms = Column(Integer)
    error_message = Column(Text)
    processed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    application = relationship("InstructorApplication", back_populates="ai_verification")

    def __repr__(self):
        return f"<AIVerification {self.application_id} - {self.recommendation}>"


class ManualReview(Base):
    """Current reviewer decision; one row per application"""
    __tablename__ = "manual_reviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    application_id = Column(
        String(36),
        ForeignKey("instructor_applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )
    reviewer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Scores (0-10)
    documentation_score = Column(Float)
    experience_score = Column(Float)
    communication_score = Column(Float)
    technical_score = Column(Float)
    professionalism_score = Column(Float)
    overall_score = Column(Float)

    # Free text
    strengths = Column(Text)
    weaknesses = Column(Text)
    concerns = Column(Text)
    recommendations = Column(Text)

    # Decision
    decision = Column(Enum(ReviewDecision), nullable=False)
    decision_reason = Column(Text)
    conditional_requirements = Column(JSON, default=list)
    requires_interview = Column(Boolean, default=False)
    requires_additional_docs = Column(Boolean, default=False)
    required_documents = Column(JSON, default=list)
    response_deadline = Column(DateTime(timezone=True))

    record_id = Column(String(36), ForeignKey("manual_review_records.id"))
    reviewed_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    application = relationship("InstructorApplication", back_populates="manual_review")
    record = relationship("ManualReviewRecord")

    def __repr__(self):
        return f"<ManualReview {self.application_id} - {self.decision}>"


class ManualReviewRecord(Base):
    """Append-only audit entry written for every review upsert"""
    __tablename__ = "manual_review_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    application_id = Column(
        String(36),
        ForeignKey("instructor_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    reviewer_id = Column(String(36), nullable=False)
    decision = Column(Enum(ReviewDecision), nullable=False)
    decision_reason = Column(Text)
    snapshot = Column(JSON, nullable=False)  # Full review payload at the time
    superseded_at = Column(DateTime(timezone=True))
    superseded_reason = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    application = relationship("InstructorApplication", back_populates="review_history")

    def __repr__(self):
        return f"<ManualReviewRecord {self.application_id} - {self.decision}>"


class Interview(Base):
    """Optional interview scheduled during review"""
    __tablename__ = "interviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    application_id = Column(
        String(36),
        ForeignKey("instructor_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    interviewer_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    # Scheduling
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    format = Column(Enum(InterviewFormat), default=InterviewFormat.VIDEO_CALL, nullable=False)
    meeting_link = Column(String(1000))
    interview_notes = Column(Text)
    status = Column(String(50), default="scheduled")
    # Values: 'scheduled', 'completed', 'cancelled'

    # Actuals
    actual_start_time = Column(DateTime(timezone=True))
    actual_end_time = Column(DateTime(timezone=True))

    # Scores (0-10)
    communication_score = Column(Float)
    technical_knowledge = Column(Float)
    teaching_demonstration = Column(Float)
    cultural_fit = Column(Float)
    overall_score = Column(Float)

    passed = Column(Boolean)
    feedback = Column(Text)
    next_steps = Column(Text)
    recording_url = Column(String(1000))
    recording_consent = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    application = relationship("InstructorApplication", back_populates="interviews")

    def __repr__(self):
        return f"<Interview {self.application_id} @ {self.scheduled_at}>"
