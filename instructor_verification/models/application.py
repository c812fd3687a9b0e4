"""
Instructor application and attached document models
"""
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, Enum, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from instructor_verification.database import Base


class ApplicationStatus(str, enum.Enum):
    """
    Application lifecycle:

    DRAFT -> SUBMITTED -> UNDER_REVIEW -> APPROVED
                  |             |
                  +-------------+--> REJECTED | REQUIRES_MORE_INFO -> (reopen) DRAFT
    """
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REQUIRES_MORE_INFO = "REQUIRES_MORE_INFO"


class DocumentType(str, enum.Enum):
    IDENTITY_DOCUMENT = "IDENTITY_DOCUMENT"
    EDUCATION_CERTIFICATE = "EDUCATION_CERTIFICATE"
    PROFESSIONAL_CERTIFICATION = "PROFESSIONAL_CERTIFICATION"
    EMPLOYMENT_VERIFICATION = "EMPLOYMENT_VERIFICATION"
    PROFILE_PHOTO = "PROFILE_PHOTO"
    VIDEO_INTRODUCTION = "VIDEO_INTRODUCTION"
    TEACHING_DEMO = "TEACHING_DEMO"
    RESUME = "RESUME"
    PORTFOLIO = "PORTFOLIO"
    OTHER = "OTHER"


class VerificationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class InstructorApplication(Base):
    """One verification case per user"""
    __tablename__ = "instructor_applications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    # Structured sections (validated at the API boundary)
    personal_info = Column(JSON, default=dict)
    professional_background = Column(JSON, default=dict)
    teaching_information = Column(JSON, default=dict)
    documents = Column(JSON, default=dict)  # Summary map, not the file records
    consents = Column(JSON, default=dict)
    application_data = Column(JSON, default=dict)  # Intake metadata

    # Denormalized copies for admin search
    full_name = Column(String(255), default="")
    phone_number = Column(String(50), default="")
    nationality = Column(String(100))
    current_job_title = Column(String(255))
    years_of_experience = Column(Integer, default=0)
    subjects_to_teach = Column(JSON, default=list)
    teaching_motivation = Column(Text, default="")

    # Workflow
    status = Column(Enum(ApplicationStatus), default=ApplicationStatus.DRAFT, nullable=False, index=True)
    current_step = Column(Integer, default=0, nullable=False)
    completion_score = Column(Integer, default=0, nullable=False, index=True)
    submitted_at = Column(DateTime(timezone=True))
    decided_at = Column(DateTime(timezone=True))
    assigned_reviewer_id = Column(String(36), index=True)
    last_auto_save = Column(DateTime(timezone=True))
    last_saved_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="application")
    application_documents = relationship(
        "ApplicationDocument",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ApplicationDocument.uploaded_at"
    )
    ai_verification = relationship(
        "AIVerification",
        back_populates="application",
        uselist=False,
        cascade="all, delete-orphan"
    )
    manual_review = relationship(
        "ManualReview",
        back_populates="application",
        uselist=False,
        cascade="all, delete-orphan"
    )
    review_history = relationship(
        "ManualReviewRecord",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ManualReviewRecord.created_at"
    )
    interviews = relationship(
        "Interview",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="Interview.scheduled_at"
    )

    def __repr__(self):
        return f"<InstructorApplication {self.id} - {self.status}>"


class ApplicationDocument(Base):
    """File reference attached to an application"""
    __tablename__ = "application_documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    application_id = Column(
        String(36),
        ForeignKey("instructor_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    document_type = Column(Enum(DocumentType), nullable=False)

    # File reference (storage is external)
    file_url = Column(String(1000), nullable=False)
    file_name = Column(String(255), nullable=False)
    original_name = Column(String(255))
    file_size = Column(Integer)
    mime_type = Column(String(100))
    thumbnail_url = Column(String(1000))
    metadata_json = Column("metadata", JSON, default=dict)

    # Review
    verification_status = Column(Enum(VerificationStatus), default=VerificationStatus.DRAFT, nullable=False)
    reviewer_id = Column(String(36))
    review_notes = Column(Text)
    reviewed_at = Column(DateTime(timezone=True))

    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    application = relationship("InstructorApplication", back_populates="application_documents")

    def __repr__(self):
        return f"<ApplicationDocument {self.document_type} - {self.verification_status}>"
