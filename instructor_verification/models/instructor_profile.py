"""
Instructor profile materialized on approval
"""
from sqlalchemy import Column, String, Integer, DateTime, Text, Boolean, Float, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from instructor_verification.database import Base


class InstructorProfile(Base):
    """Public-facing instructor profile; one per user"""
    __tablename__ = "instructor_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    # Projected from the application
    title = Column(String(255))
    bio = Column(Text)
    expertise = Column(JSON, default=list)
    qualifications = Column(JSON, default=list)
    experience = Column(Integer, default=0)
    subjects_teaching = Column(JSON, default=list)
    teaching_categories = Column(JSON, default=list)
    languages_spoken = Column(JSON, default=list)
    teaching_style = Column(Text)
    target_audience = Column(Text)
    linkedin_profile = Column(String(500))
    personal_website = Column(String(500))
    available_time_slots = Column(JSON, default=list)  # [{day, start, end}]

    # Performance counters
    total_students = Column(Integer, default=0, nullable=False)
    total_courses = Column(Integer, default=0, nullable=False)
    total_revenue = Column(Float, default=0.0, nullable=False)
    total_ratings = Column(Integer, default=0, nullable=False)
    average_course_rating = Column(Float, default=0.0, nullable=False)
    teaching_rating = Column(Float, default=0.0, nullable=False)
    currency = Column(String(3), default="USD")

    # Verification
    is_verified = Column(Boolean, default=False, nullable=False)
    verification_level = Column(String(50))
    last_verification_date = Column(DateTime(timezone=True))
    is_accepting_students = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="instructor_profile")

    def __repr__(self):
        return f"<InstructorProfile {self.user_id}>"
