"""
Pydantic schemas for admin listings, statistics and instructor profiles
"""
from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Any, Dict, List, Optional

from instructor_verification.models import ApplicationStatus


class ApplicationFilters(BaseModel):
    """Admin listing filters"""
    status: Optional[ApplicationStatus] = None
    search: Optional[str] = None
    submitted_from: Optional[datetime] = None
    submitted_to: Optional[datetime] = None
    min_score: Optional[int] = Field(None, ge=0, le=100)
    page: int = Field(1, ge=1)
    per_page: int = Field(20, ge=1)

    @model_validator(mode="after")
    def check_range(self):
        if self.submitted_from and self.submitted_to and self.submitted_to < self.submitted_from:
            raise ValueError("submitted_to must not be before submitted_from")
        return self


class AdminStats(BaseModel):
    total_applications: int = 0
    drafts: int = 0
    pending_review: int = 0
    under_review: int = 0
    approved: int = 0
    rejected: int = 0
    requires_more_info: int = 0
    average_review_time: float = 0.0  # hours
    applications_this_week: int = 0
    applications_this_month: int = 0


class InstructorProfileResponse(BaseModel):
    id: str
    user_id: str
    title: Optional[str] = None
    bio: Optional[str] = None
    expertise: List[str] = Field(default_factory=list)
    qualifications: List[str] = Field(default_factory=list)
    experience: Optional[int] = None
    subjects_teaching: List[str] = Field(default_factory=list)
    teaching_categories: List[str] = Field(default_factory=list)
    languages_spoken: List[Any] = Field(default_factory=list)
    available_time_slots: List[Dict[str, str]] = Field(default_factory=list)
    total_students: int = 0
    total_courses: int = 0
    total_ratings: int = 0
    average_course_rating: float = 0.0
    is_verified: bool = False
    verification_level: Optional[str] = None
    last_verification_date: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
