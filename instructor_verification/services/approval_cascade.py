"""
Approval Cascade
Side effects of approving an application: role promotion, instructor
profile materialization and the welcome notification request
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
import logging

from instructor_verification.core.exceptions import NotFoundError
from instructor_verification.models import (
    User, UserRole, InstructorStatus, InstructorApplication, InstructorProfile
)
from instructor_verification.schemas.application import WEEKDAYS
from instructor_verification.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class ApprovalCascade:
    """
    Runs inside the approving transaction. Nothing here commits; if any
    step raises, the caller rolls back the status change with it.
    """

    def run(self, db: Session, application: InstructorApplication) -> InstructorProfile:
        user = self.promote_user(db, application.user_id)
        profile = self.materialize_profile(db, application)
        NotificationService.enqueue(
            db,
            user_id=user.id,
            kind="welcome",
            title="Welcome to the instructor community!",
            message="Your instructor application has been approved. You can now create courses.",
            payload={"application_id": application.id, "profile_id": profile.id}
        )
        logger.info(f"Approval cascade completed for user {user.id}")
        return profile

    @staticmethod
    def promote_user(db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("Applicant user not found")

        if user.role != UserRole.ADMIN:
            user.role = UserRole.INSTRUCTOR
        user.instructor_status = InstructorStatus.APPROVED
        return user

    def materialize_profile(self, db: Session, application: InstructorApplication) -> InstructorProfile:
        """Create the profile, or refresh the existing one in place"""
        projection = self.project_profile(application)

        profile = db.query(InstructorProfile).filter(
            InstructorProfile.user_id == application.user_id
        ).first()

        if profile is None:
            profile = InstructorProfile(
                user_id=application.user_id,
                total_students=0,
                total_courses=0,
                total_revenue=0.0,
                total_ratings=0,
                average_course_rating=0.0,
                teaching_rating=0.0,
            )
            db.add(profile)
            logger.info(f"Creating instructor profile for user {application.user_id}")
        else:
            logger.info(f"Refreshing instructor profile {profile.id} for user {application.user_id}")

        for field, value in projection.items():
            setattr(profile, field, value)

        profile.is_verified = True
        profile.verification_level = "VERIFIED"
        profile.last_verification_date = datetime.utcnow()

        db.flush()
        return profile

    def project_profile(self, application: InstructorApplication) -> Dict[str, Any]:
        """Map application sections onto profile fields"""
        personal = application.personal_info or {}
        professional = application.professional_background or {}
        teaching = application.teaching_information or {}
        documents = application.documents or {}

        subjects = subject_names(teaching.get("subjects_to_teach"))

        return {
            "title": professional.get("current_job_title") or application.current_job_title,
            "bio": personal.get("bio"),
            "expertise": subjects,
            "subjects_teaching": subjects,
            "teaching_categories": list(teaching.get("teaching_categories") or []),
            "qualifications": self._qualifications(professional, documents),
            "experience": professional.get("years_of_experience") or application.years_of_experience or 0,
            "languages_spoken": list(personal.get("languages_spoken") or []),
            "teaching_style": teaching.get("teaching_style"),
            "target_audience": teaching.get("target_audience"),
            "linkedin_profile": professional.get("linkedin_profile"),
            "personal_website": professional.get("portfolio_url"),
            "available_time_slots": flatten_availability(teaching.get("weekly_availability")),
        }

    @staticmethod
    def _qualifications(professional: Dict[str, Any], documents: Dict[str, Any]) -> List[str]:
        qualifications = []
        for entry in professional.get("education") or []:
            if isinstance(entry, dict):
                parts = [entry.get("degree"), entry.get("field_of_study"), entry.get("institution")]
                label = ", ".join(str(part) for part in parts if part)
            else:
                label = str(entry)
            if label and label not in qualifications:
                qualifications.append(label)

        for certification in documents.get("professional_certifications") or []:
            if certification and certification not in qualifications:
                qualifications.append(certification)
        return qualifications


def subject_names(subjects: Optional[List[Any]]) -> List[str]:
    """Subjects may arrive as plain strings or {subject, level} entries"""
    names = []
    for subject in subjects or []:
        name = subject.get("subject") if isinstance(subject, dict) else subject
        if name:
            names.append(str(name))
    return names


def flatten_availability(weekly: Optional[Dict[str, List[Dict[str, str]]]]) -> List[Dict[str, str]]:
    """{day: [{start, end}]} -> [{day, start, end}] in weekday order"""
    if not weekly:
        return []

    order = {day: index for index, day in enumerate(WEEKDAYS)}
    slots = []
    for day in sorted(weekly, key=lambda d: order.get(d.lower(), len(order))):
        for slot in weekly[day] or []:
            if slot.get("start") and slot.get("end"):
                slots.append({"day": day.lower(), "start": slot["start"], "end": slot["end"]})
    return slots
