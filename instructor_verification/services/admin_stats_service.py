"""
Admin read path: application listing and workflow statistics
Nothing here mutates state.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
import logging

from instructor_verification.config import settings
from instructor_verification.models import ApplicationStatus, InstructorApplication, User
from instructor_verification.schemas import AdminStats, ApplicationFilters

logger = logging.getLogger(__name__)

DECIDED_STATUSES = (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)


def review_hours(submitted_at: Optional[datetime], finished_at: Optional[datetime]) -> Optional[float]:
    if submitted_at is None or finished_at is None:
        return None
    # SQLite hands back naive datetimes
    if (submitted_at.tzinfo is None) != (finished_at.tzinfo is None):
        submitted_at = submitted_at.replace(tzinfo=None)
        finished_at = finished_at.replace(tzinfo=None)
    return max(0.0, (finished_at - submitted_at).total_seconds() / 3600)


class AdminStatsService:
    """Listing and aggregate counters for the review dashboard"""

    def __init__(self, db: Session):
        self.db = db

    def get_admin_stats(self) -> AdminStats:
        """
        Counts by status, recent intake and average review time in hours.
        An empty dataset yields all zeros.
        """
        by_status = dict(
            self.db.query(
                InstructorApplication.status,
                func.count(InstructorApplication.id)
            ).group_by(InstructorApplication.status).all()
        )

        now = datetime.utcnow()
        this_week = self.db.query(func.count(InstructorApplication.id)).filter(
            InstructorApplication.created_at >= now - timedelta(days=7)
        ).scalar() or 0
        this_month = self.db.query(func.count(InstructorApplication.id)).filter(
            InstructorApplication.created_at >= now - timedelta(days=30)
        ).scalar() or 0

        return AdminStats(
            total_applications=sum(by_status.values()),
            drafts=by_status.get(ApplicationStatus.DRAFT, 0),
            pending_review=by_status.get(ApplicationStatus.SUBMITTED, 0),
            under_review=by_status.get(ApplicationStatus.UNDER_REVIEW, 0),
            approved=by_status.get(ApplicationStatus.APPROVED, 0),
            rejected=by_status.get(ApplicationStatus.REJECTED, 0),
            requires_more_info=by_status.get(ApplicationStatus.REQUIRES_MORE_INFO, 0),
            average_review_time=self.average_review_time(),
            applications_this_week=this_week,
            applications_this_month=this_month
        )

    def average_review_time(self) -> float:
        rows = self.db.query(
            InstructorApplication.submitted_at,
            InstructorApplication.decided_at,
            InstructorApplication.updated_at
        ).filter(
            InstructorApplication.status.in_(DECIDED_STATUSES),
            InstructorApplication.submitted_at.isnot(None)
        ).all()

        hours = [review_hours(submitted, decided or updated) for submitted, decided, updated in rows]
        hours = [h for h in hours if h is not None]
        if not hours:
            return 0.0
        return round(sum(hours) / len(hours), 2)

    def list_applications(self, filters: ApplicationFilters) -> Dict[str, Any]:
        """
        Paginated listing. Drafts are hidden unless explicitly requested.

        Returns:
            Dict: {"applications": [...], "pagination": {...}}
        """
        query = self.db.query(InstructorApplication).join(
            User, InstructorApplication.user_id == User.id
        )

        if filters.status:
            query = query.filter(InstructorApplication.status == filters.status)
        else:
            query = query.filter(InstructorApplication.status != ApplicationStatus.DRAFT)

        if filters.search:
            search_term = f"%{filters.search}%"
            query = query.filter(or_(
                InstructorApplication.full_name.ilike(search_term),
                InstructorApplication.phone_number.ilike(search_term),
                User.email.ilike(search_term)
            ))

        if filters.submitted_from:
            query = query.filter(InstructorApplication.submitted_at >= filters.submitted_from)
        if filters.submitted_to:
            query = query.filter(InstructorApplication.submitted_at <= filters.submitted_to)
        if filters.min_score is not None:
            query = query.filter(InstructorApplication.completion_score >= filters.min_score)

        # Get total count
        total = query.count()

        per_page = min(filters.per_page, settings.MAX_PAGE_SIZE)
        page = filters.page
        offset = (page - 1) * per_page
        applications = query.order_by(
            InstructorApplication.submitted_at.desc(),
            InstructorApplication.created_at.desc()
        ).offset(offset).limit(per_page).all()

        total_pages = (total + per_page - 1) // per_page

        return {
            "applications": applications,
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1
            }
        }
