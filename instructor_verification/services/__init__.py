"""
Services for the Instructor Verification API
"""
from instructor_verification.services.completion_scorer import CompletionScorer
from instructor_verification.services.notification_service import (
    NotificationService, NotificationSink, LoggingNotificationSink, WebhookNotificationSink,
    get_notification_service, set_notification_sink
)
from instructor_verification.services.approval_cascade import ApprovalCascade
from instructor_verification.services.application_service import ApplicationService
from instructor_verification.services.document_service import DocumentService
from instructor_verification.services.review_service import ReviewService
from instructor_verification.services.ai_verification_service import (
    AIVerificationService, HeuristicScorer, OpenAIScorer,
    get_ai_verification_service, run_ai_verification
)
from instructor_verification.services.admin_stats_service import AdminStatsService

__all__ = [
    "CompletionScorer",
    "NotificationService", "NotificationSink", "LoggingNotificationSink", "WebhookNotificationSink",
    "get_notification_service", "set_notification_sink",
    "ApprovalCascade",
    "ApplicationService",
    "DocumentService",
    "ReviewService",
    "AIVerificationService", "HeuristicScorer", "OpenAIScorer",
    "get_ai_verification_service", "run_ai_verification",
    "AdminStatsService",
]
