"""
Notification Service
Queues notification requests with the triggering transaction and hands
them to the delivery sink after commit
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
import logging
import httpx

from instructor_verification.config import settings
from instructor_verification.models import NotificationRequest, NotificationStatus

logger = logging.getLogger(__name__)

# Session.info key holding requests awaiting commit
QUEUE_KEY = "pending_notifications"


class NotificationSink(ABC):
    """Delivery collaborator (push, socket, email live behind it)"""

    @abstractmethod
    def notify(self, user_id: str, title: str, message: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationSink(NotificationSink):
    """Used when no delivery endpoint is configured"""

    def notify(self, user_id: str, title: str, message: str, payload: Dict[str, Any]) -> None:
        logger.info(f"Notification for user {user_id}: {title} - {message}")


class WebhookNotificationSink(NotificationSink):
    """POST each notification to an HTTP endpoint"""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    def notify(self, user_id: str, title: str, message: str, payload: Dict[str, Any]) -> None:
        response = httpx.post(
            self.url,
            json={
                "user_id": user_id,
                "title": title,
                "message": message,
                "payload": payload
            },
            timeout=self.timeout
        )
        response.raise_for_status()


class NotificationService:
    """Outbox writer and dispatcher"""

    def __init__(self, sink: NotificationSink):
        self.sink = sink

    @staticmethod
    def enqueue(
        db: Session,
        user_id: str,
        kind: str,
        title: str,
        message: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> NotificationRequest:
        """Add a request to the current unit of work; caller commits"""
        request = NotificationRequest(
            user_id=user_id,
            kind=kind,
            title=title,
            message=message,
            payload=payload or {}
        )
        db.add(request)
        db.info.setdefault(QUEUE_KEY, []).append(request)
        return request

    @staticmethod
    def discard_queued(db: Session) -> None:
        """Forget requests from a rolled-back unit of work"""
        db.info.pop(QUEUE_KEY, None)

    def dispatch_queued(self, db: Session) -> int:
        """Deliver everything enqueued by the unit of work that just committed"""
        return self.dispatch(db, db.info.pop(QUEUE_KEY, []))

    def dispatch(self, db: Session, requests: List[NotificationRequest]) -> int:
        """
        Deliver committed requests. Failures are recorded and logged,
        never raised.

        Returns:
            int: Number of requests delivered
        """
        delivered = 0
        for request in requests:
            try:
                self.sink.notify(request.user_id, request.title, request.message, request.payload or {})
                request.status = NotificationStatus.SENT
                delivered += 1
            except Exception as e:
                logger.error(f"Notification {request.id} ({request.kind}) failed: {e}")
                request.status = NotificationStatus.FAILED
                request.error_message = str(e)
            request.dispatched_at = datetime.utcnow()

        try:
            db.commit()
        except Exception as e:
            logger.error(f"Failed to record notification dispatch state: {e}")
            db.rollback()

        return delivered

    def dispatch_pending(self, db: Session, limit: int = 100) -> int:
        """Retry anything still pending (e.g. after a crash between commit and dispatch)"""
        pending = (
            db.query(NotificationRequest)
            .filter(NotificationRequest.status == NotificationStatus.PENDING)
            .order_by(NotificationRequest.created_at)
            .limit(limit)
            .all()
        )
        return self.dispatch(db, pending)


_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get singleton notification service instance"""
    global _notification_service
    if _notification_service is None:
        if settings.NOTIFICATION_WEBHOOK_URL:
            sink = WebhookNotificationSink(settings.NOTIFICATION_WEBHOOK_URL, settings.NOTIFICATION_TIMEOUT)
        else:
            sink = LoggingNotificationSink()
        _notification_service = NotificationService(sink)
    return _notification_service


def set_notification_sink(sink: NotificationSink) -> NotificationService:
    """Swap the delivery sink (used by tests and embedding apps)"""
    global _notification_service
    _notification_service = NotificationService(sink)
    return _notification_service
