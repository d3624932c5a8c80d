"""
Per-user notification inbox.

The feed is just another dispatcher subscriber: it turns domain events into
user-facing messages and keeps them in memory.
"""
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from civic_engine.models.enums import EventKind, NotificationType
from civic_engine.models.events import (
    BadgeEarned,
    DomainEvent,
    IssueResolved,
    IssueStatusChanged,
    IssueSubmitted,
)
from civic_engine.services.issue_store import utcnow
from civic_engine.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    points_awarded: Optional[int] = None
    related_issue_id: Optional[str] = None
    related_badge_id: Optional[str] = None
    image_path: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    is_active: bool = True


@dataclass
class NotificationStats:
    total: int = 0
    unread: int = 0
    badge_notifications: int = 0
    issue_notifications: int = 0
    last_notification_at: Optional[datetime] = None


class NotificationFeed:
    """Builds and stores notifications for each user."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._notifications: Dict[str, List[Notification]] = {}
        self._lock = threading.Lock()

    def attach(self, dispatcher: NotificationDispatcher) -> None:
        """Subscribe to every event kind the feed renders."""
        dispatcher.subscribe(EventKind.ISSUE_SUBMITTED, self.handle)
        dispatcher.subscribe(EventKind.BADGE_EARNED, self.handle)
        dispatcher.subscribe(EventKind.ISSUE_STATUS_CHANGED, self.handle)
        dispatcher.subscribe(EventKind.ISSUE_RESOLVED, self.handle)

    def handle(self, event: DomainEvent) -> Notification:
        notification = self._render(event)
        with self._lock:
            self._notifications.setdefault(notification.user_id, []).append(notification)
        logger.debug("Notification %s queued for %s", notification.type.value, notification.user_id)
        return notification

    def _render(self, event: DomainEvent) -> Notification:
        common = {
            "id": str(uuid.uuid4()),
            "user_id": event.user_id,
            "created_at": self._clock(),
        }
        if isinstance(event, IssueSubmitted):
            issue = event.issue
            return Notification(
                type=NotificationType.ISSUE_SUBMITTED,
                title="Issue Submitted Successfully",
                message=(
                    f"Your issue '{issue.title}' has been submitted and is being reviewed. "
                    f"You earned {issue.points_awarded} points!"
                ),
                points_awarded=issue.points_awarded,
                related_issue_id=issue.id,
                **common
            )
        if isinstance(event, BadgeEarned):
            badge = event.badge
            return Notification(
                type=NotificationType.BADGE_EARNED,
                title="Badge Earned!",
                message=f"Congratulations! You've earned the '{badge.name}' badge!",
                points_awarded=badge.points_value,
                related_issue_id=event.issue_id,
                related_badge_id=badge.id,
                image_path=badge.image_path,
                **common
            )
        if isinstance(event, IssueStatusChanged):
            return Notification(
                type=NotificationType.ISSUE_STATUS_CHANGED,
                title="Issue Status Updated",
                message=(
                    f"Your issue '{event.issue.title}' status has been changed "
                    f"from {event.from_status.value} to {event.to_status.value}"
                ),
                related_issue_id=event.issue.id,
                **common
            )
        if isinstance(event, IssueResolved):
            return Notification(
                type=NotificationType.ISSUE_RESOLVED,
                title="Issue Resolved",
                message=f"Your issue '{event.issue.title}' has been resolved. Thank you for reporting it!",
                related_issue_id=event.issue.id,
                **common
            )
        raise TypeError(f"No notification template for {type(event).__name__}")

    def get_user_notifications(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """Active notifications for a user, newest first."""
        with self._lock:
            notifications = [n for n in self._notifications.get(user_id, []) if n.is_active]
        if unread_only:
            notifications = [n for n in notifications if not n.is_read]
        # reversed() first so equal timestamps still come out newest first
        return sorted(reversed(notifications), key=lambda n: n.created_at, reverse=True)

    def get_recent(self, user_id: str, count: int = 5) -> List[Notification]:
        return self.get_user_notifications(user_id)[:count]

    def _find(self, notification_id: str, user_id: str) -> Optional[Notification]:
        for notification in self._notifications.get(user_id, []):
            if notification.id == notification_id and notification.is_active:
                return notification
        return None

    def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        with self._lock:
            notification = self._find(notification_id, user_id)
            if notification is None:
                return False
            notification.is_read = True
            notification.read_at = self._clock()
            return True

    def mark_all_as_read(self, user_id: str) -> int:
        """Returns how many notifications flipped to read."""
        now = self._clock()
        marked = 0
        with self._lock:
            for notification in self._notifications.get(user_id, []):
                if notification.is_active and not notification.is_read:
                    notification.is_read = True
                    notification.read_at = now
                    marked += 1
        return marked

    def delete(self, notification_id: str, user_id: str) -> bool:
        """Soft delete: the notification stops showing up but is kept."""
        with self._lock:
            notification = self._find(notification_id, user_id)
            if notification is None:
                return False
            notification.is_active = False
            return True

    def get_stats(self, user_id: str) -> NotificationStats:
        active = self.get_user_notifications(user_id)
        if not active:
            return NotificationStats()
        return NotificationStats(
            total=len(active),
            unread=sum(1 for n in active if not n.is_read),
            badge_notifications=sum(1 for n in active if n.type == NotificationType.BADGE_EARNED),
            issue_notifications=sum(1 for n in active if n.type != NotificationType.BADGE_EARNED),
            last_notification_at=max(n.created_at for n in active),
        )
