"""
Domain events - immutable records of things that happened to issues and users.

Events are created by the lifecycle coordinator and fanned out by the
notification dispatcher. They are never persisted.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from civic_engine.models.domain import Badge, Issue
from civic_engine.models.enums import EventKind, IssueStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""
    kind = None  # set by each variant

    @property
    def user_id(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class IssueSubmitted(DomainEvent):
    kind = EventKind.ISSUE_SUBMITTED

    issue: Issue
    occurred_at: datetime = field(default_factory=_utcnow)

    @property
    def user_id(self) -> str:
        return self.issue.user_id


@dataclass(frozen=True)
class IssueStatusChanged(DomainEvent):
    kind = EventKind.ISSUE_STATUS_CHANGED

    issue: Issue
    from_status: IssueStatus
    to_status: IssueStatus
    occurred_at: datetime = field(default_factory=_utcnow)
    changed_by: Optional[str] = None
    comments: Optional[str] = None

    @property
    def user_id(self) -> str:
        return self.issue.user_id


@dataclass(frozen=True)
class BadgeEarned(DomainEvent):
    kind = EventKind.BADGE_EARNED

    badge: Badge
    recipient_id: str
    issue_id: str
    earned_at: datetime
    occurred_at: datetime = field(default_factory=_utcnow)

    @property
    def user_id(self) -> str:
        return self.recipient_id


@dataclass(frozen=True)
class IssueResolved(DomainEvent):
    kind = EventKind.ISSUE_RESOLVED

    issue: Issue
    occurred_at: datetime = field(default_factory=_utcnow)

    @property
    def user_id(self) -> str:
        return self.issue.user_id
