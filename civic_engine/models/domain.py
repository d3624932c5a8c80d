"""Domain models - issues, badges and the per-user progress derived from them."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from civic_engine.models.enums import (
    BadgeType,
    IssueCategory,
    IssuePriority,
    IssueStatus,
    UserLevel,
)


@dataclass
class IssueDraft:
    """
    What a caller hands in when reporting an issue.

    Identity, timestamps, status and points are assigned by the engine,
    never by the caller.
    """
    title: str
    location: str
    category: Optional[IssueCategory]
    user_id: str
    description: str = ""
    priority: IssuePriority = IssuePriority.MEDIUM
    attachments: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Issue:
    """
    A municipal problem report. Instances are immutable snapshots; the store
    swaps whole records when an issue moves through its lifecycle.

    Invariants:
    - id is unique and never reused
    - status only moves forward (nothing transitions back to Open)
    - points_awarded is fixed at submission
    - resolved_at is set on entering Resolved or Closed and never cleared
    """
    id: str
    title: str
    description: str
    category: IssueCategory
    priority: IssuePriority
    location: str
    user_id: str
    submitted_at: datetime
    status: IssueStatus = IssueStatus.OPEN
    resolved_at: Optional[datetime] = None
    attachments: Tuple[str, ...] = ()
    points_awarded: int = 0

    @property
    def has_attachments(self) -> bool:
        return len(self.attachments) > 0


@dataclass(frozen=True)
class Badge:
    """
    A static achievement definition.

    A badge is earned once `required_count` issues in a user's history
    satisfy `qualifies`. The catalogue lives in services/badges.py.
    """
    id: str
    name: str
    description: str
    badge_type: BadgeType
    image_path: str
    required_count: int
    points_value: int
    qualifies: Callable[[Issue], bool] = field(compare=False, repr=False)
    required_categories: Tuple[IssueCategory, ...] = ()


@dataclass(frozen=True)
class EarnedBadge:
    """A badge held by one user, stamped with the submission that earned it."""
    badge: Badge
    user_id: str
    earned_at: datetime


@dataclass
class UserProgressState:
    """
    Gamification state for one user. Owned and mutated only by the
    lifecycle coordinator.

    Invariants:
    - level always equals level_for_points(total_points)
    - total_points never decreases
    - a badge id, once in earned_badges, is never removed
    """
    user_id: str
    total_points: int = 0
    level: UserLevel = UserLevel.BRONZE
    earned_badges: Dict[str, EarnedBadge] = field(default_factory=dict)
    issues_submitted: int = 0
    issue_ids: List[str] = field(default_factory=list)
    last_active_at: Optional[datetime] = None

    def snapshot(self) -> "UserProgressState":
        """Detached copy safe to hand out to callers."""
        return UserProgressState(
            user_id=self.user_id,
            total_points=self.total_points,
            level=self.level,
            earned_badges=dict(self.earned_badges),
            issues_submitted=self.issues_submitted,
            issue_ids=list(self.issue_ids),
            last_active_at=self.last_active_at,
        )


@dataclass(frozen=True)
class StatusChange:
    """
    One entry in an issue's status history.

    Invariants:
    - Once recorded, never edited or deleted
    - Only successful transitions are recorded
    """
    issue_id: str
    previous_status: IssueStatus
    new_status: IssueStatus
    changed_at: datetime
    changed_by: Optional[str] = None
    comments: Optional[str] = None
