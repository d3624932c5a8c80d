"""
Issue lifecycle: the state machine and the coordinator that enforces it.

This is the core enforcement mechanism - every submission and every status
change MUST go through IssueLifecycleCoordinator, which keeps the store,
the secondary indexes and per-user progress consistent with each other.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional

from civic_engine.models.domain import EarnedBadge, Issue, IssueDraft, StatusChange, UserProgressState
from civic_engine.models.enums import IssueStatus
from civic_engine.models.events import (
    BadgeEarned,
    DomainEvent,
    IssueResolved,
    IssueStatusChanged,
    IssueSubmitted,
)
from civic_engine.services.exceptions import (
    CivicEngineError,
    InvalidTransitionError,
    IssueNotFoundError,
    ValidationError,
)
from civic_engine.services.gamification import GamificationEngine
from civic_engine.services.indexes import SecondaryIndexes
from civic_engine.services.issue_store import IssueStore, utcnow
from civic_engine.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


# Allowed transitions. Nothing ever targets Open; there is no reopen.
ALLOWED_TRANSITIONS: Dict[IssueStatus, FrozenSet[IssueStatus]] = {
    IssueStatus.OPEN: frozenset({IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED}),
    IssueStatus.IN_PROGRESS: frozenset({IssueStatus.RESOLVED, IssueStatus.CLOSED}),
    IssueStatus.RESOLVED: frozenset({IssueStatus.CLOSED}),
    IssueStatus.CLOSED: frozenset(),
}

RESOLUTION_STATES = frozenset({IssueStatus.RESOLVED, IssueStatus.CLOSED})


def can_transition(from_status: IssueStatus, to_status: IssueStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


@dataclass
class SubmissionResult:
    """
    Outcome of one submission. Points and badges are what THIS call awarded,
    not the user's running totals.
    """
    success: bool
    issue: Optional[Issue] = None
    points_awarded: int = 0
    badges_earned: List[EarnedBadge] = field(default_factory=list)
    events: List[DomainEvent] = field(default_factory=list)
    error: Optional[CivicEngineError] = None

    def raise_for_error(self) -> "SubmissionResult":
        if self.error is not None:
            raise self.error
        return self


@dataclass
class TransitionResult:
    success: bool
    issue: Optional[Issue] = None
    previous_status: Optional[IssueStatus] = None
    events: List[DomainEvent] = field(default_factory=list)
    error: Optional[CivicEngineError] = None

    def raise_for_error(self) -> "TransitionResult":
        if self.error is not None:
            raise self.error
        return self


class IssueLifecycleCoordinator:
    """
    Orchestrates store, indexes, gamification and notification.

    Invariants enforced here:
    - a failed validation leaves no trace (no index entry, no points, no events)
    - every stored issue is indexed exactly once; every status change is
      mirrored in the status index
    - points are awarded once, at submission; transitions never touch them
    - a user's earned badges only grow, and each badge is announced once
    - submit_issue and transition_status are mutually exclusive, and events
      are dispatched inside the same critical section so subscribers see
      them in the order they were generated
    """

    def __init__(
        self,
        store: IssueStore,
        indexes: SecondaryIndexes,
        gamification: GamificationEngine,
        dispatcher: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow
    ):
        self.store = store
        self.indexes = indexes
        self.gamification = gamification
        self.dispatcher = dispatcher
        self._clock = clock
        self._progress: Dict[str, UserProgressState] = {}
        self._history: Dict[str, List[StatusChange]] = {}
        self._lock = threading.RLock()

    def submit_issue(self, draft: IssueDraft) -> SubmissionResult:
        """
        Accept a new issue report.

        1. store (validation failure returns here with nothing changed)
        2. index
        3. fix the issue's points
        4. update the reporter's progress
        5. award and announce newly earned badges
        6. announce the submission
        """
        with self._lock:
            try:
                issue = self.store.create(draft)
            except ValidationError as e:
                logger.warning("Rejected submission from %r: %s", draft.user_id, e.message)
                return SubmissionResult(success=False, error=e)

            self.indexes.on_issue_created(issue)

            points = self.gamification.compute_points_for_submission(issue)
            # The one sanctioned update of a just-created issue: its id must
            # exist before points can be attached to it.
            issue = self.store.update_fields(issue.id, points_awarded=points)

            progress = self._progress.get(issue.user_id)
            if progress is None:
                progress = UserProgressState(user_id=issue.user_id)
                self._progress[issue.user_id] = progress

            progress.total_points += points
            progress.issues_submitted += 1
            progress.issue_ids.append(issue.id)
            progress.last_active_at = issue.submitted_at
            progress.level = self.gamification.level_for_points(progress.total_points)

            history = [self.store.get(issue_id) for issue_id in progress.issue_ids]
            evaluation = self.gamification.evaluate_badges(
                history,
                already_earned=progress.earned_badges.keys()
            )

            events: List[DomainEvent] = []
            badges_earned: List[EarnedBadge] = []
            for award in evaluation.newly_earned:
                earned = EarnedBadge(badge=award.badge, user_id=issue.user_id, earned_at=award.earned_at)
                progress.earned_badges[award.badge.id] = earned
                badges_earned.append(earned)
                logger.info("User %s earned badge %s", issue.user_id, award.badge.id)
                events.append(BadgeEarned(
                    badge=award.badge,
                    recipient_id=issue.user_id,
                    issue_id=award.issue_id,
                    earned_at=award.earned_at,
                    occurred_at=self._clock()
                ))

            events.append(IssueSubmitted(issue=issue, occurred_at=self._clock()))

            logger.info(
                "Issue %s submitted by %s (%s/%s): %d points, %d new badges",
                issue.id, issue.user_id, issue.category.value, issue.priority.value,
                points, len(badges_earned)
            )

            for event in events:
                self.dispatcher.dispatch(event)

            return SubmissionResult(
                success=True,
                issue=issue,
                points_awarded=points,
                badges_earned=badges_earned,
                events=events
            )

    def transition_status(
        self,
        issue_id: str,
        new_status: IssueStatus,
        changed_by: Optional[str] = None,
        comments: Optional[str] = None
    ) -> TransitionResult:
        """
        Move an issue along the state machine and record the change in its
        status history.

        Refuses unknown ids (IssueNotFoundError), unknown status values and
        illegal moves (InvalidTransitionError) without touching anything.
        Does not recompute points or badges.
        """
        with self._lock:
            issue = self.store.get(issue_id)
            if issue is None:
                logger.warning("Transition to %s refused: unknown issue %s", new_status, issue_id)
                return TransitionResult(success=False, error=IssueNotFoundError(issue_id))

            old_status = issue.status
            try:
                new_status = IssueStatus(new_status)
            except ValueError:
                logger.warning("Transition refused for issue %s: unknown status %r", issue_id, new_status)
                return TransitionResult(
                    success=False,
                    issue=issue,
                    previous_status=old_status,
                    error=InvalidTransitionError(issue_id, old_status.value, str(new_status))
                )

            if not can_transition(old_status, new_status):
                logger.warning(
                    "Transition refused for issue %s: %s -> %s",
                    issue_id, old_status.value, new_status.value
                )
                return TransitionResult(
                    success=False,
                    issue=issue,
                    previous_status=old_status,
                    error=InvalidTransitionError(issue_id, old_status.value, new_status.value)
                )

            changed_at = self._clock()
            changes = {"status": new_status}
            if new_status in RESOLUTION_STATES and issue.resolved_at is None:
                changes["resolved_at"] = changed_at
            issue = self.store.update_fields(issue_id, **changes)

            self.indexes.on_status_changed(issue, old_status, new_status)
            self._history.setdefault(issue_id, []).append(StatusChange(
                issue_id=issue_id,
                previous_status=old_status,
                new_status=new_status,
                changed_at=changed_at,
                changed_by=changed_by,
                comments=comments
            ))

            events: List[DomainEvent] = [IssueStatusChanged(
                issue=issue,
                from_status=old_status,
                to_status=new_status,
                occurred_at=self._clock(),
                changed_by=changed_by,
                comments=comments
            )]
            if new_status == IssueStatus.RESOLVED:
                events.append(IssueResolved(issue=issue, occurred_at=self._clock()))

            logger.info(
                "Issue %s moved %s -> %s by %s",
                issue_id, old_status.value, new_status.value, changed_by or "system"
            )

            for event in events:
                self.dispatcher.dispatch(event)

            return TransitionResult(
                success=True,
                issue=issue,
                previous_status=old_status,
                events=events
            )

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        return self.store.get(issue_id)

    def status_history(self, issue_id: str) -> Optional[List[StatusChange]]:
        """Status changes of one issue, oldest first. None for an unknown issue."""
        with self._lock:
            if issue_id not in self.store:
                return None
            return list(self._history.get(issue_id, ()))

    @contextmanager
    def consistent_read(self):
        """
        Hold off submissions and transitions while several reads are made,
        so store, indexes and progress are observed in one state.
        """
        with self._lock:
            yield self

    def get_progress(self, user_id: str) -> Optional[UserProgressState]:
        """Snapshot of one user's progress, or None if they never submitted."""
        with self._lock:
            progress = self._progress.get(user_id)
            return progress.snapshot() if progress is not None else None

    def all_progress(self) -> List[UserProgressState]:
        with self._lock:
            return [progress.snapshot() for progress in self._progress.values()]

    def user_history(self, user_id: str) -> List[Issue]:
        """A user's issues in submission order."""
        with self._lock:
            progress = self._progress.get(user_id)
            if progress is None:
                return []
            return [self.store.get(issue_id) for issue_id in progress.issue_ids]
