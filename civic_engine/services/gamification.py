"""
Gamification rules: points per submission, levels and badge evaluation.

Everything here is a pure function of its inputs. The engine holds no
mutable state and does no I/O; per-user progress lives in
UserProgressState, owned by the lifecycle coordinator.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

from civic_engine.models.domain import Badge, Issue
from civic_engine.models.enums import IssuePriority, UserLevel
from civic_engine.services.badges import BADGE_CATALOGUE

BASE_SUBMISSION_POINTS = 10
ATTACHMENT_BONUS = 5

PRIORITY_BONUS: Dict[IssuePriority, int] = {
    IssuePriority.LOW: 5,
    IssuePriority.MEDIUM: 10,
    IssuePriority.HIGH: 15,
    IssuePriority.CRITICAL: 20,
}

# Highest matching tier wins.
LEVEL_THRESHOLDS = (
    (1000, UserLevel.DIAMOND),
    (500, UserLevel.PLATINUM),
    (250, UserLevel.GOLD),
    (100, UserLevel.SILVER),
)


@dataclass(frozen=True)
class BadgeAward:
    """A badge that qualifies, with the submission that crossed its threshold."""
    badge: Badge
    earned_at: datetime
    issue_id: str


@dataclass
class BadgeEvaluation:
    """
    earned: every qualifying badge, keyed by badge id
    newly_earned: the subset not previously held, in catalogue order
    """
    earned: Dict[str, BadgeAward] = field(default_factory=dict)
    newly_earned: List[BadgeAward] = field(default_factory=list)


class GamificationEngine:
    """Derives points, level and badges from a user's issue history."""

    def __init__(self, badges: Sequence[Badge] = BADGE_CATALOGUE):
        self.badges = list(badges)

    def compute_points_for_submission(self, issue: Issue) -> int:
        """
        10 base + priority bonus + 5 when the issue carries an attachment.

        Depends only on priority and attachment count.
        """
        points = BASE_SUBMISSION_POINTS + PRIORITY_BONUS[issue.priority]
        if issue.has_attachments:
            points += ATTACHMENT_BONUS
        return points

    @staticmethod
    def level_for_points(points: int) -> UserLevel:
        for threshold, level in LEVEL_THRESHOLDS:
            if points >= threshold:
                return level
        return UserLevel.BRONZE

    def evaluate_badges(
        self,
        history: Iterable[Issue],
        already_earned: Iterable[str] = ()
    ) -> BadgeEvaluation:
        """
        Evaluate every badge independently over a user's full history.

        A count-N badge is stamped with the submission time of the Nth
        qualifying issue in submission order, never the evaluation time, so
        re-running over the same history always gives the same answer.
        """
        # sorted() is stable: equal timestamps keep the caller's order
        ordered = sorted(history, key=lambda issue: issue.submitted_at)
        held = set(already_earned)
        evaluation = BadgeEvaluation()

        for badge in self.badges:
            award = self._first_award(badge, ordered)
            if award is None:
                continue
            evaluation.earned[badge.id] = award
            if badge.id not in held:
                evaluation.newly_earned.append(award)

        return evaluation

    @staticmethod
    def _first_award(badge: Badge, ordered_history: List[Issue]):
        matched = 0
        for issue in ordered_history:
            if badge.qualifies(issue):
                matched += 1
                if matched == badge.required_count:
                    return BadgeAward(badge=badge, earned_at=issue.submitted_at, issue_id=issue.id)
        return None
