"""
Read-only reporting over the engine state: leaderboard, badge progress and
issue analytics. Nothing here mutates anything.
"""
import calendar
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from civic_engine.models.domain import EarnedBadge, Issue
from civic_engine.models.enums import (
    IssueCategory,
    IssuePriority,
    IssueStatus,
    LocationZone,
    UserLevel,
)
from civic_engine.services.badges import BADGE_CATALOGUE
from civic_engine.services.ordering import sort_by_key
from civic_engine.services.state_machine import IssueLifecycleCoordinator


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    total_points: int
    level: UserLevel
    reports_submitted: int
    issues_resolved: int
    badge_count: int


@dataclass
class BadgeStats:
    total_badges: int
    earned_badges: int
    locked_badges: int
    points_from_badges: int
    recent_badges: List[EarnedBadge] = field(default_factory=list)

    @property
    def completion_percentage(self) -> float:
        if self.total_badges == 0:
            return 0.0
        return self.earned_badges / self.total_badges * 100


@dataclass
class IssueAnalytics:
    total_issues: int
    resolved_issues: int
    average_resolution_hours: Optional[float]
    category_distribution: Dict[IssueCategory, int]
    priority_distribution: Dict[IssuePriority, int]
    status_distribution: Dict[IssueStatus, int]
    zone_distribution: Dict[LocationZone, int]
    category_priority_matrix: Dict[IssueCategory, Dict[IssuePriority, int]]
    resolution_hours_by_category: Dict[IssueCategory, Optional[float]] = field(default_factory=dict)
    resolution_hours_by_priority: Dict[IssuePriority, Optional[float]] = field(default_factory=dict)
    # None until something has been reported
    peak_reporting_day: Optional[str] = None
    peak_reporting_hour: Optional[int] = None

    @property
    def resolution_rate(self) -> float:
        if self.total_issues == 0:
            return 0.0
        return self.resolved_issues / self.total_issues * 100


def _resolution_hours(issue: Issue) -> float:
    return (issue.resolved_at - issue.submitted_at).total_seconds() / 3600


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


class AnalyticsService:
    """Leaderboards and statistics derived from the coordinator's state."""

    def __init__(self, coordinator: IssueLifecycleCoordinator):
        self.coordinator = coordinator

    def leaderboard(self, limit: Optional[int] = 10) -> List[LeaderboardEntry]:
        """
        Users ranked by total points, ties broken by reports submitted and
        then user id so the order is deterministic.

        Raises ValueError for a limit below 1; None means everyone.
        """
        if limit is not None and limit < 1:
            raise ValueError(f"Leaderboard limit must be at least 1, got {limit}")

        with self.coordinator.consistent_read():
            issues = self.coordinator.store.list_all()
            users = self.coordinator.all_progress()

        resolved_by_user: Dict[str, int] = {}
        for issue in issues:
            if issue.status in (IssueStatus.RESOLVED, IssueStatus.CLOSED):
                resolved_by_user[issue.user_id] = resolved_by_user.get(issue.user_id, 0) + 1

        ranked = sort_by_key(users, key=lambda p: (-p.total_points, -p.issues_submitted, p.user_id))
        if limit is not None:
            ranked = ranked[:limit]

        return [
            LeaderboardEntry(
                rank=position,
                user_id=progress.user_id,
                total_points=progress.total_points,
                level=progress.level,
                reports_submitted=progress.issues_submitted,
                issues_resolved=resolved_by_user.get(progress.user_id, 0),
                badge_count=len(progress.earned_badges),
            )
            for position, progress in enumerate(ranked, start=1)
        ]

    def badge_stats(self, user_id: str, recent_count: int = 3) -> BadgeStats:
        progress = self.coordinator.get_progress(user_id)
        earned = list(progress.earned_badges.values()) if progress else []
        recent = sort_by_key(earned, key=lambda e: e.earned_at, reverse=True)[:recent_count]
        return BadgeStats(
            total_badges=len(BADGE_CATALOGUE),
            earned_badges=len(earned),
            locked_badges=len(BADGE_CATALOGUE) - len(earned),
            points_from_badges=sum(e.badge.points_value for e in earned),
            recent_badges=recent,
        )

    def issue_analytics(self) -> IssueAnalytics:
        """
        Distributions, resolution times and reporting peaks over every issue.

        Store and index reads happen in one consistent view, so the
        distributions always add up to total_issues.
        """
        indexes = self.coordinator.indexes
        with self.coordinator.consistent_read():
            issues = self.coordinator.store.list_all()
            status_counts = indexes.status_counts()
            category_counts = {c: len(indexes.by_category(c)) for c in IssueCategory}
            priority_counts = {p: len(indexes.by_priority(p)) for p in IssuePriority}
            zone_counts = indexes.zone_counts()

        matrix = {category: {priority: 0 for priority in IssuePriority} for category in IssueCategory}
        hours_by_category: Dict[IssueCategory, List[float]] = {c: [] for c in IssueCategory}
        hours_by_priority: Dict[IssuePriority, List[float]] = {p: [] for p in IssuePriority}
        volume: Dict[Tuple[int, int], int] = {}
        resolution_hours = []

        for issue in issues:
            matrix[issue.category][issue.priority] += 1
            slot = (issue.submitted_at.weekday(), issue.submitted_at.hour)
            volume[slot] = volume.get(slot, 0) + 1
            if issue.resolved_at is not None:
                hours = _resolution_hours(issue)
                resolution_hours.append(hours)
                hours_by_category[issue.category].append(hours)
                hours_by_priority[issue.priority].append(hours)

        peak_day = peak_hour = None
        if volume:
            # earliest slot in the week wins a tie
            (day, peak_hour), _ = sort_by_key(volume.items(), key=lambda item: (-item[1], item[0]))[0]
            peak_day = calendar.day_name[day]

        return IssueAnalytics(
            total_issues=len(issues),
            resolved_issues=status_counts[IssueStatus.RESOLVED] + status_counts[IssueStatus.CLOSED],
            average_resolution_hours=_mean(resolution_hours),
            category_distribution=category_counts,
            priority_distribution=priority_counts,
            status_distribution=status_counts,
            zone_distribution=zone_counts,
            category_priority_matrix=matrix,
            resolution_hours_by_category={c: _mean(h) for c, h in hours_by_category.items()},
            resolution_hours_by_priority={p: _mean(h) for p, h in hours_by_priority.items()},
            peak_reporting_day=peak_day,
            peak_reporting_hour=peak_hour,
        )
