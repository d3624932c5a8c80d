"""The one place issues, users and badges get sorted."""
from typing import Any, Callable, Iterable, List, Tuple, TypeVar

from civic_engine.models.domain import Issue

T = TypeVar("T")


def sort_by_key(items: Iterable[T], key: Callable[[T], Any], reverse: bool = False) -> List[T]:
    """Stable sort of any iterable by `key`."""
    return sorted(items, key=key, reverse=reverse)


def issue_sort_key(issue: Issue) -> Tuple[int, int, float]:
    """Higher priority first, then more points, then newest."""
    return (-issue.priority.rank, -issue.points_awarded, -issue.submitted_at.timestamp())


def sort_issues(issues: Iterable[Issue]) -> List[Issue]:
    return sort_by_key(issues, issue_sort_key)
