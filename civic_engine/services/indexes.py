"""
Secondary indexes over the issue set.

Each dimension maps a key to the set of issue ids currently holding it.
An id sits under exactly one key per dimension. The indexes never look at
the store themselves; the lifecycle coordinator feeds them.
"""
import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, Optional, Set

from civic_engine.models.domain import Issue
from civic_engine.models.enums import (
    IssueCategory,
    IssuePriority,
    IssueStatus,
    LocationZone,
)

logger = logging.getLogger(__name__)

# Checked in order; the first hit wins.
ZONE_KEYWORDS = (
    (("city", "downtown"), LocationZone.CITY),
    (("north",), LocationZone.NORTH),
    (("south",), LocationZone.SOUTH),
    (("east",), LocationZone.EAST),
    (("west",), LocationZone.WEST),
)


def extract_location_key(location: Optional[str]) -> str:
    """First comma-separated part of a location, e.g. 'North Beach' for 'North Beach, Durban'."""
    if not location:
        return ""
    return location.split(",")[0].strip()


def derive_location_zone(location: Optional[str]) -> LocationZone:
    """
    Map a free-text location to a zone by case-insensitive keyword match
    on its first comma-separated part. Anything unmatched is Other.
    """
    key = extract_location_key(location).lower()
    for keywords, zone in ZONE_KEYWORDS:
        if any(keyword in key for keyword in keywords):
            return zone
    return LocationZone.OTHER


class SecondaryIndexes:
    """Category, priority, location-zone and status indexes."""

    def __init__(self, zone_resolver: Callable[[Optional[str]], LocationZone] = derive_location_zone):
        self.zone_resolver = zone_resolver
        self._by_category: Dict[IssueCategory, Set[str]] = defaultdict(set)
        self._by_priority: Dict[IssuePriority, Set[str]] = defaultdict(set)
        self._by_zone: Dict[LocationZone, Set[str]] = defaultdict(set)
        self._by_status: Dict[IssueStatus, Set[str]] = defaultdict(set)
        self._lock = threading.Lock()

    def zone_for(self, issue: Issue) -> LocationZone:
        try:
            return self.zone_resolver(issue.location)
        except Exception:
            logger.exception("Zone resolver failed for issue %s, indexing under Other", issue.id)
            return LocationZone.OTHER

    def on_issue_created(self, issue: Issue) -> None:
        """Insert a new issue under its category, priority, zone and status."""
        zone = self.zone_for(issue)
        with self._lock:
            self._by_category[issue.category].add(issue.id)
            self._by_priority[issue.priority].add(issue.id)
            self._by_zone[zone].add(issue.id)
            self._by_status[issue.status].add(issue.id)

    def on_status_changed(self, issue: Issue, old_status: IssueStatus, new_status: IssueStatus) -> None:
        """Move an issue between status buckets. Other dimensions never change."""
        with self._lock:
            self._by_status[old_status].discard(issue.id)
            self._by_status[new_status].add(issue.id)

    # Lookups return copies, never None.

    def by_category(self, category: IssueCategory) -> Set[str]:
        with self._lock:
            return set(self._by_category.get(category, ()))

    def by_priority(self, priority: IssuePriority) -> Set[str]:
        with self._lock:
            return set(self._by_priority.get(priority, ()))

    def by_status(self, status: IssueStatus) -> Set[str]:
        with self._lock:
            return set(self._by_status.get(status, ()))

    def by_location_zone(self, zone: LocationZone) -> Set[str]:
        with self._lock:
            return set(self._by_zone.get(zone, ()))

    def query(
        self,
        category: Optional[IssueCategory] = None,
        priority: Optional[IssuePriority] = None,
        status: Optional[IssueStatus] = None,
        zone: Optional[LocationZone] = None
    ) -> Optional[Set[str]]:
        """
        Intersect the requested dimensions.

        Returns None when no filter was given, meaning "no restriction".
        """
        selections = []
        if category is not None:
            selections.append(self.by_category(category))
        if priority is not None:
            selections.append(self.by_priority(priority))
        if status is not None:
            selections.append(self.by_status(status))
        if zone is not None:
            selections.append(self.by_location_zone(zone))

        if not selections:
            return None
        return set.intersection(*selections)

    def status_counts(self) -> Dict[IssueStatus, int]:
        with self._lock:
            return {status: len(self._by_status.get(status, ())) for status in IssueStatus}

    def zone_counts(self) -> Dict[LocationZone, int]:
        with self._lock:
            return {zone: len(self._by_zone.get(zone, ())) for zone in LocationZone}
