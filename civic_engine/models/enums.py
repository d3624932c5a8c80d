"""Enums for the civic engine - these define the valid values for issues, levels and events."""
from enum import Enum


class OrderedEnum(str, Enum):
    """String enum whose members compare by declaration order, not alphabetically."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank >= other.rank


class IssueCategory(str, Enum):
    """Closed set of municipal service categories."""
    WATER_SUPPLY = "WaterSupply"
    ELECTRICITY = "Electricity"
    ROADS = "Roads"
    WASTE_MANAGEMENT = "WasteManagement"
    PUBLIC_SAFETY = "PublicSafety"
    PARKS_AND_RECREATION = "ParksAndRecreation"
    BUILDING_PERMITS = "BuildingPermits"
    OTHER = "Other"


class IssuePriority(OrderedEnum):
    """Priority of an issue. Low < Medium < High < Critical."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class IssueStatus(str, Enum):
    """The four states an issue can be in. Open is only ever the initial state."""
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class UserLevel(OrderedEnum):
    """Reporter level derived from cumulative points."""
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
    DIAMOND = "Diamond"


class LocationZone(str, Enum):
    """Coarse geographic bucket derived from a free-text location."""
    CITY = "City"
    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"
    OTHER = "Other"


class BadgeType(str, Enum):
    FIRST_REPORT = "FirstReport"
    COMMUNITY_HELPER = "CommunityHelper"
    CONSISTENT_REPORTER = "ConsistentReporter"
    COMMUNITY_CHAMPION = "CommunityChampion"
    MEDIA_CONTRIBUTOR = "MediaContributor"
    EMERGENCY_RESPONDER = "EmergencyResponder"
    CATEGORY_SPECIALIST = "CategorySpecialist"


class EventKind(str, Enum):
    """Domain event variants that observers can subscribe to."""
    ISSUE_SUBMITTED = "issue_submitted"
    ISSUE_STATUS_CHANGED = "issue_status_changed"
    BADGE_EARNED = "badge_earned"
    ISSUE_RESOLVED = "issue_resolved"


class NotificationType(str, Enum):
    """Kinds of user-facing notifications held by the feed."""
    BADGE_EARNED = "BadgeEarned"
    ISSUE_SUBMITTED = "IssueSubmitted"
    ISSUE_STATUS_CHANGED = "IssueStatusChanged"
    ISSUE_RESOLVED = "IssueResolved"
