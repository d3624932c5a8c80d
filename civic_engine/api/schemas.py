"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from civic_engine.models.enums import (
    BadgeType,
    IssueCategory,
    IssuePriority,
    IssueStatus,
    LocationZone,
    NotificationType,
    UserLevel,
)


class _FromAttributes(BaseModel):
    class Config:
        from_attributes = True


# Issue schemas
class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=1000)
    category: IssueCategory
    priority: IssuePriority = IssuePriority.MEDIUM
    location: str = Field(..., min_length=1, max_length=300)
    user_id: str = Field(..., min_length=1)
    attachments: List[str] = []


class IssueResponse(_FromAttributes):
    id: str
    title: str
    description: str
    category: IssueCategory
    priority: IssuePriority
    status: IssueStatus
    location: str
    user_id: str
    submitted_at: datetime
    resolved_at: Optional[datetime]
    attachments: List[str]
    points_awarded: int


class StatusUpdate(BaseModel):
    status: IssueStatus
    changed_by: Optional[str] = Field(None, max_length=100)
    comments: Optional[str] = Field(None, max_length=500)


class StatusChangeResponse(_FromAttributes):
    previous_status: IssueStatus
    new_status: IssueStatus
    changed_at: datetime
    changed_by: Optional[str]
    comments: Optional[str]


# Badge schemas
class BadgeResponse(_FromAttributes):
    id: str
    name: str
    description: str
    badge_type: BadgeType
    image_path: str
    required_count: int
    points_value: int
    required_categories: List[IssueCategory] = []


class EarnedBadgeResponse(_FromAttributes):
    badge: BadgeResponse
    earned_at: datetime


class SubmissionResponse(BaseModel):
    issue: IssueResponse
    points_awarded: int
    badges_earned: List[EarnedBadgeResponse]


class TransitionResponse(BaseModel):
    issue: IssueResponse
    previous_status: IssueStatus


# User progress schemas
class ProgressResponse(BaseModel):
    user_id: str
    total_points: int
    level: UserLevel
    issues_submitted: int
    earned_badges: List[EarnedBadgeResponse]
    last_active_at: Optional[datetime]


class BadgeStatsResponse(_FromAttributes):
    total_badges: int
    earned_badges: int
    locked_badges: int
    points_from_badges: int
    completion_percentage: float
    recent_badges: List[EarnedBadgeResponse]


# Notification schemas
class NotificationResponse(_FromAttributes):
    id: str
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    points_awarded: Optional[int]
    related_issue_id: Optional[str]
    related_badge_id: Optional[str]
    image_path: Optional[str]
    is_read: bool
    read_at: Optional[datetime]


class MarkAllReadResponse(BaseModel):
    marked: int


# Reporting schemas
class LeaderboardEntryResponse(_FromAttributes):
    rank: int
    user_id: str
    total_points: int
    level: UserLevel
    reports_submitted: int
    issues_resolved: int
    badge_count: int


class AnalyticsResponse(_FromAttributes):
    total_issues: int
    resolved_issues: int
    resolution_rate: float
    average_resolution_hours: Optional[float]
    category_distribution: Dict[IssueCategory, int]
    priority_distribution: Dict[IssuePriority, int]
    status_distribution: Dict[IssueStatus, int]
    zone_distribution: Dict[LocationZone, int]
    category_priority_matrix: Dict[IssueCategory, Dict[IssuePriority, int]]
    resolution_hours_by_category: Dict[IssueCategory, Optional[float]]
    resolution_hours_by_priority: Dict[IssuePriority, Optional[float]]
    peak_reporting_day: Optional[str]
    peak_reporting_hour: Optional[int]


# Error response
class ErrorResponse(BaseModel):
    """Body of a refused request."""
    code: str
    message: str
    details: Dict = {}
