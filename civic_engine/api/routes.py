"""API routes over the issue lifecycle engine."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from civic_engine.api.schemas import (
    AnalyticsResponse,
    BadgeResponse,
    BadgeStatsResponse,
    EarnedBadgeResponse,
    ErrorResponse,
    IssueCreate,
    IssueResponse,
    LeaderboardEntryResponse,
    MarkAllReadResponse,
    NotificationResponse,
    ProgressResponse,
    StatusChangeResponse,
    StatusUpdate,
    SubmissionResponse,
    TransitionResponse,
)
from civic_engine.models.domain import IssueDraft
from civic_engine.models.enums import (
    BadgeType,
    IssueCategory,
    IssuePriority,
    IssueStatus,
    LocationZone,
)
from civic_engine.runtime import CivicRuntime, get_runtime
from civic_engine.services import badges as badge_catalogue
from civic_engine.services.exceptions import CivicEngineError
from civic_engine.services.ordering import sort_by_key, sort_issues

router = APIRouter()

ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
}


def _raise_http(error: CivicEngineError):
    raise HTTPException(
        status_code=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.to_dict()
    )


# Issue endpoints
@router.post("/issues", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED, responses={
    422: {"model": ErrorResponse, "description": "Submission is missing required fields"}
})
def submit_issue(issue_data: IssueCreate, runtime: CivicRuntime = Depends(get_runtime)):
    """
    Report a new issue.
    Side effects: points, possibly badges, and notifications for the reporter.
    """
    result = runtime.coordinator.submit_issue(IssueDraft(
        title=issue_data.title,
        description=issue_data.description,
        category=issue_data.category,
        priority=issue_data.priority,
        location=issue_data.location,
        user_id=issue_data.user_id,
        attachments=list(issue_data.attachments)
    ))
    if not result.success:
        _raise_http(result.error)

    return SubmissionResponse(
        issue=IssueResponse.model_validate(result.issue),
        points_awarded=result.points_awarded,
        badges_earned=[EarnedBadgeResponse.model_validate(e) for e in result.badges_earned]
    )


@router.get("/issues", response_model=List[IssueResponse])
def list_issues(
    category: Optional[IssueCategory] = None,
    priority: Optional[IssuePriority] = None,
    status_filter: Optional[IssueStatus] = Query(None, alias="status"),
    zone: Optional[LocationZone] = None,
    runtime: CivicRuntime = Depends(get_runtime)
):
    """List issues, most urgent first. Filters are answered from the secondary indexes."""
    matching = runtime.indexes.query(category=category, priority=priority, status=status_filter, zone=zone)
    if matching is None:
        issues = runtime.store.list_all()
    else:
        issues = [runtime.store.get(issue_id) for issue_id in matching]
    return [IssueResponse.model_validate(issue) for issue in sort_issues(issues)]


@router.get("/issues/{issue_id}", response_model=IssueResponse)
def get_issue(issue_id: str, runtime: CivicRuntime = Depends(get_runtime)):
    issue = runtime.coordinator.get_issue(issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")
    return IssueResponse.model_validate(issue)


@router.put("/issues/{issue_id}/status", response_model=TransitionResponse, responses={
    404: {"model": ErrorResponse, "description": "Unknown issue"},
    409: {"model": ErrorResponse, "description": "Transition not allowed from the current status"}
})
def update_issue_status(issue_id: str, update: StatusUpdate, runtime: CivicRuntime = Depends(get_runtime)):
    """
    Move an issue along Open -> InProgress -> Resolved -> Closed.
    WILL REFUSE any move back to Open or out of Closed.
    """
    result = runtime.coordinator.transition_status(
        issue_id, update.status, changed_by=update.changed_by, comments=update.comments
    )
    if not result.success:
        _raise_http(result.error)
    return TransitionResponse(
        issue=IssueResponse.model_validate(result.issue),
        previous_status=result.previous_status
    )


@router.get("/issues/{issue_id}/history", response_model=List[StatusChangeResponse])
def get_issue_history(issue_id: str, runtime: CivicRuntime = Depends(get_runtime)):
    """Every status change of an issue, oldest first. Submission is not a change."""
    history = runtime.coordinator.status_history(issue_id)
    if history is None:
        raise HTTPException(status_code=404, detail="Issue not found")
    return [StatusChangeResponse.model_validate(change) for change in history]


# User endpoints
@router.get("/users/{user_id}/progress", response_model=ProgressResponse)
def get_user_progress(user_id: str, runtime: CivicRuntime = Depends(get_runtime)):
    progress = runtime.coordinator.get_progress(user_id)
    if not progress:
        raise HTTPException(status_code=404, detail="User has not reported any issues")

    earned = sort_by_key(progress.earned_badges.values(), key=lambda e: e.earned_at)
    return ProgressResponse(
        user_id=progress.user_id,
        total_points=progress.total_points,
        level=progress.level,
        issues_submitted=progress.issues_submitted,
        earned_badges=[EarnedBadgeResponse.model_validate(e) for e in earned],
        last_active_at=progress.last_active_at
    )


@router.get("/users/{user_id}/badges", response_model=BadgeStatsResponse)
def get_user_badge_stats(user_id: str, runtime: CivicRuntime = Depends(get_runtime)):
    return BadgeStatsResponse.model_validate(runtime.analytics.badge_stats(user_id))


@router.get("/users/{user_id}/notifications", response_model=List[NotificationResponse])
def list_notifications(user_id: str, unread_only: bool = False, runtime: CivicRuntime = Depends(get_runtime)):
    notifications = runtime.feed.get_user_notifications(user_id, unread_only=unread_only)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.put("/users/{user_id}/notifications/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(user_id: str, runtime: CivicRuntime = Depends(get_runtime)):
    return MarkAllReadResponse(marked=runtime.feed.mark_all_as_read(user_id))


@router.put("/users/{user_id}/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(user_id: str, notification_id: str, runtime: CivicRuntime = Depends(get_runtime)):
    if not runtime.feed.mark_as_read(notification_id, user_id):
        raise HTTPException(status_code=404, detail="Notification not found")


@router.delete("/users/{user_id}/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(user_id: str, notification_id: str, runtime: CivicRuntime = Depends(get_runtime)):
    if not runtime.feed.delete(notification_id, user_id):
        raise HTTPException(status_code=404, detail="Notification not found")


# Catalogue and reporting endpoints
@router.get("/badges", response_model=List[BadgeResponse])
def list_badges(badge_type: Optional[BadgeType] = None, category: Optional[IssueCategory] = None):
    """The static badge catalogue, optionally narrowed by type or category."""
    if badge_type is not None:
        selected = badge_catalogue.badges_of_type(badge_type)
    else:
        selected = badge_catalogue.all_badges()
    if category is not None:
        wanted = {badge.id for badge in badge_catalogue.badges_for_category(category)}
        selected = [badge for badge in selected if badge.id in wanted]
    return [BadgeResponse.model_validate(badge) for badge in selected]


@router.get("/leaderboard", response_model=List[LeaderboardEntryResponse])
def get_leaderboard(limit: int = Query(10, ge=1), runtime: CivicRuntime = Depends(get_runtime)):
    return [LeaderboardEntryResponse.model_validate(e) for e in runtime.analytics.leaderboard(limit=limit)]


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(runtime: CivicRuntime = Depends(get_runtime)):
    """Distributions and resolution figures. Deterministic aggregation, no predictions."""
    return AnalyticsResponse.model_validate(runtime.analytics.issue_analytics())
