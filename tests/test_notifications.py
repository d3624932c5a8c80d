"""
Tests for event fan-out and the per-user notification feed.

These tests prove:
- handlers run in registration order, per event kind
- one failing observer never breaks the others or the triggering operation
- the feed turns domain events into user-facing notifications
"""
import logging

from civic_engine.models.enums import EventKind, IssueCategory, IssuePriority, IssueStatus, NotificationType
from civic_engine.models.events import IssueResolved, IssueSubmitted
from civic_engine.services.notifications import NotificationDispatcher


class TestDispatcher:

    def test_handlers_run_in_registration_order(self, runtime, make_draft):
        dispatcher = NotificationDispatcher()
        calls = []
        dispatcher.subscribe(EventKind.ISSUE_SUBMITTED, lambda e: calls.append("first"))
        dispatcher.subscribe(EventKind.ISSUE_SUBMITTED, lambda e: calls.append("second"))
        dispatcher.subscribe(EventKind.ISSUE_RESOLVED, lambda e: calls.append("other kind"))

        issue = runtime.coordinator.submit_issue(make_draft()).issue
        delivered = dispatcher.dispatch(IssueSubmitted(issue=issue))

        assert calls == ["first", "second"]
        assert delivered == 2

    def test_no_handlers_is_fine(self, runtime, make_draft):
        issue = runtime.coordinator.submit_issue(make_draft()).issue
        assert NotificationDispatcher().dispatch(IssueResolved(issue=issue)) == 0

    def test_failing_handler_is_isolated(self, runtime, make_draft, caplog):
        """
        A broken observer is logged and skipped; later handlers still run and
        the submission still succeeds.
        """
        calls = []

        def broken(event):
            raise RuntimeError("feed is down")

        runtime.dispatcher.subscribe(EventKind.ISSUE_SUBMITTED, broken)
        runtime.dispatcher.subscribe(EventKind.ISSUE_SUBMITTED, calls.append)

        with caplog.at_level(logging.ERROR, logger="civic_engine.services.notifications"):
            result = runtime.coordinator.submit_issue(make_draft())

        assert result.success
        assert len(calls) == 1
        assert calls[0].issue.id == result.issue.id
        assert "feed is down" in caplog.text
        assert runtime.store.count() == 1

    def test_unsubscribe(self):
        dispatcher = NotificationDispatcher()
        handler = lambda e: None  # noqa: E731
        dispatcher.subscribe(EventKind.BADGE_EARNED, handler)

        assert dispatcher.unsubscribe(EventKind.BADGE_EARNED, handler)
        assert not dispatcher.unsubscribe(EventKind.BADGE_EARNED, handler)
        assert dispatcher.handlers_for(EventKind.BADGE_EARNED) == []


class TestNotificationFeed:

    def test_submission_creates_issue_and_badge_notifications(self, runtime, make_draft):
        runtime.coordinator.submit_issue(make_draft(title="Streetlight out"))
        notifications = runtime.feed.get_user_notifications("user_123")

        types = [n.type for n in notifications]
        assert types.count(NotificationType.ISSUE_SUBMITTED) == 1
        assert types.count(NotificationType.BADGE_EARNED) == 1

        submitted = next(n for n in notifications if n.type == NotificationType.ISSUE_SUBMITTED)
        assert "Streetlight out" in submitted.message
        assert submitted.points_awarded == 20

        badge = next(n for n in notifications if n.type == NotificationType.BADGE_EARNED)
        assert badge.related_badge_id == "FirstReport"
        assert "First Responder" in badge.message
        assert badge.image_path.startswith("/images/badges/")

    def test_newest_first(self, runtime, make_draft):
        issue = runtime.coordinator.submit_issue(make_draft()).issue
        runtime.coordinator.transition_status(issue.id, IssueStatus.RESOLVED)

        notifications = runtime.feed.get_user_notifications("user_123")
        assert notifications[0].type == NotificationType.ISSUE_RESOLVED
        assert notifications[1].type == NotificationType.ISSUE_STATUS_CHANGED
        assert "from Open to Resolved" in notifications[1].message

    def test_notifications_go_to_the_reporter(self, runtime, make_draft):
        runtime.coordinator.submit_issue(make_draft(user_id="alice"))
        assert runtime.feed.get_user_notifications("bob") == []
        assert len(runtime.feed.get_user_notifications("alice")) == 2

    def test_mark_as_read(self, runtime, make_draft):
        runtime.coordinator.submit_issue(make_draft())
        first = runtime.feed.get_user_notifications("user_123")[0]

        assert runtime.feed.mark_as_read(first.id, "user_123")
        assert not runtime.feed.mark_as_read(first.id, "someone_else")
        assert not runtime.feed.mark_as_read("missing", "user_123")

        unread = runtime.feed.get_user_notifications("user_123", unread_only=True)
        assert first.id not in [n.id for n in unread]
        assert len(unread) == 1

    def test_mark_all_as_read(self, runtime, make_draft):
        runtime.coordinator.submit_issue(make_draft(priority=IssuePriority.CRITICAL))

        assert runtime.feed.mark_all_as_read("user_123") == 3
        assert runtime.feed.mark_all_as_read("user_123") == 0
        assert runtime.feed.get_user_notifications("user_123", unread_only=True) == []

    def test_delete_is_soft(self, runtime, make_draft):
        runtime.coordinator.submit_issue(make_draft())
        target = runtime.feed.get_user_notifications("user_123")[0]

        assert runtime.feed.delete(target.id, "user_123")
        assert not runtime.feed.delete(target.id, "user_123")
        assert target.id not in [n.id for n in runtime.feed.get_user_notifications("user_123")]

    def test_stats_and_recent(self, runtime, make_draft):
        for _ in range(3):
            runtime.coordinator.submit_issue(make_draft(category=IssueCategory.ROADS))
        stats = runtime.feed.get_stats("user_123")

        # 3 submissions; FirstReport, Roads specialist, CommunityHelper, RoadWarrior
        assert stats.issue_notifications == 3
        assert stats.badge_notifications == 4
        assert stats.total == 7
        assert stats.unread == 7
        assert len(runtime.feed.get_recent("user_123", count=5)) == 5
        assert runtime.feed.get_stats("nobody").total == 0
