"""
Composition root: builds the engine's object graph explicitly.

There are no module-level singletons. The web app builds one runtime at
startup and keeps it on `app.state`; tests build a fresh one per test.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fastapi import Request

from civic_engine.services.analytics import AnalyticsService
from civic_engine.services.gamification import GamificationEngine
from civic_engine.services.indexes import SecondaryIndexes, derive_location_zone
from civic_engine.services.issue_store import IssueStore, utcnow
from civic_engine.services.notification_feed import NotificationFeed
from civic_engine.services.notifications import NotificationDispatcher
from civic_engine.services.state_machine import IssueLifecycleCoordinator


@dataclass
class CivicRuntime:
    store: IssueStore
    indexes: SecondaryIndexes
    gamification: GamificationEngine
    dispatcher: NotificationDispatcher
    coordinator: IssueLifecycleCoordinator
    feed: NotificationFeed
    analytics: AnalyticsService


def build_runtime(
    clock: Callable[[], datetime] = utcnow,
    id_factory: Optional[Callable[[], str]] = None,
    zone_resolver=derive_location_zone
) -> CivicRuntime:
    store = IssueStore(clock=clock, id_factory=id_factory) if id_factory else IssueStore(clock=clock)
    indexes = SecondaryIndexes(zone_resolver=zone_resolver)
    gamification = GamificationEngine()
    dispatcher = NotificationDispatcher()
    coordinator = IssueLifecycleCoordinator(store, indexes, gamification, dispatcher, clock=clock)

    feed = NotificationFeed(clock=clock)
    feed.attach(dispatcher)

    return CivicRuntime(
        store=store,
        indexes=indexes,
        gamification=gamification,
        dispatcher=dispatcher,
        coordinator=coordinator,
        feed=feed,
        analytics=AnalyticsService(coordinator),
    )


def get_runtime(request: Request) -> CivicRuntime:
    """Dependency for FastAPI endpoints to get the process-wide runtime."""
    return request.app.state.runtime
