"""Pytest configuration and shared fixtures."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from civic_engine.main import create_app
from civic_engine.models.domain import IssueDraft
from civic_engine.models.enums import IssueCategory, IssuePriority
from civic_engine.runtime import build_runtime


class FakeClock:
    """Deterministic clock: every reading is one minute after the previous one."""

    def __init__(self, start=None, step=timedelta(minutes=1)):
        self.now = start or datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runtime(clock):
    """A fresh, fully wired engine for each test."""
    return build_runtime(clock=clock)


@pytest.fixture
def coordinator(runtime):
    return runtime.coordinator


@pytest.fixture
def make_draft():
    """Factory for valid drafts; override any field by keyword."""
    def _make(**overrides):
        fields = dict(
            title="Burst pipe on main road",
            description="Water flowing across the street since last night",
            category=IssueCategory.OTHER,
            priority=IssuePriority.MEDIUM,
            location="North Beach, Durban",
            user_id="user_123",
            attachments=[],
        )
        fields.update(overrides)
        return IssueDraft(**fields)
    return _make


@pytest.fixture
def client(runtime):
    """API client bound to the test runtime."""
    with TestClient(create_app(runtime)) as test_client:
        yield test_client
