"""
Tests for the issue store on its own, without the coordinator.

These tests prove:
- create assigns identity, time and the Open status, and validates first
- get returns None and update raises for unknown ids
- stored records are replaced wholesale, never edited in place
"""
import dataclasses
import itertools

import pytest

from civic_engine.models.enums import IssueCategory, IssuePriority, IssueStatus
from civic_engine.services.exceptions import IssueNotFoundError, ValidationError
from civic_engine.services.issue_store import IssueStore


@pytest.fixture
def store(clock):
    counter = itertools.count(1)
    return IssueStore(clock=clock, id_factory=lambda: f"issue-{next(counter)}")


class TestCreate:

    def test_assigns_identity_time_and_status(self, store, clock, make_draft):
        expected_time = clock.now
        issue = store.create(make_draft(title="  Burst pipe  ", attachments=["a.jpg"]))

        assert issue.id == "issue-1"
        assert issue.submitted_at == expected_time
        assert issue.status == IssueStatus.OPEN
        assert issue.resolved_at is None
        assert issue.points_awarded == 0
        assert issue.title == "Burst pipe"
        assert issue.attachments == ("a.jpg",)

    def test_ids_are_unique(self, store, make_draft):
        ids = {store.create(make_draft()).id for _ in range(5)}
        assert len(ids) == 5
        assert store.count() == 5

    def test_coerces_enum_values(self, store, make_draft):
        issue = store.create(make_draft(category="WaterSupply", priority="Critical"))

        assert issue.category is IssueCategory.WATER_SUPPLY
        assert issue.priority is IssuePriority.CRITICAL

    def test_validation_happens_before_storage(self, store, make_draft):
        with pytest.raises(ValidationError) as excinfo:
            store.create(make_draft(location="", priority=None))

        assert excinfo.value.missing == ["location"]
        assert excinfo.value.invalid == ["priority"]
        assert store.count() == 0

    def test_reused_id_is_refused(self, clock, make_draft):
        """INVARIANT: an id is never reused, even if the id factory repeats itself."""
        store = IssueStore(clock=clock, id_factory=lambda: "same")
        first = store.create(make_draft(title="First"))

        with pytest.raises(ValueError, match="reused id same"):
            store.create(make_draft(title="Second"))

        assert store.count() == 1
        assert store.get("same") == first


class TestReadAndUpdate:

    def test_get(self, store, make_draft):
        issue = store.create(make_draft())

        assert store.get(issue.id) == issue
        assert store.get("missing") is None
        assert issue.id in store
        assert "missing" not in store

    def test_update_replaces_record(self, store, make_draft):
        issue = store.create(make_draft())
        moved = dataclasses.replace(issue, status=IssueStatus.IN_PROGRESS)

        assert store.update(moved) == moved
        assert store.get(issue.id).status == IssueStatus.IN_PROGRESS
        # the earlier snapshot is untouched
        assert issue.status == IssueStatus.OPEN

    def test_update_unknown_id_raises(self, store, make_draft):
        issue = store.create(make_draft())
        stranger = dataclasses.replace(issue, id="missing")

        with pytest.raises(IssueNotFoundError) as excinfo:
            store.update(stranger)

        assert excinfo.value.code == "NOT_FOUND"
        assert excinfo.value.issue_id == "missing"
        assert store.count() == 1

    def test_update_fields(self, store, make_draft):
        issue = store.create(make_draft())

        updated = store.update_fields(issue.id, points_awarded=20)
        assert updated.points_awarded == 20
        assert updated.title == issue.title

        with pytest.raises(IssueNotFoundError):
            store.update_fields("missing", points_awarded=1)

    def test_records_are_immutable(self, store, make_draft):
        issue = store.create(make_draft())
        with pytest.raises(dataclasses.FrozenInstanceError):
            issue.status = IssueStatus.CLOSED

    def test_list_all_is_a_snapshot(self, store, make_draft):
        first = store.create(make_draft(title="One"))
        second = store.create(make_draft(title="Two"))

        listed = store.list_all()
        assert {i.id for i in listed} == {first.id, second.id}

        listed.clear()
        assert store.count() == 2
        assert IssueStore().list_all() == []
