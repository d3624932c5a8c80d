"""Canonical in-memory collection of issues."""
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from civic_engine.models.domain import Issue, IssueDraft
from civic_engine.models.enums import IssueCategory, IssuePriority, IssueStatus
from civic_engine.services.exceptions import IssueNotFoundError, ValidationError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IssueStore:
    """
    Owns issue records keyed by id.

    Not responsible for indexing or notification - the lifecycle coordinator
    pairs every store mutation with the matching index update.
    """

    REQUIRED_FIELDS = ("title", "location", "category", "user_id")
    TEXT_FIELDS = ("title", "location", "user_id")

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4())
    ):
        self._clock = clock
        self._id_factory = id_factory
        self._issues: Dict[str, Issue] = {}
        self._lock = threading.Lock()

    def create(self, draft: IssueDraft) -> Issue:
        """
        Validate a draft and store it as a new Open issue.

        Raises ValidationError (listing every missing or malformed field)
        before anything is stored.
        """
        missing = [name for name in self.REQUIRED_FIELDS if self._is_blank(getattr(draft, name, None))]
        invalid = [
            name for name in self.TEXT_FIELDS
            if name not in missing and not isinstance(getattr(draft, name, None), str)
        ]
        if draft.description is not None and not isinstance(draft.description, str):
            invalid.append("description")

        category = priority = None
        if "category" not in missing:
            try:
                category = IssueCategory(draft.category)
            except ValueError:
                invalid.append("category")
        try:
            priority = IssuePriority(draft.priority)
        except ValueError:
            invalid.append("priority")

        if missing or invalid:
            raise ValidationError(missing, invalid)

        with self._lock:
            issue_id = self._id_factory()
            if issue_id in self._issues:
                raise ValueError(f"Identifier factory reused id {issue_id}")

            issue = Issue(
                id=issue_id,
                title=draft.title.strip(),
                description=(draft.description or "").strip(),
                category=category,
                priority=priority,
                location=draft.location.strip(),
                user_id=draft.user_id,
                submitted_at=self._clock(),
                status=IssueStatus.OPEN,
                attachments=tuple(draft.attachments or ()),
            )
            self._issues[issue_id] = issue

        logger.debug("Stored issue %s for user %s", issue.id, issue.user_id)
        return issue

    def get(self, issue_id: str) -> Optional[Issue]:
        """Return the issue, or None when the id is unknown."""
        return self._issues.get(issue_id)

    def update(self, issue: Issue) -> Issue:
        """Replace the stored record for an existing id wholesale."""
        with self._lock:
            if issue.id not in self._issues:
                raise IssueNotFoundError(issue.id)
            self._issues[issue.id] = issue
        return issue

    def update_fields(self, issue_id: str, **changes) -> Issue:
        """Copy the stored record with `changes` applied and store the copy."""
        current = self.get(issue_id)
        if current is None:
            raise IssueNotFoundError(issue_id)
        return self.update(replace(current, **changes))

    def list_all(self) -> List[Issue]:
        """Snapshot of all issues. Order is undefined."""
        with self._lock:
            return list(self._issues.values())

    def count(self) -> int:
        return len(self._issues)

    def __contains__(self, issue_id: str) -> bool:
        return issue_id in self._issues

    @staticmethod
    def _is_blank(value) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        return False
