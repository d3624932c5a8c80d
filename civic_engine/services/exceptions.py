"""
Error taxonomy for the civic engine.

The store raises these; the lifecycle coordinator hands them back inside
result objects so callers always see an explicit outcome. The API layer
maps `code` to an HTTP status.
"""
from typing import Any, Dict, List, Optional, Sequence


class CivicEngineError(Exception):
    """Base exception for all civic engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(CivicEngineError):
    """A submission is missing required fields or carries invalid values. Nothing was stored."""

    def __init__(self, fields: List[str], invalid: Sequence[str] = ()):
        self.missing = list(fields)
        self.invalid = [name for name in invalid if name not in self.missing]
        self.fields = self.missing + self.invalid

        problems = []
        if self.missing:
            problems.append(f"Missing required fields: {', '.join(self.missing)}")
        if self.invalid:
            problems.append(f"Invalid values for: {', '.join(self.invalid)}")
        super().__init__(
            "; ".join(problems),
            code="VALIDATION_ERROR",
            details={"fields": self.fields, "missing": self.missing, "invalid": self.invalid}
        )


class IssueNotFoundError(CivicEngineError):
    """An operation referenced an unknown issue identifier."""

    def __init__(self, issue_id: str):
        self.issue_id = issue_id
        super().__init__(
            f"Issue not found: {issue_id}",
            code="NOT_FOUND",
            details={"issue_id": issue_id}
        )


class InvalidTransitionError(CivicEngineError):
    """
    A requested status change is not allowed by the issue state machine.
    The issue is left exactly as it was.
    """

    def __init__(self, issue_id: str, from_status: str, to_status: str):
        self.issue_id = issue_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move issue {issue_id} from {from_status} to {to_status}",
            code="INVALID_TRANSITION",
            details={
                "issue_id": issue_id,
                "from_status": from_status,
                "to_status": to_status,
            }
        )
