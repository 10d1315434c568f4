"""
Validation Result Models

Shapes returned by the entry validator. Kept beside the record models
so the UI can render issues without importing the validator itself.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from sitebook.models.audit import utc_now
from sitebook.models.records import RecordKind


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (types, required fields, positive amounts)
    Stage 2: Semantic validation (dates, sanity ceilings, references)

    Warnings never block a save; errors always do.
    """

    kind: RecordKind
    validated_at: datetime = Field(default_factory=utc_now)

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    # The constructed record when stage 1 passed
    record: Optional[Any] = None

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]
