"""
Two-Stage Entry Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount parsing (non-numeric, zero and negative amounts are rejected)
- Required field presence
- Enum membership (mode, source, paid-by, status)
- This catches typos and malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- References to unknown labourers or vendors
- Duplicate attendance for the same worker and day
- This catches entries that are possible but probably wrong

WHY TWO STAGES:
1. Separation of concerns (structural vs logical)
2. Stage 2 needs a constructed record and the current snapshot
3. Stage 2 only warns; the ledger tolerates everything it flags

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the person entering the data can decide.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from pydantic import ValidationError

from sitebook.config import AppSettings, get_settings
from sitebook.models.records import (
    RECORD_MODELS,
    SUB_CATEGORIES,
    RecordKind,
    RecordModel,
    Snapshot,
)
from sitebook.models.validation import ValidationIssue, ValidationResult


# Form fields that carry money
AMOUNT_FIELDS = ("amount", "daily_wage", "dailyWage")

# Hours of overtime in one day that look like a typo
MAX_PLAUSIBLE_OVERTIME = Decimal("16")

INVALID_AMOUNT_MESSAGE = "Please enter a valid amount"


class InvalidAmountError(ValueError):
    """An amount is not a positive number."""
    pass


class RecordValidationError(Exception):
    """A record failed validation and was not saved."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.errors)
        super().__init__(f"Invalid {result.kind.value} entry: {messages}")


def parse_amount(raw: Any) -> Decimal:
    """
    Parse user input into a positive Decimal amount.

    Accepts numbers and numeric strings; thousands separators and a
    leading rupee sign are tolerated.

    Raises:
        InvalidAmountError: If the input is empty, not numeric, not
            finite, zero or negative
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidAmountError(INVALID_AMOUNT_MESSAGE)

    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip().replace(",", "").lstrip("₹").strip()
        if not text:
            raise InvalidAmountError(INVALID_AMOUNT_MESSAGE)
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(f"{INVALID_AMOUNT_MESSAGE}: {raw!r}")

    if not value.is_finite() or value <= 0:
        raise InvalidAmountError(f"{INVALID_AMOUNT_MESSAGE}: {raw!r}")

    return value


class RecordValidator:
    """
    Validates a record entry through a two-stage pipeline.

    Stage 1: Schema validation (no state needed)
    Stage 2: Semantic validation (reference checks need a snapshot)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        kind: RecordKind,
        data: Union[dict, RecordModel],
    ) -> tuple[Optional[RecordModel], list[ValidationIssue]]:
        """
        Stage 1: build the record model.

        Returns: (record_or_none, list_of_issues)
        """
        model = RECORD_MODELS[kind]
        issues = []

        if isinstance(data, RecordModel):
            if not isinstance(data, model):
                issues.append(ValidationIssue(
                    field="record",
                    issue_type="wrong_type",
                    message=f"{type(data).__name__} cannot be saved as {kind.value}",
                    severity="error",
                ))
                return None, issues
            data = data.model_dump()
        else:
            data = dict(data)

        # Amounts get a clear message before pydantic sees them
        for name in AMOUNT_FIELDS:
            if name not in data:
                continue
            try:
                data[name] = parse_amount(data[name])
            except InvalidAmountError as e:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="invalid_amount",
                    message=str(e),
                    severity="error",
                    suggested_fix="Enter a number greater than zero",
                ))

        if issues:
            return None, issues

        try:
            record = model.model_validate(data)
        except ValidationError as e:
            for error in e.errors():
                issues.append(ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "record",
                    issue_type=error["type"],
                    message=error["msg"],
                    severity="error",
                ))
            return None, issues

        return record, issues

    def _validate_semantic(
        self,
        kind: RecordKind,
        record: RecordModel,
        snapshot: Optional[Snapshot],
    ) -> list[ValidationIssue]:
        """
        Stage 2: warnings about plausible-but-suspicious entries.

        Checks:
        - Future dates
        - Absurd amounts
        - Overtime hours
        - Unknown labourer / vendor references
        - Duplicate attendance marks
        - Sub-categories outside the category's list
        """
        issues = []
        today = date.today()

        # Future date check (with tolerance)
        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        record_date = getattr(record, "date", None)
        if record_date and record_date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({record_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        # Absurd amount check
        max_amount = Decimal(str(self._settings.max_amount_inr))
        amount = getattr(record, "amount", None)
        if amount is not None and amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (₹{amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if kind == RecordKind.EXPENSES:
            allowed = SUB_CATEGORIES.get(record.category)
            if record.sub_category and allowed and record.sub_category not in allowed:
                issues.append(ValidationIssue(
                    field="sub_category",
                    issue_type="unusual_value",
                    message=(
                        f"'{record.sub_category}' is not a usual "
                        f"{record.category.value} sub-category"
                    ),
                    severity="info",
                ))

        if kind == RecordKind.ATTENDANCE and record.overtime_hours > MAX_PLAUSIBLE_OVERTIME:
            issues.append(ValidationIssue(
                field="overtime_hours",
                issue_type="suspicious_value",
                message=f"{record.overtime_hours} overtime hours in one day seems high",
                severity="warning",
                suggested_fix="Please verify the hours",
            ))

        if snapshot is not None:
            issues.extend(self._check_references(kind, record, snapshot))

        return issues

    def _check_references(
        self,
        kind: RecordKind,
        record: RecordModel,
        snapshot: Snapshot,
    ) -> list[ValidationIssue]:
        """Checks that need the current records."""
        issues = []

        if kind in (RecordKind.ATTENDANCE, RecordKind.PAYMENTS):
            known = {str(labour.id) for labour in snapshot.labours}
            if str(record.labour_id) not in known:
                issues.append(ValidationIssue(
                    field="labour_id",
                    issue_type="unknown_reference",
                    message=f"No labourer with id {record.labour_id}",
                    severity="warning",
                    suggested_fix="It will not count towards any worker's balance",
                ))

        if kind == RecordKind.ATTENDANCE:
            for existing in snapshot.attendance:
                if (
                    str(existing.id) != str(record.id)
                    and str(existing.labour_id) == str(record.labour_id)
                    and existing.date == record.date
                ):
                    issues.append(ValidationIssue(
                        field="date",
                        issue_type="potential_duplicate",
                        message=f"Attendance for this worker on {record.date} already exists",
                        severity="warning",
                        suggested_fix="Both marks will be counted",
                    ))
                    break

        if kind == RecordKind.EXPENSES and record.vendor_id:
            known = {str(vendor.id) for vendor in snapshot.vendors}
            if str(record.vendor_id) not in known:
                issues.append(ValidationIssue(
                    field="vendor_id",
                    issue_type="unknown_reference",
                    message=f"No vendor with id {record.vendor_id}",
                    severity="warning",
                ))

        if kind == RecordKind.LABOURS:
            name = record.name.lower()
            for existing in snapshot.labours:
                if str(existing.id) != str(record.id) and existing.name.lower() == name:
                    issues.append(ValidationIssue(
                        field="name",
                        issue_type="potential_duplicate",
                        message=f"A labourer named {record.name} already exists",
                        severity="warning",
                    ))
                    break

        return issues

    def validate(
        self,
        kind: RecordKind,
        data: Union[dict, RecordModel],
        snapshot: Optional[Snapshot] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            kind: Which collection the entry is for
            data: Raw form values (snake_case or camelCase) or a record
            snapshot: Current state, for reference and duplicate checks

        Returns:
            ValidationResult with all issues found and, if stage 1
            passed, the constructed record
        """
        record, all_issues = self._validate_schema(kind, data)
        schema_valid = record is not None

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_issues = self._validate_semantic(kind, record, snapshot)
            all_issues.extend(semantic_issues)
            semantic_valid = not any(i.severity == "error" for i in semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            kind=kind,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
            record=record,
        )

    def validate_or_raise(
        self,
        kind: RecordKind,
        data: Union[dict, RecordModel],
        snapshot: Optional[Snapshot] = None,
    ) -> tuple[RecordModel, ValidationResult]:
        """
        Validate and return the record, or raise.

        Raises:
            RecordValidationError: If any error-level issue was found
        """
        result = self.validate(kind, data, snapshot)
        if not result.is_valid:
            raise RecordValidationError(result)
        return result.record, result

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show next to the entry form.
        """
        if result.is_valid and not result.warnings:
            return "✅ Saved."

        lines = []

        if not result.is_valid:
            lines.append("❌ This entry could not be saved:")
            for issue in result.errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
