"""
Tests for Sitebook

Test strategy:
1. Unit tests for individual components (models, engine, validators)
2. Integration tests for flows (with mocked external services)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from sitebook.models import (
    NAMED_PARTNERS,
    RECORD_MODELS,
    SUB_CATEGORIES,
    Attendance,
    AttendanceStatus,
    Expense,
    ExpenseCategory,
    FundingPool,
    Income,
    LabourPayment,
    LabourPaymentType,
    LabourProfile,
    Partner,
    ProjectSettings,
    RecordKind,
    Snapshot,
    ValidationIssue,
    ValidationResult,
    as_partner,
    is_partner_funded,
    new_record_id,
)


class TestPaidBy:
    """Tests for the partner / pool distinction."""

    def test_named_partners(self):
        assert NAMED_PARTNERS == (Partner.MASTER_MUJAHIR, Partner.DR_SALIK)

    @pytest.mark.parametrize("value", ["Master Mujahir", "Dr. Salik", Partner.DR_SALIK])
    def test_partners_are_partner_funded(self, value):
        assert is_partner_funded(value)
        assert as_partner(value) in NAMED_PARTNERS

    @pytest.mark.parametrize("value", ["Project Balance", "Other", FundingPool.OTHER, "", None])
    def test_pools_are_not(self, value):
        assert not is_partner_funded(value)
        assert as_partner(value) is None

    def test_paid_by_parses_into_the_right_enum(self):
        expense = Expense(date=date(2024, 1, 1), amount=Decimal("1"), paid_by="Other")
        assert expense.paid_by is FundingPool.OTHER
        income = Income(date=date(2024, 1, 1), amount=Decimal("1"), paid_by="Dr. Salik")
        assert income.paid_by is Partner.DR_SALIK


class TestRecordModels:
    """Tests for the stored record schemas."""

    def test_defaults_follow_the_entry_forms(self):
        income = Income(date=date(2024, 1, 1), amount=Decimal("100"))
        assert income.paid_by == Partner.MASTER_MUJAHIR
        assert income.id.startswith("inc_")

        payment = LabourPayment(labour_id="lab_1", date=date(2024, 1, 1), amount=Decimal("100"))
        assert payment.paid_by == FundingPool.PROJECT_BALANCE
        assert payment.payment_type == LabourPaymentType.FULL_PAYMENT

        expense = Expense(date=date(2024, 1, 1), amount=Decimal("100"))
        assert expense.paid_by == FundingPool.PROJECT_BALANCE

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-100")])
    def test_non_positive_amounts_are_rejected(self, amount):
        with pytest.raises(ValidationError):
            Income(date=date(2024, 1, 1), amount=amount)

    def test_negative_overtime_is_rejected(self):
        with pytest.raises(ValidationError):
            Attendance(labour_id="lab_1", date=date(2024, 1, 1), overtime_hours=Decimal("-1"))

    def test_whitespace_is_stripped(self):
        labour = LabourProfile(name="  Ramesh  ", daily_wage=Decimal("800"))
        assert labour.name == "Ramesh"

    def test_camel_case_in_and_out(self):
        payment = LabourPayment.model_validate({
            "labourId": 12,
            "date": "2024-03-01",
            "amount": "1500.5",
            "type": "Advance",
            "paidBy": "Master Mujahir",
        })
        assert payment.labour_id == "12"

        dumped = payment.to_json_dict()
        assert dumped["labourId"] == "12"
        assert dumped["type"] == "Advance"
        assert dumped["amount"] == 1500.5
        assert dumped["date"] == "2024-03-01"

    def test_whole_amounts_serialise_as_int(self):
        dumped = Income(date=date(2024, 1, 1), amount=Decimal("5000.00")).to_json_dict()
        assert dumped["amount"] == 5000
        assert isinstance(dumped["amount"], int)

    def test_python_dump_keeps_decimal(self):
        income = Income(date=date(2024, 1, 1), amount=Decimal("5000"))
        assert isinstance(income.model_dump()["amount"], Decimal)

    def test_attendance_status_values(self):
        assert AttendanceStatus("Half-Day") == AttendanceStatus.HALF_DAY

    def test_record_ids_are_unique(self):
        assert new_record_id("exp") != new_record_id("exp")

    def test_sub_categories(self):
        assert "Cement" in SUB_CATEGORIES[ExpenseCategory.MATERIAL]
        assert ExpenseCategory.OTHER not in SUB_CATEGORIES

    def test_every_kind_has_a_model(self):
        assert set(RECORD_MODELS) == set(RecordKind)


class TestProjectSettings:
    """Tests for project-level preferences."""

    def test_defaults(self):
        settings = ProjectSettings()
        assert settings.school_name == "Construction Project"
        assert settings.language == "en"
        assert settings.auto_sync is False
        assert settings.google_sheet_url is None

    def test_language_is_restricted(self):
        with pytest.raises(ValidationError):
            ProjectSettings(language="fr")

    def test_camel_case_keys(self):
        settings = ProjectSettings.model_validate({"schoolName": "EVS", "autoSync": True})
        assert settings.school_name == "EVS"
        assert settings.to_json_dict()["autoSync"] is True


class TestSnapshot:
    """Tests for the whole-state container."""

    def test_empty(self):
        snapshot = Snapshot()
        assert all(snapshot.records(kind) == [] for kind in RecordKind)

    def test_unknown_keys_are_ignored(self):
        snapshot = Snapshot.model_validate({"incomes": [], "theme": "dark"})
        assert snapshot.incomes == []

    def test_collections_json_excludes_settings(self, site_snapshot):
        collections = site_snapshot.collections_json()
        assert set(collections) == {kind.value for kind in RecordKind}
        assert collections["expenses"][0]["paidTo"] == "Gupta Traders"


class TestValidationResult:
    """Tests for validation result models."""

    def test_issue_severity_is_restricted(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="amount", issue_type="x", message="m", severity="fatal")

    def test_errors_property(self):
        result = ValidationResult(
            kind=RecordKind.INCOMES,
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(field="date", issue_type="future_date", message="m", severity="warning"),
                ValidationIssue(field="amount", issue_type="bad", message="m", severity="error"),
            ],
        )
        assert [issue.field for issue in result.errors] == ["amount"]
