"""Tests for amount parsing and the two-stage entry validator."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from sitebook.models import (
    Attendance,
    Expense,
    FundingPool,
    Income,
    LabourPaymentType,
    LabourProfile,
    Partner,
    RecordKind,
    Snapshot,
    Vendor,
)
from sitebook.validation import (
    InvalidAmountError,
    RecordValidationError,
    RecordValidator,
    parse_amount,
)


@pytest.fixture
def validator(app_settings):
    return RecordValidator(app_settings)


@pytest.fixture
def snapshot():
    return Snapshot(
        labours=[LabourProfile(id="lab_1", name="Ramesh", daily_wage=Decimal("800"))],
        attendance=[Attendance(id="att_1", labour_id="lab_1", date=date(2024, 3, 1))],
        vendors=[Vendor(id="ven_1", name="Gupta Traders")],
    )


class TestParseAmount:
    """Tests for user-entered amounts."""

    @pytest.mark.parametrize("raw,expected", [
        ("1500", Decimal("1500")),
        ("1,500", Decimal("1500")),
        ("₹ 250.50", Decimal("250.50")),
        (" 42 ", Decimal("42")),
        (800, Decimal("800")),
        (Decimal("0.5"), Decimal("0.5")),
    ])
    def test_accepts_positive_numbers(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", [
        "", "   ", "abc", "12abc", "0", "-5", 0, -1, None, True, "NaN", "Infinity",
    ])
    def test_rejects_everything_else(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount(raw)


class TestSchemaStage:
    """Stage 1: construction and structural errors."""

    def test_valid_income(self, validator):
        result = validator.validate(
            RecordKind.INCOMES,
            {"date": "2024-03-01", "amount": "5000", "paid_by": "Dr. Salik"},
        )
        assert result.is_valid
        assert result.schema_valid and result.semantic_valid
        assert isinstance(result.record, Income)
        assert result.record.amount == Decimal("5000")
        assert result.record.paid_by == Partner.DR_SALIK

    def test_invalid_amount_blocks(self, validator):
        result = validator.validate(RecordKind.INCOMES, {"date": "2024-03-01", "amount": "abc"})
        assert not result.is_valid
        assert result.record is None
        assert [issue.field for issue in result.errors] == ["amount"]
        assert "valid amount" in result.errors[0].message

    def test_missing_date_blocks(self, validator):
        result = validator.validate(RecordKind.INCOMES, {"amount": "100"})
        assert not result.schema_valid
        assert any(issue.field == "date" for issue in result.errors)

    def test_unknown_paid_by_blocks(self, validator):
        result = validator.validate(
            RecordKind.EXPENSES,
            {"date": "2024-03-01", "amount": "100", "paid_by": "Somebody Else"},
        )
        assert not result.is_valid

    def test_camel_case_keys_are_accepted(self, validator):
        result = validator.validate(RecordKind.PAYMENTS, {
            "labourId": "lab_1",
            "date": "2024-03-01",
            "amount": 500,
            "type": "Advance",
            "paidBy": "Project Balance",
        })
        assert result.is_valid
        assert result.record.payment_type == LabourPaymentType.ADVANCE
        assert result.record.paid_by == FundingPool.PROJECT_BALANCE

    def test_zero_daily_wage_blocks(self, validator):
        result = validator.validate(RecordKind.LABOURS, {"name": "Raju", "daily_wage": "0"})
        assert not result.is_valid
        assert result.errors[0].field == "daily_wage"

    def test_wrong_record_type_blocks(self, validator):
        income = Income(date=date(2024, 3, 1), amount=Decimal("10"))
        result = validator.validate(RecordKind.EXPENSES, income)
        assert not result.is_valid
        assert result.errors[0].issue_type == "wrong_type"

    def test_record_instance_is_accepted(self, validator):
        expense = Expense(date=date(2024, 3, 1), amount=Decimal("10"))
        result = validator.validate(RecordKind.EXPENSES, expense)
        assert result.is_valid
        assert result.record.id == expense.id


class TestSemanticStage:
    """Stage 2: warnings that never block."""

    def test_future_date_warns(self, validator):
        future = date.today() + timedelta(days=5)
        result = validator.validate(RecordKind.INCOMES, {"date": future, "amount": "100"})
        assert result.is_valid
        assert any("future" in w for w in result.warnings)

    def test_date_within_tolerance_is_fine(self, validator):
        tomorrow = date.today() + timedelta(days=1)
        result = validator.validate(RecordKind.INCOMES, {"date": tomorrow, "amount": "100"})
        assert result.warnings == []

    def test_huge_amount_warns(self, validator):
        result = validator.validate(RecordKind.EXPENSES, {"date": "2024-03-01", "amount": "90000000"})
        assert result.is_valid
        assert any("unusually high" in w for w in result.warnings)

    def test_unknown_labour_warns(self, validator, snapshot):
        result = validator.validate(
            RecordKind.PAYMENTS,
            {"labour_id": "lab_nobody", "date": "2024-03-01", "amount": "100"},
            snapshot,
        )
        assert result.is_valid
        assert any(issue.issue_type == "unknown_reference" for issue in result.issues)

    def test_duplicate_attendance_warns(self, validator, snapshot):
        result = validator.validate(
            RecordKind.ATTENDANCE,
            {"labour_id": "lab_1", "date": "2024-03-01", "status": "Half-Day"},
            snapshot,
        )
        assert result.is_valid
        assert any(issue.issue_type == "potential_duplicate" for issue in result.issues)

    def test_re_saving_same_attendance_is_not_a_duplicate(self, validator, snapshot):
        result = validator.validate(
            RecordKind.ATTENDANCE,
            {"id": "att_1", "labour_id": "lab_1", "date": "2024-03-01"},
            snapshot,
        )
        assert result.warnings == []

    def test_high_overtime_warns(self, validator, snapshot):
        result = validator.validate(
            RecordKind.ATTENDANCE,
            {"labour_id": "lab_1", "date": "2024-03-02", "overtime_hours": "20"},
            snapshot,
        )
        assert any("overtime" in w for w in result.warnings)

    def test_unknown_vendor_warns(self, validator, snapshot):
        result = validator.validate(
            RecordKind.EXPENSES,
            {"date": "2024-03-01", "amount": "100", "vendor_id": "ven_missing"},
            snapshot,
        )
        assert any(issue.field == "vendor_id" for issue in result.issues)

    def test_known_vendor_is_fine(self, validator, snapshot):
        result = validator.validate(
            RecordKind.EXPENSES,
            {"date": "2024-03-01", "amount": "100", "vendor_id": "ven_1"},
            snapshot,
        )
        assert result.issues == []

    def test_unusual_sub_category_is_info_only(self, validator):
        result = validator.validate(RecordKind.EXPENSES, {
            "date": "2024-03-01", "amount": "100",
            "category": "Material", "sub_category": "Biryani",
        })
        assert result.is_valid
        assert result.warnings == []
        assert result.issues[0].severity == "info"

    def test_duplicate_labour_name_warns(self, validator, snapshot):
        result = validator.validate(
            RecordKind.LABOURS, {"name": "ramesh", "daily_wage": "700"}, snapshot
        )
        assert any(issue.field == "name" for issue in result.issues)


class TestValidateOrRaise:
    """Tests for the raising entry point and the summary text."""

    def test_returns_record(self, validator):
        record, result = validator.validate_or_raise(
            RecordKind.VENDORS, {"name": "Sharma Hardware"}
        )
        assert record.name == "Sharma Hardware"
        assert result.is_valid

    def test_raises_with_result(self, validator):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_or_raise(RecordKind.INCOMES, {"date": "2024-03-01", "amount": "-1"})
        assert exc_info.value.result.kind == RecordKind.INCOMES
        assert "incomes" in str(exc_info.value)

    def test_summary_for_clean_result(self, validator):
        result = validator.validate(RecordKind.INCOMES, {"date": "2024-03-01", "amount": "1"})
        assert validator.get_user_friendly_summary(result) == "✅ Saved."

    def test_summary_lists_errors_and_fixes(self, validator):
        result = validator.validate(RecordKind.INCOMES, {"date": "2024-03-01", "amount": "x"})
        summary = validator.get_user_friendly_summary(result)
        assert "could not be saved" in summary
        assert "greater than zero" in summary
