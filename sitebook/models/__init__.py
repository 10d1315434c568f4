"""
Data Models Package

This package contains all Pydantic models used in Sitebook.
Stored records, derived ledger shapes and audit events all live here.
"""

from sitebook.models.records import (
    NAMED_PARTNERS,
    RECORD_MODELS,
    SUB_CATEGORIES,
    Attendance,
    AttendanceStatus,
    Expense,
    ExpenseCategory,
    FundingPool,
    Income,
    IncomeSource,
    LabourPayment,
    LabourPaymentType,
    LabourProfile,
    PaidBy,
    Partner,
    PaymentMode,
    ProjectSettings,
    RecordKind,
    RecordModel,
    Snapshot,
    Vendor,
    as_partner,
    is_partner_funded,
    new_record_id,
)
from sitebook.models.ledger import (
    FundTotals,
    HistoryEntry,
    HistoryEntryKind,
    LabourStats,
    LedgerSummary,
    PartnerContribution,
)
from sitebook.models.validation import ValidationIssue, ValidationResult
from sitebook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "NAMED_PARTNERS",
    "RECORD_MODELS",
    "SUB_CATEGORIES",
    "Attendance",
    "AttendanceStatus",
    "Expense",
    "ExpenseCategory",
    "FundingPool",
    "Income",
    "IncomeSource",
    "LabourPayment",
    "LabourPaymentType",
    "LabourProfile",
    "PaidBy",
    "Partner",
    "PaymentMode",
    "ProjectSettings",
    "RecordKind",
    "RecordModel",
    "Snapshot",
    "Vendor",
    "as_partner",
    "is_partner_funded",
    "new_record_id",
    # Derived ledger models
    "FundTotals",
    "HistoryEntry",
    "HistoryEntryKind",
    "LabourStats",
    "LedgerSummary",
    "PartnerContribution",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
