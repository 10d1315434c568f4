"""Shared fixtures. Nothing here touches the network or the real environment."""

from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest

from sitebook.audit import AuditLogger
from sitebook.config import AppSettings, SyncSettings
from sitebook.models import (
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
    Snapshot,
)
from sitebook.orchestrator import BookkeepingService
from sitebook.services.storage import InMemoryAuditStorage, InMemoryRecordStore
from sitebook.services.sync import SheetMirrorInterface, SyncService


@pytest.fixture
def app_settings(tmp_path):
    return AppSettings(
        data_file=None,
        export_dir=str(tmp_path / "exports"),
        max_amount_inr=5000000.0,
        future_date_tolerance_days=1,
    )


@pytest.fixture
def sync_settings():
    return SyncSettings(backend="apps_script", script_url=None, retry_attempts=1)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def mirror():
    mock = Mock(spec=SheetMirrorInterface)
    mock.name = "test_mirror"
    return mock


@pytest.fixture
def service(app_settings, sync_settings, audit_logger, mirror):
    return BookkeepingService(
        store=InMemoryRecordStore(),
        sync_service=SyncService(mirror=mirror, settings=sync_settings, audit_logger=audit_logger),
        audit_logger=audit_logger,
        settings=app_settings,
    )


@pytest.fixture
def site_snapshot():
    """
    A small but complete project.

    Ramesh (800/day): 2 Present days, one with 4 OT hours, one Half-Day.
    Suresh (600/day): 1 Present day.
    """
    ramesh = LabourProfile(id="lab_ramesh", name="Ramesh", daily_wage=Decimal("800"))
    suresh = LabourProfile(id="lab_suresh", name="Suresh", work_type="Majdoor", daily_wage=Decimal("600"))

    return Snapshot(
        incomes=[
            Income(id="inc_1", date=date(2024, 3, 1), amount=Decimal("100000"),
                   paid_by=Partner.MASTER_MUJAHIR, remarks="First instalment"),
            Income(id="inc_2", date=date(2024, 3, 5), amount=Decimal("50000"),
                   paid_by=Partner.DR_SALIK),
        ],
        expenses=[
            Expense(id="exp_1", date=date(2024, 3, 2), amount=Decimal("30000"),
                    category=ExpenseCategory.MATERIAL, sub_category="Cement",
                    paid_to="Gupta Traders", paid_by=FundingPool.PROJECT_BALANCE),
            Expense(id="exp_2", date=date(2024, 3, 5), amount=Decimal("2000"),
                    category=ExpenseCategory.FOOD, paid_to="Tea stall",
                    paid_by=Partner.DR_SALIK),
        ],
        labours=[ramesh, suresh],
        attendance=[
            Attendance(id="att_1", labour_id="lab_ramesh", date=date(2024, 3, 1),
                       status=AttendanceStatus.PRESENT, overtime_hours=Decimal("4")),
            Attendance(id="att_2", labour_id="lab_ramesh", date=date(2024, 3, 2),
                       status=AttendanceStatus.PRESENT),
            Attendance(id="att_3", labour_id="lab_ramesh", date=date(2024, 3, 3),
                       status=AttendanceStatus.HALF_DAY),
            Attendance(id="att_4", labour_id="lab_suresh", date=date(2024, 3, 1),
                       status=AttendanceStatus.PRESENT),
        ],
        payments=[
            LabourPayment(id="pay_1", labour_id="lab_ramesh", date=date(2024, 3, 3),
                          amount=Decimal("1000"), payment_type=LabourPaymentType.ADVANCE,
                          paid_by=Partner.MASTER_MUJAHIR),
            LabourPayment(id="pay_2", labour_id="lab_suresh", date=date(2024, 3, 4),
                          amount=Decimal("600"), paid_by=FundingPool.PROJECT_BALANCE),
        ],
    )
