"""
Core Record Models for Sitebook

These models define the schemas for every record a user enters:
fund injections, expenses, vendors, labourers, attendance and wage
payments, plus the project-level settings that travel with backups.

They are designed to:
1. Reject bad money values at entry (the ledger never re-validates)
2. Round-trip the camelCase JSON shape used by backups and sheet sync
3. Treat record ids as opaque text, whatever the source wrote

DESIGN DECISION: `paid_by` is a tagged variant, `Partner | FundingPool`,
rather than one flat enumeration. A payment either came out of a named
partner's pocket or out of a pool; `is_partner_funded` is the one place
that decides which.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PaymentMode(str, Enum):
    """How money changed hands."""
    CASH = "Cash"
    BANK = "Bank"
    UPI = "UPI"
    CHECK = "Check"


class IncomeSource(str, Enum):
    """Nature of a direct fund injection."""
    INVESTMENT = "Investment"
    LOAN = "Loan"
    DONATION = "Donation"
    OTHER = "Other"


class ExpenseCategory(str, Enum):
    """Top-level expense categories."""
    MATERIAL = "Material"
    LABOUR = "Labour"
    FOOD = "Food"
    TRANSPORT = "Transport"
    UTILITY = "Utility"
    CONTRACTOR = "Contractor"
    OTHER = "Other"


class AttendanceStatus(str, Enum):
    """Daily attendance mark for a labourer."""
    PRESENT = "Present"
    ABSENT = "Absent"
    HALF_DAY = "Half-Day"


class LabourPaymentType(str, Enum):
    """Whether a wage payment is an advance or a settlement."""
    ADVANCE = "Advance"
    FULL_PAYMENT = "Full Payment"


class Partner(str, Enum):
    """
    The named partners funding the project.

    Money paid by one of these came out of a personal pocket.
    """
    MASTER_MUJAHIR = "Master Mujahir"
    DR_SALIK = "Dr. Salik"


class FundingPool(str, Enum):
    """Funding sources that are not a named partner."""
    PROJECT_BALANCE = "Project Balance"  # the shared project fund
    OTHER = "Other"


class RecordKind(str, Enum):
    """Record collections held by the store, keyed as in backup files."""
    INCOMES = "incomes"
    EXPENSES = "expenses"
    LABOURS = "labours"
    ATTENDANCE = "attendance"
    PAYMENTS = "payments"
    VENDORS = "vendors"


PaidBy = Union[Partner, FundingPool]

# The only definition of "named (non-pool) partners".
NAMED_PARTNERS: tuple[Partner, ...] = tuple(Partner)

# Half-day attendance counts as this fraction of a day.
HALF_DAY_WEIGHT = Decimal("0.5")

# Overtime is paid per hour at daily wage / this many hours.
STANDARD_DAY_HOURS = Decimal("8")


LABOUR_SUB_CATEGORIES = (
    "Mistry", "Majdoor", "Plumber", "Electrician", "Painter", "Carpenter",
)
MATERIAL_SUB_CATEGORIES = (
    "Cement", "Saria", "Sand/Bajri", "Grit", "Bricks", "Tiles", "Paint",
    "Hardware", "Electrical", "Plumbing", "Other Material",
)
FOOD_SUB_CATEGORIES = (
    "Tea/Snacks", "Lunch", "Dinner", "Water", "Other Food",
)

SUB_CATEGORIES: dict[ExpenseCategory, tuple[str, ...]] = {
    ExpenseCategory.LABOUR: LABOUR_SUB_CATEGORIES,
    ExpenseCategory.MATERIAL: MATERIAL_SUB_CATEGORIES,
    ExpenseCategory.FOOD: FOOD_SUB_CATEGORIES,
}


def as_partner(paid_by: Any) -> Optional[Partner]:
    """Return the named partner behind `paid_by`, or None for a pool."""
    if isinstance(paid_by, Partner):
        return paid_by
    try:
        return Partner(paid_by)
    except ValueError:
        return None


def is_partner_funded(paid_by: Any) -> bool:
    """
    True when the money came out of a named partner's own pocket.

    This is the implicit-income rule: such an outflow is also that
    partner's contribution to project income.
    """
    return as_partner(paid_by) is not None


def new_record_id(prefix: str) -> str:
    """Generate an opaque record id such as ``inc_3f2a9c1b7d``."""
    return f"{prefix}_{uuid4().hex[:10]}"


def _money_to_json(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimal in Python, plain number in JSON
Money = Annotated[
    Decimal,
    PlainSerializer(_money_to_json, return_type=Union[int, float], when_used="json"),
]


# =============================================================================
# RECORD MODELS
# =============================================================================

class RecordModel(BaseModel):
    """
    Base for every stored record.

    Accepts both snake_case and camelCase keys and stringifies numeric
    ids, so backups written by older clients still load.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


class Income(RecordModel):
    """A direct cash or bank injection into the project fund."""

    id: str = Field(default_factory=lambda: new_record_id("inc"))
    date: date
    amount: Money = Field(..., gt=0, description="Amount in INR")
    source: IncomeSource = IncomeSource.INVESTMENT
    paid_by: PaidBy = Partner.MASTER_MUJAHIR
    mode: PaymentMode = PaymentMode.CASH
    remarks: str = ""
    synced: bool = False


class Expense(RecordModel):
    """
    A cash outflow.

    `paid_by` records who actually disbursed the cash: the pool or a
    partner personally.
    """

    id: str = Field(default_factory=lambda: new_record_id("exp"))
    date: date
    amount: Money = Field(..., gt=0, description="Amount in INR")
    category: ExpenseCategory = ExpenseCategory.OTHER
    sub_category: Optional[str] = None
    paid_to: str = ""
    paid_by: PaidBy = FundingPool.PROJECT_BALANCE
    vendor_id: Optional[str] = None
    mode: PaymentMode = PaymentMode.CASH
    notes: str = ""
    synced: bool = False


class Vendor(RecordModel):
    """A supplier that expenses can point at."""

    id: str = Field(default_factory=lambda: new_record_id("ven"))
    name: str = Field(..., min_length=1, max_length=200)
    category: ExpenseCategory = ExpenseCategory.MATERIAL
    mobile: Optional[str] = None


class LabourProfile(RecordModel):
    """A worker and their daily wage rate."""

    id: str = Field(default_factory=lambda: new_record_id("lab"))
    name: str = Field(..., min_length=1, max_length=200)
    mobile: str = ""
    work_type: str = "Mistry"
    daily_wage: Money = Field(..., gt=0, description="Wage per full day in INR")


class Attendance(RecordModel):
    """One attendance mark for one worker on one day."""

    id: str = Field(default_factory=lambda: new_record_id("att"))
    labour_id: str
    date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)


class LabourPayment(RecordModel):
    """A disbursement to a worker, from the pool or a partner's pocket."""

    id: str = Field(default_factory=lambda: new_record_id("pay"))
    labour_id: str
    date: date
    amount: Money = Field(..., gt=0, description="Amount in INR")
    payment_type: LabourPaymentType = Field(
        default=LabourPaymentType.FULL_PAYMENT,
        alias="type",
    )
    mode: PaymentMode = PaymentMode.CASH
    paid_by: PaidBy = FundingPool.PROJECT_BALANCE


class ProjectSettings(RecordModel):
    """User-editable project preferences, saved alongside the records."""

    school_name: str = Field(
        default="Construction Project",
        description="Project name; also used as the synced sheet name"
    )
    location: str = ""
    budget: Money = Field(default=Decimal("0"), ge=0)
    language: Literal["en", "hi"] = "en"
    auto_sync: bool = False
    sync_email: Optional[str] = None
    google_sheet_url: Optional[str] = Field(
        default=None,
        description="Apps Script web-app URL that receives pushes"
    )
    google_sheet_link: Optional[str] = Field(
        default=None,
        description="Human-facing link to the mirrored spreadsheet"
    )


RECORD_MODELS: dict[RecordKind, type[RecordModel]] = {
    RecordKind.INCOMES: Income,
    RecordKind.EXPENSES: Expense,
    RecordKind.LABOURS: LabourProfile,
    RecordKind.ATTENDANCE: Attendance,
    RecordKind.PAYMENTS: LabourPayment,
    RecordKind.VENDORS: Vendor,
}


class Snapshot(RecordModel):
    """
    The complete application state at one moment.

    This is the unit of backup/restore and of sheet sync. Unknown keys
    in imported files are ignored.
    """
    model_config = ConfigDict(extra="ignore")

    incomes: list[Income] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    labours: list[LabourProfile] = Field(default_factory=list)
    attendance: list[Attendance] = Field(default_factory=list)
    payments: list[LabourPayment] = Field(default_factory=list)
    vendors: list[Vendor] = Field(default_factory=list)
    settings: ProjectSettings = Field(default_factory=ProjectSettings)

    def records(self, kind: RecordKind) -> list:
        """Get the collection for a record kind."""
        return getattr(self, kind.value)

    def collections_json(self) -> dict[str, list[dict]]:
        """All record collections (no settings) as camelCase JSON dicts."""
        return {
            kind.value: [record.to_json_dict() for record in self.records(kind)]
            for kind in RecordKind
        }
