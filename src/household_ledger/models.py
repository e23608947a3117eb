"""Pydantic domain models for Household Ledger."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .money import to_decimal

# ============================================================================
# Enums
# ============================================================================


class TransactionType(str, Enum):
    """Kind of household transaction."""

    EXPENSE = "expense"
    INCOME = "income"
    SETTLEMENT = "settlement"
    REIMBURSEMENT = "reimbursement"


class SplitType(str, Enum):
    """How the owed side of an expense is divided."""

    EQUAL = "equal"
    CUSTOM = "custom"
    PAYER_ONLY = "payer_only"  # payer owes 100%
    MEMBER_ONLY = "member_only"  # split_member_id owes 100%


class PaidByType(str, Enum):
    """How the paid side of an expense is divided."""

    SINGLE = "single"
    SHARED = "shared"
    CUSTOM = "custom"


class MemberStatus(str, Enum):
    """Membership status of a household member."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    INACTIVE = "inactive"


# ============================================================================
# Household Models
# ============================================================================


class HouseholdMember(BaseModel):
    """A member of a household."""

    model_config = ConfigDict(frozen=True)

    id: str
    household_id: str | None = None
    display_name: str
    role: str = "member"
    status: MemberStatus = MemberStatus.APPROVED


class Transaction(BaseModel):
    """A household transaction as returned by ``transactions_view``.

    Records are frozen: the engine treats a fetched batch as immutable for
    the duration of one computation pass.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    household_id: str | None = None
    date: date
    description: str = ""
    amount: Decimal = Field(ge=0)
    transaction_type: TransactionType = TransactionType.EXPENSE
    split_type: SplitType = SplitType.EQUAL
    paid_by_type: PaidByType = PaidByType.SINGLE
    paid_by_member_id: str | None = None
    paid_to_member_id: str | None = None  # settlement only
    split_member_id: str | None = None  # member_only only
    reimburses_transaction_id: str | None = None  # reimbursement only
    excluded_from_budget: bool = False
    notes: str | None = None

    # Joined fields
    paid_by_name: str | None = None
    paid_to_name: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v):
        """Parse JSON numbers without float artifacts."""
        return to_decimal(v) if isinstance(v, float) else v


class TransactionSplit(BaseModel):
    """One member's paid and owed share of a transaction."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    transaction_id: str
    member_id: str
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    owed_amount: Decimal = Field(default=Decimal("0"), ge=0)
    owed_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    paid_percentage: Decimal | None = Field(default=None, ge=0, le=100)

    @field_validator(
        "paid_amount",
        "owed_amount",
        "owed_percentage",
        "paid_percentage",
        mode="before",
    )
    @classmethod
    def parse_amounts(cls, v):
        """Parse JSON numbers without float artifacts."""
        return to_decimal(v) if isinstance(v, float) else v

    @property
    def net(self) -> Decimal:
        """Paid minus owed (positive = paid more than their share)."""
        return self.paid_amount - self.owed_amount


class MemberBalance(BaseModel):
    """A member's signed balance (positive = owed to the member)."""

    model_config = ConfigDict(frozen=True)

    household_id: str | None = None
    member_id: str
    display_name: str
    total_paid: Decimal | None = None  # only on backend snapshots
    total_share: Decimal | None = None
    balance: Decimal


# ============================================================================
# Engine Output Models
# ============================================================================


class MemberImpact(BaseModel):
    """One member's net delta caused by a single transaction."""

    model_config = ConfigDict(frozen=True)

    member_id: str
    net: Decimal


class BalanceWarning(BaseModel):
    """A non-fatal consistency problem found while computing balances."""

    kind: Literal["zero_sum", "snapshot_mismatch", "unknown_member"]
    member_id: str | None = None
    expected: Decimal | None = None
    actual: Decimal | None = None
    difference: Decimal
    message: str


class BalanceHealthCheck(BaseModel):
    """Whether a set of member balances sums to zero."""

    total_imbalance: Decimal
    member_count: int
    status: Literal["OK", "IMBALANCED"]
    message: str | None = None


class ProblematicTransaction(BaseModel):
    """A transaction whose splits do not add up to its amount."""

    transaction_id: str
    date: date
    description: str
    expected_amount: Decimal
    actual_owed_sum: Decimal
    actual_paid_sum: Decimal
    owed_difference: Decimal
    paid_difference: Decimal
    owed_percentage_sum: Decimal | None = None


class BalanceReport(BaseModel):
    """The result of one balance refresh.

    A new report replaces the previous one wholesale; it is never patched.
    """

    model_config = ConfigDict(frozen=True)

    household_id: str
    computed_at: datetime = Field(default_factory=datetime.now)
    balances: list[MemberBalance]
    snapshot: list[MemberBalance] = Field(default_factory=list)
    members: list[HouseholdMember] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    splits: dict[str, list[TransactionSplit]] = Field(default_factory=dict)
    impacting_transactions: list[Transaction] = Field(default_factory=list)
    impacts: dict[str, list[MemberImpact]] = Field(default_factory=dict)
    warnings: list[BalanceWarning] = Field(default_factory=list)

    @property
    def display_names(self) -> dict[str, str]:
        """Member id to display name, preferring the member list."""
        names = {balance.member_id: balance.display_name for balance in self.snapshot}
        names.update({member.id: member.display_name for member in self.members})
        return names
