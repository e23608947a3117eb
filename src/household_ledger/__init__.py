"""Household Ledger - Member balances for shared household finances."""

__version__ = "0.1.0"

from .balances.aggregator import aggregate, transaction_impacts
from .balances.classifier import balance_impacting_transactions, impacts_balance
from .balances.reimbursement import reimbursement_impacts
from .balances.resolver import build_splits_index, per_member_impacts
from .balances.service import BalanceService
from .config import Settings, load_settings
from .db import Database
from .models import (
    MemberBalance,
    MemberImpact,
    Transaction,
    TransactionSplit,
)

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "MemberBalance",
    "MemberImpact",
    "Transaction",
    "TransactionSplit",
    "aggregate",
    "transaction_impacts",
    "balance_impacting_transactions",
    "impacts_balance",
    "reimbursement_impacts",
    "build_splits_index",
    "per_member_impacts",
    "BalanceService",
]
