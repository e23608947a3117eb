"""Decides which transactions move money between household members."""

from collections.abc import Iterable, Sequence
from typing import TypeVar

from ..models import PaidByType, SplitType, Transaction, TransactionType
from ..money import is_effectively_zero
from .resolver import SplitsIndex

T = TypeVar("T")


def impacts_balance(
    transaction: Transaction,
    splits_index: SplitsIndex,
    approved_member_count: int,
) -> bool:
    """
    Decide whether a transaction affects member balances.

    Rules are checked in order and the first match wins. Missing data never
    raises: a custom split whose splits haven't loaded yet is included so it
    isn't hidden from the user.

    Args:
        transaction: The transaction to classify
        splits_index: Splits grouped by transaction ID
        approved_member_count: Number of approved household members

    Returns:
        True if the transaction changes at least one member's balance
    """
    transaction_type = transaction.transaction_type

    # Settlements always move money between two members
    if transaction_type is TransactionType.SETTLEMENT:
        return True

    # Unlinked reimbursements are informational only
    if transaction_type is TransactionType.REIMBURSEMENT:
        return transaction.reimburses_transaction_id is not None

    if transaction_type is TransactionType.INCOME:
        return False

    split_type = transaction.split_type
    paid_by_type = transaction.paid_by_type

    # Payer pays 100% and owes 100%
    if split_type is SplitType.PAYER_ONLY:
        return False

    if split_type is SplitType.MEMBER_ONLY and paid_by_type is PaidByType.SINGLE:
        if transaction.split_member_id is None:
            return False
        return transaction.paid_by_member_id != transaction.split_member_id

    # Everyone pays and owes the same share
    if split_type is SplitType.EQUAL and paid_by_type is PaidByType.SHARED:
        return False

    if split_type is SplitType.EQUAL and paid_by_type is PaidByType.SINGLE:
        return approved_member_count > 1

    # Custom splits, member_only with shared payment, custom payment
    splits = splits_index.get(transaction.id)
    if splits is None:
        return True

    return any(not is_effectively_zero(split.net) for split in splits)


def balance_impacting_transactions(
    transactions: Iterable[Transaction],
    splits_index: SplitsIndex,
    approved_member_count: int,
) -> list[Transaction]:
    """Filter transactions to those that impact balances, keeping input order."""
    return [
        transaction
        for transaction in transactions
        if impacts_balance(transaction, splits_index, approved_member_count)
    ]


def preview(items: Sequence[T], limit: int) -> tuple[list[T], int]:
    """
    Truncate a list for display.

    Returns:
        Tuple of (first ``limit`` items, number of items left out)
    """
    shown = list(items[: max(limit, 0)])
    return shown, len(items) - len(shown)
