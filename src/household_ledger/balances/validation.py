"""Split integrity checks for expense and income transactions."""

import logging
from collections.abc import Iterable

from ..models import ProblematicTransaction, Transaction, TransactionType
from ..money import EPSILON, HUNDRED, ZERO
from .resolver import SplitsIndex

logger = logging.getLogger(__name__)

_SPLIT_TYPES = (TransactionType.EXPENSE, TransactionType.INCOME)


def find_problematic_transactions(
    transactions: Iterable[Transaction], splits_index: SplitsIndex
) -> list[ProblematicTransaction]:
    """
    Find transactions whose splits don't add up.

    A transaction is problematic when its paid or owed amounts don't sum to
    the transaction amount, or when owed percentages are recorded and don't
    sum to 100. Transactions with no split data are not reported.

    Args:
        transactions: Transactions to check, in display order
        splits_index: Splits grouped by transaction ID

    Returns:
        Problematic transactions, preserving input order
    """
    problems = []
    for transaction in transactions:
        if transaction.transaction_type not in _SPLIT_TYPES:
            continue

        splits = splits_index.get(transaction.id)
        if splits is None:
            continue

        owed_sum = sum((split.owed_amount for split in splits), ZERO)
        paid_sum = sum((split.paid_amount for split in splits), ZERO)
        owed_difference = transaction.amount - owed_sum
        paid_difference = transaction.amount - paid_sum

        percentages = [
            split.owed_percentage
            for split in splits
            if split.owed_percentage is not None
        ]
        percentage_sum = sum(percentages, ZERO) if percentages else None

        if (
            abs(owed_difference) <= EPSILON
            and abs(paid_difference) <= EPSILON
            and (percentage_sum is None or abs(percentage_sum - HUNDRED) <= EPSILON)
        ):
            continue

        logger.info(
            f"Splits of {transaction.transaction_type.value} {transaction.id} "
            f"don't sum to {transaction.amount} "
            f"(owed: {owed_sum}, paid: {paid_sum})"
        )
        problems.append(
            ProblematicTransaction(
                transaction_id=transaction.id,
                date=transaction.date,
                description=transaction.description,
                expected_amount=transaction.amount,
                actual_owed_sum=owed_sum,
                actual_paid_sum=paid_sum,
                owed_difference=owed_difference,
                paid_difference=paid_difference,
                owed_percentage_sum=percentage_sum,
            )
        )

    return problems
