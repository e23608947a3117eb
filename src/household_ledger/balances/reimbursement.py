"""Balance deltas caused by reimbursements linked to an expense."""

import logging
from collections.abc import Iterable

from ..models import MemberImpact, Transaction, TransactionSplit
from ..money import HUNDRED
from .resolver import rank_impacts

logger = logging.getLogger(__name__)


def reimbursement_impacts(
    reimbursement: Transaction,
    linked_expense_splits: Iterable[TransactionSplit],
) -> list[MemberImpact]:
    """
    Compute per-member deltas for a reimbursement of an earlier expense.

    The recipient (``paid_by_member_id``) is paid back, so their paid share
    drops by the full amount while their owed share drops by their own
    percentage. Every other member's owed share drops by their percentage.

    Example: A receives a $40 reimbursement on an expense owed 60/40 by A/B.
        A: -40 + 40 * 0.60 = -16
        B:       40 * 0.40 = +16

    Args:
        reimbursement: The linked reimbursement transaction
        linked_expense_splits: Splits of the expense it reimburses

    Returns:
        Non-zero impacts, largest magnitude first
    """
    amount = reimbursement.amount
    recipient_id = reimbursement.paid_by_member_id

    impacts = []
    for split in linked_expense_splits:
        if split.owed_percentage is None:
            logger.debug(
                f"Skipping member {split.member_id} for reimbursement "
                f"{reimbursement.id}: linked split has no owed percentage"
            )
            continue

        owed_reduction = amount * (split.owed_percentage / HUNDRED)

        if split.member_id == recipient_id:
            net = -amount + owed_reduction
        else:
            net = owed_reduction

        impacts.append(MemberImpact(member_id=split.member_id, net=net))

    return rank_impacts(impacts)
