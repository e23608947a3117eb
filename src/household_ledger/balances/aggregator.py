"""Aggregation of per-transaction impacts into member balances.

Balances form a closed system: every credit has an equal debit, so the
computed balances of a household must sum to zero. The aggregate is
advisory; it is cross-checked against the backend's ``member_balances``
snapshot and any disagreement is reported, never written back.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal

from ..models import (
    BalanceHealthCheck,
    BalanceWarning,
    HouseholdMember,
    MemberBalance,
    MemberImpact,
    MemberStatus,
    Transaction,
    TransactionType,
)
from ..money import DISCREPANCY_THRESHOLD, ZERO, round_cents
from .classifier import balance_impacting_transactions
from .reimbursement import reimbursement_impacts
from .resolver import SplitsIndex, per_member_impacts

logger = logging.getLogger(__name__)


def transaction_impacts(
    transaction: Transaction, splits_index: SplitsIndex
) -> list[MemberImpact] | None:
    """
    Compute the per-member breakdown of a single transaction.

    Args:
        transaction: The transaction to break down
        splits_index: Splits grouped by transaction ID

    Returns:
        Impacts largest magnitude first, or None when the breakdown can't be
        computed yet (split data not loaded, settlement missing a member)
    """
    transaction_type = transaction.transaction_type

    if transaction_type is TransactionType.EXPENSE:
        splits = splits_index.get(transaction.id)
        if splits is None:
            return None
        return per_member_impacts(splits)

    if transaction_type is TransactionType.SETTLEMENT:
        payer_id = transaction.paid_by_member_id
        recipient_id = transaction.paid_to_member_id
        if payer_id is None or recipient_id is None:
            return None
        return [
            MemberImpact(member_id=payer_id, net=transaction.amount),
            MemberImpact(member_id=recipient_id, net=-transaction.amount),
        ]

    if transaction_type is TransactionType.REIMBURSEMENT:
        linked_id = transaction.reimburses_transaction_id
        if linked_id is None:
            return []
        linked_splits = splits_index.get(linked_id)
        if not linked_splits:
            return None
        return reimbursement_impacts(transaction, linked_splits)

    # Income never moves money between members
    return []


def count_members(splits_index: SplitsIndex) -> int:
    """Count distinct members appearing anywhere in the split index."""
    return len(
        {split.member_id for splits in splits_index.values() for split in splits}
    )


def aggregate(
    transactions: Iterable[Transaction],
    splits_index: SplitsIndex,
    approved_member_count: int | None = None,
) -> dict[str, Decimal]:
    """
    Fold balance-impacting transactions into per-member balances.

    Transactions that impact balances but have no split data yet are
    skipped here even though the classifier includes them for display.

    Args:
        transactions: All transactions of the household
        splits_index: Splits grouped by transaction ID
        approved_member_count: Approved members in the household; defaults to
            the number of distinct members in the split index

    Returns:
        Mapping of member ID to signed balance (positive = owed to member)
    """
    if approved_member_count is None:
        approved_member_count = count_members(splits_index)

    balances: dict[str, Decimal] = {}
    for transaction in balance_impacting_transactions(
        transactions, splits_index, approved_member_count
    ):
        impacts = transaction_impacts(transaction, splits_index)
        if impacts is None:
            logger.debug(
                f"Skipping {transaction.transaction_type.value} {transaction.id} "
                f"from aggregation: split data not available"
            )
            continue

        for impact in impacts:
            balances[impact.member_id] = (
                balances.get(impact.member_id, ZERO) + impact.net
            )

    return balances


def describe_impacts(
    impacts: Iterable[MemberImpact], display_names: Mapping[str, str]
) -> list[tuple[str, Decimal]]:
    """Pair each impact with the member's display name (ID if unknown)."""
    return [
        (display_names.get(impact.member_id, impact.member_id), impact.net)
        for impact in impacts
    ]


def build_member_balances(
    members: Sequence[HouseholdMember],
    balances: Mapping[str, Decimal],
    household_id: str | None = None,
) -> list[MemberBalance]:
    """
    Build the full member balance list for a household.

    Every approved member gets an entry (zero if untouched). Members in any
    other status appear only while they carry a non-zero balance, so the
    list still sums to zero after someone leaves.

    Returns:
        Member balances sorted by display name
    """
    result = []
    seen = set()
    for member in members:
        balance = balances.get(member.id, ZERO)
        seen.add(member.id)
        if member.status is not MemberStatus.APPROVED and balance == ZERO:
            continue
        result.append(
            MemberBalance(
                household_id=household_id,
                member_id=member.id,
                display_name=member.display_name,
                balance=balance,
            )
        )

    for member_id, balance in balances.items():
        if member_id not in seen and balance != ZERO:
            result.append(
                MemberBalance(
                    household_id=household_id,
                    member_id=member_id,
                    display_name=member_id,
                    balance=balance,
                )
            )

    return sorted(result, key=lambda entry: entry.display_name)


def check_zero_sum(
    balances: Mapping[str, Decimal], tolerance: Decimal = DISCREPANCY_THRESHOLD
) -> BalanceWarning | None:
    """Return a warning if the balances don't sum to zero within tolerance."""
    total = sum(balances.values(), ZERO)
    if abs(total) <= tolerance:
        return None

    warning = BalanceWarning(
        kind="zero_sum",
        expected=ZERO,
        actual=total,
        difference=total,
        message=f"Member balances do not sum to zero (total: {round_cents(total)})",
    )
    logger.warning(warning.message)
    return warning


def reconcile(
    balances: Mapping[str, Decimal],
    snapshot: Sequence[MemberBalance],
    tolerance: Decimal = DISCREPANCY_THRESHOLD,
) -> list[BalanceWarning]:
    """
    Compare computed balances with the backend's snapshot.

    A member missing on either side counts as a zero balance there.

    Returns:
        One warning per member whose balances differ by more than tolerance
    """
    snapshot_by_member = {entry.member_id: entry for entry in snapshot}
    member_ids = list(snapshot_by_member)
    member_ids.extend(
        member_id for member_id in balances if member_id not in snapshot_by_member
    )

    warnings = []
    for member_id in member_ids:
        entry = snapshot_by_member.get(member_id)
        expected = entry.balance if entry else ZERO
        actual = balances.get(member_id, ZERO)
        difference = actual - expected
        if abs(difference) <= tolerance:
            continue

        name = entry.display_name if entry else member_id
        warning = BalanceWarning(
            kind="snapshot_mismatch",
            member_id=member_id,
            expected=expected,
            actual=actual,
            difference=difference,
            message=(
                f"Computed balance for {name} ({round_cents(actual)}) differs from "
                f"stored balance ({round_cents(expected)}) by {round_cents(difference)}"
            ),
        )
        logger.warning(warning.message)
        warnings.append(warning)

    return warnings


def unknown_member_warnings(
    balances: Mapping[str, Decimal], members: Sequence[HouseholdMember]
) -> list[BalanceWarning]:
    """Warn about non-zero balances held by IDs that aren't household members."""
    known = {member.id for member in members}
    warnings = []
    for member_id, balance in balances.items():
        if member_id in known or balance == ZERO:
            continue
        warning = BalanceWarning(
            kind="unknown_member",
            member_id=member_id,
            actual=balance,
            difference=balance,
            message=(
                f"Balance {round_cents(balance)} belongs to unknown member {member_id}"
            ),
        )
        logger.warning(warning.message)
        warnings.append(warning)
    return warnings


def balance_health_check(balances: Sequence[MemberBalance]) -> BalanceHealthCheck:
    """Check that a household's member balances sum to zero."""
    total = sum((entry.balance for entry in balances), ZERO)
    if abs(total) < DISCREPANCY_THRESHOLD:
        return BalanceHealthCheck(
            total_imbalance=total, member_count=len(balances), status="OK"
        )

    return BalanceHealthCheck(
        total_imbalance=total,
        member_count=len(balances),
        status="IMBALANCED",
        message=(
            f"Member balances do not sum to zero. "
            f"Total imbalance: {round_cents(total)}"
        ),
    )
