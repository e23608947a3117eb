"""Service layer that refreshes household balances.

Fetches are async and run concurrently; everything computed from the fetched
data is delegated to the pure engine functions, so a refresh either produces
a complete new report or leaves the previous one untouched.
"""

import asyncio
import logging
from collections.abc import Coroutine, Sequence
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import ValidationError

from ..clients.supabase import HouseholdDataClient
from ..config import Settings
from ..db import Database
from ..exceptions import (
    BalanceRefreshError,
    HouseholdLedgerError,
    TransactionNotFoundError,
)
from ..models import (
    BalanceHealthCheck,
    BalanceReport,
    HouseholdMember,
    MemberBalance,
    MemberImpact,
    MemberStatus,
    ProblematicTransaction,
    Transaction,
    TransactionSplit,
)
from .aggregator import (
    aggregate,
    balance_health_check,
    build_member_balances,
    check_zero_sum,
    describe_impacts,
    reconcile,
    transaction_impacts,
    unknown_member_warnings,
)
from .classifier import balance_impacting_transactions
from .resolver import build_splits_index
from .validation import find_problematic_transactions

logger = logging.getLogger(__name__)

A = TypeVar("A")
B = TypeVar("B")


async def fetch_joined(
    first: Coroutine[Any, Any, A], second: Coroutine[Any, Any, B]
) -> tuple[A, B]:
    """
    Run two fetches concurrently and return both results.

    If either fails the other is cancelled and the first failure is raised.
    """
    try:
        async with asyncio.TaskGroup() as group:
            first_task = group.create_task(first)
            second_task = group.create_task(second)
    except ExceptionGroup as eg:
        raise eg.exceptions[0]

    return first_task.result(), second_task.result()


def build_report(
    household_id: str,
    transactions: Sequence[Transaction],
    members: Sequence[HouseholdMember],
    snapshot: Sequence[MemberBalance],
    splits: Sequence[TransactionSplit],
) -> BalanceReport:
    """
    Run the balance engine over one fetched snapshot of household data.

    This is a pure function: the same inputs always produce the same report
    (apart from ``computed_at``).
    """
    splits_index = build_splits_index(splits)
    approved_member_count = sum(
        1 for member in members if member.status is MemberStatus.APPROVED
    )

    impacting = balance_impacting_transactions(
        transactions, splits_index, approved_member_count
    )
    impacts: dict[str, list[MemberImpact]] = {}
    for transaction in impacting:
        breakdown = transaction_impacts(transaction, splits_index)
        if breakdown is not None:
            impacts[transaction.id] = breakdown

    totals = aggregate(transactions, splits_index, approved_member_count)

    warnings = []
    zero_sum_warning = check_zero_sum(totals)
    if zero_sum_warning:
        warnings.append(zero_sum_warning)
    warnings.extend(unknown_member_warnings(totals, members))
    warnings.extend(reconcile(totals, snapshot))

    return BalanceReport(
        household_id=household_id,
        balances=build_member_balances(members, totals, household_id),
        snapshot=list(snapshot),
        members=list(members),
        transactions=list(transactions),
        splits=splits_index,
        impacting_transactions=impacting,
        impacts=impacts,
        warnings=warnings,
    )


class BalanceService:
    """Service for refreshing and explaining household member balances."""

    def __init__(
        self,
        settings: Settings,
        client: HouseholdDataClient,
        database: Database | None = None,
    ):
        """Initialize the balance service."""
        self.settings = settings
        self.client = client
        self.db = database
        self._report: BalanceReport | None = None

    @property
    def report(self) -> BalanceReport | None:
        """The last successfully computed report, if any."""
        return self._report

    async def refresh(
        self, transactions: Sequence[Transaction] | None = None
    ) -> BalanceReport:
        """
        Fetch household data and recompute member balances from scratch.

        Args:
            transactions: The household's transactions, if the caller already
                has them; fetched otherwise

        Returns:
            The new report, which also replaces ``self.report``

        Raises:
            BalanceRefreshError: If any fetch fails. The previous report is kept.
        """
        household_id = self.settings.household_id

        try:
            if transactions is None:
                transactions, members = await fetch_joined(
                    self.client.fetch_transactions(household_id),
                    self.client.fetch_members(household_id),
                )
            else:
                members = await self.client.fetch_members(household_id)

            snapshot, splits = await fetch_joined(
                self.client.fetch_member_balances(household_id),
                self.client.fetch_all_splits_for_household(
                    household_id, [transaction.id for transaction in transactions]
                ),
            )
        except (HouseholdLedgerError, ValidationError) as e:
            logger.error(f"Failed to refresh balances: {e}")
            raise BalanceRefreshError(household_id, e) from e

        report = build_report(household_id, transactions, members, snapshot, splits)
        self._report = report

        logger.info(
            f"Computed balances for {len(report.balances)} members from "
            f"{len(report.impacting_transactions)} balance-impacting transactions "
            f"({len(report.warnings)} warnings)"
        )

        if self.db is not None:
            self.db.save_member_balances(
                household_id, report.balances, report.computed_at
            )

        return report

    def _require_report(self) -> BalanceReport:
        if self._report is None:
            raise HouseholdLedgerError("Balances have not been computed yet")
        return self._report

    def breakdown(self, transaction_id: str) -> list[tuple[str, Decimal]]:
        """
        Explain how one balance-impacting transaction moves member balances.

        Returns:
            (display name, net) pairs, largest magnitude first; empty when the
            transaction's split data hasn't loaded

        Raises:
            TransactionNotFoundError: If the transaction doesn't impact balances
        """
        report = self._require_report()
        if not any(t.id == transaction_id for t in report.impacting_transactions):
            raise TransactionNotFoundError(transaction_id)

        impacts = report.impacts.get(transaction_id, [])
        return describe_impacts(impacts, report.display_names)

    def health_check(self) -> tuple[BalanceHealthCheck, BalanceHealthCheck]:
        """Health of the (stored snapshot, computed) balances."""
        report = self._require_report()
        return balance_health_check(report.snapshot), balance_health_check(
            report.balances
        )

    def problematic_transactions(self) -> list[ProblematicTransaction]:
        """Transactions of the current report whose splits don't add up."""
        report = self._require_report()
        return find_problematic_transactions(report.transactions, report.splits)

    def cached_balances(self) -> list[MemberBalance]:
        """Balances saved by the last successful refresh, possibly an earlier run."""
        if self.db is None:
            return []
        return self.db.get_member_balances(self.settings.household_id)
