"""Household data client for the Supabase PostgREST API."""

import logging
from typing import Any

import httpx

from ..exceptions import DataServiceAPIError
from ..models import HouseholdMember, MemberBalance, Transaction, TransactionSplit

logger = logging.getLogger(__name__)


class HouseholdDataClient:
    """Read-only async client for a household's transactions, splits and balances."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the data client."""
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _select(
        self, resource: str, params: dict[str, str]
    ) -> list[dict[str, Any]]:
        """
        Run a PostgREST select against a table or view.

        Args:
            resource: Table or view name
            params: PostgREST query parameters (filters, order)

        Returns:
            Decoded JSON rows

        Raises:
            DataServiceAPIError: If the request fails or returns an error status
        """
        try:
            response = await self.client.get(
                f"/{resource}", params={"select": "*", **params}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Data service error fetching {resource}: {e}")
            logger.error(f"Response body: {e.response.text}")
            raise DataServiceAPIError(
                resource, str(e), status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching {resource}: {e}")
            raise DataServiceAPIError(resource, str(e)) from e

        try:
            rows: list[dict[str, Any]] = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {resource}: {response.text[:200]}")
            raise DataServiceAPIError(
                resource, f"invalid JSON: {e}", status_code=response.status_code
            ) from e

        logger.debug(f"Fetched {len(rows)} rows from {resource}")
        return rows

    async def fetch_transactions(self, household_id: str) -> list[Transaction]:
        """
        Get all transactions for a household, newest first.

        Args:
            household_id: The household ID

        Returns:
            Transactions ordered by date, then creation time, descending
        """
        rows = await self._select(
            "transactions_view",
            {
                "household_id": f"eq.{household_id}",
                "order": "date.desc,created_at.desc",
            },
        )
        return [Transaction.model_validate(row) for row in rows]

    async def fetch_members(self, household_id: str) -> list[HouseholdMember]:
        """Get every member of a household, in any status."""
        rows = await self._select(
            "household_members", {"household_id": f"eq.{household_id}"}
        )
        return [HouseholdMember.model_validate(row) for row in rows]

    async def fetch_member_balances(self, household_id: str) -> list[MemberBalance]:
        """Get the backend's authoritative balance snapshot for a household."""
        rows = await self._select(
            "member_balances", {"household_id": f"eq.{household_id}"}
        )
        return [MemberBalance.model_validate(row) for row in rows]

    async def fetch_all_splits_for_household(
        self, household_id: str, transaction_ids: list[str] | None = None
    ) -> list[TransactionSplit]:
        """
        Get the splits of every transaction in a household.

        Splits carry no household ID, so they are filtered by the household's
        transaction IDs.

        Args:
            household_id: The household ID
            transaction_ids: IDs of the household's transactions; fetched when
                not supplied

        Returns:
            Splits of all the household's transactions
        """
        if transaction_ids is None:
            transactions = await self.fetch_transactions(household_id)
            transaction_ids = [transaction.id for transaction in transactions]

        if not transaction_ids:
            return []

        rows = await self._select(
            "transaction_splits",
            {"transaction_id": f"in.({','.join(transaction_ids)})"},
        )
        return [TransactionSplit.model_validate(row) for row in rows]
