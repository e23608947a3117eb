"""Custom exceptions for Household Ledger."""


class HouseholdLedgerError(Exception):
    """Base exception for all Household Ledger errors."""

    pass


class ConfigurationError(HouseholdLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class APIError(HouseholdLedgerError):
    """Base class for API-related errors."""

    pass


class DataServiceAPIError(APIError):
    """Raised when a request to the household data service fails."""

    def __init__(self, resource: str, message: str, status_code: int | None = None):
        self.resource = resource
        self.status_code = status_code
        super().__init__(f"Failed to fetch {resource}: {message}")


class BalanceRefreshError(HouseholdLedgerError):
    """Raised when a balance refresh cannot complete.

    The previously computed report stays available on the service.
    """

    def __init__(self, household_id: str, cause: Exception):
        self.household_id = household_id
        self.cause = cause
        super().__init__(
            f"Balance refresh failed for household {household_id}: {cause}"
        )


class TransactionNotFoundError(HouseholdLedgerError):
    """Raised when a transaction is not among the balance-impacting transactions."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} does not impact member balances "
            f"(or was not found)"
        )
