"""CLI commands for household member balances."""

import asyncio
import logging
import sys
from decimal import Decimal

import typer
from rich.console import Console
from rich.table import Table

from ..clients.supabase import HouseholdDataClient
from ..config import Settings, load_settings
from ..db import Database
from ..exceptions import BalanceRefreshError
from ..models import (
    BalanceHealthCheck,
    BalanceReport,
    MemberBalance,
    Transaction,
    TransactionType,
)
from .classifier import preview
from .service import BalanceService

app = typer.Typer(
    name="balances",
    help="Show who owes whom in the household and why",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Downgrade httpx logging to DEBUG (network requests are too noisy at INFO)
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def format_money(amount: Decimal, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    The spaces ensure decimal points align in tables.
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"($[red]{abs_amount:,.2f}[/red])"
        return f"(${abs_amount:,.2f})"
    if use_color:
        return f" [green]${abs_amount:,.2f}[/green] "
    return f" ${abs_amount:,.2f} "


async def _refresh(service: BalanceService) -> BalanceReport:
    async with service.client:
        return await service.refresh()


def _create_service(settings: Settings, db: Database) -> BalanceService:
    client = HouseholdDataClient(
        settings.supabase_url,
        settings.supabase_api_key,
        access_token=settings.supabase_access_token,
        timeout=settings.request_timeout,
    )
    return BalanceService(settings, client, db)


def display_balances(balances: list[MemberBalance], snapshot: list[MemberBalance]):
    """Display computed balances next to the stored snapshot."""
    stored = {entry.member_id: entry.balance for entry in snapshot}

    table = Table(title="Member Balances", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Balance", justify="right", width=14)
    table.add_column("Stored", justify="right", width=14, style="dim")
    table.add_column("", style="dim")

    for entry in balances:
        stored_balance = stored.get(entry.member_id)
        if entry.balance > 0:
            status = "owed to them"
        elif entry.balance < 0:
            status = "owes"
        else:
            status = "settled up"
        table.add_row(
            entry.display_name,
            format_money(entry.balance),
            format_money(stored_balance, use_color=False)
            if stored_balance is not None
            else "-",
            status,
        )

    console.print(table)


def display_impacting(transactions: list[Transaction]):
    """Display balance-impacting transactions."""
    table = Table(
        title="Balance-Impacting Transactions",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Date", style="dim", width=10)
    table.add_column("Type", width=13)
    table.add_column("Description", style="cyan", width=40)
    table.add_column("Amount", justify="right", width=12)
    table.add_column("ID", style="dim")

    for transaction in transactions:
        table.add_row(
            transaction.date.isoformat(),
            transaction.transaction_type.value,
            transaction.description,
            format_money(transaction.amount, use_color=False),
            transaction.id,
        )

    console.print(table)


def display_health(label: str, health: BalanceHealthCheck):
    """Display one balance health check result."""
    if health.status == "OK":
        console.print(
            f"  {label}: [green]OK[/green] ({health.member_count} members)"
        )
    else:
        console.print(f"  {label}: [red]IMBALANCED[/red] - {health.message}")


@app.command()
def show(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Show every member's balance.

    Balances are recomputed from the household's transactions and compared to
    the balances stored by the backend. If the refresh fails, the balances
    from the last successful refresh are shown instead.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = _create_service(settings, db)

        console.print("\n[bold blue]Refreshing balances...[/bold blue]")
        try:
            report = asyncio.run(_refresh(service))
        except BalanceRefreshError as e:
            console.print(f"\n[bold red]Refresh failed:[/bold red] {e}")
            cached = service.cached_balances()
            if not cached:
                sys.exit(1)
            computed_at = db.get_last_computed_at(settings.household_id)
            console.print(
                f"[yellow]Showing cached balances from {computed_at:%Y-%m-%d %H:%M} "
                f"(may be stale)[/yellow]\n"
            )
            display_balances(cached, [])
            return

        console.print()
        display_balances(report.balances, report.snapshot)

        if report.warnings:
            console.print("\n[bold yellow]Consistency warnings:[/bold yellow]")
            for warning in report.warnings:
                console.print(f"  [yellow]⚠️  {warning.message}[/yellow]")
        else:
            console.print("\n[green]✓ Computed balances match stored balances[/green]")

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def impacting(
    limit: int | None = typer.Option(
        None, "--limit", "-n", help="Maximum transactions to show"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List the transactions that move money between members."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = _create_service(settings, db)
        report = asyncio.run(_refresh(service))

        if not report.impacting_transactions:
            console.print("[yellow]No transactions impact member balances.[/yellow]")
            return

        shown, remaining = preview(
            report.impacting_transactions,
            limit if limit is not None else settings.impacting_preview_limit,
        )
        if shown:
            display_impacting(shown)
        if remaining:
            console.print(f"[dim]... and {remaining} more[/dim]")

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def explain(
    transaction_id: str = typer.Argument(..., help="Transaction ID to explain"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show how one transaction changes each member's balance."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = _create_service(settings, db)
        report = asyncio.run(_refresh(service))

        lines = service.breakdown(transaction_id)
        if not lines:
            transaction = next(
                t for t in report.impacting_transactions if t.id == transaction_id
            )
            if transaction.transaction_type is TransactionType.SETTLEMENT:
                message = "This settlement is missing its payer or recipient."
            else:
                message = "Split data for this transaction is not available yet."
            console.print(f"[yellow]{message}[/yellow]")
            return

        table = Table(title="Balance Impact", show_header=True, header_style="bold magenta")
        table.add_column("Member", style="cyan")
        table.add_column("Impact", justify="right", width=14)
        for display_name, net in lines:
            table.add_row(display_name, format_money(net))

        console.print(table)
        console.print(
            "[dim]Positive = paid more than their share (owed to them)[/dim]"
        )

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def health(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Check that balances sum to zero and that splits add up."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = _create_service(settings, db)
        asyncio.run(_refresh(service))

        stored_health, computed_health = service.health_check()
        console.print("\n[bold]Balance health:[/bold]")
        display_health("Stored", stored_health)
        display_health("Computed", computed_health)

        problems = service.problematic_transactions()
        if not problems:
            console.print("\n[green]✓ All transaction splits add up[/green]")
            return

        table = Table(
            title="Problem Transactions", show_header=True, header_style="bold magenta"
        )
        table.add_column("Date", style="dim", width=10)
        table.add_column("Description", style="cyan", width=40)
        table.add_column("Amount", justify="right", width=12)
        table.add_column("Owed Diff", justify="right", width=12)
        table.add_column("Paid Diff", justify="right", width=12)

        for problem in problems:
            table.add_row(
                problem.date.isoformat(),
                problem.description,
                format_money(problem.expected_amount, use_color=False),
                format_money(problem.owed_difference),
                format_money(problem.paid_difference),
            )

        console.print()
        console.print(table)

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if "db" in locals():
            db.close()
