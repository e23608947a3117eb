"""CLI for Household Ledger."""

import typer

from .balances.cli import app as balances_app

app = typer.Typer(
    name="household-ledger",
    help="Shared household finances: who owes whom",
)

app.add_typer(balances_app, name="balances", help="Member balances and their causes")


if __name__ == "__main__":
    app()
