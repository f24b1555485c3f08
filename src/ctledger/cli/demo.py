"""Demo subcommand: run a split / report / redeem round against an in-memory ledger."""

from __future__ import annotations

import typer

from ctledger.engine.tokens import ConditionalTokens
from ctledger.errors import LedgerError
from ctledger.ledger.collateral import InMemoryCollateral
from ctledger.ledger.store import LedgerStore
from ctledger.storage.db import get_connection, init_schema
from ctledger.storage.event_log import EventLogWriter

app = typer.Typer(help="Scenario runs against a fresh in-memory ledger")

_ORACLE = "0x" + "01" * 20
_TRADER = "0x" + "02" * 20
_COLLATERAL = "0x" + "0c" * 20
_QUESTION = "0x" + "ca" * 32


@app.command("binary")
def binary(
    ctx: typer.Context,
    amount: int = typer.Option(10**19, "--amount", "-a", help="Collateral to split"),
    payouts: str = typer.Option("3,7", "--payouts", help="Comma-separated payout numerators"),
    redeem: str = typer.Option("0b10", "--redeem", "-r", help="Index set to redeem"),
) -> None:
    """Prepare a condition, split collateral over every slot, report, redeem one position."""
    settings = ctx.obj["settings"]
    numerators = [int(p) for p in payouts.split(",") if p.strip()]
    store = LedgerStore(escrow_address=settings.escrow_address)
    conn = None
    writer = None
    if settings.persist_events:
        conn = get_connection(settings.db_path)
        init_schema(conn)
        writer = EventLogWriter(conn)
        store.subscribe(writer)
    try:
        tokens = ConditionalTokens(store)
        collateral = InMemoryCollateral(_COLLATERAL, escrow=store.escrow_address)
        collateral.mint(_TRADER, amount)
        tokens.register_collateral(collateral)
        condition = tokens.prepare_condition(_ORACLE, _QUESTION, len(numerators))
        partition = [1 << i for i in range(len(numerators))]
        positions = tokens.split_position(_TRADER, _COLLATERAL, condition.condition_id, partition, amount)
        tokens.report_payouts(_ORACLE, _QUESTION, numerators)
        payout = tokens.redeem_positions(_TRADER, _COLLATERAL, condition.condition_id, [int(redeem, 0)])
    except (LedgerError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        if writer is not None:
            writer.flush()
        if conn is not None:
            conn.close()
    typer.echo(f"Condition: {condition.condition_id}")
    for index_set, pid in zip(partition, positions):
        typer.echo(f"  {index_set:#0{len(numerators) + 2}b}  {pid}")
    typer.echo(f"Payout for {redeem}: {payout}")
    typer.echo(f"Events: {len(store.events)}")
