"""Ids subcommand: derive condition, collection, position and claim-token ids."""

from __future__ import annotations

import typer

from ctledger.errors import InvalidCollectionId
from ctledger.ids import (
    ZERO_ID,
    collection_id,
    combine_collection_ids,
    condition_id,
    conditional_token_id,
    position_id,
)

app = typer.Typer(help="Identifier derivation")


def _parse_int(value: str) -> int:
    """Accept decimal, 0x hex or 0b binary."""
    return int(value, 0)


@app.command("condition")
def condition(
    oracle: str = typer.Option(..., "--oracle", help="Oracle address"),
    question: str = typer.Option(..., "--question", "-q", help="Question id (bytes32 hex)"),
    slots: int = typer.Option(..., "--slots", "-n", help="Outcome slot count"),
) -> None:
    """conditionId = keccak(oracle, questionId, outcomeSlotCount)."""
    try:
        typer.echo(condition_id(oracle, question, slots))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("collection")
def collection(
    condition: str = typer.Option(..., "--condition", "-c", help="Condition id"),
    index_set: str = typer.Option(..., "--index-set", "-i", help="Index set (e.g. 0b01, 2)"),
    parent: str = typer.Option(ZERO_ID, "--parent", help="Parent collection id"),
) -> None:
    """Collection id for a condition restricted to an index set, under a parent collection."""
    try:
        typer.echo(collection_id(parent, condition, _parse_int(index_set)))
    except (ValueError, InvalidCollectionId) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("combine")
def combine(ids: list[str] = typer.Argument(..., help="Collection ids to combine")) -> None:
    """Combine collection ids (order does not matter)."""
    try:
        typer.echo(combine_collection_ids(ids))
    except (ValueError, InvalidCollectionId) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("position")
def position(
    collateral: str = typer.Option(..., "--collateral", help="Collateral token address"),
    collection: str = typer.Option(ZERO_ID, "--collection", help="Collection id"),
) -> None:
    """positionId = keccak(collateralToken, collectionId)."""
    try:
        typer.echo(position_id(collateral, collection))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("claim-token")
def claim_token(
    market: int = typer.Option(..., "--market", "-m", help="Pool market id"),
    customer: str = typer.Option(..., "--customer", help="Customer address"),
) -> None:
    """Claim-token id for a customer registered to a pool market."""
    try:
        typer.echo(conditional_token_id(market, customer))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
