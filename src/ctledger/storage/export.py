"""Export the ledger event log to Parquet."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def export_events_to_parquet(
    conn: DuckDBPyConnection,
    output_path: str | Path,
    event_type: str | None = None,
) -> int:
    """Export ledger_events to a Parquet file. Optional filter by event_type. Returns row count."""
    path = Path(output_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    where = f" WHERE event_type = {_sql_literal(event_type)}" if event_type else ""
    conn.execute(
        f"COPY (SELECT * FROM ledger_events{where} ORDER BY seq) TO {_sql_literal(str(path))} (FORMAT PARQUET)"
    )
    return conn.execute(f"SELECT COUNT(*) FROM ledger_events{where}").fetchone()[0]
