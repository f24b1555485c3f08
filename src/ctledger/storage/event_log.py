"""Ledger event append and query."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Iterator

import structlog

from ctledger.models.events import LedgerEvent

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

EventRow = tuple[int, str, int, str | None, str | None, str]


def prepare_event_row(event: LedgerEvent) -> EventRow:
    # Token amounts exceed 64 bits; store ints as strings inside the JSON payload
    payload_json = json.dumps(_stringify_ints(event.payload))
    return (event.seq, event.event_type, event.ts, event.condition_id, event.account, payload_json)


def _stringify_ints(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, dict):
        return {k: _stringify_ints(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_stringify_ints(v) for v in value]
    return value


def append_event(conn: DuckDBPyConnection, event: LedgerEvent) -> None:
    """Append a single event. Prefer append_events_batch for throughput."""
    conn.execute(
        """
        INSERT INTO ledger_events (seq, event_type, ts, condition_id, account, payload)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        list(prepare_event_row(event)),
    )


def append_events_batch(conn: DuckDBPyConnection, events: list[LedgerEvent]) -> None:
    if not events:
        return
    conn.executemany(
        """
        INSERT INTO ledger_events (seq, event_type, ts, condition_id, account, payload)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [prepare_event_row(e) for e in events],
    )


class EventLogWriter:
    """Store subscriber that buffers events and flushes them to DuckDB in batches."""

    def __init__(self, conn: DuckDBPyConnection, batch_size: int = 100) -> None:
        self.conn = conn
        self.batch_size = batch_size
        self._buffer: list[LedgerEvent] = []

    def __call__(self, event: LedgerEvent) -> None:
        self._buffer.append(event)
        if len(self._buffer) >= self.batch_size:
            self.flush()

    def flush(self) -> int:
        buffered, self._buffer = self._buffer, []
        append_events_batch(self.conn, buffered)
        if buffered:
            log.debug("events_flushed", count=len(buffered))
        return len(buffered)


def stream_events(
    conn: DuckDBPyConnection,
    event_type: str | None = None,
    condition_id: str | None = None,
) -> Iterator[dict[str, Any]]:
    """Yield logged events in seq order, optionally filtered."""
    query = "SELECT seq, event_type, ts, condition_id, account, payload FROM ledger_events WHERE 1=1"
    params: list[Any] = []
    if event_type:
        query += " AND event_type = ?"
        params.append(event_type)
    if condition_id:
        query += " AND condition_id = ?"
        params.append(condition_id)
    query += " ORDER BY seq"
    for row in conn.execute(query, params).fetchall():
        yield {
            "seq": row[0],
            "event_type": row[1],
            "ts": row[2],
            "condition_id": row[3],
            "account": row[4],
            "payload": json.loads(row[5]) if row[5] else {},
        }


def log_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Return event log statistics: total count, min/max ts, count by event type."""
    total = conn.execute("SELECT COUNT(*) FROM ledger_events").fetchone()[0]
    range_row = conn.execute("SELECT MIN(ts), MAX(ts) FROM ledger_events").fetchone()
    min_ts, max_ts = range_row[0], range_row[1]
    by_type = conn.execute(
        "SELECT event_type, COUNT(*) AS cnt FROM ledger_events GROUP BY event_type ORDER BY cnt DESC, event_type"
    ).fetchall()
    return {
        "total_events": total,
        "min_ts": min_ts,
        "max_ts": max_ts,
        "by_event_type": [{"event_type": r[0], "count": r[1]} for r in by_type],
    }
