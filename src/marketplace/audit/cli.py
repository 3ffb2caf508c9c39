"""Command-line query tool for the negotiation audit trail.

Usage::

    marketplace-audit --negotiation 3f2a... --format json
    marketplace-audit --product p1 --event-type state_transition --last 7d
    marketplace-audit --actor b1 --format csv > b1.csv
"""

from __future__ import annotations

import argparse
import csv
import io
import json
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from marketplace.audit.models import EventType
from marketplace.audit.store import close_audit_db, init_audit_db, query_audit_trail

# (header, row key, column width) for table and CSV output.
COLUMNS: list[tuple[str, str, int]] = [
    ("Timestamp", "timestamp", 20),
    ("Event", "event_type", 19),
    ("Negotiation", "negotiation_id", 32),
    ("Product", "product_id", 10),
    ("Actor", "actor_id", 10),
    ("Status", "negotiation_status", 10),
    ("Offer", "offer_amount", 10),
]

_DURATION_UNITS: dict[str, str] = {"d": "days", "h": "hours", "m": "minutes"}


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for audit trail queries."""
    parser = argparse.ArgumentParser(
        prog="marketplace-audit", description="Query the negotiation audit trail"
    )

    filters = parser.add_argument_group("filters")
    filters.add_argument("--negotiation", help="Negotiation id")
    filters.add_argument("--product", help="Product id")
    filters.add_argument("--actor", help="Acting user id")
    filters.add_argument(
        "--event-type",
        choices=[e.value for e in EventType],
        help="Event type",
    )
    filters.add_argument("--from-date", help="Entries on or after this date (YYYY-MM-DD)")
    filters.add_argument("--to-date", help="Entries on or before this date (YYYY-MM-DD)")
    filters.add_argument("--last", help='Relative window such as "7d", "24h" or "30m"')

    parser.add_argument(
        "--format",
        choices=["table", "json", "csv"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )
    parser.add_argument("--limit", type=int, default=50, help="Maximum rows (default: 50)")
    parser.add_argument(
        "--db",
        default="data/marketplace.db",
        help="SQLite database path (default: data/marketplace.db)",
    )
    return parser


def parse_last_duration(last: str, now: datetime | None = None) -> str:
    """Turn ``7d`` / ``24h`` / ``30m`` into the ISO timestamp that far back from *now*.

    Raises:
        ValueError: If *last* is not a positive count followed by d, h, or m.
    """
    count, unit = last[:-1], last[-1:]
    if not count.isdigit() or unit not in _DURATION_UNITS:
        raise ValueError(f"Unrecognized duration format: {last!r}. Use e.g. 7d, 24h or 30m.")

    start = (now or datetime.now(tz=UTC)) - timedelta(**{_DURATION_UNITS[unit]: int(count)})
    return start.strftime("%Y-%m-%dT%H:%M:%SZ")


def _cell(value: Any, width: int) -> str:
    text = "" if value is None else str(value)
    return text if len(text) <= width else text[: width - 3] + "..."


def format_table(results: list[dict[str, Any]]) -> str:
    """Render rows as a fixed-width table, one audit entry per line."""
    if not results:
        return "No results found."

    header = "  ".join(title.ljust(width) for title, _, width in COLUMNS)
    lines = [header, "-" * len(header)]
    for row in results:
        lines.append(
            "  ".join(_cell(row.get(key), width).ljust(width) for _, key, width in COLUMNS)
        )
    return "\n".join(line.rstrip() for line in lines)


def format_json(results: list[dict[str, Any]]) -> str:
    """Render rows as pretty-printed JSON, metadata included."""
    return json.dumps(results, indent=2)


def format_csv(results: list[dict[str, Any]]) -> str:
    """Render the table columns plus JSON-encoded metadata as CSV."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([title for title, _, _ in COLUMNS] + ["Metadata"])
    for row in results:
        metadata = row.get("metadata")
        writer.writerow(
            [row.get(key) or "" for _, key, _ in COLUMNS]
            + [json.dumps(metadata) if metadata is not None else ""]
        )
    return buffer.getvalue()


FORMATTERS = {"table": format_table, "json": format_json, "csv": format_csv}


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, query the audit trail, and print the results."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from_date = args.from_date
    if args.last:
        try:
            from_date = parse_last_duration(args.last)
        except ValueError as exc:
            parser.error(str(exc))

    db_path = Path(args.db)
    if not db_path.exists():
        print(f"Audit database not found: {db_path}", file=sys.stderr)
        sys.exit(1)

    conn = init_audit_db(db_path)
    try:
        results = query_audit_trail(
            conn,
            negotiation_id=args.negotiation,
            product_id=args.product,
            actor_id=args.actor,
            from_date=from_date,
            to_date=args.to_date,
            event_type=args.event_type,
            limit=args.limit,
        )
    finally:
        close_audit_db(conn)

    print(FORMATTERS[args.output_format](results))


if __name__ == "__main__":
    main()
