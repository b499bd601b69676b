"""
Log Viewer Utilities for GitLike.

Provides functions to query, filter, and summarize log entries.
Used by the `gitlike logs` CLI command.
"""

import json
import re
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from .config import get_config

LOG_TYPES = ("operations", "sync", "all")


def parse_since(since: str) -> datetime:
    """
    Parse a 'since' time string into an aware UTC datetime.

    Supports:
        - ISO format: "2026-01-11T10:00:00"
        - Relative: "1h", "30m", "2d", "1w"
    """
    try:
        parsed = datetime.fromisoformat(since)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    except ValueError:
        pass

    match = re.match(r"^(\d+)([mhdw])$", since.lower())
    if match:
        value = int(match.group(1))
        unit = match.group(2)

        delta_map = {
            "m": timedelta(minutes=value),
            "h": timedelta(hours=value),
            "d": timedelta(days=value),
            "w": timedelta(weeks=value),
        }
        return datetime.now(timezone.utc) - delta_map[unit]

    raise ValueError(f"Invalid time format: {since}. Use ISO format or relative (1h, 30m, 2d)")


def read_jsonl(filepath: Path, since: datetime | None = None) -> Iterator[dict[str, Any]]:
    """
    Read entries from a JSONL file, skipping malformed lines.

    Args:
        filepath: Path to JSONL file
        since: Only return entries at or after this time
    """
    if not filepath.exists():
        return

    with open(filepath, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue

            if since:
                try:
                    entry_time = datetime.fromisoformat(entry.get("timestamp", ""))
                except (ValueError, TypeError):
                    continue
                if entry_time < since:
                    continue

            yield entry


def _log_files(log_type: str) -> list[tuple[str, Path]]:
    if log_type not in LOG_TYPES:
        raise ValueError(f"Unknown log type: {log_type}. Use one of: {', '.join(LOG_TYPES)}")

    config = get_config()
    files: list[tuple[str, Path]] = []
    if log_type in ("operations", "all"):
        files.append(("operations", config.operation_log_path))
    if log_type in ("sync", "all"):
        files.append(("sync", config.sync_log_path))
    return files


def query_logs(
    log_type: str = "all",
    since: str | None = None,
    operation: str | None = None,
    success: bool | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """
    Query log entries with filters, newest first.

    Args:
        log_type: "operations", "sync", or "all"
        since: Time filter (ISO or relative like "1h")
        operation: Filter operation entries by name prefix ("todo" matches "todo.start")
        success: Filter by outcome
        limit: Max entries to return
    """
    since_dt = parse_since(since) if since else None
    results: list[dict[str, Any]] = []

    for source, filepath in _log_files(log_type):
        for entry in read_jsonl(filepath, since=since_dt):
            entry["_source"] = source

            if operation and not str(entry.get("operation", "")).startswith(operation):
                continue
            if success is not None and entry.get("success") != success:
                continue

            results.append(entry)

    results.sort(key=lambda x: x.get("timestamp", ""), reverse=True)
    return results[:limit]


def percentile(values: list[float], p: float) -> float:
    """Calculate percentile of a list of values."""
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    k = (len(sorted_vals) - 1) * p / 100
    f = int(k)
    c = f + 1 if f + 1 < len(sorted_vals) else f
    return sorted_vals[f] + (k - f) * (sorted_vals[c] - sorted_vals[f])


def calculate_stats(entries: list[dict[str, Any]]) -> dict[str, Any]:
    """Summarize outcomes, durations and per-operation counts."""
    successes = sum(1 for e in entries if e.get("success"))
    failures = len(entries) - successes
    success_rate = (successes / len(entries) * 100) if entries else 0
    durations = [e.get("duration_ms", 0) for e in entries if e.get("duration_ms")]

    operations: dict[str, int] = {}
    for e in entries:
        if e.get("_source") == "sync":
            name = f"{e.get('direction', '?')} {e.get('remote', '?')}"
        else:
            name = e.get("operation", "unknown")
        operations[name] = operations.get(name, 0) + 1

    errors = [e["error"][:100] for e in entries if e.get("error")]

    return {
        "total": len(entries),
        "successes": successes,
        "failures": failures,
        "success_rate": round(success_rate, 1),
        "p50_duration_ms": int(percentile(durations, 50)),
        "p95_duration_ms": int(percentile(durations, 95)),
        "operations": operations,
        "errors": errors[:10],
    }


def format_entry_line(entry: dict[str, Any]) -> str:
    """Format a log entry as a single display line."""
    source = entry.get("_source", "?")
    ts = entry.get("timestamp", "")[:19]  # Trim to seconds
    status = "OK" if entry.get("success") else "FAIL"

    if source == "operations":
        operation = entry.get("operation", "?")
        branch = entry.get("branch", "")
        line = f"[{ts}] {operation:16s} {branch:16s} {status}"
    elif source == "sync":
        direction = entry.get("direction", "?")
        remote = entry.get("remote", "?")
        line = (
            f"[{ts}] {direction:6s} {remote:12s} "
            f"{entry.get('branches', 0):3d} br {entry.get('commits', 0):4d} commits  {status}"
        )
    else:
        return f"[{ts}] {source.upper()} {json.dumps(entry)[:60]}..."

    if entry.get("error"):
        line += f"  {entry['error'][:60]}"
    return line


def format_stats(stats: dict[str, Any]) -> str:
    """Format statistics for display."""
    lines = [
        "=== GitLike Activity ===",
        f"  Entries:        {stats['total']}",
        f"  Success/Fail:   {stats['successes']}/{stats['failures']} ({stats['success_rate']}%)",
        f"  Duration:       p50 {stats['p50_duration_ms']}ms, p95 {stats['p95_duration_ms']}ms",
    ]

    if stats.get("operations"):
        lines.append("  Operations:")
        for name, count in sorted(stats["operations"].items(), key=lambda x: -x[1]):
            lines.append(f"    - {name}: {count}")

    if stats.get("errors"):
        lines.extend(["", "=== Recent Errors ==="])
        for err in stats["errors"][:5]:
            lines.append(f"  - {err[:80]}")

    return "\n".join(lines)
