#!/usr/bin/env python3
"""
Time Ledger CLI - start/stop the clock, read reports, move snapshots.

    python -m cli.ledger start --task <uuid> --memo "review"
    python -m cli.ledger stop
    python -m cli.ledger report 2024 12
    python -m cli.ledger export --out backup.json
    python -m cli.ledger import backup.json --merge

Exit status is 0 on success and 1 on any ledger error (the message is
printed to stderr).
"""

import argparse
import json
import sys
from datetime import datetime

from timeledger import Ledger, LedgerError, config, paths
from timeledger.observability import OperationContext, configure_logging


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def format_duration(seconds: int | None) -> str:
    """H:MM:SS; '-' while running."""
    if seconds is None:
        return "-"
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    return f"{sign}{seconds // 3600}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


# ==== Commands ====


def cmd_init(ledger: Ledger, args) -> None:
    ok, message = ledger.db.integrity_check()
    print(f"Ledger DB: {ledger.db.db_path}")
    print(f"Integrity: {message}")
    if not ok:
        raise SystemExit(1)


def cmd_start(ledger: Ledger, args) -> None:
    entry = ledger.start(args.task, args.memo)
    print(f"Started {entry.id} at {entry.to_dict()['started_at']}")


def cmd_stop(ledger: Ledger, args) -> None:
    entry = ledger.stop(args.entry)
    print(f"Stopped {entry.id} after {format_duration(entry.duration_seconds)}")


def cmd_status(ledger: Ledger, args) -> None:
    running = ledger.get_running()
    if running is None:
        print("Idle: no running entry")
        return
    entry = running.entry
    elapsed = int((datetime.now(entry.started_at.tzinfo) - entry.started_at).total_seconds())
    task = running.task.name if running.task else config.UNCLASSIFIED_LABEL
    print(f"Running: {entry.id}")
    print(f"  Task:    {task}")
    print(f"  Since:   {entry.to_dict()['started_at']}")
    print(f"  Elapsed: {format_duration(elapsed)}")
    if entry.memo:
        print(f"  Memo:    {entry.memo}")


def cmd_report(ledger: Ledger, args) -> None:
    report = ledger.monthly_report(args.year, args.month)
    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        return

    print_header(f"Report {report.year:04d}-{report.month:02d}")
    print(f"Total:        {format_duration(report.total_seconds)} ({report.total_entries} entries)")
    print(f"Working days: {report.working_days}")
    print(f"Average/day:  {format_duration(report.average_seconds_per_day)}")

    if report.task_summaries:
        print_header("By task")
        print_table(
            ["Task", "Time", "Entries"],
            [[s.task_name, format_duration(s.total_seconds), s.entry_count] for s in report.task_summaries],
        )
    if report.daily_summaries:
        print_header("By day")
        print_table(
            ["Date", "Time", "Entries"],
            [[d.date, format_duration(d.total_seconds), d.entry_count] for d in report.daily_summaries],
        )


def cmd_months(ledger: Ledger, args) -> None:
    months = ledger.available_months()
    if not months:
        print("No completed entries yet")
        return
    for year, month in months:
        print(f"{year:04d}-{month:02d}")


def cmd_export(ledger: Ledger, args) -> None:
    if args.out == "-":
        print(ledger.export().to_json())
        return
    out = args.out or str(paths.export_dir() / f"time_ledger_{datetime.now():%Y%m%d_%H%M%S}.json")
    path = ledger.reconciler.export_to_file(out)
    print(f"OK: exported to {path}")


def cmd_import(ledger: Ledger, args) -> None:
    result = ledger.reconciler.import_from_file(args.file, merge=args.merge)
    mode = "merge" if args.merge else "replace"
    print(f"OK: imported {args.file} ({mode})")
    print(json.dumps(result.to_dict(), indent=2))


COMMANDS = {
    "init": cmd_init,
    "start": cmd_start,
    "stop": cmd_stop,
    "status": cmd_status,
    "report": cmd_report,
    "months": cmd_months,
    "export": cmd_export,
    "import": cmd_import,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="time-ledger", description="Time Ledger CLI")
    p.add_argument("--db", help=f"Ledger DB path (default: ${paths.APP_ENV_DB} or ~/.time_ledger)")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init", help="Create or upgrade the ledger DB and check it")

    st = sub.add_parser("start", help="Start a new running entry")
    st.add_argument("--task", help="Task UUID")
    st.add_argument("--memo")

    sp = sub.add_parser("stop", help="Stop the running entry")
    sp.add_argument("--entry", help="Entry UUID (default: the running one)")

    sub.add_parser("status", help="Show the running entry")

    rp = sub.add_parser("report", help="Monthly report")
    rp.add_argument("year", type=int)
    rp.add_argument("month", type=int)
    rp.add_argument("--json", action="store_true", help="Print the report as JSON")

    sub.add_parser("months", help="Months that have completed entries")

    ex = sub.add_parser("export", help="Write a snapshot")
    ex.add_argument("--out", help="Output file, '-' for stdout (default: exports dir)")

    im = sub.add_parser("import", help="Load a snapshot")
    im.add_argument("file")
    im.add_argument("--merge", action="store_true", help="Keep existing records, add new ones")

    return p


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)

    try:
        with OperationContext(f"cli.{args.cmd}"), Ledger.open(args.db) as ledger:
            COMMANDS[args.cmd](ledger, args)
    except LedgerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
