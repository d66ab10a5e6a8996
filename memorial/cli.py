"""
Death register command line interface
=====================================

Interactive terminal program you run like:

    memorial-register --file "path/to/death_register.xlsx"

or `python -m memorial.cli --file export.json`.

It loads the export once, then answers commands against an in-memory
session: the session only remembers the current search/year/sort choice,
and every view (listing, stats, calendar, anniversaries) is recomputed from
the full record list on each command. The export file is never modified.
"""

from __future__ import annotations
import argparse
import logging
import os
import shlex
from datetime import date
from typing import List, Optional, Sequence

from . import config
from .anniversaries import build_month_grid, month_summary, upcoming_anniversaries
from .cohorts import aggregate
from .dates import age_at_death, next_month, parse_month, prev_month, to_date
from .engine import RegisterSession, available_years, export_csv, export_json
from .loader import load_register
from .models import DeathRecord

logger = logging.getLogger(__name__)

HELP_TEXT = """
Death register commands
-----------------------

1) View / Inspect
   help
   show [n]                         (example: show 20)
   years                            (years with recorded deaths)

2) Filtering and sorting
   search "<text>"                  (name, place or cause of death; search "" clears)
   year <yyyy|all>                  (example: year 2024)
   sort <dateOfDeath|name|funeralDate>
   reset | undo | redo

3) Analytics (current selection)
   stats [6|12|24]                  (trend window in months)
   calendar [YYYY-MM|prev|next]     (memorial calendar for a month)
   upcoming [days] [limit]          (example: upcoming 30 5)

4) Export / Report (current selection)
   export csv "<out.csv>"
   export json "<out.json>"
   report "<out.docx>" [current|full]

5) Exit
   quit
"""


class Shell:
    """Host-side state for the REPL: the session plus display choices."""

    def __init__(self, session: RegisterSession, today: Optional[date] = None):
        self.session = session
        self.today = today or date.today()
        self.month = date(self.today.year, self.today.month, 1)
        self.window = config.get_trend_window()

    def handle(self, line: str) -> None:
        """Handle one command line."""
        parts = shlex.split(line)
        if not parts:
            return
        cmd = parts[0].lower()
        s = self.session

        if cmd == "help":
            print(HELP_TEXT)
            return

        if cmd == "show":
            n = int(parts[1]) if len(parts) >= 2 else 10
            rows = s.current()
            print(f"{len(rows)} records ({_describe(s)}). Showing {min(n, len(rows))}:")
            _print_rows(rows[:n])
            return

        if cmd == "years":
            print(", ".join(str(y) for y in available_years(s.records)) or "No valid records.")
            return

        if cmd == "search":
            term = parts[1] if len(parts) >= 2 else ""
            s.search(term)
            print(f"Search={term!r}. Size={len(s.current())}")
            return

        if cmd == "year":
            if len(parts) < 2:
                raise ValueError("usage: year <yyyy|all>")
            y = None if parts[1].lower() == "all" else int(parts[1])
            s.filter_year(y)
            print(f"Year={y or 'all'}. Size={len(s.current())}")
            return

        if cmd == "sort":
            if len(parts) < 2:
                raise ValueError("usage: sort <dateOfDeath|name|funeralDate>")
            s.sort_by(parts[1])
            print(f"Sorted by {parts[1]}.")
            return

        if cmd == "reset":
            s.reset()
            print("Selection reset.")
            return

        if cmd == "undo":
            print("Undone." if s.undo() else "Nothing to undo.")
            return

        if cmd == "redo":
            print("Redone." if s.redo() else "Nothing to redo.")
            return

        if cmd == "stats":
            if len(parts) >= 2:
                self.window = int(parts[1])
            _print_stats(s.current(), self.today, self.window)
            return

        if cmd == "calendar":
            if len(parts) >= 2:
                arg = parts[1].lower()
                if arg == "prev":
                    y, m = prev_month(self.month.year, self.month.month)
                    self.month = date(y, m, 1)
                elif arg == "next":
                    y, m = next_month(self.month.year, self.month.month)
                    self.month = date(y, m, 1)
                else:
                    self.month = parse_month(arg)
            _print_calendar(s.current(), self.month, self.today)
            return

        if cmd == "upcoming":
            days = int(parts[1]) if len(parts) >= 2 else config.get_anniversary_days()
            limit = int(parts[2]) if len(parts) >= 3 else config.get_anniversary_limit()
            feed = upcoming_anniversaries(s.current(), self.today, days, limit)
            print(f"Upcoming anniversaries (next {max(days, 0)} days):")
            if not feed:
                print("  none")
            for a in feed:
                print(f"  {a.occurrence.isoformat()}  {a.record.member_name}  "
                      f"{a.years_ago} yrs  in {a.days_until}d  [{a.bucket}]")
            return

        if cmd == "export":
            if len(parts) < 3:
                print('Usage: export csv "out.csv"  OR  export json "out.json"')
                return
            fmt, out_path = parts[1].lower(), parts[2]
            rows = s.current()
            if not rows:
                print("Nothing to export: current selection is empty.")
                return
            if fmt == "csv":
                export_csv(rows, out_path)
            elif fmt == "json":
                export_json(rows, out_path)
            else:
                print("Unknown export format. Use: csv or json")
                return
            print(f"Exported {len(rows)} records to {out_path}")
            return

        if cmd == "report":
            from .report import generate_docx_report, ReportConfig
            if len(parts) < 2:
                raise ValueError('usage: report "<path.docx>" [current|full]')
            path = parts[1]
            scope = parts[2].lower() if len(parts) >= 3 else "current"
            if scope not in ("current", "full"):
                raise ValueError("report scope must be: current | full")
            if scope == "full":
                recs, label = s.records, "Full Register"
            else:
                recs, label = s.current(), f"Current Selection ({_describe(s)})"
            cfg = ReportConfig(
                reference_date=self.today,
                window_months=self.window,
                source_file=os.path.basename(s.dataset_path) if s.dataset_path else None,
                command_log=s.command_log,
            )
            generate_docx_report(recs, path, config=cfg, scope_label=label)
            print(f"Report written to {path}")
            return

        print("Unknown command. Type 'help'.")


def _describe(s: RegisterSession) -> str:
    c = s.criteria
    bits = [f"sort={c.sort_key}"]
    if c.search_term:
        bits.append(f"search={c.search_term!r}")
    if c.year is not None:
        bits.append(f"year={c.year}")
    return ", ".join(bits)


def _print_rows(rows: Sequence[DeathRecord]) -> None:
    for r in rows:
        age = age_at_death(r.date_of_birth, r.date_of_death)
        death = to_date(r.date_of_death)
        funeral = to_date(r.funeral_date)
        print(f"[{r.id}] {r.member_name} | died {death} | age {age if age is not None else '?'} | "
              f"{(r.burial_or_cremation or '-').lower()} | funeral {funeral or '-'} | "
              f"notified={'yes' if r.family_notified else 'no'}")


def _print_stats(rows: Sequence[DeathRecord], today: date, window: int) -> None:
    st = aggregate(rows, today, window)
    print(f"Total: {st.total}  (excluded: {st.excluded}, unknown age: {st.unknown_age})")
    print(f"This year: {st.this_year}  last year: {st.last_year}  change: {st.yoy_delta:+d}%")
    print(f"This month: {st.this_month}  average age: {st.average_age:.1f}")
    print(f"Family notified: {st.family_notified} ({st.notification_rate}%)  "
          f"funerals held: {st.funeral_services_held}")
    print(f"Burial: {st.burial_count} ({st.burial_percentage}%)  "
          f"cremation: {st.cremation_count} ({st.cremation_percentage}%)")
    print("Age distribution:")
    for b in st.bins:
        print(f"  {b.label:>6}  {b.count:4d}  {b.percentage:3d}%")
    print(f"Monthly trend (last {st.window_months} months):")
    for p in st.monthly:
        print(f"  {p.label}  deaths={p.deaths} burial={p.burials} cremation={p.cremations} "
              f"avg_age={p.average_age} notified={p.notified} pending={p.pending}")


def _print_calendar(rows: Sequence[DeathRecord], month: date, today: date) -> None:
    grid = build_month_grid(rows, month, today=today)
    summary = month_summary(rows, month, today)
    print(f"{month.strftime('%B %Y')}: {summary.this_month} anniversaries "
          f"({summary.upcoming} in the next 30 days, {summary.total_memorials} memorials)")
    for day in grid:
        if not day.records and not day.is_today:
            continue
        marker = "*" if day.is_today else " "
        names = ", ".join(
            f"{m.record.member_name} ({to_date(m.record.date_of_death).year}, {m.years_ago} yrs) [{m.bucket}]"
            for m in day.memorials
        )
        print(f" {marker}{day.date.strftime('%a %d')}  {names}")


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the register CLI.

    1) Load the export
    2) Start an interactive REPL over a RegisterSession
    """
    ap = argparse.ArgumentParser(description="Death register analytics and memorial calendar")
    ap.add_argument("--file", required=True, help="Path to a death register export (.xlsx, .csv or .json)")
    ap.add_argument("--today", help="Reference date YYYY-MM-DD (defaults to today)")
    args = ap.parse_args(argv)

    logging.basicConfig(level=config.get_log_level(), format="%(levelname)s %(name)s: %(message)s")

    today = to_date(args.today) if args.today else None
    if args.today and today is None:
        ap.error(f"--today must be YYYY-MM-DD, got {args.today!r}")

    print("Loading register...")
    records = load_register(args.file)
    session = RegisterSession(records=records, dataset_path=args.file)
    shell = Shell(session, today=today)

    print(f"Loaded {len(records)} records. Type 'help' for commands.")
    while True:
        try:
            line = input("register> ")
        except EOFError:
            break
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.lower() in ("quit", "exit"):
            break
        # Keep a lightweight log of commands for the report (reproducibility).
        if stripped.split()[0].lower() not in ("help", "show", "years", "stats", "calendar", "upcoming"):
            session.command_log.append(stripped)
        try:
            shell.handle(stripped)
        except Exception as e:
            logger.debug("Command failed: %s", stripped, exc_info=True)
            print(f"Error: {e}")


if __name__ == "__main__":
    main()
