# daybook/cli.py
import sys
import logging
import argparse
from dataclasses import replace
from datetime import datetime, date
from typing import List, Optional
from zoneinfo import ZoneInfo

from daybook.carry_over import carry_over_incomplete_tasks
from daybook.config import assert_required_env, configure_logging, load_settings
from daybook.models import Task
from daybook.routines import materialize_routine_tasks
from daybook.store import AuthRequired, Store, StoreError, create_store
from daybook.tasks import DayView


# -----------------------
# CLI
# -----------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="daybook",
        description="Open a day: carry over unfinished tasks, create routine tasks, list the day.",
    )
    p.add_argument(
        "command",
        nargs="?",
        choices=("open", "carry-over", "materialize"),
        default="open",
        help="open (default) runs the whole chain; the others run one stage.",
    )
    p.add_argument(
        "--date",
        help="Date in YYYY-MM-DD (default: 'today' in the given timezone).",
        default=None,
    )
    p.add_argument(
        "--timezone",
        help="IANA timezone for computing 'today' (default: TZ or UTC).",
        default=None,
    )
    p.add_argument(
        "--user",
        help="user_id to act for (needed with a service-role key; default: DAYBOOK_USER_ID).",
        default=None,
    )
    p.add_argument(
        "--dry-run",
        help="Compute but do not write to Supabase.",
        action="store_true",
        default=False,
    )
    return p.parse_args(argv)


def _resolve_date(raw: Optional[str], today: date) -> date:
    if not raw or raw.lower() == "today":
        return today
    return datetime.strptime(raw, "%Y-%m-%d").date()


def _print_day(run_date: date, tasks: List[Task]) -> None:
    print(f"=== {run_date.isoformat()} ({len(tasks)} task(s)) ===")
    for t in tasks:
        mark = "x" if t.is_completed else " "
        origin = " (routine)" if t.from_routine else ""
        print(f"[{mark}] {t.title:30} {t.priority:6} pos={t.sort_order}{origin}")


# -----------------------
# Main
# -----------------------
def main(argv: Optional[List[str]] = None, store: Optional[Store] = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(settings)

    tz_name = args.timezone or settings.timezone
    settings = replace(settings, timezone=tz_name, dry_run=args.dry_run or settings.dry_run)
    today = datetime.now(ZoneInfo(tz_name)).date()
    try:
        run_date = _resolve_date(args.date, today)
    except ValueError:
        print(f"ERROR: --date must be YYYY-MM-DD (got {args.date!r})")
        return 2

    logging.info(
        "daybook %s starting (date=%s, tz=%s, dry_run=%s)",
        args.command, run_date, tz_name, settings.dry_run,
    )

    if store is None:
        assert_required_env(settings)
        try:
            store = create_store(settings, user_id=args.user)
        except Exception as e:
            logging.exception("Supabase client init failed: %s", e)
            return 1

    try:
        if args.command == "carry-over":
            if run_date != today:
                print(f"[carry_over] Skipped: {run_date} is not today ({today}).")
                return 0
            count = carry_over_incomplete_tasks(store, run_date, dry_run=settings.dry_run)
            print(f"[carry_over] {count} task(s) carried over to {run_date}.")
        elif args.command == "materialize":
            created = materialize_routine_tasks(
                store, run_date, overflow=settings.monthly_overflow, dry_run=settings.dry_run
            )
            print(f"[routines] {len(created)} routine task(s) created for {run_date}.")
        else:
            view = DayView(store, settings, today=lambda: today)
            _print_day(run_date, view.open(run_date))
    except AuthRequired:
        print("ERROR: no user. Pass --user or set DAYBOOK_USER_ID when using a service-role key.")
        return 1
    except StoreError:
        logging.exception("daybook %s failed", args.command)
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        logging.exception("Runner crashed")
        sys.exit(1)
