# daybook/routines.py
import calendar
import logging
from datetime import date
from typing import List

from daybook.models import Routine, Task, ValidationError, js_weekday
from daybook.store import ROUTINES, TASKS, Store, StoreError


def routine_is_due(routine: Routine, day: date, overflow: str = "skip") -> bool:
    """
    daily   -> every day
    weekly  -> day's weekday (0=Sunday) is one of the routine's weekdays
    monthly -> day-of-month equals the routine's day_of_month; in months too
               short for it, "skip" drops the occurrence and "clamp" moves it
               to the month's last day
    """
    if routine.frequency == "daily":
        return True
    if routine.frequency == "weekly":
        return js_weekday(day) in routine.days_of_week
    if routine.frequency == "monthly":
        if routine.day_of_month is None:
            return False
        last_day = calendar.monthrange(day.year, day.month)[1]
        if routine.day_of_month <= last_day:
            return day.day == routine.day_of_month
        return overflow == "clamp" and day.day == last_day
    return False


def materialize_routine_tasks(store: Store, day: date, overflow: str = "skip", dry_run: bool = False) -> List[Task]:
    """
    Make sure every active routine due on `day` has exactly one task on that day.
    Safe to call on every view of the day: existing occurrences are left alone.
    Returns the tasks created by this call.
    """
    day_str = day.isoformat()
    routines = [Routine.from_row(r) for r in store.select(ROUTINES, eq={"is_active": True})]
    due = [r for r in routines if routine_is_due(r, day, overflow)]
    if not due:
        logging.info("[routines] No routines due on %s.", day_str)
        return []

    existing = store.select(TASKS, columns="id, routine_id, task_date, sort_order", eq={"task_date": day_str})
    # (routine_id, task_date) -> task id
    occurrences = {
        (row["routine_id"], day_str): row["id"]
        for row in existing
        if row.get("routine_id")
    }
    next_order = max((int(row.get("sort_order") or 0) for row in existing), default=-1) + 1

    to_insert = []
    for routine in due:
        key = (routine.id, day_str)
        if key in occurrences:
            continue
        occurrences[key] = None
        to_insert.append({
            "routine_id": routine.id,
            "category_id": routine.category_id,
            "title": routine.title,
            "memo": routine.memo,
            "priority": routine.priority,
            "is_completed": False,
            "task_date": day_str,
            "sort_order": next_order,
        })
        next_order += 1

    skipped = len(due) - len(to_insert)
    if not to_insert:
        logging.info("[routines] All %d due routine(s) already have a task on %s.", len(due), day_str)
        return []

    if dry_run:
        logging.info("[routines] DRY_RUN: would create %d task(s) for %s.", len(to_insert), day_str)
        return [Task.from_row(r) for r in to_insert]

    created = store.insert(TASKS, to_insert)
    logging.info(
        "[routines] Created %d routine task(s) for %s (skipped_existing=%d).",
        len(created), day_str, skipped,
    )
    return [Task.from_row(r) for r in created]


# -----------------------
# Routine settings
# -----------------------
def _updated(row, routine_id: str) -> Routine:
    if row is None:
        raise StoreError(f"routine {routine_id} not found")
    return Routine.from_row(row)


def list_routines(store: Store, active_only: bool = False) -> List[Routine]:
    eq = {"is_active": True} if active_only else None
    return [Routine.from_row(r) for r in store.select(ROUTINES, eq=eq, order="created_at")]


def create_routine(store: Store, routine: Routine) -> Routine:
    routine.validate()
    return Routine.from_row(store.insert(ROUTINES, routine.to_row()))


def update_routine(store: Store, routine: Routine) -> Routine:
    if not routine.id:
        raise ValidationError("routine has no id")
    routine.validate()
    row = routine.to_row()
    row.pop("user_id", None)
    return _updated(store.update(ROUTINES, routine.id, row), routine.id)


def set_routine_active(store: Store, routine_id: str, active: bool) -> Routine:
    """Deactivating stops future occurrences; tasks already created stay."""
    return _updated(store.update(ROUTINES, routine_id, {"is_active": active}), routine_id)


def delete_routine(store: Store, routine_id: str) -> bool:
    return store.delete(ROUTINES, routine_id)
