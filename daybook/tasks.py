# daybook/tasks.py
"""
The day view: what a UI session holds for the date it is showing.

Opening a date runs a strict chain, each stage feeding the next:
  1) carry-over (only when the date is today, once per session)
  2) routine materialization for the date
  3) fetch the date's tasks and sort them
Carry-over and materialization are best-effort: their failures are logged
and the chain goes on. A failed fetch is the caller's problem.
"""
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import pandas as pd

from daybook.carry_over import carry_over_incomplete_tasks
from daybook.config import Settings
from daybook.models import Task, ValidationError, validate_priority, validate_title
from daybook.ordering import OrderingPolicy, sort_tasks
from daybook.reorder import assign_positions, commit_reorder
from daybook.routines import materialize_routine_tasks
from daybook.store import TASKS, AuthRequired, Store, StoreError

UPDATABLE_FIELDS = {"title", "memo", "priority", "category_id", "task_date", "is_completed", "sort_order"}


def start_of_week(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def next_sort_order(tasks: List[Task], priority: str) -> int:
    """New tasks go after the last task of their priority band (or after everything)."""
    same = [t.sort_order for t in tasks if t.priority == priority]
    if same:
        return max(same) + 1
    return max((t.sort_order for t in tasks), default=-1) + 1


class DayView:
    def __init__(self, store: Store, settings: Optional[Settings] = None,
                 policy: Optional[OrderingPolicy] = None, today=None):
        self.store = store
        self.settings = settings or Settings()
        self.policy = policy or OrderingPolicy.from_settings(self.settings)
        self._tz = ZoneInfo(self.settings.timezone)
        self._today = today
        self.selected_date: Optional[date] = None
        self.tasks: List[Task] = []
        self.carried_over_on: Optional[date] = None
        self._generation = 0

    def today(self) -> date:
        if self._today is not None:
            return self._today()
        return datetime.now(self._tz).date()

    @property
    def is_today(self) -> bool:
        return self.selected_date == self.today()

    # -----------------------
    # Opening a date
    # -----------------------
    def open(self, day: Optional[date] = None) -> List[Task]:
        day = day or self.today()
        self._generation += 1
        generation = self._generation
        self.selected_date = day

        try:
            self.store.require_user()
        except AuthRequired:
            logging.info("No signed-in user; nothing to show for %s.", day)
            self.tasks = []
            return []

        if day == self.today() and self.carried_over_on != day:
            try:
                carried = carry_over_incomplete_tasks(self.store, day, dry_run=self.settings.dry_run)
                self.carried_over_on = day
                if carried:
                    logging.info("Carried %d task(s) over to today.", carried)
            except StoreError:
                logging.exception("Carry-over failed for %s", day)

        try:
            materialize_routine_tasks(
                self.store, day, overflow=self.settings.monthly_overflow, dry_run=self.settings.dry_run
            )
        except StoreError:
            logging.exception("Routine materialization failed for %s", day)

        return self._load(day, generation)

    def refetch(self) -> List[Task]:
        if self.selected_date is None:
            return []
        self._generation += 1
        return self._load(self.selected_date, self._generation)

    def _load(self, day: date, generation: int) -> List[Task]:
        tasks = self._fetch(day)
        if generation != self._generation:
            logging.info("Discarding stale tasks for %s (view moved on to %s).", day, self.selected_date)
            return self.tasks
        self.tasks = tasks
        return tasks

    def _fetch(self, day: date) -> List[Task]:
        rows = self.store.select(TASKS, eq={"task_date": day.isoformat()}, order="sort_order")
        return sort_tasks([Task.from_row(r) for r in rows], self.policy)

    def _find(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def _apply_local(self, task: Task) -> None:
        others = [t for t in self.tasks if t.id != task.id]
        if task.task_date == self.selected_date:
            others.append(task)
        self.tasks = sort_tasks(others, self.policy)

    # -----------------------
    # Task edits
    # -----------------------
    def create_task(self, title: str, task_date: Optional[date] = None, priority: str = "medium",
                    memo: Optional[str] = None, category_id: Optional[str] = None) -> Task:
        title = validate_title(title)
        validate_priority(priority)
        task_date = task_date or self.selected_date or self.today()

        if task_date == self.selected_date:
            siblings = self.tasks
        else:
            siblings = [Task.from_row(r) for r in self.store.select(
                TASKS, columns="id, priority, sort_order, task_date", eq={"task_date": task_date.isoformat()})]

        row = self.store.insert(TASKS, {
            "title": title,
            "memo": memo or None,
            "priority": priority,
            "category_id": category_id,
            "task_date": task_date.isoformat(),
            "is_completed": False,
            "sort_order": next_sort_order(siblings, priority),
        })
        if row is None:
            raise StoreError("insert tasks returned no row")
        task = Task.from_row(row)
        if task.task_date == self.selected_date:
            self.tasks = sort_tasks(self.tasks + [task], self.policy)
        return task

    def update_task(self, task_id: str, **fields: Any) -> Task:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"cannot update {', '.join(sorted(unknown))}")
        if "title" in fields:
            fields["title"] = validate_title(fields["title"])
        if "priority" in fields:
            validate_priority(fields["priority"])
        if isinstance(fields.get("task_date"), date):
            fields["task_date"] = fields["task_date"].isoformat()

        row = self.store.update(TASKS, task_id, fields)
        if row is None:
            raise StoreError(f"task {task_id} not found")
        task = Task.from_row(row)
        self._apply_local(task)
        return task

    def delete_task(self, task_id: str) -> bool:
        deleted = self.store.delete(TASKS, task_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        return deleted

    def toggle_complete(self, task_id: str) -> Optional[Task]:
        task = self._find(task_id)
        if task is None:
            return None
        return self.update_task(task_id, is_completed=not task.is_completed)

    def move_to_next_day(self, task_id: str) -> Optional[Task]:
        task = self._find(task_id)
        if task is None:
            return None
        return self.update_task(task_id, task_date=task.task_date + timedelta(days=1))

    def reorder(self, ordered: List[Task]) -> List[Task]:
        # manual order is a tiebreak inside priority bands, never an override
        policy = replace(self.policy, tiebreak="position")
        self.tasks = sort_tasks(assign_positions(ordered), policy)
        self.tasks = commit_reorder(
            self.store, ordered, policy, on_failure=self.settings.reorder_failure, day=self.selected_date
        )
        return self.tasks

    # -----------------------
    # Week view
    # -----------------------
    def tasks_for_week(self, week_start: Optional[date] = None) -> Dict[date, List[Task]]:
        week_start = week_start or start_of_week(self.selected_date or self.today())
        days = list(pd.date_range(week_start, periods=7, freq="D").date)
        rows = self.store.select(
            TASKS,
            gte={"task_date": days[0].isoformat()},
            lte={"task_date": days[-1].isoformat()},
            order="sort_order",
        )
        tasks = [Task.from_row(r) for r in rows]
        return {d: sort_tasks([t for t in tasks if t.task_date == d], self.policy) for d in days}
