# daybook/reorder.py
import logging
from dataclasses import replace
from datetime import date
from typing import List, Optional

from daybook.models import Task
from daybook.ordering import OrderingPolicy, sort_tasks
from daybook.store import TASKS, Store, StoreError


def assign_positions(ordered: List[Task]) -> List[Task]:
    """Copies of `ordered` with sort_order set to each task's index."""
    return [replace(task, sort_order=index) for index, task in enumerate(ordered)]


def commit_reorder(
    store: Store,
    ordered: List[Task],
    policy: OrderingPolicy = OrderingPolicy(tiebreak="position"),
    on_failure: str = "resync",
    day: Optional[date] = None,
) -> List[Task]:
    """
    Persist a manual ordering of one day's tasks.

    Positions follow the given sequence; the returned list is what the view
    should show, which is still priority-first (manual order only breaks ties
    inside a priority band).
    on_failure:
      "resync"   -> stop at the first failed write and return the store's rows
      "continue" -> log the failure and keep writing the remaining positions
    """
    positioned = assign_positions(ordered)
    local = sort_tasks(positioned, policy)

    failed = 0
    for task in positioned:
        try:
            store.update(TASKS, task.id, {"sort_order": task.sort_order})
        except StoreError:
            failed += 1
            if on_failure == "resync":
                logging.exception("[reorder] Position write failed for %s; re-syncing from store.", task.id)
                return _refetch(store, positioned, policy, day)
            logging.exception("[reorder] Position write failed for %s; continuing.", task.id)

    logging.info("[reorder] Saved %d position(s) (failed=%d).", len(positioned) - failed, failed)
    return local


def _refetch(store: Store, positioned: List[Task], policy: OrderingPolicy, day: Optional[date]) -> List[Task]:
    if day is None:
        day = positioned[0].task_date
    rows = store.select(TASKS, eq={"task_date": day.isoformat()}, order="sort_order")
    return sort_tasks([Task.from_row(r) for r in rows], policy)
