# daybook/carry_over.py
import logging
from datetime import date

from daybook.store import TASKS, Store, StoreError, now_iso


def carry_over_incomplete_tasks(store: Store, today: date, dry_run: bool = False) -> int:
    """
    Move the user's unfinished one-off tasks from earlier days onto today.
      - only is_completed = false and task_date < today
      - routine-generated tasks stay where they are; the materializer decides
        whether the routine has an occurrence today
    Updates are row by row with no transaction: if one fails, the rows already
    moved stay moved and StoreError is raised.
    """
    today_str = today.isoformat()
    rows = store.select(
        TASKS,
        columns="id, title, task_date",
        eq={"is_completed": False},
        lt={"task_date": today_str},
        is_null=["routine_id"],
    )
    if not rows:
        logging.info("[carry_over] No unfinished tasks before %s.", today_str)
        return 0

    if dry_run:
        logging.info("[carry_over] DRY_RUN: would carry %d task(s) over to %s.", len(rows), today_str)
        return len(rows)

    moved = 0
    for row in rows:
        try:
            store.update(TASKS, row["id"], {"task_date": today_str, "updated_at": now_iso()})
        except StoreError:
            logging.error(
                "[carry_over] Stopped after %d of %d task(s); '%s' (%s) was not moved.",
                moved, len(rows), row.get("title"), row.get("task_date"),
            )
            raise
        moved += 1

    logging.info("[carry_over] Carried %d task(s) over to %s.", moved, today_str)
    return moved
