# daybook/ordering.py
from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from daybook.models import Task

PRIORITY_ORDER = {"high": 1, "medium": 2, "low": 3}
UNKNOWN_PRIORITY_RANK = 999.0


@dataclass(frozen=True)
class OrderingPolicy:
    """
    How a day's tasks are ordered.

    priority_bands:
      "routine" -> routine-origin tasks sit between explicit high and explicit medium
      "flat"    -> plain high/medium/low, routine origin ignored
    tiebreak:
      "position"   -> persisted sort_order (manual drag order) within a band
      "created_at" -> oldest first within a band; manual order is not kept
                      across reloads
    """
    priority_bands: str = "routine"
    tiebreak: str = "position"

    @classmethod
    def from_settings(cls, settings) -> "OrderingPolicy":
        return cls(priority_bands=settings.priority_bands, tiebreak=settings.tiebreak)


def priority_rank(priority: str, from_routine: bool = False, bands: str = "routine") -> float:
    """Lower sorts earlier. Unknown priorities sort last."""
    base = PRIORITY_ORDER.get(priority)
    if base is None:
        return UNKNOWN_PRIORITY_RANK
    if from_routine and bands == "routine":
        # high=1.1, medium=1.2, low=1.3: after explicit high, before explicit medium
        return 1 + base * 0.1
    return float(base)


def sort_tasks(tasks: Iterable[Task], policy: OrderingPolicy = OrderingPolicy()) -> List[Task]:
    """
    Order a day's tasks: incomplete first, then by priority rank, then by
    the policy's tiebreak, then by id so that the order is total.
    """
    tasks = list(tasks)
    if not tasks:
        return []

    df = pd.DataFrame({
        "idx": range(len(tasks)),
        "is_completed": [bool(t.is_completed) for t in tasks],
        "rank": [priority_rank(t.priority, t.from_routine, policy.priority_bands) for t in tasks],
        "id": [str(t.id) if t.id is not None else "" for t in tasks],
    })
    if policy.tiebreak == "position":
        df["tiebreak"] = [t.sort_order for t in tasks]
    else:
        df["tiebreak"] = pd.to_datetime([t.created_at for t in tasks], utc=True, errors="coerce", format="ISO8601")

    df = df.sort_values(
        by=["is_completed", "rank", "tiebreak", "id"],
        ascending=[True, True, True, True],
        kind="mergesort",
        na_position="last",
    )
    return [tasks[i] for i in df["idx"]]
