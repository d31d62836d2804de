# daybook/models.py
"""
Row shapes for the Supabase tables the app reads and writes.

Rows come back from the store as plain dicts; ``from_row`` tolerates missing
columns (older rows, narrow selects) and ``to_row`` gives back the dict shape
used for inserts.
"""
import re
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, Optional

PRIORITIES = ("high", "medium", "low")
FREQUENCIES = ("daily", "weekly", "monthly")
DEFAULT_PRIORITY = "medium"
DEFAULT_NOTIFICATION_TIME = "10:00"

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


class ValidationError(ValueError):
    """Input rejected before anything is written."""


def validate_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("title must not be empty")
    return title


def validate_priority(priority: Optional[str]) -> str:
    if priority not in PRIORITIES:
        raise ValidationError(f"priority must be one of {', '.join(PRIORITIES)} (got {priority!r})")
    return priority


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def js_weekday(day: date) -> int:
    """Weekday number as stored by the web client: 0=Sunday … 6=Saturday."""
    return (day.weekday() + 1) % 7


@dataclass
class Task:
    id: Optional[str]
    user_id: Optional[str]
    title: str
    task_date: date
    priority: str = DEFAULT_PRIORITY
    is_completed: bool = False
    sort_order: int = 0
    category_id: Optional[str] = None
    routine_id: Optional[str] = None
    memo: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def from_routine(self) -> bool:
        return self.routine_id is not None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            title=row.get("title") or "",
            # some older rows carry 'date' instead of 'task_date'
            task_date=parse_date(row.get("task_date") or row.get("date")),
            priority=row.get("priority") or DEFAULT_PRIORITY,
            is_completed=bool(row.get("is_completed", False)),
            sort_order=int(row.get("sort_order") or 0),
            category_id=row.get("category_id"),
            routine_id=row.get("routine_id"),
            memo=row.get("memo"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["task_date"] = self.task_date.isoformat() if self.task_date else None
        return row


@dataclass
class Routine:
    id: Optional[str]
    user_id: Optional[str]
    title: str
    priority: str = DEFAULT_PRIORITY
    frequency: str = "daily"
    days_of_week: FrozenSet[int] = field(default_factory=frozenset)
    day_of_month: Optional[int] = None
    is_active: bool = True
    has_time: bool = False
    time: Optional[str] = None
    category_id: Optional[str] = None
    memo: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Routine":
        days = set(row.get("days_of_week") or [])
        if row.get("day_of_week") is not None:
            days.add(row["day_of_week"])
        frequency = row.get("frequency")
        if not frequency:
            frequency = "weekly" if days else "daily"
        dom = row.get("day_of_month")
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            title=row.get("title") or "",
            priority=row.get("priority") or DEFAULT_PRIORITY,
            frequency=frequency,
            days_of_week=frozenset(int(d) for d in days),
            day_of_month=int(dom) if dom is not None else None,
            is_active=bool(row.get("is_active", True)),
            has_time=bool(row.get("has_time", False)),
            time=row.get("time"),
            category_id=row.get("category_id"),
            memo=row.get("memo"),
        )

    def validate(self) -> None:
        validate_title(self.title)
        validate_priority(self.priority)
        if self.frequency not in FREQUENCIES:
            raise ValidationError(f"frequency must be one of {', '.join(FREQUENCIES)} (got {self.frequency!r})")
        if self.frequency == "weekly":
            if not self.days_of_week:
                raise ValidationError("a weekly routine needs at least one weekday")
            if any(d < 0 or d > 6 for d in self.days_of_week):
                raise ValidationError("weekdays must be in 0..6 (0=Sunday)")
        if self.frequency == "monthly":
            if self.day_of_month is None or not 1 <= self.day_of_month <= 31:
                raise ValidationError("a monthly routine needs day_of_month in 1..31")
        if self.has_time and not (self.time and _TIME_RE.match(self.time)):
            raise ValidationError("has_time is set but time is not HH:MM")

    def to_row(self) -> Dict[str, Any]:
        weekly = self.frequency == "weekly"
        days = sorted(self.days_of_week) if weekly else []
        return {
            "user_id": self.user_id,
            "title": self.title.strip(),
            "memo": self.memo,
            "priority": self.priority,
            "category_id": self.category_id,
            "frequency": self.frequency,
            "days_of_week": days,
            "day_of_week": days[0] if days else None,
            "day_of_month": self.day_of_month if self.frequency == "monthly" else None,
            "is_active": self.is_active,
            "has_time": self.has_time,
            "time": self.time if self.has_time else None,
        }


@dataclass
class Category:
    id: Optional[str]
    user_id: Optional[str]
    name: str
    color: str = "#6B7280"
    sort_order: int = 0
    is_default: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Category":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            name=row.get("name") or "",
            color=row.get("color") or "#6B7280",
            sort_order=int(row.get("sort_order") or 0),
            is_default=bool(row.get("is_default", False)),
        )


@dataclass
class WishList:
    id: Optional[str]
    user_id: Optional[str]
    title: str
    is_default: bool = False
    sort_order: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "WishList":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            title=row.get("title") or "",
            is_default=bool(row.get("is_default", False)),
            sort_order=int(row.get("sort_order") or 0),
        )


@dataclass
class WishItem:
    id: Optional[str]
    wish_list_id: Optional[str]
    user_id: Optional[str]
    title: str
    reason: Optional[str] = None
    is_completed: bool = False
    sort_order: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "WishItem":
        return cls(
            id=row.get("id"),
            wish_list_id=row.get("wish_list_id"),
            user_id=row.get("user_id"),
            title=row.get("title") or "",
            reason=row.get("reason"),
            is_completed=bool(row.get("is_completed", False)),
            sort_order=int(row.get("sort_order") or 0),
        )


@dataclass
class Profile:
    id: Optional[str]
    email: Optional[str] = None
    notification_time: str = DEFAULT_NOTIFICATION_TIME
    notification_enabled: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Profile":
        enabled = row.get("notification_enabled")
        return cls(
            id=row.get("id"),
            email=row.get("email"),
            notification_time=row.get("notification_time") or DEFAULT_NOTIFICATION_TIME,
            notification_enabled=True if enabled is None else bool(enabled),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


def validate_time(value: Optional[str], what: str = "time") -> str:
    value = (value or "").strip()
    if not _TIME_RE.match(value):
        raise ValidationError(f"{what} must be HH:MM (got {value!r})")
    return value
