# daybook/categories.py
import logging
from typing import List, Optional

from daybook.models import Category, ValidationError
from daybook.store import CATEGORIES, Store, StoreError, now_iso

CATEGORY_COLORS = [
    ("#6B7280", "gray"),
    ("#EF4444", "red"),
    ("#F97316", "orange"),
    ("#F59E0B", "amber"),
    ("#EAB308", "yellow"),
    ("#84CC16", "lime"),
    ("#22C55E", "green"),
    ("#14B8A6", "teal"),
    ("#06B6D4", "cyan"),
    ("#3B82F6", "blue"),
    ("#6366F1", "indigo"),
    ("#8B5CF6", "violet"),
    ("#A855F7", "purple"),
    ("#EC4899", "pink"),
]
DEFAULT_COLOR = CATEGORY_COLORS[0][0]


def list_categories(store: Store) -> List[Category]:
    return [Category.from_row(r) for r in store.select(CATEGORIES, order="sort_order")]


def add_category(store: Store, name: str, color: str = DEFAULT_COLOR) -> Category:
    name = (name or "").strip()
    if not name:
        raise ValidationError("category name must not be empty")
    existing = list_categories(store)
    max_order = max((c.sort_order for c in existing), default=-1)
    row = store.insert(CATEGORIES, {
        "name": name,
        "color": color,
        "sort_order": max_order + 1,
        "is_default": False,
    })
    logging.info("Added category '%s'", name)
    return Category.from_row(row)


def update_category(store: Store, category_id: str, name: str, color: Optional[str] = None) -> Category:
    name = (name or "").strip()
    if not name:
        raise ValidationError("category name must not be empty")
    fields = {"name": name, "updated_at": now_iso()}
    if color:
        fields["color"] = color
    row = store.update(CATEGORIES, category_id, fields)
    if row is None:
        raise StoreError(f"category {category_id} not found")
    return Category.from_row(row)


def delete_category(store: Store, category_id: str) -> bool:
    row = store.get(CATEGORIES, category_id)
    if row and row.get("is_default"):
        raise ValidationError("the default category cannot be deleted")
    return store.delete(CATEGORIES, category_id)
