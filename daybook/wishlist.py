# daybook/wishlist.py
"""Wish lists (tabs) and their items: an undated backlog that can turn into tasks."""
import logging
from datetime import date
from typing import List, Optional

from daybook.models import Task, ValidationError, WishItem, WishList, validate_title
from daybook.store import WISH_ITEMS, WISH_LISTS, Store, StoreError


def _next_order(rows) -> int:
    return max((int(r.get("sort_order") or 0) for r in rows), default=-1) + 1


# -----------------------
# Lists
# -----------------------
def list_wish_lists(store: Store) -> List[WishList]:
    return [WishList.from_row(r) for r in store.select(WISH_LISTS, order="sort_order")]


def create_wish_list(store: Store, title: str) -> WishList:
    title = validate_title(title)
    existing = store.select(WISH_LISTS, columns="id, sort_order")
    row = store.insert(WISH_LISTS, {"title": title, "is_default": False, "sort_order": _next_order(existing)})
    return WishList.from_row(row)


def rename_wish_list(store: Store, list_id: str, title: str) -> WishList:
    row = store.update(WISH_LISTS, list_id, {"title": validate_title(title)})
    if row is None:
        raise StoreError(f"wish list {list_id} not found")
    return WishList.from_row(row)


def delete_wish_list(store: Store, list_id: str) -> bool:
    row = store.get(WISH_LISTS, list_id)
    if row and row.get("is_default"):
        raise ValidationError("the default wish list cannot be deleted")
    return store.delete(WISH_LISTS, list_id)


def reorder_wish_lists(store: Store, ordered_ids: List[str]) -> None:
    for index, list_id in enumerate(ordered_ids):
        store.update(WISH_LISTS, list_id, {"sort_order": index})


# -----------------------
# Items
# -----------------------
def list_wish_items(store: Store, list_id: str, query: Optional[str] = None) -> List[WishItem]:
    items = [WishItem.from_row(r) for r in store.select(WISH_ITEMS, eq={"wish_list_id": list_id}, order="sort_order")]
    if query and query.strip():
        q = query.strip().lower()
        items = [i for i in items if q in i.title.lower() or (i.reason and q in i.reason.lower())]
    return items


def create_wish_item(store: Store, list_id: str, title: str, reason: Optional[str] = None) -> WishItem:
    title = validate_title(title)
    existing = store.select(WISH_ITEMS, columns="id, sort_order", eq={"wish_list_id": list_id})
    row = store.insert(WISH_ITEMS, {
        "wish_list_id": list_id,
        "title": title,
        "reason": reason or None,
        "is_completed": False,
        "sort_order": _next_order(existing),
    })
    return WishItem.from_row(row)


def update_wish_item(store: Store, item_id: str, title: Optional[str] = None,
                     reason: Optional[str] = None) -> WishItem:
    fields = {"reason": reason or None}
    if title is not None:
        fields["title"] = validate_title(title)
    row = store.update(WISH_ITEMS, item_id, fields)
    if row is None:
        raise StoreError(f"wish item {item_id} not found")
    return WishItem.from_row(row)


def toggle_wish_item(store: Store, item: WishItem) -> WishItem:
    row = store.update(WISH_ITEMS, item.id, {"is_completed": not item.is_completed})
    if row is None:
        raise StoreError(f"wish item {item.id} not found")
    return WishItem.from_row(row)


def delete_wish_item(store: Store, item_id: str) -> bool:
    return store.delete(WISH_ITEMS, item_id)


def reorder_wish_items(store: Store, ordered_ids: List[str]) -> None:
    for index, item_id in enumerate(ordered_ids):
        store.update(WISH_ITEMS, item_id, {"sort_order": index})


def convert_to_task(view, item: WishItem, day: date, priority: str = "medium",
                    category_id: Optional[str] = None) -> Task:
    """Create a task from a wish item; the item itself is left as it is."""
    task = view.create_task(
        title=item.title,
        task_date=day,
        priority=priority,
        memo=item.reason,
        category_id=category_id,
    )
    logging.info("Converted wish item '%s' into a task on %s", item.title, day)
    return task
