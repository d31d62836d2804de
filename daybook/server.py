# daybook/server.py
"""
HTTP API so a web front end or a hosted runner can open a day, commit a
manual reorder, or turn a wish item into a task.
"""
import logging
import os
from datetime import date
from typing import Callable, Optional

from flask import Flask, jsonify, request

from daybook.config import Settings, configure_logging, load_settings
from daybook.models import ValidationError, WishItem
from daybook.store import WISH_ITEMS, AuthRequired, Store, StoreError, create_store
from daybook.tasks import DayView
from daybook.wishlist import convert_to_task


def _parse_day(raw) -> date:
    if not raw:
        raise ValidationError("Missing required field: date")
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        raise ValidationError(f"date must be YYYY-MM-DD (got {raw!r})")


def _require(data: dict, *names):
    missing = [n for n in names if not data.get(n)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def create_app(settings: Optional[Settings] = None,
               store_factory: Optional[Callable[[str], Store]] = None) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)

    def _store_for(user_id: str) -> Store:
        if store_factory is not None:
            return store_factory(user_id)
        if not settings.supabase_url or not settings.supabase_key:
            raise StoreError("Missing Supabase credentials in environment")
        return create_store(settings, user_id=user_id)

    def _view_for(user_id: str) -> DayView:
        return DayView(_store_for(user_id), settings)

    @app.errorhandler(ValidationError)
    def _bad_request(e):
        return jsonify({"ok": False, "error": str(e)}), 400

    @app.errorhandler(AuthRequired)
    def _unauthorized(e):
        return jsonify({"ok": False, "error": str(e)}), 401

    @app.errorhandler(StoreError)
    def _store_failed(e):
        logging.error("Store error: %s", e)
        return jsonify({"ok": False, "error": str(e)}), 502

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "service": "daybook"})

    @app.route("/open-day", methods=["POST"])
    def open_day():
        """
        Run carry-over (today only), routine materialization, then return the
        day's tasks in display order.
        Expects JSON: { "date": "YYYY-MM-DD", "user_id": "uuid" }
        """
        data = request.get_json(silent=True) or {}
        _require(data, "user_id")
        day = _parse_day(data.get("date"))
        view = _view_for(data["user_id"])
        tasks = view.open(day)
        return jsonify({"ok": True, "date": day.isoformat(), "tasks": [t.to_row() for t in tasks]})

    @app.route("/reorder", methods=["POST"])
    def reorder():
        """Expects JSON: { "date": "YYYY-MM-DD", "user_id": "uuid", "task_ids": [...] }"""
        data = request.get_json(silent=True) or {}
        _require(data, "user_id", "task_ids")
        day = _parse_day(data.get("date"))
        view = _view_for(data["user_id"])
        if len(set(data["task_ids"])) != len(data["task_ids"]):
            raise ValidationError("task_ids must not repeat")
        view.selected_date = day
        by_id = {t.id: t for t in view.refetch()}
        unknown = [tid for tid in data["task_ids"] if tid not in by_id]
        if unknown:
            raise ValidationError(f"Unknown task ids for {day}: {', '.join(unknown)}")
        tasks = view.reorder([by_id[tid] for tid in data["task_ids"]])
        return jsonify({"ok": True, "date": day.isoformat(), "tasks": [t.to_row() for t in tasks]})

    @app.route("/wish-items/<item_id>/convert", methods=["POST"])
    def convert_wish_item(item_id):
        """Expects JSON: { "user_id", "date", "priority"?, "category_id"? }"""
        data = request.get_json(silent=True) or {}
        _require(data, "user_id")
        day = _parse_day(data.get("date"))
        view = _view_for(data["user_id"])
        row = view.store.get(WISH_ITEMS, item_id)
        if row is None:
            return jsonify({"ok": False, "error": f"wish item {item_id} not found"}), 404
        task = convert_to_task(
            view, WishItem.from_row(row), day,
            priority=data.get("priority") or "medium",
            category_id=data.get("category_id"),
        )
        return jsonify({"ok": True, "task": task.to_row()})

    return app


if __name__ == "__main__":
    _settings = load_settings()
    configure_logging(_settings)
    port = int(os.environ.get("PORT", 8000))
    create_app(_settings).run(host="0.0.0.0", port=port)
