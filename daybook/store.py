# daybook/store.py
"""
Thin data access over a Supabase client.

Every read and write is scoped to one user id: either the one configured for
a service-role deployment (the CLI's --user, DAYBOOK_USER_ID) or the user of
the client's signed-in session. Most tables carry a `user_id` column; a
table whose rows are keyed by the user id itself (profiles) is scoped with
`owner="id"`.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

TASKS = "tasks"
ROUTINES = "routines"
CATEGORIES = "categories"
WISH_LISTS = "wish_lists"
WISH_ITEMS = "wish_items"
PROFILES = "profiles"


class StoreError(RuntimeError):
    """The store rejected a read or write."""


class AuthRequired(RuntimeError):
    """No current user to scope queries to."""


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_store(settings, user_id: Optional[str] = None) -> "Store":
    from supabase import create_client

    client = create_client(settings.supabase_url, settings.supabase_key)
    logging.info("Supabase client created.")
    return Store(client, user_id=user_id or settings.user_id)


class Store:
    def __init__(self, client: Any, user_id: Optional[str] = None):
        self.client = client
        self._user_id = user_id

    @property
    def user_id(self) -> Optional[str]:
        if self._user_id is None:
            self._user_id = self._session_user_id()
        return self._user_id

    def _session_user_id(self) -> Optional[str]:
        try:
            resp = self.client.auth.get_user()
        except Exception as e:
            # no session (or an expired one) means "signed out", not a crash
            logging.info("No signed-in user: %s", e)
            return None
        user = getattr(resp, "user", None)
        return getattr(user, "id", None)

    def require_user(self) -> str:
        uid = self.user_id
        if not uid:
            raise AuthRequired("no current user")
        return uid

    def _execute(self, query, action: str) -> List[Dict[str, Any]]:
        try:
            resp = query.execute()
        except Exception as e:
            raise StoreError(f"{action} failed: {e}") from e
        return resp.data or []

    # -----------------------
    # Reads
    # -----------------------
    def select(
        self,
        table: str,
        *,
        eq: Optional[Dict[str, Any]] = None,
        lt: Optional[Dict[str, Any]] = None,
        gte: Optional[Dict[str, Any]] = None,
        lte: Optional[Dict[str, Any]] = None,
        is_null: Iterable[str] = (),
        in_: Optional[Dict[str, list]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        columns: str = "*",
        owner: str = "user_id",
    ) -> List[Dict[str, Any]]:
        uid = self.require_user()
        q = self.client.table(table).select(columns)
        q = q.eq(owner, uid)
        for col, val in (eq or {}).items():
            q = q.eq(col, val)
        for col, val in (lt or {}).items():
            q = q.lt(col, val)
        for col, val in (gte or {}).items():
            q = q.gte(col, val)
        for col, val in (lte or {}).items():
            q = q.lte(col, val)
        for col in is_null:
            q = q.is_(col, "null")
        for col, vals in (in_ or {}).items():
            q = q.in_(col, vals)
        if order:
            q = q.order(order, desc=desc)
        if limit:
            q = q.limit(limit)
        return self._execute(q, f"select {table}")

    def get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        rows = self.select(table, eq={"id": row_id}, limit=1)
        return rows[0] if rows else None

    # -----------------------
    # Writes
    # -----------------------
    def insert(self, table: str, rows):
        """Insert one row (dict) or many (list); returns what the store created."""
        uid = self.require_user()
        many = isinstance(rows, list)
        payload = [dict(r, user_id=uid) for r in (rows if many else [rows])]
        if not payload:
            return []
        data = self._execute(self.client.table(table).insert(payload), f"insert {table}")
        logging.debug("Inserted %s row(s) into %s", len(data), table)
        if many:
            return data
        return data[0] if data else None

    def update(self, table: str, row_id: str, fields: Dict[str, Any],
               owner: str = "user_id") -> Optional[Dict[str, Any]]:
        uid = self.require_user()
        fields = dict(fields)
        fields.setdefault("updated_at", now_iso())
        q = self.client.table(table).update(fields).eq("id", row_id)
        if owner != "id":
            q = q.eq(owner, uid)
        elif row_id != uid:
            raise AuthRequired(f"{table} row {row_id} belongs to another user")
        data = self._execute(q, f"update {table} {row_id}")
        return data[0] if data else None

    def delete(self, table: str, row_id: str) -> bool:
        uid = self.require_user()
        q = self.client.table(table).delete().eq("id", row_id).eq("user_id", uid)
        data = self._execute(q, f"delete {table} {row_id}")
        return bool(data)
