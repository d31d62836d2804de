# daybook/profiles.py
"""Per-user settings kept on the profiles row (keyed by the user id itself)."""
import logging
from typing import Optional

from daybook.models import Profile, validate_time
from daybook.store import PROFILES, Store, StoreError


def get_profile(store: Store) -> Optional[Profile]:
    rows = store.select(PROFILES, owner="id", limit=1)
    if not rows:
        logging.info("No profile row for user %s", store.user_id)
        return None
    return Profile.from_row(rows[0])


def update_notification_settings(store: Store, notification_time: Optional[str] = None,
                                 notification_enabled: Optional[bool] = None) -> Profile:
    fields = {}
    if notification_time is not None:
        fields["notification_time"] = validate_time(notification_time, "notification_time")
    if notification_enabled is not None:
        fields["notification_enabled"] = bool(notification_enabled)

    uid = store.require_user()
    if not fields:
        profile = get_profile(store)
        if profile is None:
            raise StoreError(f"profile {uid} not found")
        return profile

    row = store.update(PROFILES, uid, fields, owner="id")
    if row is None:
        raise StoreError(f"profile {uid} not found")
    logging.info("[profiles] Notification settings saved: %s", ", ".join(sorted(fields)))
    return Profile.from_row(row)
