# daybook/config.py
import os
import sys
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

PRIORITY_BANDS = ("routine", "flat")
TIEBREAKS = ("position", "created_at")
MONTHLY_OVERFLOW = ("skip", "clamp")
REORDER_FAILURE = ("resync", "continue")


def load_env_files() -> None:
    """Load .env then .env.local; neither overrides the real process env."""
    load_dotenv(find_dotenv(usecwd=True))
    load_dotenv(".env.local")


def _get_env(*names, default=None):
    for name in names:
        # check as-is, UPPER, and lower
        for variant in (name, name.upper(), name.lower()):
            val = os.getenv(variant)
            if val:
                return val
    return default


def _flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def _choice(name: str, value: str, allowed: tuple) -> str:
    value = value.strip().lower()
    if value not in allowed:
        raise ValueError(f"{name} must be one of {', '.join(allowed)} (got {value!r})")
    return value


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    user_id: Optional[str] = None
    timezone: str = "UTC"
    priority_bands: str = "routine"
    tiebreak: str = "position"
    monthly_overflow: str = "skip"
    reorder_failure: str = "resync"
    dry_run: bool = False
    log_level: str = "INFO"


def load_settings() -> Settings:
    load_env_files()
    return Settings(
        supabase_url=_get_env("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
        # Service role first; the anon key only works with a signed-in session
        supabase_key=_get_env(
            "SUPABASE_SERVICE_ROLE_KEY",
            "SUPABASE_SERVICE_KEY",
            "SUPABASE_ANON_KEY",
            "NEXT_PUBLIC_SUPABASE_ANON_KEY",
        ),
        user_id=_get_env("DAYBOOK_USER_ID"),
        timezone=_get_env("TZ", default="UTC"),
        priority_bands=_choice(
            "DAYBOOK_PRIORITY_BANDS", _get_env("DAYBOOK_PRIORITY_BANDS", default="routine"), PRIORITY_BANDS
        ),
        tiebreak=_choice("DAYBOOK_TIEBREAK", _get_env("DAYBOOK_TIEBREAK", default="position"), TIEBREAKS),
        monthly_overflow=_choice(
            "DAYBOOK_MONTHLY_OVERFLOW", _get_env("DAYBOOK_MONTHLY_OVERFLOW", default="skip"), MONTHLY_OVERFLOW
        ),
        reorder_failure=_choice(
            "DAYBOOK_REORDER_FAILURE", _get_env("DAYBOOK_REORDER_FAILURE", default="resync"), REORDER_FAILURE
        ),
        dry_run=_flag(_get_env("DAYBOOK_DRY_RUN", default="0")),
        log_level=_get_env("LOG_LEVEL", default="INFO").upper(),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _mask_secret(value: str, keep_start: int = 6, keep_end: int = 4) -> str:
    if not value:
        return "<missing>"
    if len(value) <= keep_start + keep_end:
        return value[0:1] + "…"
    return f"{value[:keep_start]}…{value[-keep_end:]}"


def assert_required_env(settings: Settings) -> None:
    """
    Print a masked preflight of the Supabase credentials and exit with
    status 2 when either is missing.
    """
    print("\n[daybook env preflight]")
    print(f"  SUPABASE_URL: {_mask_secret(settings.supabase_url)}")
    print(f"  SUPABASE key: {_mask_secret(settings.supabase_key)}")

    missing = []
    if not settings.supabase_url:
        missing.append("SUPABASE_URL")
    if not settings.supabase_key:
        missing.append("SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_SERVICE_KEY / SUPABASE_ANON_KEY)")

    if missing:
        print(
            "\nERROR: Missing required environment variables.\n"
            f"Please set {', '.join(missing)} in your environment (.env, .env.local, etc.).\n"
        )
        sys.exit(2)
    print("[env OK]\n")
