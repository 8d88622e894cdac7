"""Runtime settings, read from the environment and an optional ``.env``."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from tiffin.domain.model.value_objects import GeoPoint
from tiffin.domain.service.billing import DEFAULT_GST_PERCENT, DEFAULT_PLATFORM_FEE
from tiffin.domain.service.geo import (
    DEFAULT_FALLBACK_FEE,
    DEFAULT_MIN_FEE,
    DEFAULT_RANGE_KM,
    DEFAULT_RATE_PER_KM,
    FeeSchedule,
)

# When installed in editable mode the project root is the repo root.
ROOT_DIR = Path(__file__).resolve().parents[3]


def _get_env(key: str, default: str | None = None) -> str | None:
    v = os.getenv(key)
    if v is not None and v.strip() != "":
        return v.strip()
    return default


def _get_int(key: str, default: int) -> int:
    v = _get_env(key)
    return default if v is None else int(v)


def _get_retry_limit(key: str, default: int) -> int | None:
    """``0`` means retry forever."""
    limit = _get_int(key, default)
    return limit if limit > 0 else None


def _get_float(key: str, default: float | None) -> float | None:
    v = _get_env(key)
    return default if v is None else float(v)


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    log_level: str
    fees: FeeSchedule
    platform_fee: int
    gst_percent: int
    buyer_location: GeoPoint | None
    feed_retry_delay: float
    feed_max_retry_delay: float
    feed_max_retries: int | None


def load_settings(env_file: Path | None = None) -> Settings:
    load_dotenv(dotenv_path=env_file or ROOT_DIR / ".env")
    return Settings(
        data_dir=Path(_get_env("TIFFIN_DATA_DIR", default=str(ROOT_DIR / "data"))),  # type: ignore[arg-type]
        log_level=(_get_env("TIFFIN_LOG_LEVEL", default="WARNING") or "WARNING").upper(),
        fees=FeeSchedule(
            rate_per_km=_get_int("TIFFIN_RATE_PER_KM", DEFAULT_RATE_PER_KM),
            min_fee=_get_int("TIFFIN_MIN_DELIVERY_FEE", DEFAULT_MIN_FEE),
            fallback_fee=_get_int("TIFFIN_DEFAULT_DELIVERY_FEE", DEFAULT_FALLBACK_FEE),
            range_km=_get_float("TIFFIN_RANGE_KM", DEFAULT_RANGE_KM),  # type: ignore[arg-type]
        ),
        platform_fee=_get_int("TIFFIN_PLATFORM_FEE", DEFAULT_PLATFORM_FEE),
        gst_percent=_get_int("TIFFIN_GST_PERCENT", DEFAULT_GST_PERCENT),
        buyer_location=GeoPoint.maybe(
            _get_float("TIFFIN_BUYER_LAT", None),
            _get_float("TIFFIN_BUYER_LON", None),
        ),
        feed_retry_delay=_get_float("TIFFIN_FEED_RETRY_DELAY", 0.5),  # type: ignore[arg-type]
        feed_max_retry_delay=_get_float("TIFFIN_FEED_MAX_RETRY_DELAY", 10.0),  # type: ignore[arg-type]
        feed_max_retries=_get_retry_limit("TIFFIN_FEED_MAX_RETRIES", 5),
    )
