"""Offline core configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from keyperfect.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

STORE_BACKENDS = ("file", "memory")


@dataclass(frozen=True)
class Settings:
  """Typed settings for the KeyPerfect offline core."""

  environment: str
  debug: bool
  data_dir: str
  store_backend: str
  session_save_interval: int
  session_max_age_hours: float
  sync_delivery_timeout_seconds: float
  network_probe_host: str | None
  network_probe_port: int
  network_probe_interval_seconds: float
  network_probe_timeout_seconds: float
  log_dir: str
  log_max_bytes: int
  log_backup_count: int


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("KEYPERFECT_ENV", "development").strip().lower()
  debug = _parse_bool(os.getenv("KEYPERFECT_DEBUG"))
  data_dir = (os.getenv("KEYPERFECT_DATA_DIR") or "./data").strip()

  store_backend = (os.getenv("KEYPERFECT_STORE_BACKEND") or "file").strip().lower()
  if store_backend not in STORE_BACKENDS:
    raise ValueError(f"KEYPERFECT_STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}.")

  # Batching and expiry knobs for the session journal.
  session_save_interval = _positive_int("KEYPERFECT_SESSION_SAVE_INTERVAL", "5")
  session_max_age_hours = _positive_float("KEYPERFECT_SESSION_MAX_AGE_HOURS", "24")

  # Bound each outbox delivery so one hung request cannot wedge a whole drain.
  sync_delivery_timeout_seconds = _positive_float("KEYPERFECT_SYNC_DELIVERY_TIMEOUT_SECONDS", "30")

  network_probe_host = _optional_str(os.getenv("KEYPERFECT_NETWORK_PROBE_HOST"))
  network_probe_port = _positive_int("KEYPERFECT_NETWORK_PROBE_PORT", "443")
  if network_probe_port > 65535:
    raise ValueError("KEYPERFECT_NETWORK_PROBE_PORT must be a valid TCP port.")
  network_probe_interval_seconds = _positive_float("KEYPERFECT_NETWORK_PROBE_INTERVAL_SECONDS", "30")
  network_probe_timeout_seconds = _positive_float("KEYPERFECT_NETWORK_PROBE_TIMEOUT_SECONDS", "5")

  log_dir = (os.getenv("KEYPERFECT_LOG_DIR") or "./logs").strip()
  log_max_bytes = _positive_int("KEYPERFECT_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("KEYPERFECT_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("KEYPERFECT_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    environment=environment,
    debug=debug,
    data_dir=data_dir,
    store_backend=store_backend,
    session_save_interval=session_save_interval,
    session_max_age_hours=session_max_age_hours,
    sync_delivery_timeout_seconds=sync_delivery_timeout_seconds,
    network_probe_host=network_probe_host,
    network_probe_port=network_probe_port,
    network_probe_interval_seconds=network_probe_interval_seconds,
    network_probe_timeout_seconds=network_probe_timeout_seconds,
    log_dir=log_dir,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
  )
