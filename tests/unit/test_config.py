import os

import pytest
from keyperfect.config import get_settings
from keyperfect.utils.env import load_env_file


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
  for name in list(os.environ):
    if name.startswith("KEYPERFECT_"):
      monkeypatch.delenv(name)
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_defaults():
  settings = get_settings()

  assert settings.environment == "development"
  assert settings.debug is False
  assert settings.store_backend == "file"
  assert settings.session_save_interval == 5
  assert settings.session_max_age_hours == 24.0
  assert settings.sync_delivery_timeout_seconds == 30.0
  assert settings.network_probe_host is None
  assert settings.network_probe_port == 443


def test_overrides_from_environment(monkeypatch):
  monkeypatch.setenv("KEYPERFECT_DEBUG", "yes")
  monkeypatch.setenv("KEYPERFECT_STORE_BACKEND", " Memory ")
  monkeypatch.setenv("KEYPERFECT_SESSION_SAVE_INTERVAL", "3")
  monkeypatch.setenv("KEYPERFECT_NETWORK_PROBE_HOST", "  ")
  monkeypatch.setenv("KEYPERFECT_LOG_BACKUP_COUNT", "0")

  settings = get_settings()

  assert settings.debug is True
  assert settings.store_backend == "memory"
  assert settings.session_save_interval == 3
  assert settings.network_probe_host is None
  assert settings.log_backup_count == 0


@pytest.mark.parametrize(
  ("name", "value"),
  [
    ("KEYPERFECT_STORE_BACKEND", "sqlite"),
    ("KEYPERFECT_SESSION_SAVE_INTERVAL", "0"),
    ("KEYPERFECT_SYNC_DELIVERY_TIMEOUT_SECONDS", "-1"),
    ("KEYPERFECT_NETWORK_PROBE_PORT", "70000"),
    ("KEYPERFECT_LOG_BACKUP_COUNT", "-2"),
  ],
)
def test_invalid_values_raise(monkeypatch, name, value):
  monkeypatch.setenv(name, value)

  with pytest.raises(ValueError):
    get_settings()


def test_load_env_file_respects_existing_environment(tmp_path, monkeypatch):
  env_file = tmp_path / ".env"
  env_file.write_text('# local device\nexport KEYPERFECT_DATA_DIR="/tmp/kp"\nKEYPERFECT_ENV=production\nnot a pair\n', encoding="utf-8")
  monkeypatch.setenv("KEYPERFECT_ENV", "test")
  # Register the variable with monkeypatch so the loaded value is undone afterwards.
  monkeypatch.setenv("KEYPERFECT_DATA_DIR", "unused")
  monkeypatch.delenv("KEYPERFECT_DATA_DIR")

  load_env_file(env_file)

  assert os.environ["KEYPERFECT_DATA_DIR"] == "/tmp/kp"
  assert os.environ["KEYPERFECT_ENV"] == "test"

  load_env_file(env_file, override=True)
  assert os.environ["KEYPERFECT_ENV"] == "production"
