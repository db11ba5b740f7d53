import logging
import sys
from dataclasses import replace

import pytest
from keyperfect.config import get_settings
from keyperfect.core import logging as core_logging
from keyperfect.core.logging import TruncatedFormatter, initialize_logging, rotated_name


@pytest.fixture
def restore_root_logger(monkeypatch):
  root = logging.getLogger()
  handlers, level = list(root.handlers), root.level
  monkeypatch.setattr(core_logging, "_LOG_FILE_PATH", None)
  monkeypatch.setattr(core_logging, "_LOGGING_INITIALIZED", False)
  yield
  for handler in root.handlers:
    if handler not in handlers:
      handler.close()
  root.handlers[:] = handlers
  root.setLevel(level)


def test_rotated_name_uses_dash_suffix():
  assert rotated_name("/var/log/keyperfect_1.log.3") == "/var/log/keyperfect_1.log-3"
  assert rotated_name("/var/log/keyperfect_1.log") == "/var/log/keyperfect_1.log"


def test_truncated_formatter_keeps_head_and_tail():
  def recurse(depth):
    if depth == 0:
      raise RuntimeError("deep failure")
    recurse(depth - 1)

  try:
    recurse(10)
  except RuntimeError:
    formatted = TruncatedFormatter().formatException(sys.exc_info())

  assert formatted.startswith("Traceback")
  assert "    ...\n" in formatted
  assert formatted.rstrip().endswith("RuntimeError: deep failure")


def test_initialize_logging_writes_file_once(tmp_path, restore_root_logger):
  settings = replace(get_settings(), log_dir=str(tmp_path / "logs"), debug=True)

  log_path = initialize_logging(settings)
  assert initialize_logging(settings) == log_path

  logging.getLogger("keyperfect.test").debug("journal checkpoint written")
  for handler in logging.getLogger().handlers:
    handler.flush()

  assert log_path.parent == (tmp_path / "logs").resolve()
  assert log_path.name.startswith("keyperfect_")
  assert "journal checkpoint written" in log_path.read_text(encoding="utf-8")
  assert logging.getLogger().level == logging.DEBUG
