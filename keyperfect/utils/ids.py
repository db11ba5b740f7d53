"""Identifier utilities."""

from __future__ import annotations

import secrets
import string

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_nanoid(size: int = 9, *, alphabet: str = _BASE36_ALPHABET) -> str:
  """Return a short non-sequential id."""
  return "".join(secrets.choice(alphabet) for _ in range(size))


def generate_item_id(created_at_ms: int) -> str:
  """Return an outbox item id made of the creation time and a random suffix."""
  return f"{created_at_ms}-{generate_nanoid()}"
