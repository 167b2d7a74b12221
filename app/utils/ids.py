"""Identifier utilities."""

from __future__ import annotations

import secrets
import string
import time
import uuid

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
  """Encode a non-negative integer using lowercase base36 digits."""
  if value == 0:
    return "0"

  digits: list[str] = []
  while value:
    value, remainder = divmod(value, 36)
    digits.append(_BASE36_ALPHABET[remainder])
  return "".join(reversed(digits))


def generate_job_id() -> str:
  """Return a new job identifier of the form ``job_<base36 millis>_<16 hex>``."""
  timestamp = _to_base36(time.time_ns() // 1_000_000)
  return f"job_{timestamp}_{secrets.token_hex(8)}"


def generate_task_id() -> str:
  """Return an identifier for a task the generator left without one."""
  return str(uuid.uuid4())


def generate_transcript_id() -> str:
  """Return a new transcript primary key."""
  return str(uuid.uuid4())
