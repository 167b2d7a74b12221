"""Lenient JSON parsing helpers for generator output."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

_FENCE_RE = re.compile(r"^\s*```(?:json|JSON)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)")


def strip_json_fences(raw: str) -> str:
  """Remove a surrounding markdown code fence, if present."""
  match = _FENCE_RE.match(raw)
  if match:
    return match.group(1).strip()
  return raw.strip()


def parse_json_with_fallback(raw: str) -> Any:
  """Parse JSON, retrying with small repairs that commonly fix model output."""
  try:
    return json.loads(raw)
  except json.JSONDecodeError as exc:
    last_error = exc

  # Ignore prose around the payload.
  candidate = extract_json_block(raw)
  if candidate is None:
    raise last_error

  repairs: list[Callable[[str], str]] = [lambda text: text, _strip_trailing_commas, _quote_bare_keys]
  for repair in repairs:
    candidate = repair(candidate)
    try:
      return json.loads(candidate)
    except json.JSONDecodeError as exc:
      last_error = exc

  raise last_error


def extract_json_block(raw: str) -> str | None:
  """Return the first balanced JSON object or array in the text."""
  start_index: int | None = None
  depth = 0
  in_string = False
  escape = False

  for index, char in enumerate(raw):
    if start_index is None:
      if char in "{[":
        start_index = index
        depth = 1
      continue

    if in_string:
      if escape:
        escape = False
      elif char == "\\":
        escape = True
      elif char == '"':
        in_string = False
      continue

    if char == '"':
      in_string = True
    elif char in "{[":
      depth += 1
    elif char in "}]":
      depth -= 1
      if depth == 0:
        return raw[start_index : index + 1]

  return None


def _strip_trailing_commas(raw: str) -> str:
  return _TRAILING_COMMA_RE.sub(r"\1", raw)


def _quote_bare_keys(raw: str) -> str:
  # Only keys directly after `{` or `,` are touched; string contents are rarely shaped like that.
  return _BARE_KEY_RE.sub(r'\1"\2"\3', raw)
