"""Content fingerprints used for submission idempotency."""

from __future__ import annotations

import hashlib


def normalize_content(content: str) -> str:
  """Fold case and surrounding whitespace so equivalent submissions compare equal."""
  return content.strip().lower()


def generate_content_hash(content: str) -> str:
  """Return the SHA-256 hex digest of the normalized transcript text."""
  return hashlib.sha256(normalize_content(content).encode("utf-8")).hexdigest()
