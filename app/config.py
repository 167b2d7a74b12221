"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_DEFAULT_ORIGIN = "http://localhost:5173"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the InsightBoard service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  gemini_api_key: str | None
  gemini_model: str
  min_transcript_chars: int


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  # Fall back to the local frontend dev server when nothing is configured.
  if raw is None or raw.strip() == "":
    return (_DEFAULT_ORIGIN,)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("INSIGHTBOARD_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("INSIGHTBOARD_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


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


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("INSIGHTBOARD_ENV", "development").lower()
  debug = _parse_bool(os.getenv("INSIGHTBOARD_DEBUG"))

  log_max_bytes = _positive_int("INSIGHTBOARD_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("INSIGHTBOARD_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("INSIGHTBOARD_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Shorter transcripts rarely contain enough context to extract tasks from.
  min_transcript_chars = _positive_int("INSIGHTBOARD_MIN_TRANSCRIPT_CHARS", "50")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("INSIGHTBOARD_ALLOWED_ORIGINS") or os.getenv("FRONTEND_URL")),
    log_dir=(os.getenv("INSIGHTBOARD_LOG_DIR") or "logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("INSIGHTBOARD_LOG_HTTP_4XX")),
    pg_dsn=_optional_str(os.getenv("INSIGHTBOARD_PG_DSN") or os.getenv("DATABASE_URL")),
    pg_connect_timeout=_positive_int("INSIGHTBOARD_PG_CONNECT_TIMEOUT", "5"),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    gemini_model=(os.getenv("INSIGHTBOARD_GEMINI_MODEL") or "gemini-2.5-flash").strip(),
    min_transcript_chars=min_transcript_chars,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration like CORS."""
  # Keep database configuration isolated so migrations don't require unrelated env vars.
  debug = _parse_bool(os.getenv("INSIGHTBOARD_DEBUG"))
  pg_connect_timeout = _positive_int("INSIGHTBOARD_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = _optional_str(os.getenv("INSIGHTBOARD_PG_DSN") or os.getenv("DATABASE_URL"))

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)
