from __future__ import annotations

from app.config import DatabaseSettings, get_database_settings
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
  pass


def database_url(settings: DatabaseSettings | None = None) -> str | None:
  """Build the SQLAlchemy database URL, switching plain Postgres DSNs to asyncpg."""
  settings = settings or get_database_settings()
  url = settings.pg_dsn
  if url and url.startswith("postgresql://"):
    url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

  return url


DATABASE_URL = database_url()


def build_db_engine(settings: DatabaseSettings | None = None) -> AsyncEngine:
  """Create the async engine used by the repositories."""
  settings = settings or get_database_settings()
  url = database_url(settings)
  if not url:
    raise RuntimeError("Database connection is not configured (INSIGHTBOARD_PG_DSN is missing).")

  connect_args: dict[str, object] = {}
  # asyncpg names its connect timeout `timeout`.
  if url.startswith("postgresql+asyncpg://"):
    connect_args["timeout"] = settings.pg_connect_timeout
  return create_async_engine(url, echo=settings.debug, connect_args=connect_args)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
  """Create a session factory bound to an engine."""
  return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
