import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from app.ai.extraction import GeminiTaskExtractor
from app.ai.providers.gemini import GeminiModel
from app.core.database import build_db_engine, build_session_factory
from app.core.logging import initialize_logging
from app.services.container import build_services
from app.storage.postgres_transcripts_repo import PostgresTranscriptsRepository
from fastapi import FastAPI


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Build the service graph, run the job worker, and tear both down on shutdown."""
  from app.config import get_database_settings, get_settings

  settings = get_settings()
  logger = logging.getLogger("app.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    # Keep serving with stdout-only logging when the log directory is unwritable.
    logger.warning("Logging initialization failed; continuing with default handlers.", exc_info=True)

  database_settings = get_database_settings()
  logger.info("Connecting to database %s", _redact_dsn(database_settings.pg_dsn))
  engine = build_db_engine(database_settings)
  session_factory = build_session_factory(engine)

  model = GeminiModel(settings.gemini_model, api_key=settings.gemini_api_key)
  services = build_services(settings, repo=PostgresTranscriptsRepository(session_factory), extractor=GeminiTaskExtractor(model))
  app.state.services = services
  services.scheduler.start()
  logger.info("Startup complete (environment=%s, model=%s).", settings.environment, settings.gemini_model)

  try:
    yield
  finally:
    await services.scheduler.stop()
    await engine.dispose()
    logger.info("Shutdown complete.")


def _redact_dsn(raw: str | None) -> str:
  """Redact credentials from a DSN while keeping host/db visible."""
  if not raw:
    return "<unset>"

  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"

  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  database = parsed.path.lstrip("/")
  path = f"/{database}" if database else ""
  return f"{parsed.scheme}://{netloc}{path}"
