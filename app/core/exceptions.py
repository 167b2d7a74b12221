import logging
from typing import Any

from app.config import Settings
from app.core.errors import InsightBoardError, NotFoundError, TaskStateError, TranscriptValidationError
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

_INTERNAL_ERROR_MSG = "Internal Server Error"
_VALUE_ERROR_PREFIX = "Value error, "

_STATUS_BY_ERROR: tuple[tuple[type[InsightBoardError], int], ...] = (
  (TranscriptValidationError, status.HTTP_400_BAD_REQUEST),
  (TaskStateError, status.HTTP_400_BAD_REQUEST),
  (NotFoundError, status.HTTP_404_NOT_FOUND),
)


def _coerce_json_safe(value: Any) -> Any:
  """Convert unsupported values into JSON-safe primitives for error responses."""
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, dict):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_coerce_json_safe(item) for item in value]
  if isinstance(value, BaseException):
    error_message = str(value)
    if error_message:
      return f"{type(value).__name__}: {error_message}"
    return type(value).__name__
  return str(value)


def _error_payload(message: str, *, request_id: str | None = None, details: Any = None) -> dict[str, Any]:
  """Build the failure envelope returned for every error response."""
  error: dict[str, Any] = {"message": message}
  # Attach a request id so support can correlate client reports to server logs.
  if request_id:
    error["requestId"] = request_id
  if details is not None:
    error["details"] = details
  return {"success": False, "error": error}


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key not in {"input", "url"}}
    if "ctx" in scrubbed and isinstance(scrubbed["ctx"], dict):
      scrubbed_ctx = dict(scrubbed["ctx"])
      scrubbed_ctx.pop("input", None)
      scrubbed["ctx"] = scrubbed_ctx

    sanitized.append(_coerce_json_safe(scrubbed))

  return sanitized


def _validation_message(errors: list[dict[str, Any]]) -> str:
  """Join validator messages into one human-readable sentence."""
  messages: list[str] = []
  for error in errors:
    message = str(error.get("msg") or "Invalid request")
    # Custom validators raise ValueError; surface their text verbatim.
    if message.startswith(_VALUE_ERROR_PREFIX):
      message = message[len(_VALUE_ERROR_PREFIX) :]
    messages.append(message)
  return "; ".join(messages) or "Invalid request"


def _status_for(exc: InsightBoardError) -> int:
  for error_type, status_code in _STATUS_BY_ERROR:
    if isinstance(exc, error_type):
      return status_code
  return status.HTTP_500_INTERNAL_SERVER_ERROR


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  logger = logging.getLogger("uvicorn.error")
  request_id = _request_id(request)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload(_INTERNAL_ERROR_MSG, request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Report request validation failures as 400s without echoing payloads."""
  request_id = _request_id(request)
  sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
  logger = logging.getLogger("uvicorn.error")
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(_validation_message(sanitized_errors), request_id=request_id, details=sanitized_errors))


def build_domain_exception_handler(settings: Settings):
  """Create the handler mapping domain errors to status codes."""

  async def domain_exception_handler(request: Request, exc: InsightBoardError) -> JSONResponse:
    logger = logging.getLogger("uvicorn.error")
    request_id = _request_id(request)
    status_code = _status_for(exc)

    # Storage and generator failures may carry driver details; never return them.
    if status_code >= 500:
      logger.error("Domain failure request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
      return JSONResponse(status_code=status_code, content=_error_payload(_INTERNAL_ERROR_MSG, request_id=request_id))

    if settings.log_http_4xx:
      logger.warning("Domain error request_id=%s path=%s status_code=%s message=%s", request_id, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content=_error_payload(str(exc), request_id=request_id))

  return domain_exception_handler


def build_http_exception_handler(settings: Settings):
  """Create the handler for FastAPI HTTPExceptions, including router 404/405s."""

  async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    request_id = _request_id(request)
    logger = logging.getLogger("uvicorn.error")
    if exc.status_code >= 500:
      logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail, exc_info=True)
      return JSONResponse(status_code=exc.status_code, content=_error_payload(_INTERNAL_ERROR_MSG, request_id=request_id))

    if settings.log_http_4xx:
      logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)

    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=_error_payload(message, request_id=request_id), headers=getattr(exc, "headers", None))

  return http_exception_handler
