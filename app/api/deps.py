"""Shared FastAPI dependencies resolving lifespan-owned services."""

from __future__ import annotations

from fastapi import Depends, Request

from app.services.container import ServiceContainer
from app.services.task_board import TaskBoardService


def get_services(request: Request) -> ServiceContainer:
  """Return the service container built by the application lifespan."""
  services = getattr(request.app.state, "services", None)
  if services is None:
    raise RuntimeError("Services not initialized")
  return services


def get_task_board(services: ServiceContainer = Depends(get_services)) -> TaskBoardService:  # noqa: B008
  return services.task_board
