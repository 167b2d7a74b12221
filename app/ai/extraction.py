"""Turn a transcript into raw task candidates using a text-generation model."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from app.ai.json_parser import parse_json_with_fallback, strip_json_fences
from app.ai.prompts import render_extraction_prompt
from app.ai.providers.base import AIModel
from app.core.errors import ExtractionFailure

logger = logging.getLogger(__name__)


class TaskExtractor(Protocol):
  """Anything that can propose tasks for a transcript."""

  async def extract_tasks(self, transcript: str) -> list[dict[str, Any]]: ...


def parse_extraction_response(text: str) -> list[dict[str, Any]]:
  """Validate the model payload shape and return its task candidates.

  Only structure is checked here: a `tasks` list of objects with a
  description. Ids, priorities and dependencies are repaired downstream by
  the graph sanitizer.
  """
  cleaned = strip_json_fences(text)
  if not cleaned:
    raise ExtractionFailure("Failed to parse model response: empty response")

  try:
    payload = parse_json_with_fallback(cleaned)
  except json.JSONDecodeError as exc:
    raise ExtractionFailure(f"Failed to parse model response: {exc}") from exc

  tasks = payload.get("tasks") if isinstance(payload, dict) else None
  if not isinstance(tasks, list):
    raise ExtractionFailure("Invalid response format: tasks array is required")

  for index, task in enumerate(tasks):
    if not isinstance(task, dict):
      raise ExtractionFailure(f"Invalid response format: task {index} is not an object")
    description = task.get("description")
    if not isinstance(description, str) or not description.strip():
      raise ExtractionFailure(f"Task {index} is missing description")

  return tasks


class GeminiTaskExtractor:
  """Task extractor backed by a Gemini model."""

  def __init__(self, model: AIModel) -> None:
    self._model = model

  async def extract_tasks(self, transcript: str) -> list[dict[str, Any]]:
    prompt = render_extraction_prompt(transcript)
    try:
      response = await self._model.generate(prompt)
    except Exception as exc:  # noqa: BLE001
      logger.error("Model %s call failed", self._model.name, exc_info=True)
      raise ExtractionFailure(f"Failed to extract tasks from transcript: {exc}") from exc

    if response.usage:
      logger.info("Extraction token usage: %s", response.usage)

    tasks = parse_extraction_response(response.content)
    logger.info("Model %s proposed %d tasks", self._model.name, len(tasks))
    return tasks
