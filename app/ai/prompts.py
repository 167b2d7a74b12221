"""Prompt construction for task extraction."""

from __future__ import annotations

import json
from typing import Any

MIN_EXTRACTED_TASKS = 5
MAX_EXTRACTED_TASKS = 15

_EXAMPLE_OUTPUT: dict[str, Any] = {
  "tasks": [
    {"id": "550e8400-e29b-41d4-a716-446655440000", "description": "Clear, actionable task description", "priority": "high", "dependencies": []},
    {"id": "6ba7b810-9dad-11d1-80b4-00c04fd430c8", "description": "Another task that depends on the first", "priority": "medium", "dependencies": ["550e8400-e29b-41d4-a716-446655440000"]},
  ]
}


def render_extraction_prompt(transcript: str) -> str:
  """Render the task extraction prompt for a meeting transcript."""
  example = json.dumps(_EXAMPLE_OUTPUT, indent=2)
  return f"""You are a task extraction assistant for InsightBoard, a productivity platform.

Analyze the meeting transcript below and extract actionable tasks with their dependencies.

REQUIREMENTS:
1. Return ONLY valid JSON (no markdown, no code blocks, no explanations).
2. Give every task a unique UUID v4 id.
3. Dependencies must reference ids of tasks present in your output.
4. Priority must be one of "high", "medium", "low".

OUTPUT FORMAT:
{example}

RULES:
- Extract {MIN_EXTRACTED_TASKS}-{MAX_EXTRACTED_TASKS} meaningful tasks, neither too granular nor too broad.
- A task's dependencies are the tasks that must be completed before it.
- Keep the dependency ordering logical, with no circular dependencies.

MEETING TRANSCRIPT:
{transcript}

Now extract the tasks as JSON:"""
