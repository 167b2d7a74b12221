"""Dependency-graph integrity pipeline for extracted tasks."""

from app.graph.cycles import CIRCULAR_DEPENDENCY_MESSAGE, CycleDetectionResult, CycleDetector
from app.graph.models import GraphTask, TaskDraft, TaskPriority, TaskStatus
from app.graph.readiness import ReadinessCalculator
from app.graph.sanitizer import GraphSanitizer

__all__ = ["CIRCULAR_DEPENDENCY_MESSAGE", "CycleDetectionResult", "CycleDetector", "GraphSanitizer", "GraphTask", "ReadinessCalculator", "TaskDraft", "TaskPriority", "TaskStatus"]
