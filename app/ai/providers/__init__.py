"""Provider implementations."""

from app.ai.providers.base import AIModel, ModelResponse, SimpleModelResponse
from app.ai.providers.gemini import GeminiModel

__all__ = ["AIModel", "ModelResponse", "SimpleModelResponse", "GeminiModel"]
