"""Provider implementations."""

from app.ai.providers.base import QuestionProvider
from app.ai.providers.gemini import GeminiQuestionProvider
from app.ai.providers.openai import OpenAIQuestionProvider
from app.ai.providers.openrouter import OpenRouterQuestionProvider

__all__ = ["QuestionProvider", "GeminiQuestionProvider", "OpenAIQuestionProvider", "OpenRouterQuestionProvider"]
