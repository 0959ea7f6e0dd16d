"""LLM adapter layer - abstracts over the upstream generative API."""

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import create_llm_client
from app.adapters.llm.gemini_client import GeminiClient

__all__ = [
    "AbstractLLMClient",
    "GeminiClient",
    "create_llm_client",
]
