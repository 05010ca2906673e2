"""Service layer."""

from paperpilot.services.chat_service import ChatService
from paperpilot.services.context_assembler import build_context
from paperpilot.services.gemini_service import GeminiService
from paperpilot.services.generation_service import (
    GenerationConfig,
    GenerationOrchestrator,
    GenerationValidationError,
)
from paperpilot.services.llm_base import ProviderAuthError, ProviderError, ProviderSessionConfig
from paperpilot.services.openrouter_service import OpenRouterService
from paperpilot.services.paper_store import PaperStore
from paperpilot.services.provider_session import ProviderSession
from paperpilot.services.semantic_scholar_service import SearchServiceError, SemanticScholarService

__all__ = [
    "ChatService",
    "GeminiService",
    "GenerationConfig",
    "GenerationOrchestrator",
    "GenerationValidationError",
    "OpenRouterService",
    "PaperStore",
    "ProviderAuthError",
    "ProviderError",
    "ProviderSession",
    "ProviderSessionConfig",
    "SearchServiceError",
    "SemanticScholarService",
    "build_context",
]
