"""AI client helpers: client factory, request context and retry policy."""

from backend.ai.client_factory import AIClientFactory
from backend.ai.retry import is_retryable_error, retry_async_call
from shared.ai_context import AIRequestContext

__all__ = [
    "AIClientFactory",
    "AIRequestContext",
    "is_retryable_error",
    "retry_async_call",
]
