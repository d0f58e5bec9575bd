"""AI client factory with Helicone integration support."""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from backend.settings import Settings, get_settings
from shared.ai_context import AIRequestContext


logger = logging.getLogger(__name__)

# Helicone proxy URLs (private - implementation detail)
_HELICONE_OPENAI_BASE_URL = "https://oai.helicone.ai/v1"
_HELICONE_ANTHROPIC_BASE_URL = "https://anthropic.helicone.ai"

# Default client timeout
DEFAULT_TIMEOUT = 60.0


def _create_httpx_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.Client:
    """Sync httpx client for proxied OpenAI calls (headers stay out of debug logs)."""
    return httpx.Client(
        timeout=timeout,
        limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
    )


def _create_async_httpx_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Async httpx client for proxied Anthropic calls."""
    return httpx.AsyncClient(
        timeout=timeout,
        limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
    )


def _helicone_headers(settings: Settings, context: AIRequestContext | None) -> Dict[str, str] | None:
    """
    Default headers for a Helicone-proxied client, or None to call directly.

    Falls back to direct calls when Helicone is enabled without an API key.
    """
    if not settings.helicone_enabled:
        return None
    if not settings.helicone_api_key:
        logger.warning(
            "helicone_enabled=true but helicone_api_key not set. "
            "Falling back to direct API calls."
        )
        return None

    headers = {"Helicone-Auth": f"Bearer {settings.helicone_api_key}"}
    if context:
        headers.update(context.to_tracking_headers())
    return headers


class AIClientFactory:
    """Factory for creating AI clients with optional Helicone integration."""

    @staticmethod
    def create_openai_client(
        context: AIRequestContext | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        settings: Settings | None = None,
    ) -> Any:
        """
        Create a sync OpenAI client, optionally proxied through Helicone.

        Args:
            context: Request context for tracking and observability
            timeout: Client timeout in seconds
            settings: Settings override (defaults to get_settings())

        Returns:
            OpenAI client instance

        Raises:
            ValueError: If the OpenAI API key is not configured
        """
        import openai

        settings = settings or get_settings()
        if not settings.openai_api_key:
            raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

        client_kwargs: Dict[str, Any] = {
            "api_key": settings.openai_api_key,
            "timeout": timeout,
        }

        default_headers = _helicone_headers(settings, context)
        if default_headers is not None:
            client_kwargs["base_url"] = _HELICONE_OPENAI_BASE_URL
            client_kwargs["default_headers"] = default_headers
            client_kwargs["http_client"] = _create_httpx_client(timeout)
            logger.debug("Creating OpenAI client with Helicone proxy")
        else:
            logger.debug("Creating OpenAI client (direct)")

        return openai.OpenAI(**client_kwargs)

    @staticmethod
    def create_anthropic_client(
        context: AIRequestContext | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        settings: Settings | None = None,
    ) -> Any:
        """
        Create an async Anthropic client, optionally proxied through Helicone.

        Args:
            context: Request context for tracking and observability
            timeout: Client timeout in seconds
            settings: Settings override (defaults to get_settings())

        Returns:
            AsyncAnthropic client instance

        Raises:
            ValueError: If the Anthropic API key is not configured
        """
        from anthropic import AsyncAnthropic

        settings = settings or get_settings()
        if not settings.anthropic_api_key:
            raise ValueError("Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable.")

        client_kwargs: Dict[str, Any] = {
            "api_key": settings.anthropic_api_key,
            "timeout": timeout,
            # Retries are handled by backend.ai.retry
            "max_retries": 0,
        }

        default_headers = _helicone_headers(settings, context)
        if default_headers is not None:
            client_kwargs["base_url"] = _HELICONE_ANTHROPIC_BASE_URL
            client_kwargs["default_headers"] = default_headers
            client_kwargs["http_client"] = _create_async_httpx_client(timeout)
            logger.debug("Creating Anthropic client with Helicone proxy")
        else:
            logger.debug("Creating Anthropic client (direct)")

        return AsyncAnthropic(**client_kwargs)
