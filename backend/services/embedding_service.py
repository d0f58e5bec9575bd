"""
Embedding Service for exercise names via OpenAI.

Calls OpenAI's embedding API (text-embedding-3-small by default) to turn
exercise names into fixed-length vectors for cosine similarity search.
"""

import logging
from typing import Any, Optional

from backend.ai import AIClientFactory
from backend.ai.retry import create_retry_decorator
from backend.settings import Settings, get_settings
from shared.ai_context import AIRequestContext

logger = logging.getLogger(__name__)


class EmbeddingDimensionError(ValueError):
    """The embedding API returned a vector of unexpected length."""


class OpenAIEmbeddingService:
    """Generates text embeddings using OpenAI's embedding API."""

    def __init__(
        self,
        client: Optional[Any] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the embedding service.

        Args:
            client: OpenAI client (created via AIClientFactory when omitted)
            settings: Settings override (defaults to get_settings())
        """
        self._settings = settings or get_settings()
        self._model = self._settings.embedding_model
        self._dimensions = self._settings.embedding_dimensions
        if client is None:
            context = AIRequestContext(
                feature_name="embedding_generate",
                environment=self._settings.environment,
                custom_properties={"model": self._model},
            )
            client = AIClientFactory.create_openai_client(context=context, settings=self._settings)
        self._client = client
        self._create = create_retry_decorator(
            max_attempts=self._settings.oracle_max_attempts,
        )(self._client.embeddings.create)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def generate_embedding(
        self,
        text: str,
        context: Optional[AIRequestContext] = None,
    ) -> list[float]:
        """
        Generate an embedding vector for the given text.

        Args:
            text: Text to embed
            context: AI request context for observability

        Returns:
            List of floats with exactly ``dimensions`` entries

        Raises:
            EmbeddingDimensionError: If the vector has the wrong length
            Exception: If the OpenAI API call fails
        """
        extra_body = None
        if context and self._settings.helicone_enabled:
            # Helicone reads request properties from the body for embeddings
            extra_body = {"properties": context.to_dict()}

        response = self._create(
            input=text,
            model=self._model,
            dimensions=self._dimensions,
            extra_body=extra_body,
        )
        embedding = list(response.data[0].embedding)
        if len(embedding) != self._dimensions:
            raise EmbeddingDimensionError(
                f"Expected {self._dimensions} dimensions, got {len(embedding)}"
            )
        return embedding
