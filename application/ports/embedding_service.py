"""
Embedding Service Interface (Port).

Defines the abstract interface for generating text embeddings.
Implementations may use OpenAI, local models, or other backends.
"""

from typing import Optional, Protocol

from shared.ai_context import AIRequestContext


class EmbeddingService(Protocol):
    """Abstract interface for text embedding generation."""

    @property
    def dimensions(self) -> int:
        """Length of every vector this service returns."""
        ...

    def generate_embedding(
        self,
        text: str,
        context: Optional[AIRequestContext] = None,
    ) -> list[float]:
        """
        Generate an embedding vector for the given text.

        Args:
            text: Text to embed (an exercise name)
            context: AI request context for observability

        Returns:
            List of floats with exactly ``dimensions`` entries

        Raises:
            Exception: If embedding generation fails
        """
        ...
