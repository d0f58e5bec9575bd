"""
Text Oracle Interface (Port).

Defines the interface for the text-generation model the parser drives.
The oracle is a best-effort JSON producer: nothing it returns is trusted
until this application's own validators have checked it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from shared.ai_context import AIRequestContext


class ModelTier(str, Enum):
    """Cost/latency tier requested from the oracle."""

    FAST = "fast"
    REASONING = "reasoning"


@dataclass
class OracleResponse:
    """
    Oracle output.

    Attributes:
        content: Decoded JSON object in JSON mode, otherwise the text
        raw: Unparsed text as returned by the model
    """

    content: Any
    raw: str


class TextOracle(Protocol):
    """Abstract interface for a text-generation oracle."""

    async def call(
        self,
        system_prompt: str,
        user_message: str,
        model_tier: ModelTier,
        *,
        json_mode: bool = False,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        context: Optional[AIRequestContext] = None,
    ) -> OracleResponse:
        """
        Run one completion.

        Transient failures (rate limits, timeouts, 5xx) are retried inside
        the implementation. Callers see either a response or a final error.

        Args:
            system_prompt: System instructions
            user_message: User turn
            model_tier: Which model tier to use
            json_mode: Decode the reply as a JSON object
            temperature: Sampling temperature
            max_tokens: Output token cap
            context: Request context for observability

        Returns:
            OracleResponse with decoded content and raw text

        Raises:
            OracleResponseError: If json_mode is set and the reply holds no JSON object
        """
        ...
