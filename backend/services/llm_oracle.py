"""
Anthropic-backed text oracle.

Implements the TextOracle port on top of the Anthropic Messages API:
- model tiers map to configured model names
- JSON mode prefills the assistant turn with "{" and decodes the first
  JSON object of the reply (any trailing prose is ignored)
- transient API errors are retried here with exponential backoff, so the
  parsing pipeline never has to
"""

import json
import logging
from typing import Any, Optional

from application.exceptions import OracleResponseError
from application.ports.text_oracle import ModelTier, OracleResponse
from backend.ai import AIClientFactory, retry_async_call
from backend.settings import Settings, get_settings
from shared.ai_context import AIRequestContext

logger = logging.getLogger(__name__)

_JSON_PREFILL = "{"


def parse_json_object(text: str) -> dict:
    """
    Decode the first JSON object found in ``text``.

    >>> parse_json_object('{"a": 1} and some commentary')
    {'a': 1}

    Raises:
        OracleResponseError: If there is no decodable JSON object
    """
    start = text.find("{")
    if start < 0:
        raise OracleResponseError("Oracle reply contains no JSON object", raw=text)
    try:
        value, _ = json.JSONDecoder().raw_decode(text[start:])
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"Oracle reply is not valid JSON: {e}", raw=text) from e
    if not isinstance(value, dict):
        raise OracleResponseError("Oracle reply is not a JSON object", raw=text)
    return value


class AnthropicTextOracle:
    """TextOracle implementation using Claude models."""

    def __init__(self, client: Optional[Any] = None, settings: Optional[Settings] = None):
        """
        Args:
            client: AsyncAnthropic client (created from settings when omitted)
            settings: Settings override (defaults to get_settings())
        """
        self._settings = settings or get_settings()
        self._client = client or AIClientFactory.create_anthropic_client(
            timeout=self._settings.oracle_timeout_seconds,
            settings=self._settings,
        )

    def model_for(self, tier: ModelTier) -> str:
        if tier is ModelTier.FAST:
            return self._settings.oracle_fast_model
        return self._settings.oracle_reasoning_model

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
        messages = [{"role": "user", "content": user_message}]
        if json_mode:
            messages.append({"role": "assistant", "content": _JSON_PREFILL})

        request: dict[str, Any] = {
            "model": self.model_for(model_tier),
            "system": system_prompt,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if context and self._settings.helicone_enabled:
            request["extra_headers"] = context.to_tracking_headers()

        feature = context.feature_name if context else "unknown"
        logger.debug(f"Oracle call feature={feature} model={request['model']} json_mode={json_mode}")

        response = await retry_async_call(
            self._client.messages.create,
            max_attempts=self._settings.oracle_max_attempts,
            **request,
        )

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(
                f"Oracle call feature={feature} input_tokens={usage.input_tokens} "
                f"output_tokens={usage.output_tokens}"
            )

        if not json_mode:
            if not text.strip():
                raise OracleResponseError("Oracle returned an empty reply", raw=text)
            return OracleResponse(content=text, raw=text)

        raw = _JSON_PREFILL + text
        return OracleResponse(content=parse_json_object(raw), raw=raw)
