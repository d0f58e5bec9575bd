"""
Fake TextOracle for testing.

Responses are registered per feature name (the ``feature_name`` of the
request context each pipeline stage attaches), so a single fake can drive
validation, extraction, repair and metadata calls in one pipeline run.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from application.ports import ModelTier, OracleResponse
from shared.ai_context import AIRequestContext

Responder = Callable[[str, str], Any]
Scripted = Union[Any, Responder, Exception]


@dataclass
class OracleCall:
    """One recorded oracle call."""

    system_prompt: str
    user_message: str
    model_tier: ModelTier
    json_mode: bool
    temperature: float
    max_tokens: int
    context: Optional[AIRequestContext]

    @property
    def feature_name(self) -> Optional[str]:
        return self.context.feature_name if self.context else None


class FakeTextOracle:
    """
    Fake oracle for testing without API calls.

    A scripted response may be:
    - a dict or string, returned as content
    - a callable ``(system_prompt, user_message) -> content``
    - an exception instance, raised

    Registering a list scripts successive calls; the last entry repeats.

    Usage:
        oracle = FakeTextOracle()
        oracle.set_response("workout_validation", {"isWorkout": True, "confidence": 0.9})
        result = await validator.validate(text)
        assert oracle.call_count == 1
    """

    def __init__(self):
        self._responses: Dict[str, List[Scripted]] = {}
        self._calls: List[OracleCall] = []

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
        recorded = OracleCall(
            system_prompt=system_prompt,
            user_message=user_message,
            model_tier=model_tier,
            json_mode=json_mode,
            temperature=temperature,
            max_tokens=max_tokens,
            context=context,
        )
        self._calls.append(recorded)

        feature = recorded.feature_name
        script = self._responses.get(feature)
        if not script:
            raise AssertionError(f"No fake oracle response registered for feature '{feature}'")
        scripted = script.pop(0) if len(script) > 1 else script[0]

        if isinstance(scripted, Exception):
            raise scripted
        content = scripted(system_prompt, user_message) if callable(scripted) else scripted
        if isinstance(content, Exception):
            raise content
        raw = json.dumps(content) if not isinstance(content, str) else content
        return OracleResponse(content=content, raw=raw)

    # -------------------------------------------------------------------------
    # Test Helpers
    # -------------------------------------------------------------------------

    def set_response(self, feature_name: str, response: Union[Scripted, List[Scripted]]) -> None:
        """Register the response(s) for calls attributed to ``feature_name``."""
        if isinstance(response, list):
            self._responses[feature_name] = list(response)
        else:
            self._responses[feature_name] = [response]

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def calls(self) -> List[OracleCall]:
        return list(self._calls)

    def calls_for(self, feature_name: str) -> List[OracleCall]:
        return [c for c in self._calls if c.feature_name == feature_name]

    @property
    def last_call(self) -> Optional[OracleCall]:
        return self._calls[-1] if self._calls else None

    def reset(self) -> None:
        """Reset responses and call tracking."""
        self._responses.clear()
        self._calls.clear()


_EXERCISE_NAME_TAG = re.compile(r"<exercise_name>(.*?)</exercise_name>", re.DOTALL)


def exercise_metadata_responder(tags: Optional[List[str]] = None) -> Responder:
    """
    Responder for "exercise_metadata" calls.

    Echoes the requested exercise name in title case with fixed tags.
    """
    tags = tags or ["strength", "lower body", "compound"]

    def respond(system_prompt: str, user_message: str) -> Dict[str, Any]:
        match = _EXERCISE_NAME_TAG.search(user_message)
        name = match.group(1).strip() if match else user_message.strip()
        return {"name": name.title(), "tags": list(tags)}

    return respond
