"""
AI Request Context for tracking metadata in AI API calls.

Every oracle and embedding call made while parsing a workout carries an
AIRequestContext so cost and latency can be attributed per user and per
pipeline stage in tools like Helicone.

Usage:
    from shared.ai_context import AIRequestContext

    context = AIRequestContext(
        user_id="user_123",
        feature_name="workout_extraction",
        environment="production",
    )

    await oracle.call(system_prompt, user_message, ModelTier.REASONING, context=context)
"""

import re
from dataclasses import dataclass, field, replace
from typing import Dict, Optional


VALID_ENVIRONMENTS = {"production", "staging", "dev", "development", "test"}

# Header name validation pattern (RFC 7230)
_VALID_HEADER_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-]+$")


def _sanitize_header_value(value: str) -> str:
    """
    Sanitize a header value to prevent header injection.

    Keeps only printable ASCII characters, which drops newlines and other
    control characters.
    """
    return "".join(char for char in value if char.isprintable() and ord(char) < 128)


def _sanitize_header_name(name: str) -> str:
    """Title-case a property name for a header, or return "" if it is invalid."""
    sanitized = name.replace("_", "-").title()
    if _VALID_HEADER_NAME_PATTERN.match(sanitized):
        return sanitized
    return ""


@dataclass
class AIRequestContext:
    """
    Context to attach to AI API calls for tracking and observability.

    Args:
        user_id: The user making the request (for cost attribution)
        feature_name: The pipeline stage triggering the call (for cost breakdown)
        session_id: Optional session identifier (for grouping requests)
        request_id: Optional request identifier
        environment: Deployment environment (production, staging, dev)
        custom_properties: Additional metadata key-value pairs
    """

    user_id: Optional[str] = None
    feature_name: Optional[str] = None
    session_id: Optional[str] = None
    request_id: Optional[str] = None
    environment: str = "production"
    custom_properties: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate context after initialization."""
        if self.environment not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"Invalid environment '{self.environment}'. "
                f"Must be one of: {', '.join(sorted(VALID_ENVIRONMENTS))}"
            )

        if self.user_id is not None and not self.user_id:
            raise ValueError("user_id must be a non-empty string if provided")

        if self.feature_name is not None and not self.feature_name:
            raise ValueError("feature_name must be a non-empty string if provided")

    def for_feature(self, feature_name: str) -> "AIRequestContext":
        """Copy of this context attributed to another pipeline stage."""
        return replace(
            self,
            feature_name=feature_name,
            custom_properties=dict(self.custom_properties),
        )

    def to_dict(self) -> dict:
        """Convert context to a plain dictionary."""
        result = {
            "environment": self.environment,
        }
        if self.user_id:
            result["user_id"] = self.user_id
        if self.feature_name:
            result["feature_name"] = self.feature_name
        if self.session_id:
            result["session_id"] = self.session_id
        if self.request_id:
            result["request_id"] = self.request_id
        if self.custom_properties:
            result.update(self.custom_properties)
        return result

    def to_tracking_headers(self) -> Dict[str, str]:
        """
        Convert context to provider-specific tracking headers.

        Currently generates Helicone headers. Header values are sanitized to
        prevent header injection.
        """
        headers: Dict[str, str] = {}

        if self.user_id:
            headers["Helicone-User-Id"] = _sanitize_header_value(self.user_id)

        if self.session_id:
            headers["Helicone-Session-Id"] = _sanitize_header_value(self.session_id)

        if self.feature_name:
            headers["Helicone-Property-Feature"] = _sanitize_header_value(self.feature_name)

        if self.request_id:
            headers["Helicone-Request-Id"] = _sanitize_header_value(self.request_id)

        headers["Helicone-Property-Environment"] = _sanitize_header_value(self.environment)

        for key, value in self.custom_properties.items():
            header_name = _sanitize_header_name(key)
            if header_name:
                headers[f"Helicone-Property-{header_name}"] = _sanitize_header_value(str(value))

        return headers


# Default context for when no context is provided
DEFAULT_AI_CONTEXT = AIRequestContext(
    feature_name="unknown",
    environment="production",
)


def with_feature(context: Optional[AIRequestContext], feature_name: str) -> AIRequestContext:
    """Attribute ``context`` to a feature, creating a bare context if there is none."""
    if context is None:
        return AIRequestContext(feature_name=feature_name)
    return context.for_feature(feature_name)
