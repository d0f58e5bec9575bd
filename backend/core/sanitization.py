"""
Input sanitization for workout text.

Workout text is interpolated into oracle prompts, so it is checked before
the first oracle call: empty text, oversized text (cost amplification) and
prompt-injection patterns are refused.
"""

import re

from application.exceptions import ValidationRejected

DEFAULT_MAX_LENGTH = 10000

_SUSPICIOUS_PATTERNS = [
    # Direct instruction override attempts
    re.compile(r"ignore\s+(all\s+)?previous\s+(instructions|directives|commands)", re.IGNORECASE),
    re.compile(r"disregard\s+(all\s+)?(previous|prior)\s+(instructions|directives)", re.IGNORECASE),
    re.compile(r"new\s+instructions?:", re.IGNORECASE),
    # System/role override attempts
    re.compile(r"system\s+prompt", re.IGNORECASE),
    re.compile(r"admin\s+mode", re.IGNORECASE),
    re.compile(
        r"(you\s+are|your\s+role\s+is)\s+now\s+(a|an)\s+\w+\s+(admin|assistant|helper)",
        re.IGNORECASE,
    ),
    re.compile(r"your\s+job\s+is\s+now\s+to\s+(?!focus|maintain|ensure|complete)", re.IGNORECASE),
    # Closing tags of the delimiters used in our prompts
    re.compile(
        r"</(text|workout_text|original_text|parsed_workout|identified_issues"
        r"|exercise_name|instructions|output|example)>",
        re.IGNORECASE,
    ),
    # Several closing tags in a row
    re.compile(r"</\w+>\s*</\w+>", re.IGNORECASE),
]


def sanitize_workout_text(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Validate user-supplied workout text before it reaches a prompt.

    Args:
        text: Raw workout text
        max_length: Longest accepted text

    Returns:
        The text, unchanged, if it passes every check

    Raises:
        ValidationRejected: If the text is empty, too long or looks like a
            prompt-injection attempt
    """
    if not text or not text.strip():
        raise ValidationRejected("Workout text cannot be empty", reason="empty")

    if len(text) > max_length:
        raise ValidationRejected(
            f"Workout text too long (max {max_length} characters)",
            reason="too_long",
        )

    for pattern in _SUSPICIOUS_PATTERNS:
        if pattern.search(text):
            raise ValidationRejected(
                "Workout text contains prohibited content",
                reason="prohibited_content",
            )

    return text
