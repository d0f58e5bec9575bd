"""
Exercise name normalization and slugs.

The slug is the identity key for exercises: any two names that produce the
same slug are the same exercise. Abbreviations come from
shared/dictionaries/normalization.yaml.
"""

import pathlib
import re

import yaml


ROOT = pathlib.Path(__file__).resolve().parents[2]

DICT = yaml.safe_load((ROOT / "shared/dictionaries/normalization.yaml").read_text())

# Longest abbreviation first so "t-bar" is expanded before anything shorter
_EXPANSIONS = [
    (re.compile(rf"(?<![a-z0-9]){re.escape(k)}(?![a-z0-9])"), v)
    for k, v in sorted(DICT["expand"].items(), key=lambda kv: -len(kv[0]))
]


def normalize_name(text: str) -> str:
    """
    Lowercase, trim, collapse whitespace and expand known abbreviations.

    >>> normalize_name("  DB   Bench Press ")
    'dumbbell bench press'
    """
    t = re.sub(r"\s+", " ", text.lower()).strip()
    for pattern, replacement in _EXPANSIONS:
        t = pattern.sub(replacement, t)
    return t


def slugify(text: str) -> str:
    """
    Canonical slug for an exercise name.

    Characters outside [a-z0-9-] become "-", runs of "-" collapse and the
    edges are trimmed. Returns "" when nothing usable is left.

    >>> slugify("DB Bench Press")
    'dumbbell-bench-press'
    >>> slugify("PULL-UP")
    'pull-up'
    """
    t = normalize_name(text)
    t = re.sub(r"[^a-z0-9-]", "-", t)
    t = re.sub(r"-{2,}", "-", t)
    return t.strip("-")
