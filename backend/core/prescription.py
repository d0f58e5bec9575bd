"""
Set counts implied by prescription text and block headings.

Prescriptions are short free-text summaries such as "3 x 8-10",
"4 sets", "5 3 1" or "6-8 reps". Only the first three forms say how many
sets there are; anything else returns None.
"""

import re
from typing import Optional

_SETS_BY_REPS = re.compile(r"^\s*(\d+)\s*[x×]", re.IGNORECASE)
_SETS_WORD = re.compile(r"^\s*(\d+)\s*(?:sets?|rounds?)\b", re.IGNORECASE)
_REP_LADDER = re.compile(r"^\s*\d+(?:\s+\d+)+\s*$")

# "(4 sets, 2-3 min rest)", "3 rounds", "Superset A - 3x"
_GROUP_COUNT = re.compile(r"\b(\d+)\s*(?:x\s*)?(?:sets?|rounds?)\b", re.IGNORECASE)


def implied_set_count(prescription: Optional[str]) -> Optional[int]:
    """
    Number of sets a prescription declares, if any.

    >>> implied_set_count("3 x 8-10")
    3
    >>> implied_set_count("5 3 1")
    3
    >>> implied_set_count("6-8 reps") is None
    True
    """
    if not prescription:
        return None

    match = _SETS_BY_REPS.match(prescription) or _SETS_WORD.match(prescription)
    if match:
        count = int(match.group(1))
        return count if count > 0 else None

    if _REP_LADDER.match(prescription):
        return len(prescription.split())

    return None


def group_set_count(*texts: Optional[str]) -> Optional[int]:
    """
    Set count declared for a whole block, from its label or notes.

    The first text that declares a count wins.

    >>> group_set_count("Superset A (4 sets)", None)
    4
    >>> group_set_count("Warm Up", "8-10 mins") is None
    True
    """
    for text in texts:
        if not text:
            continue
        match = _GROUP_COUNT.search(text)
        if match and int(match.group(1)) > 0:
            return int(match.group(1))
    return None
