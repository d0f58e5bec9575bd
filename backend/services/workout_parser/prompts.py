"""
Prompt templates for the workout parser.

User text is always wrapped in XML-style delimiters. Input sanitization
refuses text that tries to close one of these tags.
"""

import json
from typing import Any, Iterable

# =============================================================================
# Content validation
# =============================================================================

CONTENT_VALIDATION_SYSTEM_PROMPT = """You are a workout content validator. Your job is to determine if the provided text is workout-related content.

<instructions>
Analyze the input text and determine if it describes a fitness workout, exercise routine, training session, or similar physical activity plan.

Return a JSON object with this structure:
{
  "isWorkout": true|false,
  "confidence": 0.0-1.0,
  "reason": "Brief explanation if not a workout"
}

Valid workout content includes:
- Exercise lists with sets/reps
- Training programs
- Workout routines
- Warm-up/cool-down sequences
- Fitness class descriptions

NOT valid workout content:
- Recipes or nutrition plans
- Random text
- Code or technical documentation
- Stories or narratives
</instructions>

Return ONLY valid JSON, no additional text."""


def build_validation_message(text: str) -> str:
    return f"Validate the following text:\n\n<text>\n{text}\n</text>"


# =============================================================================
# Structure extraction (concise schema)
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = "You are a workout text parser. Return ONLY valid JSON."

EXTRACTION_INSTRUCTIONS = """Convert the workout text into a JSON object with this shape:

{
  "name": "workout name from the text",
  "notes": "workout-level notes, or empty string",
  "blocks": [
    {
      "label": "section name like 'Warm Up' or 'Superset A'",
      "notes": "block-level notes, or empty string",
      "exercises": [
        {
          "exerciseName": "Barbell Back Squat",
          "numSets": 3,
          "prescription": "3 x 8-10",
          "notes": "exercise-level notes, or empty string"
        }
      ]
    }
  ]
}

Rules:
- exerciseName: the commonly known name, equipment first then movement (e.g. "Dumbbell Bench Press").
- If several options are listed ("A or B"), use the FIRST one only.
- numSets: how many sets the exercise is performed. "2x15" means 2. For supersets and circuits, exercises share the block's set count (e.g. "4 sets") unless the text says otherwise.
- prescription: a concise summary "Sets x Reps/Duration x Weight (Rest)", e.g. "3 x 8", "3 x 8 ea.", "4 sets", "5 3 1".
- Do NOT output reps, weight or duration per set and do NOT output a sets array."""


def build_extraction_message(text: str) -> str:
    return f"Parse the following workout text:\n<text>\n{text}\n</text>\n\n<instructions>\n{EXTRACTION_INSTRUCTIONS}\n</instructions>"


# =============================================================================
# Repairs
# =============================================================================

SYNTAX_REPAIR_SYSTEM_PROMPT = """You fix JSON workout documents that fail schema validation.

Fix ONLY the fields listed in <identified_issues>. Do not change exerciseId, exerciseSlug or any field that is already valid.

Schema rules:
- name: non-empty string (take it from the text, or use "Workout")
- date: "YYYY-MM-DD"; lastModifiedTime: ISO-8601 timestamp string
- blocks, exercises and sets: non-empty arrays
- setNumber: integer starting at 1, sequential
- weightUnit: exactly "lbs" or "kg" (e.g. "pounds" -> "lbs", "kilograms" -> "kg")
- reps, weight, duration: always null
- rpe: null or a number from 1 to 10
- numbers must be JSON numbers, not strings

Return the complete corrected workout as JSON only."""

SEMANTIC_REPAIR_SYSTEM_PROMPT = """You fix set counts in parsed workouts so they match the original text.

You may ONLY change how many entries each "sets" array has. Never change prescription, exerciseId, exerciseSlug, names or notes.

Return the complete corrected workout as JSON only."""


def _format_issues(issues: Iterable[Any]) -> str:
    return "\n".join(f"- {issue}" for issue in issues)


def build_repair_message(original_text: str, payload: dict, issues: Iterable[Any]) -> str:
    """User turn shared by both repair loops: text, current draft, violations."""
    return (
        f"<original_text>\n{original_text}\n</original_text>\n\n"
        f"<parsed_workout>\n{json.dumps(payload, indent=2)}\n</parsed_workout>\n\n"
        f"<identified_issues>\n{_format_issues(issues)}\n</identified_issues>"
    )


# =============================================================================
# Exercise metadata
# =============================================================================

EXERCISE_METADATA_SYSTEM_PROMPT = """You create catalog entries for fitness exercises.

Given an exercise name, return JSON:
{
  "name": "Properly Capitalized Display Name",
  "tags": ["3 to 6 lowercase tags"]
}

Pick tags from:
- muscle group: chest, back, shoulders, biceps, triceps, quads, hamstrings, glutes, calves, core
- movement pattern: push, pull, squat, hinge, lunge, carry, rotation
- equipment: barbell, dumbbell, kettlebell, cable, machine, bodyweight, band
- type: strength, power, cardio, mobility, plyometric

Return ONLY valid JSON."""


def build_exercise_metadata_message(exercise_name: str) -> str:
    return f"<exercise_name>{exercise_name}</exercise_name>"
