"""Unit tests for the ContentValidator service."""
import pytest

from application.exceptions import ContentValidationFailed, OracleResponseError
from application.ports import ModelTier
from backend.services.content_validator import (
    FEATURE_NAME,
    ContentValidationResult,
    ContentValidator,
)
from shared.ai_context import AIRequestContext


@pytest.mark.unit
class TestContentValidator:
    """Tests for ContentValidator.validate."""

    @pytest.fixture
    def validator(self, oracle):
        return ContentValidator(oracle)

    @pytest.mark.asyncio
    async def test_workout_text(self, validator, oracle):
        """A confident workout verdict is returned as is."""
        oracle.set_response(
            FEATURE_NAME,
            {"isWorkout": True, "confidence": 0.95, "reason": "Sets and reps"},
        )

        result = await validator.validate("Back Squat 5x5")

        assert result.is_workout is True
        assert result.confidence == 0.95
        assert result.reason == "Sets and reps"

    @pytest.mark.asyncio
    async def test_uses_fast_tier_json_mode(self, validator, oracle):
        """Classification is a cheap deterministic JSON call."""
        oracle.set_response(FEATURE_NAME, {"isWorkout": False, "confidence": 0.9})

        await validator.validate("2 cups flour, 1 egg")

        call = oracle.last_call
        assert call.model_tier is ModelTier.FAST
        assert call.json_mode is True
        assert call.temperature == 0.0
        assert "<text>\n2 cups flour, 1 egg\n</text>" in call.user_message

    @pytest.mark.asyncio
    async def test_context_attributed_to_feature(self, validator, oracle):
        """The caller's context is kept but re-attributed to this stage."""
        oracle.set_response(FEATURE_NAME, {"isWorkout": True, "confidence": 0.8})
        context = AIRequestContext(user_id="user-1", feature_name="workout_parse", request_id="r-1")

        await validator.validate("Deadlift 3x5", context)

        sent = oracle.last_call.context
        assert sent.feature_name == FEATURE_NAME
        assert sent.user_id == "user-1"
        assert sent.request_id == "r-1"
        assert context.feature_name == "workout_parse"

    @pytest.mark.asyncio
    async def test_malformed_verdict(self, validator, oracle):
        """A reply without the verdict fields fails validation."""
        oracle.set_response(FEATURE_NAME, {"answer": "yes"})

        with pytest.raises(ContentValidationFailed) as exc_info:
            await validator.validate("Deadlift 3x5")

        assert exc_info.value.details
        assert not exc_info.value.is_bad_input

    @pytest.mark.asyncio
    async def test_confidence_out_of_range(self, validator, oracle):
        """Confidence must be within 0..1."""
        oracle.set_response(FEATURE_NAME, {"isWorkout": True, "confidence": 7})

        with pytest.raises(ContentValidationFailed):
            await validator.validate("Deadlift 3x5")

    @pytest.mark.asyncio
    async def test_non_json_reply(self, validator, oracle):
        """An undecodable reply fails validation."""
        oracle.set_response(FEATURE_NAME, OracleResponseError("no JSON", raw="sure!"))

        with pytest.raises(ContentValidationFailed):
            await validator.validate("Deadlift 3x5")


@pytest.mark.unit
class TestContentValidationResult:
    """Tests for the acceptance rule."""

    @pytest.mark.parametrize(
        "is_workout,confidence,accepted",
        [
            (True, 0.7, True),
            (True, 0.95, True),
            (True, 0.69, False),
            (False, 0.99, False),
        ],
    )
    def test_accepts(self, is_workout, confidence, accepted):
        """Only confident workout verdicts are accepted."""
        result = ContentValidationResult(is_workout=is_workout, confidence=confidence)
        assert result.accepts(0.7) is accepted
