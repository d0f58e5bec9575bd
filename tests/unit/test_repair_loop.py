import pytest

from backend.services.workout_parser.repair_loop import RepairLoop, RepairState


def count_down(value):
    """One violation per remaining unit."""
    return ["too big"] * value


async def decrement(value, violations):
    return value - 1


@pytest.mark.unit
class TestRepairLoop:
    """Tests for the bounded validate/repair state machine."""

    @pytest.mark.asyncio
    async def test_valid_value_converges_without_repair(self):
        """A clean value converges with zero repairs."""
        calls = []

        async def repair(value, violations):
            calls.append(value)
            return value

        outcome = await RepairLoop("test", count_down, repair).run(0)

        assert outcome.state is RepairState.CONVERGED
        assert outcome.converged
        assert outcome.iterations == 0
        assert calls == []

    @pytest.mark.asyncio
    async def test_converges_within_budget(self):
        """Two violations are fixed by two repairs."""
        outcome = await RepairLoop("test", count_down, decrement, max_iterations=3).run(2)

        assert outcome.converged
        assert outcome.value == 0
        assert outcome.iterations == 2
        assert outcome.violations == []

    @pytest.mark.asyncio
    async def test_final_repair_is_validated(self):
        """A last repair that fixes everything still converges."""
        outcome = await RepairLoop("test", count_down, decrement, max_iterations=3).run(3)

        assert outcome.converged
        assert outcome.iterations == 3

    @pytest.mark.asyncio
    async def test_exhausted_after_max_iterations(self):
        """The loop stops after exactly max_iterations repairs."""
        repairs = []

        async def repair(value, violations):
            repairs.append(value)
            return value - 1

        outcome = await RepairLoop("test", count_down, repair, max_iterations=3).run(5)

        assert outcome.state is RepairState.EXHAUSTED
        assert not outcome.converged
        assert outcome.iterations == 3
        assert len(repairs) == 3
        assert outcome.value == 2
        assert outcome.violations == ["too big", "too big"]

    @pytest.mark.asyncio
    async def test_repair_receives_current_violations(self):
        """Each repair sees the violations of the value it repairs."""
        seen = []

        async def repair(value, violations):
            seen.append(len(violations))
            return value - 1

        await RepairLoop("test", count_down, repair).run(2)

        assert seen == [2, 1]

    def test_rejects_zero_budget(self):
        """At least one repair must be allowed."""
        with pytest.raises(ValueError):
            RepairLoop("test", count_down, decrement, max_iterations=0)
