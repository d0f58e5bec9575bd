"""
Bounded validate/repair state machine shared by the syntax and semantic fixers.

    VALIDATING --(no violations)--> CONVERGED
    VALIDATING --(violations, budget left)--> REPAIRING --> VALIDATING
    VALIDATING --(violations, budget spent)--> EXHAUSTED

``max_iterations`` caps the number of REPAIRING steps, which is the number
of oracle calls. The document produced by the last repair is always
validated, so a final repair that fixes everything still converges.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RepairState(str, Enum):
    VALIDATING = "validating"
    REPAIRING = "repairing"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class RepairOutcome(Generic[T]):
    """Terminal state of a repair loop."""

    state: RepairState
    value: T
    iterations: int
    violations: List[Any] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.state is RepairState.CONVERGED


class RepairLoop(Generic[T]):
    """
    Runs detect/repair until the value is clean or the budget is spent.

    Args:
        name: Label used in logs
        detect: Returns the violations of a value (empty when valid)
        repair: Returns a new value given the current one and its violations
        max_iterations: Maximum number of repair steps
    """

    def __init__(
        self,
        name: str,
        detect: Callable[[T], Sequence[Any]],
        repair: Callable[[T, Sequence[Any]], Awaitable[T]],
        max_iterations: int = 3,
    ):
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self._name = name
        self._detect = detect
        self._repair = repair
        self._max_iterations = max_iterations

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    async def run(self, value: T) -> RepairOutcome[T]:
        state = RepairState.VALIDATING
        iterations = 0
        violations: List[Any] = []

        while True:
            if state is RepairState.VALIDATING:
                violations = list(self._detect(value))
                if not violations:
                    state = RepairState.CONVERGED
                elif iterations >= self._max_iterations:
                    state = RepairState.EXHAUSTED
                else:
                    state = RepairState.REPAIRING
                logger.info(
                    f"[{self._name}] iteration {iterations}/{self._max_iterations}: "
                    f"{len(violations)} violation(s)"
                )
                for violation in violations:
                    logger.debug(f"[{self._name}]   {violation}")

            elif state is RepairState.REPAIRING:
                iterations += 1
                value = await self._repair(value, violations)
                state = RepairState.VALIDATING

            else:
                break

        if state is RepairState.EXHAUSTED:
            logger.warning(
                f"[{self._name}] exhausted after {iterations} repair(s) with "
                f"{len(violations)} violation(s) left"
            )
        return RepairOutcome(state=state, value=value, iterations=iterations, violations=violations)
