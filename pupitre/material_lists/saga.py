"""
Saga - Multi-system writes with named compensating actions.

Each step pairs a side effect with the action that undoes it. When a
required step fails, completed steps are compensated in reverse order
and the failure is re-raised. Optional steps only record their failure.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class SagaStep:
    name: str
    action: Callable[[], Any]
    compensation: Optional[Callable[[], Any]] = None
    required: bool = True


@dataclass
class StepOutcome:
    """What happened to one step."""
    name: str
    success: bool
    result: Any = None
    error: Optional[str] = None
    compensated: bool = False


class Saga:
    """
    Ordered steps with compensations.

    Usage:
        saga = Saga("edit-material")
        saga.step("push-catalog", push, compensation=restore, required=False)
        saga.step("persist", persist)
        outcomes = saga.run()
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: list[SagaStep] = []
        self.outcomes: list[StepOutcome] = []
        self._completed: list[tuple[SagaStep, StepOutcome]] = []

    def step(
        self,
        name: str,
        action: Callable[[], Any],
        compensation: Optional[Callable[[], Any]] = None,
        required: bool = True,
    ) -> "Saga":
        self.steps.append(SagaStep(name, action, compensation, required))
        return self

    def run(self) -> list[StepOutcome]:
        """
        Execute every step in order.

        Returns:
            One outcome per executed step

        Raises:
            Whatever the first failing required step raised, after compensation
        """
        for step in self.steps:
            try:
                result = step.action()
            except Exception as e:
                outcome = StepOutcome(step.name, success=False, error=str(e))
                self.outcomes.append(outcome)
                if not step.required:
                    logger.warning(f"[{self.name}] optional step '{step.name}' failed: {e}")
                    continue
                logger.error(f"[{self.name}] step '{step.name}' failed: {e}")
                self.compensate()
                raise
            outcome = StepOutcome(step.name, success=True, result=result)
            self.outcomes.append(outcome)
            self._completed.append((step, outcome))
        return self.outcomes

    def compensate(self):
        """Undo completed steps, newest first. Compensation failures are logged."""
        while self._completed:
            step, outcome = self._completed.pop()
            if step.compensation is None:
                continue
            try:
                step.compensation()
                outcome.compensated = True
                logger.info(f"[{self.name}] compensated '{step.name}'")
            except Exception as e:
                logger.error(f"[{self.name}] compensation for '{step.name}' failed: {e}")

    def outcome(self, name: str) -> Optional[StepOutcome]:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None
