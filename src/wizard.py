"""Wizard state machine: landing, three examination steps, results.

The state is an immutable value held by the app. Slides never touch the
record; they hand a partial update to ``advance`` and get a new state back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from src.record import UserRecord, empty_record


class Phase(str, Enum):
    LANDING = "landing"
    EXAMINATION = "examination"
    RESULTS = "results"


class Step(str, Enum):
    PERSONAL_INFO = "personal_info"
    LOCATION = "location"
    ROOFTOP_IMAGE = "rooftop_image"


@dataclass(frozen=True)
class StepSpec:
    step: Step
    title: str


STEPS: tuple[StepSpec, ...] = (
    StepSpec(Step.PERSONAL_INFO, "Personal Information"),
    StepSpec(Step.LOCATION, "Location Detection"),
    StepSpec(Step.ROOFTOP_IMAGE, "Rooftop Analysis"),
)
LAST_STEP_INDEX = len(STEPS) - 1

Analyzer = Callable[[UserRecord], UserRecord]


@dataclass(frozen=True)
class WizardState:
    phase: Phase = Phase.LANDING
    step_index: int = 0
    record: UserRecord = field(default_factory=empty_record)
    completed_steps: frozenset[Step] = frozenset()

    @property
    def current_step(self) -> Step:
        return STEPS[self.step_index].step

    @property
    def is_last_step(self) -> bool:
        return self.step_index == LAST_STEP_INDEX

    @property
    def all_steps_completed(self) -> bool:
        return self.completed_steps >= {spec.step for spec in STEPS}


def reset() -> WizardState:
    return WizardState()


def start(state: WizardState) -> WizardState:
    if state.phase is Phase.EXAMINATION:
        return state
    return WizardState(phase=Phase.EXAMINATION)


def advance(state: WizardState, partial: dict[str, Any], analyze: Analyzer) -> WizardState:
    """Merge a validated slide update and move forward.

    On the last step the analyzer runs and the wizard enters the results phase.
    """
    record = state.record.merge(partial)
    completed = state.completed_steps | {state.current_step}
    if not state.is_last_step:
        return WizardState(
            phase=Phase.EXAMINATION,
            step_index=state.step_index + 1,
            record=record,
            completed_steps=completed,
        )
    interim = WizardState(
        phase=Phase.EXAMINATION,
        step_index=state.step_index,
        record=record,
        completed_steps=completed,
    )
    if not interim.all_steps_completed:
        return interim
    return WizardState(
        phase=Phase.RESULTS,
        step_index=state.step_index,
        record=analyze(record),
        completed_steps=completed,
    )


def retreat(state: WizardState) -> WizardState:
    """Go back one step; going back from the first step leaves the wizard."""
    if state.step_index == 0:
        return reset()
    return WizardState(
        phase=state.phase,
        step_index=state.step_index - 1,
        record=state.record,
        completed_steps=state.completed_steps,
    )


def step_title(state: WizardState) -> str:
    return STEPS[state.step_index].title


def step_caption(state: WizardState) -> str:
    return f"Step {state.step_index + 1} of {len(STEPS)}: {step_title(state)}"


def progress_pct(state: WizardState) -> float:
    return 100.0 * (state.step_index + 1) / len(STEPS)
