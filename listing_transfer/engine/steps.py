"""Fixed, ordered workflow steps and their progress values."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Step(str, Enum):
    CONNECTING_SOURCE = "connecting_source"
    EXTRACTING_DATA = "extracting_data"
    DOWNLOADING_MEDIA = "downloading_media"
    CONNECTING_TARGET = "connecting_target"
    PUBLISHING = "publishing"
    FINALIZING = "finalizing"


@dataclass(frozen=True)
class StepDef:
    step: Step
    progress: int
    message: str


STEPS: tuple[StepDef, ...] = (
    StepDef(Step.CONNECTING_SOURCE, 20, "Connecting to the source system..."),
    StepDef(Step.EXTRACTING_DATA, 40, "Extracting property data..."),
    StepDef(Step.DOWNLOADING_MEDIA, 60, "Downloading property photos..."),
    StepDef(Step.CONNECTING_TARGET, 80, "Connecting to the target system..."),
    StepDef(Step.PUBLISHING, 90, "Publishing the listing..."),
    StepDef(Step.FINALIZING, 100, "Finalizing automation..."),
)

STEP_DEFS: dict[Step, StepDef] = {d.step: d for d in STEPS}
STEP_ORDER: tuple[str, ...] = tuple(d.step.value for d in STEPS)
