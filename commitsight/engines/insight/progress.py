"""Stage tracking for an insight run."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Stage(Enum):
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    SCORING = "scoring"
    PROMPT_BUILDING = "prompt_building"
    MODEL_INVOCATION = "model_invocation"
    NORMALIZING = "normalizing"


class RunState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class StageProgress:
    stage: Stage
    status: str = "running"  # "running" | "completed" | "failed"
    start_time: float | None = None
    end_time: float | None = None
    detail: str = ""
    error: str | None = None

    @property
    def duration(self) -> float | None:
        if self.start_time is not None and self.end_time is not None:
            return round(self.end_time - self.start_time, 3)
        return None


class RunProgress:
    """Linear stage machine of one run.

    Stages are entered in order; a failed stage moves the run to
    ``FAILED`` and no later stage may start.
    """

    def __init__(self) -> None:
        self.stages: list[StageProgress] = []
        self.state = RunState.PENDING
        self.callbacks: list[Callable[[StageProgress], None]] = []

    @property
    def current(self) -> StageProgress | None:
        return self.stages[-1] if self.stages else None

    def start(self, stage: Stage) -> None:
        if self.state is RunState.FAILED:
            raise RuntimeError(f"cannot start {stage.value}: run already failed")
        if self.state is RunState.DONE:
            raise RuntimeError(f"cannot start {stage.value}: run already finished")
        self.state = RunState.RUNNING
        p = StageProgress(stage=stage, start_time=time.monotonic())
        self.stages.append(p)
        self._notify(p)

    def complete(self, detail: str = "") -> None:
        p = self.current
        if p is not None and p.status == "running":
            p.status = "completed"
            p.end_time = time.monotonic()
            p.detail = detail
            self._notify(p)

    def fail(self, error: str) -> None:
        p = self.current
        if p is not None and p.status == "running":
            p.status = "failed"
            p.end_time = time.monotonic()
            p.error = error
            self._notify(p)
        self.state = RunState.FAILED

    def finish(self) -> None:
        self.state = RunState.DONE

    def get_summary(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "stages": [
                {
                    "stage": p.stage.value,
                    "status": p.status,
                    "duration": p.duration,
                    "detail": p.detail,
                    "error": p.error,
                }
                for p in self.stages
            ],
            "total_duration": round(sum(p.duration or 0 for p in self.stages), 3),
        }

    def _notify(self, p: StageProgress) -> None:
        for cb in self.callbacks:
            try:
                cb(p)
            except Exception:
                logger.debug("Progress callback error for stage %s", p.stage.value, exc_info=True)
