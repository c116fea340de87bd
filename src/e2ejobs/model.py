# model.py
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

from .errors import JobSealedError, StepExecutionError, JobCancelledError

if TYPE_CHECKING:
    from .context import ExecutionContext


@runtime_checkable
class Step(Protocol):
    """
    One unit of work inside a job: create a resource, delete it,
    install a chart, validate a metric...

    `run` returns the values it produced (or None) and raises on failure.
    """

    def run(self, ctx: "ExecutionContext") -> Optional[Mapping[str, Any]]: ...


# Called right before its step. May return a replacement step.
WiringFn = Callable[["ExecutionContext"], Optional[Step]]


def step_name(step: Any) -> str:
    name = getattr(step, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(step).__name__


@dataclass(frozen=True)
class StepEntry:
    step: Step
    wiring: Optional[WiringFn] = None

    @property
    def name(self) -> str:
        return step_name(self.step)


@dataclass(frozen=True)
class Scenario:
    """A named, reusable bundle of steps that can be spliced into any job."""
    name: str
    entries: Tuple[StepEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)


class JobState(str, enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StepStatus(str, enum.Enum):
    NOT_RUN = "not_run"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Job:
    """
    An ordered pipeline of steps run one after the other against a
    single execution context.

    Entries can only be appended while the job is NOT_STARTED.
    """
    name: str
    entries: List[StepEntry] = field(default_factory=list)
    state: JobState = JobState.NOT_STARTED

    def append(self, entry: StepEntry) -> None:
        if self.state is not JobState.NOT_STARTED:
            raise JobSealedError(self.name)
        self.entries.append(entry)

    def extend(self, entries: Tuple[StepEntry, ...] | List[StepEntry]) -> None:
        if self.state is not JobState.NOT_STARTED:
            raise JobSealedError(self.name)
        self.entries.extend(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def run(self, **kwargs: Any) -> "JobResult":
        from .runner import run_job

        return run_job(self, **kwargs)


@dataclass
class StepResult:
    index: int
    name: str
    status: StepStatus = StepStatus.NOT_RUN
    seconds: float = 0.0
    outputs: List[str] = field(default_factory=list)
    note: str = ""


@dataclass
class JobResult:
    """Outcome of one job run."""
    job: str
    state: JobState
    steps: List[StepResult] = field(default_factory=list)
    error: Optional[StepExecutionError | JobCancelledError] = None
    seconds: float = 0.0
    dump_path: Optional[str] = None
    dump_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is JobState.SUCCEEDED

    def statuses(self) -> List[StepStatus]:
        return [r.status for r in self.steps]

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error
