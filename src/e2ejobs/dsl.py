# src/e2ejobs/dsl.py
from __future__ import annotations

from typing import Any, List, Optional

from .model import Job, Scenario, Step, StepEntry, WiringFn, step_name


def _check_step(step: Any) -> Step:
    if not callable(getattr(step, "run", None)):
        raise TypeError(f"{step_name(step)} is not a step: it has no run(ctx) method")
    return step


def _check_wiring(wiring: Any) -> Optional[WiringFn]:
    if wiring is not None and not callable(wiring):
        raise TypeError(f"wiring must be callable or None, got {type(wiring).__name__}")
    return wiring


# ---------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------

class JobBuilder:
    """
    Fluent job assembly:

        job = (
            new_job("Create e2e test infrastructure AWS")
            .add_step(CreateCluster(...))
            .add_scenario(dns_scenario)
            .build()
        )
    """

    def __init__(self, name: str):
        self.name = name
        self._job = Job(name=name)

    def add_step(self, step: Step, wiring: Optional[WiringFn] = None):
        self._job.append(StepEntry(_check_step(step), _check_wiring(wiring)))
        return self

    def add_scenario(self, scenario: Scenario):
        self._job.extend(scenario.entries)
        return self

    @property
    def steps(self) -> List[StepEntry]:
        return list(self._job.entries)

    def build(self) -> Job:
        return self._job

    def run(self, **kwargs: Any):
        return self._job.run(**kwargs)


def new_job(name: str) -> JobBuilder:
    """Convenience: new_job('x').add_step(...).build()"""
    return JobBuilder(name)


# ---------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------

class ScenarioBuilder:
    def __init__(self, name: str):
        self.name = name
        self._entries: List[StepEntry] = []

    def add_step(self, step: Step, wiring: Optional[WiringFn] = None):
        self._entries.append(StepEntry(_check_step(step), _check_wiring(wiring)))
        return self

    def build(self) -> Scenario:
        return Scenario(name=self.name, entries=tuple(self._entries))


def scenario(name: str, *steps: Step) -> Scenario:
    """Shorthand for a scenario whose steps need no wiring."""
    b = ScenarioBuilder(name)
    for s in steps:
        b.add_step(s)
    return b.build()


def wf(*items: Job | JobBuilder) -> List[Job]:
    """
    Workflow definition helper for files loaded by `e2ejobs run`:

        def jobs():
            return wf(create_infra, install_and_test)

    Builders are built on the way in.
    """
    return [i.build() if isinstance(i, JobBuilder) else i for i in items]
