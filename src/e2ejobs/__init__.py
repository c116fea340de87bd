from .dsl import new_job, scenario, wf, JobBuilder, ScenarioBuilder
from .runner import run_job, run_jobs, load_workflow
from .model import Job, JobResult, JobState, Scenario, Step, StepResult, StepStatus
from .context import Cancellation, ExecutionContext

__all__ = [
    "new_job", "scenario", "wf", "JobBuilder", "ScenarioBuilder",
    "run_job", "run_jobs", "load_workflow",
    "Job", "JobResult", "JobState", "Scenario", "Step", "StepResult", "StepStatus",
    "Cancellation", "ExecutionContext",
]
