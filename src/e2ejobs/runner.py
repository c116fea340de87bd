# runner.py
from __future__ import annotations

import re
import runpy
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from .context import Cancellation, ExecutionContext
from .dsl import JobBuilder
from .errors import JobAlreadyRunError, JobCancelledError, StepExecutionError
from .model import Job, JobResult, JobState, StepEntry, StepResult, StepStatus, step_name
from .ui.logger import Logger, null_logger


# ----------------------------------------------------------------------
# Workflow loading (local file)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> List[Job]:
    """
    Load jobs from a python file.

    The file must define either:
      - jobs() -> List[Job | JobBuilder]
      - JOBS = [Job | JobBuilder, ...]
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"e2ejobs_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    loaded = None
    if "jobs" in globals_dict and callable(globals_dict["jobs"]):
        loaded = globals_dict["jobs"]()
    elif "JOBS" in globals_dict:
        loaded = globals_dict["JOBS"]

    if not isinstance(loaded, (list, tuple)):
        raise TypeError(
            "Workflow must return/define a list of jobs. "
            "Define jobs() -> List[Job] or JOBS = [Job, ...]."
        )

    out: List[Job] = []
    for item in loaded:
        if isinstance(item, JobBuilder):
            item = item.build()
        if not isinstance(item, Job):
            raise TypeError(f"Workflow entry {item!r} is not a Job")
        out.append(item)
    return out


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _run_entry(entry: StepEntry, ctx: ExecutionContext, result: StepResult) -> None:
    step = entry.step
    if entry.wiring is not None:
        replacement = entry.wiring(ctx)
        if replacement is not None:
            step = replacement
            result.name = step_name(step)

    outputs = step.run(ctx)
    if outputs is not None and not isinstance(outputs, Mapping):
        raise TypeError(
            f"step '{result.name}' returned {type(outputs).__name__}, expected a mapping or None"
        )
    result.outputs = ctx.commit(result.name, outputs)


def _skip_rest(results: List[StepResult], start: int) -> None:
    for r in results[start:]:
        r.status = StepStatus.SKIPPED


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "job"


def dump_path_for(job: Job, dump_dir: str | Path) -> Path:
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    return Path(dump_dir) / f"{_slug(job.name)}-{ts}.log"


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_job(
    job: Job,
    *,
    logger: Logger | None = None,
    cancel: Cancellation | None = None,
    timeout: float | None = None,
    initial: Mapping[str, Any] | None = None,
    dump_dir: str | Path | None = None,
) -> JobResult:
    """
    Run every step of `job` in order against one fresh context.

    Stops at the first failing step; the remaining steps are reported as
    skipped and never invoked. Nothing is retried or rolled back.
    """
    if job.state is not JobState.NOT_STARTED:
        raise JobAlreadyRunError(job.name)

    log = logger or null_logger()
    if cancel is None:
        cancel = Cancellation(timeout)
    elif timeout is not None and cancel.deadline is None:
        cancel.deadline = time.monotonic() + timeout

    ctx = ExecutionContext(job.name, log=log, cancel=cancel, initial=initial)
    results = [StepResult(index=i, name=e.name) for i, e in enumerate(job.entries)]
    error: Optional[StepExecutionError | JobCancelledError] = None

    job.state = JobState.RUNNING
    started = time.time()
    log.info("[%s] job started (%d steps)", job.name, len(job.entries))

    for i, entry in enumerate(job.entries):
        result = results[i]

        if cancel.cancelled:
            error = JobCancelledError(job.name, cancel.reason)
            log.critical("[%s] cancelled before step '%s': %s", job.name, result.name, cancel.reason)
            _skip_rest(results, i)
            break

        log.info("[%s] ▶ %s", job.name, result.name)
        t0 = time.time()
        try:
            _run_entry(entry, ctx, result)
        except Exception as e:
            result.seconds = round(time.time() - t0, 3)
            result.status = StepStatus.FAILED
            result.note = str(e)
            error = StepExecutionError(job=job.name, index=i, step=result.name, cause=e)
            log.critical("%s", str(error))
            _skip_rest(results, i + 1)
            break
        except BaseException as e:
            # interrupts still end the job; they are re-raised, not recorded
            result.seconds = round(time.time() - t0, 3)
            result.status = StepStatus.FAILED
            result.note = f"interrupted: {type(e).__name__}"
            _skip_rest(results, i + 1)
            job.state = JobState.FAILED
            log.critical("[%s] interrupted during step '%s'", job.name, result.name)
            raise

        result.seconds = round(time.time() - t0, 3)
        result.status = StepStatus.SUCCEEDED
        log.debug("[%s] %s produced %s", job.name, result.name, result.outputs or "no outputs")

    job.state = JobState.FAILED if error is not None else JobState.SUCCEEDED
    out = JobResult(
        job=job.name,
        state=job.state,
        steps=results,
        error=error,
        seconds=round(time.time() - started, 3),
    )

    if out.ok:
        log.success("[%s] job succeeded in %.1fs", job.name, out.seconds)
        return out

    log.critical("[%s] job failed", job.name)
    if log.buffer is not None:
        path = dump_path_for(job, dump_dir or log.config.dump_dir)
        log.warning("[%s] dumping logs to %s", job.name, path)
        try:
            out.dump_path = str(log.dump(path))
        except OSError as e:
            out.dump_error = str(e)
            log.critical("[%s] could not dump logs to %s: %s", job.name, path, e)
    return out


def run_jobs(jobs: Iterable[Job], **kwargs: Any) -> List[JobResult]:
    """Run jobs one after another, stopping after the first failed job."""
    results: List[JobResult] = []
    for job in jobs:
        res = run_job(job, **kwargs)
        results.append(res)
        if not res.ok:
            break
    return results
