"""Console output formatting for the e2ejobs CLI."""

from __future__ import annotations

import traceback
from typing import Iterable, Optional

import click

from ..model import JobResult, StepStatus

_STATUS_MARKS = {
    StepStatus.SUCCEEDED: "✔",
    StepStatus.FAILED: "✖",
    StepStatus.SKIPPED: "⏭",
    StepStatus.NOT_RUN: "·",
}


class Console:
    """Plain CLI output (summaries, errors). Step logs go through the Logger."""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def print_results(self, results: Iterable[JobResult]) -> None:
        """Print final results summary."""
        click.echo("\n" + "=" * 40)
        click.echo("RESULTS")
        click.echo("=" * 40)
        for res in results:
            click.echo(f"  {res.job}: {res.state.value.upper()} ({res.seconds:.1f}s)")
            for step in res.steps:
                mark = _STATUS_MARKS.get(step.status, "?")
                click.echo(f"    {mark} [{step.index}] {step.name}: {step.status.value}")
            if res.error is not None:
                click.echo(f"  Error: {res.error}")
            if res.dump_path:
                click.echo(f"  Logs dumped to: {res.dump_path}")
            if res.dump_error:
                click.echo(f"  Log dump failed: {res.dump_error}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        click.echo(f"\nERROR: {title}", err=True)
        click.echo(message, err=True)
        for detail in details or []:
            click.echo(f"  {detail}", err=True)
        if suggestion:
            click.echo(f"\n{suggestion}", err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            click.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
        else:
            click.echo(f"Error: {exc}", err=True)
