# cli.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List

import click

from . import settings
from .errors import ConfigurationError, E2EError, MissingResourceVerb, UnknownResourceVerb
from .jobs import create_test_infra_aws, delete_test_infra_aws
from .model import Job
from .runner import load_workflow, run_jobs
from .ui.console import Console
from .ui.logger import Logger, LoggerConfig, configure_logger


# ----------------------------------------------------------------------
# Fallback for resource groups
# ----------------------------------------------------------------------

def missing_resource_handler(ctx: click.Context, args: List[str]) -> None:
    """
    Shared handler for `create`/`delete` when no valid resource was given.

    Prints the error and the command's help, then exits non-zero. The error
    is also left in the root context object as "error".
    """
    if not args:
        err: E2EError = MissingResourceVerb(ctx.command.name or "")
    else:
        err = UnknownResourceVerb(args[0])

    root = ctx.find_root()
    if isinstance(root.obj, dict):
        root.obj["error"] = err

    click.echo(f"Error: {err}\n")
    click.echo(ctx.get_help())
    ctx.exit(1)


class ResourceGroup(click.Group):
    """A verb group (`create`, `delete`) whose leaves are resource kinds."""

    def __init__(
        self,
        *args,
        fallback: Callable[[click.Context, List[str]], None] = missing_resource_handler,
        **kwargs,
    ):
        kwargs.setdefault("invoke_without_command", True)
        super().__init__(*args, **kwargs)
        self.fallback = fallback

    def resolve_command(self, ctx: click.Context, args: List[str]):
        if args and self.get_command(ctx, args[0]) is None and not ctx.resilient_parsing:
            self.fallback(ctx, args)
        return super().resolve_command(ctx, args)


# ----------------------------------------------------------------------
# Root
# ----------------------------------------------------------------------

def _logger(ctx: click.Context) -> Logger:
    return ctx.find_root().obj["logger"]


def _console(ctx: click.Context) -> Console:
    return ctx.find_root().obj["console"]


@click.group()
@click.option(
    "--verbose", "-v",
    default=3,
    type=int,
    show_default=True,
    help="set log level, use 0 to silence, 4 for debugging",
)
@click.option(
    "--color", "-C",
    default="true",
    show_default=True,
    help="toggle colorized logs (valid options: true, false, fabulous)",
)
@click.option(
    "--dumpLogs", "-d", "dump_logs",
    default=False,
    type=bool,
    show_default=True,
    help="dump logs to disk on failure if set to true",
)
@click.option("--dump-dir", default=settings.DUMP_DIR, show_default=True, help="Where failure logs are written")
@click.pass_context
def cli(ctx, verbose, color, dump_logs, dump_dir):
    """e2ejobs: provision, install and validate, one job at a time."""
    try:
        config = LoggerConfig.from_flags(verbose, color, dump_logs, dump_dir)
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint=e.option) from e

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["logger"] = configure_logger(config)
    ctx.obj["console"] = Console(debug=config.verbosity >= 4)


def _run_and_report(ctx: click.Context, jobs: List[Job]) -> None:
    console = _console(ctx)
    try:
        results = run_jobs(jobs, logger=_logger(ctx))
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_results(results)
    if any(not r.ok for r in results):
        sys.exit(1)


# ----------------------------------------------------------------------
# create / delete
# ----------------------------------------------------------------------

@cli.group(cls=ResourceGroup)
@click.pass_context
def create(ctx):
    """Create a resource."""
    if ctx.invoked_subcommand is None:
        ctx.command.fallback(ctx, [])


@cli.group(cls=ResourceGroup)
@click.pass_context
def delete(ctx):
    """Delete a resource."""
    if ctx.invoked_subcommand is None:
        ctx.command.fallback(ctx, [])


@create.command("cluster")
@click.option("--account-id", required=True, help="AWS account id")
@click.option("--name", "cluster_name", required=True, help="Cluster name")
@click.option("--region", default="us-west-2", show_default=True)
@click.option("--kubeconfig", default="./test.pem", show_default=True, help="Where to write the kubeconfig")
@click.pass_context
def create_cluster(ctx, account_id, cluster_name, region, kubeconfig):
    """Create an EKS cluster for e2e tests."""
    _run_and_report(ctx, [create_test_infra_aws(account_id, cluster_name, region, kubeconfig)])


@delete.command("cluster")
@click.option("--account-id", required=True, help="AWS account id")
@click.option("--name", "cluster_name", required=True, help="Cluster name")
@click.option("--region", default="us-west-2", show_default=True)
@click.pass_context
def delete_cluster(ctx, account_id, cluster_name, region):
    """Delete an EKS cluster created by `create cluster`."""
    _run_and_report(ctx, [delete_test_infra_aws(account_id, cluster_name, region)])


# ----------------------------------------------------------------------
# run
# ----------------------------------------------------------------------

@cli.command()
@click.argument("workflow", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def run(ctx, workflow):
    """Run the jobs defined in a workflow file (jobs() or JOBS)."""
    console = _console(ctx)
    try:
        jobs = load_workflow(workflow)
    except Exception as e:
        console.print_error(
            "Failed to load workflow",
            f"Could not load workflow from {workflow}",
            details=[str(e)],
        )
        sys.exit(1)

    _run_and_report(ctx, jobs)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
