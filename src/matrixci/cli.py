# cli.py
from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import click

from .errors import LoadError
from .executor import SubprocessExecutor
from .git import current_branch
from .loader import load_workflow
from .logging_config import configure_logging
from .matrix import display_name, expand, instance_count
from .report import instance_results, summarize
from .runner import run_event
from .secrets import EnvSecretProvider
from .settings import load_settings
from .trigger import TriggerFilter
from .ui.console import Console, get_console, set_console

DEFAULT_WORKFLOW_FILES = ("matrixci.yml", "matrixci.yaml", "matrixci_workflow.py")

EXIT_FAILED = 1
EXIT_LOAD_ERROR = 2


def find_workflow_files(root: Path = Path(".")) -> list[Path]:
    """
    Find all workflow files in `root`.

    Returns:
        List of Path objects for workflow files
    """
    found = [root / name for name in DEFAULT_WORKFLOW_FILES if (root / name).exists()]
    for path in root.glob("*_workflow.py"):
        if path not in found:
            found.append(path)
    return sorted(found)


def discover_workflow(workflow_arg: str | None) -> Path:
    """
    Discover workflow file from argument, MATRIXCI_WORKFLOW, or the defaults.

    Raises:
        SystemExit: If workflow cannot be found or multiple workflows exist
    """
    console = get_console()
    workflow_arg = workflow_arg or load_settings().workflow

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or specify a different path:\n  matrixci run --workflow ci.yml",
            )
            sys.exit(EXIT_LOAD_ERROR)
        return workflow_path

    workflow_files = find_workflow_files()

    if len(workflow_files) == 0:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=["Looked for:", *(f"  {n}" for n in DEFAULT_WORKFLOW_FILES), "  *_workflow.py"],
            suggestion="Specify a workflow explicitly:\n  matrixci run --workflow ci.yml",
        )
        sys.exit(EXIT_LOAD_ERROR)

    if len(workflow_files) > 1:
        console.print_error(
            "Multiple workflow files found",
            "Found multiple workflow files. Please specify which one to use:",
            details=[str(f) for f in workflow_files],
            suggestion="Specify a workflow explicitly:\n  matrixci run --workflow matrixci.yml",
        )
        sys.exit(EXIT_LOAD_ERROR)

    return workflow_files[0]


def _load_or_exit(workflow_path: Path):
    console = get_console()
    try:
        wf = load_workflow(workflow_path)
    except LoadError as e:
        console.print_error(
            "Invalid workflow",
            f"Could not load workflow from {workflow_path}",
            details=e.problems,
        )
        sys.exit(EXIT_LOAD_ERROR)
    console.print_debug(f"Loaded workflow {wf.name!r} from {workflow_path}")
    return wf


def _default_branch() -> str:
    console = get_console()
    try:
        return current_branch()
    except (subprocess.CalledProcessError, FileNotFoundError):
        console.print_error(
            "Could not determine branch",
            "No --branch given and the current git branch is unknown.",
            suggestion="Specify the branch explicitly:\n  matrixci run --branch main",
        )
        sys.exit(EXIT_LOAD_ERROR)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--log-level", default=None, help="Log level (defaults to MATRIXCI_LOG_LEVEL or WARNING)")
@click.pass_context
def cli(ctx, debug, log_level):
    """matrixci: run matrix CI workflows locally."""
    settings = load_settings()
    set_console(Console(debug=debug))
    configure_logging("DEBUG" if debug else (log_level or settings.log_level))
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--workflow", default=None, help="Workflow file (.yml or .py)")
@click.option("--event", default="push", show_default=True, help="Event kind that triggers the run")
@click.option("--branch", default=None, help="Branch name (defaults to the current git branch)")
@click.option("--workers", default=None, type=int, help="Number of parallel instances")
@click.option("--cwd", default=".", show_default=True, help="Working directory for commands")
@click.option("--secret-prefix", default=None, help="Environment prefix secrets are read from")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print per-instance results as JSON")
@click.pass_context
def run(ctx, workflow, event, branch, workers, cwd, secret_prefix, as_json):
    """Run a workflow for an event."""
    console = get_console()
    settings = ctx.obj["settings"]

    workflow_path = discover_workflow(workflow)
    wf = _load_or_exit(workflow_path)
    branch = branch or _default_branch()

    if not TriggerFilter(wf.trigger).accepts(event, branch):
        console.print_trigger_rejected(event, branch)
        return

    try:
        if not as_json:
            console.print_run_started(
                workflow=wf.name,
                event=event,
                branch=branch,
                instance_count=sum(instance_count(t) for t in wf.jobs),
            )

        result = run_event(
            wf,
            event,
            branch,
            SubprocessExecutor(cwd),
            secret_provider=EnvSecretProvider(secret_prefix if secret_prefix is not None else settings.secret_prefix),
            max_workers=workers or settings.workers,
            on_instance_done=None if as_json else console.print_instance_done,
        )
        verdict = summarize(result)

        if as_json:
            click.echo(json.dumps({
                "workflow": wf.name,
                "succeeded": verdict.succeeded,
                "instances": instance_results(result),
            }, indent=2))
        else:
            console.print_results(result, verdict)

        if not verdict.succeeded:
            sys.exit(EXIT_FAILED)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(EXIT_FAILED)


@cli.command(name="expand")
@click.option("--workflow", default=None, help="Workflow file (.yml or .py)")
def expand_cmd(workflow):
    """List the job instances a workflow expands to."""
    console = get_console()
    wf = _load_or_exit(discover_workflow(workflow))
    console.print_plan(
        (t, [display_name(t, c) for c in expand(t)]) for t in wf.jobs
    )


@cli.command()
@click.option("--workflow", default=None, help="Workflow file (.yml or .py)")
@click.option("--event", default=None, help="Also report whether this event triggers the workflow")
@click.option("--branch", default=None, help="Branch for --event")
def check(workflow, event, branch):
    """Validate a workflow file."""
    console = get_console()
    wf = _load_or_exit(discover_workflow(workflow))
    console.print_info(
        f"OK: {wf.name}: {len(wf.jobs)} job(s), {sum(instance_count(t) for t in wf.jobs)} instance(s)"
    )
    if event is not None:
        branch = branch or _default_branch()
        triggered = TriggerFilter(wf.trigger).accepts(event, branch)
        console.print_info(f"{event} on {branch}: {'triggers' if triggered else 'does not trigger'}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
