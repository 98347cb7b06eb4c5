"""Console output formatting utilities for matrixci."""

from __future__ import annotations

import sys
from typing import Iterable, Optional

from ..model import InstanceState, JobInstance, JobTemplate, Run
from ..report import Verdict


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_run_started(
        self,
        workflow: str,
        event: str,
        branch: str,
        instance_count: int,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Workflow: {workflow}")
        print(f"Event: {event} ({branch})")
        print(f"Instances: {instance_count}")
        print()

    def print_trigger_rejected(self, event: str, branch: str) -> None:
        print(f"NOT TRIGGERED: event {event!r} on branch {branch!r} matches no trigger")

    def print_instance_done(self, inst: JobInstance) -> None:
        """Print one finished instance as soon as it completes."""
        if inst.state is InstanceState.SUCCEEDED:
            print(f"✓ {inst.display_name}")
            return
        step = f" at step {inst.failed_step}" if inst.failed_step is not None else ""
        print(f"✗ {inst.display_name}{step}")
        if inst.error:
            if self.debug:
                print(f"  Error details: {inst.error}")
            else:
                print(f"  Error: {inst.error.splitlines()[0]}")

    def print_plan(self, jobs: Iterable[tuple[JobTemplate, list[str]]]) -> None:
        """Print each job with the instance names it expands to."""
        for template, names in jobs:
            print(f"{template.id}: {len(names)} instance(s)")
            if not names:
                print("  (empty matrix axis, no instances)")
            for n in names:
                print(f"  {n}")

    def print_results(self, run: Run, verdict: Verdict) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for inst in run.instances:
            print(f"  {inst.display_name}: {inst.state.value.upper()}")
        print()
        if verdict.succeeded:
            print(f"VERDICT: SUCCEEDED ({verdict.total} instance(s))")
        else:
            print(f"VERDICT: FAILED ({len(verdict.failed)} of {verdict.total} instance(s) failed)")
            for f in verdict.failed:
                where = f"step {f.step_index}" if f.step_index is not None else "no step"
                print(f"  {f.job} [{f.coordinate or '-'}] {where}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
