# executor.py
from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Sequence

from . import secrets as secrets_mod
from .env import resolve_args
from .errors import ResolutionError, StepFailed
from .model import CommandStep, EnvStep, InstanceState, JobInstance
from .secrets import SecretProvider

log = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Command collaborator
# ----------------------------------------------------------------------

class CommandExecutor(Protocol):
    """Runs one external command and reports its exit status."""

    def execute(self, command: str, args: Sequence[str], env: Mapping[str, str]) -> int:
        ...


class SubprocessExecutor:
    """
    Runs commands as child processes.

    The child sees the current process environment overlaid with the
    instance snapshot. Output is captured and the tail is logged on failure.
    """

    def __init__(
        self,
        cwd: str | Path | None = None,
        *,
        inherit_env: bool = True,
        timeout: float | None = None,
        tail_lines: int = 30,
    ):
        self.cwd = Path(cwd).resolve() if cwd is not None else None
        self.inherit_env = inherit_env
        self.timeout = timeout
        self.tail_lines = tail_lines

    def execute(self, command: str, args: Sequence[str], env: Mapping[str, str]) -> int:
        full_env: Dict[str, str] = os.environ.copy() if self.inherit_env else {}
        full_env.update(env)

        try:
            proc = subprocess.run(
                [command, *args],
                cwd=str(self.cwd) if self.cwd else None,
                env=full_env,
                text=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            log.error("command not found: %s", command)
            return 127
        except subprocess.TimeoutExpired:
            log.error("command timed out after %ss: %s", self.timeout, command)
            return 124

        if proc.returncode != 0:
            combined = (proc.stdout or "") + "\n" + (proc.stderr or "")
            tail = combined.strip().splitlines()[-self.tail_lines:]
            if tail:
                shown = secrets_mod.redact("\n".join(tail), secrets_mod.known_values())
                log.info("output tail of %s:\n%s", command, shown)
        return proc.returncode


# ----------------------------------------------------------------------
# Step execution
# ----------------------------------------------------------------------

def _run_env_step(inst: JobInstance, index: int, step: EnvStep) -> None:
    try:
        holds = step.guard is None or bool(step.guard(inst.coordinate, inst.env.snapshot()))
    except Exception as e:
        raise StepFailed(
            job=inst.display_name,
            step_index=index,
            step=step.label,
            message=f"guard raised {type(e).__name__}: {e}",
        ) from e
    if not holds:
        log.debug("[%s] %s: guard false, skipped", inst.display_name, step.label)
        return
    inst.env.set(step.key, step.value)
    log.debug("[%s] %s: %s set", inst.display_name, step.label, step.key)


def _run_command_step(
    inst: JobInstance,
    index: int,
    step: CommandStep,
    executor: CommandExecutor,
    secret_provider: Optional[SecretProvider],
) -> None:
    try:
        secret_values = secrets_mod.fetch(secret_provider, step.secrets)
    except Exception as e:
        raise StepFailed(
            job=inst.display_name,
            step_index=index,
            step=step.label,
            message=f"secret provider raised {type(e).__name__}: {e}",
        ) from e
    missing = [n for n in step.secrets if n not in secret_values]
    if missing:
        raise StepFailed(
            job=inst.display_name,
            step_index=index,
            step=step.label,
            message=f"missing secret(s): {', '.join(missing)}",
        )
    secrets_mod.register(secret_values.values())

    snapshot = inst.env.snapshot_for_step()
    try:
        args = resolve_args(step.args, snapshot, inst.coordinate, secret_values)
    except ResolutionError as e:
        raise StepFailed(
            job=inst.display_name,
            step_index=index,
            step=step.label,
            message=str(e),
        ) from e

    invocation_env = dict(snapshot)
    invocation_env.update(secret_values)

    shown = secrets_mod.redact(" ".join([step.command, *args]), secret_values.values())
    log.info("[%s] ▶ %s: %s", inst.display_name, step.label, shown)

    try:
        code = executor.execute(step.command, args, invocation_env)
    except Exception as e:
        raise StepFailed(
            job=inst.display_name,
            step_index=index,
            step=step.label,
            message=secrets_mod.redact(f"{type(e).__name__}: {e}", secret_values.values()),
        ) from e

    if code != 0:
        raise StepFailed(
            job=inst.display_name,
            step_index=index,
            step=step.label,
            message=f"command {step.command!r} exited with status {code}",
            exit_code=code,
        )


def run_instance(
    inst: JobInstance,
    executor: CommandExecutor,
    secret_provider: Optional[SecretProvider] = None,
) -> JobInstance:
    """
    Run every step of one instance, strictly in order.

    The first failing step stops the instance and records its index; the
    failure stays local to this instance. Returns the same instance with its
    terminal state filled in.
    """
    inst.state = InstanceState.RUNNING
    log.info("[%s] started", inst.display_name)

    for index, step in enumerate(inst.template.steps):
        try:
            if isinstance(step, EnvStep):
                _run_env_step(inst, index, step)
            elif isinstance(step, CommandStep):
                _run_command_step(inst, index, step, executor, secret_provider)
            else:
                raise StepFailed(
                    job=inst.display_name,
                    step_index=index,
                    step=repr(step),
                    message=f"unknown step type {type(step).__name__}",
                )
        except StepFailed as e:
            inst.state = InstanceState.FAILED
            inst.failed_step = index
            inst.error = e.message
            log.warning("%s", e)
            return inst

    inst.state = InstanceState.SUCCEEDED
    log.info("[%s] succeeded", inst.display_name)
    return inst
