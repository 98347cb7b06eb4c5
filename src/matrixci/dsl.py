# src/matrixci/dsl.py
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .guards import compile_guard, matrix_equals
from .model import BranchPattern, CommandStep, EnvStep, Guard, JobTemplate, Step, Trigger, Workflow


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def cmd(
    command: str,
    *args: str,
    name: str | None = None,
    secrets: Sequence[str] = (),
) -> CommandStep:
    """Create a command step. Args may embed ${{ env.X }} / ${{ matrix.X }}."""
    return CommandStep(command=command, args=tuple(args), secrets=tuple(secrets), name=name)


def set_env(
    key: str,
    value: str,
    *,
    when: Union[str, Guard, None] = None,
    name: str | None = None,
) -> EnvStep:
    """
    Create an env step.

    `when` is either a guard expression ("matrix.mode == 'release'"), a
    callable such as matrix_equals("mode", "release"), or any other
    callable taking (coordinate, env).
    """
    if isinstance(when, str):
        return EnvStep(key=key, value=value, guard=compile_guard(when), name=name, guard_source=when)
    return EnvStep(key=key, value=value, guard=when, name=name)


# ---------------------------------------------------------------------
# Functional Job helper
# ---------------------------------------------------------------------

def job(
    id: str,
    *steps: Step,  # allow: job("x", cmd(...), cmd(...))
    steps_list: Optional[List[Step]] = None,
    matrix: Optional[Mapping[str, Iterable[str]]] = None,
    name: str | None = None,
) -> JobTemplate:
    steps_final: List[Step] = []
    if steps_list:
        steps_final.extend(steps_list)
    steps_final.extend(steps)

    if not steps_final:
        raise ValueError(f"job({id!r}) must have at least one step")

    return JobTemplate(
        id=id,
        steps=tuple(steps_final),
        matrix={k: tuple(v) for k, v in (matrix or {}).items()},
        display_name=name,
    )


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class JobBuilder:
    def __init__(self, id: str):
        self.id = id
        self._steps: list[Step] = []
        self._matrix: dict[str, tuple[str, ...]] = {}
        self._name: Optional[str] = None

    def named(self, display_name: str):
        self._name = display_name
        return self

    def axis(self, axis: str, *values: str):
        self._matrix[axis] = tuple(str(v) for v in values)
        return self

    def set_env(self, key: str, value: str, *, when: Union[str, Guard, None] = None, name: str | None = None):
        self._steps.append(set_env(key, value, when=when, name=name))
        return self

    def run(self, command: str, *args: str, name: str | None = None, secrets: Sequence[str] = ()):
        self._steps.append(cmd(command, *args, name=name, secrets=secrets))
        return self

    def build(self) -> JobTemplate:
        if not self._steps:
            raise ValueError(f"Job '{self.id}' has no steps")
        return JobTemplate(id=self.id, steps=tuple(self._steps), matrix=dict(self._matrix),
                           display_name=self._name)


def build(id: str) -> JobBuilder:
    """Convenience: build('test').axis('mode', 'release', 'debug').run(...).build()"""
    return JobBuilder(id)


# ---------------------------------------------------------------------
# Workflow helper
# ---------------------------------------------------------------------

def wf(
    *jobs: JobTemplate,
    on: Optional[Mapping[str, Sequence[BranchPattern]]] = None,
    env: Optional[Dict[str, str]] = None,
    name: str = "workflow",
) -> Workflow:
    """
    Workflow definition helper:

        from matrixci import wf, job, cmd, set_env

        def workflow():
            return wf(
                job("build", set_env(...), cmd(...), matrix={"mode": ["release", "debug"]}),
                on={"push": ["main"]},
            )
    """
    trigger = Trigger(events={k: tuple(v) for k, v in (on or {}).items()})
    return Workflow(jobs=tuple(jobs), trigger=trigger, env=dict(env or {}), name=name)


def on_push(*branches: Union[str, Callable[[str], bool]]) -> Dict[str, tuple]:
    """Shorthand for on={"push": [...]}."""
    return {"push": tuple(branches)}
