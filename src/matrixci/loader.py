# loader.py
from __future__ import annotations

import runpy
from pathlib import Path
from typing import Annotated, Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from .errors import LoadError
from .guards import GuardSyntaxError, compile_guard
from .model import CommandStep, EnvStep, JobTemplate, Trigger, Workflow


def _scalar_to_str(v: Any) -> Any:
    # YAML turns `true` / `3` into bool / int; env and matrix values are strings
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        # 3.10 has already become 3.1 here
        raise ValueError(f"{v!r} was read as a number; quote it (e.g. '3.10') to keep it as text")
    if isinstance(v, int):
        return str(v)
    return v


Scalar = Annotated[str, BeforeValidator(_scalar_to_str)]


# ----------------------------------------------------------------------
# Textual schema
# ----------------------------------------------------------------------

class StepSpec(BaseModel):
    """Either {if?, set, value} or {command, args?, secrets?}."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: Optional[str] = None
    if_: Optional[str] = Field(default=None, alias="if")
    set_: Optional[str] = Field(default=None, alias="set")
    value: Optional[Scalar] = None
    command: Optional[str] = None
    args: List[Scalar] = Field(default_factory=list)
    secrets: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _known_kind(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and not ({"set", "set_", "command"} & set(data)):
            raise ValueError(
                f"unknown step kind with keys {sorted(map(str, data))}: expected 'set' (with 'value') or 'command'"
            )
        return data

    @model_validator(mode="after")
    def _one_kind(self) -> "StepSpec":
        if self.set_ is not None and self.command is not None:
            raise ValueError("step has both 'set' and 'command'; pick one step kind")
        if self.set_ is None and self.command is None:
            raise ValueError("unknown step kind: expected 'set' (with 'value') or 'command'")
        if self.set_ is not None:
            if self.value is None:
                raise ValueError(f"env step setting {self.set_!r} is missing 'value'")
            if self.args or self.secrets:
                raise ValueError("'args' and 'secrets' only apply to command steps")
        if self.command is not None:
            if not self.command.strip():
                raise ValueError("'command' must not be empty")
            if self.if_ is not None:
                raise ValueError("'if' only applies to env steps")
            if self.value is not None:
                raise ValueError("'value' only applies to env steps")
        return self


class JobSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    matrix: Dict[str, List[Scalar]] = Field(default_factory=dict)
    steps: List[StepSpec] = Field(min_length=1)

    @model_validator(mode="after")
    def _distinct_axis_values(self) -> "JobSpec":
        for axis, values in self.matrix.items():
            dupes = sorted({v for v in values if values.count(v) > 1})
            if dupes:
                raise ValueError(f"matrix axis {axis!r} repeats values {dupes}")
        return self


class EventSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    branches: List[str] = Field(default_factory=list)


class WorkflowSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = "workflow"
    on: Dict[str, EventSpec] = Field(default_factory=dict)
    env: Dict[str, Scalar] = Field(default_factory=dict)
    jobs: Dict[str, JobSpec] = Field(min_length=1)


# ----------------------------------------------------------------------
# Conversion
# ----------------------------------------------------------------------

def _format_errors(e: ValidationError) -> List[str]:
    problems = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = err.get("msg", "invalid")
        problems.append(f"{loc}: {msg}" if loc else msg)
    return problems


def _to_workflow(spec: WorkflowSpec, source: str) -> Workflow:
    problems: List[str] = []
    jobs: List[JobTemplate] = []

    for job_id, job_spec in spec.jobs.items():
        steps = []
        for idx, s in enumerate(job_spec.steps):
            if s.set_ is not None:
                guard = None
                if s.if_ is not None:
                    try:
                        guard = compile_guard(s.if_)
                    except GuardSyntaxError as e:
                        problems.append(f"jobs.{job_id}.steps.{idx}.if: {e}")
                steps.append(EnvStep(key=s.set_, value=s.value or "", guard=guard,
                                     name=s.name, guard_source=s.if_))
            else:
                steps.append(CommandStep(command=s.command, args=tuple(s.args),
                                         secrets=tuple(s.secrets), name=s.name))
        jobs.append(JobTemplate(
            id=job_id,
            steps=tuple(steps),
            matrix={k: tuple(v) for k, v in job_spec.matrix.items()},
            display_name=job_spec.name,
        ))

    if problems:
        raise LoadError(problems=problems, source=source)

    trigger = Trigger(events={k: tuple(v.branches) for k, v in spec.on.items()})
    return Workflow(jobs=tuple(jobs), trigger=trigger, env=dict(spec.env), name=spec.name)


def load_mapping(data: Any, source: str = "<mapping>") -> Workflow:
    """Validate a parsed workflow document and build the Workflow."""
    if not isinstance(data, Mapping):
        raise LoadError(problems=["workflow document must be a mapping"], source=source)

    data = dict(data)
    # YAML 1.1 reads a bare `on:` key as boolean True
    if True in data and "on" not in data:
        data["on"] = data.pop(True)

    try:
        spec = WorkflowSpec.model_validate(data)
    except ValidationError as e:
        raise LoadError(problems=_format_errors(e), source=source) from e
    return _to_workflow(spec, source)


def load_text(text: str, source: str = "<text>") -> Workflow:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise LoadError(problems=[f"invalid YAML: {e}"], source=source) from e
    return load_mapping(data, source=source)


def validate_workflow(workflow: Workflow, source: str = "<workflow>") -> Workflow:
    """
    Structural checks for workflows built in Python rather than parsed.
    """
    problems: List[str] = []
    if not workflow.jobs:
        problems.append("workflow has no jobs")

    seen = set()
    for j in workflow.jobs:
        if j.id in seen:
            problems.append(f"duplicate job id {j.id!r}")
        seen.add(j.id)
        if not j.steps:
            problems.append(f"job {j.id!r} has no steps")
        for idx, s in enumerate(j.steps):
            if not isinstance(s, (EnvStep, CommandStep)):
                problems.append(f"job {j.id!r} step {idx}: unknown step kind {type(s).__name__}")
        for axis, values in j.matrix.items():
            if len(set(values)) != len(values):
                problems.append(f"job {j.id!r} matrix axis {axis!r} repeats values")

    if problems:
        raise LoadError(problems=problems, source=source)
    return workflow


def _load_python(wf_path: Path) -> Workflow:
    wf = None
    try:
        globals_dict = runpy.run_path(str(wf_path), run_name=f"matrixci_workflow_{wf_path.stem}")
        if callable(globals_dict.get("workflow")):
            wf = globals_dict["workflow"]()
        elif "WORKFLOW" in globals_dict:
            wf = globals_dict["WORKFLOW"]
    except ValueError as e:
        # job() without steps, bad guard expressions, ...
        raise LoadError(problems=[str(e)], source=str(wf_path)) from e

    if not isinstance(wf, Workflow):
        raise LoadError(
            problems=["define workflow() -> Workflow or WORKFLOW = wf(...)"],
            source=str(wf_path),
        )
    return validate_workflow(wf, source=str(wf_path))


def load_workflow(path: str | Path) -> Workflow:
    """
    Load a workflow from a .yml/.yaml document or a .py file.

    Python files must define either:
      - workflow() -> Workflow
      - WORKFLOW = Workflow(...)
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")

    if wf_path.suffix == ".py":
        return _load_python(wf_path)
    if wf_path.suffix in (".yml", ".yaml"):
        return load_text(wf_path.read_text(encoding="utf-8"), source=str(wf_path))
    raise LoadError(problems=[f"unsupported workflow file type {wf_path.suffix!r}"], source=str(wf_path))
