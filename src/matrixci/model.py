# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

from .env import EnvironmentStore

# A branch pattern is either an exact branch name or a predicate over it.
BranchPattern = Union[str, Callable[[str], bool]]

# A guard sees the instance coordinate and the current env snapshot.
Guard = Callable[["Coordinate", Mapping[str, str]], bool]


@dataclass(frozen=True)
class Trigger:
    """Event kinds mapped to the branch patterns that start a run."""
    events: Mapping[str, Tuple[BranchPattern, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class Coordinate:
    """
    One value per matrix axis, in axis declaration order.

    Hashable and comparable so it can identify an instance in reports.
    """
    pairs: Tuple[Tuple[str, str], ...] = ()

    def __getitem__(self, axis: str) -> str:
        for k, v in self.pairs:
            if k == axis:
                return v
        raise KeyError(axis)

    def __contains__(self, axis: object) -> bool:
        return any(k == axis for k, _ in self.pairs)

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def get(self, axis: str, default: Optional[str] = None) -> Optional[str]:
        try:
            return self[axis]
        except KeyError:
            return default

    def as_dict(self) -> Dict[str, str]:
        return dict(self.pairs)

    def __str__(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.pairs)


@dataclass(frozen=True)
class EnvStep:
    """Assign `key=value` into the instance environment when `guard` holds."""
    key: str
    value: str
    guard: Optional[Guard] = None
    name: Optional[str] = None
    # original guard text, kept for display
    guard_source: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or f"set {self.key}"


@dataclass(frozen=True)
class CommandStep:
    """Invoke an external command; `args` may embed ${{ ... }} references."""
    command: str
    args: Tuple[str, ...] = ()
    secrets: Tuple[str, ...] = ()
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.command


Step = Union[EnvStep, CommandStep]


@dataclass(frozen=True)
class JobTemplate:
    """A declared job: optional matrix plus an ordered step sequence."""
    id: str
    steps: Tuple[Step, ...]
    matrix: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    display_name: Optional[str] = None


@dataclass(frozen=True)
class Workflow:
    """
    The loaded workflow. Immutable after load and shared read-only by all
    instances of a run.
    """
    jobs: Tuple[JobTemplate, ...]
    trigger: Trigger = field(default_factory=Trigger)
    env: Mapping[str, str] = field(default_factory=dict)
    name: str = "workflow"

    def job(self, job_id: str) -> JobTemplate:
        for j in self.jobs:
            if j.id == job_id:
                return j
        raise KeyError(job_id)


class InstanceState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (InstanceState.SUCCEEDED, InstanceState.FAILED)


@dataclass(eq=False)
class JobInstance:
    """
    One concrete execution of a template for one coordinate.

    Owns its EnvironmentStore; only its own step executor touches it.
    """
    template: JobTemplate
    coordinate: Coordinate
    env: EnvironmentStore = field(default_factory=EnvironmentStore)
    display_name: str = ""
    state: InstanceState = InstanceState.PENDING
    failed_step: Optional[int] = None
    error: Optional[str] = None

    @property
    def job_id(self) -> str:
        return self.template.id

    @property
    def key(self) -> Tuple[str, Coordinate]:
        return self.template.id, self.coordinate


@dataclass
class Run:
    """All instances spawned for one accepted event, in expansion order."""
    workflow: Workflow
    instances: list[JobInstance]
    event: Optional[str] = None
    branch: Optional[str] = None

    def instances_of(self, job_id: str) -> list[JobInstance]:
        return [i for i in self.instances if i.job_id == job_id]

    def find(self, job_id: str, **coordinate: str) -> JobInstance:
        """Look up a single instance by job id and (a subset of) its coordinate."""
        for inst in self.instances_of(job_id):
            if all(inst.coordinate.get(k) == v for k, v in coordinate.items()):
                return inst
        raise KeyError(f"{job_id} {coordinate}")
