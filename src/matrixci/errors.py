# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class MatrixCIError(Exception):
    """Base class for every error raised by matrixci."""


@dataclass
class LoadError(MatrixCIError):
    """
    The workflow specification is structurally invalid.

    Fatal to the whole run and always raised before any instance starts.
    """
    problems: List[str]
    source: str = "<workflow>"

    def __str__(self) -> str:
        lines = [f"LoadError: invalid workflow {self.source}"]
        lines.extend(f"  - {p}" for p in self.problems)
        return "\n".join(lines)


@dataclass
class StepFailed(MatrixCIError):
    """A step of one instance failed. Only ever terminates that instance."""
    job: str
    step_index: int
    step: str
    message: str
    exit_code: Optional[int] = None

    def __str__(self) -> str:
        s = f"[{self.job}] step {self.step_index} '{self.step}' failed: {self.message}"
        if self.exit_code is not None:
            s += f" (exit={self.exit_code})"
        return s


@dataclass
class ResolutionError(MatrixCIError):
    """A ${{ ... }} reference could not be resolved at execution time."""
    reference: str
    message: str

    def __str__(self) -> str:
        return f"cannot resolve '{self.reference}': {self.message}"


@dataclass
class TriggerRejected(MatrixCIError):
    """The event matched no configured pattern. Not a failure, the run never starts."""
    event: str
    branch: str

    def __str__(self) -> str:
        return f"event {self.event!r} on branch {self.branch!r} does not trigger this workflow"


@dataclass
class ExpansionEmpty(MatrixCIError):
    """A matrix axis has zero values, so the template yields zero instances."""
    job: str
    axes: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"job '{self.job}' has empty matrix axis {self.axes}; it contributes no instances"
