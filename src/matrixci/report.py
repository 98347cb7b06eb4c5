# report.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .model import Coordinate, InstanceState, Run


@dataclass(frozen=True)
class FailedInstance:
    job: str
    coordinate: Coordinate
    display_name: str
    step_index: Optional[int]
    error: Optional[str]


@dataclass(frozen=True)
class Verdict:
    """
    Run-level outcome.

    Succeeded iff every instance succeeded; a run with no instances has
    nothing that failed and therefore succeeds.
    """
    succeeded: bool
    failed: List[FailedInstance] = field(default_factory=list)
    total: int = 0

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    @property
    def failed_keys(self) -> List[tuple]:
        return [(f.job, f.coordinate) for f in self.failed]


def summarize(run: Run) -> Verdict:
    failed = [
        FailedInstance(
            job=i.job_id,
            coordinate=i.coordinate,
            display_name=i.display_name,
            step_index=i.failed_step,
            error=i.error,
        )
        for i in run.instances
        if i.state is not InstanceState.SUCCEEDED
    ]
    return Verdict(succeeded=not failed, failed=failed, total=len(run.instances))


def instance_results(run: Run) -> List[Dict[str, Any]]:
    """Per-instance outcome records, plain data for JSON output."""
    out: List[Dict[str, Any]] = []
    for i in run.instances:
        rec: Dict[str, Any] = {
            "job": i.job_id,
            "name": i.display_name,
            "coordinate": i.coordinate.as_dict(),
            "state": i.state.value,
        }
        if i.state is InstanceState.FAILED:
            rec["failed_step"] = i.failed_step
            rec["error"] = i.error
        out.append(rec)
    return out
