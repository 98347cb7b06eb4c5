# trigger.py
from __future__ import annotations

from typing import Mapping, Optional, Sequence

from .errors import TriggerRejected
from .model import BranchPattern, Trigger


class TriggerFilter:
    """
    Decides whether an incoming event starts a run.

    Strings match by exact equality, callables are treated as predicates.
    Unknown event kinds are rejected.
    """

    def __init__(self, trigger: Optional[Trigger] = None):
        self.trigger = trigger or Trigger()

    @classmethod
    def from_mapping(cls, events: Mapping[str, Sequence[BranchPattern]]) -> "TriggerFilter":
        return cls(Trigger(events={k: tuple(v) for k, v in events.items()}))

    def accepts(self, event_kind: str, branch: str) -> bool:
        patterns = self.trigger.events.get(event_kind)
        if patterns is None:
            return False
        return any(_matches(p, branch) for p in patterns)

    def check(self, event_kind: str, branch: str) -> None:
        """Like accepts(), but raises TriggerRejected instead of returning False."""
        if not self.accepts(event_kind, branch):
            raise TriggerRejected(event=event_kind, branch=branch)


def _matches(pattern: BranchPattern, branch: str) -> bool:
    if callable(pattern):
        return bool(pattern(branch))
    return pattern == branch
