# runner.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from . import scheduler
from .errors import TriggerRejected
from .executor import CommandExecutor
from .model import JobInstance, Run, Workflow
from .secrets import SecretProvider
from .trigger import TriggerFilter

log = logging.getLogger(__name__)

# event -> trigger filter -> scheduler -> (caller summarizes)


def run_event(
    workflow: Workflow,
    event: str,
    branch: str,
    executor: CommandExecutor,
    *,
    secret_provider: Optional[SecretProvider] = None,
    max_workers: Optional[int] = None,
    on_instance_done: Optional[Callable[[JobInstance], None]] = None,
) -> Optional[Run]:
    """
    Start a run for an incoming event.

    Returns None when the trigger rejects the event; that is a no-op, not a
    failure. Otherwise returns the finished Run.
    """
    if not TriggerFilter(workflow.trigger).accepts(event, branch):
        log.info("%s", TriggerRejected(event=event, branch=branch))
        return None

    log.info("event %s on %s accepted by %r", event, branch, workflow.name)
    return scheduler.run(
        workflow,
        executor,
        secret_provider=secret_provider,
        max_workers=max_workers,
        event=event,
        branch=branch,
        on_instance_done=on_instance_done,
    )
