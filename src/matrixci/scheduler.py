# scheduler.py
from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional

from .env import EnvironmentStore
from .executor import CommandExecutor, run_instance
from .matrix import display_name, expand
from .model import InstanceState, JobInstance, Run, Workflow
from .secrets import SecretProvider

log = logging.getLogger(__name__)


def default_workers() -> int:
    c = os.cpu_count() or 2
    return max(1, c - 1)


def plan_instances(workflow: Workflow) -> List[JobInstance]:
    """
    Expand every template into pending instances.

    Order is template declaration order, then matrix expansion order. Each
    instance gets a fresh store seeded from the workflow baseline.
    """
    instances: List[JobInstance] = []
    for template in workflow.jobs:
        for coord in expand(template):
            instances.append(
                JobInstance(
                    template=template,
                    coordinate=coord,
                    env=EnvironmentStore(workflow.env),
                    display_name=display_name(template, coord),
                )
            )
    return instances


def run(
    workflow: Workflow,
    executor: CommandExecutor,
    *,
    secret_provider: Optional[SecretProvider] = None,
    max_workers: Optional[int] = None,
    event: Optional[str] = None,
    branch: Optional[str] = None,
    on_instance_done: Optional[Callable[[JobInstance], None]] = None,
) -> Run:
    """
    Run every instance of every job concurrently and wait for all of them.

    A failing instance never cancels its siblings. Anything unexpected that
    escapes an instance marks only that instance failed. The returned Run
    lists instances in planning order, not completion order.
    """
    instances = plan_instances(workflow)
    result = Run(workflow=workflow, instances=instances, event=event, branch=branch)
    if not instances:
        log.warning("workflow %r produced no job instances", workflow.name)
        return result

    if max_workers is None:
        max_workers = default_workers()

    log.info("running %d instance(s) of %d job(s) with %d worker(s)",
             len(instances), len(workflow.jobs), max_workers)

    in_flight: Dict[Future, JobInstance] = {}
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="matrixci") as pool:
        for inst in instances:
            fut = pool.submit(run_instance, inst, executor, secret_provider)
            in_flight[fut] = inst

        for fut in as_completed(in_flight):
            inst = in_flight[fut]
            try:
                fut.result()
            except Exception as e:
                inst.state = InstanceState.FAILED
                inst.error = f"{type(e).__name__}: {e}"
                log.exception("[%s] crashed", inst.display_name)

            if on_instance_done is not None:
                on_instance_done(inst)

    return result
