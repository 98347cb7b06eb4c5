# matrix.py
from __future__ import annotations

import itertools
import logging
from typing import List

from .env import REFERENCE_RE
from .errors import ExpansionEmpty
from .model import Coordinate, JobTemplate

log = logging.getLogger(__name__)


def expand(template: JobTemplate) -> List[Coordinate]:
    """
    Cross-product of the template's matrix axes.

    Axes expand in declaration order with the first axis varying slowest,
    values in declaration order, so the same template always produces the
    same sequence:

        {os: [linux, mac], mode: [release, debug]}
        -> (linux, release), (linux, debug), (mac, release), (mac, debug)

    No matrix yields a single empty coordinate. An axis with zero values
    yields no coordinates at all; that is logged, not raised.
    """
    axes = list(template.matrix.items())
    if not axes:
        return [Coordinate()]

    empty = [name for name, values in axes if len(values) == 0]
    if empty:
        log.warning("%s", ExpansionEmpty(job=template.id, axes=empty))
        return []

    names = [name for name, _ in axes]
    return [
        Coordinate(tuple(zip(names, combo)))
        for combo in itertools.product(*(values for _, values in axes))
    ]


def instance_count(template: JobTemplate) -> int:
    n = 1
    for values in template.matrix.values():
        n *= len(values)
    return n


def display_name(template: JobTemplate, coordinate: Coordinate) -> str:
    """
    Human name for one instance.

    Renders ${{ matrix.AXIS }} references in the template's display name;
    without a display name the coordinate is appended to the job id.
    """
    if template.display_name:
        def _sub(m):
            expr = m.group(1)
            if expr.startswith("matrix."):
                return coordinate.get(expr[len("matrix."):], m.group(0))
            return m.group(0)
        return REFERENCE_RE.sub(_sub, template.display_name)

    if len(coordinate) == 0:
        return template.id
    return f"{template.id} ({coordinate})"
