# env.py
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from .errors import ResolutionError

if TYPE_CHECKING:
    from .model import Coordinate


# ${{ env.NAME }}, ${{ matrix.AXIS }}, ${{ secrets.NAME }}
REFERENCE_RE = re.compile(r"\$\{\{\s*(.*?)\s*\}\}")
_NAME_RE = re.compile(r"^(\w+)\.([\w\-]+)$")


class EnvironmentStore:
    """
    Per-instance key/value state.

    Seeded from the workflow baseline, written by env steps, read by every
    later step of the same instance. Each instance gets its own store, so
    nothing written here is visible to any other instance.

    Reads of absent keys return None; reference resolution turns that into
    the empty string.
    """

    def __init__(self, baseline: Optional[Mapping[str, str]] = None):
        self._values: Dict[str, str] = dict(baseline or {})

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def snapshot(self) -> Dict[str, str]:
        """Copy of the current state, safe to hand to a step or collaborator."""
        return dict(self._values)

    snapshot_for_step = snapshot

    def __repr__(self) -> str:
        return f"EnvironmentStore({sorted(self._values)})"


def references(fragment: str) -> List[str]:
    """Return the raw reference expressions embedded in `fragment`."""
    return REFERENCE_RE.findall(fragment)


def resolve(
    fragment: str,
    env: Mapping[str, str],
    coordinate: "Coordinate",
    secrets: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Substitute every ${{ ns.name }} reference in `fragment`.

    Absent env keys become "". Unknown namespaces, unknown matrix axes and
    missing secrets raise ResolutionError.
    """
    def _sub(m: re.Match) -> str:
        expr = m.group(1)
        parsed = _NAME_RE.match(expr)
        if not parsed:
            raise ResolutionError(expr, "expected <namespace>.<name>")
        ns, name = parsed.groups()

        if ns == "env":
            return env.get(name, "")
        if ns == "matrix":
            if name not in coordinate:
                raise ResolutionError(expr, f"no matrix axis named {name!r}")
            return coordinate[name]
        if ns == "secrets":
            value = (secrets or {}).get(name)
            if value is None:
                raise ResolutionError(expr, f"secret {name!r} was not provided")
            return value
        raise ResolutionError(expr, f"unknown namespace {ns!r}")

    return REFERENCE_RE.sub(_sub, fragment)


def resolve_args(
    fragments: Iterable[str],
    env: Mapping[str, str],
    coordinate: "Coordinate",
    secrets: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """
    Resolve an argument list.

    A fragment that contains a reference and resolves to "" is dropped, so an
    unset flag like ${{ env.MODE }} simply disappears from the command line.
    """
    out: List[str] = []
    for frag in fragments:
        value = resolve(frag, env, coordinate, secrets)
        if value == "" and REFERENCE_RE.search(frag):
            continue
        out.append(value)
    return out
