# secrets.py
from __future__ import annotations

import os
import threading
from typing import Dict, Iterable, Mapping, Optional, Protocol

MASK = "***"


class SecretProvider(Protocol):
    """Source of opaque named values. Never logged by the engine."""

    def get(self, name: str) -> Optional[str]:
        ...


class StaticSecretProvider:
    """Secrets from an in-memory mapping (tests, embedding)."""

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values = dict(values or {})

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)


class EnvSecretProvider:
    """
    Secrets read from the process environment.

    With prefix="MATRIXCI_SECRET_", the secret GITHUB_TOKEN is read from
    MATRIXCI_SECRET_GITHUB_TOKEN.
    """

    def __init__(self, prefix: str = "", environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def get(self, name: str) -> Optional[str]:
        return self._environ.get(f"{self.prefix}{name}")


def fetch(provider: Optional[SecretProvider], names: Iterable[str]) -> Dict[str, str]:
    """
    Fetch `names` from `provider`. Missing names are left out; the step
    executor decides whether that is fatal.
    """
    out: Dict[str, str] = {}
    if provider is None:
        return out
    for name in names:
        value = provider.get(name)
        if value is not None:
            out[name] = value
    return out


def redact(text: str, values: Iterable[str]) -> str:
    """Replace every secret value occurring in `text` with the mask."""
    # longest first so a secret that contains another is fully masked
    for v in sorted({v for v in values if v}, key=len, reverse=True):
        text = text.replace(v, MASK)
    return text


# Values handed out so far; the logging filter masks these everywhere.
_known: set[str] = set()
_known_lock = threading.Lock()


def register(values: Iterable[str]) -> None:
    with _known_lock:
        _known.update(v for v in values if v)


def known_values() -> frozenset[str]:
    with _known_lock:
        return frozenset(_known)
