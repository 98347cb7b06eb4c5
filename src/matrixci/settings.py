from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Settings:
    workers: Optional[int] = None
    log_level: str = "WARNING"
    workflow: Optional[str] = None
    secret_prefix: str = ""


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read MATRIXCI_* settings from the environment."""
    env = os.environ if environ is None else environ

    workers = env.get("MATRIXCI_WORKERS")
    try:
        workers_n = int(workers) if workers else None
    except ValueError:
        raise ValueError(f"MATRIXCI_WORKERS must be an integer, got {workers!r}") from None
    if workers_n is not None and workers_n < 1:
        raise ValueError(f"MATRIXCI_WORKERS must be >= 1, got {workers_n}")

    return Settings(
        workers=workers_n,
        log_level=env.get("MATRIXCI_LOG_LEVEL", "WARNING").upper(),
        workflow=env.get("MATRIXCI_WORKFLOW") or None,
        secret_prefix=env.get("MATRIXCI_SECRET_PREFIX", ""),
    )
