from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping

from . import secrets


class SecretRedactingFilter(logging.Filter):
    """Masks every secret value handed out so far in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        known = secrets.known_values()
        if known:
            record.msg = secrets.redact(record.getMessage(), known)
            record.args = None
        return True


def _dict_config(level: str) -> Mapping[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"redact": {"()": SecretRedactingFilter}},
        "formatters": {"std": {"format": "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"}},
        "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "std", "filters": ["redact"]}},
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(level: str = "WARNING") -> None:
    logging.config.dictConfig(_dict_config(level.upper()))
