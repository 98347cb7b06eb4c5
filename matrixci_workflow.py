# matrixci_workflow.py
# CI for matrixci itself: tests on two log levels, plus lint.
from __future__ import annotations

from matrixci import cmd, job, matrix_equals, on_push, set_env, wf


def workflow():
    return wf(
        job(
            "test",
            set_env("MATRIXCI_LOG_LEVEL", "DEBUG", when=matrix_equals("logging", "verbose")),
            cmd("python", "-m", "pip", "install", "-e", ".[test]", name="Install package"),
            cmd("python", "-m", "pytest", "-q", name="Run pytest"),
            matrix={"logging": ["quiet", "verbose"]},
            name="pytest (${{ matrix.logging }})",
        ),
        job(
            "lint",
            cmd("ruff", "check", "src", "tests", name="Ruff check"),
        ),
        job(
            "format-check",
            cmd("ruff", "format", "--check", "src", "tests", name="Ruff format check"),
        ),
        on=on_push("main"),
        name="matrixci",
    )
