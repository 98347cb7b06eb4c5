import logging
import threading
from pathlib import Path

import pytest

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


class RecordingExecutor:
    """
    Fake command collaborator.

    Records every call and returns the exit status chosen by `exit_for`
    (0 for everything by default). Safe to call from many threads.
    """

    def __init__(self, exit_for=None):
        self.exit_for = exit_for or (lambda command, args, env: 0)
        self.calls = []
        self._lock = threading.Lock()

    def execute(self, command, args, env):
        with self._lock:
            self.calls.append((command, list(args), dict(env)))
        return self.exit_for(command, list(args), dict(env))

    def calls_for(self, predicate):
        with self._lock:
            return [c for c in self.calls if predicate(*c)]


@pytest.fixture
def recorder():
    return RecordingExecutor()


@pytest.fixture
def make_executor():
    return RecordingExecutor


@pytest.fixture
def rust_ci_text():
    return (EXAMPLES_DIR / "rust-ci.yml").read_text(encoding="utf-8")


@pytest.fixture
def mode_workflow_text():
    return """
name: modes
on:
  push:
    branches: [main]
env:
  CARGO_TERM_COLOR: always
jobs:
  build:
    matrix:
      mode: [release, debug]
    steps:
      - name: set compile mode
        if: matrix.mode == 'release'
        set: MODE
        value: --release
      - name: cargo build
        command: cargo
        args: [build, "${{ env.MODE }}", --verbose]
"""


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # the CLI configures the root logger; keep tests independent of that
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers[:]:
        if h not in handlers:
            root.removeHandler(h)
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
