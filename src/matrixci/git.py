# git.py
# Small wrapper around the Git CLI, used only to pick a default branch for
# `matrixci run` when --branch is not given.

from __future__ import annotations

import subprocess
from typing import Optional


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Raises subprocess.CalledProcessError on a non-zero exit and
    FileNotFoundError when git is not installed.
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=cwd,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def current_branch(cwd: Optional[str] = None) -> str:
    """
    Return the checked-out branch name.

    A detached HEAD has no branch; git reports it as "HEAD", which no
    trigger pattern is expected to match.
    """
    return _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)
