"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    cmd: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def detail(self) -> str:
        return self.stderr.strip() or self.stdout.strip() or f"exit status {self.returncode}"


def run_command(
    cmd: Sequence[str],
    *,
    env: Optional[Mapping[str, str]] = None,
    input_text: Optional[str] = None,
) -> CommandResult:
    """Run a command to completion, capturing output. Never raises on non-zero exit."""
    logger.debug("Running: %s", " ".join(cmd))
    try:
        cp = subprocess.run(
            list(cmd),
            input=input_text,
            env=dict(env) if env is not None else None,
            text=True,
            capture_output=True,
            check=False,
        )
    except FileNotFoundError as exc:
        return CommandResult(tuple(cmd), 127, "", str(exc))
    return CommandResult(tuple(cmd), cp.returncode, cp.stdout or "", cp.stderr or "")


def run_streaming(cmd: Sequence[str], *, env: Optional[Mapping[str, str]] = None) -> int:
    """Run a command with inherited stdio (progress output, log streams). Returns the exit status."""
    logger.debug("Running (streaming): %s", " ".join(cmd))
    try:
        cp = subprocess.run(list(cmd), env=dict(env) if env is not None else None, check=False)
    except FileNotFoundError:
        return 127
    return cp.returncode


def which(name: str) -> Optional[str]:
    return shutil.which(name)


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def privileged(cmd: Sequence[str]) -> list[str]:
    """Prefix with sudo unless we already run as root."""
    if is_root():
        return list(cmd)
    return ["sudo", *cmd]
