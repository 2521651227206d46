"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


class NodeWizardError(RuntimeError):
    """Base for every failure the CLI turns into a marked error and exit code."""

    exit_code = 1

    def __init__(self, step: str, detail: str) -> None:
        super().__init__(f"{step}: {detail}")
        self.step = step
        self.detail = detail


class ProvisioningError(NodeWizardError):
    pass


@dataclass(eq=False)
class RuntimeCommandError(NodeWizardError):
    step: str
    command: Sequence[str]
    returncode: int
    stderr: str = ""

    def __post_init__(self) -> None:
        detail = self.stderr.strip() or f"exit status {self.returncode}"
        NodeWizardError.__init__(self, self.step, detail)

    def __str__(self) -> str:
        return f"{self.step}: {' '.join(self.command)} failed ({self.detail})"


class GateBlockedError(NodeWizardError):
    def __init__(self, remaining_seconds: int) -> None:
        super().__init__(
            "activation_gate",
            f"please wait another {remaining_seconds} seconds before running the final step",
        )
        self.remaining_seconds = remaining_seconds


class GateStateError(NodeWizardError):
    pass


class MissingFileError(NodeWizardError):
    def __init__(self, step: str, path: object) -> None:
        super().__init__(step, f"file not found: {path}")
        self.path = path


class CredentialsError(NodeWizardError):
    pass


class UserDeclinedError(NodeWizardError):
    exit_code = 0

    def __init__(self, step: str, detail: Optional[str] = None) -> None:
        super().__init__(step, detail or "canceled by operator")


class WaitInterrupted(NodeWizardError):
    exit_code = 130

    def __init__(self, elapsed_seconds: int, total_seconds: int) -> None:
        super().__init__(
            "cooldown_wait",
            f"interrupted after {elapsed_seconds}s of {total_seconds}s; activation not recorded",
        )
        self.elapsed_seconds = elapsed_seconds
        self.total_seconds = total_seconds
