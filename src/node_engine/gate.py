"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.

Durable activation gate: a single epoch-seconds value recording when the
node's activation was last launched. The gate is the only state that survives
between invocations; everything else is queried live from the runtime.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from node_engine.errors import GateStateError
from node_engine.utils.atomic_write import atomic_write_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    remaining_seconds: int = 0

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(allowed=True)

    @classmethod
    def block(cls, remaining_seconds: int) -> "GateDecision":
        return cls(allowed=False, remaining_seconds=remaining_seconds)


@dataclass(frozen=True)
class GateStatus:
    path: Path
    last_activation: Optional[int]
    decision: GateDecision


def read_last_activation(path: Path) -> Optional[int]:
    if not path.exists():
        return None
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise GateStateError("activation_gate", f"unable to read {path}: {exc}") from exc
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise GateStateError("activation_gate", f"invalid timestamp in {path}: {raw.strip()!r}") from exc


def check_cooldown(now: int, last_activation: Optional[int], cooldown_seconds: int) -> GateDecision:
    if last_activation is None:
        return GateDecision.allow()
    elapsed = now - last_activation
    if elapsed < cooldown_seconds:
        return GateDecision.block(cooldown_seconds - elapsed)
    return GateDecision.allow()


def record_activation(path: Path, now: int) -> None:
    atomic_write_text(path, f"{int(now)}\n")
    logger.info("[gate] recorded activation at %s in %s", now, path)


def gate_status(path: Path, now: int, cooldown_seconds: int) -> GateStatus:
    last = read_last_activation(path)
    return GateStatus(path=path, last_activation=last, decision=check_cooldown(now, last, cooldown_seconds))
