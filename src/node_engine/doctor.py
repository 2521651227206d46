"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

from node_engine import gate
from node_engine.config import NodeConfig
from node_engine.errors import GateStateError
from node_engine.runtime import NodeRuntime
from node_engine.utils.time import epoch_now, epoch_to_z


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    detail: str


def _check_runtime(runtime: NodeRuntime) -> CheckResult:
    if runtime.is_available():
        return CheckResult("container_runtime", True, "docker is installed")
    return CheckResult("container_runtime", False, "docker not found on PATH; run install")


def _check_data_directory(config: NodeConfig) -> CheckResult:
    if config.data_directory.is_dir():
        return CheckResult("data_directory", True, str(config.data_directory))
    return CheckResult("data_directory", False, f"missing {config.data_directory}; run install")


def _check_credentials(config: NodeConfig) -> CheckResult:
    if config.credentials_path.exists():
        return CheckResult("credentials", True, str(config.credentials_path))
    return CheckResult("credentials", False, f"missing {config.credentials_path}; node not initialized")


def _check_container(config: NodeConfig, runtime: NodeRuntime) -> CheckResult:
    state = runtime.container_state(config.container_name)
    if state is None:
        return CheckResult("container", False, f"no container named {config.container_name}; run final")
    if state != "running":
        return CheckResult("container", False, f"{config.container_name} is {state}")
    return CheckResult("container", True, f"{config.container_name} is running")


def _check_gate(config: NodeConfig, now: int) -> CheckResult:
    try:
        status = gate.gate_status(config.timestamp_path, now, config.cooldown_seconds)
    except GateStateError as exc:
        return CheckResult("activation_gate", False, exc.detail)
    if status.last_activation is None:
        return CheckResult("activation_gate", True, "no previous activation; final step allowed")
    last = epoch_to_z(status.last_activation)
    if status.decision.allowed:
        return CheckResult("activation_gate", True, f"last activation {last}; final step allowed")
    return CheckResult(
        "activation_gate",
        False,
        f"last activation {last}; blocked for another {status.decision.remaining_seconds} seconds",
    )


def _check_rpc_endpoint(config: NodeConfig, timeout_s: float) -> CheckResult:
    try:
        resp = requests.get(config.rpc_endpoint, timeout=timeout_s)
    except requests.Timeout:
        return CheckResult("rpc_endpoint", False, f"{config.rpc_endpoint} timed out after {timeout_s:g}s")
    except requests.RequestException as exc:
        return CheckResult("rpc_endpoint", False, f"{config.rpc_endpoint} unreachable: {exc}")
    return CheckResult("rpc_endpoint", True, f"{config.rpc_endpoint} answered HTTP {resp.status_code}")


def run_checks(
    config: NodeConfig,
    runtime: NodeRuntime,
    *,
    now: Optional[int] = None,
    check_rpc: bool = True,
    rpc_timeout_s: float = 5.0,
    clock: Callable[[], int] = epoch_now,
) -> List[CheckResult]:
    current = clock() if now is None else now
    results = [
        _check_runtime(runtime),
        _check_data_directory(config),
        _check_credentials(config),
        _check_container(config, runtime),
        _check_gate(config, current),
    ]
    if check_rpc:
        results.append(_check_rpc_endpoint(config, rpc_timeout_s))
    return results
