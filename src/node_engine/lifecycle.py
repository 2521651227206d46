"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.

Lifecycle controller: one operation per invocation.

    Uninstalled -> Provisioned -> Initialized -> Activated -> (Updating | Removed)

Only the activation gate is persisted; the other states are implied by what
exists on disk and in the container runtime.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from node_engine import gate
from node_engine.config import NodeConfig
from node_engine.credentials import CredentialsRecord, load_credentials, render_credentials
from node_engine.errors import (
    GateBlockedError,
    MissingFileError,
    NodeWizardError,
    ProvisioningError,
    RuntimeCommandError,
    UserDeclinedError,
)
from node_engine.provisioning import Provisioner
from node_engine.runtime import NodeRuntime, node_launch_args
from node_engine.utils.time import epoch_now, format_duration
from node_engine.wait import CooldownWait

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

REMOVE_PROMPT = "Are you sure you want to remove the node and all its data? [y/N]: "


def is_affirmative(answer: Optional[str]) -> bool:
    return (answer or "").strip().lower() in ("y", "yes")


class LifecycleController:
    def __init__(
        self,
        config: NodeConfig,
        runtime: NodeRuntime,
        provisioner: Provisioner,
        *,
        clock: Callable[[], int] = epoch_now,
        wait_factory: Callable[[int], Callable[[], None]] = CooldownWait,
        out: Callable[[str], None] = print,
        remove_tree: Callable[[Path], None] = shutil.rmtree,
    ) -> None:
        self.config = config
        self.runtime = runtime
        self.provisioner = provisioner
        self._clock = clock
        self._wait_factory = wait_factory
        self._out = out
        self._remove_tree = remove_tree

    def install(self) -> None:
        cfg = self.config
        self.provisioner.prepare_host()
        self.provisioner.ensure_container_runtime()
        self.runtime.pull(cfg.image_reference)
        try:
            cfg.data_directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ProvisioningError("data directory", f"unable to create {cfg.data_directory}: {exc}") from exc
        self.runtime.initialize(cfg.image_reference, cfg.data_directory)

        self._out("Node initialized. Copy your account id and public key, and register them on the website.")
        self._out(f"Credentials saved in {cfg.credentials_path}.")
        self._out(
            "IMPORTANT: before running the final step, make sure your wallet has received tokens "
            f"from the faucet: {cfg.faucet_url}"
        )

    def activate(self) -> str:
        """Gate check, blocking cooldown wait, detached launch, then record the gate."""
        cfg = self.config
        if not cfg.credentials_path.exists():
            raise MissingFileError("activate", cfg.credentials_path)

        decision = gate.check_cooldown(
            self._clock(),
            gate.read_last_activation(cfg.timestamp_path),
            cfg.cooldown_seconds,
        )
        if not decision.allowed:
            raise GateBlockedError(decision.remaining_seconds)

        self._clear_previous_container()
        self._out(f"Waiting {format_duration(cfg.cooldown_seconds)} before launching the node...")
        self._wait_factory(cfg.cooldown_seconds)()

        container_id = self.runtime.launch(cfg.image_reference, cfg.data_directory, node_launch_args(cfg))
        gate.record_activation(cfg.timestamp_path, self._clock())
        self._out(f"The node has been started in the background as container '{cfg.container_name}'.")
        return container_id

    def _clear_previous_container(self) -> None:
        """Stop and remove any container still registered under the node name."""
        name = self.config.container_name
        state = self.runtime.container_state(name)
        if state is None:
            return
        logger.info("[lifecycle] replacing previous container %s (%s)", name, state)
        self.runtime.stop(name)
        self.runtime.remove(name)

    def remove(self, confirm: Confirm) -> None:
        cfg = self.config
        if not confirm(REMOVE_PROMPT):
            raise UserDeclinedError("remove", "node removal canceled")

        logger.info("[lifecycle] removing container %s", cfg.container_name)
        self.runtime.stop(cfg.container_name)
        self.runtime.remove(cfg.container_name)

        root = cfg.product_root
        if root.exists():
            try:
                self._remove_tree(root)
            except OSError as exc:
                raise NodeWizardError("remove data", f"unable to delete {root}: {exc}") from exc
        self._out("Node successfully removed.")

    def update(self) -> str:
        cfg = self.config
        self._best_effort("stop", lambda: self.runtime.stop(cfg.container_name))
        self._best_effort("remove", lambda: self.runtime.remove(cfg.container_name))
        self._best_effort("remove_image", lambda: self.runtime.remove_image(cfg.image_reference))
        self._best_effort("prune", self.runtime.prune)
        self._best_effort("pull", lambda: self.runtime.pull(cfg.image_reference))
        container_id = self.runtime.launch(cfg.image_reference, cfg.data_directory, node_launch_args(cfg))
        self._out(f"Node updated and restarted as container '{cfg.container_name}'.")
        return container_id

    def logs(self) -> int:
        return self.runtime.tail_logs(self.config.container_name, follow=True)

    def credentials(self) -> CredentialsRecord:
        record = load_credentials(self.config.credentials_path)
        for line in render_credentials(record):
            self._out(line)
        return record

    def _best_effort(self, step: str, action: Callable[[], object]) -> None:
        try:
            action()
        except RuntimeCommandError as exc:
            logger.warning("[lifecycle] %s failed, continuing: %s", step, exc)
