"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.

Host preparation for Debian/Ubuntu: apt update/upgrade, base packages and the
docker-ce engine from Docker's apt repository.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Protocol, Sequence

from node_engine.errors import ProvisioningError
from node_engine.utils.commands import CommandResult, privileged, run_command, which

logger = logging.getLogger(__name__)

DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_KEYRING = "/etc/apt/keyrings/docker.gpg"
DOCKER_SOURCES_LIST = "/etc/apt/sources.list.d/docker.list"
DOCKER_APT_LINE = (
    f"deb [arch=amd64 signed-by={DOCKER_KEYRING}] https://download.docker.com/linux/ubuntu jammy stable"
)
DOCKER_PACKAGE = "docker-ce"

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class Provisioner(Protocol):
    def prepare_host(self) -> None: ...

    def ensure_container_runtime(self) -> None: ...


class AptProvisioner:
    def __init__(
        self,
        packages: Iterable[str],
        *,
        runner: Callable[..., CommandResult] = run_command,
        which_fn: Callable[[str], Optional[str]] = which,
        runtime_binary: str = "docker",
    ) -> None:
        self.packages = tuple(packages)
        self._run = runner
        self._which = which_fn
        self.runtime_binary = runtime_binary

    def _apt(self, step: str, args: Sequence[str]) -> None:
        cmd = privileged(["env", *(f"{k}={v}" for k, v in _APT_ENV.items()), "apt-get", *args])
        result = self._run(cmd)
        if not result.ok:
            raise ProvisioningError(step, result.detail)

    def is_installed(self, package: str) -> bool:
        result = self._run(["dpkg-query", "-W", "-f=${Status}", package])
        return result.ok and "install ok installed" in result.stdout

    def ensure_package(self, package: str) -> bool:
        """Install the package if missing. Returns True when something was installed."""
        if self.is_installed(package):
            logger.info("[provision] %s already installed", package)
            return False
        logger.info("[provision] installing %s", package)
        self._apt(f"install {package}", ["install", "-y", package])
        return True

    def prepare_host(self) -> None:
        logger.info("[provision] updating package index and upgrading the host")
        self._apt("apt update", ["update", "-y"])
        self._apt("apt upgrade", ["upgrade", "-y"])
        for package in self.packages:
            self.ensure_package(package)

    def ensure_container_runtime(self) -> None:
        if self._which(self.runtime_binary):
            logger.info("[provision] %s already installed", self.runtime_binary)
            return
        logger.info("[provision] installing the docker engine")
        self._add_docker_repository()
        self._apt("apt update", ["update", "-y"])
        self.ensure_package(DOCKER_PACKAGE)

    def _add_docker_repository(self) -> None:
        key = self._run(["curl", "-fsSL", DOCKER_GPG_URL])
        if not key.ok:
            raise ProvisioningError("docker gpg key", key.detail)
        mkdir = self._run(privileged(["install", "-m", "0755", "-d", "/etc/apt/keyrings"]))
        if not mkdir.ok:
            raise ProvisioningError("docker keyring dir", mkdir.detail)
        dearmor = self._run(
            privileged(["gpg", "--batch", "--yes", "--dearmor", "-o", DOCKER_KEYRING]),
            input_text=key.stdout,
        )
        if not dearmor.ok:
            raise ProvisioningError("docker keyring", dearmor.detail)
        sources = self._run(privileged(["tee", DOCKER_SOURCES_LIST]), input_text=DOCKER_APT_LINE + "\n")
        if not sources.ok:
            raise ProvisioningError("docker apt source", sources.detail)
