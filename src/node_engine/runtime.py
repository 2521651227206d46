"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from node_engine.config import CONTAINER_DATA_MOUNT, NodeConfig
from node_engine.errors import RuntimeCommandError
from node_engine.utils.commands import CommandResult, run_command, run_streaming, which

logger = logging.getLogger(__name__)

_ABSENT_MARKERS = ("no such container", "no such image", "no such object")

Runner = Callable[[Sequence[str]], CommandResult]
StreamRunner = Callable[[Sequence[str]], int]


class NodeRuntime(Protocol):
    def is_available(self) -> bool: ...

    def pull(self, image: str) -> None: ...

    def initialize(self, image: str, data_directory: Path) -> None: ...

    def launch(self, image: str, data_directory: Path, args: Sequence[str]) -> str: ...

    def stop(self, container: str) -> bool: ...

    def remove(self, container: str) -> bool: ...

    def remove_image(self, image: str) -> bool: ...

    def prune(self) -> None: ...

    def tail_logs(self, container: str, *, follow: bool = True) -> int: ...

    def container_state(self, container: str) -> Optional[str]: ...


def node_launch_args(config: NodeConfig) -> List[str]:
    """Arguments passed to the node image to start its active duty."""
    args = ["accuse", "--rpc-endpoint", config.rpc_endpoint]
    if config.block_start is not None:
        args.extend(["--block-start", str(config.block_start)])
    return args


def _is_absent(result: CommandResult) -> bool:
    text = f"{result.stderr}\n{result.stdout}".lower()
    return any(marker in text for marker in _ABSENT_MARKERS)


class DockerRuntime:
    """Node runtime backed by the docker CLI."""

    def __init__(
        self,
        container_name: str,
        *,
        binary: str = "docker",
        runner: Runner = run_command,
        stream_runner: StreamRunner = run_streaming,
    ) -> None:
        self.container_name = container_name
        self.binary = binary
        self._run = runner
        self._stream = stream_runner

    def _checked(self, step: str, args: Sequence[str]) -> CommandResult:
        cmd = [self.binary, *args]
        result = self._run(cmd)
        if not result.ok:
            raise RuntimeCommandError(step=step, command=cmd, returncode=result.returncode, stderr=result.detail)
        return result

    def _tolerant(self, step: str, args: Sequence[str]) -> bool:
        """Run a teardown call; a missing target counts as success. Returns False when absent."""
        cmd = [self.binary, *args]
        result = self._run(cmd)
        if result.ok:
            return True
        if _is_absent(result):
            logger.info("[runtime] %s: nothing to do (%s)", step, result.detail)
            return False
        raise RuntimeCommandError(step=step, command=cmd, returncode=result.returncode, stderr=result.detail)

    def _volume(self, data_directory: Path) -> str:
        return f"{data_directory}:{CONTAINER_DATA_MOUNT}"

    def is_available(self) -> bool:
        return which(self.binary) is not None

    def pull(self, image: str) -> None:
        logger.info("[runtime] pulling %s", image)
        self._checked("pull", ["pull", image])

    def initialize(self, image: str, data_directory: Path) -> None:
        logger.info("[runtime] initializing node in %s", data_directory)
        self._checked("initialize", ["run", "--rm", "-v", self._volume(data_directory), image, "initialise"])

    def launch(self, image: str, data_directory: Path, args: Sequence[str]) -> str:
        """Start the node detached under the stable container name. Returns the container id."""
        logger.info("[runtime] launching %s as %s", image, self.container_name)
        result = self._checked(
            "launch",
            [
                "run",
                "-d",
                "--name",
                self.container_name,
                "-v",
                self._volume(data_directory),
                image,
                *args,
            ],
        )
        return result.stdout.strip()

    def stop(self, container: str) -> bool:
        return self._tolerant("stop", ["stop", container])

    def remove(self, container: str) -> bool:
        return self._tolerant("remove", ["rm", "-f", container])

    def remove_image(self, image: str) -> bool:
        return self._tolerant("remove_image", ["rmi", image])

    def prune(self) -> None:
        self._checked("prune", ["system", "prune", "-f"])

    def tail_logs(self, container: str, *, follow: bool = True) -> int:
        args = [self.binary, "logs"]
        if follow:
            args.append("-f")
        args.append(container)
        return self._stream(args)

    def container_state(self, container: str) -> Optional[str]:
        """Return the container's state (running, exited, ...) or None when it does not exist."""
        result = self._run([self.binary, "inspect", "-f", "{{.State.Status}}", container])
        if not result.ok:
            return None
        return result.stdout.strip() or None
