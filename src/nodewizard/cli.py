"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from node_engine.config import NodeConfig, load_config
from node_engine.doctor import run_checks
from node_engine.errors import GateBlockedError, NodeWizardError, UserDeclinedError
from node_engine.lifecycle import LifecycleController, is_affirmative
from node_engine.provisioning import AptProvisioner
from node_engine.runtime import DockerRuntime

COMMANDS = ("install", "final", "activate", "remove", "logs", "credentials", "update", "doctor", "help")

HELP_LINES = (
    ("install", "Installs the node: prepares the server, installs Docker, and initializes the node."),
    ("final", "Final step: waits out the cooldown, then launches the node in the background."),
    ("remove", "Removes the node: deletes the container and all related files (with confirmation)."),
    ("logs", "Follows the node's container logs."),
    ("credentials", "Prints the node's private key, public key and address."),
    ("update", "Replaces the running container with a freshly pulled image."),
    ("doctor", "Read-only health checks: runtime, data directory, credentials, gate, RPC endpoint."),
    ("help", "Displays this message."),
)


def _setup_logging() -> None:
    if logging.getLogger().hasHandlers():
        return
    level_name = (os.environ.get("NODEWIZARD_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _usage() -> str:
    return "Usage: nodewizard {install|final|remove|logs|credentials|update|doctor|help}"


def _confirm_prompt(prompt: str) -> bool:
    try:
        return is_affirmative(input(prompt))
    except EOFError:
        return False


def build_controller(config: NodeConfig) -> LifecycleController:
    return LifecycleController(
        config,
        DockerRuntime(config.container_name),
        AptProvisioner(config.apt_packages),
    )


def _install(args: argparse.Namespace, config: NodeConfig) -> int:
    build_controller(config).install()
    return 0


def _final(args: argparse.Namespace, config: NodeConfig) -> int:
    build_controller(config).activate()
    return 0


def _remove(args: argparse.Namespace, config: NodeConfig) -> int:
    confirm = (lambda _prompt: True) if args.yes else _confirm_prompt
    build_controller(config).remove(confirm)
    return 0


def _logs(args: argparse.Namespace, config: NodeConfig) -> int:
    try:
        return build_controller(config).logs()
    except KeyboardInterrupt:
        return 0


def _credentials(args: argparse.Namespace, config: NodeConfig) -> int:
    build_controller(config).credentials()
    return 0


def _update(args: argparse.Namespace, config: NodeConfig) -> int:
    build_controller(config).update()
    return 0


def _doctor(args: argparse.Namespace, config: NodeConfig) -> int:
    results = run_checks(
        config,
        DockerRuntime(config.container_name),
        check_rpc=not args.skip_rpc,
        rpc_timeout_s=args.timeout,
    )
    for result in results:
        status = "OK" if result.ok else "FAIL"
        print(f"[doctor] {status} {result.name}: {result.detail}")
    return 0 if all(result.ok for result in results) else 1


def _help(args: argparse.Namespace, config: NodeConfig) -> int:
    print("Available commands:")
    width = max(len(name) for name, _ in HELP_LINES)
    for name, text in HELP_LINES:
        print(f"  {name.ljust(width)}  - {text}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodewizard",
        description="NodeWizard: single-node lifecycle manager for a containerized blockchain client.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    install = subparsers.add_parser("install", help="Provision host, install docker, pull and initialize the node")
    install.set_defaults(func=_install)

    final = subparsers.add_parser("final", aliases=["activate"], help="Gated wait-then-launch of the node")
    final.set_defaults(func=_final)

    remove = subparsers.add_parser("remove", help="Stop the node and delete its data")
    remove.add_argument("--yes", "-y", action="store_true", help="Skip the interactive confirmation.")
    remove.set_defaults(func=_remove)

    logs = subparsers.add_parser("logs", help="Follow container logs")
    logs.set_defaults(func=_logs)

    credentials = subparsers.add_parser("credentials", help="Print the node credentials")
    credentials.set_defaults(func=_credentials)

    update = subparsers.add_parser("update", help="Replace the container with a fresh pull")
    update.set_defaults(func=_update)

    doctor = subparsers.add_parser("doctor", help="Read-only health checks")
    doctor.add_argument("--skip-rpc", action="store_true", help="Do not probe the RPC endpoint.")
    doctor.add_argument("--timeout", type=float, default=5.0, help="RPC probe timeout in seconds.")
    doctor.set_defaults(func=_doctor)

    help_cmd = subparsers.add_parser("help", help="Print the command summary")
    help_cmd.set_defaults(func=_help)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in COMMANDS:
        print(_usage())
        return 0

    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (0, None):
            print(_usage())
        return 0

    _setup_logging()
    config = load_config()
    try:
        return args.func(args, config)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130
    except UserDeclinedError as exc:
        print(exc.detail[:1].upper() + exc.detail[1:] + ".")
        return exc.exit_code
    except GateBlockedError as exc:
        print(f"Please wait another {exc.remaining_seconds} seconds before running the final step.", file=sys.stderr)
        return exc.exit_code
    except NodeWizardError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
