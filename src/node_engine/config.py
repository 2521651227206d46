"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

ENV_PREFIX = "NODEWIZARD_"

# Fixed funding window between initialization and the node's active duty.
COOLDOWN_SECONDS = 1200

DEFAULT_PRODUCT = "nillion"
DEFAULT_NODE_KIND = "accuser"
DEFAULT_IMAGE = "nillion/retailtoken-accuser:v1.0.0"
DEFAULT_CONTAINER_NAME = "nillion_accuser"
DEFAULT_RPC_ENDPOINT = "https://testnet-nillion-rpc.lavenderfive.com"
DEFAULT_BLOCK_START = 5098941
DEFAULT_FAUCET_URL = "https://faucet.testnet.nillion.com/"
DEFAULT_APT_PACKAGES: Tuple[str, ...] = (
    "curl",
    "software-properties-common",
    "ca-certificates",
    "apt-transport-https",
    "screen",
)

CREDENTIALS_FILENAME = "credentials.json"
TIMESTAMP_FILENAME = "timestamp"
CONTAINER_DATA_MOUNT = "/var/tmp"


@dataclass(frozen=True)
class NodeConfig:
    home: Path
    product: str = DEFAULT_PRODUCT
    node_kind: str = DEFAULT_NODE_KIND
    image_reference: str = DEFAULT_IMAGE
    container_name: str = DEFAULT_CONTAINER_NAME
    rpc_endpoint: str = DEFAULT_RPC_ENDPOINT
    block_start: Optional[int] = DEFAULT_BLOCK_START
    cooldown_seconds: int = COOLDOWN_SECONDS
    faucet_url: str = DEFAULT_FAUCET_URL
    apt_packages: Tuple[str, ...] = field(default=DEFAULT_APT_PACKAGES)

    @property
    def product_root(self) -> Path:
        return self.home / self.product

    @property
    def data_directory(self) -> Path:
        return self.product_root / self.node_kind

    @property
    def credentials_path(self) -> Path:
        return self.data_directory / CREDENTIALS_FILENAME

    @property
    def timestamp_path(self) -> Path:
        return self.data_directory / TIMESTAMP_FILENAME


def _get_int_env(environ: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    value = environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str_env(environ: Mapping[str, str], name: str, default: str) -> str:
    value = (environ.get(name) or "").strip()
    return value or default


def _split_csv(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    *,
    dotenv_path: Optional[str] = None,
) -> NodeConfig:
    """
    Build the configuration once at startup.

    Values come from NODEWIZARD_* environment variables. When reading the real
    process environment, a .env file is loaded first without overriding
    variables that are already set. The cooldown is not configurable.
    """
    if environ is None:
        load_dotenv(dotenv_path, override=False)
        environ = os.environ

    home_raw = environ.get(f"{ENV_PREFIX}HOME") or environ.get("HOME") or str(Path.home())
    packages = _split_csv(environ.get(f"{ENV_PREFIX}APT_PACKAGES")) or DEFAULT_APT_PACKAGES
    return NodeConfig(
        home=Path(home_raw).expanduser(),
        product=_get_str_env(environ, f"{ENV_PREFIX}PRODUCT", DEFAULT_PRODUCT),
        node_kind=_get_str_env(environ, f"{ENV_PREFIX}NODE_KIND", DEFAULT_NODE_KIND),
        image_reference=_get_str_env(environ, f"{ENV_PREFIX}IMAGE", DEFAULT_IMAGE),
        container_name=_get_str_env(environ, f"{ENV_PREFIX}CONTAINER_NAME", DEFAULT_CONTAINER_NAME),
        rpc_endpoint=_get_str_env(environ, f"{ENV_PREFIX}RPC_ENDPOINT", DEFAULT_RPC_ENDPOINT),
        block_start=_get_int_env(environ, f"{ENV_PREFIX}BLOCK_START", DEFAULT_BLOCK_START),
        faucet_url=_get_str_env(environ, f"{ENV_PREFIX}FAUCET_URL", DEFAULT_FAUCET_URL),
        apt_packages=packages,
    )
