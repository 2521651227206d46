"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from node_engine.errors import CredentialsError, MissingFileError

CREDENTIAL_FIELDS = (
    ("private_key", "priv_key", "Private Key"),
    ("public_key", "pub_key", "Public Key"),
    ("address", "address", "Address"),
)


@dataclass(frozen=True)
class CredentialsRecord:
    private_key: Optional[str] = None
    public_key: Optional[str] = None
    address: Optional[str] = None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def load_credentials(path: Path) -> CredentialsRecord:
    """
    Read the record the node wrote during initialization.
    Field presence is not validated; missing keys come back as None.
    """
    if not path.exists():
        raise MissingFileError("credentials", path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CredentialsError("credentials", f"unable to read {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise CredentialsError("credentials", f"expected a JSON object in {path}")
    return CredentialsRecord(**{attr: _as_text(payload.get(key)) for attr, key, _ in CREDENTIAL_FIELDS})


def render_credentials(record: CredentialsRecord) -> List[str]:
    return [f"{label}: {getattr(record, attr) or ''}" for attr, _, label in CREDENTIAL_FIELDS]
