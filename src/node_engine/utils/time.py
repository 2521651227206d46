"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def epoch_now() -> int:
    """Current wall-clock time as whole seconds since the epoch."""
    return int(time.time())


def utc_from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def epoch_to_z(seconds: int) -> str:
    """Render epoch seconds as an ISO-8601 UTC timestamp with trailing Z."""
    return utc_from_epoch(seconds).isoformat().replace("+00:00", "Z")


def format_duration(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    if minutes and secs:
        return f"{minutes}m{secs:02d}s"
    if minutes:
        return f"{minutes}m"
    return f"{secs}s"
