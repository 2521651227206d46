"""
NodeWizard
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from types import FrameType
from typing import Callable, Optional

from node_engine.errors import WaitInterrupted
from node_engine.utils.time import format_duration

logger = logging.getLogger(__name__)


class _Terminated(Exception):
    pass


def _raise_terminated(signum: int, frame: Optional[FrameType]) -> None:
    raise _Terminated(signum)


class CooldownWait:
    """
    Synchronous, blocking wait for a fixed number of seconds.

    SIGINT and SIGTERM during the wait surface as WaitInterrupted so the caller
    can stop before launching anything. There is no other way to cancel it.
    """

    def __init__(
        self,
        seconds: int,
        *,
        sleep: Callable[[float], None] = time.sleep,
        tick_seconds: int = 60,
    ) -> None:
        self.seconds = max(0, int(seconds))
        self.tick_seconds = max(1, int(tick_seconds))
        self._sleep = sleep

    def __call__(self) -> None:
        previous = None
        install_handler = threading.current_thread() is threading.main_thread()
        if install_handler:
            previous = signal.signal(signal.SIGTERM, _raise_terminated)
        elapsed = 0
        try:
            while elapsed < self.seconds:
                step = min(self.tick_seconds, self.seconds - elapsed)
                self._sleep(step)
                elapsed += step
                if elapsed < self.seconds:
                    logger.info("[wait] %s remaining", format_duration(self.seconds - elapsed))
        except (KeyboardInterrupt, _Terminated) as exc:
            raise WaitInterrupted(elapsed, self.seconds) from exc
        finally:
            if install_handler:
                signal.signal(signal.SIGTERM, previous if previous is not None else signal.SIG_DFL)
