# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Change detection by polling.

The poller asks the server for the episode collection's change stamp on a
fixed interval and triggers a refetch only when the stamp is strictly newer
than the last one seen. A stamp equal to the last seen one never triggers.
"""

import threading
from typing import Callable, Optional

from structlog import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 30.0


class ChangePoller:
    """
    Poll a change stamp and call back when it advances.

    Args:
        check: Returns the server's current stamp (ms)
        on_change: Refetch callback, receives the new stamp
        interval: Seconds between polls
        last_seen: Stamp the caller's data is already at

    Failures in check or on_change are logged and swallowed; the
    next tick tries again. last_seen only advances after on_change
    succeeds, so a failed refetch is retried.

    Example:
        poller = ChangePoller(client.check_updates, lambda ts: store.load(), interval=30)
        poller.start()
        ...
        poller.stop()
    """

    def __init__(
        self,
        check: Callable[[], int],
        on_change: Callable[[int], None],
        interval: float = DEFAULT_POLL_INTERVAL,
        last_seen: int = 0,
    ):
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        self.check = check
        self.on_change = on_change
        self.interval = interval
        self.last_seen = last_seen
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> bool:
        """
        Run a single poll.

        Returns:
            True if a change was detected and the refetch succeeded
        """
        try:
            server_ts = self.check()
        except Exception as e:
            logger.warning("Change check failed", error=str(e))
            return False

        if server_ts <= self.last_seen:
            return False

        try:
            self.on_change(server_ts)
        except Exception as e:
            logger.warning("Refetch after change failed", server_ts=server_ts, error=str(e))
            return False

        logger.debug("Change detected", previous=self.last_seen, server_ts=server_ts)
        self.last_seen = server_ts
        return True

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start polling on a daemon thread. The first poll happens after one interval."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="vial-change-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.poll_once()

    def __enter__(self) -> "ChangePoller":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
