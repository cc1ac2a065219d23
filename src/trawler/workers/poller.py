"""
Polling Worker - Base class for the single-loop process roles.

Each role polls the store for one unit of work at a time. When there is no
work the worker backs off exponentially between ``min_wait`` and
``max_wait`` seconds; finding work resets the wait. The stop event is
checked once per iteration and interrupts a backoff wait immediately.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional


ErrorHandler = Callable[[str, str], None]


class PollingWorker(ABC):
    """
    Abstract base class for poll-loop drivers.

    Lifecycle:
    ---------
    1. Create worker with a shared stop event
    2. Iterate loop() (or call run()) until the event is set
    3. close() runs once the loop has exited
    """

    min_wait: float = 0.01
    max_wait: float = 3.0

    def __init__(self, stop_event: Optional[threading.Event] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 min_wait: Optional[float] = None, max_wait: Optional[float] = None):
        self.stop_event = stop_event or threading.Event()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.error_handler = error_handler or self._log_error
        if min_wait is not None:
            self.min_wait = min_wait
        if max_wait is not None:
            self.max_wait = max_wait

        self.stats = {
            'iterations': 0,
            'work_items': 0,
            'idle_polls': 0,
        }

    @abstractmethod
    def poll_once(self) -> Optional[List[str]]:
        """
        Process one unit of work.

        Returns:
            Messages describing what was done, or None when there was no work
        """
        pass

    def loop(self) -> Iterator[str]:
        """Poll until stopped, yielding a message per completed step."""
        wait = self.min_wait
        self.logger.info(f"Starting {self.__class__.__name__} loop")

        while not self.stop_event.is_set():
            self.stats['iterations'] += 1
            messages = self.poll_once()

            if messages is None:
                self.stats['idle_polls'] += 1
                self.logger.debug(f"No work, waiting {wait:.2f}s")
                self.stop_event.wait(wait)
                wait = min(wait * 2, self.max_wait)
                continue

            self.stats['work_items'] += 1
            wait = self.min_wait
            for message in messages:
                yield message

        self.logger.info(f"{self.__class__.__name__} loop stopped")

    def run(self):
        """Run the loop to completion, logging each message, then close."""
        try:
            for message in self.loop():
                if message:
                    self.logger.info(message)
        finally:
            self.close()

    def stop(self):
        self.stop_event.set()

    def close(self):
        """Release resources once the loop has stopped."""
        pass

    def get_stats(self) -> dict:
        return dict(self.stats)

    def _log_error(self, url: str, message: str):
        self.logger.warning(f"{url}: {message}")
