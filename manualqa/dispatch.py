"""Ways of delivering worker outcomes back to the presentation thread."""

from __future__ import annotations

import queue
from typing import Callable, Optional

Dispatcher = Callable[[Callable[[], None]], None]


def inline_dispatch(fn: Callable[[], None]) -> None:
    """Run the callback immediately on whichever thread produced it."""
    fn()


class CallQueue:
    """Thread-safe FIFO of callbacks, run by whoever calls ``drain``.

    Pass an instance as the manager's dispatcher and drain it from the
    presentation loop so notifications arrive on that loop's thread.
    """

    def __init__(self) -> None:
        self._calls: "queue.Queue[Callable[[], None]]" = queue.Queue()

    def __call__(self, fn: Callable[[], None]) -> None:
        self._calls.put(fn)

    def __len__(self) -> int:
        return self._calls.qsize()

    def drain(self, timeout: Optional[float] = None) -> int:
        """Run every pending callback and return how many ran.

        With a timeout, waits up to that long for the first callback when
        none is pending yet.
        """
        ran = 0
        block = timeout is not None and timeout > 0
        while True:
            try:
                fn = self._calls.get(block=block and ran == 0, timeout=timeout if block else None)
            except queue.Empty:
                return ran
            fn()
            ran += 1
