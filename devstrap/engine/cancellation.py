"""Cooperative batch-level cancellation."""

import asyncio


class CancelToken:
    """Advisory cancellation flag checked between attempts and before new targets.

    Raising it never interrupts an install call already in flight; it only
    wakes dispatchers sleeping in backoff and stops workers from picking up
    more targets.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, delay: float) -> bool:
        """Sleep up to ``delay`` seconds. Returns True if cancelled meanwhile."""
        if self.cancelled:
            return True
        if delay <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


__all__ = ["CancelToken"]
