"""Cooperative cancellation for bulk operations and migration passes."""

import asyncio


class CancellationToken:
    """Signals long-running operations to stop issuing new gateway calls.

    Calls already in flight are left to complete and are still accounted for.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()
