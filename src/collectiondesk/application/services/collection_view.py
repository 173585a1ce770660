"""Collection view: keeps a fetched record page in sync with filter state."""

import asyncio

from collectiondesk.application.services.collection_manager import (
    CollectionManager,
    ErrorInfo,
    OperationResult,
)
from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.filter_state import FilterState
from collectiondesk.domain.entities.record import RecordPage
from collectiondesk.domain.services.query_filter_state import QueryFilterState

logger = get_logger(__name__)


class CollectionView:
    """One operator's view of a collection.

    Every filter change triggers a refresh on the running event loop. Fetches
    are numbered; a response is applied only if no newer fetch has started
    since, so a slow response can never overwrite a faster, newer one.
    """

    def __init__(
        self,
        manager: CollectionManager,
        slug: str,
        filter_state: QueryFilterState | None = None,
        auto_refresh: bool = True,
    ) -> None:
        self.manager = manager
        self.slug = slug
        self.filter_state = filter_state or QueryFilterState()
        self.auto_refresh = auto_refresh
        self.page: RecordPage | None = None
        self.error: ErrorInfo | None = None
        self.applied_state: FilterState | None = None
        self.loading = False
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe = self.filter_state.subscribe(self._on_filter_change)

    async def refresh(self) -> OperationResult[RecordPage]:
        """Fetch the page described by the current filter state."""
        self._generation += 1
        generation = self._generation
        state = self.filter_state.state
        self.loading = True

        result = await self.manager.find_for_view(self.slug, state)

        if generation != self._generation:
            logger.debug(
                "Discarding stale view fetch",
                collection_slug=self.slug,
                generation=generation,
                current_generation=self._generation,
            )
            return result

        self.loading = False
        self.applied_state = state
        if result.ok:
            self.page = result.value
            self.error = None
        else:
            self.error = result.error
        return result

    def _on_filter_change(self, state: FilterState) -> None:
        if not self.auto_refresh:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the owner calls refresh() explicitly
            return
        task = loop.create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for every scheduled refresh to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        """Stop listening to filter changes and cancel pending refreshes."""
        self._unsubscribe()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
