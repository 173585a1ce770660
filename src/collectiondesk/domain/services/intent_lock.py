"""Per-collection operation intents.

A migration takes an exclusive intent on its slug; record writes and bulk
operations take a shared one. Conflicting acquisitions fail immediately
instead of waiting, so a second concurrent migration surfaces as VersionMismatch.
"""

from collections import Counter
from contextlib import contextmanager
from typing import Iterator

from collectiondesk.core.exceptions import Conflict, VersionMismatch


class IntentLock:
    """Fail-fast shared/exclusive intents keyed by collection slug.

    Single event loop only: acquisition never awaits, so check-and-set is
    atomic with respect to other coroutines.
    """

    def __init__(self) -> None:
        self._exclusive: set[str] = set()
        self._shared: Counter[str] = Counter()

    def is_exclusive(self, slug: str) -> bool:
        return slug in self._exclusive

    def shared_count(self, slug: str) -> int:
        return self._shared[slug]

    @contextmanager
    def exclusive(self, slug: str) -> Iterator[None]:
        """Hold the exclusive (migration) intent for ``slug``."""
        if slug in self._exclusive:
            raise VersionMismatch(
                slug, None, None, f"Collection '{slug}' is already being migrated"
            )
        if self._shared[slug]:
            raise Conflict(
                f"Collection '{slug}' has {self._shared[slug]} write(s) in progress",
                {"slug": slug},
            )
        self._exclusive.add(slug)
        try:
            yield
        finally:
            self._exclusive.discard(slug)

    @contextmanager
    def shared(self, slug: str) -> Iterator[None]:
        """Hold a shared (record write or bulk operation) intent for ``slug``."""
        if slug in self._exclusive:
            raise Conflict(f"Collection '{slug}' is being migrated", {"slug": slug})
        self._shared[slug] += 1
        try:
            yield
        finally:
            self._shared[slug] -= 1
            if not self._shared[slug]:
                del self._shared[slug]
