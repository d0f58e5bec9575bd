"""
In-process slug -> ExerciseIdentity cache.

The catalog is an explicit object injected into the resolver, not module
state: tests and callers decide when it is warmed, refreshed or
invalidated. It only ever short-circuits store reads. Creation still goes
through the store's unique-slug upsert, so a stale or cold catalog can
cost an extra query but can never cause a duplicate identity.
"""

import logging
import threading
from typing import Dict, Optional

from application.ports import ExerciseStore
from domain.models import ExerciseIdentity

logger = logging.getLogger(__name__)


class ExerciseCatalog:
    """Thread-safe slug cache backed by an ExerciseStore."""

    def __init__(self, store: ExerciseStore, preload_limit: int = 1000):
        self._store = store
        self._preload_limit = preload_limit
        self._by_slug: Dict[str, ExerciseIdentity] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._by_slug)

    def get(self, slug: str) -> Optional[ExerciseIdentity]:
        with self._lock:
            return self._by_slug.get(slug)

    def put(self, exercise: ExerciseIdentity) -> None:
        with self._lock:
            self._by_slug[exercise.slug] = exercise

    def refresh(self) -> int:
        """
        Reload the catalog from the store.

        Returns:
            Number of identities loaded
        """
        exercises = self._store.list_all(limit=self._preload_limit)
        with self._lock:
            self._by_slug = {exercise.slug: exercise for exercise in exercises}
        logger.info(f"Loaded {len(exercises)} exercises into catalog")
        return len(exercises)

    def invalidate(self, slug: Optional[str] = None) -> None:
        """Drop one slug, or everything when ``slug`` is None."""
        with self._lock:
            if slug is None:
                self._by_slug.clear()
            else:
                self._by_slug.pop(slug, None)
