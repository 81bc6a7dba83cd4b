"""Abstract vector index interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...config.logging import LoggerMixin
from ...models.rag import DistanceMetric, IndexedPoint, SearchHit


class VectorIndex(ABC, LoggerMixin):
    """Named collections of fixed-dimension vectors with payloads.

    Every call except :meth:`collection_exists` raises
    :class:`~answer_rag.core.exceptions.VectorIndexError` when the backend
    fails; callers decide whether that is fatal.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Connect to the backend."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Whether the collection exists. Backend errors are reported as False."""
        pass

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        """Create the collection if it does not exist; a no-op otherwise."""
        pass

    @abstractmethod
    async def upsert_point(
        self,
        collection: str,
        point_id: str,
        vector: List[float],
        payload: Dict[str, Any],
    ) -> None:
        """Insert or fully replace the point with this id."""
        pass

    @abstractmethod
    async def delete_point(self, collection: str, point_id: str) -> None:
        """Delete the point; deleting a missing point is not an error."""
        pass

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_vector: List[float],
        limit: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[SearchHit]:
        """Nearest neighbours by descending score.

        ``filter`` is a conjunction of equality predicates over payload fields.
        """
        pass

    @abstractmethod
    async def get_point(self, collection: str, point_id: str) -> Optional[IndexedPoint]:
        """Look up a single point by id."""
        pass

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Number of points in the collection."""
        pass

    @property
    @abstractmethod
    def backend_name(self) -> str:
        pass


def matches_filter(payload: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    """Evaluate an equality-conjunction filter against a payload."""
    if not filter:
        return True
    for key, expected in filter.items():
        if key not in payload:
            return False
        actual = payload[key]
        # bool is an int subclass; True must not match 1
        if isinstance(actual, bool) != isinstance(expected, bool):
            return False
        if actual != expected:
            return False
    return True
