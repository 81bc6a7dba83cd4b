"""In-process vector index using numpy cosine similarity."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ...core.exceptions import VectorIndexError
from ...models.rag import DistanceMetric, IndexedPoint, SearchHit
from .base import VectorIndex, matches_filter


@dataclass
class _Collection:
    dimension: int
    metric: DistanceMetric
    vectors: Dict[str, np.ndarray] = field(default_factory=dict)
    payloads: Dict[str, Dict[str, Any]] = field(default_factory=dict)


class MemoryVectorIndex(VectorIndex):
    """Vector index held in process memory.

    Suitable for tests and single-process deployments; contents are lost on
    restart.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, _Collection] = {}

    @property
    def backend_name(self) -> str:
        return "memory"

    async def initialize(self) -> None:
        self.logger.info("Memory vector index initialized")

    async def close(self) -> None:
        self._collections.clear()
        self.logger.info("Memory vector index closed")

    async def collection_exists(self, name: str) -> bool:
        return name in self._collections

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        if dimension < 1:
            raise VectorIndexError(f"Invalid dimension: {dimension}", name)
        if name in self._collections:
            return
        self._collections[name] = _Collection(dimension=dimension, metric=metric)
        self.logger.info("Collection created", collection=name, dimension=dimension, metric=metric.value)

    def _get(self, name: str) -> _Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise VectorIndexError(f"Collection not found: {name}", name)

    def _as_vector(self, coll: _Collection, name: str, vector: List[float]) -> np.ndarray:
        array = np.asarray(vector, dtype=np.float64)
        if array.ndim != 1 or array.shape[0] != coll.dimension:
            raise VectorIndexError(
                f"Vector dimension mismatch: expected {coll.dimension}, got {array.size}", name
            )
        return array

    async def upsert_point(
        self,
        collection: str,
        point_id: str,
        vector: List[float],
        payload: Dict[str, Any],
    ) -> None:
        coll = self._get(collection)
        coll.vectors[point_id] = self._as_vector(coll, collection, vector)
        coll.payloads[point_id] = dict(payload)

    async def delete_point(self, collection: str, point_id: str) -> None:
        coll = self._get(collection)
        coll.vectors.pop(point_id, None)
        coll.payloads.pop(point_id, None)

    async def search(
        self,
        collection: str,
        query_vector: List[float],
        limit: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[SearchHit]:
        coll = self._get(collection)
        query = self._as_vector(coll, collection, query_vector)
        query_norm = np.linalg.norm(query)

        hits = []
        for point_id, vector in coll.vectors.items():
            payload = coll.payloads[point_id]
            if not matches_filter(payload, filter):
                continue
            norm = np.linalg.norm(vector)
            if query_norm == 0 or norm == 0:
                score = 0.0
            else:
                score = float(np.dot(query, vector) / (query_norm * norm))
            hits.append(SearchHit(id=point_id, score=score, payload=dict(payload)))

        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:limit]

    async def get_point(self, collection: str, point_id: str) -> Optional[IndexedPoint]:
        coll = self._get(collection)
        if point_id not in coll.vectors:
            return None
        return IndexedPoint(
            id=point_id,
            vector=coll.vectors[point_id].tolist(),
            payload=dict(coll.payloads[point_id]),
        )

    async def count(self, collection: str) -> int:
        return len(self._get(collection).vectors)
