"""ChromaDB-backed vector index."""

import asyncio
from functools import partial
from typing import Any, Callable, Dict, List, Optional, TypeVar

try:
    import chromadb
    from chromadb.config import Settings as ChromaSettings
except ImportError:
    chromadb = None

from ...config.settings import Settings
from ...core.exceptions import VectorIndexError
from ...models.rag import DistanceMetric, IndexedPoint, SearchHit
from .base import VectorIndex

T = TypeVar("T")


def build_where(filter: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Translate an equality-conjunction filter into a Chroma ``where`` clause."""
    if not filter:
        return None
    clauses = [{key: value} for key, value in filter.items()]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaVectorIndex(VectorIndex):
    """Vector index stored in ChromaDB collections.

    Collections are created through ``get_or_create_collection``, so two
    concurrent first writers both succeed. Chroma reports cosine *distance*;
    scores are converted to similarity as ``1 - distance``.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client = None
        self._started = False

    @property
    def backend_name(self) -> str:
        return "chroma"

    async def initialize(self) -> None:
        if chromadb is None:
            raise VectorIndexError("ChromaDB not available. Install with: pip install chromadb")

        self._started = True
        await self._connect()

    async def _connect(self) -> None:
        try:
            chroma_settings = ChromaSettings(anonymized_telemetry=False)
            if self.settings.CHROMADB_HOST:
                self.client = await self._run(
                    chromadb.HttpClient,
                    host=self.settings.CHROMADB_HOST,
                    port=self.settings.CHROMADB_PORT,
                    settings=chroma_settings,
                )
                location = f"{self.settings.CHROMADB_HOST}:{self.settings.CHROMADB_PORT}"
            else:
                self.settings.CHROMADB_PERSIST_DIRECTORY.mkdir(parents=True, exist_ok=True)
                self.client = await self._run(
                    chromadb.PersistentClient,
                    path=str(self.settings.CHROMADB_PERSIST_DIRECTORY),
                    settings=chroma_settings,
                )
                location = str(self.settings.CHROMADB_PERSIST_DIRECTORY)
        except Exception as e:
            self.logger.error("Failed to initialize ChromaDB client", error=str(e))
            raise VectorIndexError(f"ChromaDB initialization failed: {e}")

        self.logger.info("Chroma vector index initialized", location=location)

    async def close(self) -> None:
        self.client = None
        self._started = False
        self.logger.info("Chroma vector index closed")

    async def _run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking Chroma call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))

    async def _ensure_client(self) -> None:
        """Reconnect on use if the server was unreachable at startup."""
        if self.client is not None:
            return
        if not self._started:
            raise VectorIndexError("Chroma vector index not initialized")
        await self._connect()

    async def _collection(self, name: str):
        await self._ensure_client()
        try:
            return await self._run(self.client.get_collection, name=name)
        except Exception as e:
            raise VectorIndexError(f"Collection not available: {name}: {e}", name)

    async def collection_exists(self, name: str) -> bool:
        try:
            await self._ensure_client()
            collections = await self._run(self.client.list_collections)
        except Exception as e:
            self.logger.warning("Failed to list collections", collection=name, error=str(e))
            return False

        # Chroma >= 0.6 returns names, older releases return Collection objects
        names = {c if isinstance(c, str) else c.name for c in collections}
        return name in names

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        await self._ensure_client()
        try:
            await self._run(
                self.client.get_or_create_collection,
                name=name,
                metadata={"hnsw:space": metric.value, "dimension": dimension},
            )
        except Exception as e:
            self.logger.error("Failed to create collection", collection=name, error=str(e))
            raise VectorIndexError(f"Failed to create collection {name}: {e}", name)

        self.logger.info("Collection ready", collection=name, dimension=dimension, metric=metric.value)

    async def upsert_point(
        self,
        collection: str,
        point_id: str,
        vector: List[float],
        payload: Dict[str, Any],
    ) -> None:
        coll = await self._collection(collection)

        expected = (coll.metadata or {}).get("dimension")
        if expected is not None and len(vector) != expected:
            raise VectorIndexError(
                f"Vector dimension mismatch: expected {expected}, got {len(vector)}", collection
            )

        try:
            await self._run(
                coll.upsert,
                ids=[point_id],
                embeddings=[list(vector)],
                metadatas=[dict(payload)],
            )
        except Exception as e:
            raise VectorIndexError(f"Failed to upsert point {point_id}: {e}", collection)

        self.logger.debug("Point upserted", collection=collection, point_id=point_id)

    async def delete_point(self, collection: str, point_id: str) -> None:
        coll = await self._collection(collection)
        try:
            await self._run(coll.delete, ids=[point_id])
        except Exception as e:
            raise VectorIndexError(f"Failed to delete point {point_id}: {e}", collection)

        self.logger.debug("Point deleted", collection=collection, point_id=point_id)

    async def search(
        self,
        collection: str,
        query_vector: List[float],
        limit: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[SearchHit]:
        coll = await self._collection(collection)
        try:
            if await self._run(coll.count) == 0:
                return []
            results = await self._run(
                coll.query,
                query_embeddings=[list(query_vector)],
                n_results=limit,
                where=build_where(filter),
                include=["metadatas", "distances"],
            )
        except Exception as e:
            raise VectorIndexError(f"Search failed: {e}", collection)

        ids = results["ids"][0] if results.get("ids") else []
        distances = results["distances"][0] if results.get("distances") else []
        metadatas = results["metadatas"][0] if results.get("metadatas") else []

        hits = [
            SearchHit(
                id=point_id,
                score=1.0 - float(distances[i]),
                payload=dict(metadatas[i] or {}) if i < len(metadatas) else {},
            )
            for i, point_id in enumerate(ids)
        ]
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits

    async def get_point(self, collection: str, point_id: str) -> Optional[IndexedPoint]:
        coll = await self._collection(collection)
        try:
            result = await self._run(coll.get, ids=[point_id], include=["embeddings", "metadatas"])
        except Exception as e:
            raise VectorIndexError(f"Failed to get point {point_id}: {e}", collection)

        if not result["ids"]:
            return None

        embeddings = result.get("embeddings")
        vector = [float(x) for x in embeddings[0]] if embeddings is not None and len(embeddings) else []
        metadatas = result.get("metadatas") or [{}]
        return IndexedPoint(id=result["ids"][0], vector=vector, payload=dict(metadatas[0] or {}))

    async def count(self, collection: str) -> int:
        coll = await self._collection(collection)
        try:
            return await self._run(coll.count)
        except Exception as e:
            raise VectorIndexError(f"Failed to count points: {e}", collection)
