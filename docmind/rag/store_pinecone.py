"""Pinecone vector store for semantic search.

Handles:
- Index creation on first use
- Batched vector upserts
- Similarity queries returning Match objects
- Index statistics
"""
import asyncio
from typing import List, Dict, Any, Iterator
from pinecone import Pinecone, ServerlessSpec
import structlog

from docmind import config
from docmind.errors import VectorStoreError
from docmind.rag.retriever import Match

logger = structlog.get_logger()


class PineconeVectorStore:
    """Pinecone-backed vector store.

    The Pinecone SDK is synchronous, so every network call runs in a worker
    thread via ``asyncio.to_thread``.
    """

    def __init__(
        self,
        api_key: str = None,
        index_name: str = None,
        dimension: int = None,
        upsert_batch_size: int = None,
        index=None,
    ):
        """Initialize the Pinecone vector store.

        Args:
            api_key: Pinecone API key (default from config)
            index_name: Index name (default from config)
            dimension: Embedding dimension used when creating the index
            upsert_batch_size: Maximum vectors per upsert request
            index: Pre-built index handle, skips connecting (used by tests)
        """
        self.api_key = api_key or config.PINECONE_API_KEY
        self.index_name = index_name or config.PINECONE_INDEX
        self.dimension = dimension or config.EMBEDDING_DIMENSION
        self.upsert_batch_size = upsert_batch_size or config.UPSERT_BATCH_SIZE
        self._index = index

    def _connect(self):
        """Connect to the index, creating it if it does not exist."""
        client = Pinecone(api_key=self.api_key)
        if self.index_name not in client.list_indexes().names():
            logger.info(
                "pinecone_index_creating",
                index_name=self.index_name,
                dimension=self.dimension,
            )
            client.create_index(
                name=self.index_name,
                dimension=self.dimension,
                metric="cosine",
                spec=ServerlessSpec(
                    cloud=config.PINECONE_CLOUD, region=config.PINECONE_REGION
                ),
            )
        else:
            logger.info("pinecone_index_connecting", index_name=self.index_name)
        return client.Index(self.index_name)

    @property
    def index(self):
        if self._index is None:
            try:
                self._index = self._connect()
            except Exception as e:
                logger.error(
                    "pinecone_connect_failed",
                    index_name=self.index_name,
                    error=str(e),
                )
                raise VectorStoreError(f"Failed to connect to Pinecone: {e}") from e
        return self._index

    @staticmethod
    def _batches(vectors: List[Dict[str, Any]], size: int) -> Iterator[List[Dict[str, Any]]]:
        for i in range(0, len(vectors), size):
            yield vectors[i : i + size]

    def _upsert_sync(self, vectors: List[Dict[str, Any]]) -> int:
        upserted = 0
        for batch in self._batches(vectors, self.upsert_batch_size):
            self.index.upsert(vectors=batch)
            upserted += len(batch)
        return upserted

    async def upsert(self, vectors: List[Dict[str, Any]]) -> int:
        """Upsert vector records, batching large payloads.

        Args:
            vectors: Records shaped ``{"id", "values", "metadata"}``

        Returns:
            Number of records upserted

        Raises:
            VectorStoreError: If Pinecone rejects the upsert
        """
        if not vectors:
            logger.warning("pinecone_upsert_skipped_empty")
            return 0

        try:
            upserted = await asyncio.to_thread(self._upsert_sync, vectors)
        except VectorStoreError:
            raise
        except Exception as e:
            logger.error("pinecone_upsert_failed", count=len(vectors), error=str(e))
            raise VectorStoreError(f"Upsert failed: {e}") from e

        logger.info("pinecone_upsert_completed", index_name=self.index_name, count=upserted)
        return upserted

    @staticmethod
    def _to_match(raw) -> Match:
        if isinstance(raw, dict):
            return Match(
                id=str(raw.get("id", "")),
                score=raw.get("score"),
                metadata=dict(raw.get("metadata") or {}),
            )
        return Match(
            id=str(getattr(raw, "id", "")),
            score=getattr(raw, "score", None),
            metadata=dict(getattr(raw, "metadata", None) or {}),
        )

    async def query(self, vector: List[float], top_k: int = None) -> List[Match]:
        """Return the top_k most similar records, best first.

        Raises:
            VectorStoreError: If the query fails
        """
        top_k = top_k or config.RETRIEVAL_TOP_K

        if not vector:
            logger.warning("pinecone_query_empty_vector")
            return []

        try:
            response = await asyncio.to_thread(
                lambda: self.index.query(vector=vector, top_k=top_k, include_metadata=True)
            )
        except VectorStoreError:
            raise
        except Exception as e:
            logger.error("pinecone_query_failed", top_k=top_k, error=str(e))
            raise VectorStoreError(f"Query failed: {e}") from e

        raw_matches = (
            response.get("matches", []) if isinstance(response, dict) else response.matches
        )
        matches = [self._to_match(m) for m in raw_matches or []]

        logger.info("pinecone_query_completed", top_k=top_k, results_found=len(matches))
        return matches

    async def describe(self) -> Dict[str, Any]:
        """Get statistics about the index.

        Raises:
            VectorStoreError: If the stats request fails
        """
        try:
            stats = await asyncio.to_thread(lambda: self.index.describe_index_stats())
        except VectorStoreError:
            raise
        except Exception as e:
            logger.error("pinecone_describe_failed", error=str(e))
            raise VectorStoreError(f"Describe failed: {e}") from e

        if not isinstance(stats, dict):
            stats = stats.to_dict()
        return {
            "index_name": self.index_name,
            "dimension": stats.get("dimension"),
            "vector_count": stats.get("total_vector_count", 0),
        }
