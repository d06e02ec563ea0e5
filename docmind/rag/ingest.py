"""Ingest pipeline for indexing uploaded documents.

Orchestrates:
- PDF text extraction
- Text chunking
- Embedding generation (parallel within a batch)
- Vector store upserts
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Callable, List, Dict, Any, Optional
import structlog

from docmind import config
from docmind.rag.chunker import TextChunk, TextChunker
from docmind.rag.pdf_parser import extract_text

logger = structlog.get_logger()

# Fixed sample knowledge used to smoke-test an empty index
SEED_TEXTS = [
    "TypeScript is a superset of JavaScript.",
    "Next.js is a React framework.",
    "Google Gemini is a multimodal AI model.",
    "RAG stands for Retrieval-Augmented Generation.",
]

ProgressCallback = Callable[[int, int], None]


@dataclass
class IngestResult:
    """Outcome of ingesting one document."""

    filename: str
    count: int


class IngestPipeline:
    """Pipeline for ingesting documents into the vector store."""

    def __init__(
        self,
        embedder,
        vector_store,
        chunker: Optional[TextChunker] = None,
        batch_size: int = None,
    ):
        """Initialize the ingest pipeline.

        Args:
            embedder: Object with an async ``embed_many(texts)`` method
            vector_store: Object with an async ``upsert(vectors)`` method
            chunker: Text chunker (default built from config)
            batch_size: Number of chunks embedded in parallel per upsert
        """
        self.embedder = embedder
        self.vector_store = vector_store
        self.chunker = chunker or TextChunker()
        self.batch_size = batch_size or config.INGEST_BATCH_SIZE

        if self.batch_size <= 0:
            raise ValueError(f"Batch size must be positive, got {self.batch_size}")

    @staticmethod
    def make_vector_id(filename: str, timestamp_ms: int, position: int) -> str:
        """Build a unique record id for a chunk."""
        return f"{filename}-{timestamp_ms}-{position}"

    async def ingest_pdf(
        self,
        data: bytes,
        filename: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestResult:
        """Extract, chunk, embed and store a PDF.

        Raises:
            PDFParseError: If the file is not a readable PDF
            EmbeddingError: If embedding a chunk fails
            VectorStoreError: If an upsert fails
        """
        logger.info("ingest_started", filename=filename, size_bytes=len(data))
        text = await asyncio.to_thread(extract_text, data, filename)
        return await self.ingest_text(text, filename, progress_callback)

    async def ingest_text(
        self,
        text: str,
        source: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestResult:
        """Chunk, embed and store already extracted text."""
        chunks = self.chunker.chunk_document(text, source)
        stats = self.chunker.get_chunk_stats(chunks)

        logger.info("document_chunked", source=source, **stats)

        timestamp_ms = int(time.time() * 1000)
        stored = 0
        total_batches = (len(chunks) + self.batch_size - 1) // self.batch_size

        for batch_number, i in enumerate(range(0, len(chunks), self.batch_size), 1):
            batch = chunks[i : i + self.batch_size]
            vectors = await self._embed_batch(batch, source, timestamp_ms)
            stored += await self.vector_store.upsert(vectors)

            logger.info(
                "ingest_batch_stored",
                source=source,
                batch=batch_number,
                total_batches=total_batches,
                batch_size=len(batch),
            )
            if progress_callback:
                progress_callback(batch_number, total_batches)

        logger.info("ingest_completed", source=source, chunk_count=len(chunks))
        return IngestResult(filename=source, count=len(chunks))

    async def _embed_batch(
        self, batch: List[TextChunk], source: str, timestamp_ms: int
    ) -> List[Dict[str, Any]]:
        embeddings = await self.embedder.embed_many([c.content for c in batch])
        return [
            {
                "id": self.make_vector_id(source, timestamp_ms, chunk.chunk_index),
                "values": embedding,
                "metadata": {"text": chunk.content, "source": source},
            }
            for chunk, embedding in zip(batch, embeddings)
        ]

    async def seed(self, texts: List[str] = None) -> int:
        """Store a small fixed set of texts, one record each.

        Returns:
            Number of records stored
        """
        texts = SEED_TEXTS if texts is None else texts
        embeddings = await self.embedder.embed_many(texts)
        vectors = [
            {"id": f"id-{i}", "values": embedding, "metadata": {"text": text}}
            for i, (text, embedding) in enumerate(zip(texts, embeddings))
        ]
        count = await self.vector_store.upsert(vectors)
        logger.info("seed_completed", count=count)
        return count
