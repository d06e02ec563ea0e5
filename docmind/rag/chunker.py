"""Text chunking with overlap for RAG pipeline.

Implements character-based chunking on whitespace-normalised text. Windows
are cut back to the last space so that words are not split, and each
window starts ``chunk_overlap`` characters before the end of the previous
one.
"""
import re
from typing import List
from dataclasses import dataclass
import structlog

from docmind import config

logger = structlog.get_logger()

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class TextChunk:
    """A chunk of document text with its position in the cleaned text."""

    content: str
    source: str
    chunk_index: int
    char_start: int
    char_end: int


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs (newlines included) to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


class TextChunker:
    """Character-based text chunker with overlap support."""

    def __init__(
        self,
        chunk_size: int = None,
        chunk_overlap: int = None,
    ):
        """Initialize the text chunker.

        Args:
            chunk_size: Size of each chunk in characters (default from config)
            chunk_overlap: Overlap between chunks in characters (default from config)

        Raises:
            ValueError: If the size is not positive, the overlap is negative
                or the overlap is not smaller than the chunk size
        """
        self.chunk_size = config.CHUNK_SIZE if chunk_size is None else chunk_size
        self.chunk_overlap = (
            config.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap
        )

        # Validate parameters
        if self.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0:
            raise ValueError(
                f"Overlap must not be negative, got {self.chunk_overlap}"
            )
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"Overlap ({self.chunk_overlap}) must be less than "
                f"chunk size ({self.chunk_size})"
            )

        logger.debug(
            "chunker_initialized",
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

    def chunk_document(self, text: str, source: str) -> List[TextChunk]:
        """Split a document into overlapping chunks.

        Args:
            text: Raw document text (whitespace is normalised first)
            source: File name the text was extracted from

        Returns:
            List of TextChunk objects in order of appearance
        """
        clean_text = normalize_whitespace(text)
        if not clean_text:
            return []

        text_length = len(clean_text)
        chunks: List[TextChunk] = []
        start = 0

        while start < text_length:
            end = start + self.chunk_size
            content = clean_text[start:end]

            if end < text_length:
                # Cut back to the last space so words are not split
                last_space = content.rfind(" ")
                if last_space > 0:
                    content = content[:last_space]
                    next_start = start + len(content) - self.chunk_overlap
                else:
                    next_start = start + self.chunk_size - self.chunk_overlap
            else:
                next_start = text_length

            chunks.append(
                TextChunk(
                    content=content,
                    source=source,
                    chunk_index=len(chunks),
                    char_start=start,
                    char_end=start + len(content),
                )
            )

            # A space close to the window start can leave no room for overlap
            if next_start <= start:
                next_start = start + len(content)
            start = next_start

        logger.info(
            "text_chunked",
            source=source,
            text_length=text_length,
            chunk_count=len(chunks),
            avg_chunk_size=sum(len(c.content) for c in chunks) // len(chunks),
        )

        return chunks

    def split(self, text: str) -> List[str]:
        """Split text into overlapping chunk strings."""
        return [chunk.content for chunk in self.chunk_document(text, source="")]

    def get_chunk_stats(self, chunks: List[TextChunk]) -> dict:
        """Get statistics about a set of chunks.

        Args:
            chunks: List of TextChunk objects

        Returns:
            Dictionary with chunk statistics
        """
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
                "overlap": self.chunk_overlap,
            }

        chunk_sizes = [len(c.content) for c in chunks]

        return {
            "chunk_count": len(chunks),
            "total_chars": sum(chunk_sizes),
            "avg_chunk_size": sum(chunk_sizes) // len(chunks),
            "min_chunk_size": min(chunk_sizes),
            "max_chunk_size": max(chunk_sizes),
            "overlap": self.chunk_overlap,
        }


def chunk_text(
    text: str, chunk_size: int = 1000, chunk_overlap: int = 200
) -> List[str]:
    """Chunk text into overlapping strings (convenience function).

    Args:
        text: Text to chunk
        chunk_size: Target chunk size in characters
        chunk_overlap: Overlap between consecutive chunks in characters

    Returns:
        List of chunk strings, left to right
    """
    return TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap).split(text)
