"""Retriever for semantic search over ingested documents.

Handles:
- Query embedding generation
- Vector store similarity search
- Score-threshold filtering
- Context assembly for the LLM prompt
"""
from typing import List, Dict, Any, Optional, Sequence
from dataclasses import dataclass, field
import structlog

from docmind import config

logger = structlog.get_logger()

CONTEXT_SEPARATOR = "\n\n---\n\n"


@dataclass
class Match:
    """A single vector store match with its stored metadata."""

    id: str
    score: Optional[float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Stored chunk text, or an empty string if it is missing."""
        value = (self.metadata or {}).get("text")
        return value if isinstance(value, str) else ""

    @property
    def source(self) -> str:
        """File name the chunk came from, if recorded."""
        value = (self.metadata or {}).get("source")
        return value if isinstance(value, str) else ""


def filter_matches(matches: Sequence[Match], threshold: float) -> List[Match]:
    """Keep matches scoring strictly above the threshold, in the given order.

    Matches without a score or without stored text are dropped.
    """
    return [
        match
        for match in matches
        if match.score is not None
        and match.score > threshold
        and match.text.strip()
    ]


def assemble_context(matches: Sequence[Match], threshold: float) -> str:
    """Join the texts of matches above the threshold into one context string.

    Args:
        matches: Matches in relevance order (best first)
        threshold: Minimum score, exclusive

    Returns:
        Texts joined with CONTEXT_SEPARATOR, or "" if nothing qualifies
    """
    return CONTEXT_SEPARATOR.join(m.text for m in filter_matches(matches, threshold))


@dataclass
class RetrievedContext:
    """Context string and the matches it was built from."""

    context: str
    matches: List[Match]

    @property
    def sources(self) -> List[str]:
        """Distinct source file names, in first-seen order."""
        seen: List[str] = []
        for match in self.matches:
            if match.source and match.source not in seen:
                seen.append(match.source)
        return seen


class Retriever:
    """Semantic retriever for RAG pipeline."""

    def __init__(
        self,
        embedder,
        vector_store,
        top_k: int = None,
        score_threshold: float = None,
    ):
        """Initialize the retriever.

        Args:
            embedder: Object with an async ``embed(text)`` method
            vector_store: Object with an async ``query(vector, top_k)`` method
            top_k: Number of matches to request (default from config)
            score_threshold: Minimum match score, exclusive (default from config)
        """
        self.embedder = embedder
        self.vector_store = vector_store
        self.top_k = top_k or config.RETRIEVAL_TOP_K
        self.score_threshold = (
            config.RAG_SCORE_THRESHOLD if score_threshold is None else score_threshold
        )

        logger.debug(
            "retriever_initialized",
            top_k=self.top_k,
            score_threshold=self.score_threshold,
        )

    async def retrieve(self, query: str, top_k: Optional[int] = None) -> List[Match]:
        """Retrieve matches for a query, best first.

        Args:
            query: User query text
            top_k: Number of matches to request (overrides default)

        Returns:
            List of Match objects as ranked by the vector store
        """
        if not query or not query.strip():
            logger.warning("empty_query_provided")
            return []

        top_k = top_k or self.top_k

        logger.info("retrieval_started", query_length=len(query), top_k=top_k)

        query_embedding = await self.embedder.embed(query)
        matches = await self.vector_store.query(query_embedding, top_k=top_k)

        logger.info(
            "retrieval_completed",
            results_returned=len(matches),
            top_score=matches[0].score if matches else None,
        )

        return matches

    async def retrieve_context(
        self, query: str, top_k: Optional[int] = None
    ) -> RetrievedContext:
        """Retrieve matches and assemble the prompt context.

        Args:
            query: User query text
            top_k: Number of matches to request

        Returns:
            RetrievedContext; its context is "" when no match qualifies
        """
        matches = await self.retrieve(query, top_k=top_k)
        kept = filter_matches(matches, self.score_threshold)
        context = CONTEXT_SEPARATOR.join(m.text for m in kept)

        logger.info(
            "context_assembled",
            matches_found=len(matches),
            matches_kept=len(kept),
            context_length=len(context),
        )

        return RetrievedContext(context=context, matches=kept)
