"""Shared fakes for the provider clients and service handles."""
from typing import Dict, List, Optional

import pytest

from docmind.chat import ChatService, load_prompts
from docmind.rag.chunker import TextChunker
from docmind.rag.ingest import IngestPipeline
from docmind.rag.retriever import Match, Retriever
from docmind.services import Services


class FakeEmbedder:
    """Deterministic embedder: the vector encodes the text length."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        if self.error:
            raise self.error
        self.calls.append(text)
        return [float(len(text)), 1.0]

    async def embed_many(self, texts: List[str]) -> List[List[float]]:
        return [await self.embed(text) for text in texts]


class FakeVectorStore:
    """In-memory store returning preset matches."""

    def __init__(self, matches: Optional[List[Match]] = None, error: Optional[Exception] = None):
        self.matches = matches or []
        self.error = error
        self.upserts: List[List[Dict]] = []
        self.queries: List[Dict] = []

    @property
    def records(self) -> List[Dict]:
        return [record for batch in self.upserts for record in batch]

    async def upsert(self, vectors: List[Dict]) -> int:
        self.upserts.append(list(vectors))
        return len(vectors)

    async def query(self, vector: List[float], top_k: int = None) -> List[Match]:
        if self.error:
            raise self.error
        self.queries.append({"vector": vector, "top_k": top_k})
        return list(self.matches)

    async def describe(self) -> Dict:
        if self.error:
            raise self.error
        return {"index_name": "test", "dimension": 2, "vector_count": len(self.records)}


class FakeLLM:
    """Streams preset tokens and records what it was asked."""

    model = "fake-model"

    def __init__(self, tokens: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.tokens = ["Hello", " world"] if tokens is None else tokens
        self.error = error
        self.calls: List[Dict] = []

    async def chat_stream(self, messages, system=None, temperature=None):
        self.calls.append({"messages": list(messages), "system": system})
        if self.error:
            raise self.error
        for token in self.tokens:
            yield token

    async def list_models(self) -> List[str]:
        if self.error:
            raise self.error
        return [self.model]


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_store():
    return FakeVectorStore(
        matches=[
            Match(id="a-1", score=0.92, metadata={"text": "Alpha chunk", "source": "a.pdf"}),
            Match(id="b-1", score=0.75, metadata={"text": "Beta chunk", "source": "b.pdf"}),
            Match(id="c-1", score=0.30, metadata={"text": "Gamma chunk", "source": "c.pdf"}),
        ]
    )


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def prompts():
    return load_prompts()


@pytest.fixture
def services(fake_embedder, fake_store, fake_llm, prompts):
    """Real pipeline objects wired to fake providers."""
    retriever = Retriever(
        embedder=fake_embedder, vector_store=fake_store, top_k=5, score_threshold=0.6
    )
    ingest = IngestPipeline(
        embedder=fake_embedder,
        vector_store=fake_store,
        chunker=TextChunker(chunk_size=100, chunk_overlap=20),
        batch_size=3,
    )
    chat = ChatService(
        llm=fake_llm, retriever=retriever, prompts=prompts, prompt_mode="fallback"
    )
    return Services(
        llm=fake_llm,
        embedder=fake_embedder,
        vector_store=fake_store,
        retriever=retriever,
        ingest=ingest,
        chat=chat,
    )
