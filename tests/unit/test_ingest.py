"""Tests for PDF extraction and the ingest pipeline."""
import pytest

from docmind.errors import EmbeddingError, PDFParseError
from docmind.rag import pdf_parser
from docmind.rag.chunker import TextChunker
from docmind.rag.ingest import SEED_TEXTS, IngestPipeline

from tests.conftest import FakeEmbedder, FakeVectorStore


def _long_text(words: int = 200) -> str:
    return " ".join(f"word{i}" for i in range(words))


class _FakePage:
    def __init__(self, text):
        self.text = text

    def extract_text(self):
        return self.text


class _FakePDF:
    def __init__(self, texts):
        self.pages = [_FakePage(t) for t in texts]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class TestPdfParser:

    def test_is_pdf_checks_signature(self):
        assert pdf_parser.is_pdf(b"%PDF-1.7\n...")
        assert not pdf_parser.is_pdf(b"PK\x03\x04 zip file")

    def test_non_pdf_rejected(self):
        with pytest.raises(PDFParseError):
            pdf_parser.extract_text(b"plain text", "notes.txt")

    def test_pages_joined(self, monkeypatch):
        monkeypatch.setattr(
            pdf_parser.pdfplumber,
            "open",
            lambda stream: _FakePDF(["Page one", None, "  ", "Page ﬁve"]),
        )

        text = pdf_parser.extract_text(b"%PDF-1.4 fake", "doc.pdf")

        # NFKC turns the "fi" ligature into two letters
        assert text == "Page one\nPage five"

    def test_unreadable_pdf_raises(self, monkeypatch):
        def broken(stream):
            raise ValueError("No /Root object")

        monkeypatch.setattr(pdf_parser.pdfplumber, "open", broken)

        with pytest.raises(PDFParseError):
            pdf_parser.extract_text(b"%PDF-1.4 broken", "doc.pdf")


class TestIngestPipeline:

    @pytest.fixture
    def store(self):
        return FakeVectorStore()

    @pytest.fixture
    def pipeline(self, store):
        return IngestPipeline(
            embedder=FakeEmbedder(),
            vector_store=store,
            chunker=TextChunker(chunk_size=100, chunk_overlap=20),
            batch_size=4,
        )

    def test_batch_size_must_be_positive(self, store):
        with pytest.raises(ValueError):
            IngestPipeline(FakeEmbedder(), store, batch_size=-1)

    def test_vector_id_format(self):
        assert IngestPipeline.make_vector_id("a.pdf", 1700000000000, 3) == "a.pdf-1700000000000-3"

    async def test_ingest_text_stores_every_chunk(self, pipeline, store):
        text = _long_text()
        expected = TextChunker(chunk_size=100, chunk_overlap=20).split(text)

        result = await pipeline.ingest_text(text, "manual.pdf")

        assert result.filename == "manual.pdf"
        assert result.count == len(expected)
        assert [r["metadata"]["text"] for r in store.records] == expected
        assert {r["metadata"]["source"] for r in store.records} == {"manual.pdf"}

    async def test_upserts_per_batch(self, pipeline, store):
        result = await pipeline.ingest_text(_long_text(), "manual.pdf")

        assert all(len(batch) <= 4 for batch in store.upserts)
        assert len(store.upserts) == (result.count + 3) // 4

    async def test_ids_are_unique_and_sequence_based(self, pipeline, store):
        await pipeline.ingest_text(_long_text(), "manual.pdf")

        ids = [r["id"] for r in store.records]
        assert len(set(ids)) == len(ids)
        assert all(i.startswith("manual.pdf-") for i in ids)
        assert [int(i.rsplit("-", 1)[1]) for i in ids] == list(range(len(ids)))

    async def test_embeddings_attached(self, pipeline, store):
        await pipeline.ingest_text("short document", "a.pdf")

        assert store.records[0]["values"] == [float(len("short document")), 1.0]

    async def test_progress_callback(self, pipeline):
        calls = []

        result = await pipeline.ingest_text(
            _long_text(), "manual.pdf", progress_callback=lambda c, t: calls.append((c, t))
        )

        total = (result.count + 3) // 4
        assert calls == [(i, total) for i in range(1, total + 1)]

    async def test_empty_text_stores_nothing(self, pipeline, store):
        result = await pipeline.ingest_text("   ", "blank.pdf")

        assert result.count == 0
        assert store.upserts == []

    async def test_ingest_pdf_extracts_then_chunks(self, pipeline, store, monkeypatch):
        monkeypatch.setattr(
            "docmind.rag.ingest.extract_text", lambda data, filename: "Extracted text"
        )

        result = await pipeline.ingest_pdf(b"%PDF-1.4", "doc.pdf")

        assert result.count == 1
        assert store.records[0]["metadata"] == {"text": "Extracted text", "source": "doc.pdf"}

    async def test_ingest_pdf_rejects_non_pdf(self, pipeline, store):
        with pytest.raises(PDFParseError):
            await pipeline.ingest_pdf(b"not a pdf", "doc.pdf")
        assert store.upserts == []

    async def test_embedding_failure_propagates(self, store):
        pipeline = IngestPipeline(
            embedder=FakeEmbedder(error=EmbeddingError("down")),
            vector_store=store,
            chunker=TextChunker(chunk_size=100, chunk_overlap=20),
        )

        with pytest.raises(EmbeddingError):
            await pipeline.ingest_text("some text", "doc.pdf")
        assert store.upserts == []

    async def test_seed(self, pipeline, store):
        count = await pipeline.seed()

        assert count == len(SEED_TEXTS)
        assert [r["id"] for r in store.records] == [f"id-{i}" for i in range(len(SEED_TEXTS))]
        assert [r["metadata"]["text"] for r in store.records] == SEED_TEXTS
