"""Explicitly constructed service handles shared by the request handlers."""
from dataclasses import dataclass
import structlog

from docmind.chat import ChatService
from docmind.llm_client import GroqClient
from docmind.rag.chunker import TextChunker
from docmind.rag.embeddings import HuggingFaceEmbedder
from docmind.rag.ingest import IngestPipeline
from docmind.rag.retriever import Retriever
from docmind.rag.store_pinecone import PineconeVectorStore

logger = structlog.get_logger()


@dataclass
class Services:
    """Everything a request handler needs to talk to the outside world."""

    llm: GroqClient
    embedder: HuggingFaceEmbedder
    vector_store: PineconeVectorStore
    retriever: Retriever
    ingest: IngestPipeline
    chat: ChatService


def build_services() -> Services:
    """Build the production services from configuration.

    No network calls happen here; the Pinecone index is connected on first use.
    """
    llm = GroqClient()
    embedder = HuggingFaceEmbedder()
    vector_store = PineconeVectorStore()
    retriever = Retriever(embedder=embedder, vector_store=vector_store)
    ingest = IngestPipeline(
        embedder=embedder,
        vector_store=vector_store,
        chunker=TextChunker(),
    )
    chat = ChatService(llm=llm, retriever=retriever)

    logger.info(
        "services_built",
        chat_model=llm.model,
        embedding_model=embedder.model,
        index_name=vector_store.index_name,
    )
    return Services(
        llm=llm,
        embedder=embedder,
        vector_store=vector_store,
        retriever=retriever,
        ingest=ingest,
        chat=chat,
    )
