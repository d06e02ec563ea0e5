"""Exception hierarchy for provider and ingestion failures."""


class DocMindError(Exception):
    """Base class for application errors."""


class LLMError(DocMindError):
    """The chat model provider returned an error."""


class RateLimitError(LLMError):
    """The chat model provider rejected the request with HTTP 429."""


class EmbeddingError(DocMindError):
    """The embedding provider failed or returned an unusable vector."""


class VectorStoreError(DocMindError):
    """A vector store operation failed."""


class PDFParseError(DocMindError):
    """The uploaded file could not be read as a PDF."""
