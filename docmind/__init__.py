"""DocMind: chat with your PDFs using retrieval-augmented generation."""

__version__ = "0.1.0"
