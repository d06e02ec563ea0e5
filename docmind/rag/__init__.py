"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- PDF text extraction
- Document chunking with overlap
- Embedding generation
- Pinecone vector storage
- Retrieval and context assembly
"""
