"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- Dataset loading and ingestion checkpoints
- Transcript chunking with overlap
- Embedding generation with retry
- Pinecone vector storage
- Semantic retrieval and grounded answering
"""
