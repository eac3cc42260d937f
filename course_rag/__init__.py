"""Course knowledge base — document chunking, embedding and retrieval.

Provides:
- Sentence-aligned overlapping chunker (chunker.py)
- Batched embeddings client for the AI gateway (embeddings.py)
- Per-format text extraction (extraction.py)
- Chunk/course store with in-memory and PostgreSQL + pgvector backends
  (store.py, pg_store.py)
- File indexer: fetch → extract → chunk → embed → replace rows (indexer.py)
- Retriever merging intro chunks with similarity matches (retriever.py)
- Course visibility / ownership checks (access.py, auth.py)
"""
