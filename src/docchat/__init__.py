"""
docchat
=======
Chat with a folder of PDFs through a hosted vector store.

Modules:
  1. config     — settings from defaults, .env and the environment
  2. ingest     — upload PDFs, create the vector store, wait for indexing
  3. retriever  — semantic search + relevance threshold
  4. generator  — system prompt template + streamed chat answers
  5. ask        — the command-line chat loop

Usage:
  uv run docchat                      # upload documents/*.pdf and chat
  uv run docchat --store vs_abc123    # reuse an existing store
"""
