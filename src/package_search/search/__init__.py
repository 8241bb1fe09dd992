"""
Package search indexing and ranking.

This package provides an in-memory search stack:
- analyzers: Tokenizer and filters (lowercase, plural folding)
- document_store: Insertion-ordered package documents
- indexer: Immutable snapshot builder
- query: Request parsing and clamping
- ranker: Term-overlap and field-order ranking
- lifecycle: Snapshot publication and readiness
"""
