"""Javari knowledge ingestion: chunk documents, embed them, store the records."""

__version__ = "0.1.0"
