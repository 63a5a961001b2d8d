"""Service layer: ingestion pipeline and knowledge search."""
