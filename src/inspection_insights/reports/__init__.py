"""Report ingestion, indexing, filtering and analytics."""
