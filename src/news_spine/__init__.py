"""News ingestion, normalization, entity resolution and persistence."""

__version__ = "0.1.0"
