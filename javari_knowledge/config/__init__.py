"""Configuration module: exports Settings, IngestionConfig, and a module-level singleton."""

from javari_knowledge.config.ingestion import IngestionConfig
from javari_knowledge.config.settings import Settings

settings = Settings()

__all__ = ["IngestionConfig", "Settings", "settings"]
