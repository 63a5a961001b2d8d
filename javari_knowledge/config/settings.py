"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources, in priority order:
#
#   1. **Environment variables**, e.g. SUPABASE_URL=https://xyz.supabase.co
#   2. **.env file**: key=value lines in the project root .env file
#
# Field ``supabase_service_role_key`` maps to env var
# ``SUPABASE_SERVICE_ROLE_KEY`` (case-insensitive match).  Defaults apply
# when neither source sets a value.
#
# The ingestion pipeline never reads Settings directly.  Callers turn a
# Settings instance into an explicit IngestionConfig
# (``IngestionConfig.from_settings``) and pass that in.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Javari knowledge service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding API ===
    # Empty string = "not configured"; the embedding provider reports
    # itself unavailable and the service factory refuses to start.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    embedding_model: str = "text-embedding-ada-002"

    # === Managed store (Supabase / PostgREST) ===
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    knowledge_table: str = "javari_knowledge_chunks"
    search_function: str = "search_knowledge"

    # === Chunking ===
    chunk_size: int = 1000  # tokens
    chunk_overlap: int = 200  # tokens
    chars_per_token: int = 4

    # === Pipeline behaviour ===
    max_concurrency: int = 4
    call_timeout: float = 30.0  # seconds, per embedding / store call
    retry_max_attempts: int = 1  # 1 = no retry
    retry_base_delay: float = 1.0
    retry_multiplier: float = 2.0
    retry_max_delay: float = 30.0
    skip_duplicate_documents: bool = False
    min_document_chars: int = 1

    # === Search defaults ===
    search_match_threshold: float = 0.7
    search_match_count: int = 10

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_configured_backends(self) -> list[str]:
        """Return the names of external backends that have credentials set."""
        backends: list[str] = []
        if self.openai_api_key:
            backends.append("openai")
        if self.supabase_url and self.supabase_service_role_key:
            backends.append("supabase")
        return backends
