"""Knowledge store implementations.

    1. SupabaseKnowledgeStore -- production store, PostgREST over httpx.
    2. InMemoryKnowledgeStore -- process-local fake for tests and dry runs.
"""

from javari_knowledge.providers.store.memory_store import InMemoryKnowledgeStore
from javari_knowledge.providers.store.supabase_store import SupabaseKnowledgeStore

__all__ = ["InMemoryKnowledgeStore", "SupabaseKnowledgeStore"]
