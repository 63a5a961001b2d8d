"""Public interface definitions for the external services.

The embedding API and the managed knowledge store are accessed only
through the abstract base classes defined in this package.
"""

from javari_knowledge.interfaces.embedding_provider import IEmbeddingProvider
from javari_knowledge.interfaces.knowledge_store import IKnowledgeStore

__all__ = ["IEmbeddingProvider", "IKnowledgeStore"]
