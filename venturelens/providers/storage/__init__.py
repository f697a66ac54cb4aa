"""Knowledge store implementations."""

from venturelens.providers.storage.sqlite_knowledge_store import SQLiteKnowledgeStore

__all__ = ["SQLiteKnowledgeStore"]
