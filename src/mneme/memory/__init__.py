"""Knowledge store — typed records with filtered queries and keyword search.

Collections:
    entities        name + type + property bag, updatable and deletable
    facts           subject/predicate/object triples with confidence (append-only)
    notes           free-form text with tags and metadata (append-only)
    conversations   summaries upserted by conversation id

Everything is held in memory; export()/import_data() move snapshots in and out.
"""

from mneme.memory.errors import InvalidArgument, KnowledgeStoreError, NotFound
from mneme.memory.store import KnowledgeStore

__all__ = ["InvalidArgument", "KnowledgeStore", "KnowledgeStoreError", "NotFound"]
