"""In-process knowledge store: entities, facts, notes and conversation summaries.

All four collections live in memory for the lifetime of the store. Every public
method takes the store lock for its whole duration; records handed out are
copies, so callers never hold references into the collections.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from mneme.memory.errors import InvalidArgument, NotFound
from mneme.memory.models import (
    ConversationSummary,
    Entity,
    Fact,
    Note,
    PropertyValue,
    SearchResult,
    StoreStats,
    check_properties,
    is_property_value,
    new_id,
    utcnow,
)

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 10

EXACT_MATCH_BONUS = 2


def calculate_relevance(words: set[str], texts: list[str]) -> int:
    """Score searchable fields against lower-cased query words.

    +1 per (field, word) substring hit, +EXACT_MATCH_BONUS more when the whole
    field equals the word.
    """
    score = 0
    for text in texts:
        if not text:
            continue
        text_lower = text.lower()
        for word in words:
            if word in text_lower:
                score += 1
                if text_lower == word:
                    score += EXACT_MATCH_BONUS
    return score


def _check_confidence(value: float, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{name} must be a number")
    if not 0.0 <= value <= 1.0:
        raise InvalidArgument(f"{name} must be between 0 and 1, got {value}")
    return value


class KnowledgeStore:
    """Typed-record database with filtered queries and keyword relevance search."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        # dicts preserve insertion order, which is the documented result order
        self._entities: dict[str, Entity] = {}
        self._facts: list[Fact] = []
        self._notes: list[Note] = []
        self._conversations: dict[str, ConversationSummary] = {}

    # ── 1. Entities ───────────────────────────────────────────

    def create_entity(
        self,
        name: str,
        type: str,
        properties: dict[str, PropertyValue] | None = None,
    ) -> Entity:
        """Store a new entity with a fresh id; created_at == updated_at."""
        props = check_properties(properties)
        now = utcnow()
        entity = Entity(
            id=new_id("entity"),
            name=name,
            type=type,
            properties=props,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._entities[entity.id] = entity
            logger.info("Created entity %s (%s, %s)", entity.id, name, type)
            return copy.deepcopy(entity)

    def get_entity(self, entity_id: str) -> Entity | None:
        with self._lock:
            entity = self._entities.get(entity_id)
            return copy.deepcopy(entity) if entity else None

    def find_entities(
        self,
        type: str | None = None,
        name: str | None = None,
        property_key: str | None = None,
        property_value: PropertyValue | None = None,
    ) -> list[Entity]:
        """Conjunctive filter over entities, in creation order.

        - type: exact match
        - name: case-insensitive substring
        - property_key/property_value: entity has that key with an equal value
        """
        if (property_key is None) != (property_value is None):
            raise InvalidArgument("property filter needs both a key and a value")
        if property_value is not None and not is_property_value(property_value):
            raise InvalidArgument("property filter value is not a storable value")

        name_lower = name.lower() if name else None
        with self._lock:
            results = []
            for entity in self._entities.values():
                if type and entity.type != type:
                    continue
                if name_lower and name_lower not in entity.name.lower():
                    continue
                if property_key is not None and not _same_value(
                    entity.properties.get(property_key, _MISSING), property_value
                ):
                    continue
                results.append(copy.deepcopy(entity))
        logger.debug("find_entities matched %d", len(results))
        return results

    def update_entity(self, entity_id: str, properties: dict[str, PropertyValue]) -> Entity:
        """Merge properties into an entity (per-key overwrite) and bump updated_at."""
        props = check_properties(properties)
        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                raise NotFound("entity", entity_id)
            entity.properties.update(props)
            entity.updated_at = max(utcnow(), entity.updated_at)
            logger.info("Updated entity %s (%d properties)", entity_id, len(props))
            return copy.deepcopy(entity)

    def delete_entity(self, entity_id: str) -> None:
        with self._lock:
            if entity_id not in self._entities:
                raise NotFound("entity", entity_id)
            del self._entities[entity_id]
        logger.info("Deleted entity %s", entity_id)

    # ── 2. Facts ──────────────────────────────────────────────

    def add_fact(
        self,
        subject: str,
        predicate: str,
        object: str,
        confidence: float = 1.0,
        source: str | None = None,
    ) -> Fact:
        fact = Fact(
            id=new_id("fact"),
            subject=subject,
            predicate=predicate,
            object=object,
            confidence=_check_confidence(confidence, "confidence"),
            source=source,
        )
        with self._lock:
            self._facts.append(fact)
        logger.info("Added fact %s: %s %s %s", fact.id, subject, predicate, object)
        return copy.deepcopy(fact)

    def query_facts(
        self,
        subject: str | None = None,
        predicate: str | None = None,
        object: str | None = None,
        min_confidence: float | None = None,
    ) -> list[Fact]:
        """Conjunctive filter over facts, in insertion order.

        subject and object match as case-insensitive substrings, predicate
        exactly, min_confidence keeps facts with confidence >= threshold.
        """
        if min_confidence is not None:
            _check_confidence(min_confidence, "min_confidence")
        subject_lower = subject.lower() if subject else None
        object_lower = object.lower() if object else None

        with self._lock:
            results = []
            for fact in self._facts:
                if subject_lower and subject_lower not in fact.subject.lower():
                    continue
                if predicate and fact.predicate != predicate:
                    continue
                if object_lower and object_lower not in fact.object.lower():
                    continue
                if min_confidence is not None and fact.confidence < min_confidence:
                    continue
                results.append(copy.deepcopy(fact))
        logger.debug("query_facts matched %d", len(results))
        return results

    # ── 3. Notes ──────────────────────────────────────────────

    def add_note(
        self,
        content: str,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Note:
        note = Note(
            id=new_id("note"),
            content=content,
            tags=list(tags or []),
            metadata=copy.deepcopy(metadata or {}),
        )
        with self._lock:
            self._notes.append(note)
        logger.info("Added note %s (%d tags)", note.id, len(note.tags))
        return copy.deepcopy(note)

    def search_notes(self, query: str | None = None, tags: list[str] | None = None) -> list[Note]:
        """Notes whose content contains query AND that carry any of tags."""
        query_lower = query.lower() if query else None
        wanted = set(tags or [])
        with self._lock:
            results = []
            for note in self._notes:
                if query_lower and query_lower not in note.content.lower():
                    continue
                if wanted and not wanted.intersection(note.tags):
                    continue
                results.append(copy.deepcopy(note))
        return results

    # ── 4. Conversations ──────────────────────────────────────

    def save_conversation_summary(
        self,
        conversation_id: str,
        summary: str,
        key_points: list[str] | None = None,
        entities: list[str] | None = None,
    ) -> ConversationSummary:
        """Upsert a summary by conversation id."""
        conversation = ConversationSummary(
            id=conversation_id,
            summary=summary,
            key_points=list(key_points or []),
            entities=list(entities or []),
        )
        with self._lock:
            replaced = conversation_id in self._conversations
            self._conversations[conversation_id] = conversation
        logger.info(
            "%s conversation summary %s", "Replaced" if replaced else "Saved", conversation_id
        )
        return copy.deepcopy(conversation)

    def get_conversation_summary(self, conversation_id: str) -> ConversationSummary | None:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            return copy.deepcopy(conversation) if conversation else None

    # ── 5. Relevance search ───────────────────────────────────

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[SearchResult]:
        """Rank entities, facts and notes by keyword relevance.

        Records scoring 0 are dropped. Equal scores keep scan order: entities
        in creation order, then facts, then notes.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidArgument(f"limit must be a positive integer, got {limit!r}")
        words = {w for w in query.lower().split() if w}
        if not words:
            return []

        results: list[SearchResult] = []
        with self._lock:
            for kind, records in (
                ("entity", self._entities.values()),
                ("fact", self._facts),
                ("note", self._notes),
            ):
                for record in records:
                    score = calculate_relevance(words, record.searchable_text())
                    if score > 0:
                        results.append(SearchResult(kind, copy.deepcopy(record), score))

        # sort() is stable, which gives the scan-order tie-break
        results.sort(key=lambda r: r.score, reverse=True)
        logger.debug("search %r: %d hits", query, len(results))
        return results[:limit]

    # ── 6. Bulk operations ────────────────────────────────────

    def get_stats(self) -> StoreStats:
        with self._lock:
            return StoreStats(
                entity_count=len(self._entities),
                fact_count=len(self._facts),
                note_count=len(self._notes),
                conversation_count=len(self._conversations),
            )

    def export(self) -> dict[str, list[dict[str, Any]]]:
        """Snapshot every collection as plain dicts, in iteration order."""
        with self._lock:
            return {
                "entities": [e.to_dict() for e in self._entities.values()],
                "facts": [f.to_dict() for f in self._facts],
                "notes": [n.to_dict() for n in self._notes],
                "conversations": [c.to_dict() for c in self._conversations.values()],
            }

    def import_data(self, data: dict[str, Any]) -> StoreStats:
        """Load a snapshot produced by export().

        Entities and conversations are upserted by id; facts and notes are
        appended as-is. Missing keys are skipped. The whole snapshot is parsed
        before anything is written, so a malformed record changes nothing.
        """
        if not isinstance(data, dict):
            raise InvalidArgument("import data must be a mapping")
        entities = [Entity.from_dict(e) for e in _records(data, "entities")]
        facts = [Fact.from_dict(f) for f in _records(data, "facts")]
        notes = [Note.from_dict(n) for n in _records(data, "notes")]
        conversations = [
            ConversationSummary.from_dict(c) for c in _records(data, "conversations")
        ]

        with self._lock:
            for entity in entities:
                self._entities[entity.id] = entity
            self._facts.extend(facts)
            self._notes.extend(notes)
            for conversation in conversations:
                self._conversations[conversation.id] = conversation
            stats = self.get_stats()
        logger.info(
            "Imported %d entities, %d facts, %d notes, %d conversations",
            len(entities),
            len(facts),
            len(notes),
            len(conversations),
        )
        return stats

    def clear(self) -> None:
        with self._lock:
            self._entities = {}
            self._facts = []
            self._notes = []
            self._conversations = {}
        logger.info("Cleared knowledge store")


_MISSING = object()


def _same_value(actual: Any, expected: PropertyValue) -> bool:
    """Strict equality: True does not equal 1, "1" does not equal 1."""
    if actual is _MISSING:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    return actual == expected


def _records(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidArgument(f"{key!r} must be a list")
    return value
