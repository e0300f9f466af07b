"""Record types held by the knowledge store.

Attributes are snake_case; ``to_dict()`` / ``from_dict()`` use the camelCase
wire shape with ISO-8601 timestamps.
"""

from __future__ import annotations

import copy
import itertools
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union
from uuid import uuid4

from mneme.memory.errors import InvalidArgument

PropertyValue = Union[str, int, float, bool, list[str]]

_SEQUENCE = itertools.count(1)


def new_id(prefix: str) -> str:
    """Generate ``{prefix}_{millis}_{sequence}{random}``."""
    millis = int(time.time() * 1000)
    return f"{prefix}_{millis}_{next(_SEQUENCE):x}{uuid4().hex[:8]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_property_value(value: Any) -> bool:
    if isinstance(value, (str, int, float, bool)):
        return True
    if isinstance(value, list):
        return all(isinstance(v, str) for v in value)
    return False


def check_properties(properties: Any) -> dict[str, PropertyValue]:
    """Validate a property mapping and return a copy of it."""
    if properties is None:
        return {}
    if not isinstance(properties, dict):
        raise InvalidArgument("properties must be a mapping")
    checked: dict[str, PropertyValue] = {}
    for key, value in properties.items():
        if not isinstance(key, str):
            raise InvalidArgument(f"property key {key!r} is not a string")
        if not is_property_value(value):
            raise InvalidArgument(
                f"property {key!r} must be a string, number, boolean or list of strings"
            )
        checked[key] = list(value) if isinstance(value, list) else value
    return checked


def stringify(value: PropertyValue) -> str:
    """Render a property value as searchable text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(value)
    return str(value)


# ── Parsing helpers ───────────────────────────────────────────


def _field(data: dict, key: str, kind: type, *, optional: bool = False):
    if data.get(key) is None:
        if optional:
            return None
        raise InvalidArgument(f"missing field {key!r}")
    value = data[key]
    if not isinstance(value, kind):
        raise InvalidArgument(f"field {key!r} has the wrong type")
    return value


def _timestamp(data: dict, key: str) -> datetime:
    raw = _field(data, key, str)
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as e:
        raise InvalidArgument(f"field {key!r} is not an ISO-8601 timestamp") from e
    # naive timestamps are taken as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _strings(data: dict, key: str) -> list[str]:
    value = _field(data, key, list, optional=True) or []
    if not all(isinstance(v, str) for v in value):
        raise InvalidArgument(f"field {key!r} must be a list of strings")
    return list(value)


def _require_mapping(data: Any, kind: str) -> dict:
    if not isinstance(data, dict):
        raise InvalidArgument(f"{kind} record must be a mapping")
    return data


# ── Records ───────────────────────────────────────────────────


@dataclass
class Entity:
    """A named, typed record with an open property bag."""

    id: str
    name: str
    type: str
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def searchable_text(self) -> list[str]:
        return [self.name, self.type, *(stringify(v) for v in self.properties.values())]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "properties": {
                k: list(v) if isinstance(v, list) else v for k, v in self.properties.items()
            },
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Entity:
        data = _require_mapping(data, "entity")
        return cls(
            id=_field(data, "id", str),
            name=_field(data, "name", str),
            type=_field(data, "type", str),
            properties=check_properties(data.get("properties")),
            created_at=_timestamp(data, "createdAt"),
            updated_at=_timestamp(data, "updatedAt"),
        )


@dataclass
class Fact:
    """An append-only subject/predicate/object triple."""

    id: str
    subject: str
    predicate: str
    object: str
    confidence: float = 1.0
    source: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def searchable_text(self) -> list[str]:
        return [self.subject, self.predicate, self.object]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "predicate": self.predicate,
            "object": self.object,
            "confidence": self.confidence,
            "source": self.source,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Fact:
        data = _require_mapping(data, "fact")
        confidence = data.get("confidence", 1.0)
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise InvalidArgument("field 'confidence' must be a number")
        if not 0.0 <= confidence <= 1.0:
            raise InvalidArgument(f"field 'confidence' must be between 0 and 1, got {confidence}")
        return cls(
            id=_field(data, "id", str),
            subject=_field(data, "subject", str),
            predicate=_field(data, "predicate", str),
            object=_field(data, "object", str),
            confidence=confidence,
            source=_field(data, "source", str, optional=True),
            created_at=_timestamp(data, "createdAt"),
        )


@dataclass
class Note:
    """An append-only free-form text record with tags."""

    id: str
    content: str
    tags: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)

    def searchable_text(self) -> list[str]:
        return [self.content, *self.tags]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "tags": list(self.tags),
            "metadata": copy.deepcopy(self.metadata),
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Note:
        data = _require_mapping(data, "note")
        return cls(
            id=_field(data, "id", str),
            content=_field(data, "content", str),
            tags=_strings(data, "tags"),
            metadata=copy.deepcopy(_field(data, "metadata", dict, optional=True) or {}),
            created_at=_timestamp(data, "createdAt"),
        )


@dataclass
class ConversationSummary:
    """Summary of a prior interaction, keyed by the caller's conversation id."""

    id: str
    summary: str
    key_points: list[str] = field(default_factory=list)
    entities: list[str] = field(default_factory=list)
    saved_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "summary": self.summary,
            "keyPoints": list(self.key_points),
            "entities": list(self.entities),
            "savedAt": self.saved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> ConversationSummary:
        data = _require_mapping(data, "conversation")
        return cls(
            id=_field(data, "id", str),
            summary=_field(data, "summary", str),
            key_points=_strings(data, "keyPoints"),
            entities=_strings(data, "entities"),
            saved_at=_timestamp(data, "savedAt"),
        )


Record = Union[Entity, Fact, Note]


@dataclass
class SearchResult:
    kind: str  # "entity" | "fact" | "note"
    record: Record
    score: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "item": self.record.to_dict(), "score": self.score}


@dataclass
class StoreStats:
    entity_count: int = 0
    fact_count: int = 0
    note_count: int = 0
    conversation_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "entityCount": self.entity_count,
            "factCount": self.fact_count,
            "noteCount": self.note_count,
            "conversationCount": self.conversation_count,
        }
