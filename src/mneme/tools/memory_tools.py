"""Named operations over the knowledge store.

Each tool takes the raw parameter mapping of a request (camelCase keys, as
sent on the wire), checks its shape, calls the store and returns a
JSON-ready value. The HTTP server dispatches ``{"method", "params"}`` bodies
through this table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from mneme.memory.errors import InvalidArgument

if TYPE_CHECKING:
    from mneme.memory.store import KnowledgeStore

Tool = Callable[[dict], Any]


def _str(params: dict, key: str, *, required: bool = True) -> str | None:
    value = params.get(key)
    if value is None:
        if required:
            raise InvalidArgument(f"missing required parameter '{key}'")
        return None
    if not isinstance(value, str):
        raise InvalidArgument(f"parameter '{key}' must be a string")
    return value


def _strings(params: dict, key: str) -> list[str]:
    value = params.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidArgument(f"parameter '{key}' must be a list of strings")
    return value


def _mapping(params: dict, key: str, *, required: bool = False) -> dict | None:
    value = params.get(key)
    if value is None:
        if required:
            raise InvalidArgument(f"missing required parameter '{key}'")
        return None
    if not isinstance(value, dict):
        raise InvalidArgument(f"parameter '{key}' must be an object")
    return value


def _number(params: dict, key: str) -> float | None:
    value = params.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"parameter '{key}' must be a number")
    return value


def get_memory_tools(store: KnowledgeStore, default_limit: int = 10) -> dict[str, Tool]:
    """Return a dict of tool_name -> callable(params) for store operations."""

    # Entities

    def create_entity(params: dict) -> dict:
        entity = store.create_entity(
            _str(params, "name"), _str(params, "type"), _mapping(params, "properties")
        )
        return entity.to_dict()

    def get_entity(params: dict) -> dict | None:
        entity = store.get_entity(_str(params, "id"))
        return entity.to_dict() if entity else None

    def find_entities(params: dict) -> dict:
        key = value = None
        prop = _mapping(params, "property")
        if prop is not None:
            if len(prop) != 1:
                raise InvalidArgument("'property' filter must have exactly one key")
            ((key, value),) = prop.items()
        entities = store.find_entities(
            type=_str(params, "type", required=False),
            name=_str(params, "name", required=False),
            property_key=key,
            property_value=value,
        )
        return {"entities": [e.to_dict() for e in entities]}

    def update_entity(params: dict) -> dict:
        entity = store.update_entity(
            _str(params, "id"), _mapping(params, "properties", required=True)
        )
        return entity.to_dict()

    def delete_entity(params: dict) -> dict:
        entity_id = _str(params, "id")
        store.delete_entity(entity_id)
        return {"success": True, "id": entity_id}

    # Facts

    def add_fact(params: dict) -> dict:
        confidence = _number(params, "confidence")
        fact = store.add_fact(
            _str(params, "subject"),
            _str(params, "predicate"),
            _str(params, "object"),
            1.0 if confidence is None else confidence,
            _str(params, "source", required=False),
        )
        return fact.to_dict()

    def query_facts(params: dict) -> dict:
        facts = store.query_facts(
            subject=_str(params, "subject", required=False),
            predicate=_str(params, "predicate", required=False),
            object=_str(params, "object", required=False),
            min_confidence=_number(params, "minConfidence"),
        )
        return {"facts": [f.to_dict() for f in facts]}

    # Notes

    def add_note(params: dict) -> dict:
        note = store.add_note(
            _str(params, "content"), _strings(params, "tags"), _mapping(params, "metadata")
        )
        return note.to_dict()

    def search_notes(params: dict) -> dict:
        notes = store.search_notes(
            _str(params, "query", required=False), _strings(params, "tags")
        )
        return {"notes": [n.to_dict() for n in notes]}

    # Conversations

    def save_conversation(params: dict) -> dict:
        conversation = store.save_conversation_summary(
            _str(params, "conversationId"),
            _str(params, "summary"),
            _strings(params, "keyPoints"),
            _strings(params, "entities"),
        )
        return conversation.to_dict()

    def get_conversation(params: dict) -> dict | None:
        conversation = store.get_conversation_summary(_str(params, "conversationId"))
        return conversation.to_dict() if conversation else None

    # Search and bulk

    def search(params: dict) -> dict:
        limit = params.get("limit")
        results = store.search(
            _str(params, "query"), default_limit if limit is None else limit
        )
        return {"results": [r.to_dict() for r in results]}

    def get_stats(params: dict) -> dict:
        return store.get_stats().to_dict()

    def export_memory(params: dict) -> dict:
        return store.export()

    def import_memory(params: dict) -> dict:
        return store.import_data(_mapping(params, "data", required=True)).to_dict()

    def clear_memory(params: dict) -> dict:
        store.clear()
        return {"success": True}

    return {
        "create_entity": create_entity,
        "get_entity": get_entity,
        "find_entities": find_entities,
        "update_entity": update_entity,
        "delete_entity": delete_entity,
        "add_fact": add_fact,
        "query_facts": query_facts,
        "add_note": add_note,
        "search_notes": search_notes,
        "save_conversation": save_conversation,
        "get_conversation": get_conversation,
        "search": search,
        "get_stats": get_stats,
        "export_memory": export_memory,
        "import_memory": import_memory,
        "clear_memory": clear_memory,
    }
