"""Tests for the named memory tools."""

from __future__ import annotations

import pytest

from mneme.memory.errors import InvalidArgument, NotFound
from mneme.memory.samples import load_samples
from mneme.memory.store import KnowledgeStore
from mneme.tools.memory_tools import get_memory_tools


@pytest.fixture
def store() -> KnowledgeStore:
    s = KnowledgeStore()
    load_samples(s)
    return s


@pytest.fixture
def tools(store: KnowledgeStore) -> dict:
    return get_memory_tools(store)


class TestToolTable:
    def test_all_operations_registered(self, tools: dict):
        assert set(tools) == {
            "create_entity",
            "get_entity",
            "find_entities",
            "update_entity",
            "delete_entity",
            "add_fact",
            "query_facts",
            "add_note",
            "search_notes",
            "save_conversation",
            "get_conversation",
            "search",
            "get_stats",
            "export_memory",
            "import_memory",
            "clear_memory",
        }


class TestEntityTools:
    def test_create_get_update_delete(self, tools: dict):
        created = tools["create_entity"]({"name": "Claude", "type": "ai_model", "properties": {"family": "3"}})
        assert created["createdAt"] == created["updatedAt"]

        fetched = tools["get_entity"]({"id": created["id"]})
        assert fetched == created

        updated = tools["update_entity"]({"id": created["id"], "properties": {"vision": True}})
        assert updated["properties"] == {"family": "3", "vision": True}

        assert tools["delete_entity"]({"id": created["id"]}) == {"success": True, "id": created["id"]}
        assert tools["get_entity"]({"id": created["id"]}) is None

    def test_find_with_property_mapping(self, tools: dict):
        result = tools["find_entities"]({"property": {"ceo": "Dario Amodei"}})
        assert [e["name"] for e in result["entities"]] == ["Anthropic"]

    @pytest.mark.parametrize("prop", [{}, {"a": 1, "b": 2}])
    def test_property_filter_needs_one_key(self, tools: dict, prop: dict):
        with pytest.raises(InvalidArgument):
            tools["find_entities"]({"property": prop})

    def test_update_unknown_raises_not_found(self, tools: dict):
        with pytest.raises(NotFound):
            tools["update_entity"]({"id": "entity_zzz", "properties": {}})

    def test_missing_name(self, tools: dict):
        with pytest.raises(InvalidArgument):
            tools["create_entity"]({"type": "company"})


class TestFactAndNoteTools:
    def test_add_and_query_facts(self, tools: dict):
        fact = tools["add_fact"]({"subject": "Claude", "predicate": "has_capability", "object": "tool_use", "confidence": 0.7})
        assert fact["confidence"] == 0.7
        assert fact["source"] is None
        result = tools["query_facts"]({"subject": "claude", "minConfidence": 0.5})
        # seeded "Claude is_developed_by Anthropic" comes first
        assert [f["predicate"] for f in result["facts"]] == ["is_developed_by", "has_capability"]
        assert result["facts"][1]["id"] == fact["id"]

        result = tools["query_facts"]({"subject": "claude", "minConfidence": 0.5, "predicate": "has_capability"})
        assert [f["id"] for f in result["facts"]] == [fact["id"]]

    def test_confidence_must_be_number(self, tools: dict):
        with pytest.raises(InvalidArgument):
            tools["add_fact"]({"subject": "a", "predicate": "b", "object": "c", "confidence": "high"})

    def test_notes(self, tools: dict):
        tools["add_note"]({"content": "Weekly sync moved", "tags": ["meetings"], "metadata": {"by": "ops"}})
        result = tools["search_notes"]({"tags": ["meetings"]})
        assert [n["metadata"] for n in result["notes"]] == [{"by": "ops"}]

    def test_tags_must_be_strings(self, tools: dict):
        with pytest.raises(InvalidArgument):
            tools["add_note"]({"content": "x", "tags": [1, 2]})


class TestConversationTools:
    def test_save_and_get(self, tools: dict):
        saved = tools["save_conversation"]({"conversationId": "c-9", "summary": "s", "keyPoints": ["a"], "entities": ["OpenAI"]})
        assert saved["id"] == "c-9"
        assert tools["get_conversation"]({"conversationId": "c-9"}) == saved
        assert tools["get_conversation"]({"conversationId": "other"}) is None


class TestSearchAndBulkTools:
    def test_search_shape(self, tools: dict):
        result = tools["search"]({"query": "mcp"})
        top = result["results"][0]
        assert top["type"] == "note"
        assert top["score"] >= 3
        assert "content" in top["item"]

    def test_search_limit(self, tools: dict):
        assert len(tools["search"]({"query": "is_developed_by", "limit": 1})["results"]) == 1

    def test_default_limit(self, store: KnowledgeStore):
        for i in range(5):
            store.add_note(f"widget {i}")
        tools = get_memory_tools(store, default_limit=3)
        assert len(tools["search"]({"query": "widget"})["results"]) == 3

    def test_export_import_clear(self, tools: dict):
        snapshot = tools["export_memory"]({})
        assert tools["clear_memory"]({}) == {"success": True}
        assert tools["get_stats"]({}) == {"entityCount": 0, "factCount": 0, "noteCount": 0, "conversationCount": 0}
        stats = tools["import_memory"]({"data": snapshot})
        assert stats == {"entityCount": 2, "factCount": 2, "noteCount": 1, "conversationCount": 0}
        assert tools["export_memory"]({}) == snapshot

    def test_import_requires_data(self, tools: dict):
        with pytest.raises(InvalidArgument):
            tools["import_memory"]({})
