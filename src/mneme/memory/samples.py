"""Sample records for demos and local development."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mneme.memory.store import KnowledgeStore


def load_samples(store: KnowledgeStore) -> None:
    """Pre-populate a store with a couple of AI companies, facts and a note."""
    store.create_entity(
        "OpenAI",
        "company",
        {"founded": 2015, "ceo": "Sam Altman", "products": ["GPT-4", "DALL-E", "ChatGPT"]},
    )
    store.create_entity(
        "Anthropic",
        "company",
        {"founded": 2021, "ceo": "Dario Amodei", "products": ["Claude"]},
    )
    store.add_fact("GPT-4", "is_developed_by", "OpenAI", 1.0, "public knowledge")
    store.add_fact("Claude", "is_developed_by", "Anthropic", 1.0, "public knowledge")
    store.add_note(
        "MCP (Model Context Protocol) is a standard for AI tool integration",
        ["mcp", "ai", "tools"],
    )
