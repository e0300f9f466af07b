"""Errors raised by the knowledge store."""

from __future__ import annotations


class KnowledgeStoreError(Exception):
    """Base class for knowledge store failures."""


class NotFound(KnowledgeStoreError):
    """A record addressed by id does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} not found")


class InvalidArgument(KnowledgeStoreError, ValueError):
    """Malformed argument, filter shape or snapshot."""
