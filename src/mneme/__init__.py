"""Mneme — in-process knowledge store behind an HTTP request/response boundary."""

__version__ = "0.1.0"
