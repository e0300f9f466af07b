"""Entry point: python -m mneme [serve|methods]

- No args / "serve": HTTP server in front of an in-memory knowledge store
- "methods":         Print the operation names accepted by POST /run
"""

from __future__ import annotations

import asyncio
import logging
import sys

from mneme.config import load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_serve() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from mneme.server import run_server

    asyncio.run(run_server(config))


def _print_methods() -> None:
    from mneme.memory.store import KnowledgeStore
    from mneme.tools.memory_tools import get_memory_tools

    for name in get_memory_tools(KnowledgeStore()):
        print(name)


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "serve"

    if cmd == "serve":
        _run_serve()
    elif cmd == "methods":
        _print_methods()
    else:
        print("Usage: python -m mneme [serve|methods]")
        print("  serve    — HTTP server on /run, /health, /methods (default)")
        print("  methods  — List available operations")
        sys.exit(1)


if __name__ == "__main__":
    main()
