"""
Element inspector entry point: starts the MCP server.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from .server import run_server

logging.basicConfig(
  level=logging.INFO,
  format="[%(name)s] %(levelname)s: %(message)s",
  stream=sys.stderr,
)

if __name__ == "__main__":
  asyncio.run(run_server())
