"""Handler dispatch table: maps tool names to handler functions."""

from __future__ import annotations

from typing import Any

from ..helpers import ToolResult
from . import inspect

DISPATCH: dict[str, Any] = {}

for mod in (inspect,):
  for name in getattr(mod, "__all__", ()):
    DISPATCH[name] = getattr(mod, name)


async def dispatch_tool(name: str, arguments: dict[str, Any]) -> ToolResult:
  """Look up and execute a tool handler by name."""
  handler = DISPATCH.get(name)
  if handler is None:
    return ToolResult(content=f"Unknown tool: {name}", is_error=True)
  result: ToolResult = await handler(arguments)
  return result
