"""
MCP server + skill lifecycle hooks.

Handles tools/list, tools/call, and skill lifecycle (load, unload).
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import ImageContent, TextContent, Tool

from .client.browser_client import clear_client, create_client, ensure_client, get_client
from .config import InspectorConfig
from .handlers import dispatch_tool
from .helpers import ToolResult, payload_json
from .tools import ALL_TOOLS

log = logging.getLogger("skill.element_inspector.server")


def to_mcp_content(result: ToolResult) -> list[TextContent | ImageContent]:
  """Text summary, then the annotated PNG, then the JSON payload."""
  content: list[TextContent | ImageContent] = [TextContent(type="text", text=result.content)]
  if result.image:
    content.append(
      ImageContent(
        type="image",
        data=base64.b64encode(result.image).decode("ascii"),
        mimeType="image/png",
      )
    )
  if result.data is not None:
    content.append(TextContent(type="text", text=payload_json(result.data)))
  return content


def create_mcp_server() -> Server:
  """Create and configure the MCP server with all tool handlers."""
  server = Server("element-inspector-skill")

  @server.list_tools()
  async def list_tools() -> list[Tool]:
    return ALL_TOOLS

  @server.call_tool()
  async def call_tool(
    name: str, arguments: dict[str, Any] | None
  ) -> list[TextContent | ImageContent]:
    args = arguments or {}
    result = await dispatch_tool(name, args)
    return to_mcp_content(result)

  return server


async def on_skill_load(
  params: dict[str, Any],
  set_state_fn: Any = None,
) -> None:
  """Called when the host loads this skill. Starts the browser client."""
  config = InspectorConfig.from_sources(params.get("config"))

  client = create_client(config)
  started = False
  try:
    await client.start()
    started = True
    log.info(
      "Element inspector loaded (%s)",
      f"attached to {config.cdp_endpoint}" if config.cdp_endpoint else "local browser",
    )
  except Exception:
    log.exception("Failed to start browser; it will be retried on the first inspection")

  if set_state_fn:
    set_state_fn(
      {
        "browser_running": started,
        "cdp_endpoint": config.cdp_endpoint or "",
      }
    )


async def on_skill_unload() -> None:
  """Called when the host unloads this skill."""
  try:
    await get_client().stop()
  except RuntimeError:
    log.debug("Unload before load; nothing to stop")
  except Exception:
    log.exception("Error stopping browser client")
  clear_client()
  log.info("Element inspector unloaded")


async def run_server() -> None:
  """Run the MCP server on stdio; the browser starts on the first inspection."""
  ensure_client()
  server = create_mcp_server()
  try:
    async with stdio_server() as (read_stream, write_stream):
      await server.run(read_stream, write_stream, server.create_initialization_options())
  finally:
    await on_skill_unload()
