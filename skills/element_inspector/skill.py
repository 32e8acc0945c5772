"""
Element inspector SkillDefinition: wires the inspect_element tool and
the browser lifecycle hooks for the skill host.

Usage:
    from skills.element_inspector.skill import skill
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from dev.types.skill_types import (
  SkillDefinition,
  SkillHooks,
  SkillTool,
  ToolDefinition,
  ToolImage,
)
from dev.types.skill_types import (
  ToolResult as SkillToolResult,
)

from .handlers import dispatch_tool
from .tools import ALL_TOOLS

log = logging.getLogger("skill.element_inspector.skill")


# ---------------------------------------------------------------------------
# Convert MCP Tool objects → SkillTool objects
# ---------------------------------------------------------------------------


def _make_execute(tool_name: str):
  """Create an async execute function for a given tool name."""

  async def execute(args: dict[str, Any]) -> SkillToolResult:
    result = await dispatch_tool(tool_name, args)
    images = []
    if result.image:
      images.append(ToolImage(data=base64.b64encode(result.image).decode("ascii")))
    return SkillToolResult(
      content=result.content,
      is_error=result.is_error,
      images=images,
      data=result.data,
    )

  return execute


def _convert_tools() -> list[SkillTool]:
  """Convert MCP Tool definitions to SkillTool objects."""
  skill_tools: list[SkillTool] = []
  for mcp_tool in ALL_TOOLS:
    schema = mcp_tool.inputSchema if isinstance(mcp_tool.inputSchema, dict) else {}
    definition = ToolDefinition(
      name=mcp_tool.name,
      description=mcp_tool.description or "",
      parameters=schema,
    )
    skill_tools.append(
      SkillTool(
        definition=definition,
        execute=_make_execute(mcp_tool.name),
      )
    )
  return skill_tools


# ---------------------------------------------------------------------------
# Lifecycle hooks adapted for SkillContext
# ---------------------------------------------------------------------------


async def _on_load(ctx: Any) -> None:
  """Start the browser client using config.json from the data dir."""
  from .server import on_skill_load

  raw: str | None = None
  try:
    raw = await ctx.read_data("config.json")
  except FileNotFoundError:
    log.info("No config.json found, using defaults")

  def set_state_fn(partial: dict[str, Any]) -> None:
    ctx.set_state(partial)

  await on_skill_load({"dataDir": ctx.data_dir, "config": raw}, set_state_fn=set_state_fn)


async def _on_unload(ctx: Any) -> None:
  from .server import on_skill_unload

  await on_skill_unload()


async def _on_status(ctx: Any) -> dict[str, Any]:
  """Return current skill status information."""
  from .client.browser_client import get_client

  try:
    client = get_client()
  except RuntimeError:
    return {"status": "not_initialized", "message": "Browser not initialized"}

  status: dict[str, Any] = {
    "status": "ready" if client.is_running else "stopped",
    "headless": client.config.headless,
    "cdp_endpoint": client.config.cdp_endpoint,
  }
  if client.is_running:
    status["pages"] = [page.url for page in client.all_pages()]
  return status


# ---------------------------------------------------------------------------
# Skill definition
# ---------------------------------------------------------------------------

skill = SkillDefinition(
  name="element-inspector",
  description=(
    "Inspect rendered page elements: annotated screenshots, box model, filtered computed "
    "styles, cascade rules with specificity, and spacing/alignment between matches."
  ),
  version="1.0.0",
  tools=_convert_tools(),
  hooks=SkillHooks(
    on_load=_on_load,
    on_unload=_on_unload,
    on_status=_on_status,
  ),
)
