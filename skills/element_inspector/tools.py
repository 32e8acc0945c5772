"""
Tool definitions for the element inspector skill.
"""

from __future__ import annotations

from mcp.types import Tool

from .inspector.models import DEFAULT_PROPERTY_GROUPS
from .inspector.styles import PROPERTY_GROUPS

ALL_TOOLS: list[Tool] = [
  Tool(
    name="inspect_element",
    description=(
      "Inspect the element(s) matching a CSS selector on a page: returns an annotated "
      "screenshot with box-model overlays, filtered computed styles grouped by category, "
      "the matching cascade rules with specificity, and the box model. When several "
      "elements match, also returns pairwise distances and alignment between them. "
      "Optional css_edits are applied as inline styles first, so layout fixes can be "
      "previewed before changing source files."
    ),
    inputSchema={
      "type": "object",
      "properties": {
        "css_selector": {
          "type": "string",
          "description": "CSS selector of the element(s) to inspect",
        },
        "url": {
          "type": "string",
          "description": "Absolute URL of the page; an open tab showing it is reused",
        },
        "property_groups": {
          "type": "array",
          "items": {"type": "string"},
          "description": (
            f"Style groups to return: {', '.join(PROPERTY_GROUPS)}. Unknown names are ignored"
          ),
          "default": list(DEFAULT_PROPERTY_GROUPS),
        },
        "css_edits": {
          "type": "object",
          "additionalProperties": {"type": "string"},
          "description": 'Inline styles to apply before measuring, e.g. {"margin-top": "8px"}',
        },
        "limit": {
          "type": "number",
          "description": "Maximum number of matches to inspect (1-20)",
          "default": 10,
        },
        "autoCenter": {
          "type": "boolean",
          "description": "Scroll the element(s) to the middle of the viewport when off-centre",
          "default": True,
        },
        "autoZoom": {
          "type": "boolean",
          "description": "Zoom in on small elements and out on large ones",
          "default": True,
        },
        "zoomFactor": {
          "type": "number",
          "description": "Explicit zoom (0.5-3.0); overrides autoZoom",
        },
        "target_title": {
          "type": "string",
          "description": "Pick an open tab by (partial) title instead of by URL",
        },
      },
      "required": ["css_selector", "url"],
    },
  ),
]
