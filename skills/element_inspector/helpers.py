"""
Shared formatting and error handling helpers for the element inspector skill.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import InspectorError
from .inspector.models import (
  InspectionOutcome,
  MultiInspectionResult,
  result_payload,
)

log = logging.getLogger("skill.element_inspector.helpers")


# ---------------------------------------------------------------------------
# Tool result
# ---------------------------------------------------------------------------


@dataclass
class ToolResult:
  content: str
  is_error: bool = False
  image: bytes | None = None
  data: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


class ErrorCategory(str, Enum):
  INSPECT = "INSPECT"
  TARGET = "TARGET"
  BROWSER = "BROWSER"
  VALIDATION = "VALIDATION"


def log_and_format_error(
  function_name: str,
  error: Exception,
  category: str | ErrorCategory | None = None,
) -> ToolResult:
  prefix = category.value if isinstance(category, ErrorCategory) else (category or "GEN")
  hash_val = sum(ord(c) for c in function_name) % 1000
  error_code = f"{prefix}-ERR-{hash_val:03d}"

  from .validation import ValidationError

  if isinstance(error, (ValidationError, InspectorError)):
    log.error("Error in %s - Code: %s - %s", function_name, error_code, error)
    user_message = str(error)
    tabs = getattr(error, "available_tabs", None)
    if tabs:
      listing = "\n".join(f"  - {t.get('title') or '(untitled)'} ({t.get('url')})" for t in tabs)
      user_message = f"{user_message}\nAvailable tabs:\n{listing}"
  else:
    log.exception("Error in %s - Code: %s - %s", function_name, error_code, error)
    user_message = f"An error occurred (code: {error_code}). Check logs for details."

  return ToolResult(content=user_message, is_error=True)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def summarize(selector: str, result: InspectionOutcome) -> str:
  if isinstance(result, MultiInspectionResult):
    return f"Inspected {len(result.elements)} elements: {selector}"
  return f"Inspected element: {selector}"


def format_inspection(selector: str, result: InspectionOutcome) -> ToolResult:
  """Text summary + PNG + JSON payload (everything but the screenshot)."""
  return ToolResult(
    content=summarize(selector, result),
    image=result.screenshot,
    data=result_payload(result),
  )


def payload_json(data: dict[str, Any]) -> str:
  return json.dumps(data, indent=2)
