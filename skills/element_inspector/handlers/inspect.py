"""inspect_element tool handler."""

from __future__ import annotations

import logging
from typing import Any

from ..client.browser_client import ensure_client
from ..errors import MultipleCandidates, TargetNotFound
from ..helpers import ErrorCategory, ToolResult, format_inspection, log_and_format_error
from ..inspector.orchestrator import ElementInspector
from ..validation import ValidationError, parse_inspect_args

__all__ = ["inspect_element"]

log = logging.getLogger("skill.element_inspector.handlers")


async def inspect_element(args: dict[str, Any]) -> ToolResult:
  try:
    request = parse_inspect_args(args)
    client = ensure_client()
    if not client.is_running:
      await client.start()
    result = await ElementInspector(client).inspect(request)
    log.debug("inspect_element %s -> %s", request.css_selector, result.kind)
    return format_inspection(request.css_selector, result)
  except ValidationError as e:
    return log_and_format_error("inspect_element", e, ErrorCategory.VALIDATION)
  except (TargetNotFound, MultipleCandidates) as e:
    return log_and_format_error("inspect_element", e, ErrorCategory.TARGET)
  except Exception as e:
    return log_and_format_error("inspect_element", e, ErrorCategory.INSPECT)
