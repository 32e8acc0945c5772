"""
Input validation helpers for inspect_element arguments.
"""

from __future__ import annotations

import math
from typing import Any
from urllib.parse import urlparse

from .inspector.models import DEFAULT_PROPERTY_GROUPS, InspectRequest
from .inspector.viewport import clamp_zoom

MIN_LIMIT = 1
MAX_LIMIT = 20
DEFAULT_LIMIT = 10


class ValidationError(Exception):
  pass


def req_string(args: dict[str, Any], key: str) -> str:
  """Read a required string from args."""
  v = args.get(key)
  if not isinstance(v, str) or not v.strip():
    raise ValidationError(f"Missing required parameter: {key}")
  return v.strip()


def opt_string(args: dict[str, Any], key: str) -> str | None:
  """Read an optional string from args."""
  v = args.get(key)
  return v if isinstance(v, str) and v else None


def opt_bool(args: dict[str, Any], key: str, fallback: bool) -> bool:
  """Read an optional boolean from args with a fallback."""
  v = args.get(key)
  if isinstance(v, bool):
    return v
  if isinstance(v, str) and v.lower() in ("true", "false"):
    return v.lower() == "true"
  return fallback


def opt_number(args: dict[str, Any], key: str) -> int | float | None:
  """Read an optional number from args."""
  v = args.get(key)
  if isinstance(v, bool):
    return None
  if isinstance(v, str):
    try:
      v = float(v)
    except ValueError:
      raise ValidationError(f"Parameter {key} must be a number") from None
  if isinstance(v, float) and not math.isfinite(v):
    raise ValidationError(f"Parameter {key} must be a finite number")
  if isinstance(v, (int, float)):
    return v
  return None


def opt_string_list(args: dict[str, Any], key: str) -> list[str] | None:
  """Read an optional list of strings from args."""
  v = args.get(key)
  if v is None:
    return None
  if isinstance(v, str):
    return [p.strip() for p in v.split(",") if p.strip()]
  if isinstance(v, list):
    return [str(p).strip() for p in v if p]
  return None


def opt_string_map(args: dict[str, Any], key: str) -> dict[str, str] | None:
  """Read an optional string-to-string mapping from args."""
  v = args.get(key)
  if v is None:
    return None
  if not isinstance(v, dict):
    raise ValidationError(f"Parameter {key} must be an object of property: value pairs")
  return {str(k).strip(): str(val).strip() for k, val in v.items() if str(k).strip()}


def validate_url(url: str) -> str:
  parsed = urlparse(url)
  if not parsed.scheme or not (parsed.netloc or parsed.scheme in ("file", "about", "data")):
    raise ValidationError(f"url must be an absolute URL with a scheme, got: {url}")
  return url


def parse_inspect_args(args: dict[str, Any]) -> InspectRequest:
  """Turn raw tool arguments into an InspectRequest, clamping numeric options."""
  selector = req_string(args, "css_selector")
  url = validate_url(req_string(args, "url"))

  groups = opt_string_list(args, "property_groups")
  limit = opt_number(args, "limit")
  limit = DEFAULT_LIMIT if limit is None else min(MAX_LIMIT, max(MIN_LIMIT, int(limit)))
  zoom = opt_number(args, "zoomFactor")

  return InspectRequest(
    css_selector=selector,
    url=url,
    property_groups=tuple(groups) if groups else DEFAULT_PROPERTY_GROUPS,
    css_edits=opt_string_map(args, "css_edits") or None,
    limit=limit,
    auto_center=opt_bool(args, "autoCenter", True),
    auto_zoom=opt_bool(args, "autoZoom", True),
    zoom_factor=None if zoom is None else clamp_zoom(float(zoom)),
    target_title=opt_string(args, "target_title"),
  )
