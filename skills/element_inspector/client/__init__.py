"""Browser access: Playwright lifecycle, tab discovery and CDP connections."""

from __future__ import annotations

from .browser_client import (
  BrowserClient,
  clear_client,
  create_client,
  ensure_client,
  get_client,
)
from .target_connection import TargetConnection

__all__ = [
  "BrowserClient",
  "TargetConnection",
  "clear_client",
  "create_client",
  "ensure_client",
  "get_client",
]
