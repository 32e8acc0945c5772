"""
Browser client for element inspection.

Combines the Playwright lifecycle with tab discovery, and holds the
process-wide instance the handlers use.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config import InspectorConfig
from .browser_client_base import BrowserClientBase
from .target_locator import TargetLocatorMixin

if TYPE_CHECKING:
  from playwright.async_api import Page


class BrowserClient(BrowserClientBase, TargetLocatorMixin):
  """Playwright-backed browser that hands out per-tab CDP connections."""

  def __init__(self, config: InspectorConfig | None = None):
    super().__init__(config)
    self.opened_tabs = {}

  async def stop(self) -> None:
    await super().stop()
    self.opened_tabs.clear()

  async def _new_page(self) -> Page:
    if self.context is None:
      await self.start()
    if self.context is None:
      raise RuntimeError("Browser not started. Call start() first.")
    return await self.context.new_page()


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_client_instance: BrowserClient | None = None


def create_client(config: InspectorConfig | None = None) -> BrowserClient:
  """Create and return the singleton BrowserClient."""
  global _client_instance
  _client_instance = BrowserClient(config)
  return _client_instance


def get_client() -> BrowserClient:
  """Return the singleton BrowserClient. Raises if not initialized."""
  if _client_instance is None:
    raise RuntimeError("BrowserClient not initialized. Call create_client() first.")
  return _client_instance


def ensure_client() -> BrowserClient:
  """Return the singleton, creating it from defaults and env overrides if needed."""
  if _client_instance is None:
    return create_client(InspectorConfig.from_sources())
  return _client_instance


def clear_client() -> None:
  global _client_instance
  _client_instance = None
