"""
Tab discovery: pick (or open) the page an inspection runs against.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, NamedTuple
from urllib.parse import urldefrag

from ..errors import MultipleCandidates, TargetNotFound
from .target_connection import TargetConnection

if TYPE_CHECKING:
  from playwright.async_api import Page

  from ..config import InspectorConfig

log = logging.getLogger("skill.element_inspector.locator")


class TabInfo(NamedTuple):
  title: str
  url: str

  def as_dict(self) -> dict[str, str]:
    return {"title": self.title, "url": self.url}


def normalize_url(url: str) -> str:
  """Drop the fragment and any trailing slash."""
  return urldefrag(url)[0].rstrip("/")


def select_page(tabs: list[TabInfo], url: str, target_title: str | None = None) -> int | None:
  """
  Index of the tab to inspect, or None when a new tab should be opened.

  A title hint is a case-insensitive substring match and must hit exactly
  one tab. Without one, a tab already showing `url` is reused.
  """
  if target_title:
    hint = target_title.lower()
    hits = [i for i, tab in enumerate(tabs) if hint in tab.title.lower()]
    if not hits:
      raise TargetNotFound(target_title, [tab.as_dict() for tab in tabs])
    if len(hits) > 1:
      raise MultipleCandidates(target_title, [tabs[i].as_dict() for i in hits])
    return hits[0]

  wanted = normalize_url(url)
  hits = [i for i, tab in enumerate(tabs) if normalize_url(tab.url) == wanted]
  if len(hits) > 1:
    raise MultipleCandidates(url, [tabs[i].as_dict() for i in hits])
  return hits[0] if hits else None


class TargetLocatorMixin:
  """Resolves a URL/title hint to a CDP connection on one page."""

  config: InspectorConfig
  # requested url -> tab this client opened for it
  opened_tabs: dict[str, Page]

  def all_pages(self) -> list[Page]:
    raise NotImplementedError

  async def _new_page(self) -> Page:
    raise NotImplementedError

  async def _describe(self, pages: list[Page]) -> list[TabInfo]:
    return [TabInfo(title=await page.title(), url=page.url) for page in pages]

  async def find_page(self, url: str, target_title: str | None = None) -> Page:
    pages = self.all_pages()
    index = select_page(await self._describe(pages), url, target_title)
    if index is not None:
      log.debug("Reusing open tab %s", pages[index].url)
      return pages[index]

    # a tab we opened earlier may have been redirected away from `url`
    key = normalize_url(url)
    opened = self.opened_tabs.get(key)
    if opened is not None and any(page is opened for page in pages):
      log.debug("Reusing tab opened for %s (now at %s)", url, opened.url)
      return opened

    page = await self._new_page()
    log.info("Opening %s", url)
    await page.goto(
      url, wait_until=self.config.wait_until, timeout=self.config.navigation_timeout
    )
    self.opened_tabs[key] = page
    return page

  @contextlib.asynccontextmanager
  async def open_target(
    self, url: str, target_title: str | None = None
  ) -> AsyncIterator[TargetConnection]:
    """Yield a connection to the chosen page; the CDP session is always detached."""
    page = await self.find_page(url, target_title)
    session = await page.context.new_cdp_session(page)
    connection = TargetConnection(session, page)
    try:
      yield connection
    finally:
      await connection.close()
