"""
In-page helper procedures.

The page side is a fixed, versioned object installed once per call as
`window.__elementInspector`. Python calls its methods with JSON-encoded
arguments and receives JSON values back; no other script text is sent.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from .models import ElementMetrics, ViewportInfo

if TYPE_CHECKING:
  from ..client.target_connection import TargetConnection

log = logging.getLogger("skill.element_inspector.page_helpers")

HELPERS_VERSION = 1
HELPERS_GLOBAL = "__elementInspector"
MARKER_ATTRIBUTE = "data-inspect-id"

HELPERS_SOURCE = """
(() => {
  const VERSION = %(version)d;
  const ATTR = %(attr)s;
  const existing = window.%(name)s;
  if (existing && existing.version === VERSION) return VERSION;

  const find = (id) => document.querySelector('[' + ATTR + '="' + CSS.escape(id) + '"]');
  const px = (value) => parseFloat(value) || 0;
  const edges = (style, prefix, suffix) => ({
    top: px(style.getPropertyValue(prefix + '-top' + suffix)),
    right: px(style.getPropertyValue(prefix + '-right' + suffix)),
    bottom: px(style.getPropertyValue(prefix + '-bottom' + suffix)),
    left: px(style.getPropertyValue(prefix + '-left' + suffix)),
  });
  const scroll = () => ({ scrollX: window.scrollX, scrollY: window.scrollY });

  window.%(name)s = {
    version: VERSION,

    mark(selector, limit, token) {
      let found;
      try {
        found = Array.from(document.querySelectorAll(selector));
      } catch (e) {
        return { error: 'invalid_selector', message: String((e && e.message) || e) };
      }
      const elements = found.slice(0, limit).map((el, index) => {
        const id = token + '_' + index;
        el.setAttribute(ATTR, id);
        return {
          index,
          id,
          tag: el.tagName.toLowerCase(),
          elementId: el.id || null,
          className: typeof el.className === 'string' ? (el.className || null) : null,
        };
      });
      return { total: found.length, elements };
    },

    metrics(id) {
      const el = find(id);
      if (!el || el.getClientRects().length === 0) return null;
      const rect = el.getBoundingClientRect();
      const style = window.getComputedStyle(el);
      return {
        rect: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
        margin: edges(style, 'margin', ''),
        padding: edges(style, 'padding', ''),
        border: edges(style, 'border', '-width'),
      };
    },

    viewport() {
      return {
        width: window.innerWidth,
        height: window.innerHeight,
        deviceScaleFactor: window.devicePixelRatio || 1,
        mobile: /Mobi|Android/i.test(navigator.userAgent),
        scrollX: window.scrollX,
        scrollY: window.scrollY,
      };
    },

    center(id) {
      const el = find(id);
      if (el) el.scrollIntoView({ block: 'center', inline: 'center', behavior: 'instant' });
      return scroll();
    },

    centerGroup(ids) {
      const rects = ids.map(find).filter(Boolean).map((el) => el.getBoundingClientRect());
      if (rects.length === 0) return scroll();
      const left = Math.min(...rects.map((r) => r.left));
      const top = Math.min(...rects.map((r) => r.top));
      const right = Math.max(...rects.map((r) => r.right));
      const bottom = Math.max(...rects.map((r) => r.bottom));
      window.scrollBy({
        left: (left + right) / 2 - window.innerWidth / 2,
        top: (top + bottom) / 2 - window.innerHeight / 2,
        behavior: 'instant',
      });
      return scroll();
    },

    scrollTo(x, y) {
      window.scrollTo({ left: x, top: y, behavior: 'instant' });
      return scroll();
    },

    applyStyles(id, edits) {
      const el = find(id);
      if (!el) return null;
      const previous = el.getAttribute('style');
      for (const [prop, raw] of Object.entries(edits)) {
        const value = String(raw);
        const important = /!important\\s*$/.test(value);
        const bare = value.replace(/!important\\s*$/, '').trim();
        el.style.setProperty(prop, bare, important ? 'important' : '');
      }
      return previous;
    },

    restoreStyles(id, previous) {
      const el = find(id);
      if (!el) return false;
      if (previous === null) el.removeAttribute('style');
      else el.setAttribute('style', previous);
      return true;
    },

    cleanup(token) {
      const marked = document.querySelectorAll('[' + ATTR + '^="' + CSS.escape(token) + '"]');
      marked.forEach((el) => el.removeAttribute(ATTR));
      return marked.length;
    },
  };
  return VERSION;
})()
""" % {"version": HELPERS_VERSION, "attr": json.dumps(MARKER_ATTRIBUTE), "name": HELPERS_GLOBAL}


def marker_selector(marker_id: str) -> str:
  return f'[{MARKER_ATTRIBUTE}="{marker_id}"]'


class PageHelpers:
  """Typed Python façade over the in-page helper object."""

  def __init__(self, connection: TargetConnection) -> None:
    self._connection = connection

  async def install(self) -> None:
    version = await self._connection.evaluate(HELPERS_SOURCE)
    log.debug("Page helpers installed (version %s)", version)

  async def _call(self, name: str, *args: Any) -> Any:
    expression = f"window.{HELPERS_GLOBAL}.{name}(...{json.dumps(list(args))})"
    return await self._connection.evaluate(expression)

  async def mark(self, selector: str, limit: int, token: str) -> dict[str, Any]:
    return await self._call("mark", selector, limit, token)

  async def metrics(self, marker_id: str) -> ElementMetrics | None:
    raw = await self._call("metrics", marker_id)
    if raw is None:
      return None
    return ElementMetrics.model_validate(raw)

  async def viewport(self) -> ViewportInfo:
    return ViewportInfo.model_validate(await self._call("viewport"))

  async def center(self, marker_id: str) -> dict[str, float]:
    return await self._call("center", marker_id)

  async def center_group(self, marker_ids: list[str]) -> dict[str, float]:
    return await self._call("centerGroup", marker_ids)

  async def scroll_to(self, x: float, y: float) -> dict[str, float]:
    return await self._call("scrollTo", x, y)

  async def apply_styles(self, marker_id: str, edits: dict[str, str]) -> str | None:
    return await self._call("applyStyles", marker_id, edits)

  async def restore_styles(self, marker_id: str, previous: str | None) -> bool:
    return await self._call("restoreStyles", marker_id, previous)

  async def cleanup(self, token: str) -> int:
    return await self._call("cleanup", token)
