"""Shared fixtures: an in-memory browser tab that answers CDP calls."""

from __future__ import annotations

import contextlib
import io
import json
import re
from dataclasses import dataclass, field
from typing import Any

import pytest
from PIL import Image

from skills.element_inspector.errors import ProtocolError
from skills.element_inspector.inspector import orchestrator, viewport
from skills.element_inspector.inspector.page_helpers import (
  HELPERS_GLOBAL,
  HELPERS_SOURCE,
  HELPERS_VERSION,
  MARKER_ATTRIBUTE,
)

CALL_RE = re.compile(rf"^window\.{HELPERS_GLOBAL}\.(\w+)\(\.\.\.(.*)\)$", re.S)
MARKER_RE = re.compile(rf'^\[{MARKER_ATTRIBUTE}="(.+)"\]$')


def png_bytes(width: int, height: int, color=(255, 255, 255, 255)) -> bytes:
  buffer = io.BytesIO()
  Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
  return buffer.getvalue()


@dataclass
class FakeElement:
  """An element with a page-space border box and canned style payloads."""

  matches: set[str]
  x: float
  y: float
  width: float
  height: float
  margin: dict[str, float] = field(default_factory=dict)
  padding: dict[str, float] = field(default_factory=dict)
  border: dict[str, float] = field(default_factory=dict)
  computed: dict[str, str] = field(default_factory=dict)
  matched: dict[str, Any] = field(default_factory=dict)
  tag: str = "div"
  style_attr: str | None = None
  inline: dict[str, str] = field(default_factory=dict)
  marker: str | None = None

  @property
  def hidden(self) -> bool:
    return self.inline.get("display") == "none" or "display: none" in (self.style_attr or "")


def _edges(values: dict[str, float]) -> dict[str, float]:
  return {side: values.get(side, 0) for side in ("top", "right", "bottom", "left")}


class FakeConnection:
  """Stands in for TargetConnection; page helpers run against FakeElements."""

  def __init__(
    self,
    elements: list[FakeElement],
    width: int = 1280,
    height: int = 1024,
    document_failures: int = 0,
    blank_capture: bool = False,
  ) -> None:
    self.elements = elements
    self.width = width
    self.height = height
    self.scroll_x = 0.0
    self.scroll_y = 0.0
    self.document_failures = document_failures
    self.blank_capture = blank_capture
    self.page_scale = 1.0
    self.scale_history: list[float] = []
    self.captures: list[dict[str, Any]] = []
    self.helper_calls: list[str] = []
    self.document_calls = 0
    self.closed = False

  # -- protocol -------------------------------------------------------------

  async def enable_domains(self) -> None:
    return None

  async def get_document(self) -> int:
    self.document_calls += 1
    if self.document_calls <= self.document_failures:
      raise ProtocolError("DOM.getDocument", "document root is empty or invalid")
    return 1

  async def query_selector(self, root_id: int, selector: str) -> int | None:
    match = MARKER_RE.match(selector)
    if not match:
      return None
    for index, element in enumerate(self.elements):
      if element.marker == match.group(1):
        return 10 + index
    return None

  def _by_node(self, node_id: int) -> FakeElement:
    return self.elements[node_id - 10]

  async def computed_style(self, node_id: int) -> list[dict[str, Any]]:
    element = self._by_node(node_id)
    styles = {**element.computed, **element.inline}
    return [{"name": name, "value": value} for name, value in styles.items()]

  async def matched_styles(self, node_id: int) -> dict[str, Any]:
    return self._by_node(node_id).matched

  async def evaluate(self, expression: str) -> Any:
    if expression == HELPERS_SOURCE:
      return HELPERS_VERSION
    match = CALL_RE.match(expression)
    if not match:
      raise ProtocolError("Runtime.evaluate", f"unexpected expression: {expression[:40]}")
    name, args = match.group(1), json.loads(match.group(2))
    self.helper_calls.append(name)
    return getattr(self, f"_js_{name}")(*args)

  async def capture_screenshot(self, clip=None, scale: float = 1.0) -> bytes:
    self.captures.append({"clip": clip, "scale": scale})
    if self.blank_capture:
      return b""
    if clip is None:
      return png_bytes(self.width, self.height)
    return png_bytes(round(clip.width * scale), round(clip.height * scale))

  async def set_page_scale(self, factor: float) -> None:
    self.page_scale = factor
    self.scale_history.append(factor)

  async def close(self) -> None:
    self.closed = True

  # -- in-page helpers ------------------------------------------------------

  def _find(self, marker: str) -> FakeElement | None:
    return next((e for e in self.elements if e.marker == marker), None)

  def _scroll(self) -> dict[str, float]:
    return {"scrollX": self.scroll_x, "scrollY": self.scroll_y}

  def _js_mark(self, selector: str, limit: int, token: str) -> dict[str, Any]:
    if selector.startswith("!"):
      return {"error": "invalid_selector", "message": f"'{selector}' is not a valid selector"}
    found = [e for e in self.elements if selector in e.matches]
    described = []
    for index, element in enumerate(found[:limit]):
      element.marker = f"{token}_{index}"
      described.append({"index": index, "id": element.marker, "tag": element.tag})
    return {"total": len(found), "elements": described}

  def _js_metrics(self, marker: str) -> dict[str, Any] | None:
    element = self._find(marker)
    if element is None or element.hidden:
      return None
    return {
      "rect": {
        "x": element.x - self.scroll_x,
        "y": element.y - self.scroll_y,
        "width": element.width,
        "height": element.height,
      },
      "margin": _edges(element.margin),
      "padding": _edges(element.padding),
      "border": _edges(element.border),
    }

  def _js_viewport(self) -> dict[str, Any]:
    return {"width": self.width, "height": self.height, "deviceScaleFactor": 1, **self._scroll()}

  def _scroll_to_center(self, left: float, top: float, right: float, bottom: float) -> None:
    self.scroll_x = max(0.0, (left + right) / 2 - self.width / 2)
    self.scroll_y = max(0.0, (top + bottom) / 2 - self.height / 2)

  def _js_center(self, marker: str) -> dict[str, float]:
    element = self._find(marker)
    if element is not None:
      self._scroll_to_center(
        element.x, element.y, element.x + element.width, element.y + element.height
      )
    return self._scroll()

  def _js_centerGroup(self, markers: list[str]) -> dict[str, float]:
    found = [e for e in (self._find(m) for m in markers) if e is not None]
    if found:
      self._scroll_to_center(
        min(e.x for e in found),
        min(e.y for e in found),
        max(e.x + e.width for e in found),
        max(e.y + e.height for e in found),
      )
    return self._scroll()

  def _js_scrollTo(self, x: float, y: float) -> dict[str, float]:
    self.scroll_x, self.scroll_y = x, y
    return self._scroll()

  def _js_applyStyles(self, marker: str, edits: dict[str, str]) -> str | None:
    element = self._find(marker)
    if element is None:
      return None
    previous = element.style_attr
    element.inline.update(edits)
    element.style_attr = "; ".join(f"{k}: {v}" for k, v in element.inline.items())
    return previous

  def _js_restoreStyles(self, marker: str, previous: str | None) -> bool:
    element = self._find(marker)
    if element is None:
      return False
    element.inline.clear()
    element.style_attr = previous
    return True

  def _js_cleanup(self, token: str) -> int:
    removed = 0
    for element in self.elements:
      if element.marker and element.marker.startswith(token):
        element.marker = None
        removed += 1
    return removed


class FakeLocator:
  """TargetLocator that always hands out the same fake connection."""

  def __init__(self, connection: FakeConnection) -> None:
    self.connection = connection
    self.requests: list[tuple[str, str | None]] = []

  @contextlib.asynccontextmanager
  async def open_target(self, url: str, target_title: str | None = None):
    self.requests.append((url, target_title))
    try:
      yield self.connection
    finally:
      await self.connection.close()


def styled_element(
  matches: set[str], x: float, y: float, width: float, height: float
) -> FakeElement:
  return FakeElement(
    matches=matches,
    x=x,
    y=y,
    width=width,
    height=height,
    margin={"top": 8, "bottom": 8},
    padding={"left": 4, "right": 4},
    border={"top": 1, "right": 1, "bottom": 1, "left": 1},
    computed={
      "display": "block",
      "position": "relative",
      "width": f"{width}px",
      "height": f"{height}px",
      "margin-top": "8px",
      "color": "rgb(0, 0, 0)",
      "background-color": "rgb(255, 255, 255)",
      "font-family": "Inter, Helvetica, Arial, sans-serif, system-ui",
      "font-size": "14px",
      "opacity": "1",
      "--brand": "#ff0066",
      "cursor": "auto",
    },
    matched={
      "matchedCSSRules": [
        {
          "rule": {
            "origin": "user-agent",
            "selectorList": {"selectors": [{"text": "div"}]},
            "style": {"cssProperties": [{"name": "display", "value": "block"}]},
          },
          "matchingSelectors": [0],
        },
        {
          "rule": {
            "origin": "regular",
            "styleSheetId": "sheet-1",
            "selectorList": {"selectors": [{"text": "main .card"}, {"text": "#hero"}]},
            "style": {
              "cssProperties": [
                {"name": "margin-top", "value": "8px"},
                {"name": "opacity", "value": "1"},
                {"name": "color", "value": "red", "disabled": True},
              ]
            },
          },
          "matchingSelectors": [0],
        },
      ],
      "inherited": [
        {
          "matchedCSSRules": [
            {
              "rule": {
                "origin": "regular",
                "styleSheetId": "sheet-1",
                "selectorList": {"selectors": [{"text": "body"}]},
                "style": {"cssProperties": [{"name": "color", "value": "rgb(0, 0, 0)"}]},
              },
              "matchingSelectors": [0],
            }
          ]
        }
      ],
    },
  )


@pytest.fixture(autouse=True)
def no_settle_delays(monkeypatch):
  monkeypatch.setattr(viewport, "CENTER_SETTLE_SECONDS", 0)
  monkeypatch.setattr(viewport, "ZOOM_SETTLE_SECONDS", 0)
  monkeypatch.setattr(orchestrator, "DOCUMENT_BACKOFF_SECONDS", 0)
