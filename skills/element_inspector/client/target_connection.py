"""
CDP connection to a single page target.

Thin async wrapper over a Playwright CDPSession. Each method is one
protocol round trip; Playwright errors are re-raised as ProtocolError.
"""

from __future__ import annotations

import base64
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from ..errors import ProtocolError

if TYPE_CHECKING:
  from playwright.async_api import CDPSession, Page

  from ..inspector.models import Rect

log = logging.getLogger("skill.element_inspector.connection")

DOMAINS = ("DOM", "CSS", "Page")


class TargetConnection:
  """Protocol operations the inspector needs from one tab."""

  def __init__(self, session: CDPSession, page: Page | None = None) -> None:
    self._session = session
    self.page = page
    self._closed = False

  async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    try:
      result = await self._session.send(method, params or {})
    except PlaywrightError as exc:
      raise ProtocolError(method, exc.message) from exc
    log.debug("CDP %s ok", method)
    return result or {}

  async def enable_domains(self) -> None:
    for domain in DOMAINS:
      await self.send(f"{domain}.enable")

  async def get_document(self) -> int:
    """Return the root node id; raises ProtocolError if the root is missing."""
    doc = await self.send("DOM.getDocument", {"depth": 0})
    node_id = (doc.get("root") or {}).get("nodeId")
    if not node_id:
      raise ProtocolError("DOM.getDocument", "document root is empty or invalid")
    return node_id

  async def query_selector(self, root_id: int, selector: str) -> int | None:
    result = await self.send("DOM.querySelector", {"nodeId": root_id, "selector": selector})
    return result.get("nodeId") or None

  async def computed_style(self, node_id: int) -> list[dict[str, Any]]:
    result = await self.send("CSS.getComputedStyleForNode", {"nodeId": node_id})
    return result.get("computedStyle", [])

  async def matched_styles(self, node_id: int) -> dict[str, Any]:
    return await self.send("CSS.getMatchedStylesForNode", {"nodeId": node_id})

  async def evaluate(self, expression: str) -> Any:
    result = await self.send(
      "Runtime.evaluate",
      {"expression": expression, "returnByValue": True, "awaitPromise": True},
    )
    details = result.get("exceptionDetails")
    if details:
      description = (details.get("exception") or {}).get("description") or details.get("text")
      raise ProtocolError("Runtime.evaluate", str(description))
    return (result.get("result") or {}).get("value")

  async def capture_screenshot(self, clip: Rect | None = None, scale: float = 1.0) -> bytes:
    params: dict[str, Any] = {"format": "png"}
    if clip is not None:
      params["clip"] = {
        "x": clip.x,
        "y": clip.y,
        "width": clip.width,
        "height": clip.height,
        "scale": scale,
      }
      params["captureBeyondViewport"] = True
    result = await self.send("Page.captureScreenshot", params)
    data = result.get("data")
    return base64.b64decode(data) if data else b""

  async def set_page_scale(self, factor: float) -> None:
    await self.send("Emulation.setPageScaleFactor", {"pageScaleFactor": factor})

  async def close(self) -> None:
    if self._closed:
      return
    self._closed = True
    with contextlib.suppress(PlaywrightError):
      await self._session.detach()
