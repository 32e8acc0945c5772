"""
Viewport decisions (centering, zoom) and the per-call device context.

Zoom, scroll, inline style edits and marker attributes are global tab
state. `device_session` records every change made during a call and
undoes all of it on exit, whichever step failed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .models import ViewportInfo

if TYPE_CHECKING:
  from ..client.target_connection import TargetConnection
  from .page_helpers import PageHelpers

log = logging.getLogger("skill.element_inspector.viewport")

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
CENTER_TOLERANCE = 0.3

CENTER_SETTLE_SECONDS = 0.1
ZOOM_SETTLE_SECONDS = 0.2


@dataclass(frozen=True)
class ZoomThresholds:
  zoom_in_below: float
  zoom_in_target: float
  zoom_out_above: float
  zoom_out_target: float


SINGLE_ELEMENT = ZoomThresholds(0.1, 0.4, 0.8, 0.6)
ELEMENT_GROUP = ZoomThresholds(0.2, 0.6, 0.9, 0.7)


def clamp_zoom(factor: float) -> float:
  return min(MAX_ZOOM, max(MIN_ZOOM, factor))


def should_center(center: tuple[float, float], viewport: ViewportInfo) -> bool:
  """True when the point sits more than 30% of the viewport off-centre."""
  vx, vy = viewport.center
  return (
    abs(center[0] - vx) > viewport.width * CENTER_TOLERANCE
    or abs(center[1] - vy) > viewport.height * CENTER_TOLERANCE
  )


def optimal_zoom(
  element_area: float, viewport_area: float, thresholds: ZoomThresholds = SINGLE_ELEMENT
) -> float:
  if viewport_area <= 0 or element_area <= 0:
    return 1.0
  coverage = element_area / viewport_area
  if coverage < thresholds.zoom_in_below:
    factor = min(MAX_ZOOM, math.sqrt(thresholds.zoom_in_target / coverage))
  elif coverage > thresholds.zoom_out_above:
    factor = max(MIN_ZOOM, math.sqrt(thresholds.zoom_out_target / coverage))
  else:
    return 1.0
  return round(factor, 2)


def resolve_zoom(
  explicit: float | None,
  auto_zoom: bool,
  element_area: float,
  viewport_area: float,
  thresholds: ZoomThresholds = SINGLE_ELEMENT,
) -> tuple[float, str]:
  """Pick the zoom to apply and where it came from ("explicit"/"auto"/"none")."""
  if explicit is not None:
    return round(clamp_zoom(explicit), 2), "explicit"
  if auto_zoom:
    factor = optimal_zoom(element_area, viewport_area, thresholds)
    if factor != 1.0:
      return factor, "auto"
  return 1.0, "none"


# ---------------------------------------------------------------------------
# Device context
# ---------------------------------------------------------------------------


@dataclass
class DeviceContext:
  """Tab state changed during one call, and how to put it back."""

  connection: TargetConnection
  helpers: PageHelpers
  marker_token: str
  initial_viewport: ViewportInfo | None = None
  zoom_factor: float = 1.0
  scrolled: bool = False
  style_snapshots: dict[str, str | None] = field(default_factory=dict)

  async def apply_edits(self, marker_id: str, edits: dict[str, str]) -> None:
    previous = await self.helpers.apply_styles(marker_id, edits)
    # keep the first snapshot if an element is edited twice
    self.style_snapshots.setdefault(marker_id, previous)

  async def center_on(self, marker_id: str) -> None:
    await self.helpers.center(marker_id)
    self.scrolled = True
    await asyncio.sleep(CENTER_SETTLE_SECONDS)

  async def center_on_group(self, marker_ids: list[str]) -> None:
    await self.helpers.center_group(marker_ids)
    self.scrolled = True
    await asyncio.sleep(CENTER_SETTLE_SECONDS)

  async def zoom(self, factor: float) -> None:
    self.zoom_factor = factor
    await self.connection.set_page_scale(factor)
    await asyncio.sleep(ZOOM_SETTLE_SECONDS)

  async def restore(self) -> None:
    """Undo everything; each step is attempted even if an earlier one fails."""
    for marker_id, previous in self.style_snapshots.items():
      try:
        await self.helpers.restore_styles(marker_id, previous)
      except Exception:
        log.warning("Failed to restore inline style for %s", marker_id, exc_info=True)
    self.style_snapshots.clear()

    if self.zoom_factor != 1.0:
      try:
        await self.connection.set_page_scale(1.0)
        self.zoom_factor = 1.0
      except Exception:
        log.warning("Failed to reset page zoom", exc_info=True)

    if self.scrolled and self.initial_viewport is not None:
      try:
        await self.helpers.scroll_to(self.initial_viewport.scroll_x, self.initial_viewport.scroll_y)
        self.scrolled = False
      except Exception:
        log.warning("Failed to restore scroll position", exc_info=True)

    try:
      removed = await self.helpers.cleanup(self.marker_token)
      log.debug("Removed %s marker attributes", removed)
    except Exception:
      log.warning("Failed to remove marker attributes", exc_info=True)


@contextlib.asynccontextmanager
async def device_session(
  connection: TargetConnection, helpers: PageHelpers, marker_token: str
) -> AsyncIterator[DeviceContext]:
  ctx = DeviceContext(connection=connection, helpers=helpers, marker_token=marker_token)
  try:
    yield ctx
  finally:
    await ctx.restore()
