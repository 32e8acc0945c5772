"""
Inspection orchestrator.

ResolveSelector -> MarkElements -> ResolveNodeHandles -> single or multi
path -> cleanup. All tab mutation happens inside a device session so it
is undone on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

from ..errors import (
  CaptureFailed,
  DocumentUnavailable,
  ElementNotFound,
  ElementNotVisible,
  InvalidSelector,
  ProtocolError,
)
from . import annotator, geometry, relationships, styles
from .models import (
  BoxModel,
  CascadeRule,
  ElementInspection,
  InspectionOutcome,
  InspectionResult,
  InspectionStats,
  InspectRequest,
  MultiInspectionResult,
  Rect,
  ViewportAdjustments,
  ViewportInfo,
)
from .page_helpers import PageHelpers, marker_selector
from .viewport import (
  ELEMENT_GROUP,
  SINGLE_ELEMENT,
  DeviceContext,
  ZoomThresholds,
  device_session,
  resolve_zoom,
  should_center,
)

if TYPE_CHECKING:
  from contextlib import AbstractAsyncContextManager

  from ..client.target_connection import TargetConnection

log = logging.getLogger("skill.element_inspector.orchestrator")

DOCUMENT_ATTEMPTS = 3
DOCUMENT_BACKOFF_SECONDS = 0.5


class TargetLocator(Protocol):
  def open_target(
    self, url: str, target_title: str | None = None
  ) -> AbstractAsyncContextManager[TargetConnection]: ...


async def get_document_with_retry(connection: TargetConnection) -> int:
  """Fetch the document root, retrying with linear backoff."""
  last_error: Exception | None = None
  for attempt in range(1, DOCUMENT_ATTEMPTS + 1):
    try:
      return await connection.get_document()
    except ProtocolError as exc:
      last_error = exc
      log.debug("DOM.getDocument attempt %d failed: %s", attempt, exc)
      if attempt < DOCUMENT_ATTEMPTS:
        await asyncio.sleep(DOCUMENT_BACKOFF_SECONDS * attempt)
  raise DocumentUnavailable(DOCUMENT_ATTEMPTS, last_error)


class ElementInspector:
  """Runs inspect_element calls against targets provided by a locator."""

  def __init__(self, locator: TargetLocator) -> None:
    self._locator = locator

  async def inspect(self, request: InspectRequest) -> InspectionOutcome:
    async with self._locator.open_target(request.url, request.target_title) as connection:
      return await inspect_on_connection(connection, request)


async def inspect_on_connection(
  connection: TargetConnection, request: InspectRequest
) -> InspectionOutcome:
  selector = request.css_selector
  await connection.enable_domains()
  helpers = PageHelpers(connection)
  await helpers.install()
  root_id = await get_document_with_retry(connection)

  token = f"_inspect_{uuid.uuid4().hex[:12]}"
  async with device_session(connection, helpers, token) as device:
    device.initial_viewport = await helpers.viewport()

    marked = await helpers.mark(selector, request.limit, token)
    if marked.get("error"):
      raise InvalidSelector(selector, marked.get("message"))
    elements = marked.get("elements") or []
    if not elements:
      raise ElementNotFound(selector)

    targets: list[tuple[str, int]] = []
    for info in elements:
      node_id = await connection.query_selector(root_id, marker_selector(info["id"]))
      if node_id:
        targets.append((info["id"], node_id))
    if not targets:
      raise ElementNotFound(selector)

    log.info("Inspecting %d of %d match(es) for %s", len(targets), marked.get("total", 0), selector)
    pipeline = _Pipeline(connection, helpers, device, request, marked.get("total", len(targets)))
    if len(targets) == 1:
      return await pipeline.single(*targets[0])
    return await pipeline.multi(targets)


class _Pipeline:
  def __init__(
    self,
    connection: TargetConnection,
    helpers: PageHelpers,
    device: DeviceContext,
    request: InspectRequest,
    total_matches: int,
  ) -> None:
    self.connection = connection
    self.helpers = helpers
    self.device = device
    self.request = request
    self.total_matches = total_matches

  @property
  def selector(self) -> str:
    return self.request.css_selector

  @property
  def edits(self) -> dict[str, str] | None:
    return self.request.css_edits or None

  # -- measuring ----------------------------------------------------------

  async def measure(
    self, marker_id: str, index: int | None = None, count: int | None = None
  ) -> BoxModel:
    metrics = await self.helpers.metrics(marker_id)
    if metrics is None:
      raise ElementNotVisible(self.selector, index, count)
    return geometry.derive_box_model(metrics)

  async def read_styles(
    self, node_id: int
  ) -> tuple[dict[str, str], dict[str, dict[str, str]], list[CascadeRule], InspectionStats]:
    groups = self.request.property_groups
    all_styles = styles.convert_computed_styles(await self.connection.computed_style(node_id))
    computed = styles.filter_styles(all_styles, groups)
    all_rules = styles.convert_cascade_rules(await self.connection.matched_styles(node_id))
    rules = styles.filter_rules(all_rules, groups)
    stats = InspectionStats(
      total_properties=len(all_styles),
      filtered_properties=len(computed),
      total_rules=len(all_rules),
      filtered_rules=len(rules),
      matched_elements=self.total_matches,
    )
    return computed, styles.categorize(computed), rules, stats

  # -- viewport -----------------------------------------------------------

  async def adjust_viewport(
    self,
    area: Rect,
    center_fn: Callable[[], Awaitable[None]],
    thresholds: ZoomThresholds,
  ) -> tuple[ViewportAdjustments, ViewportInfo]:
    """Centre first, then zoom; zoom is computed from post-centering state."""
    viewport = self.device.initial_viewport or await self.helpers.viewport()
    adjustments = ViewportAdjustments(scroll_x=viewport.scroll_x, scroll_y=viewport.scroll_y)

    if self.request.auto_center and should_center(area.center, viewport):
      await center_fn()
      viewport = await self.helpers.viewport()
      adjustments.centered = True
      adjustments.scroll_x = viewport.scroll_x
      adjustments.scroll_y = viewport.scroll_y

    factor, source = resolve_zoom(
      self.request.zoom_factor, self.request.auto_zoom, area.area, viewport.area, thresholds
    )
    if factor != 1.0:
      await self.device.zoom(factor)
    adjustments.zoom_factor = factor
    adjustments.zoom_source = source
    return adjustments, viewport

  # -- capture ------------------------------------------------------------

  async def capture(self, boxes: list[BoxModel], focus: Rect, viewport: ViewportInfo) -> bytes:
    """Capture, map boxes onto the image and burn in overlays."""
    zoom = self.device.zoom_factor
    clip: Rect | None = None
    if zoom != 1.0:
      width = viewport.width / zoom
      height = viewport.height / zoom
      cx, cy = focus.center
      clip = Rect(
        x=max(0.0, cx + viewport.scroll_x - width / 2),
        y=max(0.0, cy + viewport.scroll_y - height / 2),
        width=width,
        height=height,
        space="page",
      )
    raw = await self.connection.capture_screenshot(clip, scale=zoom)
    if not raw:
      raise CaptureFailed(self.selector)

    try:
      actual = annotator.image_size(raw)
      if clip is not None:
        expected = (clip.width, clip.height)
        placed = [
          geometry.transform_for_screenshot(
            geometry.viewport_to_page(box, viewport.scroll_x, viewport.scroll_y),
            expected,
            actual,
            clip,
          )
          for box in boxes
        ]
      else:
        expected = (viewport.width, viewport.height)
        placed = [geometry.transform_for_screenshot(box, expected, actual) for box in boxes]
    except Exception:
      log.warning("Could not map overlays onto screenshot; returning raw capture", exc_info=True)
      return raw
    return annotator.annotate_screenshot(raw, placed)

  # -- paths --------------------------------------------------------------

  async def single(self, marker_id: str, node_id: int) -> InspectionResult:
    if self.edits:
      await self.device.apply_edits(marker_id, self.edits)

    initial = await self.measure(marker_id)
    adjustments, viewport = await self.adjust_viewport(
      initial.border,
      lambda: self.device.center_on(marker_id),
      SINGLE_ELEMENT,
    )
    box = await self.measure(marker_id)
    computed, grouped, rules, stats = await self.read_styles(node_id)
    screenshot = await self.capture([box], box.border, viewport)

    return InspectionResult(
      screenshot=screenshot,
      computed_styles=computed,
      grouped_styles=grouped,
      cascade_rules=rules,
      box_model=box,
      applied_edits=dict(self.edits) if self.edits else None,
      viewport_adjustments=adjustments if adjustments.changed else None,
      stats=stats,
    )

  async def multi(self, targets: list[tuple[str, int]]) -> MultiInspectionResult:
    count = len(targets)
    marker_ids = [marker_id for marker_id, _ in targets]

    # First pass: edits and measurements drive one global viewport decision.
    initial: list[BoxModel] = []
    for index, marker_id in enumerate(marker_ids):
      if self.edits:
        await self.device.apply_edits(marker_id, self.edits)
      initial.append(await self.measure(marker_id, index, count))
    group = geometry.bounding_rect([box.border for box in initial])
    adjustments, viewport = await self.adjust_viewport(
      group,
      lambda: self.device.center_on_group(marker_ids),
      ELEMENT_GROUP,
    )

    # Second pass: final geometry and styles per element.
    inspections: list[ElementInspection] = []
    labelled: list[tuple[str, BoxModel]] = []
    totals = InspectionStats(matched_elements=self.total_matches)
    for index, (marker_id, node_id) in enumerate(targets):
      box = await self.measure(marker_id, index, count)
      computed, grouped, rules, stats = await self.read_styles(node_id)
      label = f"{self.selector}[{index}]"
      inspections.append(
        ElementInspection(
          selector=label,
          computed_styles=computed,
          grouped_styles=grouped,
          cascade_rules=rules,
          box_model=box,
          applied_edits=dict(self.edits) if self.edits else None,
        )
      )
      labelled.append((label, box))
      totals.add(stats)

    pairs = relationships.calculate_relationships(labelled)
    boxes = [box for _, box in labelled]
    focus = geometry.bounding_rect([box.border for box in boxes])
    screenshot = await self.capture(boxes, focus, viewport)

    return MultiInspectionResult(
      screenshot=screenshot,
      elements=inspections,
      relationships=pairs,
      viewport_adjustments=adjustments,
      stats=totals,
    )
