"""
Box-model derivation and coordinate transforms.

Page measurements arrive in viewport (CSS px) space. Screenshots arrive in
device pixels and may be clipped to a region given in page space, so
overlay placement needs: viewport -> page (add scroll), then scale to
image pixels, then remove the clip origin.
"""

from __future__ import annotations

from ..errors import CoordinateSpaceError
from .models import BoxModel, CoordinateSpace, Edges, ElementMetrics, Rect

SCALE_EPSILON = 0.01


def expand(rect: Rect, edges: Edges) -> Rect:
  return Rect(
    x=rect.x - edges.left,
    y=rect.y - edges.top,
    width=max(0.0, rect.width + edges.left + edges.right),
    height=max(0.0, rect.height + edges.top + edges.bottom),
    space=rect.space,
  )


def shrink(rect: Rect, edges: Edges) -> Rect:
  """Inset a rect; sizes clamp at zero for inconsistent measurements."""
  return Rect(
    x=rect.x + edges.left,
    y=rect.y + edges.top,
    width=max(0.0, rect.width - edges.left - edges.right),
    height=max(0.0, rect.height - edges.top - edges.bottom),
    space=rect.space,
  )


def derive_box_model(metrics: ElementMetrics) -> BoxModel:
  """Build the four-layer box model; the measured rect is the border box."""
  border = metrics.rect
  padding = shrink(border, metrics.border)
  return BoxModel(
    content=shrink(padding, metrics.padding),
    padding=padding,
    border=border,
    margin=expand(border, metrics.margin),
  )


def bounding_rect(rects: list[Rect]) -> Rect:
  """Smallest rect enclosing all of `rects` (all must share one space)."""
  if not rects:
    raise ValueError("bounding_rect() needs at least one rect")
  _require_space(rects, rects[0].space)
  left = min(r.x for r in rects)
  top = min(r.y for r in rects)
  right = max(r.right for r in rects)
  bottom = max(r.bottom for r in rects)
  return Rect(x=left, y=top, width=right - left, height=bottom - top, space=rects[0].space)


def _map_box(box: BoxModel, fn) -> BoxModel:
  return BoxModel(
    content=fn(box.content),
    padding=fn(box.padding),
    border=fn(box.border),
    margin=fn(box.margin),
  )


def _require_space(rects: list[Rect], space: CoordinateSpace) -> None:
  for rect in rects:
    if rect.space != space:
      raise CoordinateSpaceError(f"expected {space} coordinates, got {rect.space}")


def viewport_to_page(box: BoxModel, scroll_x: float, scroll_y: float) -> BoxModel:
  """Translate a viewport-space box into document (page) coordinates."""
  if box.space != "viewport":
    raise CoordinateSpaceError(f"expected viewport coordinates, got {box.space}")
  return _map_box(
    box,
    lambda r: r.model_copy(update={"x": r.x + scroll_x, "y": r.y + scroll_y, "space": "page"}),
  )


def transform_for_screenshot(
  box: BoxModel,
  expected: tuple[float, float],
  actual: tuple[int, int],
  clip: Rect | None = None,
) -> BoxModel:
  """
  Map a box onto the pixels of a captured screenshot.

  Args:
    box: Box in viewport space, or in the clip's space when a clip was used
    expected: (width, height) requested in CSS px; the clip size if clipped
    actual: (width, height) of the decoded image
    clip: Capture region, if any

  The device-scale step runs before the clip-offset step.
  """
  if clip is not None and box.space != clip.space:
    raise CoordinateSpaceError(f"box is in {box.space} space but clip is in {clip.space} space")
  if clip is None and box.space != "viewport":
    raise CoordinateSpaceError(f"unclipped capture needs viewport coordinates, got {box.space}")

  exp_w, exp_h = expected
  scale_x = actual[0] / exp_w if exp_w else 1.0
  scale_y = actual[1] / exp_h if exp_h else 1.0
  if abs(scale_x - 1) <= SCALE_EPSILON and abs(scale_y - 1) <= SCALE_EPSILON:
    scale_x = scale_y = 1.0

  offset_x = clip.x * scale_x if clip is not None else 0.0
  offset_y = clip.y * scale_y if clip is not None else 0.0

  def to_image(rect: Rect) -> Rect:
    return Rect(
      x=max(0.0, rect.x * scale_x - offset_x) if clip is not None else rect.x * scale_x,
      y=max(0.0, rect.y * scale_y - offset_y) if clip is not None else rect.y * scale_y,
      width=rect.width * scale_x,
      height=rect.height * scale_y,
      space="screenshot",
    )

  return _map_box(box, to_image)
