"""
Burns box-model overlays into a captured screenshot.

Per element, outermost first: margin outline (1px), border outline (2px),
padding outline (1px), translucent content fill with a 2px outline. The
first element then gets centre rulers on top of everything. Every layer
is alpha-blended onto the image on its own, so later layers cover earlier
ones where edges meet. Pixels outside the image are skipped.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageChops, ImageDraw

from .models import BoxModel, Rect

log = logging.getLogger("skill.element_inspector.annotator")

RGBA = tuple[int, int, int, int]

PALETTE: tuple[tuple[int, int, int], ...] = (
  (111, 168, 220),  # blue
  (147, 196, 125),  # green
  (255, 229, 153),  # yellow
  (246, 178, 107),  # orange
  (220, 111, 168),  # purple
)

RULER_COLOR: RGBA = (255, 0, 128, 200)

MARGIN_STROKE = 1
BORDER_STROKE = 2
PADDING_STROKE = 1
CONTENT_STROKE = 2
RULER_STROKE = 1


def palette_color(index: int) -> tuple[int, int, int]:
  return PALETTE[index % len(PALETTE)]


def _with_alpha(rgb: tuple[int, int, int], alpha: float) -> RGBA:
  return (rgb[0], rgb[1], rgb[2], round(alpha * 255))


def alpha_over(background: Image.Image, layer: Image.Image) -> Image.Image:
  """result = fg*a + bg*(1-a) per channel; alpha = max(alpha_fg, alpha_bg)."""
  mask = layer.getchannel("A")
  blended = Image.composite(layer, background, mask)
  blended.putalpha(ImageChops.lighter(background.getchannel("A"), mask))
  return blended


def _pixel_box(rect: Rect, image: Image.Image) -> tuple[int, int, int, int] | None:
  """Inclusive pixel bounds of a rect, or None if nothing lands on the image."""
  x0 = round(rect.x)
  y0 = round(rect.y)
  x1 = round(rect.x + rect.width) - 1
  y1 = round(rect.y + rect.height) - 1
  if x1 < x0 or y1 < y0:
    return None
  if x1 < 0 or y1 < 0 or x0 >= image.width or y0 >= image.height:
    return None
  return (x0, y0, x1, y1)


def _layer(image: Image.Image) -> tuple[Image.Image, ImageDraw.ImageDraw]:
  layer = Image.new("RGBA", image.size, (0, 0, 0, 0))
  return layer, ImageDraw.Draw(layer)


def draw_outline(image: Image.Image, rect: Rect, color: RGBA, stroke: int) -> Image.Image:
  bounds = _pixel_box(rect, image)
  if bounds is None:
    return image
  layer, draw = _layer(image)
  draw.rectangle(bounds, outline=color, width=stroke)
  return alpha_over(image, layer)


def fill_rect(image: Image.Image, rect: Rect, color: RGBA) -> Image.Image:
  bounds = _pixel_box(rect, image)
  if bounds is None:
    return image
  layer, draw = _layer(image)
  draw.rectangle(bounds, fill=color)
  return alpha_over(image, layer)


def draw_rulers(image: Image.Image, rect: Rect, color: RGBA = RULER_COLOR) -> Image.Image:
  cx, cy = rect.center
  px, py = round(cx), round(cy)
  layer, draw = _layer(image)
  drew = False
  if 0 <= px < image.width:
    draw.line([(px, 0), (px, image.height - 1)], fill=color, width=RULER_STROKE)
    drew = True
  if 0 <= py < image.height:
    draw.line([(0, py), (image.width - 1, py)], fill=color, width=RULER_STROKE)
    drew = True
  return alpha_over(image, layer) if drew else image


def draw_box_model(image: Image.Image, box: BoxModel, rgb: tuple[int, int, int]) -> Image.Image:
  image = draw_outline(image, box.margin, _with_alpha(rgb, 0.6), MARGIN_STROKE)
  image = draw_outline(image, box.border, _with_alpha(rgb, 0.9), BORDER_STROKE)
  image = draw_outline(image, box.padding, _with_alpha(rgb, 0.75), PADDING_STROKE)
  image = fill_rect(image, box.content, _with_alpha(rgb, 0.3))
  return draw_outline(image, box.content, _with_alpha(rgb, 0.9), CONTENT_STROKE)


def render(image: Image.Image, boxes: list[BoxModel]) -> Image.Image:
  """Draw every box in its palette colour, then rulers for the first one."""
  for index, box in enumerate(boxes):
    if box.space != "screenshot":
      raise ValueError(f"overlay boxes must be in screenshot space, got {box.space}")
    image = draw_box_model(image, box, palette_color(index))
  if boxes:
    image = draw_rulers(image, boxes[0].border)
  return image


def annotate_screenshot(screenshot: bytes, boxes: list[BoxModel]) -> bytes:
  """
  Return PNG bytes with overlays burned in.

  If drawing fails the input bytes are returned unchanged.
  """
  try:
    with Image.open(io.BytesIO(screenshot)) as source:
      image = source.convert("RGBA")
    image = render(image, boxes)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
  except Exception:
    log.warning("Screenshot annotation failed; returning raw capture", exc_info=True)
    return screenshot


def image_size(screenshot: bytes) -> tuple[int, int]:
  with Image.open(io.BytesIO(screenshot)) as image:
    return image.size
