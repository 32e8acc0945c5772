"""
Pairwise spatial relationships between inspected elements.

O(n^2) over the border boxes; the element limit (max 20) caps this at
190 pairs.
"""

from __future__ import annotations

import math

from .models import Alignment, BoxModel, Distance, ElementRelationship, Rect

ALIGNMENT_TOLERANCE = 1


def _round(value: float) -> int:
  """Round half up, matching how the page reports rounded pixels."""
  return int(math.floor(value + 0.5))


def _gap(start1: float, end1: float, start2: float, end2: float) -> float:
  if end1 < start2:
    return start2 - end1
  if end2 < start1:
    return start1 - end2
  return 0.0


def _close(a: float, b: float) -> bool:
  return abs(a - b) <= ALIGNMENT_TOLERANCE


def pairwise_relationship(
  from_label: str, box1: Rect, to_label: str, box2: Rect
) -> ElementRelationship:
  c1x, c1y = box1.center
  c2x, c2y = box2.center
  return ElementRelationship(
    from_=from_label,
    to=to_label,
    distance=Distance(
      horizontal=_round(_gap(box1.x, box1.right, box2.x, box2.right)),
      vertical=_round(_gap(box1.y, box1.bottom, box2.y, box2.bottom)),
      center_to_center=_round(math.hypot(c2x - c1x, c2y - c1y)),
    ),
    alignment=Alignment(
      top=_close(box1.y, box2.y),
      bottom=_close(box1.bottom, box2.bottom),
      left=_close(box1.x, box2.x),
      right=_close(box1.right, box2.right),
      vertical_center=_close(c1y, c2y),
      horizontal_center=_close(c1x, c2x),
    ),
  )


def calculate_relationships(elements: list[tuple[str, BoxModel]]) -> list[ElementRelationship]:
  """One entry per unordered pair (i < j), using border boxes."""
  relationships: list[ElementRelationship] = []
  for i in range(len(elements)):
    for j in range(i + 1, len(elements)):
      label1, box1 = elements[i]
      label2, box2 = elements[j]
      relationships.append(pairwise_relationship(label1, box1.border, label2, box2.border))
  return relationships
