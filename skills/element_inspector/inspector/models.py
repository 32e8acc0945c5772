"""
Value types for one inspection call.

Every rectangle carries the coordinate space it was measured in so that a
transform between spaces is always an explicit step (see geometry.py).
None of these objects outlive the call that created them.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

CoordinateSpace = Literal["viewport", "page", "screenshot"]

PropertyGroup = Literal[
  "layout",
  "box",
  "flexbox",
  "grid",
  "typography",
  "colors",
  "visual",
  "positioning",
  "custom",
]


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class Rect(BaseModel):
  """Axis-aligned rectangle in a single coordinate space."""

  model_config = ConfigDict(frozen=True)

  x: float
  y: float
  width: float
  height: float
  space: CoordinateSpace = Field(default="viewport", exclude=True)

  @property
  def right(self) -> float:
    return self.x + self.width

  @property
  def bottom(self) -> float:
    return self.y + self.height

  @property
  def center(self) -> tuple[float, float]:
    return (self.x + self.width / 2, self.y + self.height / 2)

  @property
  def area(self) -> float:
    return self.width * self.height


class Edges(BaseModel):
  """Widths of the four sides of a margin, border or padding ring."""

  model_config = ConfigDict(frozen=True)

  top: float = 0
  right: float = 0
  bottom: float = 0
  left: float = 0


class ElementMetrics(BaseModel):
  """Raw measurement bundle reported by the page for one element."""

  model_config = ConfigDict(frozen=True)

  rect: Rect
  margin: Edges = Field(default_factory=Edges)
  padding: Edges = Field(default_factory=Edges)
  border: Edges = Field(default_factory=Edges)


class BoxModel(BaseModel):
  """content ⊆ padding ⊆ border ⊆ margin, all in the same space."""

  model_config = ConfigDict(frozen=True)

  content: Rect
  padding: Rect
  border: Rect
  margin: Rect

  @property
  def space(self) -> CoordinateSpace:
    return self.border.space


class ViewportInfo(BaseModel):
  model_config = ConfigDict(frozen=True, populate_by_name=True)

  width: float
  height: float
  device_scale_factor: float = Field(default=1.0, alias="deviceScaleFactor")
  mobile: bool = False
  scroll_x: float = Field(default=0.0, alias="scrollX")
  scroll_y: float = Field(default=0.0, alias="scrollY")

  @property
  def area(self) -> float:
    return self.width * self.height

  @property
  def center(self) -> tuple[float, float]:
    return (self.width / 2, self.height / 2)


# ---------------------------------------------------------------------------
# Styles & relationships
# ---------------------------------------------------------------------------


class CascadeRule(BaseModel):
  """One CSS rule matching an element, in the order the browser applied it."""

  selector: str
  source: str
  specificity: str
  properties: dict[str, str] = Field(default_factory=dict)
  inherited: bool = False


class Distance(BaseModel):
  horizontal: int
  vertical: int
  center_to_center: int


class Alignment(BaseModel):
  top: bool
  bottom: bool
  left: bool
  right: bool
  vertical_center: bool
  horizontal_center: bool


class ElementRelationship(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  from_: str = Field(alias="from")
  to: str
  distance: Distance
  alignment: Alignment


# ---------------------------------------------------------------------------
# Request / result
# ---------------------------------------------------------------------------


DEFAULT_PROPERTY_GROUPS: tuple[str, ...] = ("layout", "box", "typography", "colors")


class InspectRequest(BaseModel):
  """Validated arguments of one inspect_element call."""

  model_config = ConfigDict(frozen=True)

  css_selector: str
  url: str
  property_groups: tuple[str, ...] = DEFAULT_PROPERTY_GROUPS
  css_edits: dict[str, str] | None = None
  limit: int = 10
  auto_center: bool = True
  auto_zoom: bool = True
  zoom_factor: float | None = None
  target_title: str | None = None


class ViewportAdjustments(BaseModel):
  centered: bool = False
  zoom_factor: float = 1.0
  zoom_source: Literal["none", "auto", "explicit"] = "none"
  scroll_x: float = 0.0
  scroll_y: float = 0.0

  @property
  def changed(self) -> bool:
    return self.centered or self.zoom_factor != 1.0


class InspectionStats(BaseModel):
  total_properties: int = 0
  filtered_properties: int = 0
  total_rules: int = 0
  filtered_rules: int = 0
  matched_elements: int = 1

  def add(self, other: InspectionStats) -> None:
    self.total_properties += other.total_properties
    self.filtered_properties += other.filtered_properties
    self.total_rules += other.total_rules
    self.filtered_rules += other.filtered_rules


class ElementInspection(BaseModel):
  """Per-element style and geometry data (no screenshot)."""

  selector: str
  computed_styles: dict[str, str]
  grouped_styles: dict[str, dict[str, str]]
  cascade_rules: list[CascadeRule]
  box_model: BoxModel
  applied_edits: dict[str, str] | None = None


class InspectionResult(BaseModel):
  """Outcome for a selector that resolved to exactly one element."""

  kind: Literal["single"] = "single"
  screenshot: bytes = Field(exclude=True)
  computed_styles: dict[str, str]
  grouped_styles: dict[str, dict[str, str]]
  cascade_rules: list[CascadeRule]
  box_model: BoxModel
  applied_edits: dict[str, str] | None = None
  viewport_adjustments: ViewportAdjustments | None = None
  stats: InspectionStats


class MultiInspectionResult(BaseModel):
  """Outcome for a selector that resolved to several elements."""

  kind: Literal["multi"] = "multi"
  screenshot: bytes = Field(exclude=True)
  elements: list[ElementInspection]
  relationships: list[ElementRelationship]
  viewport_adjustments: ViewportAdjustments
  stats: InspectionStats


InspectionOutcome = InspectionResult | MultiInspectionResult


def result_payload(result: InspectionOutcome) -> dict[str, Any]:
  """JSON-ready view of a result, without the screenshot bytes."""
  return result.model_dump(by_alias=True, exclude_none=True)
