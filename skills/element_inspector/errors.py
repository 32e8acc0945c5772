"""
Exception taxonomy for element inspection.

Messages are written for the calling agent: they name the selector (and,
for tab ambiguity, the candidate tabs) so the call can be retried with a
refined selector or target hint.
"""

from __future__ import annotations

from typing import Any


class InspectorError(Exception):
  """Base class for failures surfaced to the caller."""

  def __init__(self, message: str, *, selector: str | None = None) -> None:
    super().__init__(message)
    self.selector = selector


class InvalidSelector(InspectorError):
  def __init__(self, selector: str, reason: str | None = None) -> None:
    message = f"Invalid CSS selector: {selector}"
    if reason:
      message = f"{message} ({reason})"
    super().__init__(message, selector=selector)


class ElementNotFound(InspectorError):
  def __init__(self, selector: str) -> None:
    super().__init__(f"Element not found: {selector}", selector=selector)


class ElementNotVisible(InspectorError):
  def __init__(self, selector: str, index: int | None = None, count: int | None = None) -> None:
    if index is not None and count is not None and count > 1:
      where = f"element {index + 1} of {count}: {selector}"
    else:
      where = f"element: {selector}"
    super().__init__(
      f"Unable to measure {where}. Element may not be visible (e.g. display: none).",
      selector=selector,
    )
    self.index = index


class DocumentUnavailable(InspectorError):
  def __init__(self, attempts: int, cause: Exception | str | None = None) -> None:
    super().__init__(f"Failed to get document after {attempts} attempts: {cause}")
    self.attempts = attempts


class CaptureFailed(InspectorError):
  def __init__(self, selector: str | None = None) -> None:
    super().__init__(
      "Failed to capture screenshot. The page may not be loaded or visible.",
      selector=selector,
    )


class ProtocolError(InspectorError):
  """A remote debugging call failed."""

  def __init__(self, method: str, message: str) -> None:
    super().__init__(f"{method} failed: {message}")
    self.method = method


class _TabError(InspectorError):
  def __init__(self, message: str, available_tabs: list[dict[str, Any]]) -> None:
    super().__init__(message)
    self.available_tabs = available_tabs


class TargetNotFound(_TabError):
  def __init__(self, hint: str, available_tabs: list[dict[str, Any]]) -> None:
    super().__init__(
      f'Target not found: "{hint}". Please specify one of the available tabs.',
      available_tabs,
    )
    self.hint = hint


class MultipleCandidates(_TabError):
  def __init__(self, hint: str, available_tabs: list[dict[str, Any]]) -> None:
    super().__init__(
      f'Multiple tabs match "{hint}". Please specify target_title.',
      available_tabs,
    )
    self.hint = hint


class CoordinateSpaceError(ValueError):
  """Geometry was asked to combine rectangles from different spaces."""
