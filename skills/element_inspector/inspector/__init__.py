"""Inspection pipeline: geometry, styles, viewport, annotation, relationships."""

from __future__ import annotations

from .orchestrator import ElementInspector, inspect_on_connection

__all__ = ["ElementInspector", "inspect_on_connection"]
