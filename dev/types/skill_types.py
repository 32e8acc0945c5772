"""
Skill SDK types (pydantic v2).

The subset of the runtime's skill contract the element inspector needs:
tool schemas and results, the definition object exported by skill.py,
its lifecycle hooks, and the context handed to those hooks.

Usage:
    from dev.types.skill_types import SkillDefinition, SkillContext, SkillTool
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolDefinition(BaseModel):
    """Name, description and argument schema of one tool."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="snake_case tool name")
    description: str = Field(description="Shown to the model when it picks a tool")
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema of the arguments object",
    )


class ToolImage(BaseModel):
    """An image attached to a tool result."""

    model_config = ConfigDict(frozen=True)

    data: str = Field(description="Base64-encoded image bytes")
    mime_type: str = "image/png"


class ToolResult(BaseModel):
    """Text, optional images and an optional structured payload."""

    content: str
    is_error: bool = False
    images: list[ToolImage] = Field(default_factory=list)
    data: dict[str, Any] | None = Field(
        default=None, description="Structured payload accompanying the text"
    )


class SkillTool(BaseModel):
    """A tool definition bound to its coroutine."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    definition: ToolDefinition
    execute: Callable[..., Awaitable[ToolResult]] = Field(
        description="Coroutine taking the parsed arguments dict"
    )


# ---------------------------------------------------------------------------
# Hook context
# ---------------------------------------------------------------------------


@runtime_checkable
class SkillContext(Protocol):
    """What the host hands to each lifecycle hook."""

    data_dir: str

    async def read_data(self, filename: str) -> str: ...
    async def write_data(self, filename: str, content: str) -> None: ...
    def log(self, message: str) -> None: ...
    def get_state(self) -> Any: ...
    def set_state(self, partial: dict[str, Any]) -> None: ...
    def emit_event(self, event_name: str, data: Any) -> None: ...


LoadHook = Callable[[SkillContext], Awaitable[None]]
UnloadHook = Callable[[SkillContext], Awaitable[None]]
StatusHook = Callable[[SkillContext], Awaitable[dict[str, Any]]]


class SkillHooks(BaseModel):
    """Load, unload and status callbacks."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    on_load: Optional[LoadHook] = None
    on_unload: Optional[UnloadHook] = None
    on_status: StatusHook = Field(description="Reports browser and target state")


# ---------------------------------------------------------------------------
# Skill definition
# ---------------------------------------------------------------------------


class SkillDefinition(BaseModel):
    """Top-level skill definition: the `skill` object exported by skill.py."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(description="Kebab-case skill id")
    description: str = Field(description="One-line summary")
    version: str = "1.0.0"
    hooks: SkillHooks | None = None
    tools: list[SkillTool] = Field(default_factory=list)

    def get_tool(self, name: str) -> SkillTool | None:
        for tool in self.tools:
            if tool.definition.name == name:
                return tool
        return None
