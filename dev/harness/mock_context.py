"""
Mock SkillContext for exercising skill hooks outside the runtime.

Usage:
    from dev.harness.mock_context import create_mock_context

    ctx, probe = create_mock_context()
    await skill.hooks.on_load(ctx)
    print(probe.get_state())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class MockContextOptions:
  """Options for creating a mock context."""

  initial_data: dict[str, str] = field(default_factory=dict)
  initial_state: dict[str, Any] = field(default_factory=dict)
  data_dir: str = "/mock/data"


@dataclass
class ContextProbe:
  """Read-only view of what a skill did to its mock context."""

  logs: list[str] = field(default_factory=list)
  data: dict[str, str] = field(default_factory=dict)
  state: dict[str, Any] = field(default_factory=dict)
  events: list[dict[str, Any]] = field(default_factory=list)

  def get_logs(self) -> list[str]:
    return list(self.logs)

  def get_data(self) -> dict[str, str]:
    return dict(self.data)

  def get_state(self) -> dict[str, Any]:
    return dict(self.state)

  def get_emitted_events(self) -> list[dict[str, Any]]:
    return list(self.events)


def create_mock_context(
  options: MockContextOptions | None = None,
) -> tuple[Any, ContextProbe]:
  """Create a mock SkillContext and a probe for test assertions."""
  opts = options or MockContextOptions()
  probe = ContextProbe(data=dict(opts.initial_data), state=dict(opts.initial_state))

  class _Context:
    data_dir = opts.data_dir

    async def read_data(self, filename: str) -> str:
      content = probe.data.get(filename)
      if content is None:
        raise FileNotFoundError(f"No such file: '{filename}'")
      return content

    async def write_data(self, filename: str, content: str) -> None:
      probe.data[filename] = content

    def log(self, message: str) -> None:
      probe.logs.append(message)

    def get_state(self) -> Any:
      return probe.state

    def set_state(self, partial: dict[str, Any]) -> None:
      probe.state.update(partial)

    def emit_event(self, event_name: str, data: Any) -> None:
      probe.events.append({"name": event_name, "data": data})

  return _Context(), probe
