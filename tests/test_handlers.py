"""Tests for the inspect_element handler, error formatting and MCP bridging."""

from __future__ import annotations

import base64
import contextlib
import json

import pytest
from mcp.server import Server
from mcp.types import ImageContent, TextContent

from conftest import FakeConnection, FakeLocator, styled_element
from skills.element_inspector import server as server_module
from skills.element_inspector.client.browser_client import BrowserClient, clear_client, get_client
from skills.element_inspector.errors import MultipleCandidates
from skills.element_inspector.handlers import DISPATCH, dispatch_tool
from skills.element_inspector.handlers import inspect as inspect_handler
from skills.element_inspector.helpers import ErrorCategory, ToolResult, log_and_format_error
from skills.element_inspector.inspector.styles import PROPERTY_GROUPS
from skills.element_inspector.server import to_mcp_content
from skills.element_inspector.tools import ALL_TOOLS

ARGS = {"css_selector": "#cta", "url": "http://localhost:3000/"}


class FakeClient(FakeLocator):
  is_running = True


@pytest.fixture
def tab(monkeypatch) -> FakeConnection:
  connection = FakeConnection(
    [styled_element({"#cta", ".card"}, x=40, y=40, width=300, height=200)]
  )
  monkeypatch.setattr(inspect_handler, "ensure_client", lambda: FakeClient(connection))
  return connection


class TestDispatch:
  def test_every_tool_has_a_handler(self):
    assert {tool.name for tool in ALL_TOOLS} == set(DISPATCH)

  async def test_unknown_tool(self):
    result = await dispatch_tool("inspect_everything", {})
    assert result.is_error
    assert "Unknown tool" in result.content


class TestInspectElement:
  async def test_single_element(self, tab):
    result = await dispatch_tool("inspect_element", ARGS)
    assert not result.is_error
    assert result.content == "Inspected element: #cta"
    assert result.image[:4] == b"\x89PNG"
    assert result.data["kind"] == "single"
    assert "screenshot" not in result.data
    assert tab.closed

  async def test_multi_summary(self, monkeypatch):
    connection = FakeConnection(
      [styled_element({".card"}, x=40 + i * 320, y=40, width=300, height=200) for i in range(2)]
    )
    monkeypatch.setattr(inspect_handler, "ensure_client", lambda: FakeClient(connection))
    result = await dispatch_tool("inspect_element", {**ARGS, "css_selector": ".card"})
    assert result.content == "Inspected 2 elements: .card"
    assert len(result.data["relationships"]) == 1
    assert result.data["relationships"][0]["from"] == ".card[0]"

  async def test_validation_error_is_reported(self, tab):
    result = await dispatch_tool("inspect_element", {"url": ARGS["url"]})
    assert result.is_error
    assert result.content == "Missing required parameter: css_selector"

  async def test_infinite_limit_is_a_validation_error(self, tab):
    result = await dispatch_tool("inspect_element", {**ARGS, "limit": "inf"})
    assert result.is_error
    assert result.content == "Parameter limit must be a finite number"

  async def test_inspector_error_is_reported(self, tab):
    result = await dispatch_tool("inspect_element", {**ARGS, "css_selector": ".nothing"})
    assert result.is_error
    assert result.content == "Element not found: .nothing"

  async def test_client_not_started(self, tab, monkeypatch):
    started = []

    class StoppedClient(FakeClient):
      is_running = False

      async def start(self):
        started.append(True)

    monkeypatch.setattr(inspect_handler, "ensure_client", lambda: StoppedClient(tab))
    result = await dispatch_tool("inspect_element", ARGS)
    assert started == [True]
    assert not result.is_error


class TestErrorFormatting:
  def test_tab_candidates_are_listed(self):
    error = MultipleCandidates(
      "acme",
      [{"title": "Dashboard", "url": "http://a/1"}, {"title": "", "url": "http://a/2"}],
    )
    result = log_and_format_error("inspect_element", error, ErrorCategory.TARGET)
    assert result.is_error
    assert 'Multiple tabs match "acme"' in result.content
    assert "Dashboard (http://a/1)" in result.content
    assert "(untitled) (http://a/2)" in result.content

  def test_unexpected_errors_get_a_code(self):
    result = log_and_format_error("inspect_element", KeyError("x"), ErrorCategory.INSPECT)
    assert result.content.startswith("An error occurred (code: INSPECT-ERR-")
    assert "KeyError" not in result.content

  def test_code_is_stable(self):
    first = log_and_format_error("inspect_element", RuntimeError("a"), "BROWSER")
    second = log_and_format_error("inspect_element", RuntimeError("b"), "BROWSER")
    assert first.content == second.content


class TestMcpContent:
  def test_text_image_json(self):
    result = ToolResult(content="Inspected element: a", image=b"png", data={"kind": "single"})
    blocks = to_mcp_content(result)
    assert [type(b) for b in blocks] == [TextContent, ImageContent, TextContent]
    assert base64.b64decode(blocks[1].data) == b"png"
    assert blocks[1].mimeType == "image/png"
    assert json.loads(blocks[2].text) == {"kind": "single"}

  def test_errors_are_text_only(self):
    blocks = to_mcp_content(ToolResult(content="Element not found: a", is_error=True))
    assert len(blocks) == 1
    assert blocks[0].text == "Element not found: a"


class TestSchema:
  def test_property_groups_accept_any_name(self):
    schema = ALL_TOOLS[0].inputSchema["properties"]["property_groups"]
    assert schema["items"] == {"type": "string"}
    assert all(group in schema["description"] for group in PROPERTY_GROUPS)

  async def test_unknown_group_is_ignored(self, tab):
    result = await dispatch_tool(
      "inspect_element", {**ARGS, "property_groups": ["colors", "invalid-group-name"]}
    )
    assert not result.is_error
    assert "colors" in result.data["grouped_styles"]
    assert "invalid-group-name" not in result.data["grouped_styles"]


@pytest.fixture
def unloaded(monkeypatch):
  """No skill load has run; BrowserClient starts without launching anything."""
  connection = FakeConnection([styled_element({"#cta"}, x=40, y=40, width=300, height=200)])
  started: list[bool] = []

  async def start(self):
    started.append(True)
    self.browser = object()

  async def stop(self):
    self.browser = None

  def open_target(self, url, target_title=None):
    return FakeLocator(connection).open_target(url, target_title)

  monkeypatch.setattr(BrowserClient, "start", start)
  monkeypatch.setattr(BrowserClient, "stop", stop)
  monkeypatch.setattr(BrowserClient, "open_target", open_target)
  monkeypatch.delenv("INSPECTOR_CDP_ENDPOINT", raising=False)
  clear_client()
  yield started
  clear_client()


class TestStandaloneServer:
  async def test_first_call_creates_and_starts_the_client(self, unloaded):
    result = await dispatch_tool("inspect_element", ARGS)
    assert not result.is_error
    assert result.content == "Inspected element: #cta"
    assert unloaded == [True]
    assert isinstance(get_client(), BrowserClient)

  async def test_later_calls_reuse_the_client(self, unloaded):
    await dispatch_tool("inspect_element", ARGS)
    client = get_client()
    result = await dispatch_tool("inspect_element", ARGS)
    assert not result.is_error
    assert get_client() is client
    assert unloaded == [True]

  async def test_run_server_builds_the_client_and_clears_it_on_exit(
    self, unloaded, monkeypatch
  ):
    seen: list[BrowserClient] = []

    @contextlib.asynccontextmanager
    async def stdio():
      yield object(), object()

    async def run(self, read_stream, write_stream, options, *args, **kwargs):
      seen.append(get_client())

    monkeypatch.setattr(server_module, "stdio_server", stdio)
    monkeypatch.setattr(Server, "run", run)
    await server_module.run_server()
    assert len(seen) == 1
    assert isinstance(seen[0], BrowserClient)
    with pytest.raises(RuntimeError):
      get_client()
