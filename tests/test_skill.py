"""Tests for the skill definition and its lifecycle hooks."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from conftest import FakeConnection, FakeLocator, styled_element
from dev.harness.mock_context import MockContextOptions, create_mock_context
from skills.element_inspector.client import browser_client
from skills.element_inspector.client.browser_client import BrowserClient, get_client
from skills.element_inspector.handlers import inspect as inspect_handler
from skills.element_inspector.skill import skill


@pytest.fixture
def fake_browser(monkeypatch):
  """Keep BrowserClient from launching anything."""
  calls: list[str] = []

  async def start(self):
    calls.append("start")
    page = SimpleNamespace(url="about:blank")
    self.browser = SimpleNamespace(contexts=[SimpleNamespace(pages=[page])])

  async def stop(self):
    calls.append("stop")
    self.browser = None

  monkeypatch.setattr(BrowserClient, "start", start)
  monkeypatch.setattr(BrowserClient, "stop", stop)
  monkeypatch.delenv("INSPECTOR_CDP_ENDPOINT", raising=False)
  monkeypatch.delenv("INSPECTOR_HEADLESS", raising=False)
  yield calls
  browser_client.clear_client()


class TestDefinition:
  def test_exposes_inspect_element(self):
    assert skill.name == "element-inspector"
    tool = skill.get_tool("inspect_element")
    assert tool is not None
    assert tool.definition.parameters["required"] == ["css_selector", "url"]

  def test_hooks_are_wired(self):
    assert skill.hooks is not None
    assert skill.hooks.on_load is not None
    assert skill.hooks.on_unload is not None


class TestLifecycle:
  async def test_load_with_defaults(self, fake_browser):
    ctx, probe = create_mock_context()
    await skill.hooks.on_load(ctx)
    assert fake_browser == ["start"]
    assert probe.get_state() == {"browser_running": True, "cdp_endpoint": ""}
    assert get_client().config.headless

  async def test_load_reads_config_json(self, fake_browser):
    config = {"headless": False, "viewport_width": 800, "cdp_endpoint": "http://127.0.0.1:9222"}
    ctx, probe = create_mock_context(
      MockContextOptions(initial_data={"config.json": json.dumps(config)})
    )
    await skill.hooks.on_load(ctx)
    client = get_client()
    assert not client.config.headless
    assert client.config.viewport_width == 800
    assert probe.get_state()["cdp_endpoint"] == "http://127.0.0.1:9222"

  async def test_env_overrides_config_json(self, fake_browser, monkeypatch):
    monkeypatch.setenv("INSPECTOR_CDP_ENDPOINT", "http://env:9222")
    ctx, _ = create_mock_context(
      MockContextOptions(initial_data={"config.json": '{"cdp_endpoint": "http://file:9222"}'})
    )
    await skill.hooks.on_load(ctx)
    assert get_client().config.cdp_endpoint == "http://env:9222"

  async def test_failed_start_is_reported_in_state(self, fake_browser, monkeypatch):
    async def broken_start(self):
      raise RuntimeError("no display")

    monkeypatch.setattr(BrowserClient, "start", broken_start)
    ctx, probe = create_mock_context()
    await skill.hooks.on_load(ctx)
    assert probe.get_state()["browser_running"] is False

  async def test_status_and_unload(self, fake_browser):
    ctx, _ = create_mock_context()
    await skill.hooks.on_load(ctx)
    status = await skill.hooks.on_status(ctx)
    assert status["status"] == "ready"
    assert status["pages"] == ["about:blank"]

    await skill.hooks.on_unload(ctx)
    assert fake_browser == ["start", "stop"]
    status = await skill.hooks.on_status(ctx)
    assert status["status"] == "not_initialized"

  async def test_unload_without_load(self, fake_browser):
    ctx, _ = create_mock_context()
    await skill.hooks.on_unload(ctx)
    assert fake_browser == []


class TestExecute:
  async def test_image_is_bridged_as_base64(self, monkeypatch):
    connection = FakeConnection([styled_element({"h1"}, x=10, y=10, width=400, height=60)])

    class Client(FakeLocator):
      is_running = True

    monkeypatch.setattr(inspect_handler, "ensure_client", lambda: Client(connection))
    tool = skill.get_tool("inspect_element")
    result = await tool.execute({"css_selector": "h1", "url": "http://localhost:5173"})
    assert not result.is_error
    assert result.content == "Inspected element: h1"
    assert len(result.images) == 1
    assert result.images[0].mime_type == "image/png"
    assert result.data["box_model"]["border"]["width"] == 400

  async def test_errors_carry_no_image(self):
    tool = skill.get_tool("inspect_element")
    result = await tool.execute({"css_selector": "h1"})
    assert result.is_error
    assert result.images == []
