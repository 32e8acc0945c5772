"""
Base browser client with initialization and lifecycle management.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys

from playwright.async_api import (
  Browser,
  BrowserContext,
  Page,
  Playwright,
  async_playwright,
)

from ..config import InspectorConfig

log = logging.getLogger("skill.element_inspector.client")

INSTALL_TIMEOUT_SECONDS = 600


class BrowserClientBase:
  """Owns the Playwright driver and the browser the inspector talks to."""

  def __init__(self, config: InspectorConfig | None = None):
    """
    Initialize browser client.

    Args:
      config: Launch/attach settings; defaults to a headless local chromium
    """
    self.config = config or InspectorConfig()
    self.playwright: Playwright | None = None
    self.browser: Browser | None = None
    self.context: BrowserContext | None = None
    self.attached = False

  @property
  def is_running(self) -> bool:
    return self.browser is not None

  async def start(self) -> None:
    """Attach to the configured CDP endpoint, or launch a browser."""
    if self.playwright is not None:
      return
    self.playwright = await async_playwright().start()
    launcher = getattr(self.playwright, self.config.browser_type)

    if self.config.cdp_endpoint:
      self.browser = await launcher.connect_over_cdp(self.config.cdp_endpoint)
      self.attached = True
      # an attached browser already has a default context with the user's tabs
      if self.browser.contexts:
        self.context = self.browser.contexts[0]
      else:
        self.context = await self.browser.new_context(viewport=self._viewport())
      log.info("Attached to browser at %s", self.config.cdp_endpoint)
      return

    try:
      self.browser = await launcher.launch(headless=self.config.headless)
    except Exception as e:
      error_msg = str(e).lower()
      if "executable doesn't exist" in error_msg or "browser" in error_msg:
        log.info("Browser not found, installing %s...", self.config.browser_type)
        try:
          await self._ensure_browsers_installed()
          self.browser = await launcher.launch(headless=self.config.headless)
          log.info("Browser launched successfully after installation")
        except Exception as install_error:
          log.error("Failed to install browser: %s", install_error)
          raise RuntimeError(
            f"Browser '{self.config.browser_type}' not installed and auto-installation failed. "
            f"Error: {install_error}. "
            f"Please install manually with: python -m playwright install "
            f"{self.config.browser_type}"
          ) from install_error
      else:
        raise

    self.context = await self.browser.new_context(viewport=self._viewport())
    log.info(
      "Browser started: %s (headless=%s)", self.config.browser_type, self.config.headless
    )

  def _viewport(self) -> dict[str, int]:
    return {"width": self.config.viewport_width, "height": self.config.viewport_height}

  async def _ensure_browsers_installed(self) -> None:
    """
    Download the browser binary with `playwright install`.

    Runs in a thread executor so the event loop stays responsive.
    """
    browser_type = self.config.browser_type
    log.info("Installing Playwright browser '%s' (this may take a few minutes)...", browser_type)

    def install() -> None:
      try:
        result = subprocess.run(
          [sys.executable, "-m", "playwright", "install", browser_type],
          capture_output=True,
          text=True,
          timeout=INSTALL_TIMEOUT_SECONDS,
        )
      except subprocess.TimeoutExpired as exc:
        raise RuntimeError(
          "Browser installation timed out. "
          "Please try installing manually: python -m playwright install " + browser_type
        ) from exc
      if result.returncode != 0:
        error_msg = result.stderr or result.stdout or "Unknown error"
        raise RuntimeError(f"Failed to install browser: {error_msg}")
      log.info("Playwright browser '%s' installed successfully", browser_type)
      if result.stdout:
        log.debug("Install output: %s", result.stdout)

    await asyncio.get_running_loop().run_in_executor(None, install)

  async def stop(self) -> None:
    """Close what we launched; detach from what we attached to."""
    if self.context and not self.attached:
      await self.context.close()
    if self.browser:
      await self.browser.close()
    if self.playwright:
      await self.playwright.stop()
    self.browser = None
    self.context = None
    self.playwright = None
    self.attached = False
    log.info("Browser stopped")

  def all_pages(self) -> list[Page]:
    if self.browser is None:
      raise RuntimeError("Browser not started. Call start() first.")
    return [page for context in self.browser.contexts for page in context.pages]
