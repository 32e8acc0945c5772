"""
Skill configuration.

Read from `config.json` in the skill data dir; environment variables win
over file values.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel

ENV_CDP_ENDPOINT = "INSPECTOR_CDP_ENDPOINT"
ENV_HEADLESS = "INSPECTOR_HEADLESS"

_FALSY = {"0", "false", "no", "off"}


class InspectorConfig(BaseModel):
  headless: bool = True
  # only chromium speaks CDP
  browser_type: Literal["chromium"] = "chromium"
  cdp_endpoint: str | None = None
  viewport_width: int = 1280
  viewport_height: int = 1024
  navigation_timeout: int = 30000
  wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "load"

  @classmethod
  def from_sources(
    cls, raw_json: str | None = None, env: Mapping[str, str] | None = None
  ) -> InspectorConfig:
    """Build a config from optional JSON text plus environment overrides."""
    env = os.environ if env is None else env
    data: dict[str, Any] = {}
    if raw_json:
      loaded = json.loads(raw_json)
      if isinstance(loaded, dict):
        data.update(loaded)

    endpoint = env.get(ENV_CDP_ENDPOINT)
    if endpoint:
      data["cdp_endpoint"] = endpoint
    headless = env.get(ENV_HEADLESS)
    if headless:
      data["headless"] = headless.strip().lower() not in _FALSY
    return cls.model_validate(data)
