"""
Style classification, cascade conversion and value truncation.

Every CSS property maps to at most one group. A short list of essential
properties is always kept so filtered responses stay useful, and
requesting `layout` also surfaces the flexbox and grid groups.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .models import CascadeRule

log = logging.getLogger("skill.element_inspector.styles")

PROPERTY_GROUPS: tuple[str, ...] = (
  "layout",
  "box",
  "flexbox",
  "grid",
  "typography",
  "colors",
  "visual",
  "positioning",
  "custom",
)

ESSENTIAL_PROPERTIES = frozenset({"display", "position", "width", "height"})

GROUP_IMPLIES: dict[str, tuple[str, ...]] = {
  "layout": ("flexbox", "grid"),
}

MAX_VALUE_LENGTH = 100
MAX_FONT_FAMILIES = 3

_EXACT: dict[str, str] = {
  # layout
  "display": "layout",
  "float": "layout",
  "clear": "layout",
  "overflow": "layout",
  "overflow-x": "layout",
  "overflow-y": "layout",
  "box-sizing": "layout",
  "gap": "layout",
  "row-gap": "layout",
  "column-gap": "layout",
  "columns": "layout",
  "column-count": "layout",
  "column-width": "layout",
  "table-layout": "layout",
  "contain": "layout",
  "aspect-ratio": "layout",
  # box
  "width": "box",
  "height": "box",
  "min-width": "box",
  "min-height": "box",
  "max-width": "box",
  "max-height": "box",
  "margin": "box",
  "padding": "box",
  "border": "box",
  "border-width": "box",
  "border-style": "box",
  "border-radius": "box",
  # flexbox
  "order": "flexbox",
  "justify-content": "flexbox",
  "justify-items": "flexbox",
  "justify-self": "flexbox",
  "align-content": "flexbox",
  "align-items": "flexbox",
  "align-self": "flexbox",
  "place-content": "flexbox",
  "place-items": "flexbox",
  "place-self": "flexbox",
  # typography
  "line-height": "typography",
  "letter-spacing": "typography",
  "word-spacing": "typography",
  "white-space": "typography",
  "vertical-align": "typography",
  "word-break": "typography",
  "overflow-wrap": "typography",
  "word-wrap": "typography",
  "hyphens": "typography",
  "direction": "typography",
  "writing-mode": "typography",
  "tab-size": "typography",
  "quotes": "typography",
  # colors
  "color": "colors",
  "fill": "colors",
  "stroke": "colors",
  # visual
  "opacity": "visual",
  "visibility": "visual",
  "transform": "visual",
  "transform-origin": "visual",
  "filter": "visual",
  "backdrop-filter": "visual",
  "box-shadow": "visual",
  "text-shadow": "visual",
  "outline": "visual",
  "outline-width": "visual",
  "outline-style": "visual",
  "outline-offset": "visual",
  "cursor": "visual",
  "mix-blend-mode": "visual",
  "clip-path": "visual",
  "mask": "visual",
  "background": "visual",
  "background-image": "visual",
  "background-size": "visual",
  "background-position": "visual",
  "background-repeat": "visual",
  "background-clip": "visual",
  "background-origin": "visual",
  "background-attachment": "visual",
  "object-fit": "visual",
  "object-position": "visual",
  "pointer-events": "visual",
  # positioning
  "position": "positioning",
  "top": "positioning",
  "right": "positioning",
  "bottom": "positioning",
  "left": "positioning",
  "z-index": "positioning",
  "inset": "positioning",
}

# Checked in order after the exact table.
_PREFIXES: tuple[tuple[str, str], ...] = (
  ("inset-", "positioning"),
  ("margin-", "box"),
  ("padding-", "box"),
  ("border-", "box"),
  ("flex", "flexbox"),
  ("grid", "grid"),
  ("font", "typography"),
  ("text-", "typography"),
  ("transition", "visual"),
  ("animation", "visual"),
  ("transform-", "visual"),
  ("mask-", "visual"),
)


def property_group(name: str) -> str | None:
  """Return the single group a property belongs to, or None."""
  if name.startswith("--"):
    return "custom"
  if name.endswith("-color") or name == "color":
    return "colors"
  group = _EXACT.get(name)
  if group is not None:
    return group
  for prefix, prefix_group in _PREFIXES:
    if name.startswith(prefix):
      return prefix_group
  return None


def expand_groups(requested: Iterable[str]) -> frozenset[str]:
  """Known groups implied by a request; unknown names are dropped."""
  groups: set[str] = set()
  for name in requested:
    if name not in PROPERTY_GROUPS:
      continue
    groups.add(name)
    groups.update(GROUP_IMPLIES.get(name, ()))
  return frozenset(groups)


def should_include(name: str, groups: frozenset[str]) -> bool:
  if name in ESSENTIAL_PROPERTIES:
    return True
  group = property_group(name)
  return group is not None and group in groups


def truncate(prop: str, value: str) -> str:
  """Bound a property value's length, keeping its leading signal."""
  if prop == "font-family":
    fonts = [f.strip() for f in value.split(",")]
    if len(fonts) > MAX_FONT_FAMILIES:
      return ", ".join(fonts[:MAX_FONT_FAMILIES]) + ", ..."
  if len(value) <= MAX_VALUE_LENGTH:
    return value
  return value[: MAX_VALUE_LENGTH - 3] + "..."


def filter_styles(
  styles: dict[str, str], requested: Iterable[str], include_all: bool = False
) -> dict[str, str]:
  if include_all:
    return dict(styles)
  groups = expand_groups(requested)
  return {
    name: truncate(name, value) for name, value in styles.items() if should_include(name, groups)
  }


def categorize(styles: dict[str, str]) -> dict[str, dict[str, str]]:
  """Split a flat property map into non-empty groups, in taxonomy order."""
  grouped: dict[str, dict[str, str]] = {}
  for name, value in styles.items():
    group = property_group(name)
    if group is None:
      continue
    grouped.setdefault(group, {})[name] = value
  return {g: grouped[g] for g in PROPERTY_GROUPS if g in grouped}


def classify(styles: dict[str, str], requested: Iterable[str]) -> dict[str, dict[str, str]]:
  return categorize(filter_styles(styles, requested))


def filter_rules(
  rules: list[CascadeRule], requested: Iterable[str], include_all: bool = False
) -> list[CascadeRule]:
  """Drop user-agent rules and properties outside the requested groups."""
  if include_all:
    return list(rules)
  groups = expand_groups(requested)
  filtered: list[CascadeRule] = []
  for rule in rules:
    if rule.source == "user-agent":
      continue
    props = {
      name: truncate(name, value)
      for name, value in rule.properties.items()
      if should_include(name, groups)
    }
    if props:
      filtered.append(rule.model_copy(update={"properties": props}))
  return filtered


# ---------------------------------------------------------------------------
# Specificity
# ---------------------------------------------------------------------------

_LEGACY_PSEUDO_ELEMENTS = frozenset({"before", "after", "first-line", "first-letter"})
_MAX_OF_ARGUMENTS = frozenset({"is", "not", "has", "matches", "-webkit-any", "-moz-any"})


def _read_ident(selector: str, i: int) -> tuple[str, int]:
  start = i
  while i < len(selector):
    ch = selector[i]
    if ch == "\\" and i + 1 < len(selector):
      i += 2
    elif ch.isalnum() or ch in "-_" or ord(ch) > 127:
      i += 1
    else:
      break
  return selector[start:i], i


def _skip_brackets(selector: str, i: int, open_ch: str, close_ch: str) -> int:
  """Return the index just past the bracket group starting at `i`."""
  depth = 0
  quote: str | None = None
  while i < len(selector):
    ch = selector[i]
    if quote:
      if ch == "\\":
        i += 1
      elif ch == quote:
        quote = None
    elif ch in "\"'":
      quote = ch
    elif ch == open_ch:
      depth += 1
    elif ch == close_ch:
      depth -= 1
      if depth == 0:
        return i + 1
    i += 1
  return i


def _split_top_level(selector: str) -> list[str]:
  parts: list[str] = []
  depth = 0
  quote: str | None = None
  start = 0
  for i, ch in enumerate(selector):
    if quote:
      if ch == quote:
        quote = None
    elif ch in "\"'":
      quote = ch
    elif ch in "([":
      depth += 1
    elif ch in ")]":
      depth -= 1
    elif ch == "," and depth == 0:
      parts.append(selector[start:i])
      start = i + 1
  parts.append(selector[start:])
  return [p.strip() for p in parts if p.strip()]


def _score(selector: str) -> tuple[int, int, int]:
  ids = classes = elements = 0
  i = 0
  n = len(selector)
  while i < n:
    ch = selector[i]
    if ch == "#":
      ident, i = _read_ident(selector, i + 1)
      ids += 1 if ident else 0
    elif ch == ".":
      ident, i = _read_ident(selector, i + 1)
      classes += 1 if ident else 0
    elif ch == "[":
      i = _skip_brackets(selector, i, "[", "]")
      classes += 1
    elif ch == ":":
      if selector.startswith("::", i):
        _, i = _read_ident(selector, i + 2)
        if i < n and selector[i] == "(":
          i = _skip_brackets(selector, i, "(", ")")
        elements += 1
        continue
      name, i = _read_ident(selector, i + 1)
      name = name.lower()
      argument = None
      if i < n and selector[i] == "(":
        end = _skip_brackets(selector, i, "(", ")")
        argument = selector[i + 1 : end - 1]
        i = end
      if name in _LEGACY_PSEUDO_ELEMENTS:
        elements += 1
      elif name == "where":
        pass
      elif name in _MAX_OF_ARGUMENTS and argument is not None:
        a, b, c = max((_score(part) for part in _split_top_level(argument)), default=(0, 0, 0))
        ids, classes, elements = ids + a, classes + b, elements + c
      elif name in ("nth-child", "nth-last-child") and argument and " of " in argument:
        classes += 1
        _, of_selector = argument.split(" of ", 1)
        a, b, c = max((_score(part) for part in _split_top_level(of_selector)), default=(0, 0, 0))
        ids, classes, elements = ids + a, classes + b, elements + c
      else:
        classes += 1
    elif ch.isalpha() or ch in "_-" or ord(ch) > 127:
      ident, i = _read_ident(selector, i)
      if i < n and selector[i] == "|":
        # namespace prefix: ns|tag
        i += 1
        continue
      elements += 1 if ident else 0
    else:
      # combinators, whitespace, '*'
      i += 1
  return ids, classes, elements


def compute_specificity(selector: str) -> str:
  """Specificity as "inline,ids,classes,elements"; inline is always 0 here."""
  parts = _split_top_level(selector or "")
  if not parts:
    return "0,0,0,0"
  ids, classes, elements = max(_score(part) for part in parts)
  return f"0,{ids},{classes},{elements}"


# ---------------------------------------------------------------------------
# Protocol payload conversion
# ---------------------------------------------------------------------------


def convert_computed_styles(computed: list[dict[str, Any]]) -> dict[str, str]:
  return {entry["name"]: entry.get("value", "") for entry in computed if entry.get("name")}


def _rule_properties(style: dict[str, Any]) -> dict[str, str]:
  props: dict[str, str] = {}
  for prop in style.get("cssProperties", []):
    if prop.get("disabled"):
      continue
    name = prop.get("name")
    value = prop.get("value")
    if name and value:
      props[name] = value
  return props


def _rule_source(rule: dict[str, Any], fallback: str) -> str:
  if rule.get("origin") == "user-agent":
    return "user-agent"
  if rule.get("styleSheetId"):
    return f"stylesheet:{rule['styleSheetId']}"
  return fallback


def _convert_rule_match(
  match: dict[str, Any], fallback: str, inherited: bool
) -> CascadeRule | None:
  rule = match.get("rule") or {}
  style = rule.get("style")
  if not style:
    return None
  selectors = [s.get("text", "") for s in (rule.get("selectorList") or {}).get("selectors", [])]
  indices = match.get("matchingSelectors") or []
  matching = [selectors[i] for i in indices if 0 <= i < len(selectors)]
  # most specific of the selectors that matched
  scored = ", ".join(matching or selectors[:1])
  return CascadeRule(
    selector=", ".join(selectors) or fallback,
    source=_rule_source(rule, fallback),
    specificity=compute_specificity(scored),
    properties=_rule_properties(style),
    inherited=inherited,
  )


def convert_cascade_rules(matched: dict[str, Any]) -> list[CascadeRule]:
  """
  Flatten a matched-styles payload into rules in cascade order.

  Own rules come lowest precedence first, then the inline style, then
  rules inherited from ancestors.
  """
  rules: list[CascadeRule] = []

  for match in matched.get("matchedCSSRules") or []:
    rule = _convert_rule_match(match, "inline", inherited=False)
    if rule is not None:
      rules.append(rule)

  inline = matched.get("inlineStyle")
  if inline:
    props = _rule_properties(inline)
    if props:
      rules.append(
        CascadeRule(
          selector="element.style",
          source="inline",
          specificity="1,0,0,0",
          properties=props,
        )
      )

  for entry in matched.get("inherited") or []:
    for match in entry.get("matchedCSSRules") or []:
      rule = _convert_rule_match(match, "inherited", inherited=True)
      if rule is not None:
        rules.append(rule)

  log.debug("Converted %d cascade rules", len(rules))
  return rules
