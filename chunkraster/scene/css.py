"""Effective style resolution for SVG element trees.

Computes the style values an element actually renders with, the way a
browser's computed style does, at the depth diagram SVGs need:

- presentation attributes, then stylesheet rules ordered by specificity and
  source order, then inline ``style`` declarations
- inheritance for inherited properties, initial values otherwise
- ``inherit``, ``initial``, ``unset`` and ``currentColor`` keywords
- CSS custom properties (``--name``) inherited down the tree and
  substituted into ``var()`` references

Selectors support type, ``*``, ``.class``, ``#id``, ``:root`` and their
compounds, joined by descendant or child (``>``) combinators. Rules with
anything else (attribute selectors, other pseudo-classes, at-rules) are
ignored.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Mapping

from .scene import local_name

logger = logging.getLogger(__name__)

INHERITED_PROPERTIES: frozenset[str] = frozenset({
    "fill",
    "fill-opacity",
    "fill-rule",
    "stroke",
    "stroke-opacity",
    "stroke-width",
    "stroke-dasharray",
    "stroke-dashoffset",
    "stroke-linecap",
    "stroke-linejoin",
    "stroke-miterlimit",
    "font",
    "font-family",
    "font-size",
    "font-weight",
    "font-style",
    "font-variant",
    "text-anchor",
    "letter-spacing",
    "word-spacing",
    "color",
    "visibility",
    "marker",
    "marker-start",
    "marker-mid",
    "marker-end",
    "paint-order",
})

INITIAL_VALUES: dict[str, str] = {
    "fill": "black",
    "fill-opacity": "1",
    "stroke": "none",
    "stroke-opacity": "1",
    "stroke-width": "1",
    "stroke-dasharray": "none",
    "stroke-dashoffset": "0",
    "stroke-linecap": "butt",
    "stroke-linejoin": "miter",
    "font-size": "16px",
    "font-weight": "normal",
    "font-style": "normal",
    "text-anchor": "start",
    "dominant-baseline": "auto",
    "alignment-baseline": "auto",
    "letter-spacing": "normal",
    "color": "black",
    "opacity": "1",
    "visibility": "visible",
    "display": "inline",
}

# Properties that may also be given as SVG presentation attributes
PRESENTATION_ATTRIBUTES: frozenset[str] = frozenset(
    (INHERITED_PROPERTIES | set(INITIAL_VALUES)) - {"font", "marker"}
)

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_RULE_RE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_COMPOUND_RE = re.compile(r"^(\*|[A-Za-z][\w-]*)?((?:[.#][\w-]+|:root)*)$")
_SIMPLE_RE = re.compile(r"[.#][\w-]+|:root")
_VAR_RE = re.compile(r"var\(\s*(--[\w-]+)\s*(?:,\s*((?:[^()]|\([^()]*\))*))?\)")

_MAX_VAR_DEPTH = 8


def parse_declarations(text: str) -> dict[str, str]:
    """Parse ``prop: value; ...`` into an ordered dict.

    Property names are lower-cased except custom properties, which are case
    sensitive. ``!important`` markers are dropped.
    """
    declarations: dict[str, str] = {}
    for decl in text.split(";"):
        if ":" not in decl:
            continue
        key, value = decl.split(":", 1)
        key = key.strip()
        if not key.startswith("--"):
            key = key.lower()
        value = re.sub(r"\s*!important\s*$", "", value.strip(), flags=re.IGNORECASE)
        if key and value:
            declarations[key] = value
    return declarations


def format_declarations(declarations: Mapping[str, str]) -> str:
    """Serialize declarations back to inline ``style`` syntax."""
    return "; ".join(f"{k}: {v}" for k, v in declarations.items())


def resolve_vars(text: str, variables: Mapping[str, str]) -> str:
    """Substitute ``var(--name)`` and ``var(--name, fallback)`` references.

    References to unknown names without a fallback are left verbatim so a
    caller can tell the value is still symbolic.
    """

    def _replace(match: re.Match[str]) -> str:
        name, fallback = match.group(1), match.group(2)
        value = variables.get(name)
        if value is not None and value.strip():
            return value.strip()
        if fallback is not None and fallback.strip():
            return fallback.strip()
        return match.group(0)

    for _ in range(_MAX_VAR_DEPTH):
        resolved = _VAR_RE.sub(_replace, text)
        if resolved == text:
            break
        text = resolved
    return text


@dataclass(frozen=True)
class _Compound:
    tag: str | None
    ids: tuple[str, ...]
    classes: tuple[str, ...]
    root: bool

    @property
    def specificity(self) -> tuple[int, int, int]:
        return (len(self.ids), len(self.classes) + int(self.root), int(self.tag is not None))


@dataclass
class StyleRule:
    """One selector of a stylesheet rule with its declarations."""

    selector: str
    parts: list[tuple[str, _Compound]]
    declarations: dict[str, str]
    order: int
    specificity: tuple[int, int, int] = field(init=False)

    def __post_init__(self) -> None:
        ids = classes = tags = 0
        for _, compound in self.parts:
            i, c, t = compound.specificity
            ids += i
            classes += c
            tags += t
        self.specificity = (ids, classes, tags)


def _parse_compound(text: str) -> _Compound | None:
    match = _COMPOUND_RE.match(text)
    if not match or not text:
        return None
    tag = match.group(1)
    ids: list[str] = []
    classes: list[str] = []
    root = False
    for simple in _SIMPLE_RE.findall(match.group(2)):
        if simple == ":root":
            root = True
        elif simple.startswith("#"):
            ids.append(simple[1:])
        else:
            classes.append(simple[1:])
    return _Compound(
        tag=None if tag in (None, "*") else tag.lower(),
        ids=tuple(ids),
        classes=tuple(classes),
        root=root,
    )


def parse_selector(selector: str) -> list[tuple[str, _Compound]] | None:
    """Split a selector into (combinator, compound) parts.

    The combinator of each part joins it to the previous part (" " for
    descendant, ">" for child). Returns None for unsupported selectors.
    """
    tokens = selector.replace(">", " > ").split()
    if not tokens:
        return None
    parts: list[tuple[str, _Compound]] = []
    combinator = " "
    for token in tokens:
        if token == ">":
            if not parts or combinator == ">":
                return None
            combinator = ">"
            continue
        compound = _parse_compound(token)
        if compound is None:
            return None
        parts.append((combinator, compound))
        combinator = " "
    if combinator == ">":
        return None
    return parts


def parse_stylesheet(css_text: str, start_order: int = 0) -> list[StyleRule]:
    """Parse stylesheet text into rules, one per supported selector."""
    rules: list[StyleRule] = []
    text = _COMMENT_RE.sub("", css_text)
    order = start_order
    for selector_text, body in _RULE_RE.findall(text):
        selector_text = selector_text.strip()
        if not selector_text or selector_text.startswith("@"):
            continue
        declarations = parse_declarations(body)
        if not declarations:
            continue
        for selector in (s.strip() for s in selector_text.split(",")):
            parts = parse_selector(selector)
            if parts is None:
                logger.debug(f"Skipping unsupported selector: {selector!r}")
                continue
            rules.append(StyleRule(selector, parts, declarations, order))
            order += 1
    return rules


class StyleResolver:
    """Computes effective styles for the elements of one SVG tree.

    Results are cached per element, so the tree must not be modified while a
    resolver is in use.

    Args:
        root: Root element of the tree
        theme: Custom properties inherited by the root (the editor theme)
    """

    def __init__(self, root: ET.Element, theme: Mapping[str, str] | None = None):
        self.root = root
        self.theme = dict(theme or {})
        self._parents: dict[ET.Element, ET.Element] = {
            child: parent for parent in root.iter() for child in parent
        }
        self.rules: list[StyleRule] = []
        for style_el in root.iter():
            if local_name(style_el.tag) == "style":
                css_text = "".join(style_el.itertext())
                self.rules.extend(parse_stylesheet(css_text, start_order=len(self.rules)))
        self._computed: dict[ET.Element, dict[str, str]] = {}
        self._variables: dict[ET.Element, dict[str, str]] = {}
        self._unresolved: dict[ET.Element, dict[str, str]] = {}

    def parent(self, element: ET.Element) -> ET.Element | None:
        return self._parents.get(element)

    # -------------------------------------------------------------------------
    # Selector matching
    # -------------------------------------------------------------------------

    def _compound_matches(self, element: ET.Element, compound: _Compound) -> bool:
        if compound.root and element is not self.root:
            return False
        if compound.tag is not None and local_name(element.tag).lower() != compound.tag:
            return False
        if compound.ids and any(element.get("id") != i for i in compound.ids):
            return False
        if compound.classes:
            names = set((element.get("class") or "").split())
            if not names.issuperset(compound.classes):
                return False
        return True

    def _matches(self, element: ET.Element, parts: list[tuple[str, _Compound]], i: int) -> bool:
        combinator, compound = parts[i]
        if not self._compound_matches(element, compound):
            return False
        if i == 0:
            return True
        ancestor = self.parent(element)
        if combinator == ">":
            return ancestor is not None and self._matches(ancestor, parts, i - 1)
        while ancestor is not None:
            if self._matches(ancestor, parts, i - 1):
                return True
            ancestor = self.parent(ancestor)
        return False

    def matching_rules(self, element: ET.Element) -> list[StyleRule]:
        """Rules that apply to ``element``, lowest precedence first."""
        matched = [r for r in self.rules if self._matches(element, r.parts, len(r.parts) - 1)]
        matched.sort(key=lambda r: (r.specificity, r.order))
        return matched

    # -------------------------------------------------------------------------
    # Cascade
    # -------------------------------------------------------------------------

    def declared_style(self, element: ET.Element) -> dict[str, str]:
        """Cascaded (not yet inherited or substituted) declarations."""
        declared: dict[str, str] = {}
        for name, value in element.attrib.items():
            if name in PRESENTATION_ATTRIBUTES and value.strip():
                declared[name] = value.strip()
        for rule in self.matching_rules(element):
            declared.update(rule.declarations)
        declared.update(parse_declarations(element.get("style") or ""))
        return declared

    def variables(self, element: ET.Element) -> dict[str, str]:
        """Custom properties in effect on ``element``."""
        if element not in self._variables:
            self.computed_style(element)
        return self._variables[element]

    def root_variables(self) -> dict[str, str]:
        """Custom properties in effect at the root (the computed theme)."""
        return self.variables(self.root)

    def unresolved_properties(self, element: ET.Element) -> dict[str, str]:
        """Declared values of ``element`` left with a ``var()`` that has no value.

        Such properties compute as ``unset``; the symbolic value is kept here
        only so callers can tell the declaration was dropped.
        """
        if element not in self._unresolved:
            self.computed_style(element)
        return self._unresolved[element]

    def computed_style(self, element: ET.Element) -> dict[str, str]:
        """Effective style values of ``element``.

        Keys are property names; unset non-inherited properties without an
        initial value are absent.
        """
        cached = self._computed.get(element)
        if cached is not None:
            return cached

        # Resolve ancestors first, iteratively, so deep trees don't recurse
        chain: list[ET.Element] = []
        node: ET.Element | None = element
        while node is not None and node not in self._computed:
            chain.append(node)
            node = self.parent(node)
        for node in reversed(chain):
            self._compute(node)
        return self._computed[element]

    def _compute(self, element: ET.Element) -> None:
        parent = self.parent(element)
        parent_style = self._computed[parent] if parent is not None else {}
        parent_vars = self._variables[parent] if parent is not None else self.theme

        declared = self.declared_style(element)

        variables = dict(parent_vars)
        for name, value in declared.items():
            if name.startswith("--"):
                variables[name] = value
        # Custom properties may reference each other
        for name, value in list(variables.items()):
            if "var(" in value:
                variables[name] = resolve_vars(value, variables)
        self._variables[element] = variables

        props = (set(declared) | INHERITED_PROPERTIES | set(INITIAL_VALUES)) - {
            n for n in declared if n.startswith("--")
        }
        computed: dict[str, str] = {}
        unresolved: dict[str, str] = {}
        for prop in props:
            value = declared.get(prop)
            if value is not None and "var(" in value:
                value = resolve_vars(value, variables)
                # Invalid at computed-value time
                if "var(" in value:
                    unresolved[prop] = value
                    value = "unset"
            keyword = value.lower() if value is not None else None

            if keyword == "inherit" or (
                prop in INHERITED_PROPERTIES and keyword in (None, "unset")
            ):
                value = parent_style.get(prop) if parent is not None else INITIAL_VALUES.get(prop)
            elif keyword in (None, "unset", "initial"):
                value = INITIAL_VALUES.get(prop)

            if value is not None:
                computed[prop] = value

        # currentColor takes the element's own computed color, which in turn
        # takes the parent's when it is currentColor itself
        if computed.get("color", "").lower() == "currentcolor":
            computed["color"] = parent_style.get("color", INITIAL_VALUES["color"])
        color = computed.get("color", INITIAL_VALUES["color"])
        for prop in [p for p, v in computed.items() if v.lower() == "currentcolor"]:
            computed[prop] = color

        self._computed[element] = computed
        self._unresolved[element] = unresolved
