"""Style projection for context-free rendering.

An exported SVG is rendered outside the editor, where the editor's
stylesheets and theme variables no longer apply. ``project_styles`` makes a
copy of the scene in which every element carries its effective style values
inline, so the copy renders the same on its own.
"""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from copy import deepcopy
from dataclasses import dataclass
from typing import Mapping

from ..core.models import SceneDimensions
from .css import StyleResolver, format_declarations, parse_declarations, resolve_vars
from .dimensions import resolve_dimensions
from .scene import SVG_NS, VectorScene, local_name

logger = logging.getLogger(__name__)

# Properties copied from the effective style onto each element
STYLE_PROPERTIES: tuple[str, ...] = (
    # Colors and fills
    "fill",
    "fill-opacity",
    "stroke",
    "stroke-opacity",
    "stroke-width",
    "stroke-dasharray",
    "stroke-dashoffset",
    "stroke-linecap",
    "stroke-linejoin",
    # Text
    "font-family",
    "font-size",
    "font-weight",
    "font-style",
    "text-anchor",
    "dominant-baseline",
    "alignment-baseline",
    "letter-spacing",
    # General
    "color",
    "opacity",
    "visibility",
    "display",
    # foreignObject content
    "background",
    "background-color",
)

SHAPE_TAGS: frozenset[str] = frozenset({"rect", "path", "circle", "ellipse", "polygon", "polyline"})
TEXT_TAGS: frozenset[str] = frozenset({"text", "tspan"})
MARKER_ATTRIBUTES: tuple[str, ...] = ("marker-start", "marker-end")

# Values that would not change rendering if written inline
_NO_OP_VALUES: frozenset[str] = frozenset({"none", "normal"})

# Elements that carry no rendered style of their own
_UNSTYLED_TAGS: frozenset[str] = frozenset({"style", "title", "desc", "metadata", "script"})


@dataclass
class ProjectedScene:
    """A self-contained copy of a scene, ready for rasterization.

    Attributes:
        root: Root of the projected element tree
        dimensions: Intrinsic dimensions of the source scene
        scale: Scale the root's width/height were set for
    """

    root: ET.Element
    dimensions: SceneDimensions
    scale: float

    @property
    def pixel_size(self) -> tuple[float, float]:
        """Rendered (width, height) in output pixels, without padding."""
        return self.dimensions.scaled(self.scale)

    def to_svg(self) -> str:
        return ET.tostring(self.root, encoding="unicode")


def _fmt(value: float) -> str:
    if math.isclose(value, round(value)):
        return str(int(round(value)))
    return f"{value:.6f}".rstrip("0").rstrip(".")


def _usable(value: str | None) -> bool:
    return bool(value) and value != "none" and "var(" not in value


def _project_element(original: ET.Element, copy: ET.Element, resolver: StyleResolver) -> None:
    """Write the effective style of ``original`` inline onto ``copy``."""
    computed = resolver.computed_style(original)
    unresolved = resolver.unresolved_properties(original)
    declarations = parse_declarations(copy.get("style") or "")
    for prop in unresolved:
        declarations.pop(prop, None)
        copy.attrib.pop(prop, None)

    for prop in STYLE_PROPERTIES:
        value = computed.get(prop, "").strip()
        if value and value not in _NO_OP_VALUES:
            declarations[prop] = value

    tag = local_name(original.tag).lower()

    if tag in SHAPE_TAGS:
        # Shapes must not lose a fill that only the attribute states literally
        fill = computed.get("fill", "")
        if not fill or fill == "none" or "fill" in unresolved:
            attr_fill = original.get("fill")
            if _usable(attr_fill):
                declarations["fill"] = attr_fill

    if tag in TEXT_TAGS:
        text_color = None if "fill" in unresolved else computed.get("fill") or computed.get("color")
        if _usable(text_color):
            declarations["fill"] = text_color
        else:
            attr_fill = original.get("fill")
            if _usable(attr_fill):
                declarations["fill"] = attr_fill

    # Arrowheads
    for name in MARKER_ATTRIBUTES:
        marker = original.get(name)
        if marker:
            copy.set(name, marker)

    if declarations:
        copy.set("style", format_declarations(declarations))


def inline_styles(original: ET.Element, copy: ET.Element, resolver: StyleResolver) -> int:
    """Walk two isomorphic trees in lockstep, inlining effective styles.

    Children are paired by index; ``copy`` must be a clone of ``original``.

    Returns:
        Number of elements styled
    """
    styled = 0
    stack: list[tuple[ET.Element, ET.Element]] = [(original, copy)]
    while stack:
        orig_el, copy_el = stack.pop()
        tag = local_name(orig_el.tag)
        if tag and tag not in _UNSTYLED_TAGS:
            _project_element(orig_el, copy_el, resolver)
            styled += 1
        stack.extend(zip(list(orig_el), list(copy_el)))
    return styled


def resolve_stylesheets(root: ET.Element, variables: Mapping[str, str]) -> int:
    """Substitute theme variables into every ``<style>`` element under ``root``.

    Returns:
        Number of stylesheets rewritten
    """
    count = 0
    for style_el in root.iter():
        if local_name(style_el.tag) != "style":
            continue
        css_text = "".join(style_el.itertext())
        resolved = resolve_vars(css_text, variables)
        for child in list(style_el):
            style_el.remove(child)
        style_el.text = resolved
        count += 1
    return count


def _rewrite_viewport(root: ET.Element, dimensions: SceneDimensions, scale: float) -> None:
    root.set(
        "viewBox",
        f"{_fmt(dimensions.origin_x)} {_fmt(dimensions.origin_y)} "
        f"{_fmt(dimensions.width)} {_fmt(dimensions.height)}",
    )
    width, height = dimensions.scaled(scale)
    root.set("width", _fmt(width))
    root.set("height", _fmt(height))
    if not root.tag.startswith("{"):
        root.set("xmlns", SVG_NS)

    declarations = parse_declarations(root.get("style") or "")
    declarations["shape-rendering"] = "geometricPrecision"
    declarations["text-rendering"] = "geometricPrecision"
    root.set("style", format_declarations(declarations))


def project_styles(
    scene: VectorScene,
    scale: float,
    dimensions: SceneDimensions | None = None,
) -> ProjectedScene:
    """Produce a self-contained, scaled copy of a scene.

    The source scene is not modified.

    Args:
        scene: Scene to project
        scale: Export scale; the copy's width/height are the intrinsic size
            times this
        dimensions: Intrinsic dimensions, resolved from the scene if omitted

    Returns:
        ProjectedScene wrapping the styled copy
    """
    original = scene.root
    if dimensions is None:
        dimensions = resolve_dimensions(scene)

    resolver = StyleResolver(original, scene.theme)
    clone = deepcopy(original)

    styled = inline_styles(original, clone, resolver)
    sheets = resolve_stylesheets(clone, resolver.root_variables())
    _rewrite_viewport(clone, dimensions, scale)

    logger.debug(f"Projected styles onto {styled} elements, resolved {sheets} stylesheet(s)")
    return ProjectedScene(root=clone, dimensions=dimensions, scale=scale)
