"""Tests for style projection."""

import xml.etree.ElementTree as ET

from chunkraster.core.models import SceneDimensions
from chunkraster.scene.css import StyleResolver, parse_declarations
from chunkraster.scene.scene import SVG_NS, VectorScene, local_name
from chunkraster.scene.styles import inline_styles, project_styles, resolve_stylesheets


def find(root: ET.Element, element_id: str) -> ET.Element:
    for el in root.iter():
        if el.get("id") == element_id:
            return el
    raise KeyError(element_id)


def style_of(root: ET.Element, element_id: str) -> dict[str, str]:
    return parse_declarations(find(root, element_id).get("style") or "")


DIAGRAM = f"""<svg xmlns="{SVG_NS}" viewBox="-40 -20 400 300" class="diagram">
  <style>
    .node rect {{ fill: var(--node-fill); stroke: var(--node-border); stroke-width: 2px }}
    .label {{ fill: var(--text, #111); font-family: Inter; font-size: 14px }}
    .edge {{ stroke: #999 }}
  </style>
  <defs>
    <marker id="arrow"><path d="M0,0 L10,5 L0,10 z"/></marker>
  </defs>
  <g class="node" id="n1">
    <rect id="box" x="0" y="0" width="100" height="40"/>
    <text id="label" class="label">Start</text>
  </g>
  <path id="edge" class="edge" d="M100,20 L200,20" fill="none" marker-end="url(#arrow)"/>
  <rect id="literal" fill="#abcdef" style="fill: var(--unknown)"/>
</svg>"""

THEME = {"--node-fill": "#fafafa", "--node-border": "#333"}


def diagram() -> VectorScene:
    return VectorScene.from_string(DIAGRAM, theme=THEME)


class TestProjectStyles:
    """Test project_styles output."""

    def test_source_not_modified(self):
        """Test projecting leaves the source tree untouched."""
        scene = diagram()
        before = ET.tostring(scene.root)
        project_styles(scene, 2.0)
        assert ET.tostring(scene.root) == before

    def test_rule_styles_inlined(self):
        """Test stylesheet and theme values end up inline."""
        projected = project_styles(diagram(), 1.0)
        box = style_of(projected.root, "box")
        assert box["fill"] == "#fafafa"
        assert box["stroke"] == "#333"
        assert box["stroke-width"] == "2px"

    def test_text_fill_fallback(self):
        """Test var() fallbacks give text its fill."""
        label = style_of(project_styles(diagram(), 1.0).root, "label")
        assert label["fill"] == "#111"
        assert label["font-family"] == "Inter"
        assert label["font-size"] == "14px"

    def test_no_op_values_skipped(self):
        """Test 'none' values are not written inline."""
        edge = style_of(project_styles(diagram(), 1.0).root, "edge")
        assert edge["stroke"] == "#999"
        assert "fill" not in edge

    def test_shape_fill_attribute_fallback(self):
        """Test a shape keeps its literal fill attribute when its style is unresolved."""
        literal = style_of(project_styles(diagram(), 1.0).root, "literal")
        assert literal["fill"] == "#abcdef"

    def test_undefined_variables_not_inlined(self):
        """Test no var() reference survives on a projected element."""
        scene = VectorScene.from_string(
            f'<svg xmlns="{SVG_NS}" viewBox="0 0 10 10">'
            '<path id="p" d="M0 0L5 5" stroke="var(--missing)" style="stroke-width: var(--w)"/>'
            "</svg>"
        )
        path = find(project_styles(scene, 1.0).root, "p")
        style = parse_declarations(path.get("style"))
        assert "stroke" not in style
        assert path.get("stroke") is None
        assert style["stroke-width"] == "1"
        assert all("var(" not in value for value in style.values())

    def test_markers_preserved(self):
        """Test marker references survive projection."""
        edge = find(project_styles(diagram(), 1.0).root, "edge")
        assert edge.get("marker-end") == "url(#arrow)"

    def test_viewport_rewritten(self):
        """Test the copy keeps the origin and gets scaled pixel dimensions."""
        projected = project_styles(diagram(), 2.5)
        root = projected.root
        assert root.get("viewBox") == "-40 -20 400 300"
        assert root.get("width") == "1000"
        assert root.get("height") == "750"
        assert projected.pixel_size == (1000, 750)

        decls = parse_declarations(root.get("style"))
        assert decls["shape-rendering"] == "geometricPrecision"
        assert decls["text-rendering"] == "geometricPrecision"

    def test_explicit_dimensions(self):
        """Test supplied dimensions override the scene's own."""
        dims = SceneDimensions(width=10, height=5, origin_x=1, origin_y=2)
        root = project_styles(diagram(), 3.0, dims).root
        assert root.get("viewBox") == "1 2 10 5"
        assert (root.get("width"), root.get("height")) == ("30", "15")

    def test_stylesheet_variables_resolved(self):
        """Test embedded stylesheets lose their theme var() references."""
        root = project_styles(diagram(), 1.0).root
        style_el = next(el for el in root.iter() if local_name(el.tag) == "style")
        assert "var(--node-fill)" not in style_el.text
        assert "#fafafa" in style_el.text

    def test_serializes_as_svg(self):
        """Test the projected scene serializes to parseable SVG."""
        text = project_styles(diagram(), 1.0).to_svg()
        reparsed = ET.fromstring(text)
        assert reparsed.tag == f"{{{SVG_NS}}}svg"

    def test_unnamespaced_root_gets_xmlns(self):
        """Test a scene without a namespace gains the SVG namespace."""
        scene = VectorScene.from_string('<svg viewBox="0 0 10 10"><rect/></svg>')
        root = project_styles(scene, 1.0).root
        assert root.get("xmlns") == SVG_NS


class TestInlineStyles:
    """Test the lockstep tree walk."""

    def test_counts_styled_elements(self):
        """Test style, title and comment nodes are not styled."""
        root = ET.fromstring(
            f'<svg xmlns="{SVG_NS}"><title>t</title><style>rect {{ fill: red }}</style>'
            "<!-- c --><g><rect/></g></svg>"
        )
        copy = ET.fromstring(ET.tostring(root))
        count = inline_styles(root, copy, StyleResolver(root))
        # svg, g, rect
        assert count == 3
        rect = copy.find(f"{{{SVG_NS}}}g/{{{SVG_NS}}}rect")
        assert parse_declarations(rect.get("style"))["fill"] == "red"

    def test_resolve_stylesheets(self):
        """Test var() references in style elements are substituted."""
        root = ET.fromstring(f'<svg xmlns="{SVG_NS}"><style>.a {{ fill: var(--x) }}</style></svg>')
        assert resolve_stylesheets(root, {"--x": "blue"}) == 1
        assert root[0].text == ".a { fill: blue }"
