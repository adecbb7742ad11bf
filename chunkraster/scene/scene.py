"""Vector scene handle.

A ``VectorScene`` wraps the SVG element tree of a diagram together with the
editor state that affects how it looks on screen: the theme's custom
properties, the current display zoom and the rendered size. The export
engine only reads from it.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Mapping

from ..core.errors import SceneUnavailableError

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)


def local_name(tag: object) -> str:
    """Return the tag without its namespace, or "" for comments and PIs."""
    if not isinstance(tag, str):
        return ""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


class VectorScene:
    """A diagram's SVG tree plus the display context it is shown in.

    Args:
        root: Root ``<svg>`` element
        theme: CSS custom properties in effect (``{"--primary": "#333"}``)
        zoom: Current display zoom level of the editor
        display_size: On-screen (width, height) of the rendered scene in
            pixels, used when the SVG declares no usable viewBox
        source_file: Where the scene was loaded from, if anywhere
    """

    def __init__(
        self,
        root: ET.Element,
        theme: Mapping[str, str] | None = None,
        zoom: float = 1.0,
        display_size: tuple[float, float] | None = None,
        source_file: str | None = None,
    ):
        self._root: ET.Element | None = root
        self.theme: dict[str, str] = {
            (k if k.startswith("--") else f"--{k}"): v for k, v in (theme or {}).items()
        }
        self.zoom = zoom if zoom > 0 else 1.0
        self.display_size = display_size
        self.source_file = source_file

    @classmethod
    def from_string(cls, text: str, **kwargs) -> VectorScene:
        """Parse SVG markup into a scene.

        Raises:
            SceneUnavailableError: If the markup is not well-formed
        """
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise SceneUnavailableError(f"Could not parse SVG: {e}") from e
        return cls(root, **kwargs)

    @classmethod
    def from_file(cls, path: Path | str, **kwargs) -> VectorScene:
        """Load a scene from an SVG file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SceneUnavailableError(f"Could not read {path}: {e}") from e
        kwargs.setdefault("source_file", str(path))
        return cls.from_string(text, **kwargs)

    @property
    def attached(self) -> bool:
        return self._root is not None

    def detach(self) -> None:
        """Drop the reference to the element tree (e.g. the editor closed it)."""
        self._root = None

    @property
    def root(self) -> ET.Element:
        """The root ``<svg>`` element.

        Raises:
            SceneUnavailableError: If the scene was detached or the root is
                not an ``<svg>`` element
        """
        if self._root is None:
            raise SceneUnavailableError("Scene is detached")
        if local_name(self._root.tag).lower() != "svg":
            raise SceneUnavailableError(
                f"Scene root must be <svg>, got <{local_name(self._root.tag)}>"
            )
        return self._root

    def to_svg(self) -> str:
        """Serialize the scene as SVG markup."""
        return ET.tostring(self.root, encoding="unicode")

    def __repr__(self) -> str:
        state = "attached" if self.attached else "detached"
        return f"VectorScene({self.source_file or '<memory>'}, {state}, zoom={self.zoom})"
