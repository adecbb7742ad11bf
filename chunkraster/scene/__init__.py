"""Vector scene handling.

This module provides the scene handle, its intrinsic dimensions, and the
style projection that makes a scene renderable outside the editor.
"""

from .scene import VectorScene, local_name
from .css import StyleResolver, resolve_vars
from .dimensions import parse_length, parse_view_box, resolve_dimensions
from .styles import STYLE_PROPERTIES, ProjectedScene, project_styles

__all__ = [
    "VectorScene",
    "local_name",
    "StyleResolver",
    "resolve_vars",
    "parse_length",
    "parse_view_box",
    "resolve_dimensions",
    "STYLE_PROPERTIES",
    "ProjectedScene",
    "project_styles",
]
