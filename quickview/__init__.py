"""
QuickView - the view layer of the QuickAPI web framework.

A view collects the variables a template needs, finds the template file on a
layered search path and renders it to stdout, a sink or a string. Views can be
nested, and inner views inherit the variables of the view that renders them.
"""

from quickview.view import Ref, ViewScope, TextView, rendering_in_progress
from quickview.paths import PathRegistry, add_path, remove_path, clear_paths, get_path_registry
from quickview.errors import ViewError, KeyNotFound, EmptyTemplateName, TemplateNotFound
from quickview.config import ViewConfig, get_config, configure

__version__ = "0.9.0"
__all__ = [
    "Ref",
    "ViewScope",
    "TextView",
    "rendering_in_progress",
    "PathRegistry",
    "add_path",
    "remove_path",
    "clear_paths",
    "get_path_registry",
    "ViewError",
    "KeyNotFound",
    "EmptyTemplateName",
    "TemplateNotFound",
    "ViewConfig",
    "get_config",
    "configure",
]
