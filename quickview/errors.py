"""
Exceptions raised by the QuickView view layer.

All of them derive from `ViewError` and also from the closest builtin, so
callers can catch either `ViewError` or e.g. `KeyError` for a missing variable.
"""

from typing import Hashable, List, Optional


class ViewError(Exception):
    """Base class for view errors."""


class KeyNotFound(ViewError, KeyError):
    """A view variable was read but never set."""

    def __init__(self, key: Hashable):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Value for key '{self.key}' doesn't exist on view object"


class EmptyTemplateName(ViewError, ValueError):
    """Render was called without a target and the view has no default template."""

    def __init__(self):
        super().__init__("Empty view: no template name and no default template")


class TemplateNotFound(ViewError, LookupError):
    """No template file matched the requested name."""

    def __init__(self, name: str, searched: Optional[List[str]] = None):
        self.name = name
        self.searched = list(searched or [])
        message = f"View `{name}` does not exist or can not be found"
        if self.searched:
            message += f" (searched: {', '.join(self.searched)})"
        super().__init__(message)
