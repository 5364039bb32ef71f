"""
Template search path registry.

One registry is shared by every view that does not set a custom path. The
most recently added directory is searched first, so an application can layer
directories and override individual templates by adding a path later.
"""

import logging
import os
import threading
from typing import List, Optional

from quickview.config import ViewConfig, get_config

logger = logging.getLogger(__name__)


class PathRegistry:
    """Ordered list of template directories, newest first."""

    def __init__(self):
        self._paths: List[str] = []
        self._lock = threading.Lock()

    def add(self, path: str):
        """Add a directory in front of all existing ones."""
        with self._lock:
            self._paths.insert(0, path)
        logger.debug(f"Added view path: {path}")

    def remove(self, path: str) -> bool:
        """Remove the first exact match; return whether it was present."""
        with self._lock:
            try:
                self._paths.remove(path)
            except ValueError:
                return False
        logger.debug(f"Removed view path: {path}")
        return True

    def clear(self):
        """Forget every directory."""
        with self._lock:
            self._paths.clear()

    @property
    def paths(self) -> List[str]:
        """Snapshot of the directories in search order."""
        with self._lock:
            return list(self._paths)

    def find(self, filename: str) -> Optional[str]:
        """Return the first `directory/filename` that exists, or None."""
        for directory in self.paths:
            candidate = os.path.join(directory, filename)
            if os.path.isfile(candidate):
                return candidate
        return None

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path) -> bool:
        return path in self._paths

    def __repr__(self) -> str:
        return f"PathRegistry({self.paths!r})"


_registry = PathRegistry()


def get_path_registry() -> PathRegistry:
    """Return the process-wide registry."""
    return _registry


def add_path(path: str):
    """Add a directory where views are searched for, ahead of the others."""
    _registry.add(path)


def remove_path(path: str) -> bool:
    """Remove a directory from the search order."""
    return _registry.remove(path)


def clear_paths():
    """Remove every registered directory."""
    _registry.clear()


def load_configured_paths(config: Optional[ViewConfig] = None) -> List[str]:
    """
    Register the directories listed in the configuration.

    Paths are added in the listed order, so the last one is searched first.
    Returns the registry order afterwards.
    """
    config = config or get_config()
    for path in config.template_paths:
        _registry.add(path)
    return _registry.paths
