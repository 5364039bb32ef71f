"""
Configuration for the QuickView view layer.

Settings come from environment variables (a `.env` file is honoured) and can
be overridden at runtime with `configure()`.
"""

import codecs
import os
from dataclasses import dataclass, field, fields
from typing import Any, List

from dotenv import load_dotenv

load_dotenv()


def _parse_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_paths(value: str) -> List[str]:
    return [p for p in value.split(os.pathsep) if p]


def _env_flag(name: str, default: str = "false") -> bool:
    return _parse_flag(os.getenv(name, default))


def _env_paths(name: str) -> List[str]:
    return _parse_paths(os.getenv(name, ""))


@dataclass
class ViewConfig:
    """Runtime settings for views."""

    # When true, str(view) returns the traceback of a failed render instead of raising
    display_errors: bool = field(default_factory=lambda: _env_flag("QUICKVIEW_DISPLAY_ERRORS"))

    # Directories added to the path registry by load_configured_paths()
    template_paths: List[str] = field(default_factory=lambda: _env_paths("QUICKVIEW_TEMPLATE_PATHS"))

    encoding: str = field(default_factory=lambda: os.getenv("QUICKVIEW_TEMPLATE_ENCODING", "utf-8"))

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"Invalid encoding: {self.encoding}")
        if isinstance(self.display_errors, str):
            self.display_errors = _parse_flag(self.display_errors)
        self.display_errors = bool(self.display_errors)
        if isinstance(self.template_paths, str):
            self.template_paths = _parse_paths(self.template_paths)
        self.template_paths = [str(p) for p in self.template_paths]


_config = None


def get_config() -> ViewConfig:
    """Return the process-wide configuration, creating it on first use."""
    global _config
    if _config is None:
        _config = ViewConfig()
    return _config


def configure(**overrides: Any) -> ViewConfig:
    """Update the process-wide configuration in place."""
    config = get_config()
    known = {f.name for f in fields(ViewConfig)}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown configuration key: {key}")
        setattr(config, key, value)
    config._validate()
    return config


def reset_config() -> ViewConfig:
    """Rebuild the process-wide configuration from the environment."""
    global _config
    _config = ViewConfig()
    return _config
