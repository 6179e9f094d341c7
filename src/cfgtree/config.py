"""
Configuration for cfgtree.

All layout knobs in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/cfgtree/config.toml) if exists
3. Environment variables (CFGTREE_*) override file
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class LayoutConfig:
    """Indentation and spacing used when a node has no observed layout."""
    indent_width: int = 4
    section_padding: int = 1  # blank lines kept around newly created sections
    inline_array_limit: int = 4  # arrays with more elements are rendered as a block
    key_quote: str = "'"


@dataclass
class CommentConfig:
    """Rendering of newly created comments."""
    line_marker: str = "//"
    banner_width: int = 74  # dashes in a rich comment rule line


@dataclass
class IOConfig:
    """File I/O settings."""
    encoding: str = "utf-8"


@dataclass
class Config:
    """Root config with all settings."""
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    comments: CommentConfig = field(default_factory=CommentConfig)
    io: IOConfig = field(default_factory=IOConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "cfgtree" / "config.toml"
    return Path.home() / ".config" / "cfgtree" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as exc:
            logger.warning("Ignoring config file %s: %s", path, exc)

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "layout" in data:
        lay = data["layout"]
        if "indent_width" in lay:
            config.layout.indent_width = int(lay["indent_width"])
        if "section_padding" in lay:
            config.layout.section_padding = int(lay["section_padding"])
        if "inline_array_limit" in lay:
            config.layout.inline_array_limit = int(lay["inline_array_limit"])
        if "key_quote" in lay:
            config.layout.key_quote = str(lay["key_quote"])

    if "comments" in data:
        c = data["comments"]
        if "line_marker" in c:
            config.comments.line_marker = str(c["line_marker"])
        if "banner_width" in c:
            config.comments.banner_width = int(c["banner_width"])

    if "io" in data:
        io = data["io"]
        if "encoding" in io:
            config.io.encoding = str(io["encoding"])

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "CFGTREE_INDENT_WIDTH": ("layout", "indent_width", int),
        "CFGTREE_SECTION_PADDING": ("layout", "section_padding", int),
        "CFGTREE_INLINE_ARRAY_LIMIT": ("layout", "inline_array_limit", int),
        "CFGTREE_KEY_QUOTE": ("layout", "key_quote", str),
        "CFGTREE_LINE_MARKER": ("comments", "line_marker", str),
        "CFGTREE_BANNER_WIDTH": ("comments", "banner_width", int),
        "CFGTREE_ENCODING": ("io", "encoding", str),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError, AttributeError):
                setattr(getattr(config, section), attr, conv(val))

    return config


# Module-level config instance, loaded once on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
