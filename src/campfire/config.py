"""Site configuration loader.

A site is configured by ``.campfire/campfire.yaml`` at its root::

    name: My Notes
    title: Notes from the campfire      # defaults to ``name``
    base_url: https://example.com
    author: Jane Doe                     # used when a post has no author
    require-tag: publish                 # only posts tagged ``publish`` are built
    feed_path: feed.xml
    post_build_command: rsync -a {{target}}/ host:/var/www/
    demote_headings: true
    strict: false                        # abort on per-file errors
    paths:
      templates: templates
      target: target
      static: static

All ``paths`` are relative to the ``.campfire`` directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from campfire.errors import ConfigError

CAMPFIRE_DIR = ".campfire"
CONFIG_FILE = "campfire.yaml"
TARGET_PLACEHOLDER = "{{target}}"


@dataclass
class SitePaths:
    templates: str = "templates"
    target: str = "target"
    static: str = "static"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SitePaths":
        data = data or {}
        return cls(
            templates=str(data.get("templates", "templates")),
            target=str(data.get("target", "target")),
            static=str(data.get("static", "static")),
        )


@dataclass
class SiteConfig:
    name: str
    title: str = ""
    base_url: str = ""
    author: str = ""
    require_tag: str | None = None
    feed_path: str = "feed.xml"
    post_build_command: str = ""
    demote_headings: bool = True
    strict: bool = False
    paths: SitePaths = field(default_factory=SitePaths)
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.title:
            self.title = self.name

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SiteConfig":
        if "name" not in data:
            raise ConfigError("campfire.yaml must define 'name'")
        # ``require-tag`` is the historical spelling
        require_tag = data.get("require_tag", data.get("require-tag")) or None
        known = {
            "name", "title", "base_url", "author", "require_tag", "require-tag",
            "feed_path", "post_build_command", "demote_headings", "strict", "paths",
        }
        return cls(
            name=str(data["name"]),
            title=str(data.get("title") or ""),
            base_url=str(data.get("base_url") or ""),
            author=str(data.get("author") or ""),
            require_tag=str(require_tag) if require_tag is not None else None,
            feed_path=str(data.get("feed_path") or "feed.xml"),
            post_build_command=str(data.get("post_build_command") or ""),
            demote_headings=bool(data.get("demote_headings", True)),
            strict=bool(data.get("strict", False)),
            paths=SitePaths.from_dict(data.get("paths")),
            extra={k: v for k, v in data.items() if k not in known},
        )


def default_config_path(base_dir: Path) -> Path:
    return Path(base_dir) / CAMPFIRE_DIR / CONFIG_FILE


def load_config(path: Path) -> SiteConfig:
    """Read a ``campfire.yaml`` file into a :class:`SiteConfig`."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"Could not read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return SiteConfig.from_dict(data)
