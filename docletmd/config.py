"""Configuration loading for docletmd (host options and markdown template settings)."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

DEFAULT_CONFIG_NAME = ".docletmd.yml"
DEFAULT_INCLUDES = "public,protected,private"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class MarkdownConfig:
    """Settings found under `templates.markdown`."""

    imageext: str = "svg"
    tocfilename: str = "toc.md"
    toc_order: Dict[str, int] = field(default_factory=dict)
    externallinks: Dict[str, str] = field(default_factory=dict)
    badgecolors: Dict[str, str] = field(default_factory=dict)


@dataclass
class PluginConfig:
    """Represents the options a host hands to the plugin before the first doclet."""

    root: Path
    destination: Path
    includes: List[str] = field(default_factory=lambda: parse_includes(DEFAULT_INCLUDES))
    encoding: str = "utf-8"
    template_dir: Optional[Path] = None
    markdown: MarkdownConfig = field(default_factory=MarkdownConfig)

    def with_overrides(
        self,
        *,
        destination: Optional[Path] = None,
        includes: Optional[str] = None,
    ) -> "PluginConfig":
        """Return a copy with command-line overrides applied."""
        changes: Dict[str, Any] = {}
        if destination is not None:
            changes["destination"] = _resolve(self.root, destination)
        if includes is not None:
            changes["includes"] = parse_includes(includes)
        return dataclasses.replace(self, **changes) if changes else self


def default_config(root: Optional[Path] = None) -> PluginConfig:
    base = (root or Path.cwd()).resolve()
    return PluginConfig(root=base, destination=base / "out")


def load_config(config_path: Path) -> PluginConfig:
    """Load configuration from disk, falling back to defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    base = config_file.parent.resolve()

    if not config_file.exists():
        return default_config(base)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    root_str = _as_str(data.get("root"))
    root = _resolve(base, Path(root_str)) if root_str else base

    opts = _as_dict(data.get("opts"))
    destination_str = _as_str(opts.get("destination"))
    destination = _resolve(root, Path(destination_str)) if destination_str else root / "out"
    includes_value = opts.get("includes")
    if isinstance(includes_value, list):
        includes_value = ",".join(_as_str_list(includes_value))
    includes = parse_includes(_as_str(includes_value) or DEFAULT_INCLUDES)
    encoding = _normalise_encoding(_as_str(opts.get("encoding")))
    template_str = _as_str(opts.get("template"))
    template_dir = _resolve(root, Path(template_str)) if template_str else None

    templates = _as_dict(data.get("templates"))
    markdown_data = _as_dict(templates.get("markdown"))
    markdown = MarkdownConfig(
        imageext=_as_str(markdown_data.get("imageext")) or "svg",
        tocfilename=_as_str(markdown_data.get("tocfilename")) or "toc.md",
        toc_order=_as_int_map(markdown_data.get("tocOrder")),
        externallinks=_as_str_map(markdown_data.get("externallinks")),
        badgecolors=_as_str_map(markdown_data.get("badgecolors")),
    )

    return PluginConfig(
        root=root,
        destination=destination,
        includes=includes,
        encoding=encoding,
        template_dir=template_dir,
        markdown=markdown,
    )


def parse_includes(value: str) -> List[str]:
    """Split a comma separated access list (`"Public, private"` -> `["public", "private"]`)."""
    cleaned = "".join(value.lower().split())
    return [item for item in cleaned.split(",") if item]


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / DEFAULT_CONFIG_NAME).resolve()
    return config_path.resolve()


def _resolve(base: Path, value: Path) -> Path:
    value = value.expanduser()
    return value if value.is_absolute() else (base / value).resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        # JSON host configurations are valid YAML flow documents.
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _normalise_encoding(value: Optional[str]) -> str:
    if not value:
        return "utf-8"
    return "utf-8" if value.lower() in {"utf8", "utf-8"} else value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_map(value: Any) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for key, item in _as_dict(value).items():
        text = _as_str(item)
        if text is not None:
            result[str(key)] = text
    return result


def _as_int_map(value: Any) -> Dict[str, int]:
    result: Dict[str, int] = {}
    for key, item in _as_dict(value).items():
        number = _as_int(item)
        if number is not None:
            result[str(key)] = number
    return result


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ConfigError",
    "MarkdownConfig",
    "PluginConfig",
    "default_config",
    "load_config",
    "parse_includes",
]
