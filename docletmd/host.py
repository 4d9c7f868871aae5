"""Minimal in-process host driving the plugin over a doclet dump.

The extraction engine normally owns parsing and fires the plugin callbacks.
`DocletHost` replays that sequence over doclets that were already parsed and
serialised (for example the JSON printed by `jsdoc -X`): tag handlers first,
then `newDoclet` per doclet, then a single `parseComplete`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .config import PluginConfig
from .logging import get_logger
from .models import Doclet
from .plugin import Plugin
from .tags import OnTagged

logger = get_logger("host")


class HostError(RuntimeError):
    """Raised when a doclet dump cannot be loaded."""


class TagRegistry:
    """Tag dictionary holding the `on_tagged` callbacks plugins register."""

    def __init__(self) -> None:
        self._handlers: Dict[str, OnTagged] = {}

    def define_tag(self, title: str, *, on_tagged: OnTagged) -> None:
        self._handlers[title.lower()] = on_tagged

    def lookup(self, title: str) -> Optional[OnTagged]:
        return self._handlers.get(title.lower())

    def apply(self, doclet: Doclet) -> None:
        for tag in doclet.get("tags") or []:
            if not isinstance(tag, Mapping):
                continue
            handler = self.lookup(str(tag.get("title") or ""))
            if handler is not None:
                handler(doclet, tag)


class DocletHost:
    """Replays host events for one run of the plugin."""

    def __init__(self, config: PluginConfig, plugin: Optional[Plugin] = None) -> None:
        self.config = config
        self.plugin = plugin or Plugin(config)
        self.tags = TagRegistry()
        self.plugin.define_tags(self.tags)

    def run(self, doclets: List[Doclet]) -> List[Doclet]:
        """Process doclets in place and return the collection including synthesized modules."""
        # Package doclets are created by the engine after parsing, outside plugin events.
        packages = [doclet for doclet in doclets if doclet.get("kind") == "package"]
        parsed = [doclet for doclet in doclets if doclet.get("kind") != "package"]

        handlers = self.plugin.handlers
        for doclet in parsed:
            self.tags.apply(doclet)
            handlers["newDoclet"]({"doclet": doclet})
        handlers["parseComplete"]({"doclets": parsed})
        return parsed + packages

    def run_file(self, path: Path) -> List[Doclet]:
        return self.run(load_doclets(path))


def load_doclets(path: Path) -> List[Doclet]:
    """Read a JSON array of doclets from disk."""
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise HostError(f"Doclet file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise HostError(f"Doclet file {path.name} is not valid JSON: {exc}") from exc
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise HostError(f"Doclet file {path.name} must contain a JSON array of objects")
    logger.debug("Loaded %d doclet(s) from %s", len(payload), path)
    return payload


__all__ = ["DocletHost", "HostError", "TagRegistry", "load_doclets"]
