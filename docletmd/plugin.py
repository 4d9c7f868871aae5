"""Host-facing plugin entry points."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from .config import PluginConfig
from .declarations import DeclarationInspector
from .hierarchy import reconstruct
from .logging import get_logger
from .rules import DocletProcessor
from .tags import TagDictionary, define_tags

logger = get_logger("plugin")

Handler = Callable[[Mapping[str, Any]], None]


class Plugin:
    """Wires the rule table and the hierarchy pass to host events.

    One instance serves one generation run: `newDoclet` fires for each doclet
    as the host creates it, `parseComplete` once with the whole collection.
    """

    def __init__(
        self,
        config: PluginConfig,
        inspector: Optional[DeclarationInspector] = None,
    ) -> None:
        self.config = config
        self.processor = DocletProcessor(config, inspector=inspector)

    @property
    def handlers(self) -> Dict[str, Handler]:
        return {
            "newDoclet": self.new_doclet,
            "parseComplete": self.parse_complete,
        }

    def new_doclet(self, event: Mapping[str, Any]) -> None:
        self.processor.apply_rules(event["doclet"])

    def parse_complete(self, event: Mapping[str, Any]) -> None:
        doclets = event["doclets"]
        before = len(doclets)
        reconstruct(doclets, self.processor)
        logger.info(
            "Processed %d doclet(s), %d module(s) synthesized",
            before,
            len(doclets) - before,
        )

    def define_tags(self, dictionary: TagDictionary) -> None:
        define_tags(dictionary)


__all__ = ["Plugin"]
