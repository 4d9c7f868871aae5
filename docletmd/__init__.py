"""Doclet enrichment plugin and markdown renderer."""

from .config import PluginConfig, load_config
from .hierarchy import reconstruct
from .plugin import Plugin
from .rules import DocletProcessor
from .tags import define_tags

__all__ = [
    "DocletProcessor",
    "Plugin",
    "PluginConfig",
    "define_tags",
    "load_config",
    "reconstruct",
]
