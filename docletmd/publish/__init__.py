"""Markdown rendering of enriched doclets."""

from __future__ import annotations

from typing import Iterable

from ..config import PluginConfig
from ..models import Doclet
from .generator import GenerationResult, MarkdownGenerator
from .tree import build_tree, filter_doclets


def publish(doclets: Iterable[Doclet], config: PluginConfig) -> GenerationResult:
    """Drop excluded doclets, assemble the tree and write the markdown files."""
    root_node = build_tree(filter_doclets(doclets))
    return MarkdownGenerator(config).generate(root_node)


__all__ = ["GenerationResult", "MarkdownGenerator", "build_tree", "filter_doclets", "publish"]
