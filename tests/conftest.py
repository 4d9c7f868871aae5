from __future__ import annotations

from pathlib import Path

import pytest

from docletmd.config import MarkdownConfig, PluginConfig
from docletmd.rules import DocletProcessor
from tests._fixtures.source_builder import SourceBuilder


@pytest.fixture
def project(tmp_path: Path) -> SourceBuilder:
    """Provide a source tree rooted under the pytest tmp_path."""
    return SourceBuilder(tmp_path)


@pytest.fixture
def config(project: SourceBuilder) -> PluginConfig:
    return PluginConfig(
        root=project.root,
        destination=project.root / "docs",
        markdown=MarkdownConfig(
            toc_order={"core": 1, "ui": 2},
            badgecolors={"cat1": "FFFFFF", "core": "red"},
            externallinks={"Promise": "https://developer.mozilla.org/Promise"},
        ),
    )


@pytest.fixture
def processor(config: PluginConfig) -> DocletProcessor:
    return DocletProcessor(config)
