"""Markdown document generator rendering the doclet tree with Jinja2 templates."""

from __future__ import annotations

import math
import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, Template, TemplateError

from ..config import PluginConfig
from ..logging import get_logger
from ..models import ACCESS_LEVELS, Doclet, file_basename, meta_of

logger = get_logger("publish")

_PACKAGE_DIR = Path(__file__).parent

_ACCESS_ORDER = {level: rank for rank, level in enumerate(ACCESS_LEVELS)}

_LINK_PATTERN = re.compile(
    r"\{@link\s+([^|\s}]+)(?:(?:\s*\|\s*|\s+)([^}]+?))?\s*\}", re.IGNORECASE
)

_LINKED_FIELDS = ("classdesc", "description", "tocDescription")


@dataclass
class GenerationResult:
    """Files written and per-file failures of one generation run."""

    files_written: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def access_rank(doclet: Mapping[str, Any]) -> int:
    return _ACCESS_ORDER.get(doclet.get("access") or "", len(_ACCESS_ORDER))


def doc_filename(doclet: Mapping[str, Any], root: Path) -> str:
    """Return the markdown file name of a module or class doclet.

    `<root>/src/models/user.js` becomes `src-models_user.md`.
    """
    meta = meta_of(doclet)
    relative = os.path.relpath(meta.get("path") or str(root), root)
    unique_path = "" if relative == "." else relative.replace(os.sep, "-")
    return f"{unique_path}_{file_basename(meta.get('filename') or '')}.md"


def rewrite_links(text: Optional[str], types_index: Mapping[str, str]) -> Optional[str]:
    """Turn `{@link Target}`, `{@link Target|label}` and `{@link Target label}` into markdown links."""
    if not text:
        return text

    def _replace(match: "re.Match[str]") -> str:
        target = match.group(1)
        label = match.group(2) or target
        return f"[{label}]({types_index.get(target, target)})"

    return _LINK_PATTERN.sub(_replace, text)


def badge_text(value: Any) -> str:
    """Escape text for a shields.io static badge path segment."""
    text = str(value or "")
    return text.replace("-", "--").replace("_", "__").replace(" ", "_")


class MarkdownGenerator:
    """Writes one markdown file per module, a table of contents and resources."""

    def __init__(self, config: PluginConfig) -> None:
        self.config = config
        base = config.template_dir or _PACKAGE_DIR
        self.templates_dir = base / "templates"
        self.resources_dir = base / "resources"

    def generate(self, root_node: Doclet) -> GenerationResult:
        result = GenerationResult()
        types_index = self.build_types_index(root_node)
        env = self._create_env(types_index)

        for module in root_node.get("modules") or []:
            self._generate_document(module, env, types_index, result)
        self._generate_toc(root_node, env, result)
        self._copy_resources()
        return result

    def build_types_index(self, root_node: Doclet) -> Dict[str, str]:
        """Map documented module and class names to their markdown files."""
        modules = list(root_node.get("modules") or [])
        classes = [cls for module in modules for cls in module.get("classes") or []]
        index: Dict[str, str] = {}
        for doclet in classes + modules:
            name = doclet.get("name")
            if name:
                index[name] = doc_filename(doclet, self.config.root)
        index.update(self.config.markdown.externallinks)
        return index

    def _create_env(self, types_index: Mapping[str, str]) -> Environment:
        directories = [str(self.templates_dir)]
        if self.templates_dir != _PACKAGE_DIR / "templates":
            directories.append(str(_PACKAGE_DIR / "templates"))
        env = Environment(
            loader=FileSystemLoader(directories, encoding=self.config.encoding),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        options = {"imageext": self.config.markdown.imageext}

        def link(item: Any) -> str:
            if item and item in types_index:
                return f"[{item}]({types_index[item]})"
            return f"`{item}`"

        def type_links(type_info: Any) -> str:
            names = type_info.get("names") if isinstance(type_info, Mapping) else None
            return ", ".join(link(name) for name in names or [])

        env.filters["join_names"] = join_names
        env.filters["link"] = link
        env.filters["type_links"] = type_links
        env.filters["in_md_table"] = in_md_table
        env.filters["badge"] = badge_text
        env.globals["options"] = options.get
        env.globals["doc_filename"] = lambda doclet: doc_filename(doclet, self.config.root)
        return env

    def _generate_document(
        self,
        doclet: Doclet,
        env: Environment,
        types_index: Mapping[str, str],
        result: GenerationResult,
    ) -> None:
        _rewrite_links_recursively(doclet, types_index)
        for collection in ("functions", "constants", "members"):
            if doclet.get(collection):
                doclet[collection].sort(key=access_rank)
        for cls in doclet.get("classes") or []:
            for collection in ("functions", "members"):
                if cls.get(collection):
                    cls[collection].sort(key=access_rank)
        template = self._get_template(env, "module.md.j2")
        self._write(template, {"doc": doclet}, doc_filename(doclet, self.config.root), result)

    def _generate_toc(self, root_node: Doclet, env: Environment, result: GenerationResult) -> None:
        modules = root_node.get("modules")
        if not modules:
            return
        by_category: Dict[str, List[Doclet]] = {}
        for module in modules:
            by_category.setdefault(module.get("category") or "other", []).append(module)
        order = self.config.markdown.toc_order
        categories = sorted(by_category, key=lambda name: (order.get(name, math.inf), name))
        toc = [
            {
                "name": category,
                "entries": by_category[category],
                "color": self.config.markdown.badgecolors.get(category, "blue"),
            }
            for category in categories
        ]
        template = self._get_template(env, "toc.md.j2")
        self._write(template, {"toc": toc}, self.config.markdown.tocfilename, result)

    def _get_template(self, env: Environment, name: str) -> Optional[Template]:
        try:
            return env.get_template(name)
        except TemplateError as exc:
            logger.error("Unable to compile the template file %s: %s", name, exc)
            return None

    def _write(
        self,
        template: Optional[Template],
        context: Dict[str, Any],
        filename: str,
        result: GenerationResult,
    ) -> None:
        if template is None:
            message = f"There is no template for {filename}"
            logger.error(message)
            result.errors.append(message)
            return
        target = self.config.destination / filename
        try:
            rendered = template.render(**context)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(rendered, encoding=self.config.encoding)
        except (TemplateError, OSError, TypeError, ValueError) as exc:
            message = f"Unable to generate {filename}: {exc}"
            logger.error(message)
            result.errors.append(message)
            return
        logger.debug("Wrote %s", target)
        result.files_written.append(target)

    def _copy_resources(self) -> None:
        try:
            shutil.copytree(self.resources_dir, self.config.destination, dirs_exist_ok=True)
        except OSError as exc:
            logger.error(
                "Unable to copy resources in documentation folder %s: %s",
                self.config.destination,
                exc,
            )


def join_names(items: Optional[Iterable[Any]], on: Optional[str] = None) -> str:
    """Join items (or one of their fields), skipping dotted nested names like `options.x`."""
    if not items:
        return ""
    values = [str(item.get(on) if on and isinstance(item, Mapping) else item) for item in items]
    return ", ".join(value for value in values if "." not in value)


def in_md_table(value: Any) -> Any:
    """Escape pipes so the value fits in a markdown table cell."""
    return value.replace("|", "\\|") if isinstance(value, str) else value


def _rewrite_links_recursively(doclet: Doclet, types_index: Mapping[str, str]) -> None:
    for key in _LINKED_FIELDS:
        if doclet.get(key):
            doclet[key] = rewrite_links(doclet[key], types_index)
    for collection in ("classes", "functions", "constants", "members"):
        for child in doclet.get(collection) or []:
            _rewrite_links_recursively(child, types_index)
    for collection in ("params", "returns"):
        for entry in doclet.get(collection) or []:
            if isinstance(entry, dict) and entry.get("description"):
                entry["description"] = rewrite_links(entry["description"], types_index)


__all__ = [
    "GenerationResult",
    "MarkdownGenerator",
    "access_rank",
    "badge_text",
    "doc_filename",
    "in_md_table",
    "join_names",
    "rewrite_links",
]
