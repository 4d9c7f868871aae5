"""Doclet enrichment rule table.

Each rule is keyed by the doclet property it derives. Rules run in
declaration order against one mutable doclet:

- a rule with a `condition` is skipped when the condition is false,
- a rule with a `process` runs it (free-form mutation or side effect),
- otherwise `doclet[key] = value(doclet)`.

Later rules read what earlier rules wrote (`included` reads `access`,
`categorycolor` reads `category`), so the order of `RULES` is part of the
observable behaviour.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import PluginConfig
from .declarations import DeclarationInspector, EstreeInspector
from .logging import get_logger
from .models import (
    MODULE_PREFIX,
    Doclet,
    code_of,
    file_basename,
    meta_of,
    source_path,
    tag_titles,
)
from .typeexpr import (
    PARAM_TITLES,
    RETURN_TITLES,
    TYPE_TITLES,
    comment_tag_lines,
    parse_tag_line,
)

logger = get_logger("rules")

Condition = Callable[["DocletProcessor", Doclet], bool]
Process = Callable[["DocletProcessor", Doclet], None]
Value = Callable[["DocletProcessor", Doclet], Any]

_CONTAINER_KINDS = ("module", "class")
_EXPORTABLE_KINDS = ("constant", "function", "member")

# ESTree line terminators; `str.splitlines` also breaks on \f, \v and \x85.
_LINE_BREAK = re.compile(r"(?<=[\n\u2028\u2029])|(?<=\r)(?!\n)")


@dataclass(frozen=True)
class Rule:
    """One entry of the rule table."""

    key: str
    condition: Optional[Condition] = None
    process: Optional[Process] = None
    value: Optional[Value] = None

    def applies(self, processor: "DocletProcessor", doclet: Doclet) -> bool:
        return self.condition is None or bool(self.condition(processor, doclet))

    def run(self, processor: "DocletProcessor", doclet: Doclet) -> None:
        if self.process is not None:
            self.process(processor, doclet)
        elif self.value is not None:
            doclet[self.key] = self.value(processor, doclet)


class DocletProcessor:
    """Applies the rule table for one generation run.

    The processor owns the run state: the list of exported class longnames
    filled by `isExportedClass` and read by `access`, and a cache of source
    files read for constant values. Create a new processor per run.
    """

    def __init__(
        self,
        config: PluginConfig,
        inspector: Optional[DeclarationInspector] = None,
        rules: Optional[Iterable[Rule]] = None,
    ) -> None:
        self.config = config
        self.inspector = inspector or EstreeInspector()
        self.rules: List[Rule] = list(rules) if rules is not None else list(RULES)
        self.exported_classes: List[str] = []
        self._sources: Dict[str, str] = {}

    def apply_rules(self, doclet: Doclet) -> Doclet:
        for rule in self.rules:
            if rule.applies(self, doclet):
                rule.run(self, doclet)
        return doclet

    def read_source(self, path: str) -> str:
        source = self._sources.get(path)
        if source is None:
            with open(path, encoding=self.config.encoding) as handle:
                source = handle.read()
            self._sources[path] = source
        return source

    def screenshot_name(self, doclet: Doclet) -> str:
        filename = meta_of(doclet).get("filename") or ""
        return f"{doclet.get('kind')}_{file_basename(filename)}.png"


# isExportedClass


def _is_exported_class(ctx: DocletProcessor, d: Doclet) -> bool:
    if d.get("kind") != "class":
        return False
    return ctx.inspector.is_exported(code_of(d)) or "export" in tag_titles(d)


def _record_exported_class(ctx: DocletProcessor, d: Doclet) -> None:
    longname = d.get("longname") or d.get("name")
    if longname and longname not in ctx.exported_classes:
        ctx.exported_classes.append(longname)
        logger.debug("Exported class recorded: %s", longname)


# valuecode


def _has_location(ctx: DocletProcessor, d: Doclet) -> bool:
    node = code_of(d).get("node")
    return d.get("kind") == "constant" and isinstance(node, dict) and isinstance(node.get("loc"), dict)


def _value_code(ctx: DocletProcessor, d: Doclet) -> str:
    source = ctx.read_source(source_path(d))
    loc = code_of(d)["node"]["loc"]
    start = _offset(source, loc["start"]["line"], loc["start"]["column"])
    end = _offset(source, loc["end"]["line"], loc["end"]["column"])
    code = source[start:end]
    marker = code.find(" =")
    if marker == -1:
        return code
    # TODO: destructuring and multi-declarator statements keep everything after the first " =".
    value = code[marker + 2 :].strip()
    return value[:-1].rstrip() if value.endswith(";") else value


def _offset(source: str, line: int, column: int) -> int:
    """Convert a 1-based line and 0-based column into a string index."""
    lines = _LINE_BREAK.split(source)
    return sum(len(text) for text in lines[: line - 1]) + column


# screenshot


def _has_screenshot(ctx: DocletProcessor, d: Doclet) -> bool:
    if d.get("kind") not in _CONTAINER_KINDS:
        return False
    path = ctx.config.destination / "images" / "screenshots" / ctx.screenshot_name(d)
    return path.is_file()


# relativepath


def _relative_path(ctx: DocletProcessor, d: Doclet) -> str:
    relative = os.path.relpath(source_path(d), ctx.config.destination)
    return relative.replace(os.sep, "/")


# type (members)


def _member_without_type(ctx: DocletProcessor, d: Doclet) -> bool:
    return d.get("kind") == "member" and bool(d.get("comment")) and not d.get("type")


def _extract_member_type(ctx: DocletProcessor, d: Doclet) -> None:
    for line in comment_tag_lines(d["comment"], TYPE_TITLES):
        parsed = parse_tag_line(line)
        if parsed is not None:
            d["type"] = {"names": [parsed.type]}
            return
    returns = d.get("returns") or []
    if returns and returns[0].get("type"):
        d["type"] = returns[0]["type"]


# access


def _access(ctx: DocletProcessor, d: Doclet) -> str:
    memberof = d.get("memberof")
    name = d.get("name") or ""
    if memberof and memberof in ctx.exported_classes and not name.startswith("_"):
        return "public"
    if d.get("kind") in _EXPORTABLE_KINDS and ctx.inspector.is_exported(code_of(d)):
        return "public"
    return "private"


# isDefault


def _mark_default(ctx: DocletProcessor, d: Doclet) -> None:
    d["isDefault"] = True
    d["name"] = "default"


# fixUndocumented


def _exclude(ctx: DocletProcessor, d: Doclet) -> None:
    d["included"] = False


# acceptTypeScriptType


def _accept_typescript_type(ctx: DocletProcessor, d: Doclet) -> None:
    comment = d["comment"]
    if d.get("kind") == "function":
        _recover_entries(d.get("params"), comment_tag_lines(comment, PARAM_TITLES))
        _recover_entries(d.get("returns"), comment_tag_lines(comment, RETURN_TITLES))
        return
    lines = comment_tag_lines(comment, TYPE_TITLES)
    if d.get("type") and len(lines) == 1:
        parsed = parse_tag_line(lines[0])
        if parsed is not None:
            d["type"] = {"names": [parsed.type]}


def _recover_entries(entries: Optional[List[Dict[str, Any]]], lines: List[str]) -> None:
    # Mismatched counts would shift types onto the wrong parameters.
    if not entries or len(entries) != len(lines):
        return
    for entry, line in zip(entries, lines):
        parsed = parse_tag_line(line)
        if parsed is None:
            continue
        entry["type"] = {"names": [parsed.type]}
        if parsed.description:
            entry["description"] = parsed.description


# dot-path fixes


def _misplaced_prefix(value: Any) -> bool:
    return isinstance(value, str) and value.find(MODULE_PREFIX) > 0


def repair_module_path(value: str) -> str:
    """Rewrite `a/v1.module:2/b` (a dotted path split by the host) to `module:a/v1.2/b`."""
    index = value.find(MODULE_PREFIX)
    if index <= 0:
        return value
    return MODULE_PREFIX + value[:index] + value[index + len(MODULE_PREFIX) :]


def _has_broken_path(ctx: DocletProcessor, d: Doclet) -> bool:
    return _misplaced_prefix(d.get("longname")) or _misplaced_prefix(d.get("memberof"))


def _fix_dot_path(ctx: DocletProcessor, d: Doclet) -> None:
    longname = d.get("longname")
    memberof = d.get("memberof")
    if _misplaced_prefix(longname):
        d["longname"] = repair_module_path(longname)
        if d.get("kind") == "module":
            d["name"] = d["longname"][len(MODULE_PREFIX) :]
            if memberof and longname.startswith(f"{memberof}."):
                del d["memberof"]
                return
    if _misplaced_prefix(memberof):
        d["memberof"] = repair_module_path(memberof)


# inject


def _is_decorated_class(ctx: DocletProcessor, d: Doclet) -> bool:
    return d.get("kind") == "class" and ctx.inspector.has_decorators(code_of(d))


def _is_injected(ctx: DocletProcessor, d: Doclet) -> bool:
    return "inject" in ctx.inspector.decorator_names(code_of(d))


RULES: List[Rule] = [
    Rule("isExportedClass", condition=_is_exported_class, process=_record_exported_class),
    Rule(
        "tocDescription",
        condition=lambda ctx, d: d.get("kind") == "module" and not d.get("tocDescription"),
        value=lambda ctx, d: d.get("description"),
    ),
    Rule("valuecode", condition=_has_location, value=_value_code),
    Rule("screenshot", condition=_has_screenshot, value=lambda ctx, d: ctx.screenshot_name(d)),
    Rule(
        "category",
        condition=lambda ctx, d: not d.get("category") and d.get("kind") in _CONTAINER_KINDS,
        value=lambda ctx, d: "other",
    ),
    Rule(
        "categorycolor",
        value=lambda ctx, d: ctx.config.markdown.badgecolors.get(d.get("category"), "blue"),
    ),
    Rule("static", value=lambda ctx, d: d.get("scope") == "static"),
    Rule(
        "hasParameters",
        value=lambda ctx, d: bool(d.get("params")) or bool(d.get("returns")),
    ),
    Rule("relativepath", value=_relative_path),
    Rule("type", condition=_member_without_type, process=_extract_member_type),
    Rule(
        "memberof",
        condition=lambda ctx, d: d.get("kind") != "module"
        and not d.get("memberof")
        and str(d.get("longname") or "").startswith(MODULE_PREFIX),
        value=lambda ctx, d: d["longname"],
    ),
    Rule("access", condition=lambda ctx, d: not d.get("access"), value=_access),
    Rule(
        "included",
        value=lambda ctx, d: d.get("kind") in _CONTAINER_KINDS
        or d.get("access") in ctx.config.includes,
    ),
    Rule(
        "isDefault",
        condition=lambda ctx, d: d.get("kind") != "module"
        and str(d.get("name") or "").startswith(MODULE_PREFIX),
        process=_mark_default,
    ),
    Rule(
        "fixUndocumented",
        condition=lambda ctx, d: d.get("undocumented") is True,
        process=_exclude,
    ),
    Rule(
        "acceptTypeScriptType",
        condition=lambda ctx, d: d.get("kind") in ("function", "constant") and bool(d.get("comment")),
        process=_accept_typescript_type,
    ),
    Rule("fixDotPath", condition=_has_broken_path, process=_fix_dot_path),
    Rule("inject", condition=_is_decorated_class, value=_is_injected),
]


__all__ = ["DocletProcessor", "RULES", "Rule", "repair_module_path"]
