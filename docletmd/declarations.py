"""Inspection of raw declaration data attached to doclets by the host parser."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, List, Mapping

# `export class Foo`, `exports.foo`, `module.exports`; not identifiers such as `exportCsv`.
_EXPORT_MARKER = re.compile(r"export\s|exports\.|module\.exports\b")


class DeclarationInspector(ABC):
    """Contract for reading export markers and decorators from `meta.code`."""

    @abstractmethod
    def is_exported(self, code: Mapping[str, Any]) -> bool:
        """Return True when the declaration is a language-level export."""

    @abstractmethod
    def decorator_names(self, code: Mapping[str, Any]) -> List[str]:
        """Return the identifier of every decorator applied to the declaration."""

    def has_decorators(self, code: Mapping[str, Any]) -> bool:
        node = code.get("node")
        return isinstance(node, dict) and bool(node.get("decorators"))


class EstreeInspector(DeclarationInspector):
    """Reads ESTree-shaped nodes as produced by Babel-based doc hosts.

    The declaration text in `meta.code.name` carries the export marker
    (`export class Foo`, `exports.foo`, `module.exports`) and decorators sit
    on `meta.code.node.decorators` as `{expression: Identifier | CallExpression}`.
    """

    def is_exported(self, code: Mapping[str, Any]) -> bool:
        name = code.get("name")
        if not isinstance(name, str) or not name:
            return False
        return _EXPORT_MARKER.match(name) is not None

    def decorator_names(self, code: Mapping[str, Any]) -> List[str]:
        node = code.get("node")
        if not isinstance(node, dict):
            return []
        names: List[str] = []
        for decorator in node.get("decorators") or []:
            expression = decorator.get("expression") if isinstance(decorator, dict) else None
            names.append(_expression_name(expression))
        return names


def _expression_name(expression: Any) -> str:
    if not isinstance(expression, dict):
        return ""
    kind = expression.get("type")
    if kind == "Identifier":
        return str(expression.get("name") or "")
    if kind == "CallExpression":
        callee = expression.get("callee")
        if isinstance(callee, dict) and callee.get("type") == "Identifier":
            return str(callee.get("name") or "")
    return ""


__all__ = ["DeclarationInspector", "EstreeInspector"]
