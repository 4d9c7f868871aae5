"""Core data models shared across docletmd components."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

# Doclets are host-owned records; the plugin reads and writes them by key.
Doclet = Dict[str, Any]

MODULE_PREFIX = "module:"

ACCESS_LEVELS = ("public", "protected", "private")


class MalformedDocletError(ValueError):
    """Raised when a doclet lacks the source location a rule depends on."""


@dataclass
class TypeExpression:
    """Type, name and description recovered from one raw tag line."""

    type: str
    name: Optional[str] = None
    description: str = ""


def meta_of(doclet: Mapping[str, Any]) -> Dict[str, Any]:
    meta = doclet.get("meta")
    return meta if isinstance(meta, dict) else {}


def code_of(doclet: Mapping[str, Any]) -> Dict[str, Any]:
    code = meta_of(doclet).get("code")
    return code if isinstance(code, dict) else {}


def source_path(doclet: Mapping[str, Any]) -> str:
    """Return the source file path of a doclet (`meta.path` joined with `meta.filename`)."""
    meta = meta_of(doclet)
    folder = meta.get("path")
    filename = meta.get("filename")
    if not isinstance(folder, str) or not isinstance(filename, str) or not filename:
        label = doclet.get("longname") or doclet.get("name") or "<anonymous>"
        raise MalformedDocletError(f"Doclet {label} has no meta.path/meta.filename")
    return os.path.join(folder, filename)


def file_basename(filename: str) -> str:
    """Return the file name without folder and extension."""
    return os.path.splitext(os.path.basename(filename))[0]


def is_documented(doclet: Mapping[str, Any]) -> bool:
    return not doclet.get("undocumented")


def tag_titles(doclet: Mapping[str, Any]) -> List[str]:
    tags = doclet.get("tags") or []
    return [str(tag.get("title")) for tag in tags if isinstance(tag, dict)]


__all__ = [
    "ACCESS_LEVELS",
    "Doclet",
    "MODULE_PREFIX",
    "MalformedDocletError",
    "TypeExpression",
    "code_of",
    "file_basename",
    "is_documented",
    "meta_of",
    "source_path",
    "tag_titles",
]
