"""Documentation tree assembly from a flat doclet collection."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from ..models import Doclet


@dataclass(frozen=True)
class ChildCollection:
    """Where children of one kind are stored on their parent."""

    name: str
    recurse: bool


CHILD_COLLECTIONS: Dict[str, ChildCollection] = {
    "namespace": ChildCollection("namespaces", recurse=True),
    "module": ChildCollection("modules", recurse=True),
    "class": ChildCollection("classes", recurse=True),
    "mixin": ChildCollection("mixins", recurse=True),
    "function": ChildCollection("functions", recurse=False),
    "member": ChildCollection("members", recurse=False),
    "event": ChildCollection("events", recurse=False),
    "constant": ChildCollection("constants", recurse=False),
}


def filter_doclets(doclets: Iterable[Doclet]) -> List[Doclet]:
    """Drop excluded doclets and package doclets before rendering."""
    return [
        doclet
        for doclet in doclets
        if doclet.get("included") is not False and doclet.get("kind") != "package"
    ]


def build_tree(doclets: Iterable[Doclet]) -> Doclet:
    """Return a root node whose collections hold the top-level doclets.

    Children are matched on `memberof == parent longname`; top-level doclets
    have no `memberof`.
    """
    by_parent: Dict[Optional[str], List[Doclet]] = defaultdict(list)
    for doclet in doclets:
        by_parent[doclet.get("memberof")].append(doclet)

    root: Doclet = {}
    _attach_children(root, None, by_parent, set())
    return root


def _attach_children(
    parent: Doclet,
    parent_longname: Optional[str],
    by_parent: Dict[Optional[str], List[Doclet]],
    visiting: Set[str],
) -> None:
    for doclet in by_parent.get(parent_longname, []):
        if doclet is parent:
            continue
        collection = CHILD_COLLECTIONS.get(doclet.get("kind") or "")
        if collection is None:
            continue
        parent.setdefault(collection.name, []).append(doclet)
        longname = doclet.get("longname")
        if collection.recurse and longname and longname not in visiting:
            visiting.add(longname)
            _attach_children(doclet, longname, by_parent, visiting)
            visiting.discard(longname)


__all__ = ["CHILD_COLLECTIONS", "ChildCollection", "build_tree", "filter_doclets"]
