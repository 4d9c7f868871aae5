"""Module hierarchy reconstruction for files documented without `@module`."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Dict, List

from .logging import get_logger
from .models import MODULE_PREFIX, Doclet, is_documented, source_path
from .rules import DocletProcessor

logger = get_logger("hierarchy")


def derive_module_name(filepath: str, root: Path) -> str:
    """Return the module name of a source file, relative to `root`.

    The extension is dropped and an `index` file stands for its folder:
    `a/b/foo.js` gives `a/b/foo` while `a/b/index.js` gives `a/b`.
    """
    relative = os.path.relpath(filepath, root).replace(os.sep, "/")
    path = PurePosixPath(relative)
    if path.stem != "index":
        return str(path.with_suffix(""))
    parent = str(path.parent)
    if parent in ("", "."):
        return Path(root).resolve().name
    return parent


def reconstruct(doclets: List[Doclet], processor: DocletProcessor) -> None:
    """Attach global classes and functions to modules, synthesizing missing ones.

    Files that carry documentation but no explicit module doclet get exactly
    one synthesized module doclet, appended to `doclets`. Global classes and
    functions are re-parented under their file's module.
    """
    root = processor.config.root

    documented_files: Dict[str, None] = {}
    module_longnames: Dict[str, str] = {}
    for doclet in doclets:
        if not is_documented(doclet):
            continue
        filepath = source_path(doclet)
        documented_files.setdefault(filepath, None)
        if doclet.get("kind") == "module" and doclet.get("longname"):
            module_longnames.setdefault(filepath, doclet["longname"])

    targets = [path for path in documented_files if path not in module_longnames]

    def parent_longname(filepath: str) -> str:
        explicit = module_longnames.get(filepath)
        return explicit or f"{MODULE_PREFIX}{derive_module_name(filepath, root)}"

    class_doclets = _global_doclets(doclets, "class")
    for doclet in class_doclets:
        doclet["memberof"] = parent_longname(source_path(doclet))
    for doclet in _global_doclets(doclets, "function"):
        doclet["memberof"] = parent_longname(source_path(doclet))

    classes_by_file: Dict[str, Doclet] = {}
    for doclet in class_doclets:
        classes_by_file.setdefault(source_path(doclet), doclet)

    synthesized = [
        _synthesize_module(filepath, classes_by_file.get(filepath, {}), processor)
        for filepath in targets
    ]
    doclets.extend(synthesized)
    if synthesized:
        logger.debug("Synthesized %d module doclet(s)", len(synthesized))


def _global_doclets(doclets: List[Doclet], kind: str) -> List[Doclet]:
    return [
        doclet
        for doclet in doclets
        if doclet.get("kind") == kind and doclet.get("scope") == "global" and is_documented(doclet)
    ]


def _synthesize_module(filepath: str, class_doclet: Doclet, processor: DocletProcessor) -> Doclet:
    name = derive_module_name(filepath, processor.config.root)
    doclet: Doclet = {
        "tocDescription": class_doclet.get("classdesc") or f"Module {name}",
        "meta": {
            "filename": os.path.basename(filepath),
            "path": os.path.dirname(filepath),
        },
        "kind": "module",
        "category": class_doclet.get("category"),
        "name": name,
        "longname": f"{MODULE_PREFIX}{name}",
    }
    logger.debug("Synthesized module %s for %s", doclet["longname"], filepath)
    return processor.apply_rules(doclet)


__all__ = ["derive_module_name", "reconstruct"]
