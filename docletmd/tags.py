"""Custom tag definitions registered with the host's tag dictionary."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol

from .models import Doclet

OnTagged = Callable[[Doclet, Mapping[str, Any]], None]


class TagDictionary(Protocol):
    """The part of a host tag dictionary the plugin uses."""

    def define_tag(self, title: str, *, on_tagged: OnTagged) -> Any:
        ...


def on_category_tagged(doclet: Doclet, tag: Mapping[str, Any]) -> None:
    """Store the lower-cased tag text as the doclet category.

    Example: `@category Model` gives `doclet["category"] == "model"`.
    """
    doclet["category"] = str(tag.get("text") or "").lower()


def define_tags(dictionary: TagDictionary) -> None:
    """Register the `category` tag; any text value is accepted."""
    dictionary.define_tag("category", on_tagged=on_category_tagged)


__all__ = ["OnTagged", "TagDictionary", "define_tags", "on_category_tagged"]
