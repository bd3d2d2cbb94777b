"""Generic depth-first walker over JSON/YAML-shaped trees.

OpenAPI fragments are arbitrarily nested dicts and lists, and several stages
need to find every ``$ref`` inside one: the response deduplicator rewrites
renamed pointers, the resolver turns in-document pointers into relative file
paths, and the validator reports the ones that are left. They all go through
:func:`walk` with a per-node visitor instead of recursing by hand.

Locations are tuples of dict keys and list indices, rendered for humans by
:func:`format_location` (``properties.items[0]``).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Optional, Union

PathSegment = Union[str, int]
Location = tuple[PathSegment, ...]
Visitor = Callable[[Any, Location], None]

REF_KEY = "$ref"


def walk(node: Any, visit: Visitor, location: Location = ()) -> None:
    """Call *visit* on *node* and every nested value, parents before children.

    The visitor may mutate the values inside a dict it is given (e.g. rewrite
    ``node["$ref"]``) but must not add or remove keys of the container being
    walked.

    Args:
        node: Root of the tree (dict, list, or scalar).
        visit: Called as ``visit(value, location)`` for every node.
        location: Location of *node* relative to the original root.
    """
    visit(node, location)
    if isinstance(node, dict):
        for key, value in node.items():
            walk(value, visit, location + (key,))
    elif isinstance(node, list):
        for index, value in enumerate(node):
            walk(value, visit, location + (index,))


def iter_refs(node: Any) -> Iterator[tuple[Location, dict[str, Any]]]:
    """Yield ``(location, holder)`` for every dict carrying a string ``$ref``.

    ``holder`` is the dict itself, so callers can rewrite ``holder["$ref"]``
    in place.
    """
    found: list[tuple[Location, dict[str, Any]]] = []

    def _collect(value: Any, location: Location) -> None:
        if isinstance(value, dict) and isinstance(value.get(REF_KEY), str):
            found.append((location, value))

    walk(node, _collect)
    return iter(found)


def rewrite_refs(node: Any, rewrite: Callable[[str, Location], Optional[str]]) -> int:
    """Rewrite ``$ref`` strings in place.

    Args:
        node: Tree to mutate.
        rewrite: Called with the current pointer and its holder's location;
            returns the replacement, or ``None`` to leave it unchanged.

    Returns:
        The number of pointers that were changed.
    """
    count = 0
    for location, holder in iter_refs(node):
        current = holder[REF_KEY]
        replacement = rewrite(current, location)
        if replacement is not None and replacement != current:
            holder[REF_KEY] = replacement
            count += 1
    return count


def format_location(location: Location) -> str:
    """Render a location as ``a.b[0].c``."""
    out = ""
    for segment in location:
        if isinstance(segment, int):
            out += f"[{segment}]"
        elif out:
            out += f".{segment}"
        else:
            out = str(segment)
    return out
