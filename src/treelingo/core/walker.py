"""Path-addressed traversal of document trees.

Documents are plain JSON-like values: dicts keyed by string, lists and
scalars. Every location is addressed by a dotted path such as
``body.2.primaryCta.label`` where list positions appear as indices.
"""

from typing import Any, Callable, Iterator, Optional, Union

# Field holding translation linkage metadata; never read or recursed into.
RESERVED_METADATA_KEY = "_translations"
TYPE_FIELD = "_type"
KEY_FIELD = "_key"

PathSegment = Union[str, int]


def escape_segment(segment: PathSegment) -> str:
    """Escape a key so dots inside it are not read as separators."""
    return str(segment).replace("\\", "\\\\").replace(".", "\\.")


def join_path(prefix: str, segment: PathSegment) -> str:
    """
    Append a key or index to a dotted path.

    Dots and backslashes inside keys are backslash-escaped, so ``{"a.b": ...}``
    and ``{"a": {"b": ...}}`` get distinct paths.
    """
    escaped = escape_segment(segment)
    return f"{prefix}.{escaped}" if prefix else escaped


def split_path(path: str) -> list[str]:
    """Split a dotted path into its unescaped segments."""
    segments: list[str] = []
    current: list[str] = []
    chars = iter(path)
    for char in chars:
        if char == "\\":
            current.append(next(chars, ""))
        elif char == ".":
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))
    return segments



def is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def node_type(value: Any, default: Optional[str] = None) -> Optional[str]:
    """Return the ``_type`` discriminant of a mapping, or ``default``."""
    if isinstance(value, dict):
        discriminant = value.get(TYPE_FIELD)
        if isinstance(discriminant, str):
            return discriminant
    return default


def iter_children(node: Any) -> Iterator[tuple[PathSegment, Any]]:
    """
    Yield ``(key, value)`` pairs of a container.

    Lists yield their indices as keys. The reserved metadata key is skipped
    and ``None`` values produce nothing.
    """
    if isinstance(node, dict):
        items: Any = node.items()
    elif isinstance(node, list):
        items = enumerate(node)
    else:
        return
    for key, value in items:
        if key == RESERVED_METADATA_KEY or value is None:
            continue
        yield key, value


def walk(
    node: Any,
    path: str = "",
    stop: Optional[Callable[[PathSegment, Any], bool]] = None,
) -> Iterator[tuple[str, Any]]:
    """
    Yield ``(path, value)`` for every scalar below ``node``.

    Args:
        node: Tree node to traverse
        path: Path prefix of ``node``
        stop: Predicate on ``(key, value)``; containers it accepts are yielded
            whole instead of being recursed into

    Yields:
        Dotted path and value pairs in document order
    """
    for key, value in iter_children(node):
        child_path = join_path(path, key)
        if is_container(value) and not (stop and stop(key, value)):
            yield from walk(value, child_path, stop)
        else:
            yield child_path, value


def walk_nodes(node: Any, path: str = "") -> Iterator[tuple[str, Any]]:
    """Yield ``(path, container)`` for ``node`` and every container below it, pre-order."""
    if not is_container(node):
        return
    yield path, node
    for key, value in iter_children(node):
        if is_container(value):
            yield from walk_nodes(value, join_path(path, key))


def get_path(node: Any, path: str) -> Any:
    """
    Resolve a dotted path against a tree.

    Raises:
        KeyError: If a segment does not exist
    """
    current = node
    if not path:
        return current
    for segment in split_path(path):
        if isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as e:
                raise KeyError(path) from e
        elif isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            raise KeyError(path)
    return current
