"""Copy media fields from a source document onto its language versions.

Images and icons are language independent, so after the source changes
its media objects are copied over to every sibling. A media field is
replaced only where the sibling has the same field under a parent with the
same ``_key`` at the same position, so reordered or removed blocks are left
alone.
"""

import copy
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from treelingo.core.walker import KEY_FIELD, PathSegment, is_container, iter_children

DEFAULT_MEDIA_FIELD_KEYS: tuple[str, ...] = (
    "media",
    "icon",
    "mainImage",
    "sanityIcon",
    "productImage",
)


def merge_media_field_keys(custom: Optional[Iterable[str]] = None) -> list[str]:
    """Return the default media field names followed by ``custom`` ones."""
    merged = list(DEFAULT_MEDIA_FIELD_KEYS)
    merged.extend(key for key in custom or () if key not in merged)
    return merged


@dataclass
class MediaField:
    """A media value found in the source document."""

    key: str
    value: Any
    parent_key: Optional[str]
    segments: tuple[PathSegment, ...]


def collect_media_fields(
    node: Any,
    media_keys: Iterable[str],
    parent_key: Optional[str] = None,
    segments: tuple[PathSegment, ...] = (),
) -> list[MediaField]:
    """
    Find every media object below ``node``.

    Media objects are not searched for nested media. ``parent_key`` is the
    ``_key`` of the object holding the field (None at the root or when the
    parent has no key).
    """
    keys = set(media_keys)
    found: list[MediaField] = []
    for key, value in iter_children(node):
        if not is_container(value):
            continue
        if key in keys:
            found.append(MediaField(key=key, value=value, parent_key=parent_key, segments=segments + (key,)))
            continue
        child_key = value.get(KEY_FIELD) if isinstance(value, dict) else None
        found.extend(collect_media_fields(value, keys, child_key, segments + (key,)))
    return found


def _resolve(node: Any, segments: tuple[PathSegment, ...]) -> Any:
    current = node
    for segment in segments:
        if isinstance(current, list) and isinstance(segment, int) and segment < len(current):
            current = current[segment]
        elif isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            return None
    return current


def replace_media_fields(media: Iterable[MediaField], target: dict[str, Any]) -> tuple[dict[str, Any], int]:
    """
    Copy media values onto a deep copy of ``target``.

    Returns:
        The updated copy and the number of fields replaced
    """
    updated = copy.deepcopy(target)
    replaced = 0
    for field in media:
        parent = _resolve(updated, field.segments[:-1])
        if not isinstance(parent, dict) or field.key not in parent:
            continue
        if parent.get(KEY_FIELD) != field.parent_key:
            continue
        parent[field.key] = copy.deepcopy(field.value)
        replaced += 1
    return updated, replaced
