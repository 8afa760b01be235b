"""Translatable field-key configuration.

A field key is either a bare field name, translatable under any parent, or a
typed key that only applies when the enclosing object's ``_type`` is one of
``types``. Keys are kept in an ordered list and the first key whose name
matches decides eligibility.
"""

from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TypedFieldKey(BaseModel):
    """Field name translatable only inside objects of the given types."""

    model_config = ConfigDict(frozen=True)

    types: frozenset[str] = Field(description="Parent _type values the key applies to")
    key: str = Field(description="Field name")


FieldKey = Union[str, TypedFieldKey]

DEFAULT_TRANSLATABLE_FIELD_KEYS: tuple[FieldKey, ...] = (
    "altText",
    "label",
    "text",
    "title",
    "seoTitle",
    "description",
    "subline",
    "caption",
    "emailSubject",
    "isRequiredErrorMessage",
    "errorTitle",
    "actionButtonLabel",
    "placeholder",
    "featHeader",
    "conHeader",
    "proHeader",
    "faqHeader",
    "teaser",
    "jobTitle",
    "supportingText",
    "statNumber",
    TypedFieldKey(types=frozenset({"form", "pageCategory", "category"}), key="name"),
)

DEFAULT_TRANSLATABLE_ARRAY_FIELD_KEYS: tuple[str, ...] = ("keywords",)


def field_key_name(field_key: FieldKey) -> str:
    """Return the field name a key matches on."""
    return field_key if isinstance(field_key, str) else field_key.key


def merge_field_keys(
    custom: Optional[Iterable[FieldKey]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> list[FieldKey]:
    """
    Merge custom field keys into the defaults and drop excluded ones.

    Args:
        custom: Additional keys appended after the defaults
        exclude: Field names to remove (typed keys match on their ``key``)

    Returns:
        Ordered list of field keys
    """
    merged: list[FieldKey] = [*DEFAULT_TRANSLATABLE_FIELD_KEYS, *(custom or ())]
    excluded = set(exclude or ())
    if excluded:
        merged = [k for k in merged if field_key_name(k) not in excluded]
    return merged


def merge_array_field_keys(
    custom: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> list[str]:
    """Merge custom whole-array field keys into the defaults, minus exclusions."""
    merged = [*DEFAULT_TRANSLATABLE_ARRAY_FIELD_KEYS, *(custom or ())]
    excluded = set(exclude or ())
    return [k for k in merged if k not in excluded]


def is_translatable_key(
    key: str,
    parent_type: Optional[str],
    field_keys: Iterable[FieldKey],
) -> bool:
    """
    Check whether a string field is translatable under its parent type.

    The first key with a matching name decides: bare names always qualify,
    typed keys only when ``parent_type`` is in their type set.
    """
    for field_key in field_keys:
        if isinstance(field_key, str):
            if field_key == key:
                return True
        elif field_key.key == key:
            return parent_type is not None and parent_type in field_key.types
    return False
