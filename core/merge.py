"""Schema-driven merge of partial updates into the intake document.

``merge_document`` is the only way the document changes. It consults the
declared :class:`~core.schema.FieldKind` of every path it visits:

* scalars are overwritten when the incoming value is not ``None``;
* records (``location``, ``primaryContact``) and category maps are merged key
  by key so a partial naming one key leaves its siblings alone;
* lists and lists of records are replaced wholesale, never appended to or
  merged element-wise.

The input document is never mutated. When a partial changes nothing the
original document object is returned, so callers can detect real changes by
identity.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from core.schema import (
    FieldKind,
    FieldSpec,
    empty_item,
    empty_value,
    get_field_spec,
    get_path_value,
)

logger = logging.getLogger(__name__)

_SKIP = object()


def _coerce_text(value: object) -> str:
    if isinstance(value, str):
        return value
    return str(value)


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _merge_scalar(spec: FieldSpec, incoming: object) -> object:
    if isinstance(incoming, Mapping) or _is_sequence(incoming):
        logger.debug("Ignoring non-scalar value for %s", spec.path)
        return _SKIP
    return _coerce_text(incoming)


def _merge_list(spec: FieldSpec, incoming: object) -> object:
    if not _is_sequence(incoming):
        logger.debug("Ignoring non-list value for %s", spec.path)
        return _SKIP
    return [_coerce_text(item) for item in incoming if item is not None]  # type: ignore[union-attr]


def _normalize_item(spec: FieldSpec, raw: Mapping[str, Any]) -> dict[str, Any]:
    item = empty_item(spec)
    for item_spec in spec.item_fields:
        value = raw.get(item_spec.key)
        if value is None:
            continue
        merged = _merge_value(item_spec, item[item_spec.key], value)
        if merged is not _SKIP:
            item[item_spec.key] = merged
    return item


def _merge_record_list(spec: FieldSpec, incoming: object) -> object:
    if not _is_sequence(incoming):
        logger.debug("Ignoring non-list value for %s", spec.path)
        return _SKIP
    return [_normalize_item(spec, raw) for raw in incoming if isinstance(raw, Mapping)]  # type: ignore[union-attr]


def _merge_map(spec: FieldSpec, existing: Mapping[str, Any], incoming: object) -> object:
    if not isinstance(incoming, Mapping):
        logger.debug("Ignoring non-mapping value for %s", spec.path)
        return _SKIP
    updated: dict[str, Any] | None = None
    for key, value in incoming.items():
        if key not in spec.map_keys:
            logger.debug("Ignoring unknown key %s for %s", key, spec.path)
            continue
        if value is None:
            continue
        if spec.kind is FieldKind.LIST_MAP:
            merged = _merge_list(spec, value)
        else:
            merged = _merge_scalar(spec, value)
        if merged is _SKIP or merged == existing.get(key):
            continue
        if updated is None:
            updated = dict(existing)
        updated[key] = merged
    return existing if updated is None else updated


def _merge_value(spec: FieldSpec, existing: Any, incoming: object) -> object:
    if spec.kind is FieldKind.SCALAR:
        return _merge_scalar(spec, incoming)
    if spec.kind is FieldKind.LIST:
        return _merge_list(spec, incoming)
    if spec.kind is FieldKind.RECORD_LIST:
        return _merge_record_list(spec, incoming)
    if spec.kind is FieldKind.RECORD:
        if not isinstance(incoming, Mapping):
            logger.debug("Ignoring non-mapping value for %s", spec.path)
            return _SKIP
        return _merge_children(spec.path, existing, incoming)
    return _merge_map(spec, existing, incoming)


def _merge_children(parent: str, current: Mapping[str, Any], partial: Mapping[str, Any]) -> Mapping[str, Any]:
    updated: dict[str, Any] | None = None
    for key, incoming in partial.items():
        path = f"{parent}.{key}" if parent else str(key)
        spec = get_field_spec(path)
        if spec is None:
            logger.debug("Ignoring unknown document path %s", path)
            continue
        if incoming is None:
            continue
        existing = current.get(key)
        if existing is None:
            existing = empty_value(spec)
        merged = _merge_value(spec, existing, incoming)
        if merged is _SKIP or merged == existing:
            continue
        if updated is None:
            updated = dict(current)
        updated[key] = merged
    return current if updated is None else updated


def merge_document(document: Mapping[str, Any], partial: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return ``document`` with ``partial`` applied.

    Args:
        document: Current document; left untouched.
        partial: Sparse fragment of the document shape. Keys that are absent
            or ``None`` leave the corresponding document value alone; keys
            that are not part of the schema are ignored.

    Returns:
        A new document when anything changed, otherwise ``document`` itself.
    """

    if not isinstance(partial, Mapping) or not partial:
        return document
    return _merge_children("", document, partial)


def _nest(parts: Sequence[str], value: Any) -> dict[str, Any]:
    nested: Any = value
    for part in reversed(parts):
        nested = {part: nested}
    return nested


def build_partial(path: str, value: Any, document: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Express a single-field edit as a partial update.

    Paths pointing into a list of records (``products.1.overview``) expand to
    a full replacement of that list, built from ``document`` with the one item
    key changed, because lists are only ever replaced as a whole.

    Raises:
        KeyError: If ``path`` is not part of the document schema.
    """

    parts = path.split(".")
    for depth in range(1, len(parts)):
        prefix = ".".join(parts[:depth])
        spec = get_field_spec(prefix)
        if spec is None or spec.kind is not FieldKind.RECORD_LIST:
            continue
        rest = parts[depth:]
        item_keys = {item.key for item in spec.item_fields}
        if len(rest) != 2 or not rest[0].isdigit() or rest[1] not in item_keys:
            raise KeyError(f"Unknown document path: {path}")
        current_items = get_path_value(document or {}, prefix) or []
        items = [dict(item) for item in current_items]
        index = int(rest[0])
        if index >= len(items):
            raise KeyError(f"Unknown document path: {path}")
        items[index][rest[1]] = value
        return _nest(parts[:depth], items)

    spec = get_field_spec(path)
    if spec is None:
        parent_spec = get_field_spec(parts[0])
        is_map_entry = (
            len(parts) == 2
            and parent_spec is not None
            and parent_spec.kind in (FieldKind.LIST_MAP, FieldKind.TEXT_MAP)
            and parts[1] in parent_spec.map_keys
        )
        if not is_map_entry:
            raise KeyError(f"Unknown document path: {path}")
    return _nest(parts, value)


__all__ = ["build_partial", "merge_document"]
