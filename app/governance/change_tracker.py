"""
Field-level structural diffs between two plain objects.

Replacement-level only: a changed list or scalar is reported whole, nested
mappings are walked with dot paths. Good enough for audit display and rollback,
not for merging.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

# Top-level identity and internal revision keys never reported in full-object diffs.
DEFAULT_IGNORED_KEYS: FrozenSet[str] = frozenset({"id", "_id", "__v"})


@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
        }


def get_nested_value(obj: Any, path: str) -> Any:
    """Resolve 'a.b.c' in mappings or attribute objects. Missing keys resolve to None."""
    current = obj
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        else:
            current = getattr(current, key, None)
    return current


def structurally_equal(left: Any, right: Any) -> bool:
    """Deep equality; list order matters, mapping key order does not, bool != int."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left.keys()) != set(right.keys()):
            return False
        return all(structurally_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(structurally_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (Mapping, list, tuple)) or isinstance(right, (Mapping, list, tuple)):
        return False
    return left == right


def _ordered_keys(old: Mapping, new: Mapping) -> List[str]:
    keys = list(old.keys())
    keys.extend(k for k in new.keys() if k not in old)
    return keys


def _walk(
    old: Mapping,
    new: Mapping,
    prefix: str,
    ignored: FrozenSet[str],
    out: List[FieldChange],
) -> None:
    for key in _ordered_keys(old, new):
        if (not prefix and key in ignored) or str(key).startswith("_"):
            continue
        path = f"{prefix}.{key}" if prefix else str(key)
        old_value = old.get(key)
        new_value = new.get(key)
        if isinstance(old_value, Mapping) and isinstance(new_value, Mapping):
            _walk(old_value, new_value, path, ignored, out)
        elif not structurally_equal(old_value, new_value):
            out.append(FieldChange(field=path, old_value=old_value, new_value=new_value))


def diff(
    old: Optional[Mapping],
    new: Optional[Mapping],
    fields: Optional[Iterable[str]] = None,
    *,
    ignored_keys: FrozenSet[str] = DEFAULT_IGNORED_KEYS,
) -> List[FieldChange]:
    """
    With fields: compare each dot-path, in the given order, and report the unequal ones.
    Without fields: walk the union of keys of both objects recursively.
    """
    old = old or {}
    new = new or {}
    if fields is not None:
        changes = []
        for path in fields:
            old_value = get_nested_value(old, path)
            new_value = get_nested_value(new, path)
            if not structurally_equal(old_value, new_value):
                changes.append(FieldChange(field=path, old_value=old_value, new_value=new_value))
        return changes

    changes: List[FieldChange] = []
    _walk(old, new, "", ignored_keys, changes)
    return changes
