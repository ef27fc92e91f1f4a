from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from errors import StructureViolation

DEFAULT_MAX_KEYS_PER_OBJECT = 10
DEFAULT_MAX_NESTING_LEVEL = 1


@dataclass(frozen=True)
class ValidationLimits:
    """
    Structural limits applied to every stored document.

    Level 0 is the root. Object membership adds a level; array membership
    does not, so a root array of rows keeps its rows at level 0 and a row's
    own array of objects sits at level 1.
    """

    max_keys_per_object: int = DEFAULT_MAX_KEYS_PER_OBJECT
    max_nesting_level: int = DEFAULT_MAX_NESTING_LEVEL


def is_complex(value: Any) -> bool:
    return isinstance(value, (dict, list))


def check_structure(value: Any, limits: ValidationLimits) -> StructureViolation | None:
    """
    Walk `value` depth-first and return the first violation found, or None.

    Uses an explicit stack so deep documents do not depend on the
    interpreter recursion limit.
    """
    stack: list[tuple[Any, int]] = [(value, 0)]
    while stack:
        node, level = stack.pop()
        if level > limits.max_nesting_level:
            return StructureViolation.nesting_too_deep(level, limits.max_nesting_level)

        if isinstance(node, dict):
            if len(node) > limits.max_keys_per_object:
                return StructureViolation.too_many_keys(len(node), limits.max_keys_per_object)
            for member in node.values():
                if is_complex(member):
                    stack.append((member, level + 1))
        elif isinstance(node, list):
            for item in node:
                if is_complex(item):
                    stack.append((item, level))
    return None


def validate_structure(value: Any, limits: ValidationLimits) -> None:
    """Raise StructureViolation if `value` breaks the key-count or nesting limits."""
    violation = check_structure(value, limits)
    if violation is not None:
        raise violation


def normalize_rows(data: Any) -> Any:
    """
    Reshape an uploaded table so every row has the same columns.

    - Every object row gets the union of keys seen across all rows.
      Missing keys become [] for columns that hold an array in any row,
      otherwise null.
    - For array columns, the objects inside get padded with null to the
      subkeys of the *first* row whose array for that column holds objects.
      Later rows do not contribute subkeys.

    Non-array documents and non-object rows are returned unchanged.
    """
    if not isinstance(data, list):
        return data

    all_keys: dict[str, None] = {}
    array_keys: set[str] = set()
    nested_subkeys: dict[str, list[str]] = {}

    for row in data:
        if not isinstance(row, dict):
            continue
        for key, value in row.items():
            all_keys.setdefault(key, None)
            if not isinstance(value, list):
                continue
            array_keys.add(key)
            if key in nested_subkeys:
                continue
            subkeys: dict[str, None] = {}
            for item in value:
                if isinstance(item, dict):
                    for subkey in item:
                        subkeys.setdefault(subkey, None)
            if subkeys:
                nested_subkeys[key] = list(subkeys)

    normalized: list[Any] = []
    for row in data:
        if not isinstance(row, dict):
            normalized.append(row)
            continue
        out: dict[str, Any] = {}
        for key in all_keys:
            if key in row:
                value = row[key]
            else:
                value = [] if key in array_keys else None
            if isinstance(value, list) and key in nested_subkeys:
                value = [_pad_object(item, nested_subkeys[key]) for item in value]
            out[key] = value
        normalized.append(out)
    return normalized


def _pad_object(item: Any, keys: list[str]) -> Any:
    if not isinstance(item, dict):
        return item
    padded = dict(item)
    for key in keys:
        padded.setdefault(key, None)
    return padded


def nesting_depth(value: Any) -> int:
    """Container depth of `value` (a scalar is 0, [] is 1), computed without recursion."""
    deepest = 0
    stack: list[tuple[Any, int]] = [(value, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        depth += 1
        deepest = max(deepest, depth)
        stack.extend((child, depth) for child in children if is_complex(child))
    return deepest
