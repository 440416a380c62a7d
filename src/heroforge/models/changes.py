"""Change sets submitted across the persistence boundary.

A change set maps dotted source paths to new values. ``DELETE`` marks a path
for removal. Change sets are produced by the advancement engine and by explicit
actions such as spending rounds; the store applies them to the persisted source
document and the caller mirrors them onto its in-memory copy.
"""

import copy
from collections.abc import Mapping, MutableMapping
from typing import Any


class _Deletion:
    """Marker for a path that should be removed from the source."""

    _instance: "_Deletion | None" = None

    def __new__(cls) -> "_Deletion":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE"

    def __reduce__(self) -> str:
        return "DELETE"


DELETE = _Deletion()

# JSON-serializable form of the deletion marker
DELETE_TOKEN = {"$delete": True}


class ChangeSet(dict[str, Any]):
    """Mapping of dotted path to new value (or ``DELETE``)."""

    def set(self, path: str, value: Any) -> "ChangeSet":
        """Record a new value for a path."""
        self[path] = value
        return self

    def delete(self, path: str) -> "ChangeSet":
        """Record the removal of a path."""
        self[path] = DELETE
        return self

    def merge(self, other: Mapping[str, Any]) -> "ChangeSet":
        """Merge another change set into this one (later values win)."""
        self.update(other)
        return self

    def to_json(self) -> dict[str, Any]:
        """Convert to a JSON-serializable mapping."""
        return {
            path: (dict(DELETE_TOKEN) if value is DELETE else _jsonable(value))
            for path, value in self.items()
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ChangeSet":
        """Rebuild a change set from its JSON form."""
        return cls(
            {path: (DELETE if value == DELETE_TOKEN else value) for path, value in data.items()}
        )


def _jsonable(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def get_property(data: Any, path: str, default: Any = None) -> Any:
    """
    Read a dotted path from nested mappings.

    Args:
        data: Root mapping
        path: Dotted path (e.g. "abilities.str.value")
        default: Value returned when any segment is missing

    Returns:
        The value at the path, or default
    """
    current = data
    for key in path.split("."):
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        else:
            return default
    return current


def set_property(data: MutableMapping[str, Any], path: str, value: Any) -> None:
    """Write a dotted path, creating intermediate mappings as needed."""
    *parents, leaf = path.split(".")
    current = data
    for key in parents:
        child = current.get(key)
        if not isinstance(child, MutableMapping):
            child = {}
            current[key] = child
        current = child
    current[leaf] = value


def delete_property(data: MutableMapping[str, Any], path: str) -> bool:
    """
    Remove a dotted path.

    Returns:
        True if something was removed
    """
    *parents, leaf = path.split(".")
    current: Any = data
    for key in parents:
        if not isinstance(current, MutableMapping) or key not in current:
            return False
        current = current[key]
    if isinstance(current, MutableMapping) and leaf in current:
        del current[leaf]
        return True
    return False


def apply_changes(data: Mapping[str, Any], changes: Mapping[str, Any]) -> dict[str, Any]:
    """
    Apply a change set to a copy of a source document.

    Args:
        data: Source document (not mutated)
        changes: Change set to apply

    Returns:
        Updated copy of the document
    """
    updated = copy.deepcopy(dict(data))
    for path, value in changes.items():
        if value is DELETE or value == DELETE_TOKEN:
            delete_property(updated, path)
        else:
            set_property(updated, path, copy.deepcopy(_jsonable(value)))
    return updated
