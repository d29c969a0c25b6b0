"""Department path utilities: encode/decode the materialized ancestor path.

A department's ``parent_path`` is the ordered chain of ancestor ids from the
root down to its immediate parent, each id prefixed with ``:``:

- root department: ``""``
- child of root ``A``: ``":A"``
- child of ``B`` under ``A``: ``":A:B"``

Invariant: ``parent_path(D) == department_parent_path(parent_path(P), P.id)``
where ``P`` is the parent of ``D``.
"""

from __future__ import annotations

from typing import Iterable

from app.packages.office.core.constants import PARENT_PATH_DELIMITER


def ensure_path_safe_id(value: str) -> str:
    if not value or PARENT_PATH_DELIMITER in value:
        raise ValueError(f"invalid id for department path: {value!r}")
    return value


def department_parent_path(parent_path: str | None, parent_id: str) -> str:
    """Path of a child of ``parent_id`` whose own path is ``parent_path``."""
    return (parent_path or "") + PARENT_PATH_DELIMITER + ensure_path_safe_id(parent_id)


def parse_parent_path(parent_path: str | None) -> list[str]:
    """Ancestor ids, farthest (root) first; ``[]`` for a root department."""
    if not parent_path:
        return []
    return [token for token in parent_path.split(PARENT_PATH_DELIMITER) if token]


def build_parent_path(ancestor_ids: Iterable[str]) -> str:
    path = ""
    for ancestor_id in ancestor_ids:
        path = department_parent_path(path, ancestor_id)
    return path


def ancestors_nearest_first(parent_path: str | None) -> list[str]:
    return list(reversed(parse_parent_path(parent_path)))


def path_depth(parent_path: str | None) -> int:
    return len(parse_parent_path(parent_path))


def is_under(parent_path: str | None, ancestor_id: str) -> bool:
    """Whether ``ancestor_id`` appears in the chain (exact token match)."""
    return ancestor_id in parse_parent_path(parent_path)
