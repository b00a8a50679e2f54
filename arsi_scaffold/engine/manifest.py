"""``package.json`` merging.

Each top-level field is merged according to a strategy looked up in
``FIELD_STRATEGIES``:

* ``MAPPING_UNION`` -- nested name -> value mappings merged key by key,
  last write wins, key order is order of first appearance.
* ``REPLACE`` -- the later manifest's value replaces the earlier one.
* ``PROTECTED`` -- never taken from a fragment; set by the composer.

Fields missing from the table default to ``REPLACE``, so new manifest fields
can be classified by editing the table alone.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from arsi_scaffold.errors import ScaffoldIOError, ScaffoldValidationError
from arsi_scaffold.utils import save_json

Manifest = dict[str, Any]


class MergeStrategy(str, Enum):
    MAPPING_UNION = "mapping_union"
    REPLACE = "replace"
    PROTECTED = "protected"


NESTED_FIELDS: tuple[str, ...] = ("dependencies", "devDependencies", "scripts")

FIELD_STRATEGIES: dict[str, MergeStrategy] = {
    "dependencies": MergeStrategy.MAPPING_UNION,
    "devDependencies": MergeStrategy.MAPPING_UNION,
    "scripts": MergeStrategy.MAPPING_UNION,
    "name": MergeStrategy.PROTECTED,
    "version": MergeStrategy.PROTECTED,
}


def strategy_for(field: str, strategies: Mapping[str, MergeStrategy] | None = None) -> MergeStrategy:
    """Return the merge strategy for a top-level manifest field."""
    table = FIELD_STRATEGIES if strategies is None else strategies
    return table.get(field, MergeStrategy.REPLACE)


def merge_manifests(
    manifests: Iterable[Optional[Mapping[str, Any]]],
    strategies: Mapping[str, MergeStrategy] | None = None,
) -> Manifest:
    """Combine *manifests* in order into a new manifest.

    ``None`` entries (fragments without a ``package.json``) are skipped and
    no input is mutated.

    Raises:
        ScaffoldValidationError: If a mapping-union field holds something
            other than a JSON object.
    """
    merged: Manifest = {field: {} for field in NESTED_FIELDS}

    for manifest in manifests:
        if manifest is None:
            continue
        for field, value in manifest.items():
            strategy = strategy_for(field, strategies)
            if strategy is MergeStrategy.PROTECTED:
                continue
            if strategy is MergeStrategy.MAPPING_UNION:
                if not isinstance(value, Mapping):
                    raise ScaffoldValidationError(
                        f"Manifest field {field!r} must be an object, got {type(value).__name__}"
                    )
                target = merged.setdefault(field, {})
                for key, item in value.items():
                    target[key] = copy.deepcopy(item)
            else:
                merged[field] = copy.deepcopy(value)

    return merged


def finalize_manifest(merged: Mapping[str, Any], name: str, version: str) -> Manifest:
    """Return a copy of *merged* with ``name`` and ``version`` injected first."""
    result: Manifest = {"name": name, "version": version}
    for field, value in merged.items():
        if field not in result:
            result[field] = copy.deepcopy(value)
    return result


async def write_manifest(path: Path, manifest: Mapping[str, Any]) -> Path:
    """Write *manifest* as 2-space-indented JSON with a trailing newline."""
    try:
        await save_json(dict(manifest), path)
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("write", path, exc) from exc
    return path
