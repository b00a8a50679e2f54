"""Read-only access to the template fragment tree.

Layout of the templates root::

    <root>/base/                        the base fragment
    <root>/features/<category>/<name>/  feature fragments (routing, ui, state, ...)
    <root>/<name>/                      flat full templates (single-template mode)

The store never writes.  It lists fragments, resolves their paths and parses
their ``package.json`` and ``fragment.yaml`` files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from arsi_scaffold.config import MANIFEST_FILENAME, METADATA_FILENAME, ScaffoldConfig
from arsi_scaffold.errors import NotFoundError, ScaffoldIOError, ScaffoldValidationError
from arsi_scaffold.models import Fragment, FragmentMetadata
from arsi_scaffold.utils import load_json

BASE_CATEGORY = "base"
TEMPLATE_CATEGORY = "template"


class TemplateStore:
    """Lists and resolves template fragments under a root directory."""

    def __init__(self, config: ScaffoldConfig) -> None:
        self.config = config
        self.root = Path(config.templates_dir).resolve()
        self.features_root = Path(config.features_path).resolve()

    # -- Listing -----------------------------------------------------------

    def list_categories(self) -> list[str]:
        """Return the sorted feature categories (``routing``, ``ui``, ...)."""
        if not self.features_root.is_dir():
            return []
        return sorted(p.name for p in self.features_root.iterdir() if p.is_dir())

    def list_fragments(self, category: str, *, optional: bool = False) -> list[str]:
        """Return the sorted fragment names found in *category*.

        Raises:
            NotFoundError: If the category directory is absent and
                *optional* is ``False``.
        """
        if category == BASE_CATEGORY:
            return [self.config.base_fragment] if self.config.base_path.is_dir() else []

        category_dir = self._category_dir(category)
        if not category_dir.is_dir():
            if optional:
                return []
            raise NotFoundError(f"Template category not found: {category}", category_dir)

        reserved = {self.config.base_fragment, self.config.features_dir}
        names = []
        for entry in category_dir.iterdir():
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            if category == TEMPLATE_CATEGORY and entry.name in reserved:
                continue
            names.append(entry.name)
        return sorted(names)

    # -- Resolution --------------------------------------------------------

    def fragment_root(self, category: str, name: str) -> Path:
        """Return the absolute root directory of a fragment.

        Raises:
            NotFoundError: If the fragment does not exist.
        """
        if category == BASE_CATEGORY:
            path = self.root / name
        else:
            path = self._category_dir(category) / name
        invalid = name in ("", ".", "..") or "/" in name or "\\" in name
        if category == TEMPLATE_CATEGORY:
            invalid = invalid or name in (self.config.base_fragment, self.config.features_dir)
        if invalid or not path.is_dir():
            raise NotFoundError(f"Template fragment not found: {category}/{name}", path)
        return path

    def get_fragment(self, category: str, name: str) -> Fragment:
        """Resolve a fragment together with its metadata."""
        return Fragment(
            name=name,
            category=category,
            root=self.fragment_root(category, name),
            metadata=self.read_metadata(category, name),
        )

    # -- Fragment files ----------------------------------------------------

    def read_manifest(self, category: str, name: str) -> Optional[dict[str, Any]]:
        """Parse the fragment's ``package.json``.

        Returns ``None`` when the fragment has no manifest.

        Raises:
            ScaffoldValidationError: If the manifest is not a JSON object.
        """
        path = self.fragment_root(category, name) / MANIFEST_FILENAME
        if not path.is_file():
            return None
        try:
            data = load_json(path)
        except ValueError as exc:
            # invalid JSON or bytes that are not UTF-8
            raise ScaffoldValidationError(
                f"Malformed manifest in {category}/{name}: {exc}", path
            ) from exc
        except OSError as exc:
            raise ScaffoldIOError.from_os_error("read", path, exc) from exc
        if not isinstance(data, dict):
            raise ScaffoldValidationError(
                f"Manifest in {category}/{name} must be a JSON object", path
            )
        return data

    def read_metadata(self, category: str, name: str) -> FragmentMetadata:
        """Parse the fragment's ``fragment.yaml``, or return empty metadata."""
        path = self.fragment_root(category, name) / METADATA_FILENAME
        if not path.is_file():
            return FragmentMetadata()
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            return FragmentMetadata.model_validate(raw)
        except (yaml.YAMLError, ValidationError, UnicodeDecodeError) as exc:
            raise ScaffoldValidationError(
                f"Malformed fragment metadata in {category}/{name}: {exc}", path
            ) from exc
        except OSError as exc:
            raise ScaffoldIOError.from_os_error("read", path, exc) from exc

    # -- Internal ----------------------------------------------------------

    def _category_dir(self, category: str) -> Path:
        if category == TEMPLATE_CATEGORY:
            return self.root
        return self.features_root / category
