"""Tests for the template store.

Covers:
- Category and fragment listing, including the flat template category
- Optional vs required category lookups
- Fragment resolution and rejection of invalid names
- Manifest and fragment metadata parsing
"""

from __future__ import annotations

from pathlib import Path

import pytest

from arsi_scaffold.config import ScaffoldConfig
from arsi_scaffold.engine.store import TemplateStore
from arsi_scaffold.errors import ErrorKind, NotFoundError, ScaffoldValidationError
from arsi_scaffold.models import FragmentMetadata


pytestmark = pytest.mark.unit


class TestListing:
    def test_list_categories(self, store: TemplateStore):
        assert store.list_categories() == ["routing", "state", "ui"]

    def test_list_categories_without_features(self, tmp_path: Path):
        (tmp_path / "base").mkdir()
        store = TemplateStore(ScaffoldConfig(templates_dir=tmp_path))
        assert store.list_categories() == []

    def test_custom_features_dir(self, templates_root: Path):
        (templates_root / "features").rename(templates_root / "addons")
        store = TemplateStore(ScaffoldConfig(templates_dir=templates_root, features_dir="addons"))
        assert store.list_categories() == ["routing", "state", "ui"]
        assert store.list_fragments("template") == ["ssr-fs-graphql"]
        assert store.fragment_root("state", "zustand") == (
            templates_root / "addons" / "state" / "zustand"
        ).resolve()

    def test_list_feature_fragments_sorted(self, store: TemplateStore, templates_root: Path):
        (templates_root / "features" / "routing" / "basic-spa").mkdir()
        assert store.list_fragments("routing") == ["basic-spa", "rr-fs-graphql-rq"]

    def test_list_base(self, store: TemplateStore):
        assert store.list_fragments("base") == ["base"]

    def test_list_templates_skips_reserved_and_hidden(self, store: TemplateStore, templates_root: Path):
        (templates_root / ".cache").mkdir()
        (templates_root / "notes.md").write_text("not a template", encoding="utf-8")
        assert store.list_fragments("template") == ["ssr-fs-graphql"]

    def test_missing_category_raises(self, store: TemplateStore):
        with pytest.raises(NotFoundError) as exc_info:
            store.list_fragments("auth")
        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_missing_category_optional(self, store: TemplateStore):
        assert store.list_fragments("auth", optional=True) == []


class TestResolution:
    def test_fragment_root_is_absolute(self, store: TemplateStore, templates_root: Path):
        root = store.fragment_root("ui", "shadcn-tailwind")
        assert root.is_absolute()
        assert root == (templates_root / "features" / "ui" / "shadcn-tailwind").resolve()

    def test_base_and_template_roots(self, store: TemplateStore, templates_root: Path):
        assert store.fragment_root("base", "base") == (templates_root / "base").resolve()
        assert store.fragment_root("template", "ssr-fs-graphql") == (
            templates_root / "ssr-fs-graphql"
        ).resolve()

    def test_unknown_fragment(self, store: TemplateStore):
        with pytest.raises(NotFoundError, match="routing/nope"):
            store.fragment_root("routing", "nope")

    @pytest.mark.parametrize("name", ["", ".", "..", "../ui", "a/b"])
    def test_invalid_names_rejected(self, store: TemplateStore, name: str):
        with pytest.raises(NotFoundError):
            store.fragment_root("routing", name)

    @pytest.mark.parametrize("name", ["base", "features"])
    def test_reserved_names_are_not_templates(self, store: TemplateStore, name: str):
        with pytest.raises(NotFoundError):
            store.fragment_root("template", name)

    def test_get_fragment(self, store: TemplateStore):
        fragment = store.get_fragment("ui", "shadcn-tailwind")
        assert fragment.category == "ui"
        assert fragment.name == "shadcn-tailwind"
        assert str(fragment.ref) == "ui/shadcn-tailwind"
        assert fragment.metadata.vite_plugins[0].call == "tailwindcss()"


class TestManifests:
    def test_read_manifest(self, store: TemplateStore):
        manifest = store.read_manifest("routing", "rr-fs-graphql-rq")
        assert manifest["dependencies"]["react-router"] == "^7.0.0"

    def test_missing_manifest_is_none(self, store: TemplateStore, templates_root: Path):
        (templates_root / "features" / "state" / "empty").mkdir()
        assert store.read_manifest("state", "empty") is None

    def test_malformed_manifest(self, store: TemplateStore, templates_root: Path):
        path = templates_root / "features" / "state" / "zustand" / "package.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(ScaffoldValidationError) as exc_info:
            store.read_manifest("state", "zustand")
        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert exc_info.value.path == path.resolve()

    def test_non_object_manifest(self, store: TemplateStore, templates_root: Path):
        path = templates_root / "features" / "state" / "zustand" / "package.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(ScaffoldValidationError, match="JSON object"):
            store.read_manifest("state", "zustand")


class TestMetadata:
    def test_read_metadata(self, store: TemplateStore):
        metadata = store.read_metadata("routing", "rr-fs-graphql-rq")
        assert metadata.supports_render_mode is True
        assert metadata.env == {"VITE_GRAPHQL_URL": "http://localhost:4000/graphql"}

    def test_missing_metadata_defaults(self, store: TemplateStore):
        assert store.read_metadata("state", "zustand") == FragmentMetadata()

    def test_empty_metadata_file(self, store: TemplateStore, templates_root: Path):
        (templates_root / "features" / "state" / "zustand" / "fragment.yaml").write_text(
            "", encoding="utf-8"
        )
        assert store.read_metadata("state", "zustand") == FragmentMetadata()

    def test_malformed_yaml(self, store: TemplateStore, templates_root: Path):
        (templates_root / "features" / "state" / "zustand" / "fragment.yaml").write_text(
            "env: [unclosed", encoding="utf-8"
        )
        with pytest.raises(ScaffoldValidationError):
            store.read_metadata("state", "zustand")

    def test_invalid_metadata_shape(self, store: TemplateStore, templates_root: Path):
        (templates_root / "features" / "state" / "zustand" / "fragment.yaml").write_text(
            "force_overwrite: 3\n", encoding="utf-8"
        )
        with pytest.raises(ScaffoldValidationError):
            store.read_metadata("state", "zustand")
