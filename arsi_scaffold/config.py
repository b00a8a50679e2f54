"""arsi-scaffold configuration.

Centralised, typed configuration for the scaffolding engine and the CLI.
All settings use Pydantic v2 models so they can be validated at construction
time and serialised to/from JSON or environment variables without
boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


MANIFEST_FILENAME = "package.json"
METADATA_FILENAME = "fragment.yaml"

DEFAULT_UNIVERSAL_EXCLUDE: list[str] = [
    "node_modules",
    ".git",
    "pnpm-lock.yaml",
    "package-lock.json",
    "yarn.lock",
    "bun.lockb",
    "bun.lock",
    MANIFEST_FILENAME,
    METADATA_FILENAME,
]


class ScaffoldConfig(BaseModel):
    """Global arsi-scaffold configuration.

    Instances are typically created once by the CLI entry point and then
    passed to the template store and the composer.
    """

    templates_dir: Path = Field(default=Path("./templates"))
    output_dir: Path = Field(default=Path("."))
    features_dir: str = Field(
        default="features", description="Subdirectory of templates_dir holding feature categories"
    )
    base_fragment: str = Field(default="base", description="Directory name of the base fragment")
    project_version: str = Field(default="0.0.1")
    default_branch: str = Field(default="dev")
    universal_exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_UNIVERSAL_EXCLUDE),
        description="Entry names skipped by every tree merge",
    )
    category_force_overwrite: dict[str, list[str]] = Field(
        default_factory=lambda: {"ui": ["app.css"]},
        description="Force-overwrite patterns applied to every fragment of a category",
    )
    install_timeout: int = Field(default=600, ge=10, description="Dependency install timeout in seconds")
    git_timeout: int = Field(default=60, ge=5, description="Per git command timeout in seconds")

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def base_path(self) -> Path:
        """Root of the base fragment."""
        return self.templates_dir / self.base_fragment

    @property
    def features_path(self) -> Path:
        """Directory containing one subdirectory per feature category."""
        return self.templates_dir / self.features_dir

    def project_path(self, project_name: str) -> Path:
        """Destination directory for *project_name*."""
        return self.output_dir / project_name

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "ScaffoldConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            ARSI_TEMPLATES_DIR, ARSI_OUTPUT_DIR, ARSI_PROJECT_VERSION,
            ARSI_DEFAULT_BRANCH, ARSI_INSTALL_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("ARSI_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["ARSI_TEMPLATES_DIR"])
        if os.environ.get("ARSI_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["ARSI_OUTPUT_DIR"])
        if os.environ.get("ARSI_PROJECT_VERSION"):
            kwargs["project_version"] = os.environ["ARSI_PROJECT_VERSION"]
        if os.environ.get("ARSI_DEFAULT_BRANCH"):
            kwargs["default_branch"] = os.environ["ARSI_DEFAULT_BRANCH"]
        if os.environ.get("ARSI_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["ARSI_INSTALL_TIMEOUT"])
        return cls(**kwargs)
