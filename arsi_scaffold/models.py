"""Pydantic v2 models for the scaffolding engine.

Defines the value objects that cross the engine boundary (``SelectionSet``
in, ``GenerationResult`` out) and the descriptors the template store hands
to the composer (``Fragment`` and its declarative ``FragmentMetadata``).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from arsi_scaffold.errors import ErrorKind, ScaffoldError


PROJECT_NAME_PATTERN = r"^[A-Za-z0-9_-]+$"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PackageManager(str, Enum):
    """Package managers the generated project can be installed with."""
    PNPM = "pnpm"
    NPM = "npm"
    YARN = "yarn"
    BUN = "bun"


class RenderMode(str, Enum):
    """Rendering mode written into the generated routing config."""
    SSR = "ssr"
    SPA = "spa"


class Stage(str, Enum):
    """Composer state machine. Linear, with ``ABORTED`` reachable from any step."""
    INIT = "init"
    BASE_COPIED = "base_copied"
    FEATURES_MERGED = "features_merged"
    MANIFEST_MERGED = "manifest_merged"
    STRIPPED = "stripped"
    FINALIZED = "finalized"
    ABORTED = "aborted"


# ---------------------------------------------------------------------------
# Fragments
# ---------------------------------------------------------------------------

class VitePlugin(BaseModel):
    """A Vite plugin a fragment needs registered in ``vite.config``."""
    import_statement: str = Field(
        ..., description="Full import line, e.g. \"import tailwindcss from '@tailwindcss/vite'\""
    )
    call: str = Field(..., description="Plugin call placed in the plugins array, e.g. 'tailwindcss()'")


class FragmentMetadata(BaseModel):
    """Declarative per-fragment settings read from ``fragment.yaml``."""
    description: str = Field(default="", description="Human-readable summary")
    force_overwrite: list[str] = Field(
        default_factory=list,
        description="Names or glob patterns this fragment always overwrites",
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Environment variables (key -> default value) the fragment reads",
    )
    vite_plugins: list[VitePlugin] = Field(
        default_factory=list, description="Plugins patched into vite.config"
    )
    supports_render_mode: bool = Field(
        default=False, description="Whether the fragment understands ssr/spa render modes"
    )


class FragmentRef(BaseModel):
    """A ``(category, name)`` reference to a fragment in the template store."""
    model_config = ConfigDict(frozen=True)

    category: str = Field(..., min_length=1, description="Fragment category, e.g. 'routing'")
    name: str = Field(..., min_length=1, description="Fragment directory name")

    def __str__(self) -> str:
        return f"{self.category}/{self.name}"


class Fragment(BaseModel):
    """A resolved fragment: a named, read-only directory subtree."""
    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    root: Path
    metadata: FragmentMetadata = Field(default_factory=FragmentMetadata)

    @property
    def ref(self) -> FragmentRef:
        return FragmentRef(category=self.category, name=self.name)


# ---------------------------------------------------------------------------
# Engine boundary
# ---------------------------------------------------------------------------

class SelectionSet(BaseModel):
    """The resolved user choices driving one generation run."""
    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., pattern=PROJECT_NAME_PATTERN)
    fragments: tuple[FragmentRef, ...] = Field(
        ..., min_length=1, description="Fragments to compose; order within a category is kept"
    )
    use_typed_language: bool = Field(default=True, description="Keep TypeScript sources")
    use_linter: bool = Field(default=True, description="Keep ESLint configuration")
    use_git_hooks: bool = Field(default=True, description="Keep Husky configuration")
    package_manager: PackageManager = Field(default=PackageManager.PNPM)
    render_mode: Optional[RenderMode] = Field(
        default=None, description="Write a routing config with this render mode"
    )


class GenerationResult(BaseModel):
    """Outcome of one composition run."""
    ok: bool
    path: Optional[Path] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def success(cls, path: Path) -> "GenerationResult":
        return cls(ok=True, path=path)

    @classmethod
    def failure(cls, error: ScaffoldError) -> "GenerationResult":
        return cls(ok=False, error_kind=error.kind, message=str(error))
