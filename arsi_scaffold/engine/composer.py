"""Composition orchestrator.

Sequences the engine for one generation run::

    init -> base_copied -> features_merged -> manifest_merged -> stripped -> finalized

Any failure moves the run to ``aborted``: the partially written project
directory is removed and a failed ``GenerationResult`` is returned.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path

from arsi_scaffold.config import MANIFEST_FILENAME, ScaffoldConfig
from arsi_scaffold.errors import (
    AlreadyExistsError,
    ScaffoldError,
    ScaffoldIOError,
    ScaffoldValidationError,
)
from arsi_scaffold.models import Fragment, GenerationResult, SelectionSet, Stage
from arsi_scaffold.utils import print_warning

from .manifest import finalize_manifest, merge_manifests, write_manifest
from .project_files import (
    collect_env,
    write_env_files,
    write_ignore_file,
    write_render_config,
)
from .store import BASE_CATEGORY, TEMPLATE_CATEGORY, TemplateStore
from .stripper import StripReport, strip_variants
from .templates import TemplateRenderer
from .tree_merger import PathPredicate, copy_tree, merge_tree
from .vite_config import add_plugin_to_config, find_vite_config


# ---------------------------------------------------------------------------
# Fragment ordering
# ---------------------------------------------------------------------------

CATEGORY_ORDER: tuple[str, ...] = (TEMPLATE_CATEGORY, BASE_CATEGORY, "routing", "ui", "state")
ROOT_CATEGORIES = frozenset({TEMPLATE_CATEGORY, BASE_CATEGORY})


def category_rank(category: str) -> int:
    """Position of *category* in the merge order; add-on categories go last."""
    try:
        return CATEGORY_ORDER.index(category)
    except ValueError:
        return len(CATEGORY_ORDER)


# ---------------------------------------------------------------------------
# Composer
# ---------------------------------------------------------------------------


class ProjectComposer:
    """Builds a project directory from a ``SelectionSet``.

    Attributes:
        store: Source of fragments and their manifests.
        config: Engine configuration (exclusions, version, defaults).
        stages: Stages entered by the most recent :meth:`compose` call.
        warnings: Non-fatal problems met by the most recent run.
    """

    def __init__(
        self,
        store: TemplateStore,
        config: ScaffoldConfig | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.store = store
        self.config = config or store.config
        self.renderer = renderer or TemplateRenderer()
        self.stages: list[Stage] = []
        self.warnings: list[str] = []
        self.strip_report: StripReport | None = None

    @property
    def stage(self) -> Stage | None:
        return self.stages[-1] if self.stages else None

    # -- Public API --------------------------------------------------------

    async def compose(
        self, selection: SelectionSet, output_dir: str | Path | None = None
    ) -> GenerationResult:
        """Generate the project described by *selection*.

        Args:
            selection: Resolved fragments and capability flags.
            output_dir: Parent directory of the new project.  Defaults to
                ``config.output_dir``.

        Returns:
            ``GenerationResult`` with the project path on success, or the
            error kind and message on failure.
        """
        self.stages = []
        self.warnings = []
        self.strip_report = None
        parent = Path(output_dir) if output_dir is not None else self.config.output_dir
        destination = parent.absolute() / selection.project_name
        created = False

        self._enter(Stage.INIT)
        try:
            fragments = self.resolve_fragments(selection)
            if os.path.lexists(destination):
                raise AlreadyExistsError(f"Directory already exists: {destination}", destination)
            try:
                await asyncio.to_thread(destination.mkdir, parents=True)
            except FileExistsError as exc:
                raise AlreadyExistsError(
                    f"Directory already exists: {destination}", destination
                ) from exc
            created = True

            exclude = PathPredicate(self.config.universal_exclude)

            # 1. First fragment establishes the tree
            await copy_tree(fragments[0].root, destination, exclude)
            self._enter(Stage.BASE_COPIED)

            # 2. Later fragments fill gaps, plus their force-overwrite paths
            for fragment in fragments[1:]:
                await merge_tree(
                    fragment.root, destination, exclude, self.force_overwrite_for(fragment)
                )
            await self._write_generated_files(destination, fragments, selection)
            self._enter(Stage.FEATURES_MERGED)

            # 3. Manifests, in the same order as the trees
            manifests = [self.store.read_manifest(f.category, f.name) for f in fragments]
            manifest = finalize_manifest(
                merge_manifests(manifests),
                selection.project_name,
                self.config.project_version,
            )
            await write_manifest(destination / MANIFEST_FILENAME, manifest)
            self._enter(Stage.MANIFEST_MERGED)

            # 4. Disabled capabilities
            self.strip_report = await asyncio.to_thread(
                strip_variants,
                destination,
                use_typed_language=selection.use_typed_language,
                use_linter=selection.use_linter,
                use_git_hooks=selection.use_git_hooks,
            )
            self._enter(Stage.STRIPPED)
        except ScaffoldError as exc:
            return await self._abort(exc, destination if created else None)
        except OSError as exc:
            error = ScaffoldIOError(str(exc), exc.filename)
            return await self._abort(error, destination if created else None)
        except ValueError as exc:
            error = ScaffoldValidationError(str(exc))
            return await self._abort(error, destination if created else None)

        self._enter(Stage.FINALIZED)
        return GenerationResult.success(destination)

    def resolve_fragments(self, selection: SelectionSet) -> list[Fragment]:
        """Resolve the selection's fragments in merge order.

        Fragments are ordered by category (template, base, routing, ui,
        state, then add-ons); the selection's order is kept within a
        category.

        Raises:
            NotFoundError: If a fragment does not exist.
            ScaffoldValidationError: If a fragment is selected twice or the
                first fragment is neither a base nor a full template.
        """
        seen: set[tuple[str, str]] = set()
        for ref in selection.fragments:
            key = (ref.category, ref.name)
            if key in seen:
                raise ScaffoldValidationError(f"Fragment selected twice: {ref}")
            seen.add(key)

        ordered = sorted(selection.fragments, key=lambda ref: category_rank(ref.category))
        if ordered[0].category not in ROOT_CATEGORIES:
            raise ScaffoldValidationError(
                "Selection must include a base fragment or a full template"
            )
        return [self.store.get_fragment(ref.category, ref.name) for ref in ordered]

    def force_overwrite_for(self, fragment: Fragment) -> PathPredicate:
        """Category defaults layered with the fragment's own force-overwrite set."""
        defaults = self.config.category_force_overwrite.get(fragment.category, [])
        return PathPredicate(defaults).union(fragment.metadata.force_overwrite)

    # -- Steps -------------------------------------------------------------

    async def _write_generated_files(
        self, root: Path, fragments: list[Fragment], selection: SelectionSet
    ) -> None:
        for fragment in fragments:
            for plugin in fragment.metadata.vite_plugins:
                config_path = find_vite_config(root)
                if config_path is None:
                    self._warn(
                        f"No vite.config found; add {plugin.call} from {fragment.ref} manually"
                    )
                    continue
                await add_plugin_to_config(config_path, plugin)

        if selection.render_mode is not None:
            await write_render_config(root, selection.render_mode, self.renderer)

        await write_env_files(root, collect_env(fragments), self.renderer)
        await write_ignore_file(root, self.renderer)

    async def _abort(self, error: ScaffoldError, destination: Path | None) -> GenerationResult:
        self._enter(Stage.ABORTED)
        if destination is not None:
            try:
                await asyncio.to_thread(shutil.rmtree, destination)
            except OSError as exc:
                self._warn(f"Could not remove partially generated project {destination}: {exc}")
        return GenerationResult.failure(error)

    # -- Internal ----------------------------------------------------------

    def _enter(self, stage: Stage) -> None:
        self.stages.append(stage)

    def _warn(self, message: str) -> None:
        self.warnings.append(message)
        print_warning(message)
