"""Template composition engine.

Builds a project directory from template fragments: the store lists and
reads fragments, the tree merger copies them (first fragment wins), the
manifest merger combines their ``package.json`` files and the stripper
removes disabled capabilities.  ``ProjectComposer`` sequences all of it.

Quick usage::

    from arsi_scaffold.config import ScaffoldConfig
    from arsi_scaffold.engine import ProjectComposer, TemplateStore
    from arsi_scaffold.models import FragmentRef, SelectionSet

    config = ScaffoldConfig(templates_dir=Path("templates"))
    composer = ProjectComposer(TemplateStore(config))
    result = await composer.compose(
        SelectionSet(
            project_name="demo-app",
            fragments=(
                FragmentRef(category="base", name="base"),
                FragmentRef(category="routing", name="rr-fs-graphql-rq"),
            ),
        ),
        output_dir=Path("."),
    )
"""

from arsi_scaffold.engine.composer import ProjectComposer
from arsi_scaffold.engine.manifest import finalize_manifest, merge_manifests
from arsi_scaffold.engine.store import TemplateStore
from arsi_scaffold.engine.stripper import StripReport, strip_variants
from arsi_scaffold.engine.templates import TemplateRenderer
from arsi_scaffold.engine.tree_merger import PathPredicate, copy_tree, merge_tree

__all__ = [
    "PathPredicate",
    "ProjectComposer",
    "StripReport",
    "TemplateRenderer",
    "TemplateStore",
    "copy_tree",
    "finalize_manifest",
    "merge_manifests",
    "merge_tree",
    "strip_variants",
]
