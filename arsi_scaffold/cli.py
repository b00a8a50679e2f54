"""Command-line front end.

Usage::

    arsi-scaffold create demo-app --routing rr-fs-graphql-rq --ui shadcn-tailwind
    arsi-scaffold create demo-app --template ssr-fs-shadcn-graphql --skip-install
    arsi-scaffold list
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from arsi_scaffold import __version__
from arsi_scaffold.config import ScaffoldConfig
from arsi_scaffold.engine.composer import ProjectComposer
from arsi_scaffold.engine.store import BASE_CATEGORY, TEMPLATE_CATEGORY, TemplateStore
from arsi_scaffold.errors import ScaffoldError
from arsi_scaffold.models import (
    FragmentRef,
    PackageManager,
    RenderMode,
    SelectionSet,
)
from arsi_scaffold.post_setup import initialize_git, initialize_husky, install_dependencies
from arsi_scaffold.utils import (
    console,
    create_progress,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arsi-scaffold",
        description="Create a React project from composable template fragments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  arsi-scaffold create demo-app --routing rr-fs-graphql-rq --ui shadcn-tailwind\n"
            "  arsi-scaffold create demo-app --template ssr-fs-graphql --no-husky\n"
            "  arsi-scaffold list --templates-dir ./templates\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Generate a new project")
    create.add_argument("project_name", help="Directory name of the new project")
    create.add_argument("--routing", help="Routing fragment (features/routing/<name>)")
    create.add_argument("--ui", help="UI fragment (features/ui/<name>)")
    create.add_argument(
        "--state",
        action="append",
        default=[],
        help="State fragment (features/state/<name>); may be repeated",
    )
    create.add_argument(
        "--template",
        help="Use a single full template instead of base + features",
    )
    create.add_argument(
        "--render-mode",
        choices=[m.value for m in RenderMode],
        default=None,
        help="Write react-router.config with server-side or SPA rendering",
    )
    create.add_argument(
        "--package-manager",
        choices=[pm.value for pm in PackageManager],
        default=PackageManager.PNPM.value,
        help="Package manager used for install and hooks (default: pnpm)",
    )
    create.add_argument("--no-typescript", action="store_true", help="Convert sources to JavaScript")
    create.add_argument("--no-eslint", action="store_true", help="Remove linter configuration")
    create.add_argument("--no-husky", action="store_true", help="Remove git hook configuration")
    create.add_argument("--skip-install", action="store_true", help="Skip dependency installation")
    create.add_argument("--skip-git", action="store_true", help="Skip git repository initialization")
    _add_common_arguments(create)

    listing = subparsers.add_parser("list", help="List available fragments")
    _add_common_arguments(listing)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--templates-dir",
        default=None,
        help="Template root (default: $ARSI_TEMPLATES_DIR or ./templates)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Parent directory of the new project (default: $ARSI_OUTPUT_DIR or .)",
    )


def build_config(args: argparse.Namespace) -> ScaffoldConfig:
    """Environment configuration overridden by command-line flags."""
    config = ScaffoldConfig.from_env()
    if args.templates_dir:
        config.templates_dir = Path(args.templates_dir)
    if args.output:
        config.output_dir = Path(args.output)
    return config


def selected_fragments(args: argparse.Namespace) -> list[FragmentRef]:
    """Fragment references named by the ``create`` flags.

    Raises:
        ValueError: If neither a full template nor routing and UI fragments
            were given.
    """
    if args.template:
        refs = [FragmentRef(category=TEMPLATE_CATEGORY, name=args.template)]
    else:
        if not args.routing or not args.ui:
            raise ValueError("Either --template or both --routing and --ui are required")
        refs = [
            FragmentRef(category=BASE_CATEGORY, name="base"),
            FragmentRef(category="routing", name=args.routing),
            FragmentRef(category="ui", name=args.ui),
        ]
    refs.extend(FragmentRef(category="state", name=name) for name in args.state)
    return refs


def resolve_render_mode(
    args: argparse.Namespace, store: TemplateStore, refs: list[FragmentRef]
) -> Optional[RenderMode]:
    """Explicit ``--render-mode``, else server rendering for fragments that support it."""
    if args.render_mode:
        return RenderMode(args.render_mode)
    for ref in refs:
        if ref.category in ("routing", TEMPLATE_CATEGORY):
            if store.read_metadata(ref.category, ref.name).supports_render_mode:
                return RenderMode.SSR
    return None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def run_create(args: argparse.Namespace, config: ScaffoldConfig) -> int:
    """Compose the project, then run the post-generation steps."""
    store = TemplateStore(config)
    try:
        refs = selected_fragments(args)
        selection = SelectionSet(
            project_name=args.project_name,
            fragments=tuple(refs),
            use_typed_language=not args.no_typescript,
            use_linter=not args.no_eslint,
            use_git_hooks=not args.no_husky,
            package_manager=PackageManager(args.package_manager),
            render_mode=resolve_render_mode(args, store, refs),
        )
    except ValidationError as exc:
        print_error(f"Invalid project options: {_first_error(exc)}")
        return 1
    except (ValueError, ScaffoldError) as exc:
        print_error(f"Error: {exc}")
        return 1

    composer = ProjectComposer(store, config)
    start = time.monotonic()
    with create_progress() as progress:
        progress.add_task("Creating your project...", total=None)
        result = await composer.compose(selection, config.output_dir)

    if not result.ok:
        print_error(f"Failed to create project ({result.error_kind.value}): {result.message}")
        return 1

    project_path = result.path
    print_success(f"Project created at {project_path}")

    pm = selection.package_manager
    installed = False
    if not args.skip_install:
        with create_progress() as progress:
            progress.add_task("Installing dependencies...", total=None)
            installed = await install_dependencies(project_path, pm, config)

    git_ready = False
    if not args.skip_git:
        git_ready = await initialize_git(project_path, config.default_branch, config)

    if selection.use_git_hooks and git_ready and not args.skip_install:
        await initialize_husky(project_path, pm, config, use_linter=selection.use_linter)

    print_summary_table(
        {
            "Project": selection.project_name,
            "Fragments": ", ".join(str(ref) for ref in refs),
            "TypeScript": "yes" if selection.use_typed_language else "no",
            "ESLint": "yes" if selection.use_linter else "no",
            "Husky": "yes" if selection.use_git_hooks else "no",
            "Render mode": selection.render_mode.value if selection.render_mode else "-",
            "Dependencies": "installed" if installed else "not installed",
            "Duration": format_duration(time.monotonic() - start),
        },
        title="Project summary",
    )
    console.print("[cyan]To get started:[/cyan]")
    console.print(f"  cd {project_path.name}")
    if not installed:
        console.print(f"  {pm.value} install")
    console.print(f"  {pm.value} run dev")
    return 0


def run_list(config: ScaffoldConfig) -> int:
    """Print the fragments available under the template root."""
    store = TemplateStore(config)
    if not store.root.is_dir():
        print_error(f"Error: Templates directory not found: {store.root}")
        return 1

    available: dict[str, str] = {}
    for category in [BASE_CATEGORY, TEMPLATE_CATEGORY, *store.list_categories()]:
        names = store.list_fragments(category, optional=True)
        if names:
            available[category] = ", ".join(names)

    if not available:
        print_warning(f"No fragments found under {store.root}")
        return 0
    print_summary_table(available, title="Available fragments")
    return 0


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', '')}" if location else error.get("msg", str(exc))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``arsi-scaffold`` and ``python -m arsi_scaffold``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except (ValidationError, ValueError) as exc:
        print_error(f"Error: Invalid configuration: {exc}")
        sys.exit(1)

    if args.command == "create":
        exit_code = asyncio.run(run_create(args, config))
    else:
        exit_code = run_list(config)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
