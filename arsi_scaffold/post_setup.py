"""Post-generation project setup.

Runs after the composer has produced a finished project tree: installs
dependencies, initialises a git repository and sets up Husky.  Every step is
best effort.  A failure prints a warning with the commands to run by hand
and never touches the generated files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from arsi_scaffold.config import ScaffoldConfig
from arsi_scaffold.engine.templates import TemplateRenderer
from arsi_scaffold.errors import ScaffoldIOError
from arsi_scaffold.models import PackageManager
from arsi_scaffold.utils import print_hint, print_success, print_warning, run_command

INITIAL_COMMIT_MESSAGE = "Initial commit: Project scaffolded"

# Arguments that run the husky binary through each package manager.
_HUSKY_INIT: dict[PackageManager, list[str]] = {
    PackageManager.PNPM: ["pnpm", "exec", "husky", "init"],
    PackageManager.YARN: ["yarn", "dlx", "husky", "init"],
    PackageManager.BUN: ["bun", "x", "husky", "init"],
    PackageManager.NPM: ["npx", "exec", "--", "husky", "init"],
}

_HUSKY_HINT: dict[PackageManager, str] = {
    PackageManager.PNPM: "pnpm exec husky init",
    PackageManager.YARN: "yarn dlx husky init",
    PackageManager.BUN: "bunx husky init",
    PackageManager.NPM: "npx husky init",
}


def husky_init_command(package_manager: PackageManager) -> list[str]:
    return list(_HUSKY_INIT[package_manager])


def lint_staged_command(package_manager: PackageManager) -> str:
    """Command the pre-commit hook runs."""
    if package_manager is PackageManager.NPM:
        return "npx lint-staged"
    return f"{package_manager.value} lint-staged"


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


async def install_dependencies(
    project_path: Path,
    package_manager: PackageManager,
    config: Optional[ScaffoldConfig] = None,
) -> bool:
    """Run ``<pm> install`` in the generated project."""
    config = config or ScaffoldConfig()
    returncode, _, stderr = await run_command(
        [package_manager.value, "install"],
        cwd=project_path,
        timeout=config.install_timeout,
    )
    if returncode != 0:
        print_warning(f"Failed to install dependencies: {stderr or f'exit code {returncode}'}")
        print_warning("You can install them manually by running:")
        print_hint(f"cd {project_path.name}", f"{package_manager.value} install")
        return False

    print_success("Dependencies installed successfully!")
    return True


async def initialize_git(
    project_path: Path,
    branch: Optional[str] = None,
    config: Optional[ScaffoldConfig] = None,
) -> bool:
    """Create a repository on *branch* with everything committed.

    Returns ``False`` (after a warning) when git is missing or any git
    command fails.
    """
    config = config or ScaffoldConfig()
    branch = branch or config.default_branch

    returncode, _, _ = await run_command(
        ["git", "--version"], cwd=project_path, timeout=config.git_timeout
    )
    if returncode != 0:
        print_warning("Git is not installed. Skipping git initialization.")
        return False

    steps = [
        ["git", "init"],
        ["git", "checkout", "-b", branch],
        ["git", "add", "."],
        ["git", "commit", "-m", INITIAL_COMMIT_MESSAGE],
    ]
    for cmd in steps:
        returncode, _, stderr = await run_command(
            cmd, cwd=project_path, timeout=config.git_timeout
        )
        if returncode != 0:
            print_warning(f"Failed to initialize git repository: {' '.join(cmd)}: {stderr}")
            print_warning("You can initialize git manually by running:")
            print_hint(
                f"cd {project_path.name}",
                "git init",
                f"git checkout -b {branch}",
                "git add .",
                'git commit -m "Initial commit"',
            )
            return False

    print_success(f"Git repository initialized on branch '{branch}'")
    return True


async def initialize_husky(
    project_path: Path,
    package_manager: PackageManager,
    config: Optional[ScaffoldConfig] = None,
    renderer: Optional[TemplateRenderer] = None,
    use_linter: bool = True,
) -> bool:
    """Run ``husky init`` and point the pre-commit hook at lint-staged.

    Needs installed dependencies and an initialised git repository.  With
    *use_linter* off lint-staged has been stripped from the project, so the
    hook is written without it.
    """
    config = config or ScaffoldConfig()
    renderer = renderer or TemplateRenderer()

    returncode, _, stderr = await run_command(
        husky_init_command(package_manager), cwd=project_path, timeout=config.install_timeout
    )
    if returncode == 0:
        try:
            hook = await renderer.render_to_file(
                "pre-commit.j2",
                project_path / ".husky" / "pre-commit",
                {"lint_staged_command": lint_staged_command(package_manager) if use_linter else ""},
            )
            hook.chmod(0o755)
        except (OSError, ScaffoldIOError) as exc:
            returncode, stderr = 1, str(exc)

    if returncode != 0:
        print_warning(f"Husky initialization skipped or failed: {stderr or f'exit code {returncode}'}")
        print_warning("You can initialize Husky manually by running:")
        print_hint(f"cd {project_path.name}", _HUSKY_HINT[package_manager])
        return False

    print_success("Husky initialized successfully!")
    return True
