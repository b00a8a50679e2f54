"""Files the composer generates rather than copies.

None of these come from a fragment tree: the environment files are built
from the ``env`` entries the selected fragments declare, the ignore file is
only written when no fragment ships one, and the routing config carries the
selected render mode.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from arsi_scaffold.models import Fragment, RenderMode
from arsi_scaffold.engine.templates import TemplateRenderer

ENV_FILE = ".env"
ENV_EXAMPLE_FILE = ".env.example"
IGNORE_FILE = ".gitignore"
RENDER_CONFIG_FILE = "react-router.config.ts"


def collect_env(fragments: Iterable[Fragment]) -> dict[str, str]:
    """Union of the fragments' declared environment variables; the first declaration wins."""
    env: dict[str, str] = {}
    for fragment in fragments:
        for key, value in fragment.metadata.env.items():
            env.setdefault(key, value)
    return env


async def write_env_files(
    root: Path, env: dict[str, str], renderer: TemplateRenderer
) -> list[Path]:
    """Write ``.env`` with defaults and ``.env.example`` with empty values."""
    if not env:
        return []
    return [
        await renderer.render_to_file("env.j2", root / ENV_FILE, {"env": env, "example": False}),
        await renderer.render_to_file(
            "env.j2", root / ENV_EXAMPLE_FILE, {"env": env, "example": True}
        ),
    ]


async def write_ignore_file(root: Path, renderer: TemplateRenderer) -> Optional[Path]:
    """Write ``.gitignore`` unless the composed tree already has one."""
    target = root / IGNORE_FILE
    if target.exists():
        return None
    return await renderer.render_to_file("gitignore.j2", target, {})


async def write_render_config(
    root: Path, mode: RenderMode, renderer: TemplateRenderer
) -> Path:
    """Write the routing config selecting server-side or client-side rendering."""
    return await renderer.render_to_file(
        "react-router.config.ts.j2",
        root / RENDER_CONFIG_FILE,
        {"ssr": mode is RenderMode.SSR},
    )
