"""Registering fragment-declared plugins in the generated ``vite.config``.

A fragment lists the plugins it needs in ``fragment.yaml``::

    vite_plugins:
      - import_statement: "import tailwindcss from '@tailwindcss/vite'"
        call: "tailwindcss()"

After the trees are merged the composer patches each plugin into the
project's Vite config: the import goes after the last existing import and
the call becomes the first entry of the ``plugins`` array.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from arsi_scaffold.errors import ScaffoldIOError
from arsi_scaffold.models import VitePlugin
from arsi_scaffold.engine.typescript import find_closing_bracket

VITE_CONFIG_NAMES: tuple[str, ...] = (
    "vite.config.ts",
    "vite.config.mts",
    "vite.config.js",
    "vite.config.mjs",
)

_IMPORT = re.compile(r"^import\s+(?:[^;'\"]*?\s+from\s+)?['\"][^'\"\n]+['\"];?", re.MULTILINE)
_PLUGINS = re.compile(r"\bplugins\s*:\s*\[")
_MODULE = re.compile(r"from\s+(['\"])([^'\"]+)\1")


def find_vite_config(root: Path) -> Optional[Path]:
    """Return the first Vite config file present in *root*, if any."""
    for name in VITE_CONFIG_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def add_plugin_to_source(content: str, plugin: VitePlugin) -> str:
    """Return *content* with *plugin* imported and registered first in ``plugins``.

    Content that already imports the plugin's module, or has no ``plugins``
    array, is returned unchanged.
    """
    module = _MODULE.search(plugin.import_statement)
    if plugin.import_statement in content or (
        module and re.search(rf"from\s+['\"]{re.escape(module.group(2))}['\"]", content)
    ):
        return content

    plugins = _PLUGINS.search(content)
    if plugins is None:
        return content
    open_idx = plugins.end() - 1
    close_idx = find_closing_bracket(content, open_idx)
    if close_idx == -1:
        return content

    inner = content[open_idx + 1:close_idx]
    if not inner.strip():
        indent = _line_indent(content, plugins.start()) + "  "
        closing_indent = _line_indent(content, plugins.start())
        new_inner = f"\n{indent}{plugin.call},\n{closing_indent}"
    elif "\n" not in inner:
        new_inner = f"{plugin.call}, {inner.strip()}"
    else:
        first = next(line for line in inner.split("\n") if line.strip())
        indent = first[: len(first) - len(first.lstrip())] or "    "
        new_inner = f"\n{indent}{plugin.call},\n{indent}{inner.lstrip()}"
    content = content[: open_idx + 1] + new_inner + content[close_idx:]

    imports = list(_IMPORT.finditer(content))
    if imports:
        pos = imports[-1].end()
        return content[:pos] + "\n" + plugin.import_statement + content[pos:]
    return plugin.import_statement + "\n" + content


async def add_plugin_to_config(config_path: Path, plugin: VitePlugin) -> bool:
    """Patch *plugin* into the config file at *config_path*.

    Returns ``True`` when the file was modified.
    """
    try:
        content = config_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ScaffoldIOError(
            f"Failed to read {config_path}: not UTF-8 text ({exc.reason})", config_path
        ) from exc
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("read", config_path, exc) from exc
    updated = add_plugin_to_source(content, plugin)
    if updated == content:
        return False
    try:
        config_path.write_text(updated, encoding="utf-8")
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("write", config_path, exc) from exc
    return True


def _line_indent(content: str, pos: int) -> str:
    line_start = content.rfind("\n", 0, pos) + 1
    line = content[line_start:pos]
    return line[: len(line) - len(line.lstrip())]
