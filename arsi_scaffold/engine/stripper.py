"""Post-merge removal of disabled capabilities.

Three capabilities can be switched off after the tree and ``package.json``
are composed:

* typed language -- ``.ts``/``.tsx`` sources are rewritten to JavaScript,
  TypeScript config and declaration files are deleted (path aliases move
  to ``jsconfig.json``) and the compiler and ``@types`` packages are
  dropped from the manifest;
* linter -- ESLint / Prettier / lint-staged configs, packages and scripts;
* git hooks -- the ``.husky`` directory, its config, the ``husky`` package
  and the ``prepare`` script.

Each capability is handled independently, deleting something that is
already gone is a no-op, and running the pass twice gives the same tree.
"""

from __future__ import annotations

import copy
import json
import os
import re
import shutil
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from arsi_scaffold.config import MANIFEST_FILENAME
from arsi_scaffold.errors import ScaffoldIOError, ScaffoldValidationError
from arsi_scaffold.engine.manifest import NESTED_FIELDS
from arsi_scaffold.engine.tree_merger import PathPredicate
from arsi_scaffold.engine.typescript import strip_types
from arsi_scaffold.utils import dump_json, load_json

_SKIP_DIRS = frozenset({"node_modules", ".git"})

# ---------------------------------------------------------------------------
# Typed language
# ---------------------------------------------------------------------------

TS_EXTENSIONS: dict[str, str] = {
    ".ts": ".js",
    ".tsx": ".jsx",
    ".mts": ".mjs",
    ".cts": ".cjs",
}
TS_CONFIG_FILES = PathPredicate(["tsconfig.json", "tsconfig.*.json", "*.d.ts", "*.d.mts", "*.d.cts"])
TS_PACKAGES = frozenset({
    "typescript",
    "ts-node",
    "tsx",
    "typescript-eslint",
    "@babel/preset-typescript",
})
TS_PACKAGE_PREFIXES: tuple[str, ...] = ("@types/", "@typescript-eslint/")
TS_SCRIPTS = frozenset({"typecheck", "type-check", "types:check", "tsc"})
JS_CONFIG_FILE = "jsconfig.json"
# compilerOptions carried from tsconfig to jsconfig so import aliases keep resolving
ALIAS_OPTIONS = ("baseUrl", "paths")

_REFERENCE_SUFFIXES = frozenset({".js", ".jsx", ".mjs", ".cjs", ".html"})
_TS_REFERENCE = re.compile(r"(['\"`])((?:\.{0,2}/|[\w@~-][\w.@~-]*/)[^'\"`\s]*?)\.(tsx?|mts|cts)\1")
_SCRIPT_TS_FILE = re.compile(r"(?<![\w.])([\w./-]+?)\.(tsx?|mts|cts)\b(?!\.)")
_TSC_PREFIX = re.compile(r"\btsc\b[^&|;]*&&\s*")
_TSC_SUFFIX = re.compile(r"\s*&&\s*tsc\b[^&|;]*")
# tsconfig files are JSON with comments and trailing commas; strings are matched
# first so their contents are never touched
_JSON_STRING = r'"(?:\\.|[^"\\\n])*"'
_JSONC_COMMENT = re.compile(_JSON_STRING + r"|//[^\n]*|/\*.*?\*/", re.S)
_JSONC_TRAILING_COMMA = re.compile(_JSON_STRING + r"|,(?=\s*[}\]])")

# ---------------------------------------------------------------------------
# Linter
# ---------------------------------------------------------------------------

LINT_FILES = PathPredicate([
    "eslint.config.*",
    ".eslintrc",
    ".eslintrc.*",
    ".eslintignore",
    ".prettierrc",
    ".prettierrc.*",
    "prettier.config.*",
    ".prettierignore",
    ".lintstagedrc",
    ".lintstagedrc.*",
    "lint-staged.config.*",
])
LINT_FIELDS = ("lint-staged", "eslintConfig", "prettier")

# ---------------------------------------------------------------------------
# Git hooks
# ---------------------------------------------------------------------------

HOOKS_DIR = ".husky"
HOOK_FILES = PathPredicate([".huskyrc", ".huskyrc.*", "husky.config.*"])
HOOK_PACKAGES = frozenset({"husky"})
HOOK_SCRIPTS = frozenset({"prepare"})
HOOK_FIELDS = ("husky",)


@dataclass
class StripReport:
    """What a stripping pass changed."""

    converted: list[tuple[Path, Path]] = field(default_factory=list)
    rewritten: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    manifest_changed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.converted or self.rewritten or self.deleted or self.manifest_changed)


# ---------------------------------------------------------------------------
# Tree pass
# ---------------------------------------------------------------------------


def strip_variants(
    root: Path,
    *,
    use_typed_language: bool = True,
    use_linter: bool = True,
    use_git_hooks: bool = True,
) -> StripReport:
    """Remove every disabled capability from the project at *root*.

    The project's ``package.json`` (if present) is pruned and rewritten in
    place.

    Raises:
        ScaffoldIOError: If an existing file cannot be rewritten or deleted.
        ScaffoldValidationError: If ``package.json`` is malformed.
    """
    report = StripReport()

    if not use_typed_language:
        _convert_typescript(root, report)
    if not use_linter:
        for path in list(_iter_files(root)):
            if LINT_FILES.matches(PurePosixPath(path.relative_to(root).as_posix())):
                _remove(path, report)
    if not use_git_hooks and root.is_dir():
        _remove(root / HOOKS_DIR, report)
        for path in sorted(root.iterdir()):
            if path.is_file() and HOOK_FILES.matches(path.name):
                _remove(path, report)

    manifest_path = root / MANIFEST_FILENAME
    if manifest_path.is_file():
        manifest = _read_manifest(manifest_path)
        stripped = strip_manifest(
            manifest,
            use_typed_language=use_typed_language,
            use_linter=use_linter,
            use_git_hooks=use_git_hooks,
        )
        if stripped != manifest:
            _write(manifest_path, dump_json(stripped))
            report.manifest_changed = True

    return report


def _convert_typescript(root: Path, report: StripReport) -> None:
    _write_jsconfig(root, report)
    renamed = False
    for path in list(_iter_files(root)):
        rel = PurePosixPath(path.relative_to(root).as_posix())
        if TS_CONFIG_FILES.matches(rel):
            _remove(path, report)
            continue
        target_suffix = TS_EXTENSIONS.get(path.suffix)
        if target_suffix is None:
            continue
        target = path.with_suffix(target_suffix)
        _write(target, strip_types(_read(path)))
        _remove(path, report, record=False)
        report.converted.append((path, target))
        renamed = True

    if not renamed:
        return
    for path in _iter_files(root):
        if path.suffix not in _REFERENCE_SUFFIXES:
            continue
        content = _read_text_or_none(path)
        if content is None:
            continue
        updated = rewrite_ts_references(content)
        if updated != content:
            _write(path, updated)
            report.rewritten.append(path)


def _write_jsconfig(root: Path, report: StripReport) -> None:
    """Copy the root tsconfig alias options into ``jsconfig.json``.

    ``tsconfig.json`` wins over ``tsconfig.*.json`` for an option both set.
    Nothing is written when no alias options exist or a jsconfig is present.
    """
    target = root / JS_CONFIG_FILE
    if os.path.lexists(target):
        return
    options: dict[str, Any] = {}
    origin: Path | None = None
    for source in [root / "tsconfig.json", *sorted(root.glob("tsconfig.*.json"))]:
        if not source.is_file():
            continue
        compiler_options = load_jsonc(_read(source), source).get("compilerOptions")
        if not isinstance(compiler_options, dict):
            continue
        for name in ALIAS_OPTIONS:
            if name in compiler_options and name not in options:
                options[name] = compiler_options[name]
                origin = origin or source
    if origin is None:
        return
    _write(target, dump_json({"compilerOptions": options}))
    report.converted.append((origin, target))


def load_jsonc(content: str, path: Path | None = None) -> dict[str, Any]:
    """Parse tsconfig-style JSON (comments and trailing commas allowed).

    Raises:
        ScaffoldValidationError: If the document is not a JSON object.
    """
    text = _JSONC_COMMENT.sub(_keep_strings, content)
    text = _JSONC_TRAILING_COMMA.sub(_keep_strings, text)
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise ScaffoldValidationError(f"Malformed {path or 'config'}: {exc}", path) from exc
    if not isinstance(data, dict):
        raise ScaffoldValidationError(f"{path or 'config'} must be a JSON object", path)
    return data


def _keep_strings(match: re.Match[str]) -> str:
    return match.group(0) if match.group(0).startswith('"') else ""


def rewrite_ts_references(content: str) -> str:
    """Point quoted relative paths like ``"./main.tsx"`` at their JavaScript twins."""
    return _TS_REFERENCE.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{TS_EXTENSIONS['.' + m.group(3)]}{m.group(1)}",
        content,
    )


# ---------------------------------------------------------------------------
# Manifest pass
# ---------------------------------------------------------------------------


def strip_manifest(
    manifest: Mapping[str, Any],
    *,
    use_typed_language: bool = True,
    use_linter: bool = True,
    use_git_hooks: bool = True,
) -> dict[str, Any]:
    """Return a copy of *manifest* without the disabled capabilities' entries."""
    result = copy.deepcopy(dict(manifest))

    def drop_packages(predicate) -> None:
        for section in ("dependencies", "devDependencies"):
            packages = result.get(section)
            if isinstance(packages, dict):
                result[section] = {k: v for k, v in packages.items() if not predicate(k)}

    def drop_scripts(predicate) -> None:
        scripts = result.get("scripts")
        if isinstance(scripts, dict):
            result["scripts"] = {k: v for k, v in scripts.items() if not predicate(k)}

    if not use_typed_language:
        drop_packages(is_typescript_package)
        drop_scripts(lambda name: name in TS_SCRIPTS)
        scripts = result.get("scripts")
        if isinstance(scripts, dict):
            untyped: dict[str, Any] = {}
            for name, command in scripts.items():
                cleaned = _untyped_script(command)
                if cleaned:
                    untyped[name] = cleaned
            result["scripts"] = untyped

    if not use_linter:
        drop_packages(is_lint_package)
        drop_scripts(is_lint_script)
        for name in LINT_FIELDS:
            result.pop(name, None)

    if not use_git_hooks:
        drop_packages(lambda name: name in HOOK_PACKAGES)
        drop_scripts(lambda name: name in HOOK_SCRIPTS)
        for name in HOOK_FIELDS:
            result.pop(name, None)

    return result


def is_typescript_package(name: str) -> bool:
    return name in TS_PACKAGES or name.startswith(TS_PACKAGE_PREFIXES)


def is_lint_package(name: str) -> bool:
    return "eslint" in name or "prettier" in name or name == "lint-staged"


def is_lint_script(name: str) -> bool:
    return name in ("lint", "format") or name.startswith(("lint:", "format:"))


def _untyped_script(command: Any) -> Any:
    if not isinstance(command, str):
        return command
    cleaned = _TSC_PREFIX.sub("", command)
    cleaned = _TSC_SUFFIX.sub("", cleaned).strip()
    if cleaned == "tsc" or cleaned.startswith("tsc "):
        return ""
    return _SCRIPT_TS_FILE.sub(
        lambda m: f"{m.group(1)}{TS_EXTENSIONS['.' + m.group(2)]}", cleaned
    )


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def _iter_files(root: Path) -> Iterator[Path]:
    """Yield every file under *root* in sorted order, skipping dependency caches."""
    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        for name in sorted(filenames):
            yield Path(dirpath) / name


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ScaffoldIOError(f"Failed to read {path}: not UTF-8 text ({exc.reason})", path) from exc
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("read", path, exc) from exc


def _read_text_or_none(path: Path) -> str | None:
    """Like ``_read`` but returns ``None`` for files that are not UTF-8 text."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return None
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("read", path, exc) from exc


def _write(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("write", path, exc) from exc


def _read_manifest(path: Path) -> dict[str, Any]:
    try:
        data = load_json(path)
    except ValueError as exc:
        raise ScaffoldValidationError(f"Malformed manifest {path}: {exc}", path) from exc
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("read", path, exc) from exc
    if not isinstance(data, dict):
        raise ScaffoldValidationError(f"Manifest {path} must be a JSON object", path)
    for section in NESTED_FIELDS:
        if section in data and not isinstance(data[section], dict):
            raise ScaffoldValidationError(f"Manifest field {section!r} must be an object", path)
    return data


def _remove(path: Path, report: StripReport, *, record: bool = True) -> None:
    if not os.path.lexists(path):
        return
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("delete", path, exc) from exc
    if record:
        report.deleted.append(path)
