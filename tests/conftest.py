"""Shared pytest fixtures for the arsi-scaffold test suite.

Provides reusable fixtures for:
- A realistic template root (base, feature fragments, a flat full template)
- Configurations and stores pointed at that root
- Selection sets for the common base + routing + ui composition
- Mock subprocess helpers
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from arsi_scaffold.config import ScaffoldConfig
from arsi_scaffold.engine.store import TemplateStore
from arsi_scaffold.models import FragmentRef, SelectionSet


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def write_file(path: Path, content: str) -> Path:
    """Write *content* (dedented) to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


def write_manifest(path: Path, data: dict[str, Any]) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    target = path / "package.json"
    target.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return target


def snapshot_tree(root: Path) -> dict[str, str]:
    """Map every file under *root* (relative POSIX path) to its content."""
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


# ---------------------------------------------------------------------------
# Template fragments
# ---------------------------------------------------------------------------

VITE_CONFIG = """
import { reactRouter } from "@react-router/dev/vite";
import { defineConfig } from "vite";
import tsconfigPaths from "vite-tsconfig-paths";

export default defineConfig({
  plugins: [reactRouter(), tsconfigPaths()],
});
"""


def _build_base(root: Path) -> None:
    base = root / "base"
    write_manifest(base, {
        "name": "arsi-base",
        "version": "9.9.9",
        "private": True,
        "type": "module",
        "scripts": {
            "dev": "vite",
            "build": "tsc -b && vite build",
            "lint": "eslint .",
            "typecheck": "tsc --noEmit",
            "prepare": "husky",
        },
        "dependencies": {"react": "^19.0.0", "react-dom": "^19.0.0"},
        "devDependencies": {
            "typescript": "^5.6.0",
            "@types/react": "^19.0.0",
            "eslint": "^9.0.0",
            "husky": "^9.1.0",
            "lint-staged": "^15.0.0",
        },
        "lint-staged": {"*.{js,jsx,ts,tsx}": "eslint --fix"},
    })
    write_file(base / "tsconfig.json", """
        {
          // "~/" resolves to the app directory
          "compilerOptions": {
            "strict": true,
            "baseUrl": ".",
            "paths": { "~/*": ["./app/*"] },
          },
        }
    """)
    write_file(base / "eslint.config.js", "export default [];\n")
    write_file(base / ".husky" / "pre-commit", "npm test\n")
    write_file(base / "README.md", "base readme\n")
    write_file(base / "app" / "app.css", "/* base styles */\n")
    write_file(base / "app" / "lib" / "capitalize.ts", """
        export function capitalizeFirstLetter(value: string): string {
          return value.charAt(0).toUpperCase() + value.slice(1);
        }
    """)
    write_file(base / "node_modules" / "left-pad" / "index.js", "module.exports = 1;\n")
    write_file(base / "pnpm-lock.yaml", "lockfileVersion: '9.0'\n")


def _build_routing(root: Path) -> None:
    routing = root / "features" / "routing" / "rr-fs-graphql-rq"
    write_manifest(routing, {
        "name": "routing-fragment",
        "scripts": {
            "dev": "react-router dev",
            "build": "react-router build",
            "typecheck": "react-router typegen && tsc",
        },
        "dependencies": {
            "react": "^19.1.0",
            "react-router": "^7.0.0",
            "@tanstack/react-query": "^5.0.0",
        },
        "devDependencies": {
            "@react-router/dev": "^7.0.0",
            "vite-tsconfig-paths": "^5.0.0",
        },
    })
    write_file(routing / "fragment.yaml", """
        description: React Router framework mode with GraphQL and React Query
        supports_render_mode: true
        env:
          VITE_GRAPHQL_URL: "http://localhost:4000/graphql"
    """)
    write_file(routing / "vite.config.ts", VITE_CONFIG)
    write_file(routing / "README.md", "routing readme\n")
    write_file(routing / "app" / "routes.ts", """
        import { type RouteConfig, index } from "@react-router/dev/routes";

        export default [index("routes/home.tsx")] satisfies RouteConfig;
    """)
    write_file(routing / "app" / "routes" / "home.tsx", """
        export default function Home() {
          return <h1>Welcome</h1>;
        }
    """)
    write_file(routing / "app" / "root.tsx", """
        import type { ReactNode } from "react";
        import { Outlet } from "react-router";

        export function Layout({ children }: { children: ReactNode }) {
          return (
            <html lang="en">
              <body>{children}</body>
            </html>
          );
        }

        export default function App() {
          return <Outlet />;
        }
    """)


def _build_ui(root: Path) -> None:
    ui = root / "features" / "ui" / "shadcn-tailwind"
    write_manifest(ui, {
        "dependencies": {
            "tailwindcss": "^4.0.0",
            "@tailwindcss/vite": "^4.0.0",
            "clsx": "^2.1.0",
        },
        "devDependencies": {"prettier": "^3.3.0"},
        "scripts": {"format": "prettier --write ."},
    })
    write_file(ui / "fragment.yaml", """
        description: shadcn/ui components on Tailwind CSS
        env:
          VITE_THEME: light
          VITE_GRAPHQL_URL: "http://ignored.example"
        vite_plugins:
          - import_statement: "import tailwindcss from '@tailwindcss/vite'"
            call: "tailwindcss()"
    """)
    write_file(ui / "app" / "app.css", '@import "tailwindcss";\n')
    write_file(ui / "README.md", "ui readme\n")
    write_file(ui / "components.json", '{ "style": "new-york" }\n')
    write_file(ui / "app" / "lib" / "utils.ts", """
        import { clsx, type ClassValue } from "clsx";

        export function cn(...inputs: ClassValue[]) {
          return clsx(inputs);
        }
    """)


def _build_state(root: Path) -> None:
    state = root / "features" / "state" / "zustand"
    write_manifest(state, {"dependencies": {"zustand": "^5.0.0"}})
    write_file(state / "app" / "store.ts", """
        import { create } from "zustand";

        interface CounterState {
          count: number;
          increment: () => void;
        }

        export const useCounter = create<CounterState>()((set) => ({
          count: 0,
          increment: () => set((state) => ({ count: state.count + 1 })),
        }));
    """)


def _build_full_template(root: Path) -> None:
    template = root / "ssr-fs-graphql"
    write_manifest(template, {
        "name": "ssr-fs-graphql",
        "version": "1.2.3",
        "scripts": {"dev": "react-router dev"},
        "dependencies": {"react": "^19.0.0", "react-router": "^7.0.0"},
    })
    write_file(template / "fragment.yaml", "supports_render_mode: true\n")
    write_file(template / "app" / "root.tsx", "export default function App() {\n  return null;\n}\n")
    write_file(template / "vite.config.ts", VITE_CONFIG)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def templates_root(tmp_path: Path) -> Path:
    """A template root with base, routing, ui and state fragments and one full template."""
    root = tmp_path / "templates"
    _build_base(root)
    _build_routing(root)
    _build_ui(root)
    _build_state(root)
    _build_full_template(root)
    return root


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Parent directory for generated projects."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def scaffold_config(templates_root: Path, output_dir: Path) -> ScaffoldConfig:
    return ScaffoldConfig(templates_dir=templates_root, output_dir=output_dir)


@pytest.fixture
def store(scaffold_config: ScaffoldConfig) -> TemplateStore:
    return TemplateStore(scaffold_config)


@pytest.fixture
def base_refs() -> list[FragmentRef]:
    """Base + rr-fs-graphql-rq routing + shadcn-tailwind UI."""
    return [
        FragmentRef(category="base", name="base"),
        FragmentRef(category="routing", name="rr-fs-graphql-rq"),
        FragmentRef(category="ui", name="shadcn-tailwind"),
    ]


@pytest.fixture
def demo_selection(base_refs: list[FragmentRef]) -> SelectionSet:
    """The demo-app selection with every capability kept."""
    return SelectionSet(project_name="demo-app", fragments=tuple(base_refs))


# ---------------------------------------------------------------------------
# Subprocess mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_run_command():
    """Patch ``run_command`` in the post-setup module with an always-succeeding mock.

    Usage:
        async def test_something(mock_run_command):
            await initialize_git(path)
            assert mock_run_command.await_count == 5
    """
    mock = AsyncMock(return_value=(0, "", ""))
    with patch("arsi_scaffold.post_setup.run_command", mock):
        yield mock
