"""Tests for the TypeScript to JavaScript rewriting pass."""

from __future__ import annotations

import textwrap

import pytest

from arsi_scaffold.engine.typescript import find_closing_bracket, strip_types


pytestmark = pytest.mark.unit


def ts(source: str) -> str:
    return textwrap.dedent(source).lstrip("\n")


class TestImportsAndDeclarations:
    def test_type_only_import_removed(self):
        source = ts("""
            import type { Config } from '@react-router/dev/config'

            export default {
              ssr: true,
            } satisfies Config
        """)
        assert strip_types(source) == "export default {\n  ssr: true,\n}\n"

    def test_inline_type_specifier_dropped(self):
        source = 'import { useState, type ReactNode } from "react";\n'
        assert strip_types(source) == 'import { useState } from "react";\n'

    def test_import_with_only_type_specifiers_removed(self):
        source = 'import { type Foo } from "./foo";\nexport const x = 1;\n'
        assert strip_types(source) == "export const x = 1;\n"

    def test_multiline_named_import_keeps_layout(self):
        source = ts("""
            import {
              clsx,
              type ClassValue,
            } from "clsx";
        """)
        assert strip_types(source) == 'import {\n  clsx\n} from "clsx";\n'

    def test_type_export_removed(self):
        source = 'export type { Props } from "./types";\nexport { Button } from "./button";\n'
        assert strip_types(source) == 'export { Button } from "./button";\n'

    def test_interface_and_alias_removed(self):
        source = ts("""
            export interface Props {
              title: string;
              onClose?: () => void;
            }

            type Mode = "ssr" | "spa";

            export const ready = true;
        """)
        assert strip_types(source) == "export const ready = true;\n"

    def test_multiline_union_alias_removed(self):
        source = ts("""
            type Size =
              | "sm"
              | "lg";
            const size = "sm";
        """)
        assert strip_types(source) == 'const size = "sm";\n'

    def test_declare_blocks_removed(self):
        source = ts("""
            declare global {
              interface Window {
                env: Record<string, string>;
              }
            }
            declare const __APP_VERSION__: string;
            export {};
        """)
        assert strip_types(source) == "export {};\n"


class TestAnnotations:
    def test_function_parameters_and_return_type(self):
        source = ts("""
            export function capitalizeFirstLetter(value: string): string {
              return value.charAt(0).toUpperCase() + value.slice(1);
            }
        """)
        assert strip_types(source) == ts("""
            export function capitalizeFirstLetter(value) {
              return value.charAt(0).toUpperCase() + value.slice(1);
            }
        """)

    def test_arrow_function(self):
        source = "const handler = (event: MouseEvent): void => {\n  console.log(event);\n};\n"
        assert strip_types(source) == "const handler = (event) => {\n  console.log(event);\n};\n"

    def test_optional_and_default_parameters(self):
        source = 'function greet(name?: string, greeting: string = "Hi") {\n  return greeting + name;\n}\n'
        assert strip_types(source) == (
            'function greet(name, greeting = "Hi") {\n  return greeting + name;\n}\n'
        )

    def test_destructured_parameter(self):
        source = "export function Layout({ children }: { children: ReactNode }) {\n  return children;\n}\n"
        assert strip_types(source) == "export function Layout({ children }) {\n  return children;\n}\n"

    def test_generic_declaration(self):
        source = "function identity<T>(value: T): T {\n  return value;\n}\n"
        assert strip_types(source) == "function identity(value) {\n  return value;\n}\n"

    def test_control_flow_parens_untouched(self):
        source = "if (a) {\n  run(a);\n}\nwhile (b) {\n  b--;\n}\n"
        assert strip_types(source) == source

    def test_variable_annotation_cast_and_non_null(self):
        source = ts("""
            type Mode = "ssr" | "spa";

            const mode: Mode = "ssr";
            const root = document.getElementById("root")!;
            const input = event.target as HTMLInputElement;
        """)
        assert strip_types(source) == ts("""
            const mode = "ssr";
            const root = document.getElementById("root");
            const input = event.target;
        """)

    def test_generic_call_arguments(self):
        source = "const [open, setOpen] = useState<boolean>(false);\n"
        assert strip_types(source) == "const [open, setOpen] = useState(false);\n"


class TestLeavesJavaScriptAlone:
    def test_strings_and_comments(self):
        source = ts("""
            // value: string as any
            const label = "a: string as any";
        """)
        assert strip_types(source) == source

    def test_jsx_prose_is_not_a_cast(self):
        source = "export const Save = () => <Button>Save as Draft</Button>;\n"
        assert strip_types(source) == source

    def test_plain_javascript_unchanged(self):
        source = ts("""
            import { Outlet } from "react-router";

            export default function App() {
              return <Outlet />;
            }
        """)
        assert strip_types(source) == source

    def test_idempotent(self):
        source = ts("""
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
        once = strip_types(source)
        assert "interface" not in once
        assert "create()((set) =>" in once
        assert strip_types(once) == once


class TestFindClosingBracket:
    def test_nested(self):
        text = "f(a, (b), [c])"
        assert find_closing_bracket(text, 1) == len(text) - 1

    def test_ignores_brackets_in_strings(self):
        text = 'f(")", x)'
        assert find_closing_bracket(text, 1) == len(text) - 1

    def test_unbalanced(self):
        assert find_closing_bracket("f(a", 1) == -1
