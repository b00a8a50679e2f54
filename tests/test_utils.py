"""Unit tests for utility functions (arsi_scaffold.utils).

Tests cover:
- run_command (success, failure, missing executable, timeout, env vars)
- load_json / dump_json / save_json
- format_duration
- Rich output helpers
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from arsi_scaffold.utils import (
    create_progress,
    dump_json,
    format_duration,
    load_json,
    print_error,
    print_hint,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    save_json,
)


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_list_command_success(self, tmp_path: Path):
        rc, stdout, stderr = await run_command(["echo", "hello"], cwd=tmp_path)
        assert rc == 0
        assert stdout == "hello"
        assert stderr == ""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_string_command_failure(self):
        rc, _, _ = await run_command("exit 3")
        assert rc == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_executable_returns_127(self):
        rc, stdout, stderr = await run_command(["arsi-definitely-not-a-command"])
        assert rc == 127
        assert stdout == ""
        assert stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        rc, _, stderr = await run_command(["sleep", "5"], timeout=1)
        assert rc == -1
        assert "timed out" in stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_env_merged(self):
        rc, stdout, _ = await run_command("echo $ARSI_TEST_VALUE", env={"ARSI_TEST_VALUE": "42"})
        assert rc == 0
        assert stdout == "42"


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


class TestJson:
    @pytest.mark.unit
    def test_dump_json_format(self):
        text = dump_json({"name": "demo", "scripts": {"dev": "vite"}})
        assert text == '{\n  "name": "demo",\n  "scripts": {\n    "dev": "vite"\n  }\n}\n'

    @pytest.mark.unit
    def test_dump_json_keeps_unicode(self):
        assert "café" in dump_json({"description": "café"})

    @pytest.mark.unit
    def test_load_json(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text('{"a": [1, 2]}', encoding="utf-8")
        assert load_json(path) == {"a": [1, 2]}

    @pytest.mark.unit
    def test_load_json_invalid(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_json(path)

    @pytest.mark.unit
    def test_load_json_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_creates_parents(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "package.json"
        await save_json({"name": "demo"}, path)
        assert path.read_text(encoding="utf-8") == '{\n  "name": "demo"\n}\n'


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-1) == "0.0s"


# ---------------------------------------------------------------------------
# Rich helpers
# ---------------------------------------------------------------------------


class TestRichHelpers:
    @pytest.mark.unit
    def test_print_helpers_use_console(self):
        with patch("arsi_scaffold.utils.console") as console:
            print_success("done")
            print_warning("careful")
            print_error("broken")
            print_hint("git init", "git add .")
        printed = [call.args[0] for call in console.print.call_args_list]
        assert "[bold green]done[/bold green]" in printed
        assert "[bold yellow]careful[/bold yellow]" in printed
        assert "[bold red]broken[/bold red]" in printed
        assert "  [cyan]git init[/cyan]" in printed
        assert "  [cyan]git add .[/cyan]" in printed

    @pytest.mark.unit
    def test_print_summary_table(self):
        with patch("arsi_scaffold.utils.console") as console:
            print_summary_table({"Project": "demo-app"}, title="Project summary")
        assert console.print.call_count == 2

    @pytest.mark.unit
    def test_create_progress_is_transient(self):
        progress = create_progress()
        assert progress.live.transient is True
