"""Unit tests for shared utilities (treegen.utils).

Tests cover:
- format_duration()
- parse_json_object()
- run_command() success, failure and unstartable programs
- Console print helpers
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from treegen.utils import (
    format_duration,
    parse_json_object,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
)


class TestFormatDuration:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "seconds, expected",
        [(3.7, "3.7s"), (65.2, "1m 5s"), (3661.0, "1h 1m 1s"), (0, "0.0s"), (-2, "0.0s")],
    )
    def test_format(self, seconds: float, expected: str):
        assert format_duration(seconds) == expected


class TestJson:
    @pytest.mark.unit
    def test_object(self):
        assert parse_json_object('{"a": 1}') == {"a": 1}

    @pytest.mark.unit
    def test_bytes_input(self):
        assert parse_json_object(b'{"a": [1, 2]}') == {"a": [1, 2]}

    @pytest.mark.unit
    @pytest.mark.parametrize("raw, value", [('"baz"', "baz"), ("3", 3), ("[1]", [1]), ("null", None)])
    def test_non_object_wrapped(self, raw: str, value):
        assert parse_json_object(raw) == {"_root": value}

    @pytest.mark.unit
    def test_invalid(self):
        with pytest.raises(json.JSONDecodeError):
            parse_json_object("{oops")


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success(self):
        rc, out, err = await run_command(["echo", "hello"])
        assert rc == 0
        assert out == "hello"
        assert err == ""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nonzero_exit(self, tmp_path: Path):
        rc, _, err = await run_command(["cp", str(tmp_path / "missing"), str(tmp_path / "x")])
        assert rc != 0
        assert err

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cwd_and_env(self, tmp_path: Path):
        rc, out, _ = await run_command(
            ["sh", "-c", "echo $TREEGEN_TEST_VAR; pwd"],
            cwd=tmp_path,
            env={"TREEGEN_TEST_VAR": "set"},
        )
        assert rc == 0
        lines = out.splitlines()
        assert lines[0] == "set"
        assert Path(lines[1]).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_program_not_found(self):
        rc, out, err = await run_command(["treegen-definitely-not-a-program"])
        assert rc == 127
        assert out == ""
        assert err


class TestPrintHelpers:
    @pytest.mark.unit
    def test_messages_go_to_console(self):
        with patch("treegen.utils.console") as console:
            print_success("done")
            print_error("bad")
            print_warning("careful")

        printed = [call.args[0] for call in console.print.call_args_list]
        assert any("done" in text for text in printed)
        assert any("bad" in text for text in printed)
        assert any("careful" in text for text in printed)

    @pytest.mark.unit
    def test_summary_table(self):
        with patch("treegen.utils.console") as console:
            print_summary_table({"Rendered": "3"}, title="Generation")

        table = console.print.call_args_list[0].args[0]
        assert table.title == "Generation"
        assert table.row_count == 1
