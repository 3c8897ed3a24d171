"""
Tests for the config writer — inserting recommended scripts into melos.yaml.
"""

import os
import textwrap
from pathlib import Path

import pytest

from melos_sidebar.core.config.loader import parse_scripts
from melos_sidebar.core.models.script import RecommendedScript
from melos_sidebar.core.services import config_writer
from melos_sidebar.core.services.config_writer import (
    entry_exists,
    entry_indent,
    find_script_line,
    insert_scripts,
    locate_section,
    render_entry,
    section_bounds,
    splice_entries,
)
from melos_sidebar.core.services.recommendations import get_recommendation, resolve

LINT = get_recommendation("lint")
ANALYZE = get_recommendation("analyze")
FORMAT = get_recommendation("format")


class TestTextOperations:
    def test_locate_section(self):
        lines = ["name: demo", "", "scripts:", "  a: echo a"]
        assert locate_section(lines) == 2

    def test_locate_section_with_comment(self):
        assert locate_section(["scripts:   # project scripts"]) == 0

    def test_locate_section_ignores_nested_key(self):
        lines = ["command:", "  scripts:", "    foo: bar"]
        assert locate_section(lines) is None

    def test_locate_section_ignores_inline_value(self):
        assert locate_section(["scripts: {}"]) is None

    def test_locate_section_crlf(self):
        assert locate_section(["name: x\r", "scripts:\r"]) == 1

    def test_entry_exists(self):
        lines = ["scripts:", "  lint:", "    run: melos run analyze"]
        assert entry_exists(lines, "lint")
        assert not entry_exists(lines, "analyze")

    def test_entry_exists_bare_string_form(self):
        assert entry_exists(["scripts:", "  analyze: dart analyze ."], "analyze")

    def test_entry_exists_prefix_is_not_a_match(self):
        lines = ["scripts:", "  test:select:", "    run: flutter test"]
        assert entry_exists(lines, "test:select")
        assert not entry_exists(lines, "test")

    def test_entry_exists_only_in_scripts_section(self):
        lines = ["command:", "  format:", "    x: y", "scripts:", "  a: echo a", "ide:", "  lint: x"]
        assert entry_exists(lines, "a")
        assert not entry_exists(lines, "format")
        assert not entry_exists(lines, "lint")

    def test_entry_exists_ignores_nested_fields(self):
        lines = ["scripts:", "  build:", "    run: melos run build"]
        assert not entry_exists(lines, "run")

    def test_entry_exists_without_section(self):
        assert not entry_exists(["format: dart format ."], "format")

    def test_section_bounds(self):
        lines = ["name: x", "scripts:", "  a: echo a", "", "# note", "  b: echo b", "ide:", "  c: 1"]
        assert section_bounds(lines) == (1, 6)
        assert section_bounds(["name: x"]) is None

    def test_entry_indent(self):
        assert entry_indent(["scripts:", "    # four", "    a: echo a"]) == "    "
        assert entry_indent(["scripts:", "", "name: x"]) == "  "
        assert entry_indent(["name: x"]) == "  "

    def test_render_entry(self):
        assert render_entry(LINT) == [
            "  lint:",
            "    run: melos run analyze",
            "    description: Run dart analyze in all packages",
        ]

    def test_render_entry_indent(self):
        assert render_entry(FORMAT, "    ") == [
            "    format:",
            "        run: dart format .",
            "        description: Format all code",
        ]


class TestSplice:
    def test_inserts_after_header(self):
        lines = ["name: demo", "scripts:", "  a: echo a", ""]
        out, result = splice_entries(lines, [FORMAT])
        assert out == [
            "name: demo",
            "scripts:",
            "  format:",
            "    run: dart format .",
            "    description: Format all code",
            "  a: echo a",
            "",
        ]
        assert result.added == ["format"]
        assert result.created_section is False

    def test_appends_section_before_trailing_newline(self):
        out, result = splice_entries(["name: demo", ""], [FORMAT])
        assert out[:2] == ["name: demo", "scripts:"]
        assert out[-1] == ""
        assert result.created_section is True

    def test_appends_section_without_trailing_newline(self):
        out, _ = splice_entries(["name: demo"], [FORMAT])
        assert out == ["name: demo", "scripts:", *render_entry(FORMAT)]

    def test_nothing_to_add_returns_input(self):
        lines = ["scripts:", "  format: dart format ."]
        out, result = splice_entries(lines, [FORMAT])
        assert out is lines
        assert result.added == []
        assert result.skipped == ["format"]

    def test_follows_existing_indentation(self):
        lines = ["scripts:", "    build: echo build", ""]
        out, _ = splice_entries(lines, [FORMAT])
        assert out == ["scripts:", *render_entry(FORMAT, "    "), "    build: echo build", ""]


class TestInsertScripts:
    def test_lint_example(self, workspace: Path, write_melos):
        path = write_melos("""\
            name: demo
            scripts:
              existing: echo hi
        """)
        result = insert_scripts(workspace, resolve("lint", []))

        assert result.ok
        assert result.added == ["lint", "analyze"]
        lines = path.read_text().split("\n")
        assert lines[:2] == ["name: demo", "scripts:"]
        assert lines[2:8] == render_entry(LINT) + render_entry(ANALYZE)
        assert lines[8] == "  existing: echo hi"

    def test_no_header_appends_section(self, workspace: Path, write_melos):
        path = write_melos("""\
            name: demo
            packages:
              - packages/**
        """)
        result = insert_scripts(workspace, [FORMAT])

        assert result.ok
        assert result.created_section
        assert path.read_text() == textwrap.dedent("""\
            name: demo
            packages:
              - packages/**
            scripts:
              format:
                run: dart format .
                description: Format all code
        """)

    def test_result_parses(self, workspace: Path, write_melos):
        write_melos("""\
            name: demo
            # scripts live here
            scripts:
              build:
                run: melos run build
                description: Build everything
            command:
              bootstrap:
                usePubspecOverrides: true
        """)
        insert_scripts(workspace, resolve("test", []))
        names = [r.name for r in parse_scripts(workspace)]
        assert set(names) == {"build", "test", "test:select"}

    def test_idempotent(self, workspace: Path, write_melos):
        path = write_melos("name: demo\nscripts:\n")
        entries = resolve("lint", [])

        first = insert_scripts(workspace, entries)
        after_first = path.read_text()
        second = insert_scripts(workspace, entries)

        assert first.added == ["lint", "analyze"]
        assert second.ok
        assert second.added == []
        assert second.skipped == ["lint", "analyze"]
        assert not second.changed
        assert path.read_text() == after_first

    def test_preserves_unrelated_content(self, workspace: Path, write_melos):
        original = textwrap.dedent("""\
            # Melos workspace
            name:    demo   # odd spacing kept
            packages:
              - apps/*
              - packages/*

            scripts:   # ours
              z-last: echo z

            ide:
              intellij: false
        """)
        path = write_melos(original)
        insert_scripts(workspace, [FORMAT])

        text = path.read_text()
        expected = original.replace(
            "scripts:   # ours\n",
            "scripts:   # ours\n" + "\n".join(render_entry(FORMAT)) + "\n",
        )
        assert text == expected

    def test_four_space_indentation_keeps_existing(self, workspace: Path, write_melos):
        write_melos("scripts:\n    build: echo build\n")
        result = insert_scripts(workspace, [FORMAT])

        assert result.added == ["format"]
        names = [r.name for r in parse_scripts(workspace)]
        assert names == ["format", "build"]

    def test_utf8_bom(self, workspace: Path):
        path = workspace / "melos.yaml"
        path.write_text("\ufeffscripts:\n  build: echo build\n", encoding="utf-8")
        result = insert_scripts(workspace, [FORMAT])

        assert result.ok
        assert not result.created_section
        text = path.read_text(encoding="utf-8")
        assert text.startswith("\ufeffscripts:\n  format:\n")
        assert text.count("scripts:") == 1
        assert [r.name for r in parse_scripts(workspace)] == ["format", "build"]

    def test_missing_file(self, workspace: Path):
        result = insert_scripts(workspace, [FORMAT])
        assert not result.ok
        assert result.error == "melos.yaml not found"
        assert not (workspace / "melos.yaml").exists()

    def test_write_failure_keeps_file(self, workspace: Path, write_melos, monkeypatch):
        path = write_melos("name: demo\nscripts:\n")

        def _boom(path, content):
            raise OSError("disk full")

        monkeypatch.setattr(config_writer, "_atomic_write", _boom)
        result = insert_scripts(workspace, [FORMAT])

        assert not result.ok
        assert "disk full" in (result.error or "")
        assert path.read_text() == "name: demo\nscripts:\n"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX file modes")
    def test_keeps_file_mode(self, workspace: Path, write_melos):
        path = write_melos("scripts:\n")
        path.chmod(0o644)
        insert_scripts(workspace, [FORMAT])
        assert path.stat().st_mode & 0o777 == 0o644

    def test_no_temp_files_left(self, workspace: Path, write_melos):
        write_melos("scripts:\n")
        insert_scripts(workspace, [FORMAT])
        assert sorted(p.name for p in workspace.iterdir()) == ["melos.yaml"]


class TestFindScriptLine:
    def test_finds_line(self, workspace: Path, write_melos):
        write_melos("""\
            name: demo
            scripts:
              a: echo a
              b:
                run: echo b
        """)
        assert find_script_line(workspace, "b") == 3

    def test_missing(self, workspace: Path, write_melos):
        assert find_script_line(workspace, "a") is None
        write_melos("scripts:\n")
        assert find_script_line(workspace, "a") is None

    def test_ignores_keys_outside_section(self, workspace: Path, write_melos):
        write_melos("""\
            command:
              bootstrap:
                runPubGetInParallel: false
            scripts:
              bootstrap: melos bootstrap
        """)
        assert find_script_line(workspace, "bootstrap") == 4

    def test_utf8_bom(self, workspace: Path):
        (workspace / "melos.yaml").write_text("\ufeffscripts:\n  a: echo a\n", encoding="utf-8")
        assert find_script_line(workspace, "a") == 1
