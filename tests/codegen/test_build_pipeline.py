"""Tests for building a whole program."""

from pathlib import Path

import pytest

from webio_macros.codegen import build_program, write_build
from webio_macros.codegen.pipeline import GENERATED_HEADER, derive_module_name
from webio_macros.config import MacroSettings
from webio_macros.errors import DuplicateEntryPointError, UnknownPlaceholderError
from webio_macros.loader import SourceFile, load_sources

ENTRY = """\
from webio_macros import webio_main

@webio_main
async def main():
    pass
"""


def source(relative: str, text: str) -> SourceFile:
    return SourceFile(path=Path(relative), relative=Path(relative), text=text)


class TestDeriveModuleName:
    def test_module(self):
        assert derive_module_name(Path("pkg/app.py")) == "pkg.app"

    def test_package(self):
        assert derive_module_name(Path("pkg/__init__.py")) == "pkg"

    def test_top_level(self):
        assert derive_module_name(Path("app.py")) == "app"


class TestBuildProgram:
    def test_duplicate_entry_across_modules(self):
        """Two annotated entry points in one program fail the build."""
        report = build_program([source("a.py", ENTRY), source("b.py", ENTRY)])
        assert not report.ok
        assert len(report.diagnostics) == 1
        diagnostic = report.diagnostics[0]
        assert isinstance(diagnostic, DuplicateEntryPointError)
        assert diagnostic.path == "b.py"
        assert "a.main" in diagnostic.message

    def test_collects_every_diagnostic(self):
        broken = 'from webio_macros import replace\nX = replace("{{nope}}")\n'
        report = build_program([source("a.py", broken), source("b.py", broken)])
        assert [type(d) for d in report.diagnostics] == [UnknownPlaceholderError, UnknownPlaceholderError]
        assert [d.path for d in report.diagnostics] == ["a.py", "b.py"]

    def test_unchanged_modules_pass_through(self):
        text = "VALUE = 1  # untouched\n"
        report = build_program([source("plain.py", text)])
        assert report.ok
        assert report.results[0].output == text
        assert report.changed == []

    def test_changed_modules_get_header(self):
        report = build_program([source("pkg/app.py", ENTRY)])
        result = report.results[0]
        assert result.output.startswith(GENERATED_HEADER.format(path="pkg/app.py"))
        assert report.entry_point.qualified_name == "pkg.app.main"

    def test_syntax_error_is_a_diagnostic(self):
        report = build_program([source("bad.py", "def broken(:\n")])
        assert report.diagnostics[0].code == "SYNTAX_ERROR"
        assert report.diagnostics[0].line == 1

    def test_settings_are_applied(self):
        report = build_program([source("app.py", ENTRY)], MacroSettings(entry_name="start"))
        assert "def start():" in report.results[0].output


class TestWriteBuild:
    def test_writes_tree_and_support_files(self, write_tree, tmp_path):
        src = write_tree(
            {
                "app/__init__.py": "",
                "app/main.py": ENTRY,
                "app/pages.py": 'from webio_macros import html\nPAGE = html("<p>{{x}}</p>", x="hi")\n',
                "app/templates/base.html": "<html>{{body}}</html>",
            }
        )
        report = build_program(load_sources(src))
        out = tmp_path / "build"
        written = write_build(report, src, out)

        assert (out / "app/templates/base.html").read_text() == "<html>{{body}}</html>"
        assert "PAGE = '<p>hi</p>'" in (out / "app/pages.py").read_text()
        assert "def main():" in (out / "app/main.py").read_text()
        assert (out / "app/__init__.py").read_text() == ""
        assert len(written) == 4

    def test_refuses_failed_build(self, tmp_path):
        report = build_program([source("a.py", ENTRY), source("b.py", ENTRY)])
        with pytest.raises(ValueError):
            write_build(report, tmp_path, tmp_path / "out")
        assert not (tmp_path / "out").exists()

    def test_excluded_modules_are_copied_verbatim(self, write_tree, tmp_path):
        legacy = 'from webio_macros import replace\nX = replace("{{a}}", a=1)  # kept\n'
        src = write_tree({"pkg/__init__.py": "", "pkg/app.py": "from pkg import legacy\n", "pkg/legacy.py": legacy})
        report = build_program(load_sources(src, exclude=["**/legacy.py"]))
        out = tmp_path / "build"
        write_build(report, src, out)

        assert (out / "pkg/legacy.py").read_text() == legacy
        assert (out / "pkg/app.py").exists()
