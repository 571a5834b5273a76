"""Unit tests for the umldot CLI."""

import json
from pathlib import Path

from typer.testing import CliRunner

from umldot import __version__
from umldot.cli import app

runner = CliRunner()


def write_symbols(path: Path, classes: list[dict]) -> Path:
    path.write_text(json.dumps({"classes": classes}), encoding="utf-8")
    return path


class TestRenderCLI:
    """Test the render command."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"umldot version {__version__}" in result.stdout

    def test_render_to_directory(self, symbols_file, tmp_path):
        out_dir = tmp_path / "out"
        result = runner.invoke(app, [
            "render", str(symbols_file), "--dir", str(out_dir), "--config", str(tmp_path / "none.json")
        ])
        assert result.exit_code == 0
        assert "OK 1 diagram(s) written" in result.stdout
        assert (out_dir / "graph.dot").read_text(encoding="utf-8").startswith("#!/usr/local/bin/dot")

    def test_render_to_stdout_with_options(self, symbols_file, tmp_path):
        """Test that -O options apply and '-' writes the diagram to stdout."""
        result = runner.invoke(app, [
            "render", str(symbols_file), "--out", "-", "-O", "showOperations", "-O", "hide Named$",
            "--config", str(tmp_path / "none.json"),
        ])
        assert result.exit_code == 0
        assert "digraph G {" in result.stdout
        assert " getName()" in result.stdout
        assert "\t// com.acme.Named\n" not in result.stdout
        assert "diagram(s) written" not in result.stdout

    def test_invalid_option(self, symbols_file, tmp_path):
        result = runner.invoke(app, [
            "render", str(symbols_file), "-O", "bogus", "--config", str(tmp_path / "none.json")
        ])
        assert result.exit_code == 1
        assert "Invalid option 'bogus'" in result.stdout

    def test_missing_symbols_file(self, tmp_path):
        result = runner.invoke(app, [
            "render", str(tmp_path / "missing.json"), "--config", str(tmp_path / "none.json")
        ])
        assert result.exit_code == 1
        assert "Symbol table not found" in result.stdout

    def test_unknown_view(self, symbols_file, tmp_path):
        result = runner.invoke(app, [
            "render", str(symbols_file), "--view", "views.Missing", "--dir", str(tmp_path / "out"),
            "--config", str(tmp_path / "none.json"),
        ])
        assert result.exit_code == 1
        assert "View views.Missing not found" in result.stdout
        assert not (tmp_path / "out").exists()

    def test_find_views(self, tmp_path):
        symbols = write_symbols(tmp_path / "symbols.json", [
            {"qualified_name": "shop.Order"},
            {"qualified_name": "views.Overview", "tags": ["@view", "@opt showAttributes"]},
            {"qualified_name": "views.Detail", "tags": ["@view"]},
        ])
        result = runner.invoke(app, [
            "render", str(symbols), "--find-views", "--dir", str(tmp_path / "out"),
            "--config", str(tmp_path / "none.json"),
        ])
        assert result.exit_code == 0
        assert "OK 2 diagram(s) written" in result.stdout
        assert (tmp_path / "out" / "Overview.dot").exists()
        assert (tmp_path / "out" / "Detail.dot").exists()

    def test_warnings_and_diagnostics_file(self, tmp_path):
        """Test that malformed tags are counted and flushed when configured."""
        symbols = write_symbols(tmp_path / "symbols.json", [
            {"qualified_name": "a.X", "tags": ["@assoc owns a.Y"]},
        ])
        config = tmp_path / ".umldot.json"
        config.write_text(json.dumps({"output": {"writeDiagnostics": True}}), encoding="utf-8")
        out_dir = tmp_path / "out"
        result = runner.invoke(app, [
            "render", str(symbols), "--dir", str(out_dir), "--config", str(config)
        ])
        assert result.exit_code == 0
        assert "Warnings: 1" in result.stdout
        assert len(list((out_dir / "_diagnostics").glob("*.json"))) == 1

    def test_invalid_config(self, symbols_file, tmp_path):
        config = tmp_path / ".umldot.json"
        config.write_text("{ not json", encoding="utf-8")
        result = runner.invoke(app, ["render", str(symbols_file), "--config", str(config)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.stdout


class TestDocsCLI:
    """Test the docs command."""

    def test_docs(self, symbols_file, tmp_path):
        out_dir = tmp_path / "site"
        result = runner.invoke(app, [
            "docs", str(symbols_file), "--out-dir", str(out_dir), "--config", str(tmp_path / "none.json")
        ])
        assert result.exit_code == 0
        assert "OK 5 diagram(s) written" in result.stdout
        assert (out_dir / "com" / "acme" / "com.acme.dot").exists()
        assert (out_dir / "com" / "acme" / "Named.dot").exists()

    def test_docs_packages_only(self, symbols_file, tmp_path):
        out_dir = tmp_path / "site"
        result = runner.invoke(app, [
            "docs", str(symbols_file), "--out-dir", str(out_dir), "--no-classes",
            "--config", str(tmp_path / "none.json"),
        ])
        assert result.exit_code == 0
        assert "OK 1 diagram(s) written" in result.stdout
        assert not (out_dir / "com" / "acme" / "A.dot").exists()


class TestViewsCLI:
    """Test the views command."""

    def test_list_views(self, tmp_path):
        symbols = write_symbols(tmp_path / "symbols.json", [
            {"qualified_name": "views.Base", "modifiers": ["abstract"], "tags": ["@view", "@opt showType"]},
            {"qualified_name": "views.Overview", "superclass": "views.Base", "tags": ["@view"]},
        ])
        result = runner.invoke(app, ["views", str(symbols), "--config", str(tmp_path / "none.json")])
        assert result.exit_code == 0
        assert "Views" in result.stdout
        assert "views.Overview" in result.stdout
        assert "yes" in result.stdout

    def test_no_views(self, symbols_file, tmp_path):
        result = runner.invoke(app, ["views", str(symbols_file), "--config", str(tmp_path / "none.json")])
        assert result.exit_code == 0
        assert "No views found" in result.stdout
