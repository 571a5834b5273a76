"""Shared fixtures for umldot tests."""

import io
import json
from pathlib import Path

import pytest

from umldot.config import Options
from umldot.models.declarations import ClassDecl, SymbolTable
from umldot.pipeline import build_graph
from umldot.views.providers import GlobalView


@pytest.fixture
def acme_symbols() -> SymbolTable:
    """A small model: A holds a B, B extends Base and implements Named."""
    return SymbolTable(classes=[
        ClassDecl(
            qualified_name="com.acme.A",
            fields=[{"name": "b", "type": "com.acme.B", "visibility": "private"}],
        ),
        ClassDecl(
            qualified_name="com.acme.B",
            superclass="com.acme.Base",
            interfaces=["com.acme.Named"],
            methods=[{"name": "getName", "return_type": "java.lang.String", "visibility": "public"}],
        ),
        ClassDecl(qualified_name="com.acme.Base", modifiers=["public", "abstract"]),
        ClassDecl(qualified_name="com.acme.Named", kind="interface"),
    ])


@pytest.fixture
def render():
    """Render a symbol table with the global view and return the dot text."""

    def _render(symbols: SymbolTable, options: Options | None = None, **kwargs) -> str:
        provider = GlobalView(options or Options(), symbols)
        out = io.StringIO()
        build_graph(symbols, provider, stream=out, **kwargs)
        return out.getvalue()

    return _render


@pytest.fixture
def symbols_file(tmp_path: Path, acme_symbols: SymbolTable) -> Path:
    """The acme model written as a symbol table JSON file."""
    path = tmp_path / "symbols.json"
    path.write_text(json.dumps(acme_symbols.model_dump(mode="json")), encoding="utf-8")
    return path
