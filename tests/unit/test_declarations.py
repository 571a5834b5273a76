"""Unit tests for the input symbol table models."""

import json

import pytest

from umldot.models.declarations import (
    ClassDecl,
    ClassKind,
    SymbolTable,
    Tag,
    TypeKind,
    TypeRef,
    Visibility,
    load_symbols,
)


class TestTypeRef:
    """Test type reference parsing."""

    def test_declared(self):
        ref = TypeRef.parse("com.acme.Foo")
        assert ref.kind == TypeKind.DECLARED
        assert ref.is_reference
        assert not ref.is_array

    def test_primitive_and_void(self):
        assert TypeRef.parse("int").kind == TypeKind.PRIMITIVE
        assert TypeRef.parse("void").is_void
        assert not TypeRef.parse("int").is_reference

    def test_array(self):
        ref = TypeRef.parse("com.acme.Foo[][]")
        assert ref.dimensions == 2
        assert ref.is_array
        assert ref.name == "com.acme.Foo"

    def test_primitive_array_is_not_a_reference(self):
        ref = TypeRef.parse("int[]")
        assert ref.kind == TypeKind.PRIMITIVE
        assert not ref.is_reference

    def test_generic_arguments(self):
        """Test nested generic arguments are parsed recursively."""
        ref = TypeRef.parse("java.util.Map<java.lang.String, java.util.List<com.acme.Foo>>")
        assert ref.name == "java.util.Map"
        assert [a.name for a in ref.arguments] == ["java.lang.String", "java.util.List"]
        assert ref.arguments[1].arguments[0].name == "com.acme.Foo"

    def test_wildcard(self):
        assert TypeRef.parse("?").kind == TypeKind.WILDCARD

    def test_render(self):
        text = "java.util.Map<java.lang.String, com.acme.Foo>[]"
        assert TypeRef.parse(text).render() == text

    def test_string_coercion(self):
        """Test that models accept type references as plain strings."""
        decl = ClassDecl(qualified_name="a.B", superclass="a.Base<a.C>")
        assert decl.superclass.name == "a.Base"
        assert decl.superclass.arguments[0].name == "a.C"


class TestTag:
    """Test doc tag models."""

    def test_from_string(self):
        tag = Tag.model_validate("@assoc 1 owns * com.acme.B")
        assert tag.name == "assoc"
        assert tag.text == "1 owns * com.acme.B"
        assert tag.tokens() == ["1", "owns", "*", "com.acme.B"]

    def test_bare_tag(self):
        tag = Tag.model_validate("@hidden")
        assert tag.name == "hidden"
        assert tag.tokens() == []

    def test_tab_after_name(self):
        tag = Tag.model_validate("@assoc\t1 owns * a.B")
        assert tag.name == "assoc"
        assert tag.tokens() == ["1", "owns", "*", "a.B"]

    def test_blank_tag(self):
        assert Tag.model_validate("   ").name == ""


class TestClassDecl:
    """Test class declaration models."""

    def test_derived_names(self):
        decl = ClassDecl(qualified_name="com.acme.Foo")
        assert decl.package == "com.acme"
        assert decl.simple_name == "Foo"
        assert decl.enclosing_scope == "com.acme"

    def test_nested_class_scope(self):
        decl = ClassDecl(qualified_name="com.acme.Outer.Inner", package="com.acme", enclosing="com.acme.Outer")
        assert decl.simple_name == "Inner"
        assert decl.enclosing_scope == "com.acme.Outer"

    def test_anonymous_class(self):
        decl = ClassDecl(qualified_name="com.acme.Foo$1", simple_name="")
        assert decl.simple_name == ""

    def test_name_with_type_parameters(self):
        decl = ClassDecl(qualified_name="com.acme.Box", type_parameters=[{"name": "T"}, {"name": "U"}])
        assert decl.name == "com.acme.Box<T, U>"

    def test_kinds_and_modifiers(self):
        assert ClassDecl(qualified_name="a.I", kind="interface").is_interface
        assert ClassDecl(qualified_name="a.E", kind=ClassKind.ENUM).is_enum
        assert ClassDecl(qualified_name="a.A", modifiers=["abstract"]).is_abstract

    def test_find_tags(self):
        decl = ClassDecl(qualified_name="a.B", tags=["@opt a", "@view", "@opt b"])
        assert [t.text for t in decl.find_tags("opt")] == ["a", "b"]
        assert decl.has_tag("view")
        assert not decl.has_tag("hidden")


class TestVisibility:
    """Test visibility ordering."""

    def test_ordering(self):
        assert Visibility.PUBLIC.at_least(Visibility.PROTECTED)
        assert Visibility.PROTECTED.at_least(Visibility.PROTECTED)
        assert not Visibility.PRIVATE.at_least(Visibility.PACKAGE)

    def test_symbols(self):
        assert Visibility.PUBLIC.symbol == "+ "
        assert Visibility.PRIVATE.symbol == "- "

    def test_parse(self):
        assert Visibility.parse("Public") == Visibility.PUBLIC
        with pytest.raises(ValueError):
            Visibility.parse("friend")


class TestSymbolTable:
    """Test symbol table lookup and loading."""

    def test_lookup_ignores_generics(self, acme_symbols):
        assert acme_symbols.get("com.acme.A<T>").qualified_name == "com.acme.A"
        assert acme_symbols.get("com.acme.Missing") is None
        assert acme_symbols.get(None) is None

    def test_included_and_packages(self):
        table = SymbolTable(classes=[
            ClassDecl(qualified_name="a.X"),
            ClassDecl(qualified_name="b.Y"),
            ClassDecl(qualified_name="java.lang.String", included=False),
            ClassDecl(qualified_name="a.Z"),
        ])
        assert [c.qualified_name for c in table.included()] == ["a.X", "b.Y", "a.Z"]
        assert table.packages() == ["a", "b"]

    def test_views(self):
        table = SymbolTable(classes=[
            ClassDecl(qualified_name="v.Overview", tags=["@view"]),
            ClassDecl(qualified_name="v.Plain"),
        ])
        assert [v.qualified_name for v in table.views()] == ["v.Overview"]

    def test_load_symbols(self, symbols_file):
        table = load_symbols(symbols_file)
        assert [c.qualified_name for c in table.classes] == [
            "com.acme.A", "com.acme.B", "com.acme.Base", "com.acme.Named",
        ]
        assert table.get("com.acme.B").interfaces[0].name == "com.acme.Named"

    def test_load_symbols_bare_list(self, tmp_path):
        path = tmp_path / "symbols.json"
        path.write_text(json.dumps([{"qualified_name": "a.X"}]))
        assert load_symbols(path).get("a.X") is not None

    def test_load_symbols_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_symbols(tmp_path / "nope.json")

    def test_load_symbols_invalid(self, tmp_path):
        path = tmp_path / "symbols.json"
        path.write_text(json.dumps({"classes": [{"kind": "class"}]}))
        with pytest.raises(ValueError, match="Invalid symbol table"):
            load_symbols(path)
