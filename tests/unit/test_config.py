"""Unit tests for configuration management."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from umldot.config import (
    MATCH_ALL,
    LogLevel,
    Options,
    Shape,
    UmlConfig,
    create_default_config,
    find_config_file,
    load_config,
)
from umldot.diagnostics import DiagnosticCollector
from umldot.models.declarations import ClassDecl, Visibility
from umldot.models.relations import RelationKind


class TestOptions:
    """Test the Options model."""

    def test_defaults(self):
        """Test default option values."""
        opt = Options()
        assert opt.show_qualified is False
        assert opt.infer_relationship_type == RelationKind.ASSOCIATION
        assert opt.infer_dependency_visibility == Visibility.PRIVATE
        assert opt.output_file_name == "graph.dot"
        assert opt.output_encoding == "UTF-8"
        assert opt.shape == Shape.CLASS
        assert opt.hide_patterns == []

    def test_camel_case_aliases(self):
        """Test options built from camelCase keys."""
        opt = Options(**{"showAttributes": True, "inferRelationshipType": "composed", "nodeFillColor": "red"})
        assert opt.show_attributes is True
        assert opt.infer_relationship_type == RelationKind.COMPOSITION
        assert opt.node_fill_color == "red"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            Options(**{"showEverything": True})

    def test_invalid_hide_pattern_rejected(self):
        with pytest.raises(ValueError, match="invalid regular expression"):
            Options(hide_patterns=["("])

    def test_spacing_must_be_positive(self):
        with pytest.raises(ValueError):
            Options(node_sep=0)

    def test_clone_is_independent(self):
        """Test that clones do not share mutable state."""
        opt = Options(hide_patterns=["a"])
        copy = opt.clone()
        copy.hide_patterns.append("b")
        copy.show_attributes = True
        assert opt.hide_patterns == ["a"]
        assert opt.show_attributes is False

    def test_guillemets(self):
        assert Options().guil_open == "&laquo;"
        assert Options(use_guillemot=False).guil_close == "&gt;&gt;"


class TestHideAndInclude:
    """Test hide and include pattern matching."""

    def test_hide_all(self):
        opt = Options()
        opt.hide()
        assert opt.hide_patterns == [MATCH_ALL]
        assert opt.matches_hide_expression("anything.At.All")

    def test_partial_match_by_default(self):
        opt = Options(hide_patterns=["Test"])
        assert opt.matches_hide_expression("com.acme.FooTest")

    def test_strict_matching(self):
        opt = Options(hide_patterns=["Test"], strict_matching=True)
        assert not opt.matches_hide_expression("com.acme.FooTest")
        assert opt.matches_hide_expression("Test")

    def test_include(self):
        opt = Options(include_patterns=["com\\.acme\\..*"])
        assert opt.matches_include_expression("com.acme.Foo")
        assert not opt.matches_include_expression("org.other.Foo")


class TestSetOption:
    """Test @opt style overrides."""

    def test_boolean_flag(self):
        opt = Options()
        opt.set_option(["showAttributes"])
        assert opt.show_attributes is True

    def test_negated_flag(self):
        opt = Options(show_attributes=True)
        opt.set_option(["!showAttributes"])
        assert opt.show_attributes is False

    def test_dash_prefix_and_short_name(self):
        opt = Options()
        opt.set_option(["-attributes"])
        assert opt.show_attributes is True

    def test_value_option(self):
        opt = Options()
        opt.set_option(["nodeFillColor", "yellow"])
        assert opt.node_fill_color == "yellow"

    def test_negated_optional_value_cleared(self):
        opt = Options(node_fill_color="yellow")
        opt.set_option(["!nodeFillColor"])
        assert opt.node_fill_color is None

    def test_numeric_value(self):
        opt = Options()
        opt.set_option(["nodeSep", "1.5"])
        assert opt.node_sep == 1.5

    def test_relation_type(self):
        opt = Options()
        opt.set_option(["inferreltype", "navassoc"])
        assert opt.infer_relationship_type == RelationKind.NAV_ASSOCIATION

    def test_hide_variants(self):
        """Test hide with patterns, without patterns and negated."""
        opt = Options()
        opt.set_option(["hide", "Foo", "Bar"])
        assert opt.hide_patterns == ["Foo", "Bar"]
        opt.set_option(["hide"])
        assert opt.hide_patterns == [MATCH_ALL]
        opt.set_option(["!hide"])
        assert opt.hide_patterns == []

    def test_include_requires_pattern(self):
        with pytest.raises(ValueError):
            Options().set_option(["include"])

    def test_all_flags(self):
        opt = Options()
        opt.set_option(["all"])
        assert opt.show_attributes and opt.show_operations and opt.show_visibility
        assert opt.show_type and opt.show_enumerations and opt.show_enum_constants

    def test_api_doc_map(self):
        opt = Options()
        opt.set_option(["apiDocMap", "java.*", "https://docs.example.org/api/"])
        assert opt.api_doc_map == {"java.*": "https://docs.example.org/api/"}

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="unknown option"):
            Options().set_option(["frobnicate"])

    def test_missing_value(self):
        with pytest.raises(ValueError, match="expects a value"):
            Options().set_option(["nodeFillColor"])

    def test_invalid_value(self):
        with pytest.raises(ValueError):
            Options().set_option(["shape", "hexagon"])

    def test_apply_tags(self):
        """Test that @opt tags of a declaration are applied in order."""
        decl = ClassDecl(qualified_name="a.B", tags=["@opt showAttributes", "@opt nodeFillColor pink"])
        opt = Options()
        opt.apply_tags(decl)
        assert opt.show_attributes is True
        assert opt.node_fill_color == "pink"

    def test_apply_tags_reports_bad_option(self):
        """Test that a bad @opt is skipped and reported."""
        decl = ClassDecl(qualified_name="a.B", tags=["@opt bogus", "@opt showType"])
        diagnostics = DiagnosticCollector()
        opt = Options()
        opt.apply_tags(decl, diagnostics)
        assert opt.show_type is True
        assert diagnostics.counts()["warning"] == 1
        assert diagnostics.diagnostics[0].context["component"] == "Options"


class TestUmlConfig:
    """Test complete UmlConfig model and loading."""

    def test_default_config(self):
        config = create_default_config()
        assert config.output.dir == "."
        assert config.logging.level == LogLevel.INFO
        assert config.note_options is None

    def test_config_from_dict(self):
        """Test config creation from dictionary."""
        config = UmlConfig(**{
            "options": {"showAttributes": True, "hidePatterns": ["Test$"]},
            "noteOptions": {"nodeFillColor": "lightyellow"},
            "output": {"dir": "diagrams", "writeDiagnostics": True},
            "logging": {"level": "debug"},
        })
        assert config.options.show_attributes is True
        assert config.note_options.node_fill_color == "lightyellow"
        assert config.output.diagnostics is True
        assert config.logging.level.level == 10

    def test_load_config_file(self):
        with TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / ".umldot.json"
            config_file.write_text(json.dumps({"options": {"horizontal": True}}))
            config = load_config(config_file)
            assert config.options.horizontal is True

    def test_load_config_invalid_json(self):
        with TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / ".umldot.json"
            config_file.write_text("{ not json")
            with pytest.raises(ValueError, match="Invalid JSON"):
                load_config(config_file)

    def test_load_config_invalid_values(self):
        with TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / ".umldot.json"
            config_file.write_text(json.dumps({"options": {"nodeSep": -1}}))
            with pytest.raises(ValueError, match="Failed to load config"):
                load_config(config_file)

    def test_load_config_non_object_document(self):
        with TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / ".umldot.json"
            config_file.write_text("[1, 2]")
            with pytest.raises(ValueError, match="Failed to load config"):
                load_config(config_file)

    def test_load_config_missing_file_gives_defaults(self):
        with TemporaryDirectory() as temp_dir:
            config = load_config(Path(temp_dir) / "missing.json")
            assert config == create_default_config()

    def test_find_config_file_in_parent(self):
        """Test config discovery walking up the directory tree."""
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            (root / ".umldot.json").write_text("{}")
            nested = root / "a" / "b"
            nested.mkdir(parents=True)
            assert find_config_file(nested) == (root / ".umldot.json").resolve()
