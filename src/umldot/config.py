"""Configuration management for umldot using Pydantic models."""

import json
import logging
import re
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models.declarations import TaggedElement, Visibility
from .models.relations import RelationKind

if TYPE_CHECKING:
    from .diagnostics import DiagnosticCollector

logger = logging.getLogger(__name__)

MATCH_ALL = ".*"
CONFIG_FILE_NAME = ".umldot.json"


class Shape(str, Enum):
    """Node shapes for class boxes and notes."""
    CLASS = "class"
    ACTIVECLASS = "activeclass"
    NOTE = "note"
    NODE = "node"
    COMPONENT = "component"
    PACKAGE = "package"
    COLLABORATION = "collaboration"
    USECASE = "usecase"

    @property
    def is_table(self) -> bool:
        """Class-like shapes draw their outline through the label table."""
        return self in (Shape.CLASS, Shape.ACTIVECLASS)

    def cell_border(self) -> int:
        return 1 if self.is_table else 0

    def landing_port(self) -> str:
        """Port edges attach to, so they land on the table outline."""
        return ":p" if self.is_table else ""

    def extra_column(self, n_rows: int) -> str:
        """Side column giving active classes their double border."""
        if self == Shape.ACTIVECLASS:
            return f'<td rowspan="{n_rows}"></td>'
        return ""

    @property
    def style(self) -> str:
        return _SHAPE_STYLES.get(self, "")


_SHAPE_STYLES = {
    Shape.NOTE: ", shape=note",
    Shape.NODE: ", shape=box3d",
    Shape.COMPONENT: ", shape=component",
    Shape.PACKAGE: ", shape=tab",
    Shape.COLLABORATION: ", shape=ellipse, style=dashed",
    Shape.USECASE: ", shape=ellipse",
}


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


class Options(BaseModel):
    """Display and behaviour options for one class (or one whole diagram).

    Providers clone a template and specialise it per class; a record handed
    to the graph builder is not changed afterwards.
    """

    # Naming
    show_qualified: bool = Field(alias="showQualified", default=False)
    show_qualified_generics: bool = Field(alias="showQualifiedGenerics", default=False)
    postfix_package: bool = Field(alias="postfixPackage", default=False)

    # Member sections
    show_attributes: bool = Field(alias="showAttributes", default=False)
    show_operations: bool = Field(alias="showOperations", default=False)
    show_constructors: bool = Field(alias="showConstructors", default=False)
    show_enumerations: bool = Field(alias="showEnumerations", default=False)
    show_enum_constants: bool = Field(alias="showEnumConstants", default=False)
    show_visibility: bool = Field(alias="showVisibility", default=False)
    show_type: bool = Field(alias="showType", default=False)
    show_comment: bool = Field(alias="showComment", default=False)

    # Inference
    infer_relationships: bool = Field(alias="inferRelationships", default=False)
    infer_relationship_type: RelationKind = Field(alias="inferRelationshipType", default=RelationKind.ASSOCIATION)
    infer_dependencies: bool = Field(alias="inferDependencies", default=False)
    infer_dependency_visibility: Visibility = Field(alias="inferDependencyVisibility", default=Visibility.PRIVATE)
    infer_dep_in_package: bool = Field(alias="inferDepInPackage", default=False)

    # Filtering
    hide_patterns: List[str] = Field(alias="hidePatterns", default_factory=list)
    include_patterns: List[str] = Field(alias="includePatterns", default_factory=list)
    strict_matching: bool = Field(alias="strictMatching", default=False)

    # Output
    output_file_name: str = Field(alias="outputFileName", default="graph.dot")
    output_directory: Optional[str] = Field(alias="outputDirectory", default=None)
    output_encoding: str = Field(alias="outputEncoding", default="UTF-8")
    compact: bool = False
    horizontal: bool = False
    node_sep: float = Field(alias="nodeSep", default=0.25)
    rank_sep: float = Field(alias="rankSep", default=0.5)
    bg_color: Optional[str] = Field(alias="bgColor", default=None)

    # Edges
    edge_font_name: str = Field(alias="edgeFontName", default="Helvetica")
    edge_font_color: str = Field(alias="edgeFontColor", default="black")
    edge_font_size: float = Field(alias="edgeFontSize", default=10.0)
    edge_color: str = Field(alias="edgeColor", default="black")

    # Nodes
    node_font_name: str = Field(alias="nodeFontName", default="Helvetica")
    node_font_color: str = Field(alias="nodeFontColor", default="black")
    node_font_size: float = Field(alias="nodeFontSize", default=10.0)
    node_font_abstract_italic: bool = Field(alias="nodeFontAbstractItalic", default=True)
    node_font_class_name: Optional[str] = Field(alias="nodeFontClassName", default=None)
    node_font_class_size: Optional[float] = Field(alias="nodeFontClassSize", default=None)
    node_font_class_abstract_name: Optional[str] = Field(alias="nodeFontClassAbstractName", default=None)
    node_font_package_name: Optional[str] = Field(alias="nodeFontPackageName", default=None)
    node_font_package_size: Optional[float] = Field(alias="nodeFontPackageSize", default=8.0)
    node_font_tag_name: Optional[str] = Field(alias="nodeFontTagName", default=None)
    node_font_tag_size: Optional[float] = Field(alias="nodeFontTagSize", default=None)
    node_fill_color: Optional[str] = Field(alias="nodeFillColor", default=None)
    shape: Shape = Shape.CLASS
    use_guillemot: bool = Field(alias="useGuillemot", default=True)

    # Links
    api_doc_root: Optional[str] = Field(alias="apiDocRoot", default=None)
    api_doc_map: Dict[str, str] = Field(alias="apiDocMap", default_factory=dict)

    # Views
    view_name: Optional[str] = Field(alias="viewName", default=None)
    find_views: bool = Field(alias="findViews", default=False)

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True, extra="forbid")

    @field_validator("infer_relationship_type", mode="before")
    @classmethod
    def validate_relationship_type(cls, v):
        return RelationKind.parse(v)

    @field_validator("infer_dependency_visibility", mode="before")
    @classmethod
    def validate_dependency_visibility(cls, v):
        return Visibility.parse(v)

    @field_validator("hide_patterns", "include_patterns")
    @classmethod
    def validate_patterns(cls, v):
        for pattern in v:
            try:
                _compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid regular expression '{pattern}': {e}")
        return v

    @field_validator("node_sep", "rank_sep")
    @classmethod
    def validate_spacing(cls, v):
        if v <= 0:
            raise ValueError("spacing must be > 0")
        return v

    @property
    def guil_open(self) -> str:
        return "&laquo;" if self.use_guillemot else "&lt;&lt;"

    @property
    def guil_close(self) -> str:
        return "&raquo;" if self.use_guillemot else "&gt;&gt;"

    def clone(self) -> "Options":
        return self.model_copy(deep=True)

    def _matches(self, patterns: List[str], name: str) -> bool:
        for pattern in patterns:
            if pattern == MATCH_ALL:
                return True
            m = _compile(pattern)
            if (m.fullmatch(name) if self.strict_matching else m.search(name)):
                return True
        return False

    def matches_hide_expression(self, name: str) -> bool:
        return self._matches(self.hide_patterns, name)

    def matches_include_expression(self, name: str) -> bool:
        return self._matches(self.include_patterns, name)

    def hide(self) -> None:
        """Hide everything this record is used for."""
        self.hide_patterns = [MATCH_ALL]

    def set_option(self, tokens: List[str]) -> None:
        """Apply one option in tag form: ``name``, ``!name`` or ``name value``.

        Raises:
            ValueError: If the option is unknown or its value is invalid
        """
        if not tokens:
            raise ValueError("empty option")
        name = tokens[0].lstrip("-")
        negate = name.startswith("!")
        name = name.lstrip("!")
        args = tokens[1:]

        if name == "hide":
            if negate:
                self.hide_patterns = []
            elif args:
                self.hide_patterns = self.hide_patterns + args
            else:
                self.hide()
            return
        if name == "include":
            if negate:
                self.include_patterns = []
            elif args:
                self.include_patterns = self.include_patterns + args
            else:
                raise ValueError("include expects a regular expression")
            return
        if name == "apiDocMap":
            if len(args) != 2:
                raise ValueError("apiDocMap expects a regular expression and a URL")
            self.api_doc_map = {**self.api_doc_map, args[0]: args[1]}
            return
        if name == "all":
            for field in _ALL_FLAGS:
                setattr(self, field, not negate)
            return

        field = _OPTION_NAMES.get(name)
        if field is None:
            raise ValueError(f"unknown option: {name}")
        if type(self).model_fields[field].annotation is bool:
            value = (args[0].lower() in ("true", "yes", "on", "1")) if args else not negate
            setattr(self, field, value)
        elif negate:
            if type(self).model_fields[field].default is not None:
                raise ValueError(f"option {name} cannot be negated")
            setattr(self, field, None)
        elif not args:
            raise ValueError(f"option {name} expects a value")
        else:
            setattr(self, field, " ".join(args))

    def apply_tags(self, element: TaggedElement, diagnostics: Optional["DiagnosticCollector"] = None) -> None:
        """Apply the ``@opt`` tags attached to a declaration."""
        for tag in element.find_tags("opt"):
            try:
                self.set_option(tag.tokens())
            except ValueError as e:
                message = f"Skipping @opt {tag.text!r}: {e}"
                if diagnostics is not None:
                    diagnostics.warn(message, component="Options", tag=tag.text)
                else:
                    logger.warning(message)


_OPTION_NAMES: Dict[str, str] = {}
for _name, _info in Options.model_fields.items():
    _OPTION_NAMES[_name] = _name
    if _info.alias:
        _OPTION_NAMES[_info.alias] = _name
# Short forms of the classic command-line switches
_OPTION_NAMES.update({
    "output": "output_file_name",
    "d": "output_directory",
    "qualify": "show_qualified",
    "qualifyGenerics": "show_qualified_generics",
    "attributes": "show_attributes",
    "operations": "show_operations",
    "constructors": "show_constructors",
    "enumerations": "show_enumerations",
    "enumconstants": "show_enum_constants",
    "visibility": "show_visibility",
    "types": "show_type",
    "commentname": "show_comment",
    "postfixpackage": "postfix_package",
    "inferrel": "infer_relationships",
    "inferreltype": "infer_relationship_type",
    "inferdep": "infer_dependencies",
    "inferdepvis": "infer_dependency_visibility",
    "inferdepinpackage": "infer_dep_in_package",
    "view": "view_name",
    "views": "find_views",
})

_ALL_FLAGS = (
    "show_attributes",
    "show_operations",
    "show_visibility",
    "show_type",
    "show_enumerations",
    "show_enum_constants",
)


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"

    @property
    def level(self) -> int:
        return {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]


class OutputConfig(BaseModel):
    """Output configuration section."""
    dir: str = "."
    diagnostics: bool = Field(alias="writeDiagnostics", default=False)

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.INFO


class UmlConfig(BaseModel):
    """Complete umldot configuration model."""
    options: Options = Field(default_factory=Options)
    note_options: Optional[Options] = Field(alias="noteOptions", default=None)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


def load_config(config_path: str | Path | None = None) -> UmlConfig:
    """Read the umldot settings file.

    Without an explicit path the nearest ``.umldot.json`` at or above the
    working directory is used. A missing file yields the built-in settings.

    Raises:
        ValueError: If the file is not JSON or does not describe valid settings
    """
    path = Path(config_path) if config_path is not None else find_config_file()
    if path is None or not path.exists():
        return create_default_config()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {path}: {e}")
    except OSError as e:
        raise ValueError(f"Failed to load config from {path}: {e}")
    try:
        return UmlConfig(**data)
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Failed to load config from {path}: {e}")


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest ``.umldot.json`` in ``start_dir`` (default: cwd) or its ancestors."""
    start = Path(start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate
    return None


def create_default_config() -> UmlConfig:
    return UmlConfig()
