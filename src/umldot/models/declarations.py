"""Symbol table handed to umldot by the upstream source parser.

The parser is an external collaborator: it reads sources and doc comments
and produces these declarations. umldot only consumes them.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from ..text import split_package, strip_generics, tokenize

PRIMITIVES = frozenset({"boolean", "byte", "char", "short", "int", "long", "float", "double"})


class Visibility(str, Enum):
    """Member visibility, ordered from least to most visible."""
    PRIVATE = "private"
    PACKAGE = "package"
    PROTECTED = "protected"
    PUBLIC = "public"

    @property
    def rank(self) -> int:
        return _VISIBILITY_ORDER.index(self)

    @property
    def symbol(self) -> str:
        """UML adornment printed in front of a member."""
        return _VISIBILITY_SYMBOLS[self]

    def at_least(self, other: "Visibility") -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: "str | Visibility") -> "Visibility":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown visibility: {value}")


_VISIBILITY_ORDER = [Visibility.PRIVATE, Visibility.PACKAGE, Visibility.PROTECTED, Visibility.PUBLIC]
_VISIBILITY_SYMBOLS = {
    Visibility.PRIVATE: "- ",
    Visibility.PACKAGE: "~ ",
    Visibility.PROTECTED: "# ",
    Visibility.PUBLIC: "+ ",
}


class TypeKind(str, Enum):
    """Kinds of type references found in member signatures."""
    DECLARED = "declared"
    PRIMITIVE = "primitive"
    TYPE_VARIABLE = "type_variable"
    WILDCARD = "wildcard"
    VOID = "void"


def _split_arguments(text: str) -> List[str]:
    parts, depth, start = [], 0, 0
    for i, c in enumerate(text):
        if c == "<":
            depth += 1
        elif c == ">":
            depth -= 1
        elif c == "," and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return [p.strip() for p in parts if p.strip()]


class TypeRef(BaseModel):
    """A reference to a type as written in a signature."""

    name: str = Field(description="Qualified name, primitive name or type variable name")
    kind: TypeKind = Field(default=TypeKind.DECLARED, description="What the name refers to")
    arguments: List["TypeRef"] = Field(default_factory=list, description="Generic arguments")
    dimensions: int = Field(default=0, description="Array dimensions")

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return cls.parse(data).model_dump()
        return data

    @classmethod
    def parse(cls, text: str) -> "TypeRef":
        """Parse ``java.util.Map<K, com.acme.V>[]`` style text.

        Single upper-case letters cannot be told apart from classes here;
        callers that need type variables pass an explicit ``kind``.
        """
        text = text.strip()
        dimensions = 0
        while text.endswith("[]"):
            dimensions += 1
            text = text[:-2].rstrip()
        arguments = []
        start = text.find("<")
        if start >= 0 and text.endswith(">"):
            arguments = [cls.parse(a) for a in _split_arguments(text[start + 1:-1])]
            text = text[:start]
        if text == "void" and not dimensions:
            kind = TypeKind.VOID
        elif text in PRIMITIVES:
            kind = TypeKind.PRIMITIVE
        elif text.startswith("?"):
            kind = TypeKind.WILDCARD
        else:
            kind = TypeKind.DECLARED
        return cls(name=text, kind=kind, arguments=arguments, dimensions=dimensions)

    @property
    def is_array(self) -> bool:
        return self.dimensions > 0

    @property
    def is_void(self) -> bool:
        return self.kind == TypeKind.VOID and not self.is_array

    @property
    def is_reference(self) -> bool:
        """True when the element type names a class (no primitive, wildcard or variable)."""
        return self.kind == TypeKind.DECLARED

    def render(self) -> str:
        """Source-like text of the reference, with arguments and array brackets."""
        text = self.name
        if self.arguments:
            text += "<" + ", ".join(a.render() for a in self.arguments) + ">"
        return text + "[]" * self.dimensions


class Tag(BaseModel):
    """A block tag from a doc comment, e.g. ``@assoc 1 owns * com.acme.B``."""

    name: str = Field(description="Tag name without the leading @")
    text: str = Field(default="", description="Raw tag body")

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            parts = data.strip().split(None, 1)
            head = parts[0] if parts else ""
            body = parts[1] if len(parts) > 1 else ""
            return {"name": head.lstrip("@"), "text": body.strip()}
        return data

    def tokens(self) -> List[str]:
        return tokenize(self.text)


class TaggedElement(BaseModel):
    """Anything that can carry doc tags."""

    tags: List[Tag] = Field(default_factory=list, description="Doc comment block tags in source order")
    comment: str = Field(default="", description="Doc comment body text")

    def find_tags(self, name: str) -> List[Tag]:
        return [t for t in self.tags if t.name == name]

    def has_tag(self, name: str) -> bool:
        return any(t.name == name for t in self.tags)


class Member(TaggedElement):
    name: str
    visibility: Visibility = Visibility.PACKAGE
    modifiers: List[str] = Field(default_factory=list)

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers


class FieldDecl(Member):
    type: TypeRef


class Parameter(BaseModel):
    name: str
    type: TypeRef


class ConstructorDecl(Member):
    parameters: List[Parameter] = Field(default_factory=list)


class MethodDecl(ConstructorDecl):
    return_type: TypeRef = Field(default_factory=lambda: TypeRef(name="void", kind=TypeKind.VOID))


class EnumConstant(TaggedElement):
    name: str


class TypeParameter(BaseModel):
    name: str
    bounds: List[TypeRef] = Field(default_factory=list)


class ClassKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"


class ClassDecl(TaggedElement):
    """A class, interface or enum declaration."""

    qualified_name: str = Field(description="Globally unique class identity")
    simple_name: Optional[str] = Field(default=None, description="Unqualified name; empty for anonymous classes")
    kind: ClassKind = ClassKind.CLASS
    modifiers: List[str] = Field(default_factory=list)
    package: Optional[str] = Field(default=None, description="Enclosing package")
    enclosing: Optional[str] = Field(default=None, description="Enclosing class for nested declarations")
    superclass: Optional[TypeRef] = None
    interfaces: List[TypeRef] = Field(default_factory=list)
    fields: List[FieldDecl] = Field(default_factory=list)
    constructors: List[ConstructorDecl] = Field(default_factory=list)
    methods: List[MethodDecl] = Field(default_factory=list)
    enum_constants: List[EnumConstant] = Field(default_factory=list)
    type_parameters: List[TypeParameter] = Field(default_factory=list)
    included: bool = Field(default=True, description="Part of the documented sources rather than a library")

    @model_validator(mode="after")
    def _derive_names(self) -> "ClassDecl":
        package, simple = split_package(self.qualified_name)
        if self.package is None:
            self.package = package
        if self.simple_name is None:
            self.simple_name = strip_generics(simple).rsplit("$", 1)[-1]
        return self

    @property
    def name(self) -> str:
        """Qualified name followed by the type parameter list, if any."""
        if not self.type_parameters:
            return self.qualified_name
        return self.qualified_name + "<" + ", ".join(p.name for p in self.type_parameters) + ">"

    @property
    def enclosing_scope(self) -> str:
        return self.enclosing or self.package or ""

    @property
    def is_interface(self) -> bool:
        return self.kind == ClassKind.INTERFACE

    @property
    def is_enum(self) -> bool:
        return self.kind == ClassKind.ENUM

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers


class SymbolTable(BaseModel):
    """Ordered collection of declarations with lookup by qualified name."""

    classes: List[ClassDecl] = Field(default_factory=list)

    _index: Dict[str, ClassDecl] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        for decl in self.classes:
            self._index.setdefault(strip_generics(decl.qualified_name), decl)

    def get(self, name: Optional[str]) -> Optional[ClassDecl]:
        """Resolve a class name; generic arguments are ignored."""
        if not name:
            return None
        return self._index.get(strip_generics(name))

    def included(self) -> List[ClassDecl]:
        """Declarations that are part of the documented sources, in input order."""
        return [c for c in self.classes if c.included]

    def packages(self) -> List[str]:
        seen: Dict[str, None] = {}
        for decl in self.included():
            seen.setdefault(decl.package or "", None)
        return list(seen)

    def views(self) -> List[ClassDecl]:
        return [c for c in self.included() if c.has_tag("view")]


def load_symbols(path: str | Path) -> SymbolTable:
    """Load a symbol table from its JSON form.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the document is not a valid symbol table
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Symbol table not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in symbol table {path}: {e}")
    try:
        if isinstance(data, list):
            data = {"classes": data}
        return SymbolTable(**data)
    except Exception as e:
        raise ValueError(f"Invalid symbol table {path}: {e}")
