"""Data models for umldot: input declarations and the relation vocabulary."""

from .declarations import (
    ClassDecl,
    ClassKind,
    ConstructorDecl,
    EnumConstant,
    FieldDecl,
    MethodDecl,
    Parameter,
    SymbolTable,
    Tag,
    TypeKind,
    TypeParameter,
    TypeRef,
    Visibility,
    load_symbols,
)
from .relations import TAGGED_RELATIONS, RelationDirection, RelationKind

__all__ = [
    "ClassDecl",
    "ClassKind",
    "ConstructorDecl",
    "EnumConstant",
    "FieldDecl",
    "MethodDecl",
    "Parameter",
    "SymbolTable",
    "Tag",
    "TypeKind",
    "TypeParameter",
    "TypeRef",
    "Visibility",
    "load_symbols",
    "RelationDirection",
    "RelationKind",
    "TAGGED_RELATIONS",
]
