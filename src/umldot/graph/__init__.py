"""Graph construction and dot output for umldot."""

from .builder import ClassGraph, build_relative_path
from .dot import Align, DotWriter, Font
from .relations import NodeRecord, RelationModel

__all__ = [
    "ClassGraph",
    "build_relative_path",
    "Align",
    "DotWriter",
    "Font",
    "NodeRecord",
    "RelationModel",
]
