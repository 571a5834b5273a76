"""umldot - UML class diagrams as Graphviz dot text.

umldot turns a symbol table of annotated class, interface and enum
declarations into a dot graph with table-based class boxes, explicit and
inferred relations, and per-class configuration resolved through views.
"""

__version__ = "0.3.0"
__author__ = "umldot contributors"
__description__ = "UML class diagram generator producing Graphviz dot"

from umldot.config import Options, UmlConfig

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "Options",
    "UmlConfig",
]
