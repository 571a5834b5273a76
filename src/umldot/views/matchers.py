"""Class matchers: predicates over class names used to scope views.

Matchers that need a declaration fail closed: a name the symbol table cannot
resolve never matches. Supertype traversals track visited names, so cyclic
or dangling hierarchies terminate.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ..config import Options
from ..models.declarations import ClassDecl, SymbolTable
from ..models.relations import TAGGED_RELATIONS
from ..text import strip_generics

logger = logging.getLogger(__name__)


class ClassMatcher(ABC):
    """Base class for class matchers."""

    @abstractmethod
    def matches(self, name: str) -> bool:
        """True if the class with this qualified name is selected."""
        pass


class PatternMatcher(ClassMatcher):
    """Qualified name fully matches a regular expression."""

    def __init__(self, pattern: str | re.Pattern):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def matches(self, name: str) -> bool:
        return self.pattern.fullmatch(strip_generics(name)) is not None


class PackageMatcher(ClassMatcher):
    """Class is declared directly in a given package."""

    def __init__(self, symbols: SymbolTable, package: str):
        self.symbols = symbols
        self.package = package

    def matches(self, name: str) -> bool:
        decl = self.symbols.get(name)
        return decl is not None and decl.package == self.package


class SubclassMatcher(ClassMatcher):
    """Class name, or the name of any class up its superclass chain, matches."""

    def __init__(self, symbols: SymbolTable, pattern: str | re.Pattern):
        self.symbols = symbols
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def matches(self, name: str) -> bool:
        if self.symbols.get(name) is None:
            return False
        visited = set()
        current: Optional[str] = strip_generics(name)
        while current and current not in visited:
            visited.add(current)
            if self.pattern.fullmatch(current):
                return True
            decl = self.symbols.get(current)
            if decl is None or decl.superclass is None:
                return False
            current = strip_generics(decl.superclass.name)
        return False


class InterfaceMatcher(ClassMatcher):
    """Class is, implements or inherits an interface whose name matches."""

    def __init__(self, symbols: SymbolTable, pattern: str | re.Pattern):
        self.symbols = symbols
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def matches(self, name: str) -> bool:
        if self.symbols.get(name) is None:
            return False
        visited = set()
        # (name, referenced as an interface) pairs; unresolved interface
        # references can still match by name
        stack = [(strip_generics(name), False)]
        while stack:
            current, interface_ref = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            decl = self.symbols.get(current)
            is_interface = decl.is_interface if decl is not None else interface_ref
            if is_interface and self.pattern.fullmatch(current):
                return True
            if decl is None:
                continue
            stack.extend((strip_generics(i.name), True) for i in decl.interfaces)
            if decl.superclass is not None:
                stack.append((strip_generics(decl.superclass.name), False))
        return False


def referenced_classes(decl: ClassDecl, options: Options) -> set[str]:
    """Names a declaration points at through supertypes, relation tags and,
    when inference is on, member types."""
    refs = set()
    if decl.superclass is not None:
        refs.add(strip_generics(decl.superclass.name))
    refs.update(strip_generics(i.name) for i in decl.interfaces)
    for tag in decl.find_tags("extends"):
        refs.update(strip_generics(t) for t in tag.tokens())
    for kind in TAGGED_RELATIONS:
        for tag in decl.find_tags(kind.tag):
            tokens = tag.tokens()
            if len(tokens) == 4:
                refs.add(strip_generics(tokens[3]))
    if options.infer_relationships:
        refs.update(strip_generics(f.type.name) for f in decl.fields if f.type.is_reference and not f.is_static)
    if options.infer_dependencies:
        for method in decl.methods:
            if method.return_type.is_reference:
                refs.add(strip_generics(method.return_type.name))
            refs.update(strip_generics(p.type.name) for p in method.parameters if p.type.is_reference)
    refs.discard(strip_generics(decl.qualified_name))
    return refs


class ContextMatcher(ClassMatcher):
    """The classes matching a pattern plus everything directly related to them.

    Relations are followed in both directions. With ``keep_parent_hierarchy``
    the whole superclass chain of a centre class is kept as well.
    """

    def __init__(
        self,
        symbols: SymbolTable,
        pattern: str | re.Pattern,
        options: Options,
        keep_parent_hierarchy: bool = True,
    ):
        self.symbols = symbols
        self.options = options
        self.keep_parent_hierarchy = keep_parent_hierarchy
        self._related: Optional[set[str]] = None
        self.set_pattern(pattern)

    def set_pattern(self, pattern: str | re.Pattern) -> None:
        """Move the context to other centre classes."""
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self._related = None

    def _centres(self) -> list[ClassDecl]:
        return [d for d in self.symbols.classes if self.pattern.fullmatch(strip_generics(d.qualified_name))]

    def _compute_related(self) -> set[str]:
        centres = self._centres()
        centre_names = {strip_generics(d.qualified_name) for d in centres}
        related = set(centre_names)
        for decl in self.symbols.classes:
            refs = referenced_classes(decl, self.options)
            if strip_generics(decl.qualified_name) in centre_names:
                related |= refs
            elif refs & centre_names:
                related.add(strip_generics(decl.qualified_name))
        if self.keep_parent_hierarchy:
            for centre in centres:
                related |= self._superclasses(centre)
        logger.debug(f"Context of {self.pattern.pattern}: {len(related)} classes")
        return related

    def _superclasses(self, decl: ClassDecl) -> set[str]:
        chain = set()
        current = decl
        while current is not None and current.superclass is not None:
            name = strip_generics(current.superclass.name)
            if name in chain:
                break
            chain.add(name)
            current = self.symbols.get(name)
        return chain

    def matches(self, name: str) -> bool:
        if self._related is None:
            self._related = self._compute_related()
        return strip_generics(name) in self._related


class AnyMatcher(ClassMatcher):
    """Matches when at least one of the wrapped matchers does."""

    def __init__(self, *matchers: ClassMatcher):
        self.matchers = list(matchers)

    def matches(self, name: str) -> bool:
        return any(m.matches(name) for m in self.matchers)


class AllMatcher(ClassMatcher):
    """Matches when every wrapped matcher does."""

    def __init__(self, *matchers: ClassMatcher):
        self.matchers = list(matchers)

    def matches(self, name: str) -> bool:
        return all(m.matches(name) for m in self.matchers)


class MatchAll(ClassMatcher):
    def matches(self, name: str) -> bool:
        return True


MATCHER_TYPES = ("class", "package", "interface", "subclass", "context", "outgoingContext")


def build_matcher(tokens: Iterable[str], symbols: SymbolTable, options: Options) -> ClassMatcher:
    """Build a matcher from ``<type> <pattern>`` tag tokens.

    Raises:
        ValueError: If the type is unknown, the pattern is missing or invalid
    """
    tokens = list(tokens)
    if len(tokens) < 2:
        raise ValueError("matcher type or pattern missing")
    kind, pattern = tokens[0], tokens[1]
    if kind == "package":
        return PackageMatcher(symbols, pattern)
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ValueError(f"invalid regular expression '{pattern}': {e}")
    if kind == "class":
        return PatternMatcher(compiled)
    if kind == "interface":
        return InterfaceMatcher(symbols, compiled)
    if kind == "subclass":
        return SubclassMatcher(symbols, compiled)
    if kind == "context":
        return ContextMatcher(symbols, compiled, options)
    if kind == "outgoingContext":
        return ContextMatcher(symbols, compiled, options, keep_parent_hierarchy=False)
    raise ValueError(f"unknown matcher type '{kind}', expected one of {', '.join(MATCHER_TYPES)}")
