"""Option providers ("views"): per-class configuration resolution.

Every provider resolves a class the same way:

1. pick a base template (hidden, centre, local or global),
2. clone it,
3. apply the class's own ``@opt`` tags, then the view's overrides,
4. force-hide when the view's global hide patterns match, or when the class
   is outside the view's matcher and not covered by an include pattern,
5. give the focal class the highlight fill colour.

Hiding beats highlighting: a hidden focal class keeps the colour in its
record but is never drawn.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..config import Options
from ..diagnostics import DiagnosticCollector
from ..models.declarations import ClassDecl, SymbolTable
from ..text import strip_generics
from .matchers import AnyMatcher, ClassMatcher, ContextMatcher, MatchAll, PackageMatcher, build_matcher

logger = logging.getLogger(__name__)

HIGHLIGHT_COLOR = "lemonChiffon"


class OptionProvider(ABC):
    """Resolves the options each class of a diagram is rendered with."""

    def __init__(self, symbols: SymbolTable, diagnostics: Optional[DiagnosticCollector] = None):
        self.symbols = symbols
        self.diagnostics = diagnostics

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Progress label for this diagram."""
        pass

    @abstractmethod
    def global_options(self) -> Options:
        """A fresh copy of the class-independent options of the diagram."""
        pass

    @abstractmethod
    def options_for(self, name: str) -> Options:
        """Resolved options for one class; the caller owns the returned copy."""
        pass

    @abstractmethod
    def apply_class_overrides(self, opt: Options, name: str) -> None:
        """Specialise ``opt`` in place for the class ``name``."""
        pass

    def _apply_class_tags(self, opt: Options, name: str) -> None:
        decl = self.symbols.get(name)
        if decl is not None:
            opt.apply_tags(decl, self.diagnostics)


class GlobalView(OptionProvider):
    """Unscoped provider: one diagram with every class."""

    def __init__(self, options: Options, symbols: SymbolTable, diagnostics: Optional[DiagnosticCollector] = None):
        super().__init__(symbols, diagnostics)
        self.options = options

    @property
    def display_name(self) -> str:
        return "Class diagram"

    def global_options(self) -> Options:
        return self.options.clone()

    def options_for(self, name: str) -> Options:
        opt = self.options.clone()
        self.apply_class_overrides(opt, name)
        return opt

    def apply_class_overrides(self, opt: Options, name: str) -> None:
        self._apply_class_tags(opt, name)
        if self.options.matches_hide_expression(strip_generics(name)):
            opt.hide()


class ScopedView(OptionProvider):
    """Provider restricted to the classes a matcher selects."""

    def __init__(
        self,
        symbols: SymbolTable,
        matcher: ClassMatcher,
        focal: Optional[str] = None,
        diagnostics: Optional[DiagnosticCollector] = None,
    ):
        super().__init__(symbols, diagnostics)
        self.matcher = matcher
        self.focal = strip_generics(focal) if focal else None

    @abstractmethod
    def _scope_options(self) -> Options:
        """Options holding the view-wide hide and include patterns."""
        pass

    @abstractmethod
    def _template(self, name: str) -> Options:
        """Shared base record for ``name``; never mutated."""
        pass

    def _apply_view_overrides(self, opt: Options, name: str) -> None:
        pass

    def is_focal(self, name: str) -> bool:
        return self.focal is not None and strip_generics(name) == self.focal

    def is_hidden(self, name: str) -> bool:
        scope = self._scope_options()
        name = strip_generics(name)
        if scope.matches_hide_expression(name):
            return True
        return not (self.matcher.matches(name) or scope.matches_include_expression(name))

    def is_local(self, name: str) -> bool:
        """Same enclosing scope (package or outer class) as the focal class."""
        if self.focal is None:
            return False
        decl = self.symbols.get(name)
        focal = self.symbols.get(self.focal)
        return decl is not None and focal is not None and decl.enclosing_scope == focal.enclosing_scope

    def options_for(self, name: str) -> Options:
        opt = self._template(name).clone()
        self.apply_class_overrides(opt, name)
        return opt

    def apply_class_overrides(self, opt: Options, name: str) -> None:
        self._apply_class_tags(opt, name)
        self._apply_view_overrides(opt, name)
        if self.is_hidden(name):
            opt.hide()
        if self.is_focal(name):
            opt.node_fill_color = HIGHLIGHT_COLOR


class _Templates:
    """The four canned records of a focused view."""

    def __init__(self, base: Options):
        self.global_ = base.clone()

        self.local = base.clone()
        self.local.show_qualified = False

        self.hidden = base.clone()
        self.hidden.hide()

        self.center = base.clone()
        self.center.node_fill_color = HIGHLIGHT_COLOR
        self.center.show_qualified = False


class _FocusedView(ScopedView):
    """Picks hidden / centre / local / global templates around a focal class."""

    _templates: _Templates

    def _template(self, name: str) -> Options:
        if self.is_hidden(name):
            return self._templates.hidden
        if self.is_focal(name):
            return self._templates.center
        if self.is_local(name):
            return self._templates.local
        return self._templates.global_


class PackageView(ScopedView):
    """All classes of one package; in-package names are shown unqualified."""

    def __init__(
        self,
        symbols: SymbolTable,
        parent: Options,
        package: str,
        diagnostics: Optional[DiagnosticCollector] = None,
    ):
        super().__init__(symbols, PackageMatcher(symbols, package), diagnostics=diagnostics)
        self.package = package
        self.options = parent.clone()
        self.output_path = package.replace(".", "/") + "/" + package + ".dot"

    @property
    def display_name(self) -> str:
        return f"Package view for package {self.package}"

    def global_options(self) -> Options:
        go = self.options.clone()
        go.output_file_name = self.output_path
        return go

    def _scope_options(self) -> Options:
        return self.options

    def _template(self, name: str) -> Options:
        return self.options

    def _apply_view_overrides(self, opt: Options, name: str) -> None:
        if self.matcher.matches(name):
            opt.show_qualified = False


class ContextView(_FocusedView):
    """One class and its direct neighbours, with the class highlighted."""

    def __init__(
        self,
        symbols: SymbolTable,
        parent: Options,
        focal: str,
        diagnostics: Optional[DiagnosticCollector] = None,
    ):
        matcher = ContextMatcher(symbols, re.escape(strip_generics(focal)), parent)
        super().__init__(symbols, matcher, focal=focal, diagnostics=diagnostics)
        self.options = parent.clone()
        self._templates = _Templates(self.options)
        self.output_path = self._output_path()

    def _output_path(self) -> str:
        decl = self.symbols.get(self.focal)
        if decl is not None:
            return (decl.package or "").replace(".", "/") + "/" + decl.simple_name + ".dot"
        return self.focal.replace(".", "/") + ".dot"

    def set_focal(self, focal: str) -> None:
        """Re-centre the view on another class."""
        self.focal = strip_generics(focal)
        self.matcher.set_pattern(re.escape(self.focal))
        self.output_path = self._output_path()

    @property
    def display_name(self) -> str:
        return f"Context view for class {self.focal}"

    def global_options(self) -> Options:
        go = self.options.clone()
        go.output_file_name = self.output_path
        return go

    def _scope_options(self) -> Options:
        return self.options


OptionOverride = List[str]


class TagView(_FocusedView):
    """A view declared in the sources through an ``@view`` tag.

    ``@opt`` tags before the first ``@match`` configure the whole diagram;
    each ``@match <type> <regex>`` opens a group whose ``@opt`` tags apply to
    the matching classes. ``@scope <type> <regex>`` tags restrict the diagram
    and ``@focus <class>`` names a class to highlight.
    """

    def __init__(
        self,
        symbols: SymbolTable,
        view: ClassDecl,
        parent: OptionProvider,
        diagnostics: Optional[DiagnosticCollector] = None,
    ):
        super().__init__(symbols, MatchAll(), diagnostics=diagnostics)
        self.view = view
        self.parent = parent
        self.global_overrides: List[OptionOverride] = []
        self.groups: List[Tuple[ClassMatcher, List[OptionOverride]]] = []

        base = parent.global_options()
        scopes: List[ClassMatcher] = []
        current: Optional[List[OptionOverride]] = self.global_overrides
        for tag in view.tags:
            if tag.name == "opt":
                if current is not None and self._valid_override(base, tag.tokens(), tag.text):
                    current.append(tag.tokens())
            elif tag.name == "match":
                matcher = self._matcher(tag.tokens(), base, tag.text)
                if matcher is None:
                    # Options of a broken group are dropped with it
                    current = None
                else:
                    current = []
                    self.groups.append((matcher, current))
            elif tag.name == "scope":
                matcher = self._matcher(tag.tokens(), base, tag.text)
                if matcher is not None:
                    scopes.append(matcher)
            elif tag.name == "focus":
                tokens = tag.tokens()
                if len(tokens) == 1:
                    self.focal = strip_generics(tokens[0])
                else:
                    self._report(f"@focus expects one class name: {tag.text}", tag.text)

        if scopes:
            self.matcher = AnyMatcher(*scopes)

        self.options = base
        output_set = False
        for tokens in self.global_overrides:
            if tokens[0].lstrip("-") in ("output", "outputFileName", "output_file_name"):
                output_set = True
            self.options.set_option(tokens)
        if not output_set:
            self.options.output_file_name = f"{view.simple_name}.dot"
        self._templates = _Templates(self.options)

    def _report(self, message: str, tag: str) -> None:
        if self.diagnostics is not None:
            self.diagnostics.warn(message, component="TagView", class_name=self.view.qualified_name, tag=tag)
        else:
            logger.warning(f"{message} in view {self.view.qualified_name}")

    def _valid_override(self, base: Options, tokens: List[str], text: str) -> bool:
        try:
            base.clone().set_option(tokens)
        except ValueError as e:
            self._report(f"Skipping @opt: {e}", text)
            return False
        return True

    def _matcher(self, tokens: List[str], base: Options, text: str) -> Optional[ClassMatcher]:
        try:
            return build_matcher(tokens, self.symbols, base)
        except ValueError as e:
            self._report(f"Skipping @match/@scope: {e}", text)
            return None

    @property
    def display_name(self) -> str:
        return f"View {self.view.qualified_name}"

    def global_options(self) -> Options:
        return self.options.clone()

    def _scope_options(self) -> Options:
        return self.options

    def _apply_view_overrides(self, opt: Options, name: str) -> None:
        if isinstance(self.parent, TagView):
            self.parent._apply_view_overrides(opt, name)
        for matcher, overrides in self.groups:
            if matcher.matches(name):
                for tokens in overrides:
                    opt.set_option(tokens)
