"""Diagram pipeline: options, views and the per-diagram build order."""

import logging
from pathlib import Path
from typing import List, Optional, TextIO, Tuple

from .config import Options, Shape
from .diagnostics import DiagnosticCollector
from .graph.builder import ClassGraph
from .models.declarations import ClassDecl, SymbolTable
from .views.providers import ContextView, GlobalView, OptionProvider, PackageView, TagView

logger = logging.getLogger(__name__)

OPTIONS_CLASS = "UMLOptions"
NOTE_OPTIONS_CLASS = "UMLNoteOptions"


class ViewConfigurationError(Exception):
    """A requested view cannot be built; nothing is written."""
    pass


def build_options(
    symbols: SymbolTable,
    base: Optional[Options] = None,
    note_base: Optional[Options] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> Tuple[Options, Options]:
    """Global and note options, seeded by the ``UMLOptions`` and
    ``UMLNoteOptions`` declarations when the sources have them.

    Returns:
        Tuple of (global options, note options)
    """
    opt = (base or Options()).clone()
    decl = symbols.get(OPTIONS_CLASS)
    if decl is not None:
        opt.apply_tags(decl, diagnostics)

    note = (note_base or base or Options()).clone()
    decl = symbols.get(NOTE_OPTIONS_CLASS)
    if decl is not None:
        note.apply_tags(decl, diagnostics)
    note.shape = Shape.NOTE
    return opt, note


def build_graph(
    symbols: SymbolTable,
    provider: OptionProvider,
    note_options: Optional[Options] = None,
    context: Optional[str] = None,
    stream: Optional[TextIO] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> None:
    """Build and write one diagram.

    Raises:
        OSError: If the diagram cannot be written
    """
    opt = provider.global_options()
    logger.info(f"Building {provider.display_name}")
    classes = symbols.included()

    with ClassGraph(symbols, provider, note_options, context, stream, diagnostics) as graph:
        graph.prologue()
        for decl in classes:
            graph.render_node(decl, root_class=True)
        for decl in classes:
            graph.render_all_relations(decl)
        if opt.infer_relationships:
            for decl in classes:
                graph.infer_field_relations(decl)
        if opt.infer_dependencies:
            for decl in classes:
                graph.infer_dependencies(decl)
        graph.render_extra_classes()
        graph.epilogue()

    logger.debug(f"{provider.display_name}: {len(graph.relations)} nodes")


def _parent_view(symbols: SymbolTable, decl: ClassDecl) -> Optional[ClassDecl]:
    if decl.superclass is None:
        return None
    parent = symbols.get(decl.superclass.name)
    if parent is not None and parent.has_tag("view"):
        return parent
    return None


def build_view(
    symbols: SymbolTable,
    view: ClassDecl,
    provider: OptionProvider,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> TagView:
    """Build a tag view on top of its parent views, outermost first."""
    chain = []
    seen = set()
    current: Optional[ClassDecl] = view
    while current is not None:
        if current.qualified_name in seen:
            logger.warning(f"View hierarchy of {view.qualified_name} is cyclic at {current.qualified_name}")
            break
        seen.add(current.qualified_name)
        chain.append(current)
        current = _parent_view(symbols, current)

    for decl in reversed(chain):
        provider = TagView(symbols, decl, provider, diagnostics)
    return provider


def build_views(
    options: Options,
    symbols: SymbolTable,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> List[TagView]:
    """Views selected by ``view_name`` / ``find_views``; empty for a single global diagram.

    Raises:
        ViewConfigurationError: If the named view is missing, not a view or abstract
    """
    root = GlobalView(options, symbols, diagnostics)
    if options.view_name:
        decl = symbols.get(options.view_name)
        if decl is None:
            raise ViewConfigurationError(f"View {options.view_name} not found")
        if not decl.has_tag("view"):
            raise ViewConfigurationError(f"{decl.qualified_name} is not a view")
        if decl.is_abstract:
            raise ViewConfigurationError(f"{decl.qualified_name} is an abstract view, no output will be generated")
        return [build_view(symbols, decl, root, diagnostics)]
    if options.find_views:
        return [build_view(symbols, decl, root, diagnostics) for decl in symbols.views() if not decl.is_abstract]
    return []


def _build_reporting(
    symbols: SymbolTable,
    provider: OptionProvider,
    note_options: Optional[Options],
    context: Optional[str],
    stream: Optional[TextIO],
    diagnostics: Optional[DiagnosticCollector],
) -> bool:
    try:
        build_graph(symbols, provider, note_options, context, stream, diagnostics)
    except OSError as e:
        message = f"Cannot write {provider.display_name}: {e}"
        if diagnostics is not None:
            diagnostics.error(message, component="pipeline", diagram=provider.display_name)
        else:
            logger.error(message)
        return False
    return True


def run(
    symbols: SymbolTable,
    options: Options,
    note_options: Optional[Options] = None,
    stream: Optional[TextIO] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> int:
    """Write the global diagram, or one diagram per selected view.

    Returns:
        Number of diagrams written

    Raises:
        ViewConfigurationError: Before any output, if the view selection is invalid
    """
    providers: List[OptionProvider] = list(build_views(options, symbols, diagnostics))
    if not providers:
        providers = [GlobalView(options, symbols, diagnostics)]

    written = 0
    for provider in providers:
        if _build_reporting(symbols, provider, note_options, None, stream, diagnostics):
            written += 1
    return written


def _doc_options(options: Options, out_dir: Path) -> Options:
    opt = options.clone()
    # Documentation diagrams always show enumerations and match hide patterns strictly
    opt.show_enumerations = True
    opt.strict_matching = True
    opt.output_directory = str(out_dir)
    return opt


def generate_package_diagrams(
    symbols: SymbolTable,
    options: Options,
    out_dir: Path,
    note_options: Optional[Options] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> List[Path]:
    """One diagram per package holding included classes.

    Returns:
        Paths of the diagrams written
    """
    opt = _doc_options(options, out_dir)
    written = []
    for package in symbols.packages():
        view = PackageView(symbols, opt, package, diagnostics)
        if _build_reporting(symbols, view, note_options, package, None, diagnostics):
            written.append(Path(out_dir) / view.output_path)
    return written


def generate_context_diagrams(
    symbols: SymbolTable,
    options: Options,
    out_dir: Path,
    note_options: Optional[Options] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> List[Path]:
    """One diagram per included class showing it with its direct neighbours.

    Returns:
        Paths of the diagrams written
    """
    opt = _doc_options(options, out_dir)
    classes = sorted(
        (decl for decl in symbols.included() if decl.simple_name),
        key=lambda decl: decl.qualified_name,
    )
    written = []
    view: Optional[ContextView] = None
    for decl in classes:
        if view is None:
            view = ContextView(symbols, opt, decl.qualified_name, diagnostics)
        else:
            view.set_focal(decl.qualified_name)
        if _build_reporting(symbols, view, note_options, decl.package or "", None, diagnostics):
            written.append(Path(out_dir) / view.output_path)
    return written
