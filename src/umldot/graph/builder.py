"""Class graph construction: nodes, explicit and inferred relations.

One ``ClassGraph`` produces one dot diagram. The pipeline drives it in a
fixed order: prologue, node bodies for every included class, relations,
the inference passes, the fallback pass for classes only seen as relation
endpoints, and the epilogue.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from .. import __version__
from ..config import Options, Shape
from ..diagnostics import DiagnosticCollector
from ..models.declarations import ClassDecl, ConstructorDecl, FieldDecl, Member, MethodDecl, SymbolTable, TaggedElement, TypeRef
from ..models.relations import TAGGED_RELATIONS, RelationDirection, RelationKind
from ..text import escape, guillemize, qualified_name, split_package, strip_generics, tokenize
from ..views.providers import OptionProvider
from .dot import Align, DotWriter, Font
from .relations import RelationModel

logger = logging.getLogger(__name__)

ROOT_CLASS = "java.lang.Object"
STDOUT = "-"


def build_relative_path(context_package: str, class_package: str) -> str:
    """Relative directory path from one package's doc folder to another's.

    >>> build_relative_path("com.acme.ui", "com.acme.model")
    '../model/'
    """
    context = context_package.split(".") if context_package else []
    target = class_package.split(".") if class_package else []
    i = 0
    while i < len(context) and i < len(target) and context[i] == target[i]:
        i += 1
    if i == len(context):
        path = "./"
    else:
        path = "../" * (len(context) - i)
    for segment in target[i:]:
        path += segment + "/"
    return path


def open_output(opt: Options) -> tuple[TextIO, bool]:
    """Open the sink a diagram is written to.

    Returns:
        The stream and whether the caller owns (and must close) it

    Raises:
        OSError: If the file or its directory cannot be created
    """
    if opt.output_file_name == STDOUT:
        return sys.stdout, False
    path = Path(opt.output_directory or "") / opt.output_file_name
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Writing diagram to {path}")
    return open(path, "w", encoding=opt.output_encoding), True


class ClassGraph:
    """Builds one class diagram and writes it as dot text.

    Use as a context manager so the output stream is flushed and, when the
    graph opened it, closed exactly once on every exit path.
    """

    def __init__(
        self,
        symbols: SymbolTable,
        provider: OptionProvider,
        note_options: Optional[Options] = None,
        context: Optional[str] = None,
        stream: Optional[TextIO] = None,
        diagnostics: Optional[DiagnosticCollector] = None,
    ):
        """
        Args:
            symbols: Declarations available to the diagram
            provider: Resolves per-class options
            note_options: Options for ``@note`` boxes; a note-shaped copy of the
                global options when omitted
            context: Package that relative links are computed from (package
                and context diagrams); absolute links when None
            stream: Write here instead of the file named by the options
            diagnostics: Sink for malformed tag reports
        """
        self.symbols = symbols
        self.provider = provider
        self.context = context
        self.diagnostics = diagnostics
        self.global_options = provider.global_options()
        if note_options is None:
            note_options = self.global_options.clone()
            note_options.shape = Shape.NOTE
        self.note_options = note_options
        self.relations = RelationModel()
        self.root_classes = {strip_generics(c.qualified_name) for c in symbols.included()}

        self._options: Dict[str, Options] = {}
        self._stream = stream
        self._owns_stream = False
        self._closed = False
        self.writer: Optional[DotWriter] = None
        if stream is not None:
            self.writer = DotWriter(stream, self.global_options.compact)

    def __enter__(self) -> "ClassGraph":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Options and visibility

    def options_for(self, name: str) -> Options:
        """Resolved options for a class; cached for the lifetime of the graph."""
        key = strip_generics(name)
        opt = self._options.get(key)
        if opt is None:
            opt = self.provider.options_for(key)
            self._options[key] = opt
        return opt

    def is_hidden(self, name: str) -> bool:
        """True if the class must not appear, as a node or as an edge endpoint."""
        decl = self.symbols.get(name)
        if decl is not None and (decl.has_tag("hidden") or decl.has_tag("view")):
            return True
        record = self.relations.get(name)
        if record is not None and record.hidden:
            return True
        return self.options_for(name).matches_hide_expression(strip_generics(name))

    def _report(self, message: str, decl: ClassDecl, tag: str) -> None:
        if self.diagnostics is not None:
            self.diagnostics.warn(
                message,
                component="ClassGraph",
                diagram=self.provider.display_name,
                class_name=decl.qualified_name,
                tag=tag,
            )
        else:
            logger.warning(f"{decl.qualified_name}: {message}")

    # Output lifecycle

    def prologue(self) -> None:
        """Open the sink and write the graph header.

        Raises:
            OSError: If the output file cannot be opened
        """
        opt = self.global_options
        if self.writer is None:
            self._stream, self._owns_stream = open_output(opt)
            self.writer = DotWriter(self._stream, opt.compact)
        w = self.writer
        w.line("#!/usr/local/bin/dot")
        w.line("#")
        w.line("# Class diagram ")
        w.line(f"# Generated by umldot version {__version__}")
        w.line("#")
        w.line()
        w.line("digraph G {")
        w.line(
            f'\tedge [fontname="{opt.edge_font_name}",fontsize=10,'
            f'labelfontname="{opt.edge_font_name}",labelfontsize=10];'
        )
        w.line(f'\tnode [fontname="{opt.node_font_name}",fontsize=10,shape=plaintext];')
        w.line(f"\tnodesep={opt.node_sep};")
        w.line(f"\tranksep={opt.rank_sep};")
        if opt.horizontal:
            w.line("\trankdir=LR;")
        if opt.bg_color is not None:
            w.line(f'\tbgcolor="{opt.bg_color}";')

    def epilogue(self) -> None:
        self.writer.line("}")

    def close(self) -> None:
        """Flush the output; close it if this graph opened it."""
        if self._closed:
            return
        self._closed = True
        if self.writer is not None:
            self.writer.flush()
        if self._owns_stream and self._stream is not None:
            self._stream.close()

    # Links

    def _map_api_doc_root(self, name: str) -> Optional[str]:
        if strip_generics(name) in self.root_classes:
            return self.global_options.api_doc_root
        for pattern, url in self.global_options.api_doc_map.items():
            if re.fullmatch(pattern, strip_generics(name)):
                return url
        return None

    def class_to_url(self, name: str, root_class: bool = False) -> Optional[str]:
        """Documentation URL of a class, relative to ``context`` when set."""
        decl = self.symbols.get(name)
        if self.context is not None and root_class and decl is not None:
            return build_relative_path(self.context, decl.package or "") + decl.simple_name + ".html"
        doc_root = self._map_api_doc_root(name)
        if doc_root is None:
            return None
        if decl is not None and decl.included:
            package, simple = decl.package or "", decl.simple_name
        else:
            package, simple = split_package(strip_generics(name))
        return doc_root + package.replace(".", "/") + "/" + simple + ".html"

    # Label pieces

    def _row(self, align: Align, text: str) -> None:
        self.writer.table_line(align, text)

    def _visibility(self, opt: Options, member: Member) -> str:
        return member.visibility.symbol if opt.show_visibility else " "

    def _type_annotation(self, opt: Options, ref: TypeRef) -> str:
        if ref.is_void:
            return ""
        return " : " + qualified_name(ref.render(), opt.show_qualified, opt.show_qualified_generics)

    def _parameters(self, opt: Options, method: ConstructorDecl) -> str:
        return ", ".join(p.name + self._type_annotation(opt, p.type) for p in method.parameters)

    def _stereotypes(self, opt: Options, element: TaggedElement, align: Align, decl: ClassDecl) -> None:
        for tag in element.find_tags("stereotype"):
            tokens = tag.tokens()
            if len(tokens) != 1:
                self._report(f"@stereotype expects one field: {tag.text}", decl, tag.text)
                continue
            self._row(align, opt.guil_open + escape(tokens[0]) + opt.guil_close)

    def _tag_values(self, opt: Options, element: TaggedElement, decl: ClassDecl) -> None:
        for tag in element.find_tags("tagvalue"):
            tokens = tag.tokens()
            if len(tokens) != 2:
                self._report(f"@tagvalue expects two fields: {tag.text}", decl, tag.text)
                continue
            self._row(Align.RIGHT, Font.TAG.wrap(opt, "{" + escape(tokens[0]) + " = " + escape(tokens[1]) + "}"))

    def _name_rows(self, opt: Options, name: str, font: Font) -> None:
        """Centered name row, split into class and package rows with postfix_package."""
        shown = qualified_name(name, opt.show_qualified, opt.show_qualified_generics)
        start = shown.find("<")
        idx = shown.rfind(".", 0, len(shown) if start < 0 else start)
        if opt.postfix_package and 0 < idx < len(shown) - 1:
            self._row(Align.CENTER, font.wrap(opt, escape(shown[idx + 1:])))
            self._row(Align.CENTER, Font.PACKAGE.wrap(opt, escape(shown[:idx])))
        else:
            self._row(Align.CENTER, font.wrap(opt, escape(shown)))

    def _attributes(self, opt: Options, fields: List[FieldDecl], decl: ClassDecl) -> None:
        for f in fields:
            self._stereotypes(opt, f, Align.LEFT, decl)
            text = self._visibility(opt, f) + f.name
            if opt.show_type:
                text += self._type_annotation(opt, f.type)
            self._row(Align.LEFT, escape(text))
            self._tag_values(opt, f, decl)

    def _constructors(self, opt: Options, constructors: List[ConstructorDecl], decl: ClassDecl) -> None:
        for c in constructors:
            self._stereotypes(opt, c, Align.LEFT, decl)
            params = "(" + self._parameters(opt, c) + ")" if opt.show_type else "()"
            self._row(Align.LEFT, escape(self._visibility(opt, c) + c.name + params))
            self._tag_values(opt, c, decl)

    def _operations(self, opt: Options, methods: List[MethodDecl], decl: ClassDecl) -> None:
        for m in methods:
            self._stereotypes(opt, m, Align.LEFT, decl)
            text = self._visibility(opt, m) + m.name
            if opt.show_type:
                text += "(" + self._parameters(opt, m) + ")" + self._type_annotation(opt, m.return_type)
            else:
                text += "()"
            abstract = m.is_abstract or (decl.is_interface and not m.is_static and "default" not in m.modifiers)
            self._row(Align.LEFT, (Font.ABSTRACT if abstract else Font.NORMAL).wrap(opt, escape(text)))
            self._tag_values(opt, m, decl)

    def _member_sections(self, opt: Options, decl: ClassDecl) -> List[str]:
        """Compartments below the name, in order; each renders at least one row."""
        fields = decl.fields
        methods = decl.methods
        constructors = decl.constructors
        constants = decl.enum_constants
        shows_operations = not decl.is_enum and (opt.show_constructors or opt.show_operations)
        show_members = (
            (opt.show_attributes and fields)
            or (decl.is_enum and opt.show_enum_constants and constants)
            or (opt.show_operations and methods)
            or (opt.show_constructors and constructors)
        )
        if not show_members:
            return []
        sections = []
        if opt.show_attributes:
            sections.append("attributes")
        elif shows_operations:
            # Empty attribute compartment above the operations
            sections.append("blank")
        if decl.is_enum and opt.show_enum_constants:
            sections.append("constants")
        if shows_operations:
            sections.append("operations")
        return sections

    def _render_section(self, opt: Options, decl: ClassDecl, section: str) -> None:
        w = self.writer
        w.inner_table_start()
        rows = 0
        if section == "attributes":
            fields = [f for f in decl.fields if not f.has_tag("hidden")]
            self._attributes(opt, fields, decl)
            rows = len(fields)
        elif section == "constants":
            for constant in decl.enum_constants:
                self._row(Align.LEFT, escape(constant.name))
            rows = len(decl.enum_constants)
        elif section == "operations":
            if opt.show_constructors:
                constructors = [c for c in decl.constructors if not c.has_tag("hidden")]
                self._constructors(opt, constructors, decl)
                rows += len(constructors)
            if opt.show_operations:
                methods = [
                    m for m in decl.methods
                    if not m.has_tag("hidden") and not (m.name == "<clinit>" and m.is_static)
                ]
                self._operations(opt, methods, decl)
                rows += len(methods)
        if rows == 0:
            self._row(Align.LEFT, "")
        w.inner_table_end()

    # Nodes

    def render_node(self, decl: ClassDecl, root_class: bool = True) -> str:
        """Write the node body of a class, once.

        The node id is allocated even when the body is skipped (hidden class,
        enum with enumerations off, anonymous class).

        Returns:
            The class's node id
        """
        name = decl.qualified_name
        record = self.relations.get(name)
        if record is None:
            record = self.relations.node(name, hidden=self.is_hidden(name))
        elif record.rendered:
            return record.node_id

        opt = self.options_for(name)
        if self.is_hidden(name) or (decl.is_enum and not opt.show_enumerations) or not decl.simple_name:
            return record.node_id

        w = self.writer
        url = self.class_to_url(name, root_class)
        sections = self._member_sections(opt, decl)
        n_rows = 1 + len(sections)

        w.comment(decl.name)
        w.write(f"\t{record.node_id} [label=")
        w.external_table_start(opt, name, url)

        w.first_inner_table_start(opt, n_rows)
        if decl.is_interface:
            self._row(Align.CENTER, opt.guil_open + "interface" + opt.guil_close)
        if decl.is_enum:
            self._row(Align.CENTER, opt.guil_open + "enumeration" + opt.guil_close)
        self._stereotypes(opt, decl, Align.CENTER, decl)
        font = Font.CLASS_ABSTRACT if decl.is_abstract and not decl.is_interface else Font.CLASS
        if opt.show_comment:
            self._row(Align.LEFT, Font.CLASS.wrap(opt, escape(decl.comment)))
        else:
            self._name_rows(opt, decl.name, font)
        self._tag_values(opt, decl, decl)
        w.first_inner_table_end(opt, n_rows)

        for section in sections:
            self._render_section(opt, decl, section)

        w.external_table_end()
        if url is not None:
            w.write(f', URL="{url}"')
        w.node_properties(opt)

        self._render_notes(decl, record.node_id, url)
        record.rendered = True
        return record.node_id

    def _render_notes(self, decl: ClassDecl, node_id: str, url: Optional[str]) -> None:
        w = self.writer
        nopt = self.note_options
        for i, tag in enumerate(decl.find_tags("note")):
            note_id = f"n{i}{node_id}"
            w.write("\t// Note annotation\n")
            w.write(f"\t{note_id} [label=")
            w.external_table_start(nopt, decl.qualified_name, url)
            w.inner_table_start()
            self._row(Align.LEFT, Font.CLASS.wrap(nopt, escape(tag.text)))
            w.inner_table_end()
            w.external_table_end()
            w.node_properties(nopt)
            w.write(f"\t{note_id} -> {self.relation_node(decl.qualified_name)}[arrowhead=none];\n")

    def render_extra_classes(self) -> None:
        """Write nodes for classes referenced by relations but never rendered."""
        for record in self.relations.unrendered():
            decl = self.symbols.get(record.name)
            if decl is not None:
                self.render_node(decl, root_class=False)
                continue
            opt = self.options_for(record.name)
            if opt.matches_hide_expression(record.name):
                continue
            w = self.writer
            url = self.class_to_url(record.name)
            w.comment(record.name)
            w.write(f"\t{record.node_id} [label=")
            w.external_table_start(opt, record.name, url)
            w.inner_table_start()
            self._name_rows(opt, record.name, Font.CLASS)
            w.inner_table_end()
            w.external_table_end()
            if url is not None:
                w.write(f', URL="{url}"')
            w.node_properties(opt)
            record.rendered = True

    # Relations

    def relation_node(self, name: str) -> str:
        """Edge endpoint of a class, with the table port for table shapes."""
        return self.relations.node(name).node_id + self.options_for(name).shape.landing_port()

    def render_relation(
        self,
        kind: RelationKind,
        source: str,
        target: str,
        tail_label: str = "",
        label: str = "",
        head_label: str = "",
    ) -> None:
        """Write one labelled edge and record it on both endpoints."""
        opt = self.options_for(source)
        shown = guillemize(label, opt.guil_open, opt.guil_close)
        w = self.writer
        w.comment(f"{source} {kind.tag} {target}")
        w.line(
            f"\t{self.relation_node(source)} -> {self.relation_node(target)} ["
            f'taillabel="{tail_label}", label="{shown}", headlabel="{head_label}", '
            f'fontname="{opt.edge_font_name}", fontcolor="{opt.edge_font_color}", '
            f'fontsize={opt.edge_font_size}, color="{opt.edge_color}", {kind.style}];'
        )
        self.relations.add_edge(source, target, kind)

    def _render_inheritance(self, kind: RelationKind, subclass: str, supertype: str) -> None:
        w = self.writer
        w.comment(f"{subclass} {kind.tag} {supertype}")
        w.line(f"\t{self.relation_node(supertype)} -> {self.relation_node(subclass)} [{kind.style}];")
        self.relations.add_edge(subclass, supertype, kind, RelationDirection.OUT)

    def render_all_relations(self, decl: ClassDecl) -> None:
        """Write inheritance, realization and tag-declared relations of a class."""
        name = decl.qualified_name
        if self.is_hidden(name) or not decl.simple_name:
            return

        superclass = decl.superclass
        if (
            superclass is not None
            and not decl.is_enum
            and strip_generics(superclass.name) != ROOT_CLASS
            and not self.is_hidden(superclass.name)
        ):
            self._render_inheritance(RelationKind.GENERALIZATION, name, strip_generics(superclass.name))

        for tag in decl.find_tags("extends"):
            tokens = tokenize(tag.text)
            if len(tokens) != 1:
                self._report(f"@extends expects one class name: {tag.text}", decl, tag.text)
                continue
            if not self.is_hidden(tokens[0]):
                self._render_inheritance(RelationKind.GENERALIZATION, name, strip_generics(tokens[0]))

        for interface in decl.interfaces:
            if not self.is_hidden(interface.name):
                self._render_inheritance(RelationKind.REALIZATION, name, strip_generics(interface.name))

        for kind in TAGGED_RELATIONS:
            for tag in decl.find_tags(kind.tag):
                tokens = tag.tokens()
                if len(tokens) != 4:
                    self._report(
                        f"@{kind.tag} expects four fields (l-src label l-dst target): {tag.text}", decl, tag.text
                    )
                    continue
                tail, label, head, target = ("" if t == "-" else t for t in tokens)
                if not target or self.is_hidden(target):
                    continue
                self.render_relation(kind, name, strip_generics(target), tail, label, head)

    def _is_class_type(self, ref: TypeRef, decl: ClassDecl) -> bool:
        """Declared class type, excluding the owner's type variables."""
        return ref.is_reference and ref.name not in {p.name for p in decl.type_parameters}

    def infer_field_relations(self, decl: ClassDecl) -> None:
        """Add relations for fields whose classes are not yet connected to ``decl``."""
        name = decl.qualified_name
        if self.is_hidden(name):
            return
        opt = self.options_for(name)
        for f in decl.fields:
            if f.has_tag("hidden") or f.is_static or not self._is_class_type(f.type, decl):
                continue
            target = strip_generics(f.type.name)
            if self.is_hidden(target):
                continue
            if self.relations.has_edge(name, target):
                continue
            self.render_relation(opt.infer_relationship_type, name, target, head_label="*" if f.type.is_array else "")

    def _dependency_candidates(self, opt: Options, decl: ClassDecl) -> List[TypeRef]:
        refs: List[TypeRef] = []
        minimum = opt.infer_dependency_visibility
        for method in decl.methods:
            if method.visibility.at_least(minimum):
                refs.append(method.return_type)
                refs.extend(p.type for p in method.parameters)
        if not opt.infer_relationships:
            refs.extend(f.type for f in decl.fields if f.visibility.at_least(minimum))
        for parameter in decl.type_parameters:
            refs.extend(parameter.bounds)
        return refs

    def _package_of(self, name: str) -> str:
        decl = self.symbols.get(name)
        if decl is not None:
            return decl.package or ""
        return split_package(strip_generics(name))[0]

    def infer_dependencies(self, decl: ClassDecl) -> None:
        """Add dependencies on the classes used in member signatures and generics."""
        name = decl.qualified_name
        if self.is_hidden(name):
            return
        opt = self.options_for(name)
        own = strip_generics(name)
        seen = set()
        for ref in self._dependency_candidates(opt, decl):
            if not self._is_class_type(ref, decl):
                continue
            target = strip_generics(ref.name)
            if target == own or target in seen:
                continue
            seen.add(target)
            if self.is_hidden(target):
                continue
            if not opt.infer_dep_in_package and self._package_of(target) == (decl.package or ""):
                continue
            if self.relations.has_outgoing(name, target):
                continue
            self.render_relation(RelationKind.DEPENDENCY, name, target)
