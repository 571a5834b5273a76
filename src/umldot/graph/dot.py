"""Dot text primitives: HTML-like label tables, rows, fonts and node attributes.

Pure formatting. Callers decide what goes into each row; nothing here looks
at declarations or relations.
"""

from enum import Enum
from typing import Optional, TextIO

from ..config import Options
from ..text import html_newline


class Align(str, Enum):
    """Horizontal alignment of a label row."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


def _font(text: str, face: Optional[str], size: Optional[float]) -> str:
    if face is None and size is None:
        return text
    attrs = ""
    if face is not None:
        attrs += f' face="{face}"'
    if size is not None:
        attrs += f' point-size="{size}"'
    return f"<font{attrs}>{text}</font>"


class Font(Enum):
    """Typefaces used inside class labels."""
    NORMAL = "normal"
    ABSTRACT = "abstract"
    CLASS = "class"
    CLASS_ABSTRACT = "class_abstract"
    PACKAGE = "package"
    TAG = "tag"

    def wrap(self, opt: Options, text: str) -> str:
        """Wrap already-escaped ``text`` in the markup for this font."""
        if self is Font.NORMAL:
            return text
        if self is Font.ABSTRACT:
            return _italic(opt, text)
        if self is Font.CLASS:
            return _font(text, opt.node_font_class_name, opt.node_font_class_size)
        if self is Font.CLASS_ABSTRACT:
            face = opt.node_font_class_abstract_name or opt.node_font_class_name
            return _font(_italic(opt, text), face, opt.node_font_class_size)
        if self is Font.PACKAGE:
            return _font(text, opt.node_font_package_name, opt.node_font_package_size)
        return _font(text, opt.node_font_tag_name, opt.node_font_tag_size)


def _italic(opt: Options, text: str) -> str:
    return f"<i>{text}</i>" if opt.node_font_abstract_italic else text


class DotWriter:
    """Writes dot statements and label tables to a text stream."""

    def __init__(self, stream: TextIO, compact: bool = False):
        self.stream = stream
        self.line_prefix = "" if compact else "\t"
        self.line_postfix = "" if compact else "\n"

    def write(self, text: str) -> None:
        self.stream.write(text)

    def line(self, text: str = "") -> None:
        self.stream.write(text + "\n")

    def comment(self, text: str) -> None:
        self.line(f"\t// {text}")

    def external_table_start(self, opt: Options, name: str, url: Optional[str]) -> None:
        """Open the bordered container table of a node label."""
        bgcolor = "" if opt.node_fill_color is None else f' bgcolor="{opt.node_fill_color}"'
        href = "" if url is None else f' href="{url}" target="_parent"'
        self.write(
            f'<<table title="{name}" border="0" cellborder="{opt.shape.cell_border()}" '
            f'cellspacing="0" cellpadding="2" port="p"{bgcolor}{href}>' + self.line_postfix
        )

    def external_table_end(self) -> None:
        self.write(self.line_prefix * 2 + "</table>>")

    def first_inner_table_start(self, opt: Options, n_rows: int) -> None:
        """Open the header compartment; ``n_rows`` counts every compartment of the node."""
        self.write(
            self.line_prefix * 2 + "<tr>" + opt.shape.extra_column(n_rows)
            + '<td><table border="0" cellspacing="0" cellpadding="1">' + self.line_postfix
        )

    def first_inner_table_end(self, opt: Options, n_rows: int) -> None:
        self.write(
            self.line_prefix * 2 + "</table></td>" + opt.shape.extra_column(n_rows) + "</tr>" + self.line_postfix
        )

    def inner_table_start(self) -> None:
        self.write(
            self.line_prefix * 2 + '<tr><td><table border="0" cellspacing="0" cellpadding="1">' + self.line_postfix
        )

    def inner_table_end(self) -> None:
        self.write(self.line_prefix * 2 + "</table></td></tr>" + self.line_postfix)

    def table_line(self, align: Align, text: str) -> None:
        """Emit one row; ``text`` may contain markup, newlines become line breaks."""
        self.write(
            f'<tr><td align="{align.value}" balign="{align.value}">{html_newline(text)}</td></tr>' + self.line_postfix
        )

    def node_properties(self, opt: Options) -> None:
        """Close a node statement with its font and shape attributes."""
        self.write(f', fontname="{opt.node_font_name}"')
        self.write(f', fontcolor="{opt.node_font_color}"')
        self.write(f", fontsize={opt.node_font_size}")
        self.write(opt.shape.style)
        self.line("];")

    def flush(self) -> None:
        self.stream.flush()
