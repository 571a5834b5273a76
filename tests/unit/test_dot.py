"""Unit tests for the dot text primitives."""

import io

from umldot.config import Options, Shape
from umldot.graph.dot import Align, DotWriter, Font


def writer(compact: bool = False) -> tuple[DotWriter, io.StringIO]:
    out = io.StringIO()
    return DotWriter(out, compact), out


class TestFont:
    """Test font markup."""

    def test_normal_is_plain(self):
        assert Font.NORMAL.wrap(Options(), "x") == "x"

    def test_abstract_italic(self):
        assert Font.ABSTRACT.wrap(Options(), "x") == "<i>x</i>"
        assert Font.ABSTRACT.wrap(Options(node_font_abstract_italic=False), "x") == "x"

    def test_class_font_without_face_or_size(self):
        assert Font.CLASS.wrap(Options(), "Foo") == "Foo"

    def test_class_font_with_face(self):
        opt = Options(node_font_class_name="Helvetica-Bold", node_font_class_size=12.0)
        assert Font.CLASS.wrap(opt, "Foo") == '<font face="Helvetica-Bold" point-size="12.0">Foo</font>'

    def test_abstract_class_falls_back_to_class_face(self):
        opt = Options(node_font_class_name="Courier")
        assert Font.CLASS_ABSTRACT.wrap(opt, "Foo") == '<font face="Courier"><i>Foo</i></font>'

    def test_package_font_default_size(self):
        assert Font.PACKAGE.wrap(Options(), "com.acme") == '<font point-size="8.0">com.acme</font>'


class TestShape:
    """Test shape-dependent label details."""

    def test_table_shapes(self):
        assert Shape.CLASS.cell_border() == 1
        assert Shape.NOTE.cell_border() == 0
        assert Shape.CLASS.landing_port() == ":p"
        assert Shape.NOTE.landing_port() == ""

    def test_active_class_column(self):
        assert Shape.ACTIVECLASS.extra_column(3) == '<td rowspan="3"></td>'
        assert Shape.CLASS.extra_column(3) == ""

    def test_styles(self):
        assert Shape.CLASS.style == ""
        assert Shape.NOTE.style == ", shape=note"


class TestDotWriter:
    """Test the dot writer."""

    def test_table_line_escapes_newlines(self):
        w, out = writer()
        w.table_line(Align.LEFT, "a\nb")
        assert out.getvalue() == '<tr><td align="left" balign="left">a<br/>b</td></tr>\n'

    def test_external_table_attributes(self):
        w, out = writer()
        w.external_table_start(Options(node_fill_color="yellow"), "a.B", "http://x/a/B.html")
        text = out.getvalue()
        assert 'title="a.B"' in text
        assert 'cellborder="1"' in text
        assert 'bgcolor="yellow"' in text
        assert 'href="http://x/a/B.html" target="_parent"' in text

    def test_external_table_without_fill_or_link(self):
        w, out = writer()
        w.external_table_start(Options(), "a.B", None)
        assert "bgcolor" not in out.getvalue()
        assert "href" not in out.getvalue()

    def test_compact_output(self):
        """Compact output drops indentation and newlines inside labels."""
        w, out = writer(compact=True)
        w.inner_table_start()
        w.inner_table_end()
        assert out.getvalue() == '<tr><td><table border="0" cellspacing="0" cellpadding="1"></table></td></tr>'

    def test_node_properties(self):
        w, out = writer()
        w.node_properties(Options(shape=Shape.NOTE))
        assert out.getvalue() == ', fontname="Helvetica", fontcolor="black", fontsize=10.0, shape=note];\n'

    def test_comment(self):
        w, out = writer()
        w.comment("a.B")
        assert out.getvalue() == "\t// a.B\n"
