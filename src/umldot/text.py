"""String helpers shared by the graph builder and the view layer."""

import html
import re

_TOKEN_RE = re.compile(r'"([^"]*)"|(\S+)')


def tokenize(text: str) -> list[str]:
    """Split tag text on whitespace, keeping double-quoted fields together.

    >>> tokenize('1 "owns many" * com.acme.B')
    ['1', 'owns many', '*', 'com.acme.B']
    """
    return [bare or quoted for quoted, bare in _TOKEN_RE.findall(text or "")]


def escape(text: str) -> str:
    """Escape markup characters for use inside an HTML-like dot label."""
    return html.escape(text, quote=False)


def html_newline(text: str) -> str:
    """Turn embedded newlines into label line breaks."""
    return text.replace("\r\n", "\n").replace("\n", "<br/>")


def strip_generics(name: str) -> str:
    """Remove the generic argument span from a class name (``Foo<T>`` -> ``Foo``)."""
    start = name.find("<")
    return name if start < 0 else name[:start]


def guillemize(text: str, guil_open: str, guil_close: str) -> str:
    """Replace ``<<`` and ``>>`` with the configured guillemets."""
    return text.replace("<<", guil_open).replace(">>", guil_close)


def _is_identifier_part(c: str) -> bool:
    return c.isalnum() or c in "_$"


def qualified_name(name: str, show_qualified: bool, show_qualified_generics: bool) -> str:
    """Strip package and outer-class qualifiers from a (possibly generic) name.

    Outside a ``<...>`` span qualifiers are kept only when ``show_qualified``
    is set; inside a generic span ``show_qualified_generics`` decides. The dot
    in ``A<V>.B`` is kept because it follows a generic close, not a package.
    """
    if show_qualified and (show_qualified_generics or "<" not in name):
        return name
    buf = []
    last = depth = 0
    strip = not show_qualified
    i = 0
    while i < len(name):
        c = name[i]
        i += 1
        if c in ".$" and strip and last + 1 < i:
            last = i
        if _is_identifier_part(c):
            continue
        if c == "<":
            depth += 1
            strip = not show_qualified_generics
        elif c == ">":
            depth -= 1
            if depth == 0:
                strip = not show_qualified
        if last < i:
            buf.append(name[last:i])
            last = i
    if last < len(name):
        buf.append(name[last:])
    return "".join(buf)


def split_package(name: str) -> tuple[str, str]:
    """Best-effort ``(package, simple name)`` split of a raw class name."""
    base = strip_generics(name)
    idx = base.rfind(".")
    if idx <= 0:
        return "", name
    return name[:idx], name[idx + 1:]
