"""Relation vocabulary: edge kinds and directions."""

from enum import Enum


class RelationDirection(str, Enum):
    """Direction of a relation as seen from one endpoint."""
    IN = "in"
    OUT = "out"
    BOTH = "both"

    @property
    def inverse(self) -> "RelationDirection":
        """The same relation seen from the other endpoint."""
        if self is RelationDirection.IN:
            return RelationDirection.OUT
        if self is RelationDirection.OUT:
            return RelationDirection.IN
        return RelationDirection.BOTH


class RelationKind(str, Enum):
    """UML relation kinds.

    The value is the tag name used to declare the relation on a class
    (``@assoc``, ``@navhas``...). Inheritance kinds come from the language
    and use ``extends`` / ``implements``.
    """
    GENERALIZATION = "extends"
    REALIZATION = "implements"
    ASSOCIATION = "assoc"
    NAV_ASSOCIATION = "navassoc"
    AGGREGATION = "has"
    NAV_AGGREGATION = "navhas"
    COMPOSITION = "composed"
    NAV_COMPOSITION = "navcomposed"
    DEPENDENCY = "depend"

    @property
    def tag(self) -> str:
        return self.value

    @property
    def style(self) -> str:
        """Dot edge attributes drawing this kind."""
        return _STYLES[self]

    @property
    def direction(self) -> RelationDirection:
        """Direction recorded on the source endpoint."""
        if self in _OUTGOING:
            return RelationDirection.OUT
        return RelationDirection.BOTH

    @classmethod
    def parse(cls, value: "str | RelationKind") -> "RelationKind":
        """Accept a member, its name (``NAV_ASSOCIATION``) or its tag (``navassoc``)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for kind in cls:
            if text.lower() == kind.value or text.upper() == kind.name:
                return kind
        raise ValueError(f"Unknown relation kind: {value}")


_STYLES = {
    RelationKind.GENERALIZATION: "arrowtail=empty, dir=back",
    RelationKind.REALIZATION: "arrowtail=empty, style=dashed, dir=back",
    RelationKind.ASSOCIATION: "arrowhead=none",
    RelationKind.NAV_ASSOCIATION: "arrowhead=open",
    RelationKind.AGGREGATION: "arrowhead=none, arrowtail=ediamond, dir=back",
    RelationKind.NAV_AGGREGATION: "arrowhead=open, arrowtail=ediamond, dir=both",
    RelationKind.COMPOSITION: "arrowhead=none, arrowtail=diamond, dir=back",
    RelationKind.NAV_COMPOSITION: "arrowhead=open, arrowtail=diamond, dir=both",
    RelationKind.DEPENDENCY: "arrowhead=open, style=dashed",
}

_OUTGOING = frozenset({
    RelationKind.NAV_ASSOCIATION,
    RelationKind.NAV_AGGREGATION,
    RelationKind.NAV_COMPOSITION,
    RelationKind.DEPENDENCY,
})

# Kinds declared through class tags, in emission order
TAGGED_RELATIONS = (
    RelationKind.ASSOCIATION,
    RelationKind.NAV_ASSOCIATION,
    RelationKind.AGGREGATION,
    RelationKind.NAV_AGGREGATION,
    RelationKind.COMPOSITION,
    RelationKind.NAV_COMPOSITION,
    RelationKind.DEPENDENCY,
)
