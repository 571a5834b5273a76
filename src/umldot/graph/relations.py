"""Node registry and adjacency index for one class diagram."""

from dataclasses import dataclass, field

from ..models.relations import RelationDirection, RelationKind
from ..text import strip_generics

Relation = tuple[RelationKind, RelationDirection]


@dataclass
class NodeRecord:
    """Bookkeeping for one class referenced by the diagram."""
    node_id: str  # Rendering-safe identifier, fixed at allocation
    name: str     # Class identity, generic arguments stripped
    rendered: bool = False
    hidden: bool = False
    adjacency: dict[str, set[Relation]] = field(default_factory=dict)

    def add_relation(self, other: str, kind: RelationKind, direction: RelationDirection) -> None:
        self.adjacency.setdefault(strip_generics(other), set()).add((kind, direction))

    def relations_to(self, other: str) -> set[Relation]:
        return self.adjacency.get(strip_generics(other), set())


class RelationModel:
    """Per-diagram node allocator and edge index.

    Nodes are created the first time a class is referenced and never
    removed; ids are handed out in first-seen order. Edges only feed the
    de-duplication rules of the inference passes.
    """

    def __init__(self, prefix: str = "c"):
        self._prefix = prefix
        self._nodes: dict[str, NodeRecord] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, name: str) -> NodeRecord | None:
        return self._nodes.get(strip_generics(name))

    def node(self, name: str, hidden: bool = False) -> NodeRecord:
        """Return the record for ``name``, allocating it on first use."""
        key = strip_generics(name)
        record = self._nodes.get(key)
        if record is None:
            record = NodeRecord(node_id=f"{self._prefix}{len(self._nodes)}", name=key, hidden=hidden)
            self._nodes[key] = record
        return record

    def unrendered(self) -> list[NodeRecord]:
        """Snapshot of allocated records that have no node body yet."""
        return [r for r in self._nodes.values() if not r.rendered]

    def add_edge(
        self,
        source: str,
        target: str,
        kind: RelationKind,
        direction: RelationDirection | None = None,
    ) -> None:
        """Record an edge on both endpoints.

        The source gets ``direction`` (default: the kind's own direction),
        the target gets its inverse.
        """
        d = direction or kind.direction
        self.node(source).add_relation(target, kind, d)
        self.node(target).add_relation(source, kind, d.inverse)

    def has_edge(self, source: str, target: str) -> set[Relation]:
        """Relations already recorded from ``source`` toward ``target``."""
        record = self.get(source)
        return set(record.relations_to(target)) if record else set()

    def has_outgoing(self, source: str, target: str) -> bool:
        """True if some recorded relation leaves ``source`` toward ``target``."""
        return any(d == RelationDirection.OUT for _, d in self.has_edge(source, target))
