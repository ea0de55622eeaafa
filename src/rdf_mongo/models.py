"""
Core data models for rdf-mongo.

Statements are held as pyoxigraph terms. A Statement with unbound positions
(None) doubles as a triple/quad pattern.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Union

from pyoxigraph import (
    BlankNode,
    DefaultGraph,
    Literal,
    NamedNode,
    Quad,
    Triple,
    Variable,
)


Subject = Union[NamedNode, BlankNode]
Object = Union[NamedNode, BlankNode, Literal]
GraphName = Union[NamedNode, BlankNode, DefaultGraph]


class RDFMongoError(Exception):
    """Base class for rdf-mongo errors."""
    pass


class IncompleteStatementError(RDFMongoError, ValueError):
    """Raised when a statement without subject, predicate or object is written."""
    pass


def _is_bound(term: Any) -> bool:
    return term is not None and not isinstance(term, Variable)


@dataclass(frozen=True)
class Statement:
    """
    An RDF statement (or pattern) with an optional graph name.

    Attributes:
        subject: IRI or blank node, None when unbound
        predicate: IRI, None when unbound
        object: IRI, blank node or literal, None when unbound
        graph_name: IRI, blank node, DefaultGraph, a Variable (patterns
            only) or None when no graph name is given
    """
    subject: Optional[Subject] = None
    predicate: Optional[NamedNode] = None
    object: Optional[Object] = None
    graph_name: Any = None

    def is_complete(self) -> bool:
        """True if subject, predicate and object are all bound."""
        return (
            _is_bound(self.subject)
            and _is_bound(self.predicate)
            and _is_bound(self.object)
        )

    @property
    def has_graph(self) -> bool:
        return self.graph_name is not None and self.graph_name is not False

    def to_quad(self) -> Quad:
        """Convert a complete statement to a pyoxigraph Quad."""
        if not self.is_complete():
            raise IncompleteStatementError(f"Statement {self!r} is incomplete")
        graph = self.graph_name
        if isinstance(graph, Variable):
            raise IncompleteStatementError(f"Statement {self!r} has a variable graph name")
        if graph is None or graph is False:
            graph = DefaultGraph()
        return Quad(self.subject, self.predicate, self.object, graph)

    @classmethod
    def from_quad(cls, quad: Union[Quad, Triple]) -> "Statement":
        graph = getattr(quad, "graph_name", None)
        return cls(quad.subject, quad.predicate, quad.object, graph)

    @classmethod
    def coerce(cls, value: Any) -> "Statement":
        """Accept a Statement, a pyoxigraph Quad/Triple or a 3/4-tuple."""
        if isinstance(value, Statement):
            return value
        if isinstance(value, (Quad, Triple)):
            return cls.from_quad(value)
        if isinstance(value, (tuple, list)) and len(value) in (3, 4):
            return cls(*value)
        raise TypeError(f"Cannot build a Statement from {type(value).__name__}")

    def __iter__(self):
        yield self.subject
        yield self.predicate
        yield self.object
        yield self.graph_name


@dataclass
class Changeset:
    """A batch of statement deletions and insertions applied as one unit."""
    deletes: List[Statement] = field(default_factory=list)
    inserts: List[Statement] = field(default_factory=list)

    def __post_init__(self):
        self.deletes = [Statement.coerce(s) for s in self.deletes]
        self.inserts = [Statement.coerce(s) for s in self.inserts]

    def delete(self, *statements: Any) -> "Changeset":
        self.deletes.extend(Statement.coerce(s) for s in statements)
        return self

    def insert(self, *statements: Any) -> "Changeset":
        self.inserts.extend(Statement.coerce(s) for s in statements)
        return self

    def is_empty(self) -> bool:
        return not self.deletes and not self.inserts

    def __len__(self) -> int:
        return len(self.deletes) + len(self.inserts)

    @classmethod
    def build(
        cls,
        deletes: Iterable[Any] = (),
        inserts: Iterable[Any] = (),
    ) -> "Changeset":
        return cls().delete(*deletes).insert(*inserts)
