"""
Term codec for the quad document schema.

Each statement position is stored as up to three document fields:

    <p>   raw value (string, or False for the default graph)
    <p>t  type tag (u, l, ll, lt, n, default)
    <p>l  literal extra (language tag or datatype IRI)

with <p> one of s, p, o, c. Absent values are omitted from the document,
never stored as null.
"""

from __future__ import annotations
from enum import Enum
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from pyoxigraph import (
    BlankNode,
    DefaultGraph,
    Literal,
    NamedNode,
    Variable,
)

from rdf_mongo.models import Statement

logger = logging.getLogger(__name__)


XSD_STRING = NamedNode("http://www.w3.org/2001/XMLSchema#string")


class TermTag(str, Enum):
    """Type tag stored in the <p>t field."""
    URI = "u"
    LITERAL = "l"
    LANG_LITERAL = "ll"
    TYPED_LITERAL = "lt"
    NODE = "n"
    DEFAULT = "default"


class Place(Enum):
    """Position of a term within a statement, with its document field names."""
    SUBJECT = ("s", "st", "sl")
    PREDICATE = ("p", "pt", "pl")
    OBJECT = ("o", "ot", "ol")
    GRAPH_NAME = ("c", "ct", "cl")

    @property
    def value_field(self) -> str:
        return self.value[0]

    @property
    def tag_field(self) -> str:
        return self.value[1]

    @property
    def extra_field(self) -> str:
        return self.value[2]


# Filter matching any named graph (everything but the default graph)
NAMED_GRAPH_TAG = {"$ne": TermTag.DEFAULT.value}

DEFAULT_GRAPH_FIELDS = {"c": False, "ct": TermTag.DEFAULT.value}


class DecodeSession:
    """
    Term identity cache for one enumeration or query call.

    Repeated blank node ids decode to the same BlankNode object and IRIs are
    interned. A new session is created per call so unrelated blank nodes
    from different calls never alias.
    """

    __slots__ = ("_nodes", "_iris")

    def __init__(self):
        self._nodes: Dict[str, BlankNode] = {}
        self._iris: Dict[str, NamedNode] = {}

    def node(self, value: str) -> BlankNode:
        node = self._nodes.get(value)
        if node is None:
            node = self._nodes[value] = BlankNode(value)
        return node

    def iri(self, value: str) -> NamedNode:
        iri = self._iris.get(value)
        if iri is None:
            iri = self._iris[value] = NamedNode(value)
        return iri

    def __len__(self) -> int:
        return len(self._nodes) + len(self._iris)


def _generic_fields(term: Any, place: Place) -> Tuple[Any, Any, Optional[str]]:
    """Map a term to (value, tag, extra) before field renaming."""
    if isinstance(term, NamedNode):
        return term.value, TermTag.URI.value, None
    if isinstance(term, Literal):
        if term.language:
            return term.value, TermTag.LANG_LITERAL.value, term.language
        if term.datatype != XSD_STRING:
            return term.value, TermTag.TYPED_LITERAL.value, term.datatype.value
        return term.value, TermTag.LITERAL.value, None
    if isinstance(term, BlankNode):
        return term.value, TermTag.NODE.value, None
    if isinstance(term, Variable):
        if place is Place.GRAPH_NAME:
            return None, dict(NAMED_GRAPH_TAG), None
        return None, None, None
    if term is False or isinstance(term, DefaultGraph):
        return False, TermTag.DEFAULT.value, None
    if term is None:
        return None, None, None
    return str(term), TermTag.URI.value, None


def encode_term(term: Any, place: Place) -> Dict[str, Any]:
    """
    Encode a term for the given statement position.

    Returns the 0-3 document fields for that position, ready to be merged
    into a document or a filter. None encodes to no fields at all, which
    matches any value when used as a filter.
    """
    value, tag, extra = _generic_fields(term, place)
    if value == "":
        value = None

    fields = {
        place.value_field: value,
        place.tag_field: tag,
        place.extra_field: extra,
    }
    return {k: v for k, v in fields.items() if v is not None}


def decode_term(
    value: Any,
    tag: Optional[str] = None,
    extra: Optional[str] = None,
    session: Optional[DecodeSession] = None,
) -> Any:
    """
    Decode a stored field group back into a term.

    The default graph decodes to None (no explicit graph name). Unknown tags
    and values the term constructors reject also decode to None.
    """
    if session is None:
        session = DecodeSession()
    if tag is None:
        if value is None:
            return None
        tag = TermTag.URI.value

    try:
        if tag == TermTag.URI.value:
            return None if value is None else session.iri(value)
        if tag == TermTag.LANG_LITERAL.value:
            if not extra:
                return Literal(value or "")
            return Literal(value or "", language=extra)
        if tag == TermTag.TYPED_LITERAL.value:
            if not extra:
                return Literal(value or "")
            return Literal(value or "", datatype=session.iri(extra))
        if tag == TermTag.LITERAL.value:
            return Literal(value or "")
        if tag == TermTag.NODE.value:
            return None if value is None else session.node(value)
        if tag == TermTag.DEFAULT.value:
            return None
    except (ValueError, TypeError) as e:
        logger.warning(f"Could not decode {value!r} with tag {tag!r}: {e}")
        return None

    logger.warning(f"Unknown term tag {tag!r} for value {value!r}")
    return None


def statement_to_document(statement: Statement) -> Dict[str, Any]:
    """Encode all four positions of a statement into one document."""
    document: Dict[str, Any] = {}
    for term, place in zip(statement, Place):
        document.update(encode_term(term, place))
    return document


def document_to_statement(
    document: Mapping[str, Any],
    session: Optional[DecodeSession] = None,
) -> Statement:
    """Rebuild a statement from a stored document."""
    if session is None:
        session = DecodeSession()
    terms = [
        decode_term(
            document.get(place.value_field),
            document.get(place.tag_field),
            document.get(place.extra_field),
            session,
        )
        for place in Place
    ]
    return Statement(*terms)
