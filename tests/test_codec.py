"""
Tests for the quad document codec.
"""

import pytest
from pyoxigraph import BlankNode, DefaultGraph, Literal, NamedNode, Variable

from rdf_mongo.models import Statement
from rdf_mongo.storage.codec import (
    DecodeSession,
    Place,
    TermTag,
    decode_term,
    document_to_statement,
    encode_term,
    statement_to_document,
)


EX = "http://example.org/"
XSD_INTEGER = NamedNode("http://www.w3.org/2001/XMLSchema#integer")


class TestEncodeTerm:
    """Test encoding of single terms."""

    def test_iri(self):
        """Test that an IRI encodes as value plus 'u' tag."""
        assert encode_term(NamedNode(EX + "alice"), Place.SUBJECT) == {
            "s": EX + "alice",
            "st": "u",
        }

    def test_language_literal(self):
        """Test that a language-tagged literal keeps its language."""
        term = Literal("chat", language="fr")
        assert encode_term(term, Place.OBJECT) == {
            "o": "chat",
            "ot": "ll",
            "ol": "fr",
        }

    def test_typed_literal(self):
        """Test that a typed literal keeps its datatype IRI."""
        term = Literal("42", datatype=XSD_INTEGER)
        assert encode_term(term, Place.OBJECT) == {
            "o": "42",
            "ot": "lt",
            "ol": XSD_INTEGER.value,
        }

    def test_plain_literal(self):
        """Test that a plain literal has no extra field."""
        assert encode_term(Literal("hello"), Place.OBJECT) == {"o": "hello", "ot": "l"}

    def test_blank_node(self):
        """Test that a blank node encodes its id with the 'n' tag."""
        assert encode_term(BlankNode("b1"), Place.SUBJECT) == {"s": "b1", "st": "n"}

    def test_graph_variable_matches_named_graphs(self):
        """Test that a graph variable excludes the default graph."""
        assert encode_term(Variable("g"), Place.GRAPH_NAME) == {
            "ct": {"$ne": "default"}
        }

    def test_variable_outside_graph_is_unbound(self):
        """Test that a variable in another position encodes to nothing."""
        assert encode_term(Variable("s"), Place.SUBJECT) == {}

    @pytest.mark.parametrize("term", [False, DefaultGraph()])
    def test_default_graph(self, term):
        """Test that False and DefaultGraph both encode the default graph."""
        assert encode_term(term, Place.GRAPH_NAME) == {"c": False, "ct": "default"}

    def test_none_encodes_to_nothing(self):
        """Test that an unbound term produces no fields in any position."""
        for place in Place:
            assert encode_term(None, place) == {}

    def test_fallback_to_iri(self):
        """Test that an unknown value is stored as an IRI string."""
        assert encode_term(EX + "plain-string", Place.PREDICATE) == {
            "p": EX + "plain-string",
            "pt": "u",
        }

    def test_empty_value_is_dropped(self):
        """Test that an empty lexical value is left out of the fields."""
        assert encode_term(Literal(""), Place.OBJECT) == {"ot": "l"}

    def test_field_names_per_place(self):
        """Test the field names used for each statement position."""
        term = Literal("x", language="en")
        assert set(encode_term(term, Place.SUBJECT)) == {"s", "st", "sl"}
        assert set(encode_term(term, Place.PREDICATE)) == {"p", "pt", "pl"}
        assert set(encode_term(term, Place.GRAPH_NAME)) == {"c", "ct", "cl"}


class TestDecodeTerm:
    """Test decoding of stored field groups."""

    @pytest.mark.parametrize("term", [
        NamedNode(EX + "alice"),
        Literal("hello"),
        Literal("chat", language="fr"),
        Literal("42", datatype=XSD_INTEGER),
        BlankNode("b1"),
        Literal(""),
    ])
    @pytest.mark.parametrize("place", list(Place))
    def test_round_trip(self, term, place):
        """Test that decoding an encoded term gives the term back."""
        fields = encode_term(term, place)
        decoded = decode_term(
            fields.get(place.value_field),
            fields.get(place.tag_field),
            fields.get(place.extra_field),
        )
        assert decoded == term

    def test_missing_tag_means_iri(self):
        """Test that a value without a tag decodes as an IRI."""
        assert decode_term(EX + "x") == NamedNode(EX + "x")

    def test_default_graph_decodes_to_none(self):
        """Test that the default graph decodes to no graph name."""
        assert decode_term(False, TermTag.DEFAULT.value) is None

    def test_absent_field_group(self):
        """Test that a missing field group decodes to None."""
        assert decode_term(None, None, None) is None

    def test_unknown_tag_decodes_to_none(self, caplog):
        """Test that an unknown tag is logged and decodes to None."""
        assert decode_term("x", "zz") is None
        assert "Unknown term tag" in caplog.text

    def test_invalid_iri_decodes_to_none(self):
        """Test that an unparseable IRI decodes to None."""
        assert decode_term("not an iri", "u") is None

    def test_blank_node_identity_within_session(self):
        """Test that one session returns the same blank node object."""
        session = DecodeSession()
        first = decode_term("b1", "n", session=session)
        second = decode_term("b1", "n", session=session)
        assert first is second

    def test_blank_node_identity_not_shared_across_sessions(self):
        """Test that separate sessions return separate blank node objects."""
        first = decode_term("b1", "n", session=DecodeSession())
        second = decode_term("b1", "n", session=DecodeSession())
        assert first is not second
        assert first == second


class TestStatementDocuments:
    """Test whole-statement encoding."""

    def test_statement_to_document(self):
        """Test encoding all four positions into one document."""
        st = Statement(
            NamedNode(EX + "alice"),
            NamedNode(EX + "name"),
            Literal("Alice", language="en"),
            NamedNode(EX + "g1"),
        )
        assert statement_to_document(st) == {
            "s": EX + "alice", "st": "u",
            "p": EX + "name", "pt": "u",
            "o": "Alice", "ot": "ll", "ol": "en",
            "c": EX + "g1", "ct": "u",
        }

    def test_document_round_trip(self):
        """Test that a statement survives encode and decode."""
        st = Statement(
            BlankNode("b1"),
            NamedNode(EX + "age"),
            Literal("42", datatype=XSD_INTEGER),
            BlankNode("g"),
        )
        assert document_to_statement(statement_to_document(st)) == st

    def test_default_graph_document_decodes_without_graph(self):
        """Test that a default-graph document decodes with no graph name."""
        document = {
            "s": EX + "alice", "st": "u",
            "p": EX + "knows", "pt": "u",
            "o": EX + "bob", "ot": "u",
            "c": False, "ct": "default",
        }
        st = document_to_statement(document)
        assert st.graph_name is None
        assert st.object == NamedNode(EX + "bob")

    def test_corrupt_field_does_not_abort_decode(self):
        """Test that one bad field leaves the rest of the document decoded."""
        document = {
            "s": EX + "alice", "st": "u",
            "p": EX + "knows", "pt": "u",
            "o": "bob", "ot": "??",
            "c": False, "ct": "default",
        }
        st = document_to_statement(document)
        assert st.subject == NamedNode(EX + "alice")
        assert st.object is None

    def test_shared_session_shares_blank_nodes(self):
        """Test that positions in one document share blank node objects."""
        session = DecodeSession()
        document = {"s": "b1", "st": "n", "p": EX + "p", "pt": "u", "o": "b1", "ot": "n"}
        st = document_to_statement(document, session)
        assert st.subject is st.object
