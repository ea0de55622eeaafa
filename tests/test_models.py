"""
Tests for Statement and Changeset.
"""

import pytest
from pyoxigraph import DefaultGraph, Literal, NamedNode, Quad, Triple, Variable

from rdf_mongo.models import Changeset, IncompleteStatementError, Statement


EX = "http://example.org/"


class TestStatement:
    """Test Statement behavior."""

    def test_complete(self):
        """Test a complete statement."""
        st = Statement(NamedNode(EX + "s"), NamedNode(EX + "p"), Literal("o"))
        assert st.is_complete()
        assert not st.has_graph

    def test_incomplete(self):
        """Test statements missing a position."""
        assert not Statement(NamedNode(EX + "s"), NamedNode(EX + "p")).is_complete()
        assert not Statement(
            NamedNode(EX + "s"), Variable("p"), Literal("o")
        ).is_complete()

    def test_from_quad(self):
        """Test conversion from and to a pyoxigraph Quad."""
        quad = Quad(NamedNode(EX + "s"), NamedNode(EX + "p"), Literal("o"), NamedNode(EX + "g"))
        st = Statement.from_quad(quad)
        assert st.graph_name == NamedNode(EX + "g")
        assert st.has_graph
        assert st.to_quad() == quad

    def test_from_triple(self):
        """Test conversion from a pyoxigraph Triple."""
        triple = Triple(NamedNode(EX + "s"), NamedNode(EX + "p"), Literal("o"))
        st = Statement.coerce(triple)
        assert st.graph_name is None
        assert st.to_quad().graph_name == DefaultGraph()

    def test_to_quad_requires_complete(self):
        """Test that an incomplete statement cannot become a Quad."""
        with pytest.raises(IncompleteStatementError):
            Statement(NamedNode(EX + "s")).to_quad()

    def test_to_quad_rejects_variable_graph(self):
        """Test that a variable graph name cannot become a Quad."""
        st = Statement(NamedNode(EX + "s"), NamedNode(EX + "p"), Literal("o"), Variable("g"))
        with pytest.raises(IncompleteStatementError):
            st.to_quad()

    def test_coerce_tuple(self):
        """Test building a statement from a tuple."""
        st = Statement.coerce((NamedNode(EX + "s"), None, None))
        assert st.subject == NamedNode(EX + "s")
        assert st.graph_name is None

    def test_coerce_rejects_other_types(self):
        """Test that unsupported values are rejected."""
        with pytest.raises(TypeError):
            Statement.coerce("not a statement")


class TestChangeset:
    """Test Changeset building."""

    def test_build(self):
        """Test building a changeset from deletes and inserts."""
        st = Statement(NamedNode(EX + "s"), NamedNode(EX + "p"), Literal("o"))
        changeset = Changeset.build(deletes=[st], inserts=[tuple(st)[:3]])
        assert changeset.deletes == [st]
        assert changeset.inserts == [st]
        assert len(changeset) == 2
        assert not changeset.is_empty()

    def test_empty(self):
        """Test an empty changeset."""
        assert Changeset().is_empty()
