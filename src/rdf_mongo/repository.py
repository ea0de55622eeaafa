"""
MongoDB-backed RDF repository.

Statements are stored one document per quad using the field layout from
rdf_mongo.storage.codec. Pattern queries are translated to collection
filters; an unbound position simply omits its fields from the filter.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pymongo import ASCENDING, HASHED, DeleteOne, IndexModel, MongoClient, ReplaceOne
from pymongo.collection import Collection
from pymongo.errors import BulkWriteError
from pymongo.results import BulkWriteResult
from pyoxigraph import DefaultGraph, Variable

from rdf_mongo.models import (
    Changeset,
    IncompleteStatementError,
    RDFMongoError,
    Statement,
)
from rdf_mongo.storage.codec import (
    DEFAULT_GRAPH_FIELDS,
    DecodeSession,
    Place,
    document_to_statement,
    encode_term,
    statement_to_document,
)
from rdf_mongo.storage.repo_config import MongoConfig

logger = logging.getLogger(__name__)


INDEXES = [
    IndexModel([("s", ASCENDING)]),
    IndexModel([("p", ASCENDING)]),
    IndexModel([("o", HASHED)]),
    IndexModel([("c", ASCENDING)]),
    IndexModel([("s", ASCENDING), ("p", ASCENDING)]),
]


class ChangesetError(RDFMongoError):
    """Raised when an ordered changeset batch fails partway through."""

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        operation: Optional[str] = None,
        statement: Optional[Statement] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.index = index
        self.operation = operation
        self.statement = statement
        self.details = details or {}


def _is_default_graph(graph_name: Any) -> bool:
    return graph_name is False or isinstance(graph_name, DefaultGraph)


def to_filter(pattern: Any) -> Dict[str, Any]:
    """
    Translate a statement pattern into a collection filter.

    A default graph name is always matched as ``{c: False, ct: "default"}``;
    a Variable graph name matches every named graph.
    """
    pattern = Statement.coerce(pattern)
    query = statement_to_document(pattern)
    if _is_default_graph(pattern.graph_name):
        query.update(DEFAULT_GRAPH_FIELDS)
    return query


def document_for_insert(statement: Statement) -> Dict[str, Any]:
    """Encode a complete statement, normalizing a missing graph to the default graph."""
    if not statement.is_complete() or isinstance(statement.graph_name, Variable):
        raise IncompleteStatementError(f"Statement {statement!r} is incomplete")
    document = statement_to_document(statement)
    if "ct" not in document:
        document.update(DEFAULT_GRAPH_FIELDS)
    return document


def exact_filter(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Filter matching exactly one stored statement.

    A position holding a tag but no value (an empty literal) must not match
    documents that do carry a value there.
    """
    query = dict(document)
    for place in Place:
        if place.tag_field in query and place.value_field not in query:
            query[place.value_field] = {"$exists": False}
    return query


def filter_for_delete(statement: Statement) -> Dict[str, Any]:
    """Filter for deleting a statement; no graph name means the default graph."""
    query = to_filter(statement)
    if statement.graph_name is None:
        query.update(DEFAULT_GRAPH_FIELDS)
    return exact_filter(query)


class MongoRepository:
    """
    RDF quad repository persisted in a MongoDB collection.

    Usage:
        repo = MongoRepository.from_uri("mongodb://localhost:27017/quadb/quads")
        repo.insert_statement(Statement(s, p, o))
        for st in repo.query_pattern(Statement(predicate=p)):
            ...
    """

    def __init__(
        self,
        config: Optional[MongoConfig] = None,
        *,
        collection: Optional[Collection] = None,
        client: Optional[MongoClient] = None,
    ):
        self.config = config or MongoConfig()
        self.config.validate()
        self._owns_client = False

        if collection is None:
            if client is None:
                client = MongoClient(
                    self.config.client_target(), **self.config.client_options
                )
                self._owns_client = True
            collection = client[self.config.database][self.config.collection]
        self.client = client
        self.collection = collection

        if self.config.ensure_indexes:
            self.ensure_indexes()

    @classmethod
    def from_uri(cls, uri: str, **options: Any) -> "MongoRepository":
        return cls(MongoConfig.from_uri(uri, **options))

    def ensure_indexes(self) -> List[str]:
        names = self.collection.create_indexes(INDEXES)
        logger.info(f"Ensured indexes on {self.collection.name}: {names}")
        return names

    def close(self) -> None:
        """Close the client if this repository created it."""
        if self._owns_client and self.client is not None:
            self.client.close()
            self.client = None

    def __enter__(self) -> "MongoRepository":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Capabilities
    # =========================================================================

    def supports(self, feature: str) -> bool:
        feature = str(feature)
        if feature in ("graph_name", "atomic_write"):
            return True
        if feature == "validity":
            return self.config.with_validity
        return False

    @property
    def durable(self) -> bool:
        return True

    # =========================================================================
    # Mutation
    # =========================================================================

    def insert_statement(self, statement: Any) -> None:
        document = document_for_insert(Statement.coerce(statement))
        logger.debug(f"Upserting {document}")
        self.collection.replace_one(exact_filter(document), document, upsert=True)

    def insert(self, *statements: Any) -> "MongoRepository":
        for statement in statements:
            self.insert_statement(statement)
        return self

    def delete_statement(self, statement: Any) -> None:
        query = filter_for_delete(Statement.coerce(statement))
        logger.debug(f"Deleting {query}")
        self.collection.delete_one(query)

    def delete(self, *statements: Any) -> "MongoRepository":
        for statement in statements:
            self.delete_statement(statement)
        return self

    def apply_changeset(self, changeset: Changeset) -> Optional[BulkWriteResult]:
        """
        Apply deletes then inserts as one ordered bulk write.

        Operations after the first failure are not applied and nothing is
        rolled back; the failure is reported as a ChangesetError carrying the
        position of the failed operation.
        """
        ops = []
        sources: List[Tuple[str, Statement]] = []
        for statement in map(Statement.coerce, changeset.deletes):
            ops.append(DeleteOne(filter_for_delete(statement)))
            sources.append(("delete", statement))
        for statement in map(Statement.coerce, changeset.inserts):
            document = document_for_insert(statement)
            ops.append(ReplaceOne(exact_filter(document), document, upsert=True))
            sources.append(("insert", statement))

        if not ops:
            return None

        try:
            return self.collection.bulk_write(ops, ordered=True)
        except BulkWriteError as e:
            details = e.details or {}
            write_errors = details.get("writeErrors") or []
            index = write_errors[0].get("index") if write_errors else None
            operation, statement = (
                sources[index] if index is not None and index < len(sources)
                else (None, None)
            )
            message = write_errors[0].get("errmsg") if write_errors else str(e)
            logger.error(
                f"Changeset failed at operation {index} ({operation}): {message}"
            )
            raise ChangesetError(
                f"Changeset failed at operation {index} ({operation}): {message}",
                index=index,
                operation=operation,
                statement=statement,
                details=details,
            ) from e

    def clear(self) -> None:
        result = self.collection.delete_many({})
        logger.info(f"Cleared {result.deleted_count} statements from {self.collection.name}")

    # =========================================================================
    # Query
    # =========================================================================

    def query_pattern(self, pattern: Any = None) -> Iterator[Statement]:
        """
        Yield statements matching a pattern, in store order.

        Each call decodes with its own DecodeSession, so blank nodes are only
        shared between statements of the same call.
        """
        query = to_filter(pattern if pattern is not None else Statement())
        logger.debug(f"Querying {query}")
        session = DecodeSession()
        for document in self.collection.find(query):
            yield document_to_statement(document, session)

    def statements(self) -> Iterator[Statement]:
        return self.query_pattern(Statement())

    def __iter__(self) -> Iterator[Statement]:
        return self.statements()

    def has_statement(self, statement: Any) -> bool:
        return self.collection.find_one(to_filter(statement)) is not None

    def __contains__(self, statement: Any) -> bool:
        return self.has_statement(statement)

    def has_graph(self, graph_name: Any) -> bool:
        query = encode_term(graph_name, Place.GRAPH_NAME)
        if _is_default_graph(graph_name):
            query.update(DEFAULT_GRAPH_FIELDS)
        return self.collection.find_one(query) is not None

    def count(self, pattern: Any = None) -> int:
        query = to_filter(pattern) if pattern is not None else {}
        return self.collection.count_documents(query)

    def __len__(self) -> int:
        return self.count()

    def is_empty(self) -> bool:
        return self.count() == 0
