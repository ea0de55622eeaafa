"""
rdf-mongo: RDF quad storage on top of MongoDB collections.

Encodes IRIs, blank nodes and literals into flat documents and turns
triple/quad patterns into collection filters.
"""

__version__ = "0.2.0"

from rdf_mongo.models import (
    Statement,
    Changeset,
    RDFMongoError,
    IncompleteStatementError,
)
from rdf_mongo.repository import MongoRepository, ChangesetError, to_filter
from rdf_mongo.storage import MongoConfig, ConfigValidationError

__all__ = [
    "Statement",
    "Changeset",
    "RDFMongoError",
    "IncompleteStatementError",
    # Repository
    "MongoRepository",
    "ChangesetError",
    "to_filter",
    # Configuration
    "MongoConfig",
    "ConfigValidationError",
]
