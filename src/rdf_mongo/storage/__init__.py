"""
rdf-mongo storage layer.

Term codec for the quad document schema and repository configuration.
"""

from rdf_mongo.storage.codec import (
    TermTag,
    Place,
    DecodeSession,
    encode_term,
    decode_term,
    statement_to_document,
    document_to_statement,
    DEFAULT_GRAPH_FIELDS,
)
from rdf_mongo.storage.repo_config import (
    MongoConfig,
    ConfigValidationError,
    split_uri,
)

__all__ = [
    # Codec
    "TermTag",
    "Place",
    "DecodeSession",
    "encode_term",
    "decode_term",
    "statement_to_document",
    "document_to_statement",
    "DEFAULT_GRAPH_FIELDS",
    # Configuration
    "MongoConfig",
    "ConfigValidationError",
    "split_uri",
]
