"""
Repository configuration for rdf-mongo.

Provides:
- Connection settings (URI or host/port) for the MongoDB client
- Database and collection selection
- Loading from dicts, JSON files, MongoDB URIs and environment variables
- Configuration validation
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "quadb"
DEFAULT_COLLECTION = "quads"
DEFAULT_HOST = "localhost"
ENV_PREFIX = "RDF_MONGO_"


class ConfigValidationError(Exception):
    """Configuration validation error."""
    pass


def split_uri(uri: str) -> Tuple[str, str, Optional[str]]:
    """
    Split ``mongodb://host:port/db/collection`` into its client URI, database
    and collection.

    The collection segment is removed from the returned URI, leaving ``/db``.
    Database defaults to ``quadb``; collection is None when absent.
    """
    parts = urlsplit(uri)
    segments = [s for s in parts.path.split("/") if s]
    database = segments[0] if segments else DEFAULT_DATABASE
    collection = segments[1] if len(segments) > 1 else None

    if collection is not None:
        uri = urlunsplit(parts._replace(path=f"/{database}"))
    return uri, database, collection


@dataclass
class MongoConfig:
    """
    Connection and layout configuration for a quad collection.

    Either ``uri`` or ``host``/``port`` identify the server. The URI, when
    given, takes precedence.
    """
    uri: Optional[str] = None
    host: Union[str, List[str]] = DEFAULT_HOST
    port: Optional[int] = None
    database: str = DEFAULT_DATABASE
    collection: str = DEFAULT_COLLECTION

    # Repository behavior
    with_validity: bool = True
    ensure_indexes: bool = True

    # Extra keyword arguments for pymongo.MongoClient
    client_options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "collection": self.collection,
            "with_validity": self.with_validity,
            "ensure_indexes": self.ensure_indexes,
            "client_options": self.client_options,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MongoConfig":
        collection = data.get("collection") or DEFAULT_COLLECTION
        if data.get("uri"):
            uri, database, uri_collection = split_uri(data["uri"])
            if not urlsplit(uri).path.strip("/"):
                database = data.get("database") or data.get("db") or DEFAULT_DATABASE
            return cls(
                uri=uri,
                database=database,
                collection=uri_collection or collection,
                with_validity=data.get("with_validity", True),
                ensure_indexes=data.get("ensure_indexes", True),
                client_options=dict(data.get("client_options") or {}),
            )
        return cls(
            host=data.get("host") or DEFAULT_HOST,
            port=data.get("port"),
            # "db" is accepted for older configuration files
            database=data.get("database") or data.get("db") or DEFAULT_DATABASE,
            collection=collection,
            with_validity=data.get("with_validity", True),
            ensure_indexes=data.get("ensure_indexes", True),
            client_options=dict(data.get("client_options") or {}),
        )

    @classmethod
    def from_uri(cls, uri: str, **options: Any) -> "MongoConfig":
        """
        Build a configuration from a URI of the form
        ``mongodb://host:port/db/collection``.

        Keyword options matching config fields (``collection``,
        ``with_validity``, ``ensure_indexes``) are applied; the rest go to the
        client.
        """
        data = {"uri": uri}
        for key in ("collection", "with_validity", "ensure_indexes"):
            if key in options:
                data[key] = options.pop(key)
        data["client_options"] = options
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "MongoConfig":
        """Load configuration from ``<prefix>URI``, ``<prefix>HOST`` and friends."""
        env = os.environ
        port = env.get(f"{prefix}PORT")
        try:
            port_value = int(port) if port else None
        except ValueError:
            raise ConfigValidationError(f"{prefix}PORT must be an integer, got {port!r}")

        return cls.from_dict({
            "uri": env.get(f"{prefix}URI"),
            "host": env.get(f"{prefix}HOST"),
            "port": port_value,
            "database": env.get(f"{prefix}DATABASE"),
            "collection": env.get(f"{prefix}COLLECTION"),
        })

    def client_target(self) -> Union[str, List[str]]:
        """Return the host argument for pymongo.MongoClient."""
        if self.uri:
            return self.uri
        hosts = [self.host] if isinstance(self.host, str) else list(self.host)
        if self.port:
            hosts = [f"{h}:{self.port}" for h in hosts]
        return hosts

    def validate(self) -> None:
        """Raise ConfigValidationError if the configuration is unusable."""
        errors = []
        if not self.database:
            errors.append("database name must not be empty")
        elif any(c in self.database for c in "/\\. \"$\x00"):
            errors.append(f"invalid database name: {self.database!r}")

        if not self.collection:
            errors.append("collection name must not be empty")
        elif "$" in self.collection or "\x00" in self.collection:
            errors.append(f"invalid collection name: {self.collection!r}")
        elif self.collection.startswith("system."):
            errors.append("collection name must not start with 'system.'")

        if self.port is not None and not (1 <= self.port <= 65535):
            errors.append(f"port out of range: {self.port}")

        if errors:
            raise ConfigValidationError("; ".join(errors))

    def save(self, path: Path) -> None:
        """Save configuration to ``config.json`` in the given directory."""
        config_file = Path(path) / "config.json"
        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "MongoConfig":
        """Load configuration from ``config.json``; defaults if it is missing."""
        config_file = Path(path) / "config.json"
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls.from_dict(data)
        logger.debug(f"No configuration at {config_file}, using defaults")
        return cls()
