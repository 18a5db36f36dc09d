"""
Filesystem schema repository - Implements SchemaRepository protocol.

Serves request schemas stored as YAML or JSON documents in one directory,
one request kind per file, named after the file stem:

    config/requests/login.yaml    -> "login"
    config/requests/profile.json  -> "profile"

Compiled schemas are cached with compute-or-fetch semantics: every name is
compiled at most once, even when concurrent requests ask for it at the same
time. Compilation failures are raised to the caller and never cached.
"""

import logging
import re
import threading
from pathlib import Path
from typing import Union

from payloadgate.domain.exceptions import SchemaError, SchemaNotFound
from payloadgate.domain.loader import load_file
from payloadgate.domain.schema import RequestSchema

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = (".yaml", ".yml", ".json")

_VALID_NAME = re.compile(r"[A-Za-z0-9_-]+")


class FileSchemaRepository:
    """
    Implements SchemaRepository protocol over a directory of schema files.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Safe to share between threads: cached schemas are immutable and the
    cache itself is only written under a lock.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        """
        Initialize repository for a schema directory.

        Args:
            directory: Directory holding the request schema files
        """
        self._directory = Path(directory)
        self._cache: dict[str, RequestSchema] = {}
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, name: str) -> RequestSchema:
        """
        Return the compiled schema for `name`, compiling it on first use.

        Raises:
            SchemaNotFound: If no schema file exists for the name
            SchemaError: If the schema file is malformed
        """
        schema = self._cache.get(name)
        if schema is not None:
            return schema

        with self._lock:
            # another thread may have compiled it while we waited
            schema = self._cache.get(name)
            if schema is not None:
                return schema

            path = self._resolve(name)
            try:
                schema = load_file(path)
            except SchemaError:
                logger.error("Failed to compile request schema %s from %s", name, path)
                raise

            self._cache[name] = schema
            logger.info("Loaded request schema %s from %s", name, path)
            return schema

    def names(self) -> list[str]:
        """List schema names available in the directory."""
        if not self._directory.is_dir():
            return []
        return sorted(
            {
                path.stem
                for path in self._directory.iterdir()
                if path.is_file()
                and path.suffix in SCHEMA_SUFFIXES
                and _VALID_NAME.fullmatch(path.stem)
            }
        )

    def load_all(self) -> list[RequestSchema]:
        """
        Compile every schema in the directory.

        Raises:
            SchemaError: On the first malformed schema file
        """
        schemas = [self.get(name) for name in self.names()]
        logger.info("Loaded %d request schema(s) from %s", len(schemas), self._directory)
        return schemas

    def _resolve(self, name: str) -> Path:
        if not _VALID_NAME.fullmatch(name):
            raise SchemaNotFound(name)
        for suffix in SCHEMA_SUFFIXES:
            path = self._directory / f"{name}{suffix}"
            if path.is_file():
                return path
        raise SchemaNotFound(name)
