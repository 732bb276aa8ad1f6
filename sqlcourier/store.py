"""ConfigStore: read-only lookup of databases, destinations, and tasks.

Definitions live as YAML mappings of ``name → record`` in the config
directory::

    databases.yaml     analytics: {host: db1, user: report, dbname: prod}
    destinations.yaml  ops-slack: {type: slack, channel: C0123, credential: {...}}
    tasks.yaml         daily-signups: {database: analytics, query: ..., destination: ops-slack}

Editing these files is someone else's job; this module only reads them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from sqlcourier.config import settings
from sqlcourier.errors import ConfigError
from sqlcourier.models import DatabaseConfig, Destination, Task

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DATABASES_FILE = "databases.yaml"
DESTINATIONS_FILE = "destinations.yaml"
TASKS_FILE = "tasks.yaml"

_M = TypeVar("_M", bound=BaseModel)


class ConfigStore:
    """Loads definition files lazily and serves lookups by name.

    Pass an explicit *config_dir* for test isolation (e.g. ``tmp_path``).
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        self._dir = config_dir or settings.config_dir
        self._cache: dict[str, dict[str, Any]] = {}

    # -- Internal helpers ------------------------------------------------------

    def _load(self, filename: str, model: type[_M]) -> dict[str, _M]:
        if filename in self._cache:
            return self._cache[filename]

        path = self._dir / filename
        if not path.exists():
            logger.debug("Definition file not found, treating as empty: %s", path)
            self._cache[filename] = {}
            return {}

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            msg = f"Failed to read {path}: {exc}"
            raise ConfigError(msg) from exc
        if not isinstance(raw, dict):
            msg = f"{path} must contain a mapping of name to definition"
            raise ConfigError(msg)

        records: dict[str, _M] = {}
        for name, body in raw.items():
            if not isinstance(body, dict | None):
                msg = f"Invalid definition '{name}' in {path}: expected a mapping"
                raise ConfigError(msg)
            try:
                records[str(name)] = model.model_validate({**(body or {}), "name": str(name)})
            except ValidationError as exc:
                msg = f"Invalid definition '{name}' in {path}: {exc}"
                raise ConfigError(msg) from exc

        logger.debug("Loaded %d definitions from %s", len(records), path)
        self._cache[filename] = records
        return records

    def _lookup(self, filename: str, model: type[_M], kind: str, name: str) -> _M:
        record = self._load(filename, model).get(name)
        if record is None:
            msg = f"{kind} not found: {name}"
            raise ConfigError(msg)
        return record

    # -- Lookups ---------------------------------------------------------------

    def get_database(self, name: str) -> DatabaseConfig:
        return self._lookup(DATABASES_FILE, DatabaseConfig, "database configuration", name)

    def get_destination(self, name: str) -> Destination:
        return self._lookup(DESTINATIONS_FILE, Destination, "destination", name)

    def get_task(self, name: str) -> Task:
        return self._lookup(TASKS_FILE, Task, "task", name)

    def list_tasks(self) -> list[Task]:
        """Return all tasks sorted by name."""
        tasks = self._load(TASKS_FILE, Task)
        return [tasks[name] for name in sorted(tasks)]
