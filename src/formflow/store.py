"""SchemaStore: loads form schemas from ``forms/`` into typed models.

The store is loaded once at startup and serves schemas by name.  YAML
(``*.yaml`` / ``*.yml``) and JSON (``*.json``) files share the wire shape
documented in :mod:`formflow.models.schema`.

Usage::

    store = SchemaStore()           # defaults to forms/ relative to repo root
    store.load()                    # parse every schema file

    schema = store.active()         # the configured / only schema
    schema = store.get("wheelchair_application")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from formflow.errors import SchemaError
from formflow.models.schema import FormSchema, parse_schema

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = (".yaml", ".yml", ".json")


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to the dir holding pyproject.toml or .git.

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_schema_file(path: Path | str) -> Any:
    """Read one YAML or JSON schema file and return the raw data."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing schema file: {path}")
    with path.open("r", encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# SchemaStore
# ---------------------------------------------------------------------------

class SchemaStore:
    """Loads every schema file in a directory and provides lookup by name.

    Args:
        forms_dir: directory to scan; defaults to ``<repo root>/forms``
        active_form: name of the schema :meth:`active` returns
    """

    def __init__(
        self,
        forms_dir: str | Path | None = None,
        active_form: str | None = None,
    ) -> None:
        if forms_dir is None:
            forms_dir = find_repo_root() / "forms"
        self._base = Path(forms_dir)
        self._active_name = active_form

        # Populated by load(); keyed by FormSchema.name
        self.schemas: dict[str, FormSchema] = {}

    @property
    def forms_dir(self) -> Path:
        return self._base

    def load(self) -> None:
        """Parse all schema files.

        Raises:
            FileNotFoundError: the forms directory does not exist
            SchemaError: a file is malformed or two files share a name
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Forms directory not found: {self._base}")

        self.schemas = {}
        for path in sorted(self._base.iterdir()):
            if path.suffix not in SCHEMA_SUFFIXES:
                continue
            try:
                schema = parse_schema(load_schema_file(path))
            except SchemaError as exc:
                raise SchemaError(f"{path.name}: {exc}") from exc
            if schema.name in self.schemas:
                raise SchemaError(f"{path.name}: schema '{schema.name}' already loaded")
            self.schemas[schema.name] = schema

        logger.info(
            "SchemaStore loaded %d schema(s) from %s: %s",
            len(self.schemas), self._base, sorted(self.schemas),
        )

    def add(self, schema: FormSchema) -> None:
        """Register a schema built in code (tests, embedded forms)."""
        self.schemas[schema.name] = schema

    def get(self, name: str) -> FormSchema:
        """Return the schema called ``name``.

        Raises:
            KeyError: unknown schema name
        """
        try:
            return self.schemas[name]
        except KeyError:
            raise KeyError(f"Schema not found: {name}")

    def active(self) -> FormSchema:
        """Return the active schema.

        The configured ``active_form`` wins; otherwise the store must hold
        exactly one schema.

        Raises:
            KeyError: no schema can be chosen
        """
        if self._active_name:
            return self.get(self._active_name)
        if len(self.schemas) == 1:
            return next(iter(self.schemas.values()))
        raise KeyError(
            f"Active schema not found: {len(self.schemas)} schemas loaded and no active_form set"
        )
