"""Model registration and table-name resolution.

Table names referenced in SQL are mapped to the model paths that produce
them, so dependencies can be found without explicit ``@import`` pragmas.
"""

from __future__ import annotations

import threading
from typing import Iterable

from leapsql.parser import ModelConfig


class ModelRegistry:
    """Maps table names to model paths for dependency resolution."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        # "staging.stg_customers" -> model
        self._by_path: dict[str, ModelConfig] = {}
        # "stg_customers" -> "staging.stg_customers"; the last registration wins
        self._by_name: dict[str, str] = {}
        # table-name variants -> model path
        self._by_table: dict[str, str] = {}
        self._external_sources: set[str] = set()

    def register(self, model: ModelConfig) -> None:
        """Add a model under its path, its name and its table-name variants."""
        with self._lock:
            self._by_path[model.path] = model
            self._by_name[model.name] = model.path
            self._by_table[model.path] = model.path
            _, dot, rest = model.path.partition(".")
            if dot:
                self._by_table[rest] = model.path
                self._by_table[model.name] = model.path

    def register_external_source(self, table_name: str) -> None:
        """Mark a table name as an external source rather than a model."""
        with self._lock:
            self._external_sources.add(table_name)

    def resolve(self, table_name: str) -> str | None:
        """Return the model path that ``table_name`` refers to, or None."""
        with self._lock:
            if table_name in self._by_path:
                return table_name
            if table_name in self._by_table:
                return self._by_table[table_name]
            if table_name in self._by_name:
                return self._by_name[table_name]
            if "." in table_name:
                just_name = table_name.rsplit(".", 1)[1]
                if just_name in self._by_name:
                    return self._by_name[just_name]
                if just_name in self._by_table:
                    return self._by_table[just_name]
            return None

    def is_external_source(self, table_name: str) -> bool:
        """Whether the table name was registered as an external source."""
        with self._lock:
            return table_name in self._external_sources

    def get_model(self, path: str) -> ModelConfig | None:
        """Return the model registered under ``path``, or None."""
        with self._lock:
            return self._by_path.get(path)

    def all_models(self) -> list[ModelConfig]:
        """Return every registered model."""
        with self._lock:
            return list(self._by_path.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_path)

    def resolve_dependencies(
        self, table_names: Iterable[str]
    ) -> tuple[list[str], list[str]]:
        """Split table names into model dependencies and external sources.

        Dependencies are deduplicated by resolved model path, external
        sources by their original table name; first-seen order is kept.
        """
        dependencies: dict[str, None] = {}
        external: dict[str, None] = {}
        for table_name in table_names:
            model_path = self.resolve(table_name)
            if model_path is not None:
                dependencies.setdefault(model_path, None)
            else:
                external.setdefault(table_name, None)
        return list(dependencies), list(external)