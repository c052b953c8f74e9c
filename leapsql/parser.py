"""Parsing of SQL model files: frontmatter, legacy pragmas and conditionals.

A model file may start with a ``/*--- ... ---*/`` YAML frontmatter block and
may carry line pragmas:

* ``-- @config(materialized='view', unique_key='id')`` overrides settings,
* ``-- @import(staging.orders, staging.customers)`` declares dependencies,
* ``-- #if <condition>`` ... ``-- #endif`` marks environment-specific SQL.

Pragma lines and conditional blocks are removed from the model's SQL.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from leapsql.frontmatter import TestConfig, extract_frontmatter

_WS = "[ \\t\\n\\f\\r]"

_CONFIG = re.compile(rf"--{_WS}*@config{_WS}*\({_WS}*(.+?){_WS}*\)")
_IMPORT = re.compile(rf"--{_WS}*@import{_WS}*\({_WS}*([^)]+){_WS}*\)")
_IF = re.compile(rf"--{_WS}*#if{_WS}+(.+)")
_ENDIF = re.compile(rf"--{_WS}*#endif")
_KEY_VALUE = re.compile(rf"(\w+){_WS}*={_WS}*'([^']*)'", re.ASCII)
_REF = re.compile(rf"ref{_WS}*\({_WS}*['\"]([^'\"]+)['\"]{_WS}*\)")


@dataclass
class Conditional:
    """An ``#if`` block: its condition and the SQL lines it guards."""

    condition: str = ""
    content: str = ""


@dataclass
class SourceRef:
    """A source column that a model column is derived from."""

    table: str = ""
    column: str = ""


@dataclass
class ColumnInfo:
    """Lineage of one output column of a model."""

    name: str = ""
    index: int = 0
    transform_type: str = ""
    function: str = ""
    sources: list[SourceRef] = field(default_factory=list)


@dataclass
class ModelConfig:
    """Everything known about one SQL model file."""

    path: str = ""
    name: str = ""
    file_path: str = ""
    materialized: str = "table"
    unique_key: str = ""
    owner: str = ""
    schema: str = ""
    tags: list[str] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)
    tests: list[TestConfig] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    columns: list[ColumnInfo] = field(default_factory=list)
    sql: str = ""
    raw_content: str = ""
    conditionals: list[Conditional] = field(default_factory=list)
    has_frontmatter: bool = False


@dataclass
class Parser:
    """Parses model files found below ``base_dir``."""

    base_dir: str

    def parse_file(self, file_path: str | os.PathLike[str]) -> ModelConfig:
        """Read and parse one model file."""
        path = os.fspath(file_path)
        content = Path(path).read_text(encoding="utf-8")
        return self.parse_content(path, content)

    def parse_content(self, file_path: str, content: str) -> ModelConfig:
        """Parse model content that belongs to ``file_path``."""
        config = ModelConfig(
            file_path=file_path,
            raw_content=content,
            name=os.path.basename(file_path).removesuffix(".sql"),
            path=self.model_path(file_path),
        )

        frontmatter = extract_frontmatter(content)
        config.has_frontmatter = frontmatter.has_yaml
        if frontmatter.has_yaml:
            fc = frontmatter.config
            if fc.name:
                config.name = fc.name
            if fc.materialized:
                config.materialized = fc.materialized
            if fc.unique_key:
                config.unique_key = fc.unique_key
            config.owner = fc.owner
            if fc.schema:
                config.schema = fc.schema
            if fc.tags:
                config.tags = list(fc.tags)
            config.meta = fc.meta
            if fc.tests:
                config.tests = list(fc.tests)

        sql_lines: list[str] = []
        current: Conditional | None = None

        for line in _lines(frontmatter.sql):
            match = _CONFIG.search(line)
            if match:
                _apply_config(match.group(1), config)
                continue

            match = _IMPORT.search(line)
            if match:
                config.imports.extend(
                    name for name in (part.strip() for part in match.group(1).split(","))
                    if name
                )
                continue

            match = _IF.search(line)
            if match:
                current = Conditional(condition=match.group(1).strip())
                continue

            if _ENDIF.search(line):
                if current is not None:
                    config.conditionals.append(current)
                    current = None
                continue

            if current is not None:
                current.content += line + "\n"
                continue

            sql_lines.append(line)

        config.sql = "\n".join(sql_lines).strip()
        return config

    def model_path(self, file_path: str) -> str:
        """Turn a file path into a dotted model path relative to ``base_dir``.

        ``/base/staging/customers.sql`` becomes ``staging.customers``.
        """
        fallback = os.path.basename(file_path).removesuffix(".sql")
        if os.path.isabs(self.base_dir) != os.path.isabs(file_path):
            return fallback
        try:
            relative = os.path.relpath(file_path, self.base_dir)
        except ValueError:
            return fallback
        return ".".join(relative.removesuffix(".sql").split(os.sep))


class Scanner:
    """Finds and parses every model file in a directory tree."""

    def __init__(self, base_dir: str) -> None:
        self.parser = Parser(base_dir)

    def scan_dir(self, directory: str | os.PathLike[str]) -> list[ModelConfig]:
        """Parse all non-hidden ``.sql`` files below ``directory``, in name order."""
        models = []
        for path in _walk(os.fspath(directory)):
            name = os.path.basename(path)
            if not name.endswith(".sql") or name.startswith("."):
                continue
            models.append(self.parser.parse_file(path))
        return models


def extract_references(sql: str) -> list[str]:
    """Return the distinct model paths named in ``ref('...')`` calls, in order."""
    return list(dict.fromkeys(_REF.findall(sql)))


def _apply_config(text: str, config: ModelConfig) -> None:
    for key, value in _KEY_VALUE.findall(text):
        key = key.lower()
        if key == "materialized":
            config.materialized = value
        elif key == "unique_key":
            config.unique_key = value


def _lines(text: str) -> Iterator[str]:
    if not text:
        return
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    for part in parts:
        yield part.removesuffix("\r")


def _walk(path: str) -> Iterator[str]:
    """Yield file paths below ``path`` in lexical order, without following links."""
    if not os.path.isdir(path) or os.path.islink(path):
        os.lstat(path)
        yield path
        return
    with os.scandir(path) as entries:
        children = sorted(entries, key=lambda entry: entry.name)
    for entry in children:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(entry.path)
        else:
            yield entry.path