"""YAML frontmatter parsing for SQL model files.

Frontmatter is a ``/*--- ... ---*/`` block at the top of a model file.
Unknown top-level fields are rejected; custom data belongs under ``meta``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from leapsql.values import format_value

_WS = "[ \\t\\n\\f\\r]"
_FRONTMATTER = re.compile(
    rf"^{_WS}*/\*---{_WS}*\n(.*?){_WS}*---\*/",
    re.DOTALL,
)

_KNOWN_FIELDS = frozenset(
    {
        "name",
        "description",
        "materialized",
        "unique_key",
        "owner",
        "schema",
        "tags",
        "tests",
        "meta",
    }
)

_MATERIALIZATIONS = ("table", "view", "incremental")

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _Loader(yaml.SafeLoader):
    """Safe loader that keeps timestamps as plain strings."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class _DecodeError(ValueError):
    pass


@dataclass
class AcceptedValuesConfig:
    """An accepted-values check on one column."""

    column: str = ""
    values: list[str] = field(default_factory=list)


@dataclass
class TestConfig:
    """A data test declared in frontmatter."""

    __test__ = False

    unique: list[str] = field(default_factory=list)
    not_null: list[str] = field(default_factory=list)
    accepted_values: AcceptedValuesConfig | None = None


@dataclass
class FrontmatterConfig:
    """Parsed frontmatter settings."""

    name: str = ""
    description: str = ""
    materialized: str = ""
    unique_key: str = ""
    owner: str = ""
    schema: str = ""
    tags: list[str] = field(default_factory=list)
    tests: list[TestConfig] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    def apply_defaults(self, filename: str, dir_path: str) -> None:
        """Fill in name, materialization and schema from the file's location."""
        if not self.name:
            self.name = filename.removesuffix(".sql")
        if not self.materialized:
            self.materialized = "table"
        if not self.schema and dir_path:
            self.schema = dir_path


@dataclass
class FrontmatterResult:
    """The frontmatter found in a file and the SQL that follows it."""

    config: FrontmatterConfig
    sql: str
    has_yaml: bool


class FrontmatterParseError(ValueError):
    """Frontmatter that is not valid YAML or holds invalid values."""

    def __init__(self, message: str, file: str = "", line: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.file = file
        self.line = line

    def __str__(self) -> str:
        if self.file:
            if self.line > 0:
                return f"{self.file}:{self.line}: {self.message}"
            return f"{self.file}: {self.message}"
        return self.message


class UnknownFieldError(ValueError):
    """A top-level frontmatter field that is not recognised."""

    def __init__(self, field: str, file: str = "") -> None:
        super().__init__(field)
        self.field = field
        self.file = file

    def __str__(self) -> str:
        message = (
            f"unknown field {format_value(self.field)} in frontmatter, "
            'use "meta" field for custom fields'
        )
        if self.file:
            return f"{self.file}: {message}"
        return message


def extract_frontmatter(content: str) -> FrontmatterResult:
    """Split SQL content into its frontmatter config and the remaining SQL."""
    match = _FRONTMATTER.search(content)
    if match is None:
        return FrontmatterResult(config=FrontmatterConfig(), sql=content, has_yaml=False)
    sql = _FRONTMATTER.sub("", content, count=1).strip()
    config = _parse_yaml(match.group(1))
    return FrontmatterResult(config=config, sql=sql, has_yaml=True)


def _parse_yaml(text: str) -> FrontmatterConfig:
    try:
        raw = yaml.load(text, Loader=_Loader)
    except yaml.YAMLError as exc:
        raise FrontmatterParseError(f"invalid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise FrontmatterParseError(
            f"invalid YAML: expected a mapping, got {type(raw).__name__}"
        )

    fields = {str(key): value for key, value in raw.items()}
    for key in fields:
        if key not in _KNOWN_FIELDS:
            raise UnknownFieldError(key)

    try:
        config = FrontmatterConfig(
            name=_string(fields.get("name"), "name"),
            description=_string(fields.get("description"), "description"),
            materialized=_string(fields.get("materialized"), "materialized"),
            unique_key=_string(fields.get("unique_key"), "unique_key"),
            owner=_string(fields.get("owner"), "owner"),
            schema=_string(fields.get("schema"), "schema"),
            tags=_string_list(fields.get("tags"), "tags"),
            tests=_tests(fields.get("tests")),
            meta=_meta(fields.get("meta")),
        )
    except _DecodeError as exc:
        raise FrontmatterParseError(f"failed to parse frontmatter: {exc}") from exc

    if config.materialized and config.materialized not in _MATERIALIZATIONS:
        raise FrontmatterParseError(
            f"invalid materialized value: {format_value(config.materialized)}, "
            "must be one of: table, view, incremental"
        )
    return config


def _string(value: Any, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise _DecodeError(f"{where}: expected a string, got {type(value).__name__}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _string_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _DecodeError(f"{where}: expected a list, got {type(value).__name__}")
    return [_string(item, f"{where}[{index}]") for index, item in enumerate(value)]


def _tests(value: Any) -> list[TestConfig]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _DecodeError(f"tests: expected a list, got {type(value).__name__}")
    return [_test_config(item, f"tests[{index}]") for index, item in enumerate(value)]


def _test_config(item: Any, where: str) -> TestConfig:
    if item is None:
        return TestConfig()
    if not isinstance(item, dict):
        raise _DecodeError(f"{where}: expected a mapping, got {type(item).__name__}")
    accepted = item.get("accepted_values")
    if accepted is None:
        accepted_values = None
    elif isinstance(accepted, dict):
        accepted_values = AcceptedValuesConfig(
            column=_string(accepted.get("column"), f"{where}.accepted_values.column"),
            values=_string_list(
                accepted.get("values"), f"{where}.accepted_values.values"
            ),
        )
    else:
        raise _DecodeError(
            f"{where}.accepted_values: expected a mapping, "
            f"got {type(accepted).__name__}"
        )
    return TestConfig(
        unique=_string_list(item.get("unique"), f"{where}.unique"),
        not_null=_string_list(item.get("not_null"), f"{where}.not_null"),
        accepted_values=accepted_values,
    )


def _meta(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _DecodeError(f"meta: expected a mapping, got {type(value).__name__}")
    return {str(key): item for key, item in value.items()}