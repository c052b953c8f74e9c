"""Builtin globals available to template expressions."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from leapsql.values import TargetInfo, ThisInfo, to_value


def config_to_value(config: Mapping[str, Any] | None) -> Any:
    """Convert a frontmatter config mapping into the ``config`` global."""
    if config is None:
        return {}
    return to_value(dict(config))


def build_config_dict(
    name: str,
    materialized: str,
    unique_key: str,
    owner: str,
    schema: str,
    tags: Sequence[str] | None,
    meta: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Build the ``config`` global from individual fields, omitting empty ones.

    A ``meta`` mapping that holds unsupported values is left out.
    """
    config: dict[str, Any] = {}
    for key, text in (
        ("name", name),
        ("materialized", materialized),
        ("unique_key", unique_key),
        ("owner", owner),
        ("schema", schema),
    ):
        if text:
            config[key] = text
    if tags:
        config["tags"] = [str(tag) for tag in tags]
    if meta:
        try:
            config["meta"] = to_value(dict(meta))
        except TypeError:
            pass
    return config


def predeclared(
    config: Any,
    env: str,
    target: TargetInfo | None,
    this: ThisInfo | None,
) -> dict[str, Any]:
    """Return the builtin globals: config, env and, when given, target and this."""
    result: dict[str, Any] = {"config": config, "env": env}
    if target is not None:
        result["target"] = target.to_struct()
    if this is not None:
        result["this"] = this.to_struct()
    return result