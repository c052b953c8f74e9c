from leapsql.template_globals import build_config_dict, config_to_value, predeclared
from leapsql.values import TargetInfo, ThisInfo, format_value


def test_build_config_dict():
    config = build_config_dict(
        "my_model",
        "incremental",
        "id",
        "data-team",
        "analytics",
        ["finance", "metrics"],
        {"priority": "high"},
    )
    assert config["name"] == "my_model"
    assert config["materialized"] == "incremental"
    assert config["unique_key"] == "id"
    assert config["owner"] == "data-team"
    assert config["schema"] == "analytics"
    assert config["tags"] == ["finance", "metrics"]
    assert config["meta"] == {"priority": "high"}
    assert format_value(config["meta"]["priority"]) == '"high"'


def test_build_config_dict_empty():
    assert build_config_dict("", "", "", "", "", None, None) == {}


def test_build_config_dict_drops_unsupported_meta():
    config = build_config_dict("m", "", "", "", "", [], {"bad": object()})
    assert config == {"name": "m"}


def test_config_to_value_none():
    assert config_to_value(None) == {}


def test_config_to_value_mapping():
    assert config_to_value({"name": "x", "tags": ("a",)}) == {
        "name": "x",
        "tags": ["a"],
    }


def test_predeclared():
    config = {"name": "test"}
    target = TargetInfo(type="duckdb", schema="main", database="test.db")
    this = ThisInfo(name="my_model", schema="analytics")
    globals_ = predeclared(config, "dev", target, this)
    assert globals_["config"] == {"name": "test"}
    assert format_value(globals_["env"]) == '"dev"'
    assert globals_["target"].schema == "main"
    assert globals_["this"].name == "my_model"


def test_predeclared_without_target_and_this():
    globals_ = predeclared({}, "prod", None, None)
    assert set(globals_) == {"config", "env"}
    assert globals_["env"] == "prod"