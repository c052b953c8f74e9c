import pytest

from leapsql.parser import ModelConfig
from leapsql.registry import ModelRegistry


@pytest.fixture
def registry():
    r = ModelRegistry()
    r.register(ModelConfig(path="staging.stg_customers", name="stg_customers"))
    r.register(ModelConfig(path="staging.stg_orders", name="stg_orders"))
    r.register(ModelConfig(path="marts.customer_summary", name="customer_summary"))
    return r


def test_register():
    r = ModelRegistry()
    model = ModelConfig(path="staging.stg_customers", name="stg_customers")
    r.register(model)
    assert len(r) == 1
    assert r.get_model("staging.stg_customers") is model


def test_get_model_missing():
    r = ModelRegistry()
    assert r.get_model("staging.nothing") is None


@pytest.mark.parametrize(
    "table_name, expected",
    [
        ("staging.stg_customers", "staging.stg_customers"),
        ("stg_customers", "staging.stg_customers"),
        ("public.stg_customers", "staging.stg_customers"),
        ("raw_customers", None),
        ("other.unknown_table", None),
    ],
)
def test_resolve(registry, table_name, expected):
    assert registry.resolve(table_name) == expected


def test_resolve_deeply_qualified(registry):
    assert registry.resolve("db.public.customer_summary") == "marts.customer_summary"


def test_resolve_unqualified_model_path():
    r = ModelRegistry()
    r.register(ModelConfig(path="users", name="users"))
    assert r.resolve("users") == "users"
    assert r.resolve("analytics.users") == "users"


def test_resolve_dependencies():
    r = ModelRegistry()
    r.register(ModelConfig(path="staging.stg_customers", name="stg_customers"))
    r.register(ModelConfig(path="staging.stg_orders", name="stg_orders"))

    deps, external = r.resolve_dependencies(
        ["staging.stg_customers", "staging.stg_orders", "raw_customers", "raw_orders"]
    )
    assert deps == ["staging.stg_customers", "staging.stg_orders"]
    assert external == ["raw_customers", "raw_orders"]


def test_resolve_dependencies_empty():
    r = ModelRegistry()
    assert r.resolve_dependencies([]) == ([], [])


def test_external_sources():
    r = ModelRegistry()
    r.register_external_source("raw_customers")
    r.register_external_source("raw_orders")
    assert r.is_external_source("raw_customers") is True
    assert r.is_external_source("raw_orders") is True
    assert r.is_external_source("stg_customers") is False


def test_all_models():
    r = ModelRegistry()
    first = ModelConfig(path="staging.stg_customers", name="stg_customers")
    second = ModelConfig(path="staging.stg_orders", name="stg_orders")
    r.register(first)
    r.register(second)
    models = r.all_models()
    assert len(models) == 2
    assert {m.path for m in models} == {"staging.stg_customers", "staging.stg_orders"}


def test_register_same_path_replaces():
    r = ModelRegistry()
    r.register(ModelConfig(path="staging.a", name="a"))
    replacement = ModelConfig(path="staging.a", name="a", materialized="view")
    r.register(replacement)
    assert len(r) == 1
    assert r.get_model("staging.a") is replacement


def test_deduplication():
    r = ModelRegistry()
    r.register(ModelConfig(path="staging.stg_customers", name="stg_customers"))

    deps, external = r.resolve_dependencies(
        [
            "staging.stg_customers",
            "stg_customers",
            "staging.stg_customers",
            "raw_customers",
            "raw_customers",
        ]
    )
    assert deps == ["staging.stg_customers"]
    assert external == ["raw_customers"]