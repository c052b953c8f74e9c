import pytest

from leapsql.values import (
    Struct,
    TargetInfo,
    ThisInfo,
    format_value,
    from_value,
    to_value,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("hello", '"hello"'),
        (42, "42"),
        (123456789, "123456789"),
        (3.14, "3.14"),
        (True, "True"),
        (False, "False"),
        (None, "None"),
        (["a", "b", "c"], '["a", "b", "c"]'),
        ([], "[]"),
        (["x", 1, True], '["x", 1, True]'),
        ({"key": "value"}, '{"key": "value"}'),
    ],
)
def test_to_value_renders(value, expected):
    assert format_value(to_value(value)) == expected


def test_to_value_converts_tuple_to_list():
    assert to_value(("a", 1)) == ["a", 1]


def test_to_value_nested():
    assert to_value({"a": [1, {"b": None}]}) == {"a": [1, {"b": None}]}


def test_to_value_unsupported_type():
    with pytest.raises(TypeError, match="unsupported type"):
        to_value(object())


def test_to_value_unsupported_nested_reports_index():
    with pytest.raises(TypeError, match="list index 1"):
        to_value(["ok", object()])


def test_to_value_non_string_key():
    with pytest.raises(TypeError, match="dict key must be string"):
        to_value({1: "x"})


@pytest.mark.parametrize(
    "value, expected",
    [
        ("hello", "hello"),
        (42, 42),
        (3.14, 3.14),
        (True, True),
        (False, False),
        (None, None),
    ],
)
def test_from_value_scalars(value, expected):
    result = from_value(value)
    assert result == expected
    assert type(result) is type(expected)


def test_from_value_big_int_becomes_string():
    assert from_value(2**70) == str(2**70)


def test_from_value_tuple_becomes_list():
    assert from_value((1, "a")) == [1, "a"]


def test_from_value_dict():
    assert from_value({"a": [1, 2], "b": {"c": None}}) == {
        "a": [1, 2],
        "b": {"c": None},
    }


def test_from_value_dict_non_string_key():
    with pytest.raises(TypeError, match="dict key must be string"):
        from_value({1: "x"})


def test_from_value_struct_renders_text():
    assert from_value(Struct("this", name="a")) == 'this(name = "a")'


@pytest.mark.parametrize(
    "number, expected",
    [
        (100.0, "100.0"),
        (0.0001, "0.0001"),
        (1e-05, "1e-05"),
        (1e6, "1e+06"),
        (-2.5, "-2.5"),
        (0.0, "0.0"),
        (float("nan"), "nan"),
        (float("inf"), "+inf"),
        (float("-inf"), "-inf"),
    ],
)
def test_format_float(number, expected):
    assert format_value(number) == expected


def test_format_string_escapes():
    assert format_value('a"b\n') == '"a\\"b\\n"'


def test_format_tuple():
    assert format_value((1,)) == "(1,)"
    assert format_value((1, 2)) == "(1, 2)"


def test_target_info_to_struct():
    target = TargetInfo(type="duckdb", schema="analytics", database="mydb")
    value = target.to_struct()
    assert value.type == "duckdb"
    assert value.schema == "analytics"
    assert value.database == "mydb"
    assert (
        format_value(value)
        == 'target(database = "mydb", schema = "analytics", type = "duckdb")'
    )


def test_this_info_to_struct():
    this = ThisInfo(name="monthly_revenue", schema="analytics")
    value = this.to_struct()
    assert value.name == "monthly_revenue"
    assert value.schema == "analytics"
    assert format_value(value) == 'this(name = "monthly_revenue", schema = "analytics")'


def test_struct_missing_attribute():
    with pytest.raises(AttributeError, match="no .missing attribute"):
        Struct("target", type="x").missing


def test_struct_is_immutable():
    value = Struct("this", name="a")
    with pytest.raises(AttributeError):
        value.name = "b"
    assert value.name == "a"


def test_struct_equality_and_dir():
    assert Struct("s", a=1, b=2) == Struct("s", b=2, a=1)
    assert Struct("s", a=1) != Struct("t", a=1)
    assert sorted(dir(Struct("s", b=1, a=2))) == ["a", "b"]