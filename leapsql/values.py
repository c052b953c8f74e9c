"""Template values: plain Python data plus attribute-access structs.

Template expressions work with strings, integers, floats, booleans, ``None``,
lists, dicts and :class:`Struct` objects. This module converts arbitrary data
into that value set and back, and renders values the way template output
expects them to look.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}

_INTERNAL_SLOTS = frozenset({"_constructor", "_fields"})


class Struct:
    """An immutable record whose fields are read as attributes."""

    __slots__ = ("_constructor", "_fields")

    def __init__(self, constructor: str = "struct", /, **fields: Any) -> None:
        object.__setattr__(self, "_constructor", constructor)
        object.__setattr__(self, "_fields", dict(sorted(fields.items())))

    def __getattr__(self, name: str) -> Any:
        if name in _INTERNAL_SLOTS or (name.startswith("__") and name.endswith("__")):
            raise AttributeError(name)
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(
                f"{self._constructor} struct has no .{name} attribute"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set .{name}: struct is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete .{name}: struct is immutable")

    def __dir__(self) -> list[str]:
        return list(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Struct):
            return NotImplemented
        return (
            self._constructor == other._constructor and self._fields == other._fields
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return format_value(self)


@dataclass
class TargetInfo:
    """Database target exposed to templates as ``target``."""

    type: str = ""
    schema: str = ""
    database: str = ""

    def to_struct(self) -> Struct:
        return Struct(
            "target", type=self.type, schema=self.schema, database=self.database
        )


@dataclass
class ThisInfo:
    """Current model exposed to templates as ``this``."""

    name: str = ""
    schema: str = ""

    def to_struct(self) -> Struct:
        return Struct("this", name=self.name, schema=self.schema)


def to_value(value: Any) -> Any:
    """Convert plain data into template values, rejecting unsupported types."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        items = []
        for index, item in enumerate(value):
            try:
                items.append(to_value(item))
            except TypeError as exc:
                raise TypeError(f"list index {index}: {exc}") from exc
        return items
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"dict key must be string, got {type(key).__name__}")
            try:
                result[key] = to_value(item)
            except TypeError as exc:
                raise TypeError(f"dict key {_quote(key)}: {exc}") from exc
        return result
    raise TypeError(f"unsupported type: {type(value).__name__}")


def from_value(value: Any) -> Any:
    """Convert a template value back into plain data.

    Integers outside the signed 64-bit range come back as their decimal
    string; values of other kinds come back as their rendered text.
    """
    if value is None or isinstance(value, (str, bool, float)):
        return value
    if isinstance(value, int):
        if _INT64_MIN <= value <= _INT64_MAX:
            return value
        return str(value)
    if isinstance(value, (list, tuple)):
        kind = "list" if isinstance(value, list) else "tuple"
        items = []
        for index, item in enumerate(value):
            try:
                items.append(from_value(item))
            except TypeError as exc:
                raise TypeError(f"{kind} index {index}: {exc}") from exc
        return items
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"dict key must be string, got {type(key).__name__}")
            try:
                result[key] = from_value(item)
            except TypeError as exc:
                raise TypeError(f"dict key {_quote(key)}: {exc}") from exc
        return result
    return format_value(value)


def format_value(value: Any) -> str:
    """Render a value in template-language notation."""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, tuple):
        if len(value) == 1:
            return "(" + format_value(value[0]) + ",)"
        return "(" + ", ".join(format_value(item) for item in value) + ")"
    if isinstance(value, dict):
        entries = (
            f"{format_value(key)}: {format_value(item)}" for key, item in value.items()
        )
        return "{" + ", ".join(entries) + "}"
    if isinstance(value, Struct):
        entries = (
            f"{name} = {format_value(item)}" for name, item in value._fields.items()
        )
        return f"{value._constructor}(" + ", ".join(entries) + ")"
    return str(value)


def _quote(text: str) -> str:
    parts = []
    for ch in text:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        elif ord(ch) < 0x80:
            parts.append(f"\\x{ord(ch):02x}")
        elif ord(ch) < 0x10000:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(f"\\U{ord(ch):08x}")
    return '"' + "".join(parts) + '"'


def _format_float(number: float) -> str:
    if math.isnan(number):
        return "nan"
    if math.isinf(number):
        return "+inf" if number > 0 else "-inf"
    sign = "-" if math.copysign(1.0, number) < 0 else ""
    if number == 0:
        return sign + "0.0"
    normalized = Decimal(repr(abs(number))).normalize()
    _, digit_tuple, exponent = normalized.as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    count = len(digits)
    point = count + exponent
    exp = point - 1
    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if count > 1 else "")
        exp_sign = "-" if exp < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp):02d}"
    if point <= 0:
        text = "0." + "0" * (-point) + digits
    elif point >= count:
        text = digits + "0" * (point - count) + ".0"
    else:
        text = digits[:point] + "." + digits[point:]
    return sign + text