__author__ = "Anatoly Khaytovich <anatolyuss@gmail.com>"
__copyright__ = "Copyright (C) 2015 - present, Anatoly Khaytovich <anatolyuss@gmail.com>"
__license__ = """
    This file is a part of "FromMySqlToPostgreSql" - the database migration tool.
    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.

    This program is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with this program (please see the "LICENSE.md" file).
    If not, see <http://www.gnu.org/licenses/gpl.txt>.
"""
import json
from enum import Enum
from typing import Any, Callable, Mapping, NamedTuple, Sequence


class ValueKind(Enum):
    NULL = 'null'
    BOOL = 'bool'
    NUMBER = 'number'
    STRING = 'string'
    OBJECT = 'object'


class RowValue(NamedTuple):
    kind: ValueKind
    payload: Any


NULL_VALUE = RowValue(ValueKind.NULL, None)


def classify_value(value: Any) -> RowValue:
    """
    Wraps a parsed JSON or CSV field into a tagged RowValue.
    """
    if value is None:
        return NULL_VALUE

    # bool is a subclass of int, hence must be checked first.
    if isinstance(value, bool):
        return RowValue(ValueKind.BOOL, value)

    if isinstance(value, (int, float)):
        return RowValue(ValueKind.NUMBER, value)

    if isinstance(value, str):
        return RowValue(ValueKind.STRING, value)

    if isinstance(value, (dict, list)):
        return RowValue(ValueKind.OBJECT, value)

    raise TypeError(f'Unsupported value type: {type(value).__name__}')


def quote_literal(text: str) -> str:
    """
    Returns SQL string literal, every embedded single quote is doubled.
    """
    return "'" + text.replace("'", "''") + "'"


def quote_identifier(name: str) -> str:
    """
    Returns quoted SQL identifier, exact case preserved.
    """
    return '"' + name.replace('"', '""') + '"'


def _render_null(_: None) -> str:
    return 'NULL'


def _render_bool(payload: bool) -> str:
    return "'true'" if payload else "'false'"


def _render_number(payload: Any) -> str:
    return quote_literal(str(payload))


def _render_string(payload: str) -> str:
    return quote_literal(payload)


def _render_object(payload: Any) -> str:
    return quote_literal(json.dumps(payload, ensure_ascii=False, separators=(',', ':')))


_RENDERERS: dict[ValueKind, Callable[[Any], str]] = {
    ValueKind.NULL: _render_null,
    ValueKind.BOOL: _render_bool,
    ValueKind.NUMBER: _render_number,
    ValueKind.STRING: _render_string,
    ValueKind.OBJECT: _render_object,
}


def to_sql_literal(value: RowValue) -> str:
    """
    Renders given value as SQL literal.
    """
    return _RENDERERS[value.kind](value.payload)


def serialize_row(row: Mapping[str, Any], columns: Sequence[str]) -> str:
    """
    Renders a row as a parenthesized list of SQL literals, following given column order.
    Absent fields are rendered as NULL.
    """
    return '(' + ', '.join(to_sql_literal(classify_value(row.get(column))) for column in columns) + ')'
