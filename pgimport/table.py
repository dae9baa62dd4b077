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
from enum import Enum
from typing import NamedTuple, Optional


class KeyRole(Enum):
    NONE = 'none'
    PRIMARY = 'primary'
    FOREIGN = 'foreign'


class TableImportState(Enum):
    PENDING = 'pending'
    VALIDATING = 'validating'
    IMPORTING = 'importing'
    DONE = 'done'
    SKIPPED = 'skipped'
    FAILED = 'failed'


class ForeignKeyEdge(NamedTuple):
    table_name: str
    column_name: str
    referenced_table_name: str
    referenced_column_name: str


class Column:
    name: str
    data_type: str
    is_nullable: bool
    default: Optional[str]
    key_role: KeyRole

    __slots__ = ('name', 'data_type', 'is_nullable', 'default', 'key_role')

    def __init__(
        self,
        name: str,
        data_type: str,
        is_nullable: bool = True,
        default: Optional[str] = None,
        key_role: KeyRole = KeyRole.NONE
    ):
        self.name = name
        self.data_type = data_type
        self.is_nullable = is_nullable
        self.default = default
        self.key_role = key_role

    def __repr__(self) -> str:
        return f'Column({self.name!r}, {self.data_type!r})'


class Table:
    name: str
    table_log_path: str
    columns: list[Column]
    rows_cnt: Optional[int]
    state: TableImportState
    inserted_rows: int
    skipped_rows: int
    error: Optional[Exception]

    __slots__ = (
        'name', 'table_log_path', 'columns', 'rows_cnt', 'state', 'inserted_rows', 'skipped_rows', 'error',
    )

    def __init__(self, name: str, table_log_path: str):
        """
        Table class constructor.
        """
        self.name = name
        self.table_log_path = table_log_path
        self.columns = []
        self.rows_cnt = None
        self.state = TableImportState.PENDING
        self.inserted_rows = 0
        self.skipped_rows = 0
        self.error = None

    @property
    def is_empty(self) -> bool:
        """
        Checks if the table is known to hold no rows.
        A table, which rows were not counted, is not considered empty.
        """
        return self.rows_cnt == 0

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]
