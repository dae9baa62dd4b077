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
import os

import pgimport.db_access as DBAccess
import pgimport.metadata_reader as MetadataReader
from pgimport.conversion import Conversion
from pgimport.db_vendor import DBVendor
from pgimport.fs_ops import log
from pgimport.table import Table
from pgimport.utils import track_memory


@track_memory
def describe_schema(conversion: Conversion, vendor: DBVendor) -> list[Table]:
    """
    Logs every table of the MySQL database or PostgreSQL schema with its records count,
    and every column with its data type, nullability, default value and key role.
    Returns described tables.
    """
    database_name = conversion.mysql_db_name if vendor == DBVendor.MYSQL else conversion.schema
    tables = []

    with DBAccess.db_client(conversion, vendor) as client:
        table_names = MetadataReader.get_table_names(conversion, vendor, client)
        log(conversion, f'[{describe_schema.__name__}] Found {len(table_names)} tables in "{database_name}"')

        for table_name in table_names:
            table = Table(table_name, os.path.join(conversion.logs_dir_path, f'{table_name}.log'))
            table.rows_cnt = MetadataReader.get_rows_count(conversion, vendor, table_name, client)
            table.columns = MetadataReader.get_table_columns(conversion, client, table_name, vendor)
            log(conversion, _get_table_description(table))
            tables.append(table)

    return tables


def _get_table_description(table: Table) -> str:
    """
    Returns a multi-line description of given table.
    """
    log_title = describe_schema.__name__
    lines = [f'[{log_title}] Table: {table.name} (Records: {table.rows_cnt})']

    for column in table.columns:
        lines.append(f'\t--[{log_title}]   Column: {column.name}')
        lines.append(f'\t--[{log_title}]     Data Type: {column.data_type}')
        lines.append(f'\t--[{log_title}]     Is Nullable: {"YES" if column.is_nullable else "NO"}')
        lines.append(f'\t--[{log_title}]     Default: {column.default}')
        lines.append(f'\t--[{log_title}]     Key: {column.key_role.value}')

    return '\n'.join(lines)
