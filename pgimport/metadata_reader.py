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
from typing import Any, Optional, cast

from dbutils.pooled_db import PooledDedicatedDBConnection

import pgimport.db_access as DBAccess
from pgimport.db_access_query_result import DBAccessQueryResult
from pgimport.db_vendor import DBVendor
from pgimport.errors import CatalogError
from pgimport.fs_ops import log
from pgimport.conversion import Conversion
from pgimport.table import Column, ForeignKeyEdge, KeyRole


def _query_catalog(
    conversion: Conversion,
    caller: str,
    sql: str,
    vendor: DBVendor,
    client: Optional[PooledDedicatedDBConnection],
    bindings: Optional[dict] = None,
    table_name: Optional[str] = None
) -> list[dict[str, Any]]:
    """
    Runs a catalog query.
    Metadata is required before any import can proceed safely, hence any failure is fatal.
    """
    result: DBAccessQueryResult = DBAccess.query(
        conversion=conversion,
        caller=caller,
        sql=sql,
        vendor=vendor,
        should_return_client=client is not None,
        client=client,
        bindings=bindings
    )

    if result.error:
        raise CatalogError(f'[{caller}] Catalog query failed: {result.error}', table_name) from result.error

    return cast(list[dict[str, Any]], result.data)


def get_table_names(
    conversion: Conversion,
    vendor: DBVendor,
    client: Optional[PooledDedicatedDBConnection] = None
) -> list[str]:
    """
    Returns names of all base tables in the configured schema (PostgreSQL) or database (MySQL).
    """
    if vendor == DBVendor.PG:
        sql = ("SELECT table_name AS table_name FROM information_schema.tables"
               " WHERE table_schema = %(schema)s AND table_type = 'BASE TABLE' ORDER BY table_name;")
        bindings = {'schema': conversion.schema}
    else:
        sql = ("SELECT TABLE_NAME AS table_name FROM INFORMATION_SCHEMA.TABLES"
               " WHERE TABLE_SCHEMA = %(schema)s AND TABLE_TYPE = 'BASE TABLE' ORDER BY TABLE_NAME;")
        bindings = {'schema': conversion.mysql_db_name}

    rows = _query_catalog(conversion, get_table_names.__name__, sql, vendor, client, bindings)
    return [row['table_name'] for row in rows]


def get_table_columns(
    conversion: Conversion,
    client: Optional[PooledDedicatedDBConnection],
    table_name: str,
    vendor: DBVendor = DBVendor.PG
) -> list[Column]:
    """
    Returns columns of given table ordered by ordinal position.
    Column names are returned exactly as stored in the catalog, no case normalization applied.
    """
    if vendor == DBVendor.MYSQL:
        sql = _get_mysql_columns_sql()
        bindings = {'schema': conversion.mysql_db_name, 'table_name': table_name}
    else:
        sql = _get_pg_columns_sql()
        bindings = {'schema': conversion.schema, 'table_name': table_name}

    rows = _query_catalog(
        conversion=conversion,
        caller=get_table_columns.__name__,
        sql=sql,
        vendor=vendor,
        client=client,
        bindings=bindings,
        table_name=table_name
    )

    return [
        Column(
            name=row['column_name'],
            data_type=row['data_type'],
            is_nullable=row['is_nullable'] == 'YES',
            default=row['column_default'],
            key_role=_get_key_role(row['column_key'])
        )
        for row in rows
    ]


def _get_pg_columns_sql() -> str:
    """
    Returns PostgreSQL columns query.
    """
    return """
        SELECT
            c.column_name AS column_name,
            c.data_type AS data_type,
            c.is_nullable AS is_nullable,
            c.column_default AS column_default,
            (
                SELECT tc.constraint_type
                FROM information_schema.key_column_usage AS kcu
                JOIN information_schema.table_constraints AS tc
                    ON tc.constraint_name = kcu.constraint_name
                        AND tc.table_schema = kcu.table_schema
                WHERE kcu.table_schema = c.table_schema
                    AND kcu.table_name = c.table_name
                    AND kcu.column_name = c.column_name
                    AND tc.constraint_type IN ('PRIMARY KEY', 'FOREIGN KEY')
                ORDER BY tc.constraint_type DESC
                LIMIT 1
            ) AS column_key
        FROM information_schema.columns AS c
        WHERE c.table_schema = %(schema)s AND c.table_name = %(table_name)s
        ORDER BY c.ordinal_position;
    """


def _get_mysql_columns_sql() -> str:
    """
    Returns MySQL columns query.
    Key roles are reported the same way as the PostgreSQL query does.
    """
    return """
        SELECT
            c.COLUMN_NAME AS column_name,
            c.DATA_TYPE AS data_type,
            c.IS_NULLABLE AS is_nullable,
            c.COLUMN_DEFAULT AS column_default,
            CASE
                WHEN c.COLUMN_KEY = 'PRI' THEN 'PRIMARY KEY'
                WHEN EXISTS (
                    SELECT 1
                    FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS kcu
                    WHERE kcu.TABLE_SCHEMA = c.TABLE_SCHEMA
                        AND kcu.TABLE_NAME = c.TABLE_NAME
                        AND kcu.COLUMN_NAME = c.COLUMN_NAME
                        AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
                ) THEN 'FOREIGN KEY'
            END AS column_key
        FROM INFORMATION_SCHEMA.COLUMNS AS c
        WHERE c.TABLE_SCHEMA = %(schema)s AND c.TABLE_NAME = %(table_name)s
        ORDER BY c.ORDINAL_POSITION;
    """


def _get_key_role(constraint_type: Optional[str]) -> KeyRole:
    """
    Maps the catalog constraint type to the column's key role.
    """
    if constraint_type == 'PRIMARY KEY':
        return KeyRole.PRIMARY

    if constraint_type == 'FOREIGN KEY':
        return KeyRole.FOREIGN

    return KeyRole.NONE


def get_foreign_key_edges(
    conversion: Conversion,
    client: Optional[PooledDedicatedDBConnection]
) -> list[ForeignKeyEdge]:
    """
    Retrieves all foreign keys of the destination schema in one pass.
    """
    sql = """
        SELECT
            tc.table_name AS table_name,
            kcu.column_name AS column_name,
            ccu.table_name AS foreign_table_name,
            ccu.column_name AS foreign_column_name
        FROM information_schema.table_constraints AS tc
        JOIN information_schema.key_column_usage AS kcu
            ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
        JOIN information_schema.constraint_column_usage AS ccu
            ON ccu.constraint_name = tc.constraint_name
                AND ccu.constraint_schema = tc.table_schema
        WHERE tc.constraint_type = 'FOREIGN KEY' AND tc.table_schema = %(schema)s
        ORDER BY tc.table_name, tc.constraint_name, kcu.ordinal_position;
    """

    rows = _query_catalog(
        conversion=conversion,
        caller=get_foreign_key_edges.__name__,
        sql=sql,
        vendor=DBVendor.PG,
        client=client,
        bindings={'schema': conversion.schema}
    )

    edges = [
        ForeignKeyEdge(
            table_name=row['table_name'],
            column_name=row['column_name'],
            referenced_table_name=row['foreign_table_name'],
            referenced_column_name=row['foreign_column_name']
        )
        for row in rows
    ]

    log(conversion, f'[{get_foreign_key_edges.__name__}] Found {len(edges)} foreign key columns'
                    f' in schema "{conversion.schema}"')
    return edges


def get_rows_count(
    conversion: Conversion,
    vendor: DBVendor,
    table_name: str,
    client: Optional[PooledDedicatedDBConnection] = None
) -> int:
    """
    Returns an amount of records in given table.
    """
    if vendor == DBVendor.PG:
        escaped_table_name = table_name.replace('"', '""')
        sql = f'SELECT COUNT(1) AS rows_count FROM "{conversion.schema}"."{escaped_table_name}";'
    else:
        escaped_table_name = table_name.replace('`', '``')
        sql = f'SELECT COUNT(1) AS rows_count FROM `{escaped_table_name}`;'

    rows = _query_catalog(
        conversion=conversion,
        caller=get_rows_count.__name__,
        sql=sql,
        vendor=vendor,
        client=client,
        table_name=table_name
    )

    return int(rows[0]['rows_count'])
