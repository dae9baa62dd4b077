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
from contextlib import contextmanager
from typing import Iterator, Optional, Union

import pymysql
from pymysql.connections import Connection as PymysqlConnection
import psycopg2
from psycopg2.extras import RealDictCursor
from dbutils.pooled_db import PooledDB, PooledDedicatedDBConnection

from pgimport.db_access_query_result import DBAccessQueryResult
from pgimport.fs_ops import generate_error
from pgimport.db_vendor import DBVendor
from pgimport.conversion import Conversion
from pgimport.errors import ConfigurationError


def _ensure_mysql_connection(conversion: Conversion) -> None:
    """
    Ensures MySQL connection pool existence.
    """
    if not conversion.mysql:
        conversion.mysql = _get_pooled_db(conversion, DBVendor.MYSQL, _get_source_con_string(conversion))


def _ensure_pg_connection(conversion: Conversion) -> None:
    """
    Ensures PostgreSQL connection pool existence.
    """
    if not conversion.pg:
        conversion.pg = _get_pooled_db(conversion, DBVendor.PG, conversion.target_con_string)


def _get_source_con_string(conversion: Conversion) -> dict:
    """
    Returns MySQL connection details, which are optional for the import pipeline.
    """
    if not conversion.source_con_string:
        raise ConfigurationError('MySQL connection is required, but "source" is not configured')

    return conversion.source_con_string


def _get_pooled_db(
    conversion: Conversion,
    db_vendor: DBVendor,
    db_connection_details: dict
) -> PooledDB:
    """
    Creates DBUtils.PooledDB instance.
    """
    connection_details = {
        # Basic connection details.
        'port': db_connection_details['port'],
        'host': db_connection_details['host'],
        'user': db_connection_details['user'],
        'password': db_connection_details['password'],
        'database': db_connection_details['database'],

        # Determines behavior when exceeding the maximum.
        # If True, blocks and waits until the number of connections decreases, otherwise, by default, raises exception.
        'blocking': True,

        # Maximum number of idle connections in the pool.
        # Default value of 0 or None means unlimited pool size.
        'maxcached': conversion.max_each_db_connection_pool_size,

        # Maximum number of allowed connections.
        # Default value of 0 or None means any number of connections.
        'maxconnections': conversion.max_each_db_connection_pool_size,
    }

    if db_vendor == DBVendor.MYSQL:
        connection_details.update({
            'creator': pymysql,
            'cursorclass': pymysql.cursors.DictCursor,
            'charset': db_connection_details.get('charset', 'utf8mb4'),
        })
    else:
        connection_details.update({
            'creator': psycopg2,
            'client_encoding': db_connection_details.get('charset', 'UTF8'),
        })

        if db_connection_details.get('sslmode'):
            connection_details['sslmode'] = db_connection_details['sslmode']

    return PooledDB(**connection_details)


def close_connection_pools(conversion: Conversion) -> None:
    """
    Closes both connection-pools.
    """
    for pool in (conversion.mysql, conversion.pg):
        if pool:
            try:
                pool.close()
            except Exception as e:
                generate_error(conversion, f'[{close_connection_pools.__name__}] {repr(e)}')

    conversion.mysql, conversion.pg = None, None


def get_mysql_unbuffered_client(conversion: Conversion) -> PymysqlConnection:
    """
    Returns MySQL unbuffered client.
    Rows are streamed from the server, and fetched as dictionaries.
    """
    source_con_string = _get_source_con_string(conversion)
    return pymysql.connect(
        port=source_con_string['port'],
        host=source_con_string['host'],
        user=source_con_string['user'],
        password=source_con_string['password'],
        charset=source_con_string.get('charset', 'utf8mb4'),
        db=source_con_string['database'],
        cursorclass=pymysql.cursors.SSDictCursor
    )


def get_db_client(
    conversion: Conversion,
    db_vendor: DBVendor
) -> PooledDedicatedDBConnection:
    """
    Obtains PooledDedicatedDBConnection instance.
    Returned PooledDedicatedDBConnection instance is non-shareable, dedicated connection.
    """
    if db_vendor == DBVendor.PG:
        _ensure_pg_connection(conversion)
        return conversion.pg.connection(shareable=False)  # type: ignore

    _ensure_mysql_connection(conversion)
    return conversion.mysql.connection(shareable=False)  # type: ignore


def release_db_client(
    conversion: Conversion,
    client: Optional[PooledDedicatedDBConnection]
) -> None:
    """
    Releases MySQL or PostgreSQL connection back to appropriate pool.
    """
    if client:
        try:
            client.close()
        except Exception as e:
            generate_error(conversion, f'[{release_db_client.__name__}] {repr(e)}')


@contextmanager
def db_client(conversion: Conversion, db_vendor: DBVendor) -> Iterator[PooledDedicatedDBConnection]:
    """
    Holds a dedicated client for the duration of the "with" block.
    The client is released on every exit path.
    """
    client = get_db_client(conversion, db_vendor)

    try:
        yield client
    finally:
        release_db_client(conversion, client)


def _rollback(conversion: Conversion, client: Optional[PooledDedicatedDBConnection]) -> None:
    """
    Rolls back current transaction, so the client can be reused after a failure.
    """
    if client:
        try:
            client.rollback()
        except Exception as e:
            generate_error(conversion, f'[{_rollback.__name__}] {repr(e)}')


def query(
    conversion: Conversion,
    caller: str,
    sql: str,
    vendor: DBVendor,
    should_return_client: bool,
    client: Optional[PooledDedicatedDBConnection] = None,
    bindings: Optional[Union[dict, tuple]] = None,
    should_log_sql: bool = True
) -> DBAccessQueryResult:
    """
    Sends given SQL query to specified DB.
    Performs appropriate actions (requesting/releasing client) against target connections pool.
    Errors are logged and returned as a part of the result, it is up to the caller to decide how to proceed.
    """
    cursor, data, error, row_count = None, None, None, 0

    try:
        if not client:
            # Checks if there is an available client.
            # If the client is not available then it must be requested from the connection pool.
            client = get_db_client(conversion, vendor)

        cursor = client.cursor(cursor_factory=RealDictCursor) if vendor == DBVendor.PG else client.cursor()

        if bindings:
            cursor.execute(sql, bindings)
        else:
            cursor.execute(sql)

        # Statements like INSERT do not produce a result set.
        data = cursor.fetchall() if cursor.description else []
        row_count = cursor.rowcount
        client.commit()
    except Exception as e:
        error = e
        generate_error(conversion, f'[{caller}] {repr(e)}', sql if should_log_sql else '')
        _rollback(conversion, client)
    finally:
        if cursor:
            cursor.close()

        # Determines if the client (instance of PooledDedicatedDBConnection) should be released.
        if not should_return_client:
            release_db_client(conversion, client)
            client = None

    return DBAccessQueryResult(client=client, data=data, error=error, row_count=row_count)
