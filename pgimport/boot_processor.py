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
import sys
import time
import signal
from typing import Any

import pgimport.db_access as DBAccess
from pgimport.db_vendor import DBVendor
from pgimport.fs_ops import generate_error, log
from pgimport.conversion import Conversion


def boot(conversion: Conversion, vendors: list[DBVendor]) -> None:
    """
    Boots the migration.
    """
    connection_error_message = _check_connection(conversion, vendors)

    if connection_error_message:
        error_message = f'\t --[{boot.__name__}] {connection_error_message}'
        generate_error(conversion, error_message)
        DBAccess.close_connection_pools(conversion)
        sys.exit(1)

    log(conversion, f'[{boot.__name__}] Connections are checked, ready to start')
    conversion.time_begin = time.time()


def get_introduction_message() -> str:
    """
    Returns the introduction message.
    """
    return ('\n\n\tMySQL-to-PostgreSQL-Import - foreign-key aware data import tool'
            '\n\tCopyright (C) 2015 - present, Anatoly Khaytovich <anatolyuss@gmail.com>'
            f'\n\t--[{boot.__name__}] Configuration has been just loaded')


def _check_connection(conversion: Conversion, vendors: list[DBVendor]) -> str:
    """
    Checks correctness of connection details of given vendors.
    """
    result_message = ''

    for vendor in vendors:
        result = DBAccess.query(
            conversion=conversion,
            caller=_check_connection.__name__,
            sql='SELECT 1;',
            vendor=vendor,
            should_return_client=False
        )

        if not result.error:
            continue

        if vendor == DBVendor.MYSQL:
            result_message += f'\tMySQL connection error: {result.error}'
        else:
            result_message += f'\tPostgreSQL connection error: {result.error}{_get_ssl_hint(result.error)}'

    return result_message


def _get_ssl_hint(error: Exception) -> str:
    """
    Returns a hint for the most common SSL misconfigurations.
    """
    error_message = str(error)

    if 'does not support SSL' in error_message:
        return '. The server does not support SSL connections, set "sslmode" of "target" to "disable".'

    if 'certificate' in error_message:
        return '. The server\'s SSL certificate is not trusted, set "sslmode" of "target" to "require".'

    return ''


def install_interrupt_handler(conversion: Conversion) -> None:
    """
    Makes Ctrl+C stop the run gracefully.
    The in-flight batch is allowed to complete, the rest of the work is abandoned.
    """
    def _handle_interrupt(signal_number: int, frame: Any) -> None:
        if conversion.shutdown_requested:
            # Second Ctrl+C: stop right away.
            raise KeyboardInterrupt

        conversion.shutdown_requested = True
        log(conversion, f'[{install_interrupt_handler.__name__}] Gracefully shutting down...')

    signal.signal(signal.SIGINT, _handle_interrupt)
