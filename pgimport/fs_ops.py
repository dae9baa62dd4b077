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
import json
import threading
from typing import Optional, cast

from pgimport.conversion import Conversion


_write_lock = threading.Lock()


def create_logs_directory(conversion: Conversion) -> None:
    """
    Creates logs directory.
    """
    _create_directory(conversion.logs_dir_path, create_logs_directory.__name__)


def _create_directory(directory_path: str, log_title: str) -> None:
    """
    Creates a directory at the specified path.
    """
    print(f'\t--[{log_title}] Creating directory {directory_path}...')
    try:
        os.makedirs(directory_path)
    except FileExistsError:
        print(f'\t--[{log_title}] Directory {directory_path} already exists.')
    except OSError as e:
        print(f'\t--[{log_title}] Failed to create directory {directory_path} due to {repr(e)}')


def write_to_file(path: str, mode: str, message: str) -> None:
    """
    Write a message to specified file.
    """
    # Exporters log from several threads at once.
    with _write_lock:
        with open(path, mode, encoding='utf-8') as file:
            file.write(message)


def _file_read(address: str) -> str:
    """
    Returns content of the file under given address.
    """
    with open(address, 'r', encoding='utf-8') as file:
        return file.read()


def _get_logs_prefix() -> str:
    """
    Returns logs prefix.
    """
    return '\t--[MySQL-to-PostgreSQL-Import]'


def generate_error(conversion: Conversion, message: str, sql: str = '') -> None:
    """
    Writes a detailed error message to the "/errors-only.log" file.
    """
    message = _get_logs_prefix() + message + (f'\n\n\tSQL: {sql}\n\n' if sql else '')
    log(conversion, message)
    write_to_file(conversion.error_logs_path, 'a', message)


def log(conversion: Conversion, message: str, table_log_path: Optional[str] = None) -> None:
    """
    Outputs given log.
    Writes given log to the "/all.log" file.
    If necessary, writes given log to the "/{tableName}.log" file.
    """
    message = _get_logs_prefix() + message
    print(message)
    write_to_file(conversion.all_logs_path, 'a', f'\n{message}\n')

    if table_log_path:
        write_to_file(table_log_path, 'a', f'\n{message}\n')


def log_debug(conversion: Conversion, message: str, table_log_path: Optional[str] = None) -> None:
    """
    Outputs given log in debug mode only.
    """
    if conversion.debug:
        log(conversion, message, table_log_path)


def read_config(base_dir: str, config_file_name: str = 'config.json') -> dict:
    """
    Reads the main configuration file and returns its contents as a dictionary.
    """
    path_to_main_config = os.path.join(base_dir, 'config', config_file_name)
    config_str = _file_read(path_to_main_config)
    config = json.loads(config_str)
    config['logs_dir_path'] = os.path.join(base_dir, 'logs_directory')
    config['export_dir'] = os.path.join(base_dir, config.get('export_dir', 'exported_data'))
    return cast(dict, config)
