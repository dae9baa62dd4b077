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
import sys

import pgimport.db_access as DBAccess
from pgimport.boot_processor import boot, get_introduction_message, install_interrupt_handler
from pgimport.conversion import Conversion
from pgimport.data_exporter import export_tables
from pgimport.db_vendor import DBVendor
from pgimport.errors import MigrationError
from pgimport.fs_ops import read_config, create_logs_directory, generate_error
from pgimport.import_orchestrator import import_tables
from pgimport.schema_descriptor import describe_schema
from pgimport.report_generator import generate_report, has_failed_tables


def _get_base_dir() -> str:
    """
    Returns the directory holding "config/config.json".
    """
    return os.getenv('aux_dir', os.getcwd())


def _create_conversion(base_dir: str) -> Conversion:
    """
    Reads the configuration, and prepares logs directory.
    """
    print(get_introduction_message())
    config = read_config(base_dir)
    conversion = Conversion(config)
    create_logs_directory(conversion)
    install_interrupt_handler(conversion)
    return conversion


def run_import(base_dir: str) -> int:
    """
    Runs the import pipeline, and returns the process exit code.
    """
    try:
        conversion = _create_conversion(base_dir)
    except MigrationError as e:
        print(f'\t--[{run_import.__name__}] {e.message}')
        return 1

    boot(conversion, conversion.get_import_vendors())
    exit_code = 0

    try:
        import_tables(conversion)
    except MigrationError as e:
        generate_error(conversion, f'[{run_import.__name__}] {e.message}')
        exit_code = 1
    finally:
        DBAccess.close_connection_pools(conversion)

    if has_failed_tables(conversion):
        exit_code = 1

    generate_report(conversion, 'Import is accomplished.' if exit_code == 0 else 'Import has failed.')
    return exit_code


def run_export(base_dir: str) -> int:
    """
    Runs the export pipeline, and returns the process exit code.
    """
    try:
        conversion = _create_conversion(base_dir)
    except MigrationError as e:
        print(f'\t--[{run_export.__name__}] {e.message}')
        return 1

    boot(conversion, [DBVendor.MYSQL])
    exit_code = 0

    try:
        exported_tables = export_tables(conversion)

        if len(exported_tables) < len(conversion.tables_to_import):
            exit_code = 1
    except MigrationError as e:
        generate_error(conversion, f'[{run_export.__name__}] {e.message}')
        exit_code = 1
    finally:
        DBAccess.close_connection_pools(conversion)

    generate_report(conversion, 'Export is accomplished.' if exit_code == 0 else 'Export has failed.')
    return exit_code


def run_describe(base_dir: str) -> int:
    """
    Describes the source database, or the target schema when no source is configured.
    Returns the process exit code.
    """
    try:
        conversion = _create_conversion(base_dir)
    except MigrationError as e:
        print(f'\t--[{run_describe.__name__}] {e.message}')
        return 1

    vendor = DBVendor.MYSQL if conversion.source_con_string else DBVendor.PG
    boot(conversion, [vendor])
    exit_code = 0

    try:
        describe_schema(conversion, vendor)
    except MigrationError as e:
        generate_error(conversion, f'[{run_describe.__name__}] {e.message}')
        exit_code = 1
    finally:
        DBAccess.close_connection_pools(conversion)

    last_message = 'Schema description is accomplished.' if exit_code == 0 else 'Schema description has failed.'
    generate_report(conversion, last_message)
    return exit_code


def main() -> None:
    sys.exit(run_import(_get_base_dir()))


def export_main() -> None:
    sys.exit(run_export(_get_base_dir()))


def describe_main() -> None:
    sys.exit(run_describe(_get_base_dir()))
