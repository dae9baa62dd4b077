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
import csv
import json
import datetime
from decimal import Decimal
from typing import Any

import pgimport.db_access as DBAccess
import pgimport.metadata_reader as MetadataReader
from pgimport.concurrency_manager import run_concurrently
from pgimport.conversion import Conversion
from pgimport.db_vendor import DBVendor
from pgimport.fs_ops import log
from pgimport.utils import track_memory


@track_memory
def export_tables(conversion: Conversion) -> list[str]:
    """
    Exports every source table into "<table>.json" and "<table>.csv" files of the export directory.
    Export has no ordering constraints, hence tables are exported concurrently.
    Returns names of successfully exported tables.
    """
    table_names = [
        table_name
        for table_name in MetadataReader.get_table_names(conversion, DBVendor.MYSQL)
        if conversion.is_table_selected(table_name)
    ]

    for table_name in conversion.exclude_tables:
        log(conversion, f'[{export_tables.__name__}] Skipping table: {table_name}')

    if not table_names:
        log(conversion, f'[{export_tables.__name__}] No tables found in the database')
        return []

    conversion.tables_to_import = table_names
    log(conversion, f'[{export_tables.__name__}] Found {len(table_names)} tables to export')
    _prepare_export_directory(conversion)
    params_list = [[conversion, table_name] for table_name in table_names]
    exported_tables = run_concurrently(conversion, export_table, params_list, conversion.number_of_exporters)
    log(conversion, f'[{export_tables.__name__}] Exported {len(exported_tables)} of {len(table_names)} tables')
    return exported_tables


def _prepare_export_directory(conversion: Conversion) -> None:
    """
    Creates the export directory, or removes artifacts of a previous export.
    """
    if not os.path.isdir(conversion.export_dir):
        os.makedirs(conversion.export_dir)
        log(conversion, f'[{_prepare_export_directory.__name__}] Created output directory: {conversion.export_dir}')
        return

    for file_name in os.listdir(conversion.export_dir):
        if os.path.splitext(file_name)[1].lower() in ('.json', '.csv'):
            os.remove(os.path.join(conversion.export_dir, file_name))

    log(conversion, f'[{_prepare_export_directory.__name__}] Old export files removed')


def export_table(conversion: Conversion, table_name: str) -> str:
    """
    Streams given table into its JSON and CSV artifacts.
    An empty table yields "[]" and a zero-byte CSV file.
    Returns the name of just exported table.
    """
    json_path = os.path.join(conversion.export_dir, f'{table_name}.json')
    csv_path = os.path.join(conversion.export_dir, f'{table_name}.csv')
    escaped_table_name = table_name.replace('`', '``')
    mysql_client, mysql_cursor = None, None

    log(conversion, f'[{export_table.__name__}] Exporting table "{table_name}"...')

    try:
        mysql_client = DBAccess.get_mysql_unbuffered_client(conversion)
        mysql_cursor = mysql_client.cursor()
        mysql_cursor.execute(f'SELECT * FROM `{escaped_table_name}`;')
        column_names = [description[0] for description in mysql_cursor.description]
        rows_cnt = 0

        with open(json_path, 'w', encoding='utf-8') as json_file, \
                open(csv_path, 'w', encoding='utf-8', newline='') as csv_file:
            csv_writer = csv.DictWriter(csv_file, fieldnames=column_names)
            json_file.write('[')

            while True:
                batch = mysql_cursor.fetchmany(conversion.batch_size)

                if not batch:
                    break

                if rows_cnt == 0:
                    csv_writer.writeheader()

                for row in batch:
                    json_file.write(',\n' if rows_cnt else '')
                    json_file.write(json.dumps(row, ensure_ascii=False, default=to_exportable_value))
                    csv_writer.writerow({column: _to_csv_value(value) for column, value in row.items()})
                    rows_cnt += 1

                log(conversion, f'[{export_table.__name__}] [{table_name}] Processed {rows_cnt} rows')

            json_file.write(']')

        if rows_cnt == 0:
            msg = f'[{export_table.__name__}] Table "{table_name}" is empty. Created empty CSV and JSON files.'
            log(conversion, msg)

        log(conversion, f'[{export_table.__name__}] [{table_name}] Completed data export (Total rows: {rows_cnt})')
        return table_name
    finally:
        for resource in (mysql_cursor, mysql_client):
            if resource:
                resource.close()


def to_exportable_value(value: Any) -> Any:
    """
    Converts MySQL driver values, which have no JSON representation.
    """
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()

    if isinstance(value, datetime.timedelta):
        return str(value)

    if isinstance(value, Decimal):
        return str(value)

    if isinstance(value, (bytes, bytearray)):
        # PostgreSQL "bytea" hex format.
        return '\\x' + bytes(value).hex()

    if isinstance(value, set):
        # MySQL SET columns.
        return ','.join(sorted(value))

    raise TypeError(f'Object of type {type(value).__name__} is not exportable')


def _to_csv_value(value: Any) -> Any:
    """
    Converts a value for the CSV writer.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    return to_exportable_value(value)
