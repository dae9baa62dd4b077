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
from itertools import islice
from typing import Any, Iterable, Iterator, Sequence

from dbutils.pooled_db import PooledDedicatedDBConnection

import pgimport.db_access as DBAccess
from pgimport.artifact_reader import Artifact
from pgimport.db_vendor import DBVendor
from pgimport.errors import ImportInterruptedError, InsertError
from pgimport.fs_ops import log, generate_error
from pgimport.conversion import Conversion
from pgimport.value_serializer import quote_identifier, serialize_row


def iter_batches(rows: Iterable[dict[str, Any]], batch_size: int) -> Iterator[list[dict[str, Any]]]:
    """
    Splits given rows into consecutive batches of at most "batch_size" rows.
    """
    iterator = iter(rows)

    while True:
        batch = list(islice(iterator, batch_size))

        if not batch:
            return

        yield batch


def build_insert_statement(
    schema: str,
    table_name: str,
    columns: Sequence[str],
    batch: Sequence[dict[str, Any]]
) -> str:
    """
    Builds a single multi-row INSERT statement for given batch.
    Rows colliding with existing unique or primary keys are skipped by the server.
    """
    column_list = ', '.join(quote_identifier(column) for column in columns)
    values_list = ', '.join(serialize_row(row, columns) for row in batch)
    return (f'INSERT INTO {quote_identifier(schema)}.{quote_identifier(table_name)} ({column_list})'
            f' VALUES {values_list} ON CONFLICT DO NOTHING;')


def load_table(
    conversion: Conversion,
    client: PooledDedicatedDBConnection,
    table_name: str,
    columns: Sequence[str],
    artifact: Artifact
) -> int:
    """
    Inserts the rows of given artifact into the target table, batch by batch.
    Each batch is committed on its own, so a failed batch leaves preceding batches in place.
    Re-running is safe, since already inserted rows are skipped.
    Returns the number of actually inserted rows.
    """
    log_path = conversion.dic_tables[table_name].table_log_path if table_name in conversion.dic_tables else None

    if artifact.is_empty:
        log(conversion, f'[{load_table.__name__}] No data found in "{artifact.unit.path}"'
                        f' for table "{table_name}". Skipping import.', log_path)
        return 0

    inserted_rows, skipped_rows, processed_rows = 0, 0, 0

    for batch_number, batch in enumerate(iter_batches(artifact.iter_rows(), conversion.batch_size), start=1):
        if conversion.shutdown_requested:
            raise ImportInterruptedError(
                f'Import of "{table_name}" interrupted after {processed_rows} rows', table_name
            )

        sql = build_insert_statement(conversion.schema, table_name, columns, batch)
        result = DBAccess.query(
            conversion=conversion,
            caller=load_table.__name__,
            sql=sql,
            vendor=DBVendor.PG,
            should_return_client=True,
            client=client,
            should_log_sql=False
        )

        if result.error:
            msg = f'Failed to insert batch {batch_number} into table "{table_name}": {result.error}'
            generate_error(conversion, f'[{load_table.__name__}] {msg}')
            raise InsertError(msg, table_name, batch_number) from result.error

        processed_rows += len(batch)
        inserted_rows += result.row_count
        skipped_rows += len(batch) - result.row_count
        msg = (f'[{load_table.__name__}] Inserted batch {batch_number} into table "{table_name}".'
               f' For now inserted: {inserted_rows} rows, skipped as duplicates: {skipped_rows} rows')

        log(conversion, msg, log_path)

    if table_name in conversion.dic_tables:
        conversion.dic_tables[table_name].inserted_rows = inserted_rows
        conversion.dic_tables[table_name].skipped_rows = skipped_rows

    log(conversion, f'[{load_table.__name__}] Data imported successfully into table'
                    f' "{conversion.schema}"."{table_name}"', log_path)
    return inserted_rows
