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
from pgimport.artifact_reader import ImportUnit, discover_import_units, open_artifact
from pgimport.column_reconciler import validate_columns
from pgimport.conversion import Conversion
from pgimport.data_loader import load_table
from pgimport.db_vendor import DBVendor
from pgimport.dependency_graph import build_dependency_graph, get_self_referencing_tables, topological_sort
from pgimport.errors import ArtifactParseError, ImportInterruptedError, InconsistentStateError, MigrationError
from pgimport.fs_ops import log, log_debug, generate_error
from pgimport.table import Table, TableImportState
from pgimport.utils import track_memory


@track_memory
def import_tables(conversion: Conversion) -> None:
    """
    Imports all the artifacts of the export directory, respecting foreign key dependencies.
    Tables are processed strictly one by one: later tables may reference earlier ones.
    Stops on the first failed table, except for malformed artifacts, which are logged and left behind.
    """
    reference_tables = MetadataReader.get_table_names(conversion, conversion.consistency_reference)
    units = discover_import_units(conversion, reference_tables)

    with DBAccess.db_client(conversion, DBVendor.PG) as client:
        edges = MetadataReader.get_foreign_key_edges(conversion, client)

    for table_name in get_self_referencing_tables(edges):
        log(conversion, f'[{import_tables.__name__}] Table "{table_name}" references itself,'
                        ' such a foreign key does not affect the import order')

    dependencies = build_dependency_graph(edges, units)

    for table_name, referenced_tables in dependencies.items():
        if referenced_tables:
            log_debug(conversion, f'[{import_tables.__name__}] Table "{table_name}" depends on:'
                                  f' {", ".join(sorted(referenced_tables))}')

    conversion.tables_to_import = topological_sort(list(units), dependencies)
    log(conversion, f'[{import_tables.__name__}] Sorted tables for import: {", ".join(conversion.tables_to_import)}')

    for table_name in conversion.tables_to_import:
        table_log_path = os.path.join(conversion.logs_dir_path, f'{table_name}.log')
        conversion.dic_tables[table_name] = Table(table_name, table_log_path)

    reference_table_names = set(reference_tables)

    for table_name in conversion.tables_to_import:
        if conversion.shutdown_requested:
            raise ImportInterruptedError('Import interrupted by the operator')

        import_table(conversion, units[table_name], table_name in reference_table_names)

    log(conversion, f'[{import_tables.__name__}] Data import process completed')


def import_table(conversion: Conversion, unit: ImportUnit, is_known_table: bool) -> TableImportState:
    """
    Validates and imports a single table.
    Pending -> Validating -> Importing -> Done, with early exits to Skipped or Failed.
    Raises on failure, except ArtifactParseError, which fails the table only.
    """
    table = conversion.dic_tables[unit.table_name]
    msg = f'[{import_table.__name__}] Validating and importing table: "{table.name}"'
    log(conversion, msg, table.table_log_path)

    try:
        _import_table(conversion, unit, table, is_known_table)
    except ArtifactParseError as e:
        _fail(conversion, table, e)
        log(conversion, f'[{import_table.__name__}] Table "{table.name}" is not imported.'
                        ' Fix the artifact and re-run the import.', table.table_log_path)
    except MigrationError as e:
        _fail(conversion, table, e)
        raise

    return table.state


def _import_table(conversion: Conversion, unit: ImportUnit, table: Table, is_known_table: bool) -> None:
    """
    Runs the state machine of given table.
    """
    artifact = open_artifact(unit) if unit.exists else None

    try:
        artifact_is_empty = artifact is None or artifact.is_empty

        if is_known_table and artifact_is_empty:
            table.rows_cnt = MetadataReader.get_rows_count(conversion, conversion.consistency_reference, table.name)

            if not table.is_empty:
                raise InconsistentStateError(
                    f'Artifact for table "{table.name}" is empty or missing,'
                    f' but the table holds {table.rows_cnt} rows. Stopping the import process.',
                    table.name
                )

            _skip(conversion, table, 'Both the table and its artifact are empty. Skipping validation and import.')
            return

        if artifact is None:
            _skip(conversion, table, 'No artifact found. Skipping import.')
            return

        if artifact.is_empty or not artifact.columns:
            _skip(conversion, table, 'No rows or no columns found in the artifact. Skipping import.')
            return

        table.state = TableImportState.VALIDATING

        with DBAccess.db_client(conversion, DBVendor.PG) as client:
            table.columns = MetadataReader.get_table_columns(conversion, client, table.name)
            log(conversion, f'[{_import_table.__name__}] PostgreSQL columns for table "{table.name}":'
                            f' {", ".join(table.column_names)}', table.table_log_path)

            log(conversion, f'[{_import_table.__name__}] Exported columns for table "{table.name}":'
                            f' {", ".join(artifact.columns)}', table.table_log_path)

            validate_columns(table.name, table.column_names, artifact.columns)
            table.state = TableImportState.IMPORTING
            load_table(conversion, client, table.name, table.column_names, artifact)

        table.state = TableImportState.DONE
        log(conversion, f'[{_import_table.__name__}] Schema validation and data import passed'
                        f' for table: "{table.name}"', table.table_log_path)
    finally:
        if artifact:
            artifact.close()


def _skip(conversion: Conversion, table: Table, reason: str) -> None:
    """
    Marks given table as skipped.
    """
    table.state = TableImportState.SKIPPED
    log(conversion, f'[{import_table.__name__}] Table "{table.name}": {reason}', table.table_log_path)


def _fail(conversion: Conversion, table: Table, error: MigrationError) -> None:
    """
    Marks given table as failed.
    """
    table.state = TableImportState.FAILED
    table.error = error
    generate_error(conversion, f'[{import_table.__name__}] Table "{table.name}": {error.message}')
