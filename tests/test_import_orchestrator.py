from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import pytest

import pgimport.db_access as DBAccess
import pgimport.metadata_reader as MetadataReader
from pgimport.errors import (
    CyclicDependencyError, InconsistentStateError, InsertError, MissingInDestinationError, PreconditionError,
)
from pgimport.import_orchestrator import import_tables
from pgimport.report_generator import has_failed_tables
from pgimport.table import Column, ForeignKeyEdge, TableImportState
from tests.conftest import make_result


class FakeCatalog:
    def __init__(self):
        self.tables = []
        self.columns = {}
        self.rows = {}
        self.edges = []
        self.acquired = 0
        self.released = 0
        self.query = None

    def add_table(self, table_name, columns, rows=0):
        self.tables.append(table_name)
        self.columns[table_name] = columns
        self.rows[table_name] = rows

    def inserted_tables(self):
        return [call.kwargs['sql'].split(' ')[2] for call in self.query.call_args_list]


@pytest.fixture
def catalog():
    fake = FakeCatalog()

    @contextmanager
    def _db_client(conversion, vendor):
        fake.acquired += 1
        try:
            yield MagicMock()
        finally:
            fake.released += 1

    def _insert(**kwargs):
        return make_result(row_count=kwargs['sql'].count('), (') + 1)

    with patch.object(MetadataReader, 'get_table_names', side_effect=lambda *args, **kwargs: list(fake.tables)), \
            patch.object(MetadataReader, 'get_foreign_key_edges', side_effect=lambda *args: list(fake.edges)), \
            patch.object(MetadataReader, 'get_table_columns',
                         side_effect=lambda conversion, client, table_name: [
                             Column(name, 'text') for name in fake.columns.get(table_name, [])
                         ]), \
            patch.object(MetadataReader, 'get_rows_count',
                         side_effect=lambda conversion, vendor, table_name, client=None: fake.rows[table_name]), \
            patch.object(DBAccess, 'db_client', new=_db_client), \
            patch.object(DBAccess, 'query', side_effect=_insert) as query:
        fake.query = query
        yield fake


def state_of(conversion, table_name):
    return conversion.dic_tables[table_name].state


def test_tables_are_imported_in_dependency_order(conversion, catalog, write_json):
    catalog.add_table('users', ['id', 'name'])
    catalog.add_table('orders', ['id', 'user_id'])
    catalog.edges = [ForeignKeyEdge('orders', 'user_id', 'users', 'id')]
    write_json('orders', [{'id': 1, 'user_id': 1}])
    write_json('users', [{'id': 1, 'name': 'Ann'}])

    import_tables(conversion)

    assert conversion.tables_to_import == ['users', 'orders']
    assert catalog.inserted_tables() == ['"public"."users"', '"public"."orders"']
    assert state_of(conversion, 'users') == TableImportState.DONE
    assert state_of(conversion, 'orders') == TableImportState.DONE
    assert conversion.dic_tables['users'].inserted_rows == 1
    assert not has_failed_tables(conversion)
    assert catalog.acquired == catalog.released


def test_empty_table_with_empty_artifact_is_skipped(conversion, catalog, write_json):
    catalog.add_table('users', ['id'], rows=0)
    write_json('users', [])

    import_tables(conversion)

    assert state_of(conversion, 'users') == TableImportState.SKIPPED
    catalog.query.assert_not_called()


def test_non_empty_table_with_empty_artifact_aborts_the_run(conversion, catalog, write_json):
    catalog.add_table('users', ['id'], rows=5)
    catalog.add_table('zones', ['id'])
    write_json('users', [])
    write_json('zones', [{'id': 1}])

    with pytest.raises(InconsistentStateError) as error:
        import_tables(conversion)

    assert error.value.table_name == 'users'
    assert state_of(conversion, 'users') == TableImportState.FAILED
    assert state_of(conversion, 'zones') == TableImportState.PENDING
    catalog.query.assert_not_called()
    assert has_failed_tables(conversion)


def test_non_empty_table_without_artifact_aborts_the_run(conversion, catalog, write_json):
    catalog.add_table('audit', ['id'], rows=3)
    write_json('users', [])

    with pytest.raises(InconsistentStateError):
        import_tables(conversion)


def test_empty_table_without_artifact_is_skipped(conversion, catalog, write_json):
    catalog.add_table('audit', ['id'], rows=0)
    catalog.add_table('users', ['id'])
    write_json('users', [{'id': 1}])

    import_tables(conversion)

    assert state_of(conversion, 'audit') == TableImportState.SKIPPED
    assert state_of(conversion, 'users') == TableImportState.DONE


def test_empty_artifact_of_unknown_table_is_skipped(conversion, catalog, write_json):
    write_json('legacy', [])

    import_tables(conversion)

    assert state_of(conversion, 'legacy') == TableImportState.SKIPPED
    catalog.query.assert_not_called()


def test_column_mismatch_aborts_before_any_insert(conversion, catalog, write_json):
    catalog.add_table('users', ['id', 'Name'])
    catalog.add_table('zones', ['id'])
    write_json('users', [{'id': 1, 'name': 'Ann'}])
    write_json('zones', [{'id': 1}])

    with pytest.raises(MissingInDestinationError):
        import_tables(conversion)

    assert state_of(conversion, 'users') == TableImportState.FAILED
    assert state_of(conversion, 'zones') == TableImportState.PENDING
    catalog.query.assert_not_called()
    assert catalog.acquired == catalog.released


def test_malformed_artifact_fails_only_its_table(conversion, catalog, write_json):
    catalog.add_table('broken', ['id'])
    catalog.add_table('users', ['id'])
    write_json('broken', '[{"id": 1')
    write_json('users', [{'id': 1}])

    import_tables(conversion)

    assert state_of(conversion, 'broken') == TableImportState.FAILED
    assert state_of(conversion, 'users') == TableImportState.DONE
    assert has_failed_tables(conversion)


def test_cycle_aborts_before_any_table_is_touched(conversion, catalog, write_json):
    catalog.add_table('a', ['id'])
    catalog.add_table('b', ['id'])
    catalog.edges = [ForeignKeyEdge('a', 'b_id', 'b', 'id'), ForeignKeyEdge('b', 'a_id', 'a', 'id')]
    write_json('a', [{'id': 1}])
    write_json('b', [{'id': 1}])

    with pytest.raises(CyclicDependencyError):
        import_tables(conversion)

    assert conversion.dic_tables == {}
    catalog.query.assert_not_called()


def test_insert_failure_releases_the_client(conversion, catalog, write_json):
    catalog.add_table('users', ['id'])
    write_json('users', [{'id': 1}])
    catalog.query.side_effect = [make_result(error=Exception('duplicate key in index'))]

    with pytest.raises(InsertError):
        import_tables(conversion)

    assert state_of(conversion, 'users') == TableImportState.FAILED
    assert catalog.acquired == catalog.released


def test_missing_export_directory(conversion, catalog):
    conversion.export_dir = conversion.export_dir + '_missing'

    with pytest.raises(PreconditionError):
        import_tables(conversion)


def test_header_only_csv_of_unknown_table_is_skipped(csv_conversion, catalog, write_csv):
    write_csv('legacy', 'id,name\n')

    import_tables(csv_conversion)

    assert state_of(csv_conversion, 'legacy') == TableImportState.SKIPPED
    catalog.query.assert_not_called()


def test_csv_row_with_wrong_field_count_fails_only_its_table(csv_conversion, catalog, write_csv):
    catalog.add_table('broken', ['id', 'name'])
    catalog.add_table('users', ['id', 'name'])
    write_csv('broken', 'id,name\n1,a,EXTRA\n2\n')
    write_csv('users', 'id,name\n1,Ann\n')

    import_tables(csv_conversion)

    assert state_of(csv_conversion, 'broken') == TableImportState.FAILED
    assert 'more fields than the header' in str(csv_conversion.dic_tables['broken'].error)
    assert state_of(csv_conversion, 'users') == TableImportState.DONE
    assert catalog.inserted_tables() == ['"public"."users"']
    assert has_failed_tables(csv_conversion)


def test_short_csv_row_after_the_first_batch_fails_only_its_table(csv_conversion, catalog, write_csv):
    csv_conversion.batch_size = 1
    catalog.add_table('broken', ['id', 'name'])
    catalog.add_table('users', ['id', 'name'])
    write_csv('broken', 'id,name\n1,a\n2\n')
    write_csv('users', 'id,name\n1,Ann\n')

    import_tables(csv_conversion)

    assert state_of(csv_conversion, 'broken') == TableImportState.FAILED
    assert state_of(csv_conversion, 'users') == TableImportState.DONE
    assert catalog.acquired == catalog.released
