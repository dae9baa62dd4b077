from unittest.mock import MagicMock, patch

import pytest

import pgimport.data_loader as data_loader
from pgimport.artifact_reader import ImportUnit, open_artifact
from pgimport.data_loader import build_insert_statement, iter_batches, load_table
from pgimport.errors import ImportInterruptedError, InsertError
from tests.conftest import make_result


def _accept_all(**kwargs):
    # Every row of the statement is inserted.
    return make_result(row_count=kwargs['sql'].count('), (') + 1)


def test_iter_batches_sizes():
    batches = list(iter_batches(({'id': index} for index in range(2500)), 1000))
    assert [len(batch) for batch in batches] == [1000, 1000, 500]
    assert batches[2][-1] == {'id': 2499}


def test_build_insert_statement():
    sql = build_insert_statement('public', 'Users', ['id', 'Name'], [{'id': 1, 'Name': "O'Hara"}, {'id': 2}])
    assert sql == ('INSERT INTO "public"."Users" ("id", "Name")'
                   " VALUES ('1', 'O''Hara'), ('2', NULL) ON CONFLICT DO NOTHING;")


def test_2500_rows_are_inserted_in_three_batches(conversion, write_json):
    path = write_json('users', [{'id': index, 'name': f'user {index}'} for index in range(2500)])

    with open_artifact(ImportUnit('users', path, 'json')) as artifact, \
            patch.object(data_loader, 'build_insert_statement', wraps=build_insert_statement) as builder, \
            patch.object(data_loader.DBAccess, 'query', side_effect=_accept_all) as query:
        inserted_rows = load_table(conversion, MagicMock(), 'users', ['id', 'name'], artifact)

    assert query.call_count == 3
    assert [len(call.args[3]) for call in builder.call_args_list] == [1000, 1000, 500]
    assert inserted_rows == 2500


def test_batches_hold_the_client(conversion, write_json):
    path = write_json('users', [{'id': 1}])
    client = MagicMock()

    with open_artifact(ImportUnit('users', path, 'json')) as artifact, \
            patch.object(data_loader.DBAccess, 'query', side_effect=_accept_all) as query:
        load_table(conversion, client, 'users', ['id'], artifact)

    assert query.call_args.kwargs['client'] is client
    assert query.call_args.kwargs['should_return_client'] is True


def test_already_imported_rows_are_skipped_without_error(conversion, write_json):
    path = write_json('users', [{'id': index} for index in range(10)])

    with open_artifact(ImportUnit('users', path, 'json')) as artifact, \
            patch.object(data_loader.DBAccess, 'query', return_value=make_result(row_count=0)):
        assert load_table(conversion, MagicMock(), 'users', ['id'], artifact) == 0


def test_failed_batch_stops_the_table(conversion, write_json):
    conversion.batch_size = 2
    path = write_json('users', [{'id': index} for index in range(6)])
    results = [make_result(row_count=2), make_result(error=Exception('violates foreign key constraint'))]

    with open_artifact(ImportUnit('users', path, 'json')) as artifact, \
            patch.object(data_loader.DBAccess, 'query', side_effect=results) as query, \
            pytest.raises(InsertError) as error:
        load_table(conversion, MagicMock(), 'users', ['id'], artifact)

    assert query.call_count == 2
    assert error.value.batch_number == 2
    assert error.value.table_name == 'users'


def test_empty_artifact_is_a_no_op(conversion, write_json):
    path = write_json('users', [])

    with open_artifact(ImportUnit('users', path, 'json')) as artifact, \
            patch.object(data_loader.DBAccess, 'query') as query:
        assert load_table(conversion, MagicMock(), 'users', ['id'], artifact) == 0

    query.assert_not_called()


def test_interrupt_stops_between_batches(conversion, write_json):
    conversion.batch_size = 1
    path = write_json('users', [{'id': 1}, {'id': 2}, {'id': 3}])

    def _interrupt_after_first_batch(**kwargs):
        conversion.shutdown_requested = True
        return make_result(row_count=1)

    with open_artifact(ImportUnit('users', path, 'json')) as artifact, \
            patch.object(data_loader.DBAccess, 'query', side_effect=_interrupt_after_first_batch) as query, \
            pytest.raises(ImportInterruptedError):
        load_table(conversion, MagicMock(), 'users', ['id'], artifact)

    assert query.call_count == 1


def test_csv_rows_are_streamed(csv_conversion, write_csv):
    csv_conversion.batch_size = 2
    path = write_csv('users', 'id,name\n1,a\n2,b\n3,c\n')

    with open_artifact(ImportUnit('users', path, 'csv')) as artifact, \
            patch.object(data_loader.DBAccess, 'query', side_effect=_accept_all) as query:
        assert load_table(csv_conversion, MagicMock(), 'users', ['id', 'name'], artifact) == 3

    assert query.call_count == 2
    assert "('3', 'c')" in query.call_args.kwargs['sql']
