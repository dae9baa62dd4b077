import pytest

from pgimport.column_reconciler import reconcile_columns, validate_columns
from pgimport.errors import ColumnMismatchError, ExtraInDestinationError, MissingInDestinationError


def test_case_sensitive_difference():
    reconciliation = reconcile_columns(['id', 'Name'], ['id', 'name'])
    assert reconciliation.missing_in_destination == ['name']
    assert reconciliation.extra_in_destination == ['Name']
    assert not reconciliation.is_exact_match


def test_same_columns_in_different_order_match():
    reconciliation = reconcile_columns(['id', 'name', 'email'], ['email', 'id', 'name'])
    assert reconciliation.missing_in_destination == []
    assert reconciliation.extra_in_destination == []
    assert reconciliation.is_exact_match


def test_validate_reports_missing_columns_first():
    with pytest.raises(MissingInDestinationError) as error:
        validate_columns('users', ['id', 'Name'], ['id', 'name'])
    assert error.value.table_name == 'users'
    assert error.value.missing_in_destination == ['name']
    assert error.value.extra_in_destination == ['Name']


def test_validate_reports_extra_columns():
    with pytest.raises(ExtraInDestinationError) as error:
        validate_columns('users', ['id', 'name', 'created_at'], ['id', 'name'])
    assert isinstance(error.value, ColumnMismatchError)
    assert error.value.extra_in_destination == ['created_at']
    assert 'created_at' in error.value.message


def test_validate_passes_on_exact_match():
    assert validate_columns('users', ['id', 'name'], ['name', 'id']).is_exact_match
