"""
Shared fixtures: a Conversion built on a temporary directory, and artifact writers.
Database access is mocked at the db_access seam, no server is needed.
"""

import os
import json
from typing import Any, Callable

import pytest

from pgimport.conversion import Conversion
from pgimport.db_access_query_result import DBAccessQueryResult


@pytest.fixture
def base_config(tmp_path) -> dict:
    logs_dir_path = tmp_path / 'logs_directory'
    export_dir = tmp_path / 'exported_data'
    logs_dir_path.mkdir()
    export_dir.mkdir()
    return {
        'target': {
            'host': 'localhost',
            'port': 5432,
            'database': 'test_db',
            'charset': 'UTF8',
            'user': 'postgres',
            'password': 'secret',
        },
        'schema': 'public',
        'file_type': 'json',
        'logs_dir_path': str(logs_dir_path),
        'export_dir': str(export_dir),
    }


@pytest.fixture
def conversion(base_config) -> Conversion:
    return Conversion(base_config)


@pytest.fixture
def csv_conversion(base_config) -> Conversion:
    return Conversion(dict(base_config, file_type='csv'))


@pytest.fixture
def write_json(conversion) -> Callable[[str, Any], str]:
    def _write(table_name: str, rows: Any) -> str:
        path = os.path.join(conversion.export_dir, f'{table_name}.json')
        with open(path, 'w', encoding='utf-8') as file:
            file.write(rows if isinstance(rows, str) else json.dumps(rows))
        return path
    return _write


@pytest.fixture
def write_csv(csv_conversion) -> Callable[[str, str], str]:
    def _write(table_name: str, contents: str) -> str:
        path = os.path.join(csv_conversion.export_dir, f'{table_name}.csv')
        with open(path, 'w', encoding='utf-8', newline='') as file:
            file.write(contents)
        return path
    return _write


def make_result(data=None, error=None, row_count=0, client=None) -> DBAccessQueryResult:
    return DBAccessQueryResult(client=client, data=data if data is not None else [], error=error, row_count=row_count)
