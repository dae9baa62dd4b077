import json

import pytest

from pgimport.conversion import Conversion
from pgimport.db_vendor import DBVendor
from pgimport.errors import ConfigurationError
from pgimport.fs_ops import read_config


def test_defaults(conversion):
    assert conversion.batch_size == 1000
    assert conversion.schema == 'public'
    assert conversion.exclude_tables == ['migrations']
    assert conversion.consistency_reference == DBVendor.PG
    assert conversion.get_import_vendors() == [DBVendor.PG]
    assert conversion.number_of_exporters == 5
    assert conversion.shutdown_requested is False


@pytest.mark.parametrize('file_type', ['', 'xml', None])
def test_invalid_file_type(base_config, file_type):
    with pytest.raises(ConfigurationError, match='file_type'):
        Conversion(dict(base_config, file_type=file_type))


@pytest.mark.parametrize('batch_size', [0, -5, 'many'])
def test_invalid_batch_size(base_config, batch_size):
    with pytest.raises(ConfigurationError, match='batch_size'):
        Conversion(dict(base_config, batch_size=batch_size))


def test_source_reference_requires_source(base_config):
    with pytest.raises(ConfigurationError, match='consistency_reference'):
        Conversion(dict(base_config, consistency_reference='source'))


def test_source_reference(base_config):
    source = {'host': 'h', 'port': 3306, 'database': 'shop', 'user': 'u', 'password': 'p'}
    conversion = Conversion(dict(base_config, source=source, consistency_reference='source'))
    assert conversion.consistency_reference == DBVendor.MYSQL
    assert conversion.get_import_vendors() == [DBVendor.PG, DBVendor.MYSQL]
    assert conversion.mysql_db_name == 'shop'


def test_table_filters(base_config):
    conversion = Conversion(dict(base_config, exclude_tables=['logs'], include_tables=['users', 'logs']))
    assert conversion.is_table_selected('users')
    assert not conversion.is_table_selected('logs')
    assert not conversion.is_table_selected('orders')


def test_read_config(tmp_path):
    (tmp_path / 'config').mkdir()
    (tmp_path / 'config' / 'config.json').write_text(json.dumps({'target': {}, 'file_type': 'csv'}))

    config = read_config(str(tmp_path))

    assert config['logs_dir_path'] == str(tmp_path / 'logs_directory')
    assert config['export_dir'] == str(tmp_path / 'exported_data')
