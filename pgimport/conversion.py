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
from typing import cast, Optional

from dbutils.pooled_db import PooledDB

from pgimport.db_vendor import DBVendor
from pgimport.errors import ConfigurationError
from pgimport.table import Table


class Conversion:
    config: dict
    source_con_string: Optional[dict]
    target_con_string: dict
    mysql: Optional[PooledDB]
    pg: Optional[PooledDB]
    logs_dir_path: str
    all_logs_path: str
    error_logs_path: str
    export_dir: str
    file_type: str
    batch_size: int
    exclude_tables: list[str]
    include_tables: list[str]
    consistency_reference: DBVendor
    time_begin: Optional[float]
    dic_tables: dict[str, Table]
    tables_to_import: list[str]
    mysql_db_name: Optional[str]
    schema: str
    max_each_db_connection_pool_size: int
    number_of_exporters: int
    debug: bool
    shutdown_requested: bool

    __slots__ = (
        'config', 'source_con_string', 'target_con_string', 'mysql', 'pg', 'logs_dir_path', 'all_logs_path',
        'error_logs_path', 'export_dir', 'file_type', 'batch_size', 'exclude_tables', 'include_tables',
        'consistency_reference', 'time_begin', 'dic_tables', 'tables_to_import', 'mysql_db_name', 'schema',
        'max_each_db_connection_pool_size', 'number_of_exporters', 'debug', 'shutdown_requested',
    )

    supported_file_types = ('json', 'csv')

    def __init__(self, config: dict):
        """
        Conversion class constructor.
        """
        self.config = config

        if 'target' not in self.config:
            raise ConfigurationError('The "target" connection details are missing')

        self.source_con_string = self.config['source'] if 'source' in self.config else None
        self.target_con_string = self.config['target']
        self.mysql = None
        self.pg = None
        self.logs_dir_path = self.config['logs_dir_path']
        self.all_logs_path = os.path.join(self.logs_dir_path, 'all.log')
        self.error_logs_path = os.path.join(self.logs_dir_path, 'errors-only.log')
        self.export_dir = self.config['export_dir'] if 'export_dir' in self.config else 'exported_data'
        self.file_type = self._parse_file_type()
        self.batch_size = self._parse_batch_size()
        self.exclude_tables = self.config['exclude_tables'] if 'exclude_tables' in self.config else ['migrations']
        self.include_tables = self.config['include_tables'] if 'include_tables' in self.config else []
        self.consistency_reference = self._parse_consistency_reference()
        self.time_begin = None
        self.dic_tables = {}
        self.tables_to_import = []
        self.mysql_db_name = self.source_con_string['database'] if self.source_con_string else None
        self.schema = self.config['schema'] if 'schema' in self.config else 'public'

        self.max_each_db_connection_pool_size = (self.config['max_each_db_connection_pool_size']
                                                 if 'max_each_db_connection_pool_size' in self.config
                                                 else 20)

        self.number_of_exporters = self._parse_number_of_exporters()
        self.debug = self.config['debug'] if 'debug' in self.config else False
        self.shutdown_requested = False

    def _parse_file_type(self) -> str:
        """
        Parses the 'file_type' config parameter.
        Only one artifact type is imported per run.
        """
        file_type = str(self.config['file_type'] if 'file_type' in self.config else '').lower()

        if file_type not in self.supported_file_types:
            supported = ', '.join(self.supported_file_types)
            raise ConfigurationError(f'Invalid or missing "file_type": "{file_type}". Use one of: {supported}')

        return file_type

    def _parse_batch_size(self) -> int:
        """
        Parses the 'batch_size' config parameter.
        """
        default_batch_size = 1000
        batch_size = self.config['batch_size'] if 'batch_size' in self.config else default_batch_size

        if batch_size == 'DEFAULT':
            return default_batch_size

        try:
            batch_size = int(batch_size)
        except (TypeError, ValueError):
            raise ConfigurationError(f'Invalid "batch_size": {batch_size!r}')

        if batch_size < 1:
            raise ConfigurationError(f'"batch_size" must be positive, got {batch_size}')

        return batch_size

    def _parse_consistency_reference(self) -> DBVendor:
        """
        Parses the 'consistency_reference' config parameter.
        'target' probes the PostgreSQL catalog, 'source' probes the MySQL catalog.
        """
        reference = self.config['consistency_reference'] if 'consistency_reference' in self.config else 'target'

        if reference == 'target':
            return DBVendor.PG

        if reference == 'source':
            if not self.source_con_string:
                raise ConfigurationError('"consistency_reference" is "source", but "source" is not configured')

            return DBVendor.MYSQL

        raise ConfigurationError(f'Invalid "consistency_reference": {reference!r}. Use "target" or "source"')

    def _parse_number_of_exporters(self) -> int:
        """
        Parses the 'number_of_simultaneously_running_exporters' config parameter,
        and returns its integer representation.
        """
        default_number_of_exporters = 5
        number_of_exporters = (self.config['number_of_simultaneously_running_exporters']
                               if 'number_of_simultaneously_running_exporters' in self.config
                               else None)

        if not number_of_exporters:
            return default_number_of_exporters

        if isinstance(number_of_exporters, str):
            return (default_number_of_exporters
                    if number_of_exporters == 'DEFAULT'
                    else int(number_of_exporters))

        return cast(int, number_of_exporters)

    def get_import_vendors(self) -> list[DBVendor]:
        """
        Returns the vendors, which connections are needed by the import pipeline.
        """
        if self.consistency_reference == DBVendor.MYSQL:
            return [DBVendor.PG, DBVendor.MYSQL]

        return [DBVendor.PG]

    def is_table_selected(self, table_name: str) -> bool:
        """
        Checks if given table passes the "include_tables" and "exclude_tables" filters.
        """
        if table_name in self.exclude_tables:
            return False

        return not self.include_tables or table_name in self.include_tables
