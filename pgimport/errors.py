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
from typing import Optional


class MigrationError(Exception):
    """
    Base class for all errors raised by the import and export pipelines.
    """
    def __init__(self, message: str, table_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.table_name = table_name


class ConfigurationError(MigrationError):
    """
    Raised when the configuration file holds an invalid or missing setting.
    """


class PreconditionError(MigrationError):
    """
    Raised when the export directory is missing or holds no artifacts of the selected type.
    """


class CatalogError(MigrationError):
    """
    Raised when a catalog (metadata) query fails.
    """


class CyclicDependencyError(MigrationError):
    """
    Raised when foreign keys form a cycle, so no valid import order exists.
    """
    def __init__(self, table_name: str):
        super().__init__(f'Cyclic dependency detected in table: {table_name}', table_name)


class ColumnMismatchError(MigrationError):
    """
    Raised when the column names of an artifact differ from the destination table's column names.
    """
    def __init__(
        self,
        message: str,
        table_name: str,
        missing_in_destination: list[str],
        extra_in_destination: list[str]
    ):
        super().__init__(message, table_name)
        self.missing_in_destination = missing_in_destination
        self.extra_in_destination = extra_in_destination


class MissingInDestinationError(ColumnMismatchError):
    pass


class ExtraInDestinationError(ColumnMismatchError):
    pass


class InconsistentStateError(MigrationError):
    """
    Raised when a non-empty table is paired with an empty or missing artifact.
    Usually means a previous run stopped half way, or the export is stale.
    """


class ArtifactParseError(MigrationError):
    """
    Raised when a JSON or CSV artifact cannot be parsed.
    """


class InsertError(MigrationError):
    """
    Raised when a batch is rejected by the target server.
    """
    def __init__(self, message: str, table_name: str, batch_number: int):
        super().__init__(message, table_name)
        self.batch_number = batch_number


class ImportInterruptedError(MigrationError):
    """
    Raised when the operator interrupts the run.
    """
