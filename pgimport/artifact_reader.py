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
from typing import Any, Iterable, Iterator, Optional, TextIO

from pgimport.conversion import Conversion
from pgimport.errors import ArtifactParseError, PreconditionError


class ImportUnit:
    table_name: str
    path: Optional[str]
    file_type: str

    __slots__ = ('table_name', 'path', 'file_type')

    def __init__(self, table_name: str, path: Optional[str], file_type: str):
        """
        ImportUnit class constructor.
        The path is None, when no artifact was exported for given table.
        """
        self.table_name = table_name
        self.path = path
        self.file_type = file_type

    @property
    def exists(self) -> bool:
        return self.path is not None

    def __repr__(self) -> str:
        return f'ImportUnit({self.table_name!r}, {self.path!r})'


def discover_import_units(conversion: Conversion, known_tables: Iterable[str] = ()) -> dict[str, ImportUnit]:
    """
    Scans the export directory for "<table>.<file_type>" artifacts.
    Returns import units for found artifacts (sorted by table name) followed by the known tables
    having no artifact, filtered by "include_tables" and "exclude_tables".
    """
    if not os.path.isdir(conversion.export_dir):
        raise PreconditionError(f'Export directory does not exist: {conversion.export_dir}')

    extension = f'.{conversion.file_type}'
    artifacts = {}

    for file_name in sorted(os.listdir(conversion.export_dir)):
        table_name, file_extension = os.path.splitext(file_name)
        path = os.path.join(conversion.export_dir, file_name)

        if file_extension.lower() == extension and os.path.isfile(path):
            artifacts[table_name] = path

    if not artifacts:
        raise PreconditionError(
            f'No {conversion.file_type.upper()} files found in export directory: {conversion.export_dir}'
        )

    units = {
        table_name: ImportUnit(table_name, path, conversion.file_type)
        for table_name, path in artifacts.items()
        if conversion.is_table_selected(table_name)
    }

    for table_name in known_tables:
        if table_name not in units and conversion.is_table_selected(table_name):
            units[table_name] = ImportUnit(table_name, None, conversion.file_type)

    return units


class Artifact:
    """
    Rows of a single import unit.
    JSON artifacts are parsed wholesale, CSV artifacts are streamed.
    Use as a context manager, so the file and the parsed rows are released once the table is done.
    """
    unit: ImportUnit
    columns: list[str]

    def __init__(self, unit: ImportUnit):
        self.unit = unit
        self.columns = []
        self._file: Optional[TextIO] = None
        self._rows: Optional[Iterator[dict[str, Any]]] = None
        self._head: Optional[dict[str, Any]] = None
        self._csv_reader: Optional[csv.DictReader] = None

    def __enter__(self) -> 'Artifact':
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def is_empty(self) -> bool:
        return self._head is None

    def open(self) -> 'Artifact':
        """
        Opens the artifact and reads its column names and first row.
        """
        if not self.unit.path:
            raise ArtifactParseError(f'No artifact found for table "{self.unit.table_name}"', self.unit.table_name)

        if self.unit.file_type == 'json':
            self._open_json()
        else:
            self._open_csv()

        self._head = self._next_row()
        return self

    def _open_json(self) -> None:
        """
        Parses JSON artifact, which must be an array of row objects.
        A zero-byte file stands for an empty table.
        """
        try:
            with open(self.unit.path, 'r', encoding='utf-8') as file:  # type: ignore
                contents = file.read()

            data = json.loads(contents) if contents.strip() else []
        except ValueError as e:
            raise ArtifactParseError(f'Malformed JSON in "{self.unit.path}": {e}', self.unit.table_name) from e

        if not isinstance(data, list) or any(not isinstance(row, dict) for row in data):
            raise ArtifactParseError(
                f'JSON artifact "{self.unit.path}" must contain an array of objects',
                self.unit.table_name
            )

        # Column names are taken from the first row, with exact case.
        self.columns = list(data[0].keys()) if data else []
        self._rows = iter(data)

    def _open_csv(self) -> None:
        """
        Opens CSV artifact. The header row holds column names, with exact case.
        """
        self._file = open(self.unit.path, 'r', encoding='utf-8', newline='')  # type: ignore
        reader = csv.DictReader(self._file)

        try:
            self.columns = list(reader.fieldnames or [])
        except (csv.Error, UnicodeDecodeError) as e:
            raise ArtifactParseError(f'Malformed CSV in "{self.unit.path}": {e}', self.unit.table_name) from e

        self._csv_reader = reader
        self._rows = iter(reader)

    def _next_row(self) -> Optional[dict[str, Any]]:
        """
        Returns next row, or None when all the rows are consumed.
        """
        try:
            row = next(self._rows, None)  # type: ignore
        except (csv.Error, UnicodeDecodeError) as e:
            raise ArtifactParseError(f'Malformed CSV in "{self.unit.path}": {e}', self.unit.table_name) from e

        if row is not None and self._csv_reader is not None:
            self._check_csv_row(row)

        return row

    def _check_csv_row(self, row: dict[str, Any]) -> None:
        """
        Rejects a CSV row, which has more or fewer fields than the header.
        DictReader stores surplus fields under the None key, and fills absent fields with None.
        """
        if None in row or None in row.values():
            raise ArtifactParseError(
                f'Malformed CSV in "{self.unit.path}": line {self._csv_reader.line_num} has'  # type: ignore
                f' {"more" if None in row else "fewer"} fields than the header',
                self.unit.table_name
            )

    def iter_rows(self) -> Iterator[dict[str, Any]]:
        """
        Yields the rows of the artifact. The rows can be consumed only once.
        """
        row, self._head = self._head, None

        while row is not None:
            yield row
            row = self._next_row()

    def close(self) -> None:
        """
        Closes the file (if still open) and drops the parsed rows.
        """
        if self._file:
            self._file.close()
            self._file = None

        self._rows = None
        self._head = None
        self._csv_reader = None


def open_artifact(unit: ImportUnit) -> Artifact:
    """
    Returns opened artifact of given import unit.
    """
    artifact = Artifact(unit)

    try:
        return artifact.open()
    except Exception:
        artifact.close()
        raise
