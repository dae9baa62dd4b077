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
from typing import NamedTuple, Sequence

from pgimport.errors import MissingInDestinationError, ExtraInDestinationError


class ColumnReconciliation(NamedTuple):
    missing_in_destination: list[str]
    extra_in_destination: list[str]

    @property
    def is_exact_match(self) -> bool:
        return not self.missing_in_destination and not self.extra_in_destination


def reconcile_columns(
    destination_columns: Sequence[str],
    source_columns: Sequence[str]
) -> ColumnReconciliation:
    """
    Compares column names of the destination table and of the artifact.
    Comparison is case-sensitive; the original order of each side is preserved in the output.
    """
    destination_set, source_set = set(destination_columns), set(source_columns)
    return ColumnReconciliation(
        missing_in_destination=[column for column in source_columns if column not in destination_set],
        extra_in_destination=[column for column in destination_columns if column not in source_set],
    )


def validate_columns(
    table_name: str,
    destination_columns: Sequence[str],
    source_columns: Sequence[str]
) -> ColumnReconciliation:
    """
    Ensures the artifact and the destination table have exactly the same column names.
    No partial-column import, the mismatch fails the table before any row is written.
    """
    reconciliation = reconcile_columns(destination_columns, source_columns)

    if reconciliation.missing_in_destination:
        columns = ', '.join(reconciliation.missing_in_destination)
        raise MissingInDestinationError(
            f'Missing columns in PostgreSQL table "{table_name}": {columns}',
            table_name,
            reconciliation.missing_in_destination,
            reconciliation.extra_in_destination,
        )

    if reconciliation.extra_in_destination:
        columns = ', '.join(reconciliation.extra_in_destination)
        raise ExtraInDestinationError(
            f'Extra columns in PostgreSQL table "{table_name}": {columns}',
            table_name,
            reconciliation.missing_in_destination,
            reconciliation.extra_in_destination,
        )

    return reconciliation
