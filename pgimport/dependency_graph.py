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
from typing import Iterable, Iterator, Mapping

from pgimport.errors import CyclicDependencyError
from pgimport.table import ForeignKeyEdge


_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


def build_dependency_graph(
    edges: Iterable[ForeignKeyEdge],
    tables: Iterable[str] = ()
) -> dict[str, frozenset[str]]:
    """
    Builds a map of table dependencies: {table_name: names of the tables it references}.
    Several foreign keys between the same pair of tables collapse into a single edge.
    Each of the given tables is present in the map, even if it references nothing.
    """
    dependencies: dict[str, set[str]] = {table_name: set() for table_name in tables}

    for edge in edges:
        referenced = dependencies.setdefault(edge.table_name, set())

        # A self-referencing foreign key does not affect the order of tables.
        if edge.referenced_table_name != edge.table_name:
            referenced.add(edge.referenced_table_name)

    return {table_name: frozenset(referenced) for table_name, referenced in dependencies.items()}


def get_self_referencing_tables(edges: Iterable[ForeignKeyEdge]) -> list[str]:
    """
    Returns names of the tables, having foreign keys that point to the table itself.
    """
    return sorted({edge.table_name for edge in edges if edge.table_name == edge.referenced_table_name})


def topological_sort(tables: list[str], dependencies: Mapping[str, Iterable[str]]) -> list[str]:
    """
    Sorts given tables, so each table follows all the tables it depends on.

    Iterative post-order DFS over integer ids with a three-state visitation array,
    so the depth of the dependency chains is not limited by the recursion limit.
    Roots are visited in the order of given tables, and dependencies in sorted order,
    hence the same input always produces the same output.

    Tables missing from the dependency map have no dependencies.
    Tables referenced by given tables, but not listed in "tables" are traversed (transitive
    dependencies still hold), but are not part of the result.

    Raises CyclicDependencyError when the graph has a cycle; nothing is returned in such case.
    """
    ids: dict[str, int] = {}
    names: list[str] = []
    states: list[int] = []

    def _get_id(table_name: str) -> int:
        """
        Returns the id of given table, registering the table if necessary.
        """
        table_id = ids.get(table_name)

        if table_id is None:
            table_id = len(names)
            ids[table_name] = table_id
            names.append(table_name)
            states.append(_UNVISITED)

        return table_id

    def _iter_dependencies(table_id: int) -> Iterator[int]:
        """
        Yields ids of the tables, given table depends on.
        """
        for dependency in sorted(dependencies.get(names[table_id], ())):
            yield _get_id(dependency)

    requested = set(tables)
    sorted_tables: list[str] = []

    for table_name in tables:
        root_id = _get_id(table_name)

        if states[root_id] != _UNVISITED:
            continue

        states[root_id] = _IN_PROGRESS
        stack = [(root_id, _iter_dependencies(root_id))]

        while stack:
            table_id, pending_dependencies = stack[-1]
            dependency_id = next(pending_dependencies, None)

            if dependency_id is None:
                stack.pop()
                states[table_id] = _DONE

                if names[table_id] in requested:
                    sorted_tables.append(names[table_id])

                continue

            if states[dependency_id] == _IN_PROGRESS:
                raise CyclicDependencyError(names[dependency_id])

            if states[dependency_id] == _UNVISITED:
                states[dependency_id] = _IN_PROGRESS
                stack.append((dependency_id, _iter_dependencies(dependency_id)))

    return sorted_tables
