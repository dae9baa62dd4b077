import random

import pytest

from pgimport.dependency_graph import build_dependency_graph, get_self_referencing_tables, topological_sort
from pgimport.errors import CyclicDependencyError
from pgimport.table import ForeignKeyEdge


def edge(table_name, referenced_table_name, column_name='ref_id'):
    return ForeignKeyEdge(table_name, column_name, referenced_table_name, 'id')


def assert_respects_edges(order, dependencies):
    position = {table_name: index for index, table_name in enumerate(order)}
    for table_name, referenced_tables in dependencies.items():
        for referenced in referenced_tables:
            if table_name in position and referenced in position:
                assert position[referenced] < position[table_name], f'{referenced} must precede {table_name}'


class TestBuildDependencyGraph:
    def test_duplicate_edges_collapse(self):
        edges = [edge('orders', 'users', 'buyer_id'), edge('orders', 'users', 'seller_id')]
        graph = build_dependency_graph(edges)
        assert graph == {'orders': frozenset({'users'})}

    def test_listed_tables_without_edges_map_to_empty_set(self):
        graph = build_dependency_graph([edge('orders', 'users')], ['users', 'tags'])
        assert graph['users'] == frozenset()
        assert graph['tags'] == frozenset()
        assert graph['orders'] == frozenset({'users'})

    def test_self_reference_is_not_an_edge(self):
        edges = [edge('employees', 'employees', 'manager_id')]
        assert build_dependency_graph(edges) == {'employees': frozenset()}
        assert get_self_referencing_tables(edges) == ['employees']


class TestTopologicalSort:
    def test_dependencies_come_first(self):
        dependencies = {
            'order_items': {'orders', 'products'},
            'orders': {'users'},
            'products': {'categories'},
        }
        tables = ['order_items', 'orders', 'products', 'users', 'categories']
        order = topological_sort(tables, dependencies)
        assert sorted(order) == sorted(tables)
        assert_respects_edges(order, dependencies)

    def test_independent_tables_keep_input_order(self):
        assert topological_sort(['c', 'a', 'b'], {}) == ['c', 'a', 'b']

    def test_is_deterministic(self):
        dependencies = {'a': {'x', 'y', 'z'}, 'b': {'y'}}
        tables = ['a', 'b', 'x', 'y', 'z']
        first = topological_sort(tables, dependencies)
        assert first == ['x', 'y', 'z', 'a', 'b']
        assert all(topological_sort(tables, dependencies) == first for _ in range(10))

    def test_two_table_cycle_raises(self):
        with pytest.raises(CyclicDependencyError) as error:
            topological_sort(['a', 'b'], {'a': {'b'}, 'b': {'a'}})
        assert error.value.table_name == 'a'
        assert 'Cyclic dependency detected in table: a' in str(error.value)

    def test_longer_cycle_raises(self):
        dependencies = {'a': {'b'}, 'b': {'c'}, 'c': {'a'}, 'd': set()}
        with pytest.raises(CyclicDependencyError):
            topological_sort(['d', 'a', 'b', 'c'], dependencies)

    def test_unlisted_tables_are_traversed_but_not_emitted(self):
        # "a" depends on "b" through "hidden", which has no artifact.
        dependencies = {'a': {'hidden'}, 'hidden': {'b'}}
        assert topological_sort(['a', 'b'], dependencies) == ['b', 'a']

    def test_cycle_through_unlisted_table_raises(self):
        with pytest.raises(CyclicDependencyError):
            topological_sort(['a'], {'a': {'hidden'}, 'hidden': {'a'}})

    def test_duplicate_input_tables_are_emitted_once(self):
        assert topological_sort(['a', 'a', 'b'], {'a': {'b'}}) == ['b', 'a']

    def test_deep_chain_does_not_hit_recursion_limit(self):
        depth = 5000
        tables = [f't{index}' for index in range(depth)]
        dependencies = {f't{index}': {f't{index + 1}'} for index in range(depth - 1)}
        order = topological_sort(tables, dependencies)
        assert order == list(reversed(tables))

    def test_random_acyclic_graphs(self):
        generator = random.Random(20240101)
        for _ in range(50):
            tables = [f't{index}' for index in range(20)]
            # Edges only point to tables with a greater index, hence no cycles.
            dependencies = {
                table_name: {tables[other] for other in range(index + 1, len(tables)) if generator.random() < 0.2}
                for index, table_name in enumerate(tables)
            }
            shuffled = tables[:]
            generator.shuffle(shuffled)
            order = topological_sort(shuffled, dependencies)
            assert sorted(order) == sorted(tables)
            assert_respects_edges(order, dependencies)
