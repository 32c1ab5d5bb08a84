"""
Tests for the Graph Model.

Covers node/edge CRUD, cascade delete, self-loop rejection, duplication and
the structural invariants under long random operation sequences.
"""

import random

import pytest

from flowcanvas.editor.categories import NodeCategory
from flowcanvas.editor.graph import FlowGraph


@pytest.fixture
def graph():
    return FlowGraph()


@pytest.fixture
def abc(graph):
    """Three message nodes A, B, C."""
    a = graph.add_node('message', (0, 0))
    b = graph.add_node('message', (400, 0))
    c = graph.add_node('message', (800, 0))
    return a, b, c


class TestNodes:

    def test_add_node_uses_category_defaults(self, graph):
        msg = graph.add_node(NodeCategory.MESSAGE, (1, 2))
        question = graph.add_node('question')
        assert msg.payload == {'label': 'New Message', 'content': ''}
        assert msg.position == (1.0, 2.0)
        assert question.payload['label'] == 'QUESTION'
        assert question.payload['validation_type'] == 'any'
        assert msg.id != question.id

    def test_unknown_category_rejected(self, graph):
        with pytest.raises(ValueError):
            graph.add_node('teleport')

    def test_update_payload_is_shallow_merge(self, graph):
        node = graph.add_node('message')
        graph.update_node_payload(node.id, {'content': 'hi'})
        graph.update_node_payload(node.id, {'label': 'Greeting'})
        assert node.payload == {'label': 'Greeting', 'content': 'hi'}

    def test_move_node(self, graph):
        node = graph.add_node('start', (10, 10))
        graph.move_node(node.id, 5, -3)
        assert node.position == (15, 7)

    def test_missing_ids_are_noops(self, graph):
        assert graph.update_node_payload('nope', {'a': 1}) is None
        assert graph.move_node('nope', 1, 1) is None
        assert graph.delete_node('nope') is False
        assert graph.duplicate_node('nope') is None
        assert graph.delete_edge('nope') is False

    def test_duplicate_copies_payload_not_edges(self, graph, abc):
        a, b, _ = abc
        graph.update_node_payload(a.id, {'content': 'hello', 'extra': {'nested': [1]}})
        graph.add_edge(a.id, b.id, 'default')

        copy = graph.duplicate_node(a.id)

        assert copy.id != a.id
        assert copy.category == a.category
        assert copy.position == (50, 50)
        assert copy.payload == a.payload
        assert graph.incident_edges(copy.id) == []
        # Deep copy: editing the copy leaves the original alone
        copy.payload['extra']['nested'].append(2)
        assert a.payload['extra']['nested'] == [1]


class TestEdges:

    def test_self_loop_rejected(self, graph, abc):
        a, _, _ = abc
        assert graph.add_edge(a.id, a.id, 'default') is None
        assert graph.edges() == []

    def test_missing_endpoint_rejected(self, graph, abc):
        a, _, _ = abc
        assert graph.add_edge(a.id, 'ghost') is None
        assert graph.add_edge('ghost', a.id) is None
        assert graph.edges() == []

    def test_parallel_edges_allowed(self, graph, abc):
        a, b, _ = abc
        e1 = graph.add_edge(a.id, b.id, 'default')
        e2 = graph.add_edge(a.id, b.id, 'default')
        assert e1.id != e2.id
        assert len(graph.edges()) == 2

    def test_edges_keep_insertion_order(self, graph, abc):
        a, b, c = abc
        e1 = graph.add_edge(b.id, c.id)
        e2 = graph.add_edge(a.id, b.id)
        assert [e.id for e in graph.edges()] == [e1.id, e2.id]

    def test_delete_edge(self, graph, abc):
        a, b, _ = abc
        edge = graph.add_edge(a.id, b.id)
        assert graph.delete_edge(edge.id) is True
        assert graph.edges() == []
        assert graph.incident_edges(a.id) == []

    def test_delete_node_cascades(self, graph, abc):
        a, b, c = abc
        graph.add_edge(a.id, b.id)
        graph.add_edge(c.id, b.id)
        keep = graph.add_edge(a.id, c.id)

        assert graph.delete_node(b.id) is True

        assert not graph.has_node(b.id)
        assert [e.id for e in graph.edges()] == [keep.id]
        assert graph.check_integrity() == []

    def test_incident_edges_and_handles(self, graph, abc):
        a, b, c = abc
        e1 = graph.add_edge(a.id, b.id, 'success')
        e2 = graph.add_edge(c.id, a.id)
        graph.add_edge(b.id, c.id)
        assert {e.id for e in graph.incident_edges(a.id)} == {e1.id, e2.id}
        assert graph.edges_from_handle(a.id, 'success') == [e1]


class TestInvariants:
    """Random operation sequences never break referential integrity."""

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_random_operations_keep_graph_valid(self, graph, seed):
        rng = random.Random(seed)
        categories = [c.value for c in NodeCategory]

        for _ in range(600):
            node_ids = [n.id for n in graph.nodes()]
            edge_ids = [e.id for e in graph.edges()]
            op = rng.choice(['add', 'add', 'edge', 'edge', 'edge', 'del_node', 'del_edge', 'dup', 'move'])

            if op == 'add' or not node_ids:
                graph.add_node(rng.choice(categories), (rng.uniform(-500, 500), rng.uniform(-500, 500)))
            elif op == 'edge':
                # Include self-loops and unknown ids on purpose
                source = rng.choice(node_ids)
                target = rng.choice(node_ids + ['missing'])
                graph.add_edge(source, target, 'default')
            elif op == 'del_node':
                graph.delete_node(rng.choice(node_ids))
            elif op == 'del_edge' and edge_ids:
                graph.delete_edge(rng.choice(edge_ids))
            elif op == 'dup':
                graph.duplicate_node(rng.choice(node_ids))
            elif op == 'move':
                graph.move_node(rng.choice(node_ids), rng.uniform(-10, 10), rng.uniform(-10, 10))

            assert graph.check_integrity() == []
            for edge in graph.edges():
                assert graph.has_node(edge.source) and graph.has_node(edge.target)
                assert edge.source != edge.target

    def test_clear(self, graph, abc):
        a, b, _ = abc
        graph.add_edge(a.id, b.id)
        graph.clear()
        assert len(graph) == 0
        assert graph.edges() == []
