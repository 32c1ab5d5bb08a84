"""
Tests for the Handle Geometry Resolver: anchor layout per category and
hit-testing priorities.
"""

import pytest

from flowcanvas.editor.constants import (
    BRANCH_HEADER_OFFSET,
    BRANCH_ROW_HEIGHT,
    HANDLE_OUTSET,
    NODE_WIDTH,
)
from flowcanvas.editor.graph import FlowGraph
from flowcanvas.editor.handles import (
    HIT_BODY,
    HIT_CANVAS,
    HIT_EDGE,
    HIT_HANDLE,
    HIT_HEADER,
    Hit,
    edge_at,
    edge_source_anchor,
    hit_test,
    input_anchor,
    node_at,
    node_height,
    output_anchor,
    output_handles,
)
from flowcanvas.editor.payloads import make_branch_rule

RIGHT_X = NODE_WIDTH + HANDLE_OUTSET


@pytest.fixture
def graph():
    return FlowGraph()


@pytest.fixture
def condition(graph):
    rules = [make_branch_rule('age', 'greater_than', '18'), make_branch_rule('city', 'equals', 'Recife')]
    return graph.add_node('condition', (0, 0), payload={'label': 'Check', 'rules': rules})


class TestAnchors:

    def test_default_node_has_single_output(self, graph):
        node = graph.add_node('message', (100, 50))
        assert output_handles(node) == ['default']
        assert output_anchor(node, 'default') == (100 + RIGHT_X, 90)
        assert input_anchor(node) == (90, 90)

    def test_start_has_no_input(self, graph):
        node = graph.add_node('start', (0, 0))
        assert input_anchor(node) is None
        assert output_handles(node) == ['default']

    def test_condition_rule_handles_in_order_with_else_last(self, condition):
        rule_ids = [r['id'] for r in condition.payload['rules']]
        assert output_handles(condition) == rule_ids + ['else']
        assert output_anchor(condition, rule_ids[0]) == (RIGHT_X, BRANCH_HEADER_OFFSET)
        assert output_anchor(condition, rule_ids[1]) == (RIGHT_X, BRANCH_HEADER_OFFSET + BRANCH_ROW_HEIGHT)
        assert output_anchor(condition, 'else') == (RIGHT_X, BRANCH_HEADER_OFFSET + 2 * BRANCH_ROW_HEIGHT)

    def test_condition_without_rules_only_has_else(self, graph):
        node = graph.add_node('condition')
        assert output_handles(node) == ['else']

    def test_condition_height_grows_with_rules(self, condition):
        assert node_height(condition) == BRANCH_HEADER_OFFSET + 3 * BRANCH_ROW_HEIGHT

    def test_question_timeout_handle_only_when_set(self, graph):
        node = graph.add_node('question', (0, 0))
        assert output_handles(node) == ['success', 'invalid']
        assert output_anchor(node, 'timeout') is None

        graph.update_node_payload(node.id, {'timeout_seconds': 30})
        assert output_handles(node) == ['success', 'invalid', 'timeout']
        assert output_anchor(node, 'timeout') == (RIGHT_X, BRANCH_HEADER_OFFSET + 2 * BRANCH_ROW_HEIGHT)

    def test_unknown_handle_has_no_anchor(self, graph):
        node = graph.add_node('message')
        assert output_anchor(node, 'success') is None

    def test_orphaned_edge_falls_back_to_first_output(self, condition):
        point, orphaned = edge_source_anchor(condition, 'deleted-rule')
        assert orphaned is True
        assert point == output_anchor(condition, None)

        point, orphaned = edge_source_anchor(condition, 'else')
        assert orphaned is False


class TestHitTest:

    def test_hit_kinds(self, graph):
        node = graph.add_node('message', (0, 0))
        assert hit_test(graph, (RIGHT_X, 40)).kind == HIT_HANDLE
        assert hit_test(graph, (RIGHT_X + 5, 43)).handle == 'default'
        assert hit_test(graph, (100, 20)) == Hit(HIT_HEADER, node.id)
        assert hit_test(graph, (100, 80)).kind == HIT_BODY
        assert hit_test(graph, (1000, 1000)).kind == HIT_CANVAS

    def test_handle_beats_overlapping_header(self, graph):
        a = graph.add_node('message', (0, 0))
        graph.add_node('message', (255, 20))  # covers A's output handle
        hit = hit_test(graph, (RIGHT_X, 40))
        assert hit.kind == HIT_HANDLE
        assert hit.node_id == a.id

    def test_condition_rule_handle_hit(self, graph, condition):
        second_rule = condition.payload['rules'][1]['id']
        hit = hit_test(graph, (RIGHT_X, BRANCH_HEADER_OFFSET + BRANCH_ROW_HEIGHT + 3))
        assert (hit.kind, hit.handle) == (HIT_HANDLE, second_rule)

    def test_topmost_node_wins(self, graph):
        graph.add_node('message', (0, 0))
        top = graph.add_node('message', (50, 0))
        assert hit_test(graph, (100, 20)).node_id == top.id

    def test_node_at_excludes_source(self, graph):
        a = graph.add_node('message', (0, 0))
        b = graph.add_node('message', (400, 0))
        assert node_at(graph, (100, 50), exclude=a.id) is None
        assert node_at(graph, (450, 50), exclude=a.id) == b.id
        # The input handle sticks out left of the card and still counts
        assert node_at(graph, (390, 40)) == b.id

    def test_edge_hit_between_cards(self, graph):
        a = graph.add_node('message', (0, 0))
        b = graph.add_node('message', (400, 0))
        edge = graph.add_edge(a.id, b.id, 'default')
        assert hit_test(graph, (325, 44)) == Hit(HIT_EDGE, edge_id=edge.id)
        assert edge_at(graph, (325, 60)) is None
        assert hit_test(graph, (325, 60)).kind == HIT_CANVAS

    def test_cards_cover_edges(self, graph):
        a = graph.add_node('message', (0, 0))
        b = graph.add_node('message', (400, 0))
        graph.add_edge(a.id, b.id, 'default')
        graph.add_node('message', (300, 0))
        assert hit_test(graph, (325, 41)).kind == HIT_BODY
