"""
Tests for flow document serialization and legacy normalization.
"""

import pytest

from flowcanvas.editor.categories import NodeCategory
from flowcanvas.editor.document import (
    DocumentError,
    load_document,
    normalize_document,
    to_document,
)
from flowcanvas.editor.graph import FlowGraph
from flowcanvas.editor.handles import HIT_CANVAS, hit_test, output_handles


@pytest.fixture
def legacy_flow():
    """A flow as stored by the old row-per-record API."""
    return {
        'nodes': [
            {'id': 'n1', 'type': 'actions', 'position_x': 10, 'position_y': 20,
             'content': {'label': 'Tag lead', 'actions': [{'type': 'add_tag', 'params': {'tagId': 't1'}}]}},
            {'id': 'n2', 'type': 'message', 'data': {'label': 'Hi', 'content': 'Hello'}},
            {'id': 'n3', 'type': 'question', 'position_x': 0, 'position_y': None, 'content': None},
        ],
        'edges': [
            {'id': 'e1', 'source_node_id': 'n1', 'target_node_id': 'n2', 'source_handle': 'default'},
            {'id': 'e2', 'source': 'n3', 'target': 'n1', 'sourceHandle': 'invalid', 'target_handle': 'in'},
        ],
    }


class TestNormalize:

    def test_legacy_records(self, legacy_flow):
        nodes, edges = normalize_document(legacy_flow)
        by_id = {n.id: n for n in nodes}

        assert by_id['n1'].category == NodeCategory.ACTION
        assert by_id['n1'].position == (10.0, 20.0)
        assert by_id['n1'].payload['actions'][0]['type'] == 'add_tag'
        assert by_id['n2'].position == (100.0, 100.0)
        assert by_id['n2'].payload == {'label': 'Hi', 'content': 'Hello'}
        # A zero coordinate is kept, a missing one defaults
        assert by_id['n3'].position == (0.0, 100.0)
        assert by_id['n3'].payload == {}

        assert [(e.source, e.target, e.source_handle, e.target_handle) for e in edges] == [
            ('n1', 'n2', 'default', None),
            ('n3', 'n1', 'invalid', 'in'),
        ]

    def test_invalid_records_dropped(self):
        raw = {
            'nodes': [
                {'id': 'a', 'type': 'start'},
                {'id': 'b', 'type': 'handoff'},
                {'id': 'a', 'type': 'message'},
            ],
            'edges': [
                {'id': 'loop', 'source': 'a', 'target': 'a'},
                {'id': 'dangling', 'source': 'a', 'target': 'zzz'},
                {'id': 'ok', 'source': 'a', 'target': 'b'},
                {'id': 'ok', 'source': 'b', 'target': 'a'},
            ],
        }
        nodes, edges = normalize_document(raw)
        assert [(n.id, n.category.value) for n in nodes] == [('a', 'start'), ('b', 'handoff')]
        assert [(e.id, e.source, e.target) for e in edges] == [('ok', 'a', 'b')]

    def test_missing_ids_generated(self):
        nodes, edges = normalize_document({
            'nodes': [{'type': 'start', 'id': 's'}, {'type': 'message', 'id': 'm'}, {'type': 'handoff'}],
            'edges': [{'source': 's', 'target': 'm'}],
        })
        assert nodes[2].id
        assert edges[0].id

    def test_wrapped_document(self):
        nodes, _ = normalize_document({'flow': {'nodes': [{'id': 'x', 'type': 'start'}], 'edges': []}})
        assert [n.id for n in nodes] == ['x']

    def test_empty_inputs(self):
        assert normalize_document(None) == ([], [])
        assert normalize_document({}) == ([], [])

    @pytest.mark.parametrize("raw", [
        [],
        {'nodes': {'a': 1}},
        {'nodes': [{'id': 'x', 'type': 'teleport'}]},
        {'nodes': [{'id': 'x'}]},
        {'nodes': [{'id': 'x', 'type': 'start', 'position': {'x': 'left', 'y': 0}}]},
        {'nodes': [{'id': 'x', 'type': 'start', 'data': 'text'}]},
        {'nodes': [{'id': 'x', 'type': 'start'}], 'edges': [{'id': 'e', 'source': 'x'}]},
    ])
    def test_malformed_documents_raise(self, raw):
        with pytest.raises(DocumentError):
            normalize_document(raw)


class TestSerialize:

    def test_canonical_shape(self):
        graph = FlowGraph()
        a = graph.add_node('start', (1, 2))
        b = graph.add_node('message', (300, 2))
        edge = graph.add_edge(a.id, b.id, 'default')

        doc = to_document(graph)

        assert doc['nodes'][0] == {'id': a.id, 'type': 'start', 'position': {'x': 1.0, 'y': 2.0},
                                   'data': {'label': 'START'}}
        assert doc['edges'] == [{'id': edge.id, 'source': a.id, 'target': b.id,
                                 'sourceHandle': 'default', 'targetHandle': None, 'label': None}]

    def test_source_handle_omitted_when_unset(self):
        graph = FlowGraph()
        a, b = graph.add_node('start'), graph.add_node('handoff')
        graph.add_edge(a.id, b.id)
        assert 'sourceHandle' not in to_document(graph)['edges'][0]

    def test_reload_reproduces_document(self, legacy_flow):
        graph = load_document(FlowGraph(), legacy_flow)
        doc = to_document(graph)
        assert to_document(load_document(FlowGraph(), doc)) == doc

    def test_serialized_payload_is_a_copy(self):
        graph = FlowGraph()
        node = graph.add_node('condition')
        doc = to_document(graph)
        doc['nodes'][0]['data']['rules'].append({'id': 'r'})
        assert node.payload['rules'] == []

    def test_failed_load_leaves_graph_untouched(self):
        graph = FlowGraph()
        node = graph.add_node('message')
        with pytest.raises(DocumentError):
            load_document(graph, {'nodes': [{'id': 'x', 'type': 'bogus'}]})
        assert graph.nodes() == [node]


class TestPayloadShapes:
    """Payloads written by the chatbot runtime load into editable shapes."""

    def test_text_validation_maps_to_any(self):
        nodes, _ = normalize_document({'nodes': [
            {'id': 'q', 'type': 'question', 'data': {'question': 'Name?', 'validation_type': 'text'}},
        ]})
        assert nodes[0].payload['validation_type'] == 'any'

    def test_runtime_rules_get_ids(self):
        nodes, _ = normalize_document({'nodes': [
            {'id': 'c', 'type': 'condition', 'data': {'rules': [
                {'value': 'yes', 'nextNodeId': 'n9'},
                {'id': 'r2', 'variable': 'plan', 'value': 'pro'},
            ]}},
        ]})
        first, second = nodes[0].payload['rules']
        assert first['id']
        assert first['operator'] == 'equals'
        assert first['value'] == 'yes'
        assert first['nextNodeId'] == 'n9'
        assert second == {'id': 'r2', 'variable': 'plan', 'operator': 'equals', 'value': 'pro'}

    def test_loaded_rules_are_hit_testable(self):
        graph = load_document(FlowGraph(), {'nodes': [
            {'id': 'c', 'type': 'condition', 'position': {'x': 0, 'y': 0},
             'data': {'rules': [{'value': 'yes'}]}},
        ]})
        node = graph.get_node('c')
        assert output_handles(node) == [node.payload['rules'][0]['id'], 'else']
        assert hit_test(graph, (500, 500)).kind == HIT_CANVAS

    def test_action_params_filled_from_defaults(self):
        nodes, _ = normalize_document({'nodes': [
            {'id': 'a', 'type': 'action', 'data': {'actions': [{'type': 'delay'}, {'type': 'create_lead',
                                                                                  'params': {'name': 'Ann'}}]}},
        ]})
        assert nodes[0].payload['actions'] == [
            {'type': 'delay', 'params': {'seconds': 3}},
            {'type': 'create_lead', 'params': {'name': 'Ann', 'email': ''}},
        ]

    @pytest.mark.parametrize("node", [
        {'id': 'c', 'type': 'condition', 'data': {'rules': ['1']}},
        {'id': 'c', 'type': 'condition', 'data': {'rules': 'yes'}},
        {'id': 'c', 'type': 'condition', 'data': {'rules': [{'id': 'r', 'operator': 'roughly'}]}},
        {'id': 'a', 'type': 'action', 'data': {'actions': [42]}},
        {'id': 'a', 'type': 'action', 'data': {'actions': [{'type': 'launch_rocket'}]}},
        {'id': 'a', 'type': 'action', 'data': {'actions': [{'type': 'delay', 'params': [3]}]}},
        {'id': 'q', 'type': 'question', 'data': {'validation_type': 'telepathy'}},
    ])
    def test_malformed_payloads_raise(self, node):
        with pytest.raises(DocumentError):
            normalize_document({'nodes': [node]})
