# tests/plugin_test/test_encoded_flavor.py
import base64
import json

import pytest

from flow_api.exceptions import FormatError
from flow_api.models.node import NodeRecord

from flavor_plugin_encoded.plugin import EncodedFlavor


@pytest.fixture
def plugin():
    return EncodedFlavor()


@pytest.fixture
def node():
    return NodeRecord("n1", "task", (0, 0), {'label': "Zahlung", 'secret': "ключ", 'limit': 5})


class TestEncoding:
    def test_data_is_wrapped(self, plugin, node):
        [out] = plugin.serialize_nodes([node])
        assert out['data']['encoded'] is True
        decoded = json.loads(base64.b64decode(out['data']['value']).decode('utf-8'))
        assert decoded == node.data
        assert out['id'] == "n1"

    def test_metadata(self, plugin):
        metadata = plugin.export_graph([], [])['metadata']
        assert metadata['encoded'] is True
        assert metadata['algorithm'] == "base64"
        assert metadata['version'] == "1.0.0"

    def test_plain_data_passes_through(self, plugin):
        [node] = plugin.deserialize_nodes([{'id': "n1", 'type': "t", 'data': {'label': "plain"}}])
        assert node.data == {'label': "plain"}

    def test_corrupt_value_rejected_by_validate(self, plugin, monkeypatch):
        envelope = {'nodes': [{'id': "n1", 'type': "t", 'data': {'encoded': True, 'value': "%%%"}}],
                    'edges': []}
        monkeypatch.setattr(plugin, 'deserialize_nodes', lambda nodes: pytest.fail("deserialized"))
        with pytest.raises(FormatError) as exc_info:
            plugin.import_graph(envelope)
        assert exc_info.value.field == "data"

    def test_validate_accepts_plain_and_encoded(self, plugin, node):
        plugin.validate(plugin.export_graph([node, NodeRecord("n2", "t")], []))
        plugin.validate({'nodes': [{'id': "n3", 'data': {'label': "plain"}}], 'edges': []})


class TestRoundTrip:
    def test_records_survive(self, plugin, node):
        nodes, _ = plugin.import_from_text(plugin.export_to_text([node], []))
        assert nodes[0].to_dict() == node.to_dict()

    def test_pipeline(self, plugin, pipeline_nodes, pipeline_edges):
        nodes, edges = plugin.clone_graph(pipeline_nodes, pipeline_edges)
        assert [n.data for n in nodes] == [n.data for n in pipeline_nodes]
        assert len(edges) == len(pipeline_edges)
