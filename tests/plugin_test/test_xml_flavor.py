# tests/plugin_test/test_xml_flavor.py
import pytest
from lxml import etree

from flow_api.exceptions import FormatError, ParseError
from flow_api.models.edge import EdgeRecord
from flow_api.models.node import NodeRecord

from flavor_plugin_xml.plugin import XmlFlavor


@pytest.fixture
def plugin():
    return XmlFlavor()


@pytest.fixture
def node():
    return NodeRecord("n1", "task", (1.5, -2), {
        'label': "  padded  ",
        'count': 3,
        'ratio': 0.1,
        'enabled': False,
        'missing': None,
        'tags': ["a", "b"],
        'nested': {'empty': {}, 'list': []},
        'markup': "<b>&amp;</b>",
    }, size=(100, 40))


class TestEncodeText:
    def test_document_structure(self, plugin, node):
        text = plugin.export_to_text([node], [])
        root = etree.fromstring(text.encode('utf-8'))
        assert root.tag == "flow"
        assert root.get("version") == "1.0.0"
        assert root[0].tag == "object"
        assert [child.get("key") for child in root[0]] == ["nodes", "edges", "metadata"]

    def test_typed_values(self, plugin):
        text = plugin.encode_text({'n': 1, 'f': 2.5, 'b': True, 'z': None})
        root = etree.fromstring(text.encode('utf-8'))
        assert [child.tag for child in root[0]] == ["int", "float", "bool", "null"]

    def test_control_characters_are_base64(self, plugin):
        text = plugin.encode_text({'bell\x07': "ring\x07", 'plain': "ok"})
        root = etree.fromstring(text.encode('utf-8'))
        escaped, plain = root[0]
        assert escaped.get("encoding") == "base64"
        assert escaped.get("key-encoding") == "base64"
        assert "\x07" not in text
        assert plain.get("encoding") is None
        assert plain.text == "ok"


class TestDecodeText:
    def test_round_trip(self, plugin, node):
        edge = EdgeRecord("e1", "n1", "n1", data={'weight': 1}, animated=True)
        nodes, edges = plugin.import_from_text(plugin.export_to_text([node], [edge]))
        assert nodes[0].to_dict() == node.to_dict()
        assert edges[0].to_dict() == edge.to_dict()

    def test_pipeline(self, plugin, pipeline_nodes, pipeline_edges):
        text = plugin.export_to_text(pipeline_nodes, pipeline_edges)
        nodes, edges = plugin.import_from_text(text)
        assert [n.to_dict() for n in nodes] == [n.to_dict() for n in pipeline_nodes]
        assert [e.to_dict() for e in edges] == [e.to_dict() for e in pipeline_edges]

    def test_malformed_xml_is_parse_error(self, plugin):
        with pytest.raises(ParseError):
            plugin.import_from_text("<flow><object>")

    def test_unknown_element_is_parse_error(self, plugin):
        with pytest.raises(ParseError):
            plugin.import_from_text("<flow><object><date key='d'>2024</date></object></flow>")

    def test_wrong_root_is_parse_error(self, plugin):
        with pytest.raises(ParseError):
            plugin.import_from_text("<graph><object/></graph>")

    def test_bad_number_is_parse_error(self, plugin):
        with pytest.raises(ParseError):
            plugin.import_from_text("<flow><int>three</int></flow>")

    def test_json_text_is_parse_error(self, plugin):
        with pytest.raises(ParseError):
            plugin.import_from_text('{"nodes": [], "edges": []}')

    def test_wrong_shape_is_format_error(self, plugin):
        with pytest.raises(FormatError) as exc_info:
            plugin.import_from_text("<flow><object><string key='nodes'>x</string>"
                                    "<array key='edges'/></object></flow>")
        assert exc_info.value.field == "nodes"

    def test_control_characters_round_trip(self, plugin):
        node = NodeRecord("a", "t", data={'label': "bell\x07", 'nul\x00key': "x\x00y", 'cr': "a\r\nb"})
        nodes, _ = plugin.import_from_text(plugin.export_to_text([node], []))
        assert nodes[0].to_dict() == node.to_dict()

    def test_unknown_string_encoding_is_parse_error(self, plugin):
        with pytest.raises(ParseError):
            plugin.import_from_text("<flow><string encoding='rot13'>nope</string></flow>")

    def test_corrupt_base64_is_parse_error(self, plugin):
        with pytest.raises(ParseError):
            plugin.import_from_text("<flow><string encoding='base64'>!!!</string></flow>")
