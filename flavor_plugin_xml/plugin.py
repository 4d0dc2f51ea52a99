import base64
import re
from typing import Any, Dict

from lxml import etree

from flow_api.exceptions import ParseError
from flow_api.plugins import BaseFlavor

ROOT_TAG = 'flow'

# Characters that do not come back verbatim from an XML 1.0 parser: control
# characters, \r (line-end normalisation), and any whitespace in attributes
_NOT_XML_CHAR = re.compile('[^\t\n\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]')
_NOT_XML_ATTR_CHAR = re.compile('[^\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]')


class XmlFlavor(BaseFlavor):
    """
    Default envelope shape, XML text form.

    Values are written as typed elements (``object``, ``array``, ``string``,
    ``int``, ``float``, ``bool``, ``null``); object members carry their name
    in a ``key`` attribute, so nested node data round-trips unchanged.
    Strings or keys holding characters XML cannot carry are stored as base64
    and flagged with ``encoding="base64"`` (``key-encoding`` for keys)::

        <flow version="1.0.0">
          <object>
            <array key="nodes">
              <object>
                <string key="id">a</string>
                ...
    """

    def get_plugin_name(self) -> str:
        return "XML"

    def encode_text(self, envelope: Dict[str, Any]) -> str:
        root = etree.Element(ROOT_TAG, version=self.get_version())
        root.append(_to_element(envelope))
        if self._indent:
            etree.indent(root, space=' ' * self._indent)
        return etree.tostring(root, encoding='unicode')

    def decode_text(self, text: str) -> Any:
        """
        Raises:
            ParseError: If the text is not well-formed XML or contains an
                        element that is not a typed value.
        """
        parser = etree.XMLParser(resolve_entities=False, no_network=True,
                                 remove_comments=True, remove_blank_text=True)
        try:
            root = etree.fromstring(text.encode('utf-8'), parser)
        except (AttributeError, etree.XMLSyntaxError) as e:
            raise ParseError(f"Failed to parse XML: {e}") from e

        if root.tag != ROOT_TAG or len(root) != 1:
            raise ParseError(f"Failed to parse XML: expected a single value inside <{ROOT_TAG}>")
        return _from_element(root[0])


def _to_element(value: Any, key: Any = None) -> etree._Element:
    # bool before int: bool is an int subclass
    if value is None:
        element = etree.Element('null')
    elif isinstance(value, bool):
        element = etree.Element('bool')
        element.text = 'true' if value else 'false'
    elif isinstance(value, int):
        element = etree.Element('int')
        element.text = str(value)
    elif isinstance(value, float):
        element = etree.Element('float')
        element.text = repr(value)
    elif isinstance(value, dict):
        element = etree.Element('object')
        for child_key, child in value.items():
            element.append(_to_element(child, child_key))
    elif isinstance(value, (list, tuple)):
        element = etree.Element('array')
        for child in value:
            element.append(_to_element(child))
    else:
        element = etree.Element('string')
        text = str(value)
        if _NOT_XML_CHAR.search(text):
            element.set('encoding', 'base64')
            text = _b64encode(text)
        element.text = text

    if key is not None:
        key = str(key)
        if _NOT_XML_ATTR_CHAR.search(key):
            element.set('key-encoding', 'base64')
            key = _b64encode(key)
        element.set('key', key)
    return element


def _from_element(element: etree._Element) -> Any:
    tag = element.tag
    text = element.text or ''
    try:
        if tag == 'null':
            return None
        if tag == 'bool':
            return text.strip() == 'true'
        if tag == 'int':
            return int(text)
        if tag == 'float':
            return float(text)
        if tag == 'string':
            return _decode(text, element.get('encoding'))
    except ValueError as e:
        raise ParseError(f"Failed to parse XML: bad <{tag}> value {text!r}") from e

    if tag == 'object':
        result = {}
        for child in element:
            result[_member_key(child)] = _from_element(child)
        return result
    if tag == 'array':
        return [_from_element(child) for child in element]

    raise ParseError(f"Failed to parse XML: unknown element <{tag}>")


def _member_key(element: etree._Element) -> str:
    key = element.get('key')
    if key is None:
        raise ParseError(f"Failed to parse XML: <{element.tag}> member without key")
    try:
        return _decode(key, element.get('key-encoding'))
    except ValueError as e:
        raise ParseError(f"Failed to parse XML: bad key {key!r}") from e


def _b64encode(text: str) -> str:
    return base64.b64encode(text.encode('utf-8', 'surrogatepass')).decode('ascii')


def _decode(text: str, encoding: Any) -> str:
    """
    Raises:
        ValueError: On an unknown encoding or a corrupt base64 payload.
    """
    if encoding is None:
        return text
    if encoding != 'base64':
        raise ValueError(f"unknown encoding {encoding!r}")
    return base64.b64decode(text, validate=True).decode('utf-8', 'surrogatepass')
