"""
Document parsing and path queries

Parses the value and attributes blobs of a source document into two
independent lxml trees and exposes the three query shapes the extractors
need: single node, node list and string value.

Security: the source XML is untrusted. External entities, DTD loading and
network access are disabled. Processing instructions are kept because the CMS
uses them as dummy-text placeholders.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Union
from xml.sax.saxutils import escape as xml_escape

from lxml import etree

from .models import SourceDocument


def _secure_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,  # Prevent XXE
        no_network=True,
        load_dtd=False,
        huge_tree=False,  # Prevent billion laughs
        remove_blank_text=False,
    )


def parse_xml(source: Union[bytes, str]) -> etree._Element:
    """
    Parse XML from bytes or text with secure settings.

    Args:
        source: Raw XML. Text is encoded as UTF-8 first so that documents
                carrying an encoding declaration are accepted.

    Returns:
        Root element of the parsed document.

    Raises:
        lxml.etree.XMLSyntaxError: If the content is not well-formed.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    return etree.fromstring(source, _secure_parser())


@dataclass(frozen=True)
class DocumentTrees:
    """The two parsed trees of one source document"""

    value: etree._Element
    attributes: etree._Element

    @classmethod
    def from_document(cls, document: SourceDocument) -> "DocumentTrees":
        return cls(
            value=parse_xml(document.value),
            attributes=parse_xml(document.attributes),
        )


def evaluate_string(tree: etree._Element, expression: str) -> str:
    """Return the string value of the first node matched, or "" if none"""
    return str(tree.xpath(f"string({expression})"))


def evaluate_node(tree: etree._Element, expression: str) -> Optional[Any]:
    """Return the first node matched, or None"""
    nodes = tree.xpath(expression)
    if isinstance(nodes, list) and nodes:
        return nodes[0]
    return None


def evaluate_nodes(tree: etree._Element, expression: str) -> List[Any]:
    """Return every node matched"""
    nodes = tree.xpath(expression)
    return list(nodes) if isinstance(nodes, list) else []


def node_to_string(node: Optional[etree._Element]) -> str:
    """Serialize a node without XML declaration and without its tail text"""
    if node is None:
        return ""
    return etree.tostring(node, encoding="unicode", with_tail=False)


def inner_markup(node: Optional[etree._Element]) -> str:
    """Serialize the children of a node, text and processing instructions included"""
    if node is None:
        return ""
    parts = [xml_escape(node.text or "")]
    for child in node:
        parts.append(etree.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts)


def node_to_html5(node: Optional[etree._Element], normalizer) -> str:
    """Serialize a node and pass it through the markup normalizer"""
    return normalizer.process(node_to_string(node), None)
