"""
Convert BOINC XML replies into plain nested mappings.

The shape follows the conventions JavaScript clients of the BOINC web RPCs
have always seen (xml2js defaults), so documented reply layouts carry over:

* the document becomes ``{root_tag: value}``;
* child elements are gathered into lists under their tag, in document order;
* a leaf element without attributes becomes its text, whitespace included
  (``''`` when empty);
* whitespace-only text next to children or attributes is dropped;
* attributes live under ``'$'`` and text next to children under ``'_'``.
"""

from __future__ import annotations

from typing import Any, Dict, Union
from xml.etree import ElementTree

ATTRS_KEY = "$"
TEXT_KEY = "_"

ResponseTree = Dict[str, Any]
TreeValue = Union[str, Dict[str, Any]]


def _element_text(element: ElementTree.Element) -> str:
    parts = [element.text or ""]
    for child in element:
        parts.append(child.tail or "")
    return "".join(parts)


def element_to_tree(element: ElementTree.Element) -> TreeValue:
    """Convert one element (and its subtree) into a tree value."""
    children = list(element)
    text = _element_text(element)
    has_text = bool(text.strip())

    if not children and not element.attrib:
        return text

    node: Dict[str, Any] = {}
    if element.attrib:
        node[ATTRS_KEY] = dict(element.attrib)
    if has_text:
        node[TEXT_KEY] = text
    for child in children:
        node.setdefault(child.tag, []).append(element_to_tree(child))
    return node


def parse_tree(body: Union[str, bytes]) -> ResponseTree:
    """
    Parse a full XML document into a response tree.

    Raises:
        xml.etree.ElementTree.ParseError: when the document is not well formed.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    root = ElementTree.fromstring(body.lstrip())
    return {root.tag: element_to_tree(root)}
