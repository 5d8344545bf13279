"""Typed proxies over a live browser document.

Sub-modules:
- ``node``     — ``Node`` base, ``NodeType``, remote evaluation guard
- ``element``  — ``Element`` with attributes, dataset and markup
- ``document`` — ``Document`` with title, head/body and id lookup
- ``factory``  — ``materialize`` / ``create_document``
- ``visitor``  — ``NodeVisitor`` and ``TypeNameVisitor``
- ``scripts``  — JavaScript evaluated against remote nodes
"""

from __future__ import annotations

from page_query.dom.document import Document
from page_query.dom.element import Attribute, DataEntry, Element
from page_query.dom.factory import create_document, materialize
from page_query.dom.node import Node, NodeType, ParentNode
from page_query.dom.visitor import NodeVisitor, TypeNameVisitor

__all__ = [
    "Attribute",
    "DataEntry",
    "Document",
    "Element",
    "Node",
    "NodeType",
    "NodeVisitor",
    "ParentNode",
    "TypeNameVisitor",
    "create_document",
    "materialize",
]
