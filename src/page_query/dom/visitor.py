"""Visitor over the node variants.

Callers that need to branch on the concrete proxy type implement
:class:`NodeVisitor` instead of checking ``node_type`` themselves::

    class Describe(NodeVisitor[str]):
        def visit_document(self, document):
            return f"document {document.title!r}"

        def default_action(self, node):
            return node.node_name

    label = node.accept(Describe())

``visit_element`` and ``visit_document`` fall back to ``default_action``,
so a visitor only overrides the variants it cares about.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from page_query.dom.document import Document
    from page_query.dom.element import Element
    from page_query.dom.node import Node

R = TypeVar("R")


class NodeVisitor(ABC, Generic[R]):
    """Double-dispatch target for :meth:`Node.accept`."""

    def visit_element(self, element: Element) -> R:
        return self.default_action(element)

    def visit_document(self, document: Document) -> R:
        return self.default_action(document)

    @abstractmethod
    def default_action(self, node: Node) -> R:
        """Handle any variant without a dedicated ``visit_*`` override."""


class TypeNameVisitor(NodeVisitor[str]):
    """Resolve the public type name of a node: ``Document``, ``Element`` or ``Node``."""

    def visit_element(self, element: Element) -> str:
        return "Element"

    def visit_document(self, document: Document) -> str:
        return "Document"

    def default_action(self, node: Node) -> str:
        return "Node"
