"""Proxy base class for nodes living inside a browser page.

A :class:`Node` wraps one remote node handle and the page that owns it.
Scalar attributes are read once, when the proxy is created, and frozen in a
snapshot.  Relationships (children, siblings, parent) are *not* part of the
snapshot: every accessor call performs a fresh evaluation against the page
and builds new proxies, so results always reflect the live document.  Two
proxies for the same remote node are independent objects.

A proxy is bound to its page for its whole lifetime.  Once the page is
closed every accessor raises
:class:`~page_query.core.exceptions.NodeUnavailableError`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, cast

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from page_query.core.exceptions import InvalidSelectorError, NodeUnavailableError
from page_query.dom import scripts

if TYPE_CHECKING:
    from page_query.dom.element import Element
    from page_query.dom.visitor import NodeVisitor

logger = logging.getLogger(__name__)

R = TypeVar("R")
N = TypeVar("N", bound="Node")

# Chromium reports bad selectors as a DOMException of this shape:
#   "Failed to execute 'querySelector' on 'Document': 'a[' is not a valid selector."
_INVALID_SELECTOR_MARKERS: tuple[str, ...] = (
    "is not a valid selector",
    "SyntaxError",
)


class NodeType(IntEnum):
    """DOM ``Node.nodeType`` values."""

    ELEMENT_NODE = 1
    ATTRIBUTE_NODE = 2
    TEXT_NODE = 3
    CDATA_SECTION_NODE = 4
    ENTITY_REFERENCE_NODE = 5
    ENTITY_NODE = 6
    PROCESSING_INSTRUCTION_NODE = 7
    COMMENT_NODE = 8
    DOCUMENT_NODE = 9
    DOCUMENT_TYPE_NODE = 10
    DOCUMENT_FRAGMENT_NODE = 11
    NOTATION_NODE = 12


def coerce_node_type(value: Any) -> NodeType | int:
    """Return ``value`` as a :class:`NodeType`, or unchanged if unrecognised."""
    try:
        return NodeType(value)
    except ValueError:
        return value


# ---------------------------------------------------------------------------
# Remote evaluation guard
# ---------------------------------------------------------------------------


@contextmanager
def remote_call(page: Page, selector: str | None = None) -> Iterator[None]:
    """Translate engine failures raised inside the block into DOM errors.

    Args:
        page: The page the evaluation runs against.
        selector: The CSS selector being evaluated, if any.  Enables
            reporting syntax errors as :class:`InvalidSelectorError`.

    Raises:
        InvalidSelectorError: If ``selector`` was rejected by the engine.
        NodeUnavailableError: If the page is closed or the evaluation failed.
    """
    if page.is_closed():
        raise NodeUnavailableError(f"Page is already closed: {page.url}", url=page.url)
    try:
        yield
    except PlaywrightError as exc:
        message = str(exc)
        if selector is not None and any(m in message for m in _INVALID_SELECTOR_MARKERS):
            raise InvalidSelectorError(selector, url=page.url) from exc
        logger.warning("dom: remote evaluation failed on %s: %s", page.url, message)
        raise NodeUnavailableError(
            f"Node is no longer available on {page.url}: {message}",
            url=page.url,
        ) from exc


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NodeSnapshot:
    """Scalar node attributes captured at proxy construction."""

    base_uri: str | None
    node_name: str
    node_type: NodeType | int
    node_value: str | None
    text_content: str | None

    @classmethod
    def _fields_from_remote(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "base_uri": data.get("baseURI"),
            "node_name": data.get("nodeName") or "",
            "node_type": coerce_node_type(data.get("nodeType")),
            "node_value": data.get("nodeValue"),
            "text_content": data.get("textContent"),
        }

    @classmethod
    def from_remote(cls, data: dict[str, Any]) -> NodeSnapshot:
        """Build a snapshot from the object returned by the snapshot script."""
        return cls(**cls._fields_from_remote(data))


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


class Node:
    """A DOM node proxy.

    Use :func:`page_query.dom.factory.materialize` rather than constructing
    proxies directly; it picks the right subclass for the remote node.

    Args:
        page: The page that owns the node.
        handle: Remote handle of the node.
        snapshot: Scalar attributes read at creation.
    """

    snapshot_script: ClassVar[str] = scripts.NODE_SNAPSHOT
    snapshot_type: ClassVar[type[NodeSnapshot]] = NodeSnapshot

    def __init__(self, page: Page, handle: ElementHandle, snapshot: NodeSnapshot) -> None:
        self._page = page
        self._handle = handle
        self._snapshot = snapshot

    @classmethod
    async def create(cls: type[N], page: Page, handle: ElementHandle) -> N:
        """Read the snapshot of ``handle`` in one evaluation and wrap it.

        Raises:
            NodeUnavailableError: If the page is closed or the evaluation failed.
        """
        with remote_call(page):
            data = await handle.evaluate(cls.snapshot_script)
        return cls(page, handle, cls.snapshot_type.from_remote(data))

    # ------------------------------------------------------------------
    # Snapshot attributes
    # ------------------------------------------------------------------

    @property
    def base_uri(self) -> str | None:
        return self._snapshot.base_uri

    @property
    def node_name(self) -> str:
        return self._snapshot.node_name

    @property
    def node_type(self) -> NodeType | int:
        return self._snapshot.node_type

    @property
    def node_value(self) -> str | None:
        return self._snapshot.node_value

    @property
    def text_content(self) -> str | None:
        return self._snapshot.text_content

    @property
    def page(self) -> Page:
        """The page this node is bound to."""
        return self._page

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    async def children(self) -> list[Node]:
        """Return the element children, in document order."""
        return await self._nodes(scripts.CHILDREN)

    async def child_nodes(self) -> list[Node]:
        """Return all child nodes (elements, text, comments...), in document order."""
        return await self._nodes(scripts.CHILD_NODES)

    async def first_child(self) -> Node | None:
        return await self._node(scripts.FIRST_CHILD)

    async def last_child(self) -> Node | None:
        return await self._node(scripts.LAST_CHILD)

    async def next_sibling(self) -> Node | None:
        return await self._node(scripts.NEXT_SIBLING)

    async def previous_sibling(self) -> Node | None:
        return await self._node(scripts.PREVIOUS_SIBLING)

    async def parent_node(self) -> Node | None:
        return await self._node(scripts.PARENT_NODE)

    async def parent_element(self) -> Element | None:
        """Return the parent if it is an element.

        The parent of ``<html>`` is the document, so this is ``None`` there
        even though :meth:`parent_node` is not.
        """
        parent = await self.parent_node()
        if parent is None or parent.node_type != NodeType.ELEMENT_NODE:
            return None
        return cast("Element", parent)

    # ------------------------------------------------------------------
    # Type dispatch
    # ------------------------------------------------------------------

    def accept(self, visitor: NodeVisitor[R]) -> R:
        return visitor.default_action(self)

    # ------------------------------------------------------------------
    # Remote helpers
    # ------------------------------------------------------------------

    async def _evaluate(self, script: str, arg: Any = None) -> Any:
        """Evaluate ``script`` against this node and return the JSON result."""
        with remote_call(self._page):
            return await self._handle.evaluate(script, arg)

    async def _node(
        self,
        script: str,
        arg: Any = None,
        selector: str | None = None,
    ) -> Node | None:
        """Evaluate a script yielding one node (or null) and materialize it."""
        with remote_call(self._page, selector):
            handle = await self._handle.evaluate_handle(script, arg)
            element = handle.as_element()
            if element is None:
                await handle.dispose()
                return None

        from page_query.dom.factory import materialize  # noqa: PLC0415

        return await materialize(self._page, element)

    async def _nodes(
        self,
        script: str,
        arg: Any = None,
        selector: str | None = None,
    ) -> list[Node]:
        """Evaluate a script yielding an array of nodes and materialize each."""
        with remote_call(self._page, selector):
            collection = await self._handle.evaluate_handle(script, arg)
            properties = await collection.get_properties()
            # Array handles expose their items under "0", "1", ... plus "length".
            indices = sorted((key for key in properties if key.isdigit()), key=int)
            elements = [properties[key].as_element() for key in indices]
            # Element handles are kept by their proxies; everything else is released.
            leftovers = [handle for handle in properties.values() if handle.as_element() is None]
            await asyncio.gather(collection.dispose(), *(handle.dispose() for handle in leftovers))

        from page_query.dom.factory import materialize  # noqa: PLC0415

        return list(
            await asyncio.gather(
                *(materialize(self._page, element) for element in elements if element is not None)
            )
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(node_name={self.node_name!r}, node_type={self.node_type!r})"


class ParentNode(Node):
    """Node that can contain elements and answers native descendant queries.

    Shared by :class:`~page_query.dom.element.Element` and
    :class:`~page_query.dom.document.Document`.  Queries run through the
    page's own DOM APIs rather than walking the tree client-side.
    """

    async def get_elements_by_class_name(self, name: str) -> list[Element]:
        return cast("list[Element]", await self._nodes(scripts.GET_ELEMENTS_BY_CLASS_NAME, name))

    async def get_elements_by_tag_name(self, name: str) -> list[Element]:
        return cast("list[Element]", await self._nodes(scripts.GET_ELEMENTS_BY_TAG_NAME, name))

    async def query_selector(self, selector: str) -> Element | None:
        """Return the first descendant matching ``selector``, or ``None``.

        Raises:
            InvalidSelectorError: If ``selector`` is not valid CSS.
        """
        return cast(
            "Element | None",
            await self._node(scripts.QUERY_SELECTOR, selector, selector=selector),
        )

    async def query_selector_all(self, selector: str) -> list[Element]:
        """Return every descendant matching ``selector``, in document order.

        Raises:
            InvalidSelectorError: If ``selector`` is not valid CSS.
        """
        return cast(
            "list[Element]",
            await self._nodes(scripts.QUERY_SELECTOR_ALL, selector, selector=selector),
        )
