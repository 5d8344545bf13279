"""Turn remote handles into typed node proxies."""

from __future__ import annotations

import logging

from playwright.async_api import ElementHandle, Page

from page_query.core.exceptions import NodeUnavailableError
from page_query.dom import scripts
from page_query.dom.document import Document
from page_query.dom.element import Element
from page_query.dom.node import Node, NodeType, coerce_node_type, remote_call

logger = logging.getLogger(__name__)

# Node types without a dedicated proxy (text, comment, doctype, fragment...)
# and unknown values are represented as Element.
_PROXY_TYPES: dict[NodeType, type[Node]] = {
    NodeType.DOCUMENT_NODE: Document,
    NodeType.ELEMENT_NODE: Element,
}


async def materialize(page: Page, handle: ElementHandle) -> Node:
    """Return the proxy for the remote node behind ``handle``.

    Reads the node type, then delegates to the matching proxy's ``create``,
    which takes the snapshot.

    Args:
        page: The page that owns the node.
        handle: Remote handle of the node.

    Returns:
        A :class:`Document` for document nodes, otherwise an :class:`Element`.

    Raises:
        NodeUnavailableError: If the page is closed or the evaluation failed.
    """
    with remote_call(page):
        node_type = coerce_node_type(await handle.evaluate(scripts.NODE_TYPE))

    proxy_type = _PROXY_TYPES.get(node_type, Element)  # type: ignore[arg-type]
    if node_type not in _PROXY_TYPES:
        logger.debug("dom: no proxy for node type %r; using Element", node_type)
    return await proxy_type.create(page, handle)


async def create_document(page: Page) -> Document:
    """Return the proxy for ``window.document`` of ``page``.

    Raises:
        NodeUnavailableError: If the page has no document or is closed.
    """
    with remote_call(page):
        handle = await page.evaluate_handle(scripts.WINDOW_DOCUMENT)
    element = handle.as_element()
    if element is None:
        raise NodeUnavailableError(f"window.document does not exist on {page.url}", url=page.url)
    return await Document.create(page, element)
