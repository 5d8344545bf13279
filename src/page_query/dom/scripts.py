"""JavaScript functions evaluated against remote nodes.

Each constant is passed to Playwright's ``JSHandle.evaluate`` /
``evaluate_handle`` with the node handle bound to the first parameter and
an optional argument bound to the second.  Keeping them in one module lets
the proxy classes stay free of inline script text.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Snapshots (one evaluation per proxy construction)
# ---------------------------------------------------------------------------

NODE_TYPE = "(node) => node.nodeType"

NODE_SNAPSHOT = """(node) => ({
    baseURI: node.baseURI,
    nodeName: node.nodeName,
    nodeType: node.nodeType,
    nodeValue: node.nodeValue,
    textContent: node.textContent,
})"""

# Non-element nodes reach the element proxy through the fallback in
# ``materialize``; id/class fields are absent on them.
ELEMENT_SNAPSHOT = """(node) => ({
    baseURI: node.baseURI,
    nodeName: node.nodeName,
    nodeType: node.nodeType,
    nodeValue: node.nodeValue,
    textContent: node.textContent,
    id: typeof node.id === 'string' ? node.id : '',
    className: node.getAttribute ? (node.getAttribute('class') || '') : '',
    classList: Array.from(node.classList || []),
})"""

DOCUMENT_SNAPSHOT = """(node) => ({
    baseURI: node.baseURI,
    nodeName: node.nodeName,
    nodeType: node.nodeType,
    nodeValue: node.nodeValue,
    textContent: node.textContent,
    title: node.title || '',
})"""

WINDOW_DOCUMENT = "() => window.document"

# ---------------------------------------------------------------------------
# Relationships (one evaluation per accessor call, never cached)
# ---------------------------------------------------------------------------

CHILDREN = "(node) => Array.from(node.children || [])"
CHILD_NODES = "(node) => Array.from(node.childNodes || [])"
FIRST_CHILD = "(node) => node.firstChild"
LAST_CHILD = "(node) => node.lastChild"
NEXT_SIBLING = "(node) => node.nextSibling"
PREVIOUS_SIBLING = "(node) => node.previousSibling"
PARENT_NODE = "(node) => node.parentNode"

# ---------------------------------------------------------------------------
# Element content
# ---------------------------------------------------------------------------

ATTRIBUTES = """(node) => Array.from(node.attributes || []).map(
    (attribute) => ({name: attribute.name, value: attribute.value})
)"""

DATASET = """(node) => node instanceof HTMLElement
    ? Object.keys(node.dataset).map((name) => ({name, value: node.dataset[name]}))
    : []"""

INNER_HTML = "(node) => typeof node.innerHTML === 'string' ? node.innerHTML : ''"
OUTER_HTML = "(node) => typeof node.outerHTML === 'string' ? node.outerHTML : ''"
GET_ATTRIBUTE = "(node, name) => node.getAttribute ? node.getAttribute(name) : null"

# ---------------------------------------------------------------------------
# Native queries
# ---------------------------------------------------------------------------

# Text, comment and doctype nodes reach ``ParentNode`` through the element
# fallback; they have no query methods and match nothing.
HEAD = "(node) => node.head || null"
BODY = "(node) => node.body || null"
GET_ELEMENT_BY_ID = "(node, id) => node.getElementById ? node.getElementById(id) : null"
GET_ELEMENTS_BY_CLASS_NAME = """(node, name) => node.getElementsByClassName
    ? Array.from(node.getElementsByClassName(name))
    : []"""
GET_ELEMENTS_BY_TAG_NAME = """(node, name) => node.getElementsByTagName
    ? Array.from(node.getElementsByTagName(name))
    : []"""
QUERY_SELECTOR = "(node, selector) => node.querySelector ? node.querySelector(selector) : null"
QUERY_SELECTOR_ALL = """(node, selector) => node.querySelectorAll
    ? Array.from(node.querySelectorAll(selector))
    : []"""
