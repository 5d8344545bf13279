"""Document proxy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, cast

from page_query.dom import scripts
from page_query.dom.node import NodeSnapshot, ParentNode

if TYPE_CHECKING:
    from page_query.dom.element import Element
    from page_query.dom.visitor import NodeVisitor

R = TypeVar("R")


@dataclass(frozen=True)
class DocumentSnapshot(NodeSnapshot):
    title: str

    @classmethod
    def _fields_from_remote(cls, data: dict[str, Any]) -> dict[str, Any]:
        fields = super()._fields_from_remote(data)
        fields["title"] = data.get("title") or ""
        return fields


class Document(ParentNode):
    """The page's document node.

    ``head``, ``body`` and ``get_element_by_id`` go through the same
    relationship machinery as :class:`~page_query.dom.node.Node`, so each call
    is a fresh evaluation.
    """

    snapshot_script: ClassVar[str] = scripts.DOCUMENT_SNAPSHOT
    snapshot_type: ClassVar[type[NodeSnapshot]] = DocumentSnapshot

    _snapshot: DocumentSnapshot

    @property
    def title(self) -> str:
        return self._snapshot.title

    async def head(self) -> Element | None:
        return cast("Element | None", await self._node(scripts.HEAD))

    async def body(self) -> Element | None:
        return cast("Element | None", await self._node(scripts.BODY))

    async def get_element_by_id(self, element_id: str) -> Element | None:
        return cast("Element | None", await self._node(scripts.GET_ELEMENT_BY_ID, element_id))

    def accept(self, visitor: NodeVisitor[R]) -> R:
        return visitor.visit_document(self)
