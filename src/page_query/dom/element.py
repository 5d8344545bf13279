"""Element proxy.

Adds id/class attributes to the snapshot and on-demand reads of attributes,
``data-*`` entries and serialized markup.  Non-element nodes (text,
comments, doctype...) are also represented by this class; their id and
class fields are empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from page_query.dom import scripts
from page_query.dom.node import NodeSnapshot, ParentNode

if TYPE_CHECKING:
    from page_query.dom.visitor import NodeVisitor

R = TypeVar("R")


@dataclass(frozen=True)
class Attribute:
    """One ``name="value"`` attribute of an element."""

    name: str
    value: str


@dataclass(frozen=True)
class DataEntry:
    """One ``data-*`` entry, keyed by its camel-cased dataset name."""

    name: str
    value: str


@dataclass(frozen=True)
class ElementSnapshot(NodeSnapshot):
    id: str
    class_name: str
    class_list: tuple[str, ...]

    @classmethod
    def _fields_from_remote(cls, data: dict[str, Any]) -> dict[str, Any]:
        fields = super()._fields_from_remote(data)
        fields.update(
            id=data.get("id") or "",
            class_name=data.get("className") or "",
            class_list=tuple(data.get("classList") or ()),
        )
        return fields


class Element(ParentNode):
    """A DOM element proxy."""

    snapshot_script: ClassVar[str] = scripts.ELEMENT_SNAPSHOT
    snapshot_type: ClassVar[type[NodeSnapshot]] = ElementSnapshot

    _snapshot: ElementSnapshot

    @property
    def id(self) -> str:
        return self._snapshot.id

    @property
    def class_name(self) -> str:
        return self._snapshot.class_name

    @property
    def class_list(self) -> list[str]:
        return list(self._snapshot.class_list)

    async def attributes(self) -> list[Attribute]:
        items = await self._evaluate(scripts.ATTRIBUTES)
        return [Attribute(name=item["name"], value=item["value"]) for item in items]

    async def dataset(self) -> list[DataEntry]:
        """Return the element's ``data-*`` entries; empty for non-HTML elements."""
        items = await self._evaluate(scripts.DATASET)
        return [DataEntry(name=item["name"], value=item["value"]) for item in items]

    async def inner_html(self) -> str:
        return await self._evaluate(scripts.INNER_HTML)

    async def outer_html(self) -> str:
        return await self._evaluate(scripts.OUTER_HTML)

    async def get_attribute(self, name: str) -> str | None:
        """Return the value of attribute ``name``, or ``None`` if it is not set."""
        return await self._evaluate(scripts.GET_ATTRIBUTE, name)

    def accept(self, visitor: NodeVisitor[R]) -> R:
        return visitor.visit_element(self)
