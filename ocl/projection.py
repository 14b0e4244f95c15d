"""Read-only projection of an OCL tree.

An :class:`OclView` wraps a statement sequence (a whole document, a block body,
a dictionary body, or a single attribute) and resolves names against it on
demand:

* attributes collapse to a single decoded value, or to :class:`MultipleValues`
  when the name is repeated in the same scope;
* blocks are returned as a :class:`BlockCollection`, addressable by position
  and by label;
* ``__name`` and ``__labels`` expose block metadata.

:func:`serialize` turns a view into plain lists and dicts. It is written in
terms of the same lookups used for navigation, so a value read through a view
and the corresponding entry of the serialized form always agree.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence, Union

from .document import OclDocument
from .nodes import (
    ArrayNode,
    AttributeNode,
    BlockNode,
    DictionaryNode,
    LiteralNode,
    OclDecodeError,
    OclNode,
    RecoveryNode,
    decode_json_text,
)
from .parser import ParserConfig, parse

RESERVED_NAME = "__name"
RESERVED_LABELS = "__labels"

ScopeSource = Union[OclDocument, BlockNode, DictionaryNode, AttributeNode, Iterable[OclNode]]


class MultipleValues(list):
    """Values of several same-named entries of one scope, in source order.

    A repeated attribute resolves to ``MultipleValues`` while an array value
    resolves to a plain ``list``, so ``isinstance(value, MultipleValues)`` tells
    "many entries" apart from "one entry holding an array". It compares equal to
    a plain list with the same items.
    """


def decode_value(node: OclNode) -> Any:
    """Decode an attribute value or array element node."""
    if isinstance(node, LiteralNode):
        return decode_literal(node)
    if isinstance(node, DictionaryNode):
        return OclView(node)
    if isinstance(node, ArrayNode):
        return [decode_value(element) for element in node.elements if not isinstance(element, RecoveryNode)]
    raise TypeError(f"Cannot decode node of type {type(node).__name__}")


def decode_literal(node: LiteralNode) -> Any:
    if node.is_heredoc:
        return node.value
    return decode_json_text(node.value, node.span.line, node.span.column)


def _collapse(values: list[Any]) -> Any:
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return MultipleValues(values)


class _ReadOnly:
    """Writes through a view are silently ignored."""

    __slots__ = ()

    def __setattr__(self, name: str, value: Any) -> None:
        return None

    def __delattr__(self, name: str) -> None:
        return None

    def __setitem__(self, key: Any, value: Any) -> None:
        return None

    def __delitem__(self, key: Any) -> None:
        return None


class OclView(_ReadOnly):
    __slots__ = ("_node", "_children")

    def __init__(self, source: ScopeSource):
        if isinstance(source, OclDocument):
            node, children = None, source.nodes
        elif isinstance(source, (BlockNode, DictionaryNode)):
            node, children = source, source.children
        elif isinstance(source, AttributeNode):
            # an attribute behaves like a scope holding only itself
            node, children = source, (source,)
        else:
            node, children = None, tuple(source)
        object.__setattr__(self, "_node", node)
        object.__setattr__(self, "_children", children)

    @property
    def node(self) -> OclNode | None:
        """The wrapped block, dictionary or attribute; ``None`` for a document."""
        return self._node

    @property
    def kind(self) -> str:
        if self._node is None:
            return "document"
        return self._node.kind

    def _statements(self) -> list[AttributeNode | BlockNode]:
        return [child for child in self._children if isinstance(child, (AttributeNode, BlockNode))]

    def get(self, name: str) -> Any:
        values = [
            decode_value(child.value)
            for child in self._children
            if isinstance(child, AttributeNode) and child.key == name
        ]
        return _collapse(values)

    def blocks(self, keyword: str) -> BlockCollection | None:
        matches = tuple(
            child for child in self._children if isinstance(child, BlockNode) and child.keyword == keyword
        )
        return BlockCollection(matches) if matches else None

    def name(self) -> str | None:
        if isinstance(self._node, BlockNode):
            return self._node.keyword
        if isinstance(self._node, AttributeNode):
            return self._node.key
        return None

    def labels(self) -> list[str] | None:
        if isinstance(self._node, BlockNode):
            return self._node.label_values
        return None

    def value(self) -> Any:
        if isinstance(self._node, AttributeNode):
            return decode_value(self._node.value)
        return None

    def at(self, index: int) -> OclView | None:
        try:
            return OclView(self._statements()[index])
        except IndexError:
            return None

    def keys(self) -> list[str]:
        names: dict[str, None] = {}
        for child in self._statements():
            names.setdefault(child.key if isinstance(child, AttributeNode) else child.keyword, None)
        return list(names)

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, int):
            return self.at(key)
        if key == RESERVED_NAME:
            return self.name()
        if key == RESERVED_LABELS:
            return self.labels()
        value = self.get(key)
        if value is not None:
            return value
        return self.blocks(key)

    def __contains__(self, key: object) -> bool:
        return key in self.keys()

    def __len__(self) -> int:
        return len(self._statements())

    def __iter__(self) -> Iterator[OclView]:
        return (OclView(child) for child in self._statements())

    def to_plain(self) -> Any:
        if self.kind == "document":
            return [view.to_plain() for view in self]
        mapping: dict[str, Any] = {key: to_plain(self[key]) for key in self.keys()}
        if isinstance(self._node, BlockNode):
            mapping[RESERVED_LABELS] = self.labels()
        return mapping

    def __repr__(self) -> str:
        name = self.name()
        suffix = f" {name!r}" if name is not None else ""
        return f"<OclView {self.kind}{suffix} keys={self.keys()!r}>"


class BlockCollection(_ReadOnly):
    """Same-named sibling blocks, addressable by position or by label."""

    __slots__ = ("_blocks",)

    def __init__(self, blocks: Sequence[BlockNode]):
        object.__setattr__(self, "_blocks", tuple(blocks))

    @property
    def nodes(self) -> tuple[BlockNode, ...]:
        return self._blocks

    def at(self, index: int) -> OclView | None:
        try:
            return OclView(self._blocks[index])
        except IndexError:
            return None

    def by_label(self, label: str) -> OclView | MultipleValues | None:
        """Blocks whose last label is ``label``: one view, several views, or ``None``."""
        matches = [OclView(block) for block in self._blocks if block.label_values[-1:] == [label]]
        return _collapse(matches)

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, int):
            return self.at(key)
        return self.by_label(key)

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[OclView]:
        return (OclView(block) for block in self._blocks)

    def to_plain(self) -> list[Any]:
        return [view.to_plain() for view in self]

    def __repr__(self) -> str:
        return f"<BlockCollection {len(self)} block(s)>"


def to_plain(value: Any) -> Any:
    """Plain, JSON-compatible form of anything a view lookup returns."""
    if isinstance(value, (OclView, BlockCollection)):
        return value.to_plain()
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    return value


def project(source: ScopeSource) -> OclView:
    return OclView(source)


def serialize(view: OclView | BlockCollection) -> Any:
    return to_plain(view)


def parse_ocl_wrapper(input: str, config: ParserConfig | None = None) -> OclView:
    """Parse ``input`` and wrap its top level in a read-only view."""
    return project(parse(input, config=config))


__all__ = [
    "BlockCollection",
    "MultipleValues",
    "OclDecodeError",
    "OclView",
    "RESERVED_LABELS",
    "RESERVED_NAME",
    "decode_literal",
    "decode_value",
    "parse_ocl_wrapper",
    "project",
    "serialize",
    "to_plain",
]
