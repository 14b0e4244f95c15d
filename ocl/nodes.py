"""Node definitions for the OCL syntax tree."""

from __future__ import annotations

import json
from enum import Enum, auto
from typing import Annotated, Iterable, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ocl.lexer import Token, TokenType


class LiteralKind(Enum):
    STRING = auto()
    INTEGER = auto()
    DECIMAL = auto()
    BOOLEAN = auto()
    HEREDOC = auto()
    INDENTED_HEREDOC = auto()


HEREDOC_KINDS = frozenset({LiteralKind.HEREDOC, LiteralKind.INDENTED_HEREDOC})


class OclDecodeError(ValueError):
    """Literal text that is not valid JSON literal syntax."""

    def __init__(self, message: str, text: str, line: int, column: int):
        super().__init__(f"{message}: {text!r} at {line}:{column}")
        self.text = text
        self.line = line
        self.column = column


def decode_json_text(text: str, line: int, column: int):
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise OclDecodeError("Cannot decode literal", text, line, column) from exc


def token_text(token: Token) -> str:
    """Name text of a ``SYMBOL`` (verbatim) or ``STRING`` (decoded) token."""
    if token.token_type == TokenType.STRING:
        return decode_json_text(token.value, token.line, token.column)
    return token.value


class Span(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    end_line: int
    end_column: int

    @classmethod
    def of_token(cls, token: Token) -> Span:
        return cls(line=token.line, column=token.column, end_line=token.line, end_column=token.end_column)

    @classmethod
    def between(cls, start: Token, end: Token | Span) -> Span:
        if isinstance(end, Span):
            return cls(line=start.line, column=start.column, end_line=end.end_line, end_column=end.end_column)
        return cls(line=start.line, column=start.column, end_line=end.line, end_column=end.end_column)


class OclNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    span: Span
    problems: tuple[str, ...] = ()


class LiteralNode(OclNode):
    kind: Literal["literal"] = "literal"
    literal_kind: LiteralKind
    value: str

    @property
    def is_heredoc(self) -> bool:
        return self.literal_kind in HEREDOC_KINDS


class RecoveryNode(OclNode):
    """A syntax error at a statement boundary; carries the token that was skipped."""

    kind: Literal["recovery"] = "recovery"
    unexpected_token: Token
    message: str


class EofNode(OclNode):
    kind: Literal["eof"] = "eof"


class DictionaryNode(OclNode):
    kind: Literal["dictionary"] = "dictionary"
    children: tuple[Statement, ...] = ()


class ArrayNode(OclNode):
    kind: Literal["array"] = "array"
    elements: tuple[ArrayElement, ...] = ()


class AttributeNode(OclNode):
    kind: Literal["attribute"] = "attribute"
    name: Token
    value: AttributeValue

    @property
    def key(self) -> str:
        return token_text(self.name)


class BlockNode(OclNode):
    kind: Literal["block"] = "block"
    name: Token
    labels: tuple[Token, ...] = ()
    children: tuple[Statement, ...] = ()

    @property
    def keyword(self) -> str:
        return token_text(self.name)

    @property
    def label_values(self) -> list[str]:
        return [decode_json_text(label.value, label.line, label.column) for label in self.labels]


Statement = Annotated[Union[AttributeNode, BlockNode, RecoveryNode], Field(discriminator="kind")]
AttributeValue = Annotated[Union[LiteralNode, DictionaryNode, ArrayNode], Field(discriminator="kind")]
ArrayElement = Annotated[Union[LiteralNode, DictionaryNode, RecoveryNode], Field(discriminator="kind")]

for _model in (DictionaryNode, ArrayNode, AttributeNode, BlockNode):
    _model.model_rebuild()


def iter_nodes(nodes: Iterable[OclNode]) -> Iterator[OclNode]:
    """Depth-first, source-order walk over ``nodes`` and everything below them."""
    for node in nodes:
        yield node
        if isinstance(node, (BlockNode, DictionaryNode)):
            yield from iter_nodes(node.children)
        elif isinstance(node, AttributeNode):
            yield from iter_nodes([node.value])
        elif isinstance(node, ArrayNode):
            yield from iter_nodes(node.elements)


def iter_recovery_nodes(nodes: Iterable[OclNode]) -> Iterator[RecoveryNode]:
    for node in iter_nodes(nodes):
        if isinstance(node, RecoveryNode):
            yield node


__all__ = [
    "ArrayElement",
    "ArrayNode",
    "AttributeNode",
    "AttributeValue",
    "BlockNode",
    "DictionaryNode",
    "EofNode",
    "HEREDOC_KINDS",
    "LiteralKind",
    "LiteralNode",
    "OclDecodeError",
    "OclNode",
    "RecoveryNode",
    "Span",
    "Statement",
    "decode_json_text",
    "iter_nodes",
    "iter_recovery_nodes",
    "token_text",
]
