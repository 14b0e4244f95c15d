"""Parser and read-only projection for the OCL configuration language."""

from .lexer import Lexer, LexerConfig, LexerError, Token, TokenType, tokenize
from .heredoc import HeredocError
from .nodes import (
    ArrayNode,
    AttributeNode,
    BlockNode,
    DictionaryNode,
    EofNode,
    LiteralKind,
    LiteralNode,
    OclDecodeError,
    OclNode,
    RecoveryNode,
    Span,
    iter_recovery_nodes,
)
from .document import Diagnostic, OclDocument
from .parser import ParseException, Parser, ParserConfig, parse, parse_document
from .projection import (
    BlockCollection,
    MultipleValues,
    OclView,
    decode_value,
    parse_ocl_wrapper,
    project,
    serialize,
    to_plain,
)

__all__ = [
    "ArrayNode",
    "AttributeNode",
    "BlockCollection",
    "BlockNode",
    "Diagnostic",
    "DictionaryNode",
    "EofNode",
    "HeredocError",
    "Lexer",
    "LexerConfig",
    "LexerError",
    "LiteralKind",
    "LiteralNode",
    "MultipleValues",
    "OclDecodeError",
    "OclDocument",
    "OclNode",
    "OclView",
    "ParseException",
    "Parser",
    "ParserConfig",
    "RecoveryNode",
    "Span",
    "Token",
    "TokenType",
    "decode_value",
    "iter_recovery_nodes",
    "parse",
    "parse_document",
    "parse_ocl_wrapper",
    "project",
    "serialize",
    "to_plain",
]
