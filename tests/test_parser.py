"""
Tests for the recursive-descent parser and its error recovery.
"""

import logging

import pytest
from pydantic import ValidationError

from ocl import (
    ArrayNode,
    AttributeNode,
    BlockNode,
    DictionaryNode,
    EofNode,
    LiteralKind,
    LiteralNode,
    OclDocument,
    Parser,
    RecoveryNode,
    TokenType,
    iter_recovery_nodes,
    parse,
    parse_document,
    tokenize,
)
from ocl.nodes import iter_nodes
from ocl.parser import (
    ATTRIBUTE_LABELS,
    BRACE_ON_NEXT_LINE,
    UNCLOSED_ARRAY,
    UNCLOSED_SCOPE,
    UNEXPECTED_TOKEN,
    UNEXPECTED_VALUE,
)


class TestStructure:
    """Trees built from well-formed input."""

    def test_block_with_labels_and_children(self):
        nodes = parse('resource "aws" "main" {\n    child {}\n    count = 2\n}')
        assert len(nodes) == 1
        block = nodes[0]
        assert isinstance(block, BlockNode)
        assert block.keyword == "resource"
        assert [label.value for label in block.labels] == ['"aws"', '"main"']
        assert block.label_values == ["aws", "main"]
        assert [type(child) for child in block.children] == [BlockNode, AttributeNode]
        assert block.children[0].children == ()
        assert block.children[1].key == "count"
        assert block.problems == ()

    def test_block_without_labels(self):
        block = parse("connectivity_policy {\n}")[0]
        assert isinstance(block, BlockNode)
        assert block.labels == ()

    def test_literal_kinds(self):
        nodes = parse('s = "a"\ni = 10\nd = 0.5\nt = true\nf = false')
        assert [node.value.literal_kind for node in nodes] == [
            LiteralKind.STRING,
            LiteralKind.INTEGER,
            LiteralKind.DECIMAL,
            LiteralKind.BOOLEAN,
            LiteralKind.BOOLEAN,
        ]
        assert [node.value.value for node in nodes] == ['"a"', "10", "0.5", "true", "false"]

    def test_dictionary_value(self):
        attribute = parse('properties = {\n    Extract = "False"\n    nested {\n    }\n}')[0]
        assert isinstance(attribute.value, DictionaryNode)
        assert [child.kind for child in attribute.value.children] == ["attribute", "block"]

    def test_array_value(self):
        attribute = parse('tags = ["a", 1\n  2.5, { x = 1 }]')[0]
        assert isinstance(attribute.value, ArrayNode)
        elements = attribute.value.elements
        assert [type(element) for element in elements] == [LiteralNode, LiteralNode, LiteralNode, DictionaryNode]
        assert elements[3].children[0].key == "x"

    def test_commas_without_spaces(self):
        attribute = parse('tags = [1,2,"three"]')[0]
        elements = attribute.value.elements
        assert [element.value for element in elements] == ["1", "2", '"three"']
        assert all(isinstance(element, LiteralNode) for element in elements)

    def test_empty_array(self):
        attribute = parse("tags = []")[0]
        assert attribute.value.elements == ()

    def test_quoted_attribute_name(self):
        attribute = parse('"quoted name" = 1')[0]
        assert isinstance(attribute, AttributeNode)
        assert attribute.key == "quoted name"

    def test_blank_lines_between_statements(self):
        nodes = parse("\n\na = 1\n\n\nb = 2\n\n")
        assert [node.key for node in nodes] == ["a", "b"]

    def test_statements_on_one_line(self):
        nodes = parse("a = 1 b = 2")
        assert [node.key for node in nodes] == ["a", "b"]

    def test_duplicates_are_preserved_in_order(self):
        nodes = parse('p "X" {\n  n = 1\n}\np "X" {\n  n = 2\n}\nv = 1\nv = 2')
        assert [node.kind for node in nodes] == ["block", "block", "attribute", "attribute"]
        assert [node.children[0].value.value for node in nodes[:2]] == ["1", "2"]

    def test_spans(self):
        block = parse('step "a" {\n  x = 1\n}')[0]
        assert (block.span.line, block.span.column, block.span.end_line, block.span.end_column) == (1, 1, 3, 2)
        attribute = block.children[0]
        assert (attribute.span.line, attribute.span.column, attribute.span.end_column) == (2, 3, 8)

    def test_nodes_are_immutable(self):
        block = parse("a {\n}")[0]
        with pytest.raises(ValidationError):
            block.children = ()
        assert isinstance(block.children, tuple)

    def test_sample_document_parses_cleanly(self, deployment_source):
        document = parse_document(deployment_source)
        assert isinstance(document, OclDocument)
        assert [node.kind for node in document] == ["block", "block", "attribute"]
        assert document.diagnostics == ()
        assert document.has_errors is False
        assert document.recovery_nodes() == []


class TestDocument:
    """The document container returned by ``parse_document``."""

    def test_parse_returns_top_level_nodes(self):
        nodes = parse("a = 1\nb {\n}")
        assert isinstance(nodes, tuple)
        assert len(nodes) == 2

    def test_eof_sentinel(self):
        document = parse_document("a = 1")
        assert isinstance(document.eof, EofNode)
        assert (document.eof.span.line, document.eof.span.column) == (1, 6)
        assert document[0].key == "a"
        assert len(document) == 1

    def test_empty_input(self):
        document = parse_document("")
        assert document.nodes == ()
        assert document.diagnostics == ()


class TestRecovery:
    """Syntax errors become in-band recovery nodes."""

    def test_unquoted_label(self):
        nodes = parse("my block {\n}")
        assert len(nodes) == 2
        recovery, block = nodes
        assert isinstance(recovery, RecoveryNode)
        assert recovery.unexpected_token.value == "block"
        assert recovery.problems[0] == UNEXPECTED_TOKEN
        assert recovery.message == UNEXPECTED_TOKEN
        assert isinstance(block, BlockNode)
        assert block.keyword == "my"

    def test_siblings_after_error_survive(self):
        nodes = parse("a = 1\n}\nb = 2")
        assert [node.kind for node in nodes] == ["attribute", "recovery", "attribute"]
        assert nodes[1].unexpected_token.token_type == TokenType.CLOSE_BRACE

    def test_header_without_body(self):
        nodes = parse("orphan\nb = 2")
        assert isinstance(nodes[0], RecoveryNode)
        assert nodes[0].unexpected_token.value == "orphan"
        assert nodes[1].key == "b"

    def test_unexpected_value(self):
        nodes = parse("a = foo\nb = 1")
        assert [node.kind for node in nodes] == ["recovery", "attribute"]
        assert nodes[0].unexpected_token.value == "foo"
        assert nodes[0].message == UNEXPECTED_VALUE

    def test_missing_value_keeps_newline(self):
        nodes = parse("a =\nb = 1")
        assert nodes[0].unexpected_token.token_type == TokenType.NEW_LINE
        assert nodes[1].key == "b"

    def test_missing_value_keeps_closing_brace(self):
        nodes = parse("outer {\n  a = }\nafter = 1")
        outer = nodes[0]
        assert isinstance(outer, BlockNode)
        assert isinstance(outer.children[0], RecoveryNode)
        assert nodes[1].key == "after"

    def test_unclosed_block(self):
        block = parse("block {\n  a = 1\n")[0]
        assert isinstance(block, BlockNode)
        assert block.children[0].key == "a"
        last = block.children[-1]
        assert isinstance(last, RecoveryNode)
        assert last.message == UNCLOSED_SCOPE
        assert last.unexpected_token.token_type == TokenType.EOF

    def test_unclosed_array(self):
        attribute = parse("a = [1, 2")[0]
        assert isinstance(attribute.value.elements[-1], RecoveryNode)
        assert attribute.value.elements[-1].message == UNCLOSED_ARRAY

    def test_nested_array_is_rejected(self):
        nodes = parse("x = [[1]]")
        assert isinstance(nodes[0].value.elements[0], RecoveryNode)
        assert isinstance(nodes[1], RecoveryNode)
        assert nodes[1].unexpected_token.token_type == TokenType.CLOSE_BRACKET

    def test_recovery_inside_nested_scope(self):
        block = parse("outer {\n  = 1\n  ok = true\n}")[0]
        assert [child.kind for child in block.children] == ["recovery", "recovery", "attribute"]
        assert list(iter_recovery_nodes([block]))[0].unexpected_token.value == "="

    def test_attribute_labels_are_flagged(self):
        attribute = parse('a "label" = 1')[0]
        assert isinstance(attribute, AttributeNode)
        assert attribute.problems == (ATTRIBUTE_LABELS,)

    @pytest.mark.parametrize(
        "text",
        [
            "= = ] [ { } \" 1.2.3 'x",
            "a = {\nb = [\n",
            "my block {\n}",
            "x y z\n'\n",
            "}}}}",
            "a {{{{",
        ],
    )
    def test_forward_progress(self, text):
        nodes = parse(text)
        token_count = len(list(tokenize(text)))
        assert len(list(iter_nodes(nodes))) <= token_count


class TestDiagnostics:
    """Diagnostics collected on the document."""

    def test_brace_on_next_line(self):
        document = parse_document("my_block\n    {\n    }")
        block = document[0]
        assert isinstance(block, BlockNode)
        assert block.problems == (BRACE_ON_NEXT_LINE,)
        assert [(d.message, d.line, d.column) for d in document.diagnostics] == [(BRACE_ON_NEXT_LINE, 1, 9)]

    def test_lexical_diagnostic_on_literal(self):
        document = parse_document("x = 1.2.3\ny = 2")
        literal = document[0].value
        assert literal.problems == ("Expected 1 decimal; Got 2",)
        assert document.diagnostics[0].line == 1
        assert document[1].key == "y"

    def test_diagnostics_in_source_order(self):
        document = parse_document('a = "open\nmy block {\n}')
        assert [d.line for d in document.diagnostics] == [1, 2]
        assert str(document.diagnostics[1]) == f"2:4: {UNEXPECTED_TOKEN}"
        assert document.has_errors

    def test_recovery_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="Parser Logger"):
            Parser("my block {\n}", config={"enable_logger": True}).parse_document()
        assert any("Unexpected token" in record.getMessage() for record in caplog.records)
