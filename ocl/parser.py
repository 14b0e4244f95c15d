from typing import List, NotRequired, Optional, TypedDict
from collections import deque
from dataclasses import replace
from ocl.lexer import SEPARATOR, Lexer, LexerConfig, Token, TokenType
from ocl.heredoc import HeredocOpener, capture_heredoc, match_heredoc_opener
from ocl.nodes import (
    ArrayNode,
    AttributeNode,
    BlockNode,
    DictionaryNode,
    EofNode,
    LiteralKind,
    LiteralNode,
    OclNode,
    RecoveryNode,
    Span,
)
from ocl.document import Diagnostic, OclDocument
from ocl.utils import resolve_config
from ocl.logger import Logger


class ParseException(Exception):
    def __init__(self, message: str, token: Optional[Token] = None):
        self.message = message
        self.token = token
        if token:
            message = f"{message} at line {token.line}, column {token.column}" + f", {token=}"
        super().__init__(message)


UNEXPECTED_TOKEN = "Unexpected token. Expected Attribute or Block definition."
UNEXPECTED_VALUE = "Unexpected token. Expected a string, number, boolean, heredoc, dictionary or array value."
UNEXPECTED_ARRAY_ELEMENT = "Unexpected token. Expected a string, number, boolean, heredoc or dictionary array element."
UNCLOSED_SCOPE = "Unexpected end of input. Expected }"
UNCLOSED_ARRAY = "Unexpected token. Expected ]"
BRACE_ON_NEXT_LINE = "Expected { on the same line as the block header"
ATTRIBUTE_LABELS = "Attribute definitions do not accept labels"

NAME_TOKENS = {TokenType.SYMBOL, TokenType.STRING}
LITERAL_TOKENS = {
    TokenType.STRING: LiteralKind.STRING,
    TokenType.INTEGER: LiteralKind.INTEGER,
    TokenType.DECIMAL: LiteralKind.DECIMAL,
}
BOOLEAN_SYMBOLS = {"true", "false"}
# tokens that belong to an enclosing construct and must never be discarded by recovery
SCOPE_BOUNDARIES = {TokenType.NEW_LINE, TokenType.CLOSE_BRACE, TokenType.EOF}


class ParserConfig(TypedDict):
    enable_logger: NotRequired[bool]
    lexer_config: NotRequired[LexerConfig]


class ParserConfigRequired(TypedDict):
    enable_logger: bool
    lexer_config: LexerConfig


DEFAULT_CONFIG: ParserConfigRequired = {"enable_logger": False, "lexer_config": {}}


class Parser:
    """Recursive-descent parser producing an :class:`OclDocument`.

    Syntax errors never raise. Each one becomes a :class:`RecoveryNode` holding
    the offending token, exactly that token is dropped, and parsing carries on,
    so every loop below consumes at least one token per iteration. The only
    fatal condition is an unterminated heredoc (:class:`ocl.heredoc.HeredocError`).

    Tokens are pulled lazily from the :class:`Lexer`. Lookahead is buffered, and
    the buffer must hold nothing past a heredoc opener when the raw-text capture
    takes over the lexer cursor.
    """

    def __init__(self, input: str, config: Optional[ParserConfig] = None):
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.logger = Logger(config={"name": "Parser Logger", "is_enabled": self.config["enable_logger"]}).logger
        self.lexer = Lexer(input, config=self.config["lexer_config"])
        self._buffer: deque[Token] = deque()
        self._previous: Optional[Token] = None
        self.diagnostics: List[Diagnostic] = []
        self.logger.info("Parser initialized")

    @property
    def current_token(self) -> Token:
        return self.lookahead(0)

    def lookahead(self, distance: int = 1) -> Token:
        while len(self._buffer) <= distance:
            if self._buffer and self._buffer[-1].token_type == TokenType.EOF:
                return self._buffer[-1]
            self._buffer.append(self.lexer.next_token())
        return self._buffer[distance]

    def advance(self) -> Token:
        token = self.current_token
        if token.token_type != TokenType.EOF:
            self._buffer.popleft()
        if token.diagnostic:
            self._report(token.diagnostic, token)
        self._previous = token
        return token

    def expect(self, expected_type: TokenType) -> None:
        if self.current_token.token_type != expected_type:
            raise ParseException(
                f"Expected token type {expected_type}, but got {self.current_token.token_type}",
                self.current_token,
            )

    def consume(self, expected_type: TokenType) -> Token:
        self.expect(expected_type)
        token = self.advance()
        self.logger.debug(f"Consumed token {token}")
        return token

    def _report(self, message: str, token: Token) -> None:
        self.diagnostics.append(Diagnostic(message, token.line, token.column))

    def _annotate(self, distance: int, diagnostic: str) -> None:
        self._buffer[distance] = replace(self._buffer[distance], diagnostic=diagnostic)

    def _recover(self, token: Token, message: str = UNEXPECTED_TOKEN) -> RecoveryNode:
        self.logger.warning(f"{message} Got {token.value!r} at line {token.line}, column {token.column}")
        self._report(message, token)
        return RecoveryNode(unexpected_token=token, message=message, span=Span.of_token(token), problems=(message,))

    def _recover_current(self, message: str = UNEXPECTED_TOKEN) -> RecoveryNode:
        """Recover on the current token, dropping it unless it belongs to an enclosing construct."""
        token = self.current_token
        if token.token_type not in SCOPE_BOUNDARIES:
            self.advance()
        return self._recover(token, message)

    # Grammar -----------------------------------------------------------------
    def parse_document(self) -> OclDocument:
        self.logger.info("Starting parse")
        nodes = self._parse_statements(TokenType.EOF)
        eof = EofNode(span=Span.of_token(self.current_token))
        self.logger.info(f"Parse complete: {len(nodes)} top-level node(s), {len(self.diagnostics)} diagnostic(s)")
        diagnostics = sorted(self.diagnostics, key=lambda d: (d.line, d.column))
        return OclDocument(nodes=tuple(nodes), eof=eof, diagnostics=tuple(diagnostics))

    def _parse_statements(self, terminator: TokenType) -> List[OclNode]:
        statements: List[OclNode] = []
        while True:
            token_type = self.current_token.token_type
            if token_type == TokenType.NEW_LINE:
                self.advance()
            elif token_type == terminator:
                return statements
            elif token_type == TokenType.EOF:
                statements.append(self._recover(self.current_token, UNCLOSED_SCOPE))
                return statements
            else:
                self._parse_statement(statements)

    def _parse_statement(self, statements: List[OclNode]) -> None:
        """Parse one statement into ``statements``, preceded by any recoveries made inside its header."""
        if self.current_token.token_type not in NAME_TOKENS:
            statements.append(self._recover(self.advance()))
            return

        name = self.advance()
        labels: List[Token] = []
        problems: List[str] = []
        while True:
            token = self.current_token
            match token.token_type:
                case TokenType.STRING:
                    labels.append(self.advance())
                case TokenType.ASSIGN_OP:
                    self.advance()
                    statements.append(self._parse_attribute(name, labels))
                    return
                case TokenType.OPEN_BRACE:
                    statements.append(self._parse_block(name, labels, problems))
                    return
                case TokenType.NEW_LINE:
                    distance = 1
                    while self.lookahead(distance).token_type == TokenType.NEW_LINE:
                        distance += 1
                    if self.lookahead(distance).token_type != TokenType.OPEN_BRACE:
                        statements.append(self._recover(name))
                        return
                    self._annotate(0, BRACE_ON_NEXT_LINE)
                    problems.append(BRACE_ON_NEXT_LINE)
                    for _ in range(distance):
                        self.advance()
                case TokenType.CLOSE_BRACE | TokenType.EOF:
                    statements.append(self._recover(name))
                    return
                case _:
                    statements.append(self._recover(self.advance()))

    def _parse_block(self, name: Token, labels: List[Token], problems: List[str]) -> BlockNode:
        self.consume(TokenType.OPEN_BRACE)
        self.logger.debug(f"Parsing block {name.value} with {len(labels)} label(s)")
        children = self._parse_statements(TokenType.CLOSE_BRACE)
        end = self._close(TokenType.CLOSE_BRACE)
        return BlockNode(
            name=name,
            labels=tuple(labels),
            children=tuple(children),
            span=Span.between(name, end),
            problems=tuple(problems + self._token_problems(name, *labels)),
        )

    def _parse_attribute(self, name: Token, labels: List[Token]) -> OclNode:
        value = self._parse_value()
        if isinstance(value, RecoveryNode):
            return value
        problems = self._token_problems(name)
        if labels:
            self._report(ATTRIBUTE_LABELS, labels[0])
            problems.append(ATTRIBUTE_LABELS)
        self.logger.debug(f"Parsed attribute {name.value}")
        return AttributeNode(name=name, value=value, span=Span.between(name, value.span), problems=tuple(problems))

    def _parse_value(self, array_element: bool = False) -> OclNode:
        token = self.current_token
        message = UNEXPECTED_ARRAY_ELEMENT if array_element else UNEXPECTED_VALUE
        match token.token_type:
            case TokenType.STRING | TokenType.INTEGER | TokenType.DECIMAL:
                return self._literal(self.advance(), LITERAL_TOKENS[token.token_type])
            case TokenType.SYMBOL if token.value in BOOLEAN_SYMBOLS:
                return self._literal(self.advance(), LiteralKind.BOOLEAN)
            case TokenType.SYMBOL:
                opener = match_heredoc_opener(token)
                if opener is None:
                    return self._recover_current(message)
                return self._parse_heredoc(opener)
            case TokenType.OPEN_BRACE:
                return self._parse_dictionary()
            case TokenType.OPEN_BRACKET if not array_element:
                return self._parse_array()
            case _:
                return self._recover_current(message)

    def _literal(self, token: Token, literal_kind: LiteralKind) -> LiteralNode:
        return LiteralNode(
            literal_kind=literal_kind,
            value=token.value,
            span=Span.of_token(token),
            problems=tuple(self._token_problems(token)),
        )

    def _parse_heredoc(self, opener: HeredocOpener) -> LiteralNode:
        if len(self._buffer) != 1:
            raise ParseException("Heredoc capture requested with buffered lookahead", opener.token)
        self.advance()
        captured = capture_heredoc(self.lexer, opener)
        literal_kind = LiteralKind.INDENTED_HEREDOC if opener.indented else LiteralKind.HEREDOC
        self.logger.debug(f"Captured {literal_kind.name} terminated by {opener.identifier}")
        return LiteralNode(
            literal_kind=literal_kind,
            value=captured.text,
            span=Span(
                line=opener.token.line,
                column=opener.token.column,
                end_line=captured.end_line,
                end_column=captured.end_column,
            ),
        )

    def _parse_dictionary(self) -> DictionaryNode:
        start = self.consume(TokenType.OPEN_BRACE)
        children = self._parse_statements(TokenType.CLOSE_BRACE)
        end = self._close(TokenType.CLOSE_BRACE)
        return DictionaryNode(children=tuple(children), span=Span.between(start, end))

    def _parse_array(self) -> ArrayNode:
        start = self.consume(TokenType.OPEN_BRACKET)
        elements: List[OclNode] = []
        while True:
            token = self.current_token
            if token.token_type == TokenType.NEW_LINE or (
                token.token_type == TokenType.SYMBOL and token.value == SEPARATOR
            ):
                self.advance()
            elif token.token_type == TokenType.CLOSE_BRACKET:
                break
            elif token.token_type in (TokenType.CLOSE_BRACE, TokenType.EOF):
                elements.append(self._recover(token, UNCLOSED_ARRAY))
                break
            else:
                elements.append(self._parse_value(array_element=True))
        end = self._close(TokenType.CLOSE_BRACKET)
        return ArrayNode(elements=tuple(elements), span=Span.between(start, end))

    def _close(self, closing: TokenType) -> Token:
        """Consume the closing token of a scope, or end the scope at the last token seen."""
        if self.current_token.token_type == closing:
            return self.consume(closing)
        return self._previous or self.current_token

    def _token_problems(self, *tokens: Token) -> List[str]:
        return [token.diagnostic for token in tokens if token.diagnostic]


def parse_document(input: str, config: Optional[ParserConfig] = None) -> OclDocument:
    return Parser(input, config=config).parse_document()


def parse(input: str, config: Optional[ParserConfig] = None) -> tuple[OclNode, ...]:
    """Parse ``input`` into its top-level statements. Syntax errors are in-band ``RecoveryNode``s."""
    return parse_document(input, config=config).nodes
