from typing import Callable, Iterator, NotRequired, Optional, TypedDict
from enum import Enum, auto
from dataclasses import dataclass
from ocl.utils import resolve_config
from ocl.logger import Logger


class TokenType(Enum):
    SYMBOL = auto()
    STRING = auto()
    INTEGER = auto()
    DECIMAL = auto()
    ASSIGN_OP = auto()
    OPEN_BRACE = auto()
    CLOSE_BRACE = auto()
    OPEN_BRACKET = auto()
    CLOSE_BRACKET = auto()
    NEW_LINE = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    token_type: TokenType
    value: str
    line: int
    column: int
    diagnostic: Optional[str] = None

    @property
    def end_column(self) -> int:
        if self.token_type in (TokenType.NEW_LINE, TokenType.EOF):
            return self.column
        return self.column + len(self.value)


SINGLE_CHAR_TOKENS = {
    "\n": TokenType.NEW_LINE,
    "{": TokenType.OPEN_BRACE,
    "}": TokenType.CLOSE_BRACE,
    "[": TokenType.OPEN_BRACKET,
    "]": TokenType.CLOSE_BRACKET,
    "=": TokenType.ASSIGN_OP,
}

SKIPPED_CHARS = frozenset({" ", "\t", "\r"})
SYMBOL_TERMINATORS = SKIPPED_CHARS | {"\n", '"', "=", "{", "}", "[", "]", "'", ","}
SEPARATOR = ","
DIGITS = frozenset("0123456789")


class LexerError(Exception):
    def __init__(self, message, line, column):
        super().__init__(f"Error: {message} at {line}:{column}")
        self.message = message
        self.line = line
        self.column = column


class LexerConfig(TypedDict):
    enable_logger: NotRequired[bool]


class LexerConfigRequired(TypedDict):
    enable_logger: bool


DEFAULT_CONFIG: LexerConfigRequired = {
    "enable_logger": False,
}


class Lexer:
    """Pull-based tokenizer for OCL source text.

    Each call to :meth:`next_token` returns exactly one token. Malformed literals
    are returned with a ``diagnostic`` instead of raising, and once the input is
    exhausted every further call returns an ``EOF`` token.

    The cursor (``position``, ``line``, ``column``) is shared with the heredoc
    capture in :mod:`ocl.heredoc`, which reads whole source lines through
    :meth:`read_raw_line` and :meth:`consume_newline`.
    """

    def __init__(self, input: str, config: Optional[LexerConfig] = None):
        self.input = input
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.logger = Logger(config={"name": "Lexer Logger", "is_enabled": self.config["enable_logger"]}).logger
        self._start = 0
        self._token_line = 1
        self._token_column = 1
        self.position = 0
        self.line = 1
        self.column = 1

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.token_type == TokenType.EOF:
                return

    @property
    def has_more_chars(self) -> bool:
        return self.position < len(self.input)

    @property
    def char(self) -> str:
        return self.input[self.position] if self.has_more_chars else "\0"

    @property
    def current_value(self) -> str:
        return self.input[self._start : self.position]

    def _advance(self, steps: int = 1) -> None:
        for _ in range(steps):
            if not self.has_more_chars:
                raise LexerError("Attempt to advance beyond end of input", self.line, self.column)
            if self.char == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.position += 1

    def _consume_while(self, condition: Callable[[str], bool]) -> None:
        while self.has_more_chars and condition(self.char):
            self._advance()

    def _make_token(self, token_type: TokenType, value: str, diagnostic: Optional[str] = None) -> Token:
        token = Token(token_type, value, self._token_line, self._token_column, diagnostic)
        self.logger.debug(
            f"Emitting token {token_type.name} with value {value!r} at line {token.line}, column {token.column}",
        )
        if diagnostic:
            self.logger.warning(f"{diagnostic} at line {token.line}, column {token.column}")
        return token

    def next_token(self) -> Token:
        self._consume_while(lambda c: c in SKIPPED_CHARS)
        self._start = self.position
        self._token_line = self.line
        self._token_column = self.column

        if not self.has_more_chars:
            return self._make_token(TokenType.EOF, "")

        char = self.char
        if char in DIGITS:
            return self._handle_number()
        if char == '"':
            return self._handle_string()
        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(SINGLE_CHAR_TOKENS[char], char)
        return self._handle_symbol()

    def _handle_number(self) -> Token:
        self._consume_while(lambda c: c in DIGITS or c == ".")
        value = self.current_value
        decimal_points = value.count(".")
        if decimal_points == 0:
            return self._make_token(TokenType.INTEGER, value)
        if decimal_points > 1:
            return self._make_token(TokenType.DECIMAL, value, f"Expected 1 decimal; Got {decimal_points}")
        return self._make_token(TokenType.DECIMAL, value)

    def _handle_string(self) -> Token:
        self._advance()  # opening quote
        while self.has_more_chars and self.char not in ('"', "\n"):
            if self.char == "\\":
                self._advance()
                if not self.has_more_chars or self.char == "\n":
                    break
            self._advance()
        if self.char == '"':
            self._advance()
            return self._make_token(TokenType.STRING, self.current_value)
        got = "\\n" if self.has_more_chars else "EOF"
        return self._make_token(TokenType.STRING, self.current_value, f'Expected "; Got {got}')

    def _handle_symbol(self) -> Token:
        self._consume_while(lambda c: c not in SYMBOL_TERMINATORS)
        if self.position == self._start:
            self._advance()
            if self.current_value == SEPARATOR:
                return self._make_token(TokenType.SYMBOL, SEPARATOR)
            return self._make_token(TokenType.SYMBOL, self.current_value, f"Unexpected character {self.current_value}")
        return self._make_token(TokenType.SYMBOL, self.current_value)

    # Raw line access for heredoc capture -------------------------------------
    def read_raw_line(self) -> str:
        """Consume the rest of the current line, leaving the cursor on its newline."""
        start = self.position
        self._consume_while(lambda c: c != "\n")
        return self.input[start : self.position]

    def consume_newline(self) -> bool:
        if self.char == "\n":
            self._advance()
            return True
        return False


def tokenize(input: str, config: Optional[LexerConfig] = None) -> Iterator[Token]:
    """Lazily tokenize ``input``; the sequence ends with a single ``EOF`` token."""
    return iter(Lexer(input, config=config))
