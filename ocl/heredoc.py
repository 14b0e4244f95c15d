"""Raw-text capture for ``<<ID`` and ``<<-ID`` heredoc literals.

The parser hands the lexer over to :func:`capture_heredoc` as soon as it sees an
opener in value position. From then on the source is read line by line, with no
tokenization, until a line whose trimmed content is the opener's identifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ocl.lexer import Lexer, LexerError, Token

HEREDOC_OPENER = re.compile(r"^<<(?P<indent>-?)(?P<identifier>[A-Za-z_][A-Za-z0-9_]*)$")


class HeredocError(LexerError):
    """Raised when a heredoc cannot be captured; fatal for the whole parse."""


@dataclass(frozen=True, slots=True)
class HeredocOpener:
    identifier: str
    indented: bool
    token: Token


@dataclass(frozen=True, slots=True)
class CapturedHeredoc:
    text: str
    end_line: int
    end_column: int


def match_heredoc_opener(token: Token) -> HeredocOpener | None:
    match = HEREDOC_OPENER.match(token.value)
    if match is None:
        return None
    return HeredocOpener(identifier=match["identifier"], indented=bool(match["indent"]), token=token)


def capture_heredoc(lexer: Lexer, opener: HeredocOpener) -> CapturedHeredoc:
    """Read content lines up to the terminator and leave the lexer on the terminator's newline."""
    trailing = lexer.read_raw_line()
    if trailing.strip():
        raise HeredocError(
            f"Unexpected text {trailing.strip()!r} after heredoc opener {opener.token.value}",
            opener.token.line,
            opener.token.column,
        )

    lines: list[str] = []
    while lexer.consume_newline():
        line = lexer.read_raw_line().removesuffix("\r")
        if line.strip() == opener.identifier:
            if opener.indented:
                lines = _dedent(lines, len(line) - len(line.lstrip()))
            lexer.logger.debug(f"Captured {len(lines)} heredoc line(s) for {opener.token.value}")
            return CapturedHeredoc(
                text="".join(f"{content}\n" for content in lines),
                end_line=lexer.line,
                end_column=lexer.column,
            )
        lines.append(line)

    raise HeredocError(
        f"Unterminated heredoc, expected a line containing {opener.identifier}",
        opener.token.line,
        opener.token.column,
    )


def _dedent(lines: list[str], width: int) -> list[str]:
    dedented = []
    for line in lines:
        if len(line) < width:
            dedented.append(line)
            continue
        leading = len(line) - len(line.lstrip())
        dedented.append(line[min(width, leading) :])
    return dedented


__all__ = ["CapturedHeredoc", "HeredocError", "HeredocOpener", "capture_heredoc", "match_heredoc_opener"]
