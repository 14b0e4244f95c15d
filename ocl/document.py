"""Parsed OCL document container."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, overload

from .nodes import EofNode, RecoveryNode, Statement, iter_recovery_nodes


@dataclass(frozen=True, slots=True)
class Diagnostic:
    message: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"


@dataclass(frozen=True)
class OclDocument:
    """Top-level statements of one parse, the terminating EOF and every diagnostic raised on the way."""

    nodes: tuple[Statement, ...]
    eof: EofNode
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @overload
    def __getitem__(self, index: int) -> Statement: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Statement, ...]: ...

    def __getitem__(self, index):
        return self.nodes[index]

    @property
    def has_errors(self) -> bool:
        return bool(self.diagnostics)

    def recovery_nodes(self) -> list[RecoveryNode]:
        return list(iter_recovery_nodes(self.nodes))


__all__ = ["Diagnostic", "OclDocument"]
