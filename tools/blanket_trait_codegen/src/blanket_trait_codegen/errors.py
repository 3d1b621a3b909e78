from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class BlanketTraitError(Exception):
    def __init__(self, message: str, span: Span | None = None) -> None:
        super().__init__(f"{span}: {message}" if span is not None else message)
        self.message = message
        self.span = span


class LexError(BlanketTraitError):
    pass


class HeaderParseError(BlanketTraitError):
    pass


class TraitParseError(BlanketTraitError):
    pass


class MissingDefaultError(BlanketTraitError):
    def __init__(self, message: str, span: Span | None, member_kind: str, member_name: str) -> None:
        super().__init__(f"{message} ({member_kind} {member_name})", span)
        self.member_kind = member_kind
        self.member_name = member_name
