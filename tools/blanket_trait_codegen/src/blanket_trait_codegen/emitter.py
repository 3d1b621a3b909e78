from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from .header import ImplHeader
from .parsing import TraitShell
from .tokens import BRACE, Group, Punct, Token, render, with_leading

BINDING_SEPARATOR = "\n\n"


def terminator() -> Punct:
    return Punct(";")


@dataclass(frozen=True)
class SplitResult:
    declaration: tuple[Token, ...]
    binding: tuple[Token, ...]

    def tokens(self, separator: str = BINDING_SEPARATOR) -> tuple[Token, ...]:
        return emit(self.declaration, self.binding, separator)

    def render(self, separator: str = BINDING_SEPARATOR) -> str:
        return render(self.tokens(separator))


def build_declaration(shell: TraitShell, members: Sequence[Token]) -> tuple[Token, ...]:
    tokens: list[Token] = list(shell.prefix)
    tokens.append(replace(shell.block, inner=tuple(members)))
    tokens[0] = with_leading(tokens[0], "")
    return tuple(tokens)


def build_binding(header: ImplHeader, shell: TraitShell, members: Sequence[Token]) -> tuple[Token, ...]:
    tokens: list[Token] = list(header.tokens())
    tokens[0] = with_leading(tokens[0], "")
    tokens.append(
        Group(
            delimiter=BRACE,
            inner=tuple(members),
            span=shell.block.span,
            leading=" ",
            close_leading=shell.block.close_leading,
        )
    )
    return tuple(tokens)


def emit(
    declaration: Sequence[Token],
    binding: Sequence[Token],
    separator: str = BINDING_SEPARATOR,
) -> tuple[Token, ...]:
    if not binding:
        return tuple(declaration)
    return tuple(declaration) + (with_leading(binding[0], separator),) + tuple(binding[1:])
