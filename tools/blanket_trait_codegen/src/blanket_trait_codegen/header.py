from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .errors import HeaderParseError
from .parsing import (
    Cursor,
    parse_angle_group,
    parse_outer_attributes,
    parse_path,
    parse_type,
    parse_where_clause,
    split_top_level,
    starts_generics,
)
from .tokens import Ident, Token, is_ident, is_punct, render_compact, tokenize

LIFETIME_PARAM = "lifetime"
TYPE_PARAM = "type"
CONST_PARAM = "const"


@dataclass(frozen=True)
class GenericParam:
    kind: str
    name: str
    tokens: tuple[Token, ...]

    @property
    def text(self) -> str:
        return render_compact(self.tokens)


@dataclass(frozen=True)
class Generics:
    """Generic parameters of the binding, with the where-clause attached."""

    params: tuple[Token, ...] = ()
    where_clause: tuple[Token, ...] = ()

    def parameters(self) -> list[GenericParam]:
        if not self.params:
            return []
        result: list[GenericParam] = []
        for chunk in split_top_level(self.params[1:-1], ","):
            body = chunk
            while len(body) >= 2 and is_punct(body[0], "#"):
                body = body[2:]
            if not body:
                continue
            head = body[0]
            following = body[1] if len(body) > 1 else None
            if is_punct(head, "'") and isinstance(following, Ident):
                kind, name = LIFETIME_PARAM, "'" + following.text
            elif is_ident(head, "const") and isinstance(following, Ident):
                kind, name = CONST_PARAM, following.text
            elif isinstance(head, Ident):
                kind, name = TYPE_PARAM, head.text
            else:
                continue
            result.append(GenericParam(kind, name, chunk))
        return result

    def predicates(self) -> list[str]:
        if not self.where_clause:
            return []
        return [render_compact(chunk) for chunk in split_top_level(self.where_clause[1:], ",") if chunk]


@dataclass(frozen=True)
class ImplHeader:
    attrs: tuple[Token, ...]
    unsafety: Ident | None
    impl_token: Ident
    generics: Generics
    path: tuple[Token, ...]
    for_token: Ident
    self_ty: tuple[Token, ...]

    @property
    def interface_path(self) -> str:
        return render_compact(self.path)

    @property
    def target_type(self) -> str:
        return render_compact(self.self_ty)

    def tokens(self) -> tuple[Token, ...]:
        unsafety = (self.unsafety,) if self.unsafety is not None else ()
        return (
            self.attrs
            + unsafety
            + (self.impl_token,)
            + self.generics.params
            + self.path
            + (self.for_token,)
            + self.self_ty
            + self.generics.where_clause
        )


def parse_impl_header(tokens: Sequence[Token]) -> ImplHeader:
    cursor = Cursor(tokens, HeaderParseError)
    attrs = parse_outer_attributes(cursor)
    unsafety = cursor.eat_ident("unsafe")
    impl_token = cursor.expect_ident("impl")
    params: tuple[Token, ...] = ()
    # Generics stop before the interface path; `impl <T as X>::Y` is a path.
    if starts_generics(cursor):
        params = parse_angle_group(cursor, "generic parameters")
    path = parse_path(cursor, "interface path")
    for_token = cursor.expect_ident("for")
    self_ty = parse_type(cursor, lambda token: is_ident(token, "where"), "target type")
    where_clause = parse_where_clause(cursor, lambda token: False)
    cursor.expect_end("impl header")
    return ImplHeader(
        attrs=attrs,
        unsafety=unsafety,
        impl_token=impl_token,
        generics=Generics(params=params, where_clause=where_clause),
        path=path,
        for_token=for_token,
        self_ty=self_ty,
    )


def parse_impl_header_text(source: str) -> ImplHeader:
    return parse_impl_header(tokenize(source).tokens)
