"""Grammar-aware splitting of a trait with defaults.

Every member of the trait body is parsed into one of the closed set of
member shapes below. Function, type and const members must carry a default;
the first one that does not aborts the whole split with
``MissingDefaultError``. Macro invocations and unrecognised members stay in
the trait declaration and are left out of the implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from .emitter import SplitResult, build_binding, build_declaration, terminator
from .errors import MissingDefaultError, TraitParseError
from .header import ImplHeader
from .parsing import (
    Cursor,
    parse_angle_group,
    parse_outer_attributes,
    parse_trait_shell,
    parse_type,
    parse_where_clause,
    take_balanced,
    take_until,
)
from .tokens import BRACE, BRACKET, PAREN, Group, Ident, Literal, Punct, Token, is_group, is_ident, is_punct

FN_QUALIFIERS = frozenset({"const", "async", "unsafe", "safe", "extern"})


@dataclass(frozen=True)
class FnMember:
    attrs: tuple[Token, ...]
    signature: tuple[Token, ...]
    name: Ident
    body: Group | None

    kind = "fn"

    @property
    def has_default(self) -> bool:
        return self.body is not None

    def declaration(self) -> tuple[Token, ...]:
        return self.attrs + self.signature + (terminator(),)

    def binding(self) -> tuple[Token, ...]:
        if self.body is None:
            raise _missing_default(self)
        return self.attrs + self.signature + (self.body,)


@dataclass(frozen=True)
class TypeMember:
    attrs: tuple[Token, ...]
    type_token: Ident
    name: Ident
    generics: tuple[Token, ...]
    bounds: tuple[Token, ...]
    where_clause: tuple[Token, ...]
    eq_token: Punct | None
    value: tuple[Token, ...]
    value_where_clause: tuple[Token, ...]
    semi: Punct

    kind = "type"

    @property
    def has_default(self) -> bool:
        return self.eq_token is not None

    @property
    def signature(self) -> tuple[Token, ...]:
        head = (self.type_token, self.name) + self.generics + self.bounds
        return head + self.where_clause + self.value_where_clause

    def declaration(self) -> tuple[Token, ...]:
        return self.attrs + self.signature + (self.semi,)

    def binding(self) -> tuple[Token, ...]:
        if self.eq_token is None:
            raise _missing_default(self)
        # Bounds are not allowed on associated types of an impl.
        head = (self.type_token, self.name) + self.generics
        # The impl takes the where-clause after the value.
        tail = (self.eq_token,) + self.value + (self.value_where_clause or self.where_clause)
        return self.attrs + head + tail + (self.semi,)


@dataclass(frozen=True)
class ConstMember:
    attrs: tuple[Token, ...]
    signature: tuple[Token, ...]
    name: Ident
    eq_token: Punct | None
    value: tuple[Token, ...]
    semi: Punct

    kind = "const"

    @property
    def has_default(self) -> bool:
        return self.eq_token is not None

    def declaration(self) -> tuple[Token, ...]:
        return self.attrs + self.signature + (self.semi,)

    def binding(self) -> tuple[Token, ...]:
        if self.eq_token is None:
            raise _missing_default(self)
        return self.attrs + self.signature + (self.eq_token,) + self.value + (self.semi,)


@dataclass(frozen=True)
class MacroMember:
    tokens: tuple[Token, ...]

    kind = "macro"


@dataclass(frozen=True)
class VerbatimMember:
    tokens: tuple[Token, ...]

    kind = "verbatim"


TraitMember = Union[FnMember, TypeMember, ConstMember, MacroMember, VerbatimMember]


def _is_semi(token: Token) -> bool:
    return is_punct(token, ";")


def _is_brace(token: Token) -> bool:
    return is_group(token, BRACE)


def _starts_fn(cursor: Cursor) -> bool:
    offset = 0
    while True:
        token = cursor.peek(offset)
        if is_ident(token, "fn"):
            return True
        if isinstance(token, Ident) and token.text in FN_QUALIFIERS:
            offset += 1
        elif isinstance(token, Literal) and is_ident(cursor.peek(offset - 1), "extern"):
            offset += 1
        else:
            return False


def _starts_macro(cursor: Cursor) -> bool:
    offset = 0
    if is_punct(cursor.peek(), ":") and is_punct(cursor.peek(1), ":"):
        offset = 2
    while isinstance(cursor.peek(offset), Ident):
        if is_punct(cursor.peek(offset + 1), "!"):
            return is_group(cursor.peek(offset + 2))
        if is_punct(cursor.peek(offset + 1), ":") and is_punct(cursor.peek(offset + 2), ":"):
            offset += 3
            continue
        return False
    return False


def parse_fn(cursor: Cursor, attrs: tuple[Token, ...]) -> FnMember:
    signature: list[Token] = []
    while not is_ident(cursor.peek(), "fn"):
        signature.append(cursor.advance())
    signature.append(cursor.advance())
    name = cursor.expect_name("function name")
    signature.append(name)
    if is_punct(cursor.peek(), "<"):
        signature.extend(parse_angle_group(cursor, "generic parameters"))
    signature.append(cursor.expect_group(PAREN, "function parameters `( ... )`"))
    if is_punct(cursor.peek(), "-") and is_punct(cursor.peek(1), ">"):
        signature.extend((cursor.advance(), cursor.advance()))
        signature.extend(
            parse_type(cursor, lambda token: _is_brace(token) or _is_semi(token) or is_ident(token, "where"), "return type")
        )
    signature.extend(parse_where_clause(cursor, lambda token: _is_brace(token) or _is_semi(token)))

    token = cursor.peek()
    if isinstance(token, Group) and token.delimiter == BRACE:
        cursor.advance()
        return FnMember(attrs=attrs, signature=tuple(signature), name=name, body=token)
    cursor.expect_punct(";")
    return FnMember(attrs=attrs, signature=tuple(signature), name=name, body=None)


def parse_type_member(cursor: Cursor, attrs: tuple[Token, ...]) -> TypeMember:
    type_token = cursor.expect_ident("type")
    name = cursor.expect_name("associated type name")
    generics: tuple[Token, ...] = ()
    if is_punct(cursor.peek(), "<"):
        generics = parse_angle_group(cursor, "generic parameters")
    bounds: tuple[Token, ...] = ()
    if is_punct(cursor.peek(), ":"):
        colon = cursor.advance()
        bounds = (colon,) + take_balanced(
            cursor, lambda token: _is_semi(token) or is_punct(token, "=") or is_ident(token, "where")
        )
    where_clause = parse_where_clause(cursor, lambda token: _is_semi(token) or is_punct(token, "="))
    eq_token = cursor.eat_punct("=")
    value: tuple[Token, ...] = ()
    value_where_clause: tuple[Token, ...] = ()
    if eq_token is not None:
        value = parse_type(cursor, lambda token: _is_semi(token) or is_ident(token, "where"))
        value_where_clause = parse_where_clause(cursor, _is_semi)
    semi = cursor.expect_punct(";")
    return TypeMember(
        attrs=attrs,
        type_token=type_token,
        name=name,
        generics=generics,
        bounds=bounds,
        where_clause=where_clause,
        eq_token=eq_token,
        value=value,
        value_where_clause=value_where_clause,
        semi=semi,
    )


def parse_const_member(cursor: Cursor, attrs: tuple[Token, ...]) -> ConstMember:
    signature: list[Token] = [cursor.expect_ident("const")]
    name = cursor.expect_name("constant name")
    signature.append(name)
    signature.append(cursor.expect_punct(":"))
    signature.extend(parse_type(cursor, lambda token: _is_semi(token) or is_punct(token, "=")))
    eq_token = cursor.eat_punct("=")
    value: tuple[Token, ...] = ()
    if eq_token is not None:
        value = take_until(cursor, _is_semi)
        if not value:
            raise cursor.error("expected expression")
    semi = cursor.expect_punct(";")
    return ConstMember(
        attrs=attrs,
        signature=tuple(signature),
        name=name,
        eq_token=eq_token,
        value=value,
        semi=semi,
    )


def parse_macro_member(cursor: Cursor, attrs: tuple[Token, ...]) -> MacroMember:
    tokens = list(attrs)
    while not is_punct(cursor.peek(), "!"):
        tokens.append(cursor.advance())
    tokens.append(cursor.advance())
    body = cursor.advance()
    tokens.append(body)
    semi = cursor.eat_punct(";")
    if semi is not None:
        tokens.append(semi)
    elif not _is_brace(body):
        raise cursor.error("expected `;` after macro invocation")
    return MacroMember(tokens=tuple(tokens))


def parse_verbatim_member(cursor: Cursor, attrs: tuple[Token, ...]) -> VerbatimMember:
    tokens = list(attrs)
    while True:
        token = cursor.advance()
        tokens.append(token)
        if _is_semi(token) or _is_brace(token):
            return VerbatimMember(tokens=tuple(tokens))
        if cursor.at_end():
            raise cursor.error("expected `;` or `{ ... }` after trait member", tokens[0])


def parse_member(cursor: Cursor) -> TraitMember:
    if is_punct(cursor.peek(), "#") and is_punct(cursor.peek(1), "!") and is_group(cursor.peek(2), BRACKET):
        return VerbatimMember(tokens=(cursor.advance(), cursor.advance(), cursor.advance()))
    attrs = parse_outer_attributes(cursor)
    if cursor.at_end():
        raise cursor.error("expected trait member after attributes", attrs[0])
    if _starts_fn(cursor):
        return parse_fn(cursor, attrs)
    if is_ident(cursor.peek(), "type"):
        return parse_type_member(cursor, attrs)
    if is_ident(cursor.peek(), "const"):
        return parse_const_member(cursor, attrs)
    if _starts_macro(cursor):
        return parse_macro_member(cursor, attrs)
    return parse_verbatim_member(cursor, attrs)


def parse_members(tokens: Sequence[Token]) -> list[TraitMember]:
    cursor = Cursor(tokens, TraitParseError)
    members: list[TraitMember] = []
    while not cursor.at_end():
        members.append(parse_member(cursor))
    return members


def _missing_default(member: FnMember | TypeMember | ConstMember) -> MissingDefaultError:
    message = "Expected function body" if isinstance(member, FnMember) else "Expected default value."
    first = member.attrs[0] if member.attrs else member.signature[0]
    return MissingDefaultError(message, first.span, member.kind, member.name.text)


def split_structured(header: ImplHeader, item_tokens: Sequence[Token]) -> SplitResult:
    shell = parse_trait_shell(item_tokens)
    declaration: list[Token] = []
    binding: list[Token] = []
    for member in parse_members(shell.block.inner):
        if isinstance(member, (MacroMember, VerbatimMember)):
            declaration.extend(member.tokens)
            continue
        binding.extend(member.binding())
        declaration.extend(member.declaration())
    return SplitResult(
        declaration=build_declaration(shell, declaration),
        binding=build_binding(header, shell, binding),
    )
