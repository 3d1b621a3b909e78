from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from .errors import BlanketTraitError, Span, TraitParseError
from .tokens import (
    BRACE,
    BRACKET,
    PAREN,
    Group,
    Ident,
    Punct,
    Token,
    is_group,
    is_ident,
    is_keyword,
    is_punct,
)

StopPredicate = Callable[[Token], bool]

PATH_SEGMENT_KEYWORDS = frozenset({"crate", "self", "super", "Self"})
TYPE_START_KEYWORDS = frozenset({"dyn", "impl", "fn", "unsafe", "extern", "for", "Self", "crate", "self", "super"})


class Cursor:
    def __init__(
        self,
        tokens: Sequence[Token],
        error_cls: type[BlanketTraitError] = TraitParseError,
        end_span: Span | None = None,
    ) -> None:
        self.tokens = tuple(tokens)
        self.index = 0
        self.error_cls = error_cls
        self.end_span = end_span

    def at_end(self) -> bool:
        return self.index >= len(self.tokens)

    def peek(self, offset: int = 0) -> Token | None:
        index = self.index + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def advance(self) -> Token:
        if self.at_end():
            raise self.error("unexpected end of input")
        token = self.tokens[self.index]
        self.index += 1
        return token

    def eat_ident(self, text: str) -> Ident | None:
        token = self.peek()
        if isinstance(token, Ident) and token.text == text:
            self.index += 1
            return token
        return None

    def eat_punct(self, char: str) -> Punct | None:
        token = self.peek()
        if isinstance(token, Punct) and token.char == char:
            self.index += 1
            return token
        return None

    def expect_ident(self, text: str) -> Ident:
        token = self.eat_ident(text)
        if token is None:
            raise self.error(f"expected `{text}`")
        return token

    def expect_name(self, what: str) -> Ident:
        token = self.peek()
        if not isinstance(token, Ident) or is_keyword(token):
            raise self.error(f"expected {what}")
        self.index += 1
        return token

    def expect_punct(self, char: str) -> Punct:
        token = self.eat_punct(char)
        if token is None:
            raise self.error(f"expected `{char}`")
        return token

    def expect_group(self, delimiter: str, what: str) -> Group:
        token = self.peek()
        if not isinstance(token, Group) or token.delimiter != delimiter:
            raise self.error(f"expected {what}")
        self.index += 1
        return token

    def expect_end(self, what: str) -> None:
        if not self.at_end():
            raise self.error(f"unexpected token after {what}")

    def error(self, message: str, token: Token | None = None) -> BlanketTraitError:
        if token is None:
            token = self.peek()
        span = token.span if token is not None else self.end_span
        if span is None and self.tokens:
            span = self.tokens[-1].span
        return self.error_cls(message, span)


def is_arrow_head(previous: Token | None) -> bool:
    return isinstance(previous, Punct) and previous.joint and previous.char in ("-", "=")


def parse_outer_attributes(cursor: Cursor) -> tuple[Token, ...]:
    attrs: list[Token] = []
    while is_punct(cursor.peek(), "#") and is_group(cursor.peek(1), BRACKET):
        attrs.append(cursor.advance())
        attrs.append(cursor.advance())
    return tuple(attrs)


def parse_visibility(cursor: Cursor) -> tuple[Token, ...]:
    if not is_ident(cursor.peek(), "pub"):
        return ()
    tokens = [cursor.advance()]
    restriction = cursor.peek()
    if (
        isinstance(restriction, Group)
        and restriction.delimiter == PAREN
        and restriction.inner
        and isinstance(restriction.inner[0], Ident)
        and restriction.inner[0].text in ("crate", "self", "super", "in")
    ):
        tokens.append(cursor.advance())
    return tuple(tokens)


def starts_generics(cursor: Cursor) -> bool:
    """Whether ``<`` at the cursor opens a generic parameter list rather than a qualified path."""
    if not is_punct(cursor.peek(), "<"):
        return False
    first = cursor.peek(1)
    if is_punct(first, ">") or is_punct(first, "#") or is_punct(first, "'") or is_ident(first, "const"):
        return True
    if isinstance(first, Ident) and not is_keyword(first):
        follower = cursor.peek(2)
        return any(is_punct(follower, char) for char in (":", ",", ">", "="))
    return False


def parse_angle_group(cursor: Cursor, what: str) -> tuple[Token, ...]:
    opening = cursor.peek()
    if not is_punct(opening, "<"):
        raise cursor.error(f"expected {what}")
    tokens: list[Token] = [cursor.advance()]
    depth = 1
    while depth:
        if cursor.at_end():
            raise cursor.error(f"unclosed {what}", opening)
        token = cursor.advance()
        if is_punct(token, "<"):
            depth += 1
        elif is_punct(token, ">") and not is_arrow_head(tokens[-1]):
            depth -= 1
        tokens.append(token)
    return tuple(tokens)


def take_balanced(cursor: Cursor, stop: StopPredicate) -> tuple[Token, ...]:
    """Take tokens up to a stop token that sits outside any angle brackets."""
    taken: list[Token] = []
    depth = 0
    while True:
        token = cursor.peek()
        if token is None or (depth == 0 and stop(token)):
            break
        if is_punct(token, "<"):
            depth += 1
        elif is_punct(token, ">") and not (taken and is_arrow_head(taken[-1])):
            if depth == 0:
                raise cursor.error("unexpected `>`")
            depth -= 1
        taken.append(cursor.advance())
    if depth:
        raise cursor.error("unclosed `<`")
    return tuple(taken)


def take_until(cursor: Cursor, stop: StopPredicate) -> tuple[Token, ...]:
    taken: list[Token] = []
    token = cursor.peek()
    while token is not None and not stop(token):
        taken.append(cursor.advance())
        token = cursor.peek()
    return tuple(taken)


def split_top_level(tokens: Sequence[Token], char: str) -> list[tuple[Token, ...]]:
    parts: list[tuple[Token, ...]] = []
    current: list[Token] = []
    depth = 0
    for token in tokens:
        if depth == 0 and is_punct(token, char):
            parts.append(tuple(current))
            current = []
            continue
        if is_punct(token, "<"):
            depth += 1
        elif is_punct(token, ">") and not (current and is_arrow_head(current[-1])):
            depth = max(0, depth - 1)
        current.append(token)
    if current:
        parts.append(tuple(current))
    return parts


def parse_path(cursor: Cursor, what: str) -> tuple[Token, ...]:
    tokens: list[Token] = []
    if is_punct(cursor.peek(), ":") and is_punct(cursor.peek(1), ":"):
        tokens.extend((cursor.advance(), cursor.advance()))
    while True:
        segment = cursor.peek()
        if not isinstance(segment, Ident) or (is_keyword(segment) and segment.text not in PATH_SEGMENT_KEYWORDS):
            raise cursor.error(f"expected {what}")
        tokens.append(cursor.advance())
        if is_punct(cursor.peek(), ":") and is_punct(cursor.peek(1), ":") and is_punct(cursor.peek(2), "<"):
            tokens.extend((cursor.advance(), cursor.advance()))
        if is_punct(cursor.peek(), "<"):
            tokens.extend(parse_angle_group(cursor, "generic arguments"))
        elif is_group(cursor.peek(), PAREN):
            # Fn(A, B) -> C sugar
            tokens.append(cursor.advance())
            if is_punct(cursor.peek(), "-") and is_punct(cursor.peek(1), ">"):
                tokens.extend((cursor.advance(), cursor.advance()))
                tokens.extend(parse_type(cursor, lambda token: is_ident(token, "for") or is_ident(token, "where")))
        if is_punct(cursor.peek(), ":") and is_punct(cursor.peek(1), ":"):
            tokens.extend((cursor.advance(), cursor.advance()))
            continue
        return tuple(tokens)


def _starts_type(token: Token) -> bool:
    if isinstance(token, Ident):
        return not is_keyword(token) or token.text in TYPE_START_KEYWORDS
    if isinstance(token, Group):
        return token.delimiter != BRACE
    return isinstance(token, Punct) and token.char in ("&", "*", "!", "<", ":")


def parse_type(cursor: Cursor, stop: StopPredicate, what: str = "type") -> tuple[Token, ...]:
    first = cursor.peek()
    if first is None or stop(first) or not _starts_type(first):
        raise cursor.error(f"expected {what}")
    return take_balanced(cursor, stop)


def parse_where_clause(cursor: Cursor, stop: StopPredicate) -> tuple[Token, ...]:
    if not is_ident(cursor.peek(), "where"):
        return ()
    where_token = cursor.advance()
    return (where_token,) + take_balanced(cursor, stop)


def _is_brace(token: Token) -> bool:
    return is_group(token, BRACE)


@dataclass(frozen=True)
class TraitShell:
    """A trait item split into everything before its body and the body group."""

    prefix: tuple[Token, ...]
    name: Ident
    block: Group


def parse_trait_shell(tokens: Sequence[Token]) -> TraitShell:
    cursor = Cursor(tokens, TraitParseError)
    prefix: list[Token] = list(parse_outer_attributes(cursor))
    prefix.extend(parse_visibility(cursor))
    for qualifier in ("unsafe", "auto"):
        token = cursor.eat_ident(qualifier)
        if token is not None:
            prefix.append(token)
    prefix.append(cursor.expect_ident("trait"))
    name = cursor.expect_name("trait name")
    prefix.append(name)
    if is_punct(cursor.peek(), "<"):
        prefix.extend(parse_angle_group(cursor, "generic parameters"))
    if is_punct(cursor.peek(), ":"):
        prefix.append(cursor.advance())
        prefix.extend(take_balanced(cursor, lambda token: _is_brace(token) or is_ident(token, "where")))
    prefix.extend(parse_where_clause(cursor, _is_brace))
    block = cursor.expect_group(BRACE, "trait body `{ ... }`")
    cursor.expect_end("trait body")
    return TraitShell(prefix=tuple(prefix), name=name, block=block)


def locate_trait_shell(tokens: Sequence[Token]) -> TraitShell:
    """Find the body of a trait item without validating the rest of its grammar."""
    span = tokens[0].span if tokens else None
    name: Ident | None = None
    for index, token in enumerate(tokens[:-1]):
        following = tokens[index + 1]
        if is_ident(token, "trait") and isinstance(following, Ident):
            name = following
            break
    if name is None:
        raise TraitParseError("expected `trait`", span)

    for index, token in enumerate(tokens):
        if isinstance(token, Group) and token.delimiter == BRACE:
            if index + 1 < len(tokens):
                raise TraitParseError("unexpected token after trait body", tokens[index + 1].span)
            return TraitShell(prefix=tuple(tokens[:index]), name=name, block=token)
    raise TraitParseError("expected trait body `{ ... }`", span)
