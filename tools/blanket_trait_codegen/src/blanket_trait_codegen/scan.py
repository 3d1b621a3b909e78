"""Single-pass splitting of a trait body without building member trees.

Each top-level token of the trait body is routed to the declaration stream,
the binding stream, or both. The scanner is in one of two states, and each
token falls into one of four classes, checked in this priority order:

``OPAQUE_BODY``
    A brace group. The declaration gets a bare ``;``, the binding gets the
    group unchanged. Checked first, whatever the state.
``DEFAULT_START``
    ``=`` outside any angle brackets. Enters ``IN_DEFAULT``; binding only.
``BOUNDARY``
    While ``IN_DEFAULT``: ``;`` or a member keyword. Leaves ``IN_DEFAULT``;
    routed to both streams.
``OTHER``
    Binding only while ``IN_DEFAULT``, both streams otherwise.

Members that carry neither ``=`` nor a body are copied to both streams
unchanged. ``check_member_defaults`` is the optional pass that rejects them.

Defaults are not parsed, so some valid members come out as a broken
declaration:

- a brace group inside a default value, as in ``const C: Foo = Foo { x: 1 };``,
  leaves ``const C: Foo;;``;
- a member keyword inside a default value, as in ``type F = fn(u8) -> u8;``,
  leaves ``type F fn(u8) -> u8;``;
- a where-clause after a type default, as in
  ``type X<'a> = &'a u8 where Self: 'a;``, is kept in the binding only.

The structured splitter handles all three.
"""

from __future__ import annotations

from typing import Sequence

from .emitter import SplitResult, build_binding, build_declaration, terminator
from .errors import MissingDefaultError
from .header import ImplHeader
from .parsing import is_arrow_head, locate_trait_shell
from .tokens import BRACE, BRACKET, Ident, Token, is_group, is_ident, is_punct

IN_SIGNATURE = "in_signature"
IN_DEFAULT = "in_default"

OPAQUE_BODY = "opaque_body"
DEFAULT_START = "default_start"
BOUNDARY = "boundary"
OTHER = "other"

MEMBER_KEYWORDS = frozenset({"fn", "type", "const"})


def classify(token: Token, state: str, angle_depth: int) -> str:
    if is_group(token, BRACE):
        return OPAQUE_BODY
    if is_punct(token, "=") and (state == IN_DEFAULT or angle_depth == 0):
        return DEFAULT_START
    if state == IN_DEFAULT and (is_punct(token, ";") or (isinstance(token, Ident) and token.text in MEMBER_KEYWORDS)):
        return BOUNDARY
    return OTHER


class TokenScanner:
    def __init__(self) -> None:
        self.state = IN_SIGNATURE
        # Angle brackets are only counted in signatures, where `<` and `>`
        # cannot be comparison operators.
        self.angle_depth = 0
        self.previous: Token | None = None
        self.declaration: list[Token] = []
        self.binding: list[Token] = []

    def feed(self, token: Token) -> None:
        token_class = classify(token, self.state, self.angle_depth)
        if token_class == OPAQUE_BODY:
            self.declaration.append(terminator())
            self.binding.append(token)
            self.angle_depth = 0
        elif token_class == DEFAULT_START:
            self.state = IN_DEFAULT
            self.binding.append(token)
        elif token_class == BOUNDARY:
            self.state = IN_SIGNATURE
            self.angle_depth = 0
            self.declaration.append(token)
            self.binding.append(token)
        elif self.state == IN_DEFAULT:
            self.binding.append(token)
        else:
            self._track_angles(token)
            self.declaration.append(token)
            self.binding.append(token)
        self.previous = token

    def _track_angles(self, token: Token) -> None:
        if is_punct(token, "<"):
            self.angle_depth += 1
        elif is_punct(token, ">") and not is_arrow_head(self.previous):
            self.angle_depth = max(0, self.angle_depth - 1)


def scan_block(tokens: Sequence[Token]) -> tuple[tuple[Token, ...], tuple[Token, ...]]:
    scanner = TokenScanner()
    for token in tokens:
        scanner.feed(token)
    return tuple(scanner.declaration), tuple(scanner.binding)


def _member_segments(tokens: Sequence[Token]) -> list[list[Token]]:
    segments: list[list[Token]] = []
    current: list[Token] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        # Attributes hold bracket groups only, never a member boundary.
        if is_punct(token, "#") and index + 1 < len(tokens) and is_group(tokens[index + 1], BRACKET):
            current.extend(tokens[index : index + 2])
            index += 2
            continue
        current.append(token)
        if is_punct(token, ";") or is_group(token, BRACE):
            segments.append(current)
            current = []
        index += 1
    if current:
        segments.append(current)
    return segments


def _segment_has_default(segment: Sequence[Token]) -> bool:
    if is_group(segment[-1], BRACE):
        return True
    depth = 0
    previous: Token | None = None
    for token in segment:
        if is_punct(token, "<"):
            depth += 1
        elif is_punct(token, ">") and not is_arrow_head(previous):
            depth = max(0, depth - 1)
        elif is_punct(token, "=") and depth == 0:
            return True
        previous = token
    return False


def check_member_defaults(tokens: Sequence[Token]) -> None:
    """Reject members of a trait body that carry no default.

    Members with a default that the scan misroutes (see the module notes)
    pass this check unchanged.
    """
    for segment in _member_segments(tokens):
        positions = [
            index
            for index, token in enumerate(segment)
            if isinstance(token, Ident) and token.text in MEMBER_KEYWORDS
        ]
        if not positions or _segment_has_default(segment):
            continue
        position = next((index for index in positions if is_ident(segment[index], "fn")), positions[0])
        keyword = segment[position]
        kind = keyword.text if isinstance(keyword, Ident) else "fn"
        name_token = segment[position + 1] if position + 1 < len(segment) else None
        name = name_token.text if isinstance(name_token, Ident) else "<unknown>"
        message = "Expected function body" if kind == "fn" else "Expected default value."
        raise MissingDefaultError(message, segment[0].span, kind, name)


def split_relaxed(header: ImplHeader, item_tokens: Sequence[Token], check_defaults: bool = False) -> SplitResult:
    shell = locate_trait_shell(item_tokens)
    if check_defaults:
        check_member_defaults(shell.block.inner)
    declaration, binding = scan_block(shell.block.inner)
    return SplitResult(
        declaration=build_declaration(shell, declaration),
        binding=build_binding(header, shell, binding),
    )
