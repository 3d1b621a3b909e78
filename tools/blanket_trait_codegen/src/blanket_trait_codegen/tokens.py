"""Token trees for Rust source text.

The lexer follows the compiler's token model: one character per punctuation
token (with a ``joint`` flag when the next character is also punctuation),
delimited groups as single opaque tokens, and literals kept as raw text.

Every token remembers the whitespace and comments in front of it, so
``render(tokenize(text).tokens) + trailing`` reproduces ``text`` exactly and
a relocated subtree keeps its original bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Union

from .errors import LexError, Span

BRACE = "brace"
PAREN = "paren"
BRACKET = "bracket"
NONE = "none"

OPEN_DELIMITERS = {"{": BRACE, "(": PAREN, "[": BRACKET}
CLOSE_DELIMITERS = {"}": BRACE, ")": PAREN, "]": BRACKET}
DELIMITER_CHARS = {
    BRACE: ("{", "}"),
    PAREN: ("(", ")"),
    BRACKET: ("[", "]"),
    NONE: ("", ""),
}

PUNCT_CHARS = frozenset("=<>!~+-*/%^&|@.,;:#$?'")

KEYWORDS = frozenset(
    {
        "as", "async", "await", "break", "const", "continue", "crate", "dyn", "else", "enum",
        "extern", "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
        "move", "mut", "pub", "ref", "return", "self", "Self", "static", "struct", "super",
        "trait", "true", "type", "unsafe", "use", "where", "while",
    }
)


@dataclass(frozen=True)
class Ident:
    text: str
    span: Span | None = field(default=None, compare=False)
    leading: str = ""


@dataclass(frozen=True)
class Punct:
    char: str
    joint: bool = False
    span: Span | None = field(default=None, compare=False)
    leading: str = ""


@dataclass(frozen=True)
class Literal:
    text: str
    span: Span | None = field(default=None, compare=False)
    leading: str = ""


@dataclass(frozen=True)
class Group:
    delimiter: str
    inner: tuple["Token", ...]
    span: Span | None = field(default=None, compare=False)
    leading: str = ""
    close_leading: str = ""


Token = Union[Group, Ident, Punct, Literal]


@dataclass(frozen=True)
class TokenStream:
    tokens: tuple[Token, ...]
    trailing: str = ""

    def render(self) -> str:
        return render(self.tokens) + self.trailing


def is_ident(token: Token | None, text: str | None = None) -> bool:
    return isinstance(token, Ident) and (text is None or token.text == text)


def is_punct(token: Token | None, char: str | None = None) -> bool:
    return isinstance(token, Punct) and (char is None or token.char == char)


def is_group(token: Token | None, delimiter: str | None = None) -> bool:
    return isinstance(token, Group) and (delimiter is None or token.delimiter == delimiter)


def is_keyword(token: Token | None) -> bool:
    return isinstance(token, Ident) and token.text in KEYWORDS


def with_leading(token: Token, leading: str) -> Token:
    return replace(token, leading=leading)


def render(tokens: Iterable[Token]) -> str:
    parts: list[str] = []
    for token in tokens:
        _render_into(token, parts)
    return "".join(parts)


def _render_into(token: Token, parts: list[str]) -> None:
    parts.append(token.leading)
    if isinstance(token, Group):
        open_char, close_char = DELIMITER_CHARS[token.delimiter]
        parts.append(open_char)
        for child in token.inner:
            _render_into(child, parts)
        parts.append(token.close_leading)
        parts.append(close_char)
    elif isinstance(token, Punct):
        parts.append(token.char)
    else:
        parts.append(token.text)


def render_compact(tokens: Iterable[Token]) -> str:
    """Render tokens and collapse all trivia runs to single spaces."""
    return " ".join(render(tokens).split())


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_ident_continue(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


class _Lexer:
    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def span(self) -> Span:
        return Span(self.line, self.column)

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.source):
            return self.source[index]
        return ""

    def take(self, count: int) -> str:
        text = self.source[self.pos : self.pos + count]
        for ch in text:
            if ch == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += count
        return text

    def skip_trivia(self) -> str:
        start = self.pos
        while self.pos < len(self.source):
            ch = self.peek()
            if ch.isspace():
                self.take(1)
            elif ch == "/" and self.peek(1) == "/":
                end = self.source.find("\n", self.pos)
                self.take((len(self.source) if end < 0 else end) - self.pos)
            elif ch == "/" and self.peek(1) == "*":
                self.skip_block_comment()
            else:
                break
        return self.source[start : self.pos]

    def skip_block_comment(self) -> None:
        span = self.span()
        self.take(2)
        depth = 1
        while depth:
            if self.pos >= len(self.source):
                raise LexError("unterminated block comment", span)
            if self.peek() == "/" and self.peek(1) == "*":
                depth += 1
                self.take(2)
            elif self.peek() == "*" and self.peek(1) == "/":
                depth -= 1
                self.take(2)
            else:
                self.take(1)

    def run(self) -> TokenStream:
        # Each frame: (delimiter, tokens, open span, open leading)
        stack: list[tuple[str, list[Token], Span | None, str]] = [(NONE, [], None, "")]
        while True:
            leading = self.skip_trivia()
            if self.pos >= len(self.source):
                if len(stack) > 1:
                    delimiter, _, span, _ = stack[-1]
                    raise LexError(f"unclosed delimiter '{DELIMITER_CHARS[delimiter][0]}'", span)
                return TokenStream(tokens=tuple(stack[0][1]), trailing=leading)

            ch = self.peek()
            span = self.span()
            if ch in OPEN_DELIMITERS:
                self.take(1)
                stack.append((OPEN_DELIMITERS[ch], [], span, leading))
                continue
            if ch in CLOSE_DELIMITERS:
                delimiter, inner, open_span, open_leading = stack[-1]
                if len(stack) == 1 or CLOSE_DELIMITERS[ch] != delimiter:
                    raise LexError(f"unexpected closing delimiter '{ch}'", span)
                self.take(1)
                stack.pop()
                stack[-1][1].append(
                    Group(
                        delimiter=delimiter,
                        inner=tuple(inner),
                        span=open_span,
                        leading=open_leading,
                        close_leading=leading,
                    )
                )
                continue
            stack[-1][1].extend(self.lex_token(leading, span))

    def lex_token(self, leading: str, span: Span) -> list[Token]:
        ch = self.peek()
        if _is_ident_start(ch):
            literal = self.try_prefixed_literal()
            if literal is not None:
                return [Literal(literal, span, leading)]
            if ch == "r" and self.peek(1) == "#" and _is_ident_start(self.peek(2)):
                self.take(2)
                return [Ident("r#" + self.read_ident(), span, leading)]
            return [Ident(self.read_ident(), span, leading)]
        if ch.isdigit():
            return [Literal(self.read_number(), span, leading)]
        if ch == '"':
            return [Literal(self.read_quoted('"', span), span, leading)]
        if ch == "'":
            return self.read_quote_or_lifetime(leading, span)
        if ch in PUNCT_CHARS:
            self.take(1)
            return [Punct(ch, joint=self.peek() in PUNCT_CHARS, span=span, leading=leading)]
        raise LexError(f"unexpected character {ch!r}", span)

    def read_ident(self) -> str:
        start = self.pos
        while self.pos < len(self.source) and _is_ident_continue(self.peek()):
            self.take(1)
        return self.source[start : self.pos]

    def try_prefixed_literal(self) -> str | None:
        span = self.span()
        for prefix in ("br", "cr", "r"):
            if self.source.startswith(prefix, self.pos):
                after = self.pos + len(prefix)
                hashes = 0
                while after + hashes < len(self.source) and self.source[after + hashes] == "#":
                    hashes += 1
                if after + hashes < len(self.source) and self.source[after + hashes] == '"':
                    return self.read_raw_string(len(prefix), hashes, span)
        for prefix in ("b", "c"):
            if self.source.startswith(prefix + '"', self.pos):
                self.take(1)
                return prefix + self.read_quoted('"', span)
        if self.source.startswith("b'", self.pos):
            self.take(1)
            return "b" + self.read_quoted("'", span)
        return None

    def read_raw_string(self, prefix_len: int, hashes: int, span: Span) -> str:
        start = self.pos
        self.take(prefix_len + hashes + 1)
        terminator = '"' + "#" * hashes
        end = self.source.find(terminator, self.pos)
        if end < 0:
            raise LexError("unterminated raw string literal", span)
        self.take(end + len(terminator) - self.pos)
        return self.source[start : self.pos]

    def read_quoted(self, quote: str, span: Span) -> str:
        start = self.pos
        self.take(1)
        while True:
            ch = self.peek()
            if ch == "":
                kind = "string" if quote == '"' else "character"
                raise LexError(f"unterminated {kind} literal", span)
            if ch == "\\":
                self.take(2)
                continue
            self.take(1)
            if ch == quote:
                break
        self.read_ident()  # literal suffix
        return self.source[start : self.pos]

    def read_quote_or_lifetime(self, leading: str, span: Span) -> list[Token]:
        next_ch = self.peek(1)
        is_char = next_ch == "\\" or (next_ch != "" and self.peek(2) == "'")
        if is_char:
            return [Literal(self.read_quoted("'", span), span, leading)]
        if not _is_ident_start(next_ch):
            raise LexError("unexpected quote", span)
        self.take(1)
        ident_span = self.span()
        name = self.read_ident()
        return [Punct("'", joint=True, span=span, leading=leading), Ident(name, ident_span)]

    def read_number(self) -> str:
        start = self.pos
        if self.peek() == "0" and self.peek(1) in ("x", "o", "b"):
            self.take(2)
            while _is_ident_continue(self.peek()):
                self.take(1)
            return self.source[start : self.pos]
        self.read_digits()
        if self.peek() == "." and self.peek(1).isdigit():
            self.take(1)
            self.read_digits()
        if self.peek() in ("e", "E") and (
            self.peek(1).isdigit() or (self.peek(1) in ("+", "-") and self.peek(2).isdigit())
        ):
            self.take(2)
            self.read_digits()
        self.read_ident()  # type suffix
        return self.source[start : self.pos]

    def read_digits(self) -> None:
        while self.peek().isdigit() or self.peek() == "_":
            self.take(1)


def tokenize(source: str) -> TokenStream:
    return _Lexer(source).run()
