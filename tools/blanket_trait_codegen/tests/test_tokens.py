from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[3]
SRC_ROOT = REPO_ROOT / "tools" / "blanket_trait_codegen" / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from blanket_trait_codegen.errors import LexError, Span
from blanket_trait_codegen.tokens import (
    BRACE,
    PAREN,
    Group,
    Ident,
    Literal,
    Punct,
    render,
    render_compact,
    tokenize,
)

SAMPLE = """// leading comment
pub trait Sample<'a>: Clone {
    /// Documented.
    const NAME: &'static str = r#"raw "quoted""#;
    fn first(&self) -> char { 'x' } /* block /* nested */ comment */
    fn bytes(&self) -> &[u8] { b"\\x00\\"" }
    fn float(&self) -> f64 { 1.5e-3_f64 + 0x1F as f64 }
}
"""


class TokenizeTests(unittest.TestCase):
    def test_render_reproduces_source_exactly(self) -> None:
        stream = tokenize(SAMPLE)
        self.assertEqual(stream.render(), SAMPLE)
        self.assertEqual(stream.trailing, "\n")

    def test_path_separator_is_two_punct_tokens(self) -> None:
        tokens = tokenize("T::AA").tokens
        self.assertEqual(
            list(tokens),
            [Ident("T"), Punct(":", joint=True), Punct(":"), Ident("AA")],
        )

    def test_arrow_first_char_is_joint(self) -> None:
        tokens = tokenize("-> i32").tokens
        self.assertEqual(tokens[0], Punct("-", joint=True))
        self.assertEqual(tokens[1], Punct(">"))

    def test_lifetime_versus_char_literal(self) -> None:
        lifetime = tokenize("&'a T").tokens
        self.assertEqual(lifetime[1], Punct("'", joint=True))
        self.assertEqual(lifetime[2], Ident("a"))
        char = tokenize("'a'").tokens
        self.assertEqual(list(char), [Literal("'a'")])
        escaped = tokenize("'\\''").tokens
        self.assertEqual(list(escaped), [Literal("'\\''")])

    def test_groups_are_nested_and_keep_trivia(self) -> None:
        tokens = tokenize("f(a, { b })").tokens
        self.assertEqual(len(tokens), 2)
        call = tokens[1]
        self.assertIsInstance(call, Group)
        self.assertEqual(call.delimiter, PAREN)
        body = call.inner[-1]
        self.assertIsInstance(body, Group)
        self.assertEqual(body.delimiter, BRACE)
        self.assertEqual(body.leading, " ")
        self.assertEqual(body.close_leading, " ")
        self.assertEqual(render(tokens), "f(a, { b })")

    def test_spans_are_one_based_lines_and_columns(self) -> None:
        tokens = tokenize("fn\n  name").tokens
        self.assertEqual(tokens[0].span, Span(1, 1))
        self.assertEqual(tokens[1].span, Span(2, 3))

    def test_raw_identifier_and_raw_string(self) -> None:
        tokens = tokenize('r#type r"x"').tokens
        self.assertEqual(list(tokens), [Ident("r#type"), Literal('r"x"', leading=" ")])

    def test_render_compact_collapses_trivia(self) -> None:
        tokens = tokenize("T:\n    Send   + Sync").tokens
        self.assertEqual(render_compact(tokens), "T: Send + Sync")


class LexErrorTests(unittest.TestCase):
    def test_unclosed_delimiter(self) -> None:
        with self.assertRaises(LexError) as ctx:
            tokenize("fn f() {")
        self.assertIn("unclosed delimiter '{'", str(ctx.exception))
        self.assertEqual(ctx.exception.span, Span(1, 8))

    def test_mismatched_delimiter(self) -> None:
        with self.assertRaises(LexError) as ctx:
            tokenize("(]")
        self.assertIn("unexpected closing delimiter ']'", str(ctx.exception))

    def test_unterminated_string(self) -> None:
        with self.assertRaises(LexError) as ctx:
            tokenize('"abc')
        self.assertIn("unterminated string literal", str(ctx.exception))

    def test_unterminated_block_comment(self) -> None:
        with self.assertRaises(LexError) as ctx:
            tokenize("/* open /* nested */")
        self.assertIn("unterminated block comment", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
