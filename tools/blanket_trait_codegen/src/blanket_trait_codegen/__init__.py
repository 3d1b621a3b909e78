from .emitter import SplitResult, emit
from .errors import BlanketTraitError, HeaderParseError, LexError, MissingDefaultError, Span, TraitParseError
from .expand import ExpandOptions, expand_source, expand_text, resolve_options
from .header import Generics, ImplHeader, parse_impl_header, parse_impl_header_text
from .splitter import MODES, RELAXED, STRICT, split, split_text
from .tokens import TokenStream, render, tokenize

__all__ = [
    "BlanketTraitError",
    "ExpandOptions",
    "Generics",
    "HeaderParseError",
    "ImplHeader",
    "LexError",
    "MODES",
    "MissingDefaultError",
    "RELAXED",
    "STRICT",
    "Span",
    "SplitResult",
    "TokenStream",
    "TraitParseError",
    "emit",
    "expand_source",
    "expand_text",
    "parse_impl_header",
    "parse_impl_header_text",
    "render",
    "resolve_options",
    "split",
    "split_text",
    "tokenize",
]
