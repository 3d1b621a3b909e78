from __future__ import annotations

from typing import Sequence

from .emitter import SplitResult
from .errors import BlanketTraitError
from .header import parse_impl_header
from .scan import split_relaxed
from .structured import split_structured
from .tokens import Token, tokenize

STRICT = "strict"
RELAXED = "relaxed"
MODES = (STRICT, RELAXED)


def split(
    header_tokens: Sequence[Token],
    item_tokens: Sequence[Token],
    mode: str = STRICT,
    check_defaults: bool = False,
) -> SplitResult:
    """Split a trait with defaults into the bare trait and its blanket impl.

    ``strict`` parses every member and fails on the first one without a
    default. ``relaxed`` routes tokens in a single scan and copies members
    without a default to both sides unless ``check_defaults`` is set.
    The header is parsed first in both modes, so a malformed header is
    reported before any member is looked at.
    """
    if mode not in MODES:
        raise BlanketTraitError(f"Unknown split mode '{mode}'. Known modes: {', '.join(MODES)}")
    header = parse_impl_header(header_tokens)
    if mode == STRICT:
        return split_structured(header, item_tokens)
    return split_relaxed(header, item_tokens, check_defaults=check_defaults)


def split_text(
    header_source: str,
    item_source: str,
    mode: str = STRICT,
    check_defaults: bool = False,
) -> SplitResult:
    return split(
        tokenize(header_source).tokens,
        tokenize(item_source).tokens,
        mode=mode,
        check_defaults=check_defaults,
    )
