from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Sequence

from .errors import BlanketTraitError, TraitParseError
from .splitter import MODES, STRICT, split
from .tokens import BRACE, BRACKET, PAREN, Group, Ident, Token, is_group, is_ident, is_punct, render, tokenize, with_leading

DEFAULT_ATTRIBUTE = "blanket_trait"
CONFIG_KEYS = ("attribute", "check_defaults", "mode")


@dataclass(frozen=True)
class ExpandOptions:
    mode: str = STRICT
    check_defaults: bool = False
    attribute: str = DEFAULT_ATTRIBUTE


def resolve_options(config: dict[str, Any]) -> ExpandOptions:
    unknown = sorted(key for key in config if key not in CONFIG_KEYS)
    if unknown:
        raise BlanketTraitError(f"Unknown config keys: {', '.join(unknown)}. Known keys: {', '.join(CONFIG_KEYS)}")

    mode = config.get("mode", STRICT)
    if not isinstance(mode, str) or mode not in MODES:
        raise BlanketTraitError(f"config.mode must be one of: {', '.join(MODES)}")

    check_defaults = config.get("check_defaults", False)
    if not isinstance(check_defaults, bool):
        raise BlanketTraitError("config.check_defaults must be boolean when specified.")

    attribute = config.get("attribute", DEFAULT_ATTRIBUTE)
    if not isinstance(attribute, str) or not attribute.isidentifier():
        raise BlanketTraitError("config.attribute must be an identifier when specified.")

    return ExpandOptions(mode=mode, check_defaults=check_defaults, attribute=attribute)


def match_attribute(tokens: Sequence[Token], index: int, attribute: str) -> tuple[Token, ...] | None:
    """Return the argument tokens of ``#[attribute(...)]`` starting at ``index``."""
    if not is_punct(tokens[index], "#") or index + 1 >= len(tokens):
        return None
    bracket = tokens[index + 1]
    if not isinstance(bracket, Group) or bracket.delimiter != BRACKET or len(bracket.inner) < 2:
        return None
    path, arguments = bracket.inner[:-1], bracket.inner[-1]
    if not isinstance(arguments, Group) or arguments.delimiter != PAREN:
        return None
    if not is_ident(path[-1], attribute):
        return None
    if not all(isinstance(token, Ident) or is_punct(token, ":") for token in path):
        return None
    return arguments.inner


def _trait_item_end(tokens: Sequence[Token], start: int, attribute_token: Token, attribute: str) -> int:
    seen_trait = False
    for index in range(start, len(tokens)):
        token = tokens[index]
        if is_ident(token, "trait"):
            seen_trait = True
        elif is_group(token, BRACE):
            if seen_trait:
                return index
            break
        elif is_punct(token, ";"):
            break
    raise TraitParseError(f"#[{attribute}] must be applied to a trait item", attribute_token.span)


def _indentation(leading: str) -> str:
    tail = leading.rsplit("\n", 1)[-1]
    return tail if tail.isspace() else ""


def expand_tokens(tokens: Sequence[Token], options: ExpandOptions) -> tuple[tuple[Token, ...], int]:
    out: list[Token] = []
    expanded = 0
    index = 0
    while index < len(tokens):
        token = tokens[index]
        header = match_attribute(tokens, index, options.attribute)
        if header is not None:
            end = _trait_item_end(tokens, index + 2, token, options.attribute)
            result = split(header, tokens[index + 2 : end + 1], mode=options.mode, check_defaults=options.check_defaults)
            emitted = result.tokens(separator="\n\n" + _indentation(token.leading))
            out.append(with_leading(emitted[0], token.leading))
            out.extend(emitted[1:])
            expanded += 1
            index = end + 1
            continue
        if isinstance(token, Group):
            inner, nested = expand_tokens(token.inner, options)
            if nested:
                token = replace(token, inner=inner)
                expanded += nested
        out.append(token)
        index += 1
    return tuple(out), expanded


def expand_text(source: str, options: ExpandOptions | None = None) -> tuple[str, int]:
    stream = tokenize(source)
    tokens, expanded = expand_tokens(stream.tokens, options or ExpandOptions())
    if not expanded:
        return source, 0
    return render(tokens) + stream.trailing, expanded


def expand_source(source: str, options: ExpandOptions | None = None) -> str:
    return expand_text(source, options)[0]
