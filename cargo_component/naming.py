"""Case conversions for identifiers used in generated Rust source."""

from __future__ import annotations

_RUST_KEYWORDS = frozenset(
    {
        "as", "break", "const", "continue", "crate", "else", "enum", "extern",
        "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
        "move", "mut", "pub", "ref", "return", "self", "static", "struct",
        "super", "trait", "true", "type", "unsafe", "use", "where", "while",
        "async", "await", "dyn", "abstract", "become", "box", "do", "final",
        "macro", "override", "priv", "typeof", "unsized", "virtual", "yield",
        "try",
    }
)


def _split_chunk(chunk: str) -> list[str]:
    """Split one alphanumeric run at case boundaries."""
    words: list[str] = []
    start = 0
    mode: str | None = None
    last = len(chunk) - 1
    for position, char in enumerate(chunk):
        if position == last:
            words.append(chunk[start:])
            break
        following = chunk[position + 1]
        if char.islower():
            next_mode = "lower"
        elif char.isupper():
            next_mode = "upper"
        else:
            next_mode = mode
        if next_mode == "lower" and following.isupper():
            words.append(chunk[start : position + 1])
            start = position + 1
            mode = None
        elif mode == "upper" and char.isupper() and following.islower():
            words.append(chunk[start:position])
            start = position
            mode = None
        else:
            mode = next_mode
    return words


def _words(text: str) -> list[str]:
    cleaned = "".join(char if char.isalnum() else " " for char in text)
    return [word for chunk in cleaned.split() for word in _split_chunk(chunk)]


def to_snake_case(text: str) -> str:
    """Convert ``text`` to ``snake_case``."""
    return "_".join(word.lower() for word in _words(text))


def to_upper_camel_case(text: str) -> str:
    """Convert ``text`` to ``UpperCamelCase``."""
    return "".join(word[:1].upper() + word[1:].lower() for word in _words(text))


def to_rust_ident(name: str) -> str:
    """Convert a WIT name to a Rust identifier, escaping Rust keywords."""
    if name in _RUST_KEYWORDS:
        return f"{name}_"
    return to_snake_case(name)