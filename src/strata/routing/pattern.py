"""Route pattern compiler.

A pattern is literal text mixed with two constructs:

- placeholders ``{name}`` (one or more non-slash characters) or
  ``{name:regex}`` (custom expression, nested braces allowed)
- optional trailing regions ``[...]``, which may nest

Compiling ``"/users[/{id}[/{tab}]]"`` produces one variant per optional
depth, most specific first::

    "/users/{id}/{tab}"
    "/users/{id}"
    "/users"

Matching tries the variants in that order and returns the placeholder
values of the first one that matches the whole path. Placeholders that
sit in an omitted region are absent from the result.
"""

import re
from dataclasses import dataclass

from strata.errors import PatternCompileError

DEFAULT_PLACEHOLDER_REGEX = "[^/]+"

_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_-]*")


@dataclass(frozen=True, slots=True)
class Placeholder:
    """A named capturing segment of a pattern."""

    name: str
    regex: str = DEFAULT_PLACEHOLDER_REGEX


# A pattern segment is either literal text or a placeholder
type Part = str | Placeholder


@dataclass(frozen=True, slots=True)
class PatternVariant:
    """One matchable rendition of a pattern (a fixed set of optionals)."""

    parts: tuple[Part, ...]
    regex: re.Pattern[str]

    @property
    def placeholder_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parts if isinstance(p, Placeholder))

    def match(self, path: str) -> dict[str, str] | None:
        found = self.regex.fullmatch(path)
        if found is None:
            return None
        return dict(zip(self.placeholder_names, found.groups(), strict=True))


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """A compiled route pattern. Variants are ordered most specific first."""

    pattern: str
    variants: tuple[PatternVariant, ...]

    def match(self, path: str) -> dict[str, str] | None:
        """Return extracted placeholder values, or ``None`` if no variant matches."""
        for variant in self.variants:
            params = variant.match(path)
            if params is not None:
                return params
        return None


def compile_pattern(pattern: str) -> CompiledPattern:
    """Compile *pattern* into a ``CompiledPattern``.

    Raises ``PatternCompileError`` for unbalanced brackets or braces,
    optional regions that are not at the end, empty optional regions,
    duplicate placeholder names, and invalid or capturing custom regexes.
    """
    segments = _split_optionals(pattern)

    seen: set[str] = set()
    parsed: list[tuple[Part, ...]] = []
    for segment in segments:
        parts = _parse_segment(pattern, segment)
        for part in parts:
            if isinstance(part, Placeholder):
                if part.name in seen:
                    msg = f"placeholder {{{part.name}}} is used more than once"
                    raise PatternCompileError(pattern, msg)
                seen.add(part.name)
        parsed.append(parts)

    variants: list[PatternVariant] = []
    accumulated: tuple[Part, ...] = ()
    for parts in parsed:
        accumulated = (*accumulated, *parts)
        variants.append(PatternVariant(parts=accumulated, regex=_build_regex(accumulated)))

    variants.reverse()
    return CompiledPattern(pattern=pattern, variants=tuple(variants))


def _split_optionals(pattern: str) -> list[str]:
    """Split *pattern* on ``[`` into the mandatory head and optional tails.

    Brackets inside placeholders (``{id:[0-9]+}``) are regex syntax and
    are skipped.
    """
    body = pattern.rstrip("]")
    closing = len(pattern) - len(body)

    segments: list[str] = []
    current: list[str] = []
    depth = 0
    for char in body:
        if char == "{":
            depth += 1
        elif char == "}":
            if depth == 0:
                raise PatternCompileError(pattern, "'}' without a matching '{'")
            depth -= 1
        elif depth == 0 and char == "[":
            segments.append("".join(current))
            current = []
            continue
        elif depth == 0 and char == "]":
            raise PatternCompileError(pattern, "optional segments can only occur at the end")
        current.append(char)

    if depth:
        raise PatternCompileError(pattern, "'{' without a matching '}'")
    segments.append("".join(current))

    if closing != len(segments) - 1:
        raise PatternCompileError(pattern, "number of opening '[' and closing ']' does not match")
    if any(not segment for segment in segments[1:]):
        raise PatternCompileError(pattern, "empty optional part")
    return segments


def _parse_segment(pattern: str, segment: str) -> tuple[Part, ...]:
    """Parse one bracket-free segment into literal text and placeholders."""
    parts: list[Part] = []
    literal: list[str] = []
    i = 0
    while i < len(segment):
        char = segment[i]
        if char != "{":
            literal.append(char)
            i += 1
            continue

        end = _closing_brace(segment, i)
        if literal:
            parts.append("".join(literal))
            literal = []
        parts.append(_parse_placeholder(pattern, segment[i + 1 : end]))
        i = end + 1

    if literal:
        parts.append("".join(literal))
    return tuple(parts)


def _closing_brace(segment: str, start: int) -> int:
    depth = 0
    for i in range(start, len(segment)):
        if segment[i] == "{":
            depth += 1
        elif segment[i] == "}":
            depth -= 1
            if depth == 0:
                return i
    # _split_optionals has already checked brace balance
    raise AssertionError(segment)


def _parse_placeholder(pattern: str, inner: str) -> Placeholder:
    name, sep, regex = inner.partition(":")
    name = name.strip()
    regex = regex.strip()
    if not _NAME_RE.fullmatch(name):
        raise PatternCompileError(pattern, f"invalid placeholder name {name!r}")
    if not sep:
        return Placeholder(name)
    if not regex:
        raise PatternCompileError(pattern, f"placeholder {{{name}}} has an empty regex")

    try:
        compiled = re.compile(regex)
    except re.error as exc:
        raise PatternCompileError(pattern, f"invalid regex for {{{name}}}: {exc}") from exc
    if compiled.groups:
        msg = f"regex for {{{name}}} contains a capturing group; use (?:...) instead"
        raise PatternCompileError(pattern, msg)
    return Placeholder(name, regex)


def _build_regex(parts: tuple[Part, ...]) -> re.Pattern[str]:
    source = "".join(
        f"({part.regex})" if isinstance(part, Placeholder) else re.escape(part) for part in parts
    )
    return re.compile(source)
