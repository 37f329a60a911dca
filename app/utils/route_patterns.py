"""Route template compilation and path matching.

Templates look like ``/app/interviews/:id``. Supported segment forms:

- ``literal``   exact text, compared case-insensitively after decoding
- ``:name``     exactly one segment
- ``:name?``    zero or one segment
- ``:name+``    one or more segments (captured as a list)
- ``:name*``    zero or more segments (captured as a list)

Templates are compiled once; matching works on a pre-split, percent-decoded
segment list and never raises for string input.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Mapping, Sequence
from urllib.parse import quote, unquote

from app.core.errors import ValidationAppError

Captures = dict[str, "str | list[str]"]

_PARAM_RE = re.compile(r"^:([A-Za-z_][A-Za-z0-9_]*)([?*+]?)$")
# A '%' not followed by two hex digits
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class SegmentKind(enum.Enum):
    LITERAL = "literal"
    PARAM = "param"
    OPTIONAL = "optional"
    ONE_OR_MORE = "one_or_more"
    ZERO_OR_MORE = "zero_or_more"


# Higher is more specific; END ranks above everything so "/a" beats "/a/:x?"
_RANK = {
    SegmentKind.LITERAL: 4,
    SegmentKind.PARAM: 3,
    SegmentKind.OPTIONAL: 2,
    SegmentKind.ONE_OR_MORE: 1,
    SegmentKind.ZERO_OR_MORE: 0,
}
_END_RANK = 5

_MODIFIERS = {
    "": SegmentKind.PARAM,
    "?": SegmentKind.OPTIONAL,
    "+": SegmentKind.ONE_OR_MORE,
    "*": SegmentKind.ZERO_OR_MORE,
}


@dataclass(frozen=True)
class Segment:
    """One parsed template segment.

    ``value`` is the casefolded literal text, or the parameter name.
    """

    kind: SegmentKind
    value: str

    @property
    def is_literal(self) -> bool:
        return self.kind is SegmentKind.LITERAL

    @property
    def can_be_empty(self) -> bool:
        return self.kind in (SegmentKind.OPTIONAL, SegmentKind.ZERO_OR_MORE)


def decode_segment(raw: str) -> str | None:
    """Percent-decode one path segment, or None if the escape is malformed."""

    if _BAD_ESCAPE_RE.search(raw):
        return None
    try:
        return unquote(raw, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        return None


def split_path(pathname: str | None) -> list[str] | None:
    """Split a request path into decoded segments.

    Query string and fragment are ignored and one trailing slash is
    tolerated. Paths made only of slashes beyond the root keep their empty
    segments, so ``"//"`` is not the root page. Returns None for
    non-absolute paths and malformed escapes.

    Examples:
        >>> split_path("/app/jobs/senior%20dev/")
        ['app', 'jobs', 'senior dev']
        >>> split_path("/")
        []
        >>> split_path("/bad/%E0%A4%A") is None
        True
    """

    if not isinstance(pathname, str) or not pathname.startswith("/"):
        return None

    path = pathname.split("#", 1)[0].split("?", 1)[0]
    if path.endswith("/") and path.strip("/"):
        path = path[:-1]
    if path == "/":
        return []

    decoded: list[str] = []
    for raw in path[1:].split("/"):
        segment = decode_segment(raw)
        if segment is None:
            return None
        decoded.append(segment)
    return decoded


def _parse_segment(raw: str, template: str) -> Segment:
    if raw.startswith(":"):
        found = _PARAM_RE.match(raw)
        if not found:
            raise ValidationAppError(
                code="invalid_route_template",
                message=f"Invalid parameter segment {raw!r} in route template",
                details={"template": template},
            )
        name, modifier = found.groups()
        return Segment(kind=_MODIFIERS[modifier], value=name)

    literal = decode_segment(raw)
    if not literal:
        raise ValidationAppError(
            code="invalid_route_template",
            message=f"Invalid literal segment {raw!r} in route template",
            details={"template": template},
        )
    return Segment(kind=SegmentKind.LITERAL, value=literal.casefold())


@dataclass(frozen=True)
class CompiledPattern:
    """A route template parsed into segment matchers."""

    template: str
    segments: tuple[Segment, ...]
    param_names: tuple[str, ...] = field(default=())

    @property
    def specificity(self) -> tuple[int, ...]:
        """Per-segment ranks used to order overlapping patterns."""
        return tuple(_RANK[s.kind] for s in self.segments) + (_END_RANK,)

    def match(self, pathname: str | None) -> Captures | None:
        """Match a raw request path; return named captures or None."""
        parts = split_path(pathname)
        if parts is None:
            return None
        return self.match_segments(parts)

    def match_segments(self, parts: Sequence[str]) -> Captures | None:
        """Match already split and decoded segments.

        Matching backtracks over repeated segments. Suffix states that failed
        once are remembered, so each ``(segment, part)`` pair is tried at most
        once and the cost stays polynomial in the path length.
        """
        return self._match_from(0, parts, 0, {}, set())

    def _match_from(
        self,
        si: int,
        parts: Sequence[str],
        pi: int,
        captures: Captures,
        failed: set[tuple[int, int]],
    ) -> Captures | None:
        if (si, pi) in failed:
            return None
        found = self._match_step(si, parts, pi, captures, failed)
        if found is None:
            failed.add((si, pi))
        return found

    def _match_step(
        self,
        si: int,
        parts: Sequence[str],
        pi: int,
        captures: Captures,
        failed: set[tuple[int, int]],
    ) -> Captures | None:
        if si == len(self.segments):
            return captures if pi == len(parts) else None

        seg = self.segments[si]
        remaining = len(parts) - pi

        if seg.kind is SegmentKind.LITERAL:
            if remaining and parts[pi].casefold() == seg.value:
                return self._match_from(si + 1, parts, pi + 1, captures, failed)
            return None

        if seg.kind in (SegmentKind.PARAM, SegmentKind.OPTIONAL):
            if remaining and parts[pi]:
                found = self._match_from(
                    si + 1, parts, pi + 1, {**captures, seg.value: parts[pi]}, failed
                )
                if found is not None:
                    return found
            if seg.kind is SegmentKind.OPTIONAL:
                return self._match_from(si + 1, parts, pi, captures, failed)
            return None

        # Repeated segments: greedy, longest run of non-empty segments first
        run = 0
        while run < remaining and parts[pi + run]:
            run += 1
        minimum = 1 if seg.kind is SegmentKind.ONE_OR_MORE else 0
        for count in range(run, minimum - 1, -1):
            if (si + 1, pi + count) in failed:
                continue
            chunk = list(parts[pi:pi + count])
            found = self._match_from(si + 1, parts, pi + count, {**captures, seg.value: chunk}, failed)
            if found is not None:
                return found
        return None


def compile_template(template: str) -> CompiledPattern:
    """Parse a route template once for repeated matching.

    Raises:
        ValidationAppError: If the template is not absolute, has empty
            segments, a malformed parameter, or a duplicated parameter name.
    """

    if not isinstance(template, str) or not template.startswith("/"):
        raise ValidationAppError(
            code="invalid_route_template",
            message="Route templates must start with '/'",
            details={"template": str(template)},
        )

    body = template[1:]
    if body.endswith("/"):
        body = body[:-1]
    raw_segments = body.split("/") if body else []

    segments = tuple(_parse_segment(raw, template) for raw in raw_segments)

    names = [s.value for s in segments if not s.is_literal]
    if len(names) != len(set(names)):
        raise ValidationAppError(
            code="invalid_route_template",
            message="Duplicate parameter name in route template",
            details={"template": template},
        )

    return CompiledPattern(template=template, segments=segments, param_names=tuple(names))


def expand_template(template: str, params: Mapping[str, "str | list[str]"]) -> str:
    """Substitute captured parameters into a template.

    Unknown parameters are left as-is; optional/repeated parameters that
    captured nothing are dropped.

    Examples:
        >>> expand_template("/app/interviews/:id", {"id": "42"})
        '/app/interviews/42'
    """

    out: list[str] = []
    for raw in template.strip("/").split("/"):
        found = _PARAM_RE.match(raw)
        if not found or found.group(1) not in params:
            if raw:
                out.append(raw)
            continue
        value = params[found.group(1)]
        values = value if isinstance(value, list) else [value]
        out.extend(quote(v, safe="") for v in values if v)
    return "/" + "/".join(out)


def _expand_repeats(segments: Sequence[Segment]) -> list[Segment]:
    # ":x+" behaves as ":x" followed by ":x*"
    expanded: list[Segment] = []
    for seg in segments:
        if seg.kind is SegmentKind.ONE_OR_MORE:
            expanded.append(Segment(SegmentKind.PARAM, seg.value))
            expanded.append(Segment(SegmentKind.ZERO_OR_MORE, seg.value))
        else:
            expanded.append(seg)
    return expanded


def _segments_compatible(a: Segment, b: Segment) -> bool:
    if a.is_literal and b.is_literal:
        return a.value == b.value
    return True


def patterns_overlap(first: CompiledPattern, second: CompiledPattern) -> bool:
    """Whether at least one path is matched by both patterns.

    Walks the product of both segment sequences: each step either skips a
    segment that may be empty or consumes one path segment on both sides.
    """

    a = _expand_repeats(first.segments)
    b = _expand_repeats(second.segments)

    seen: set[tuple[int, int]] = set()
    stack = [(0, 0)]
    while stack:
        i, j = stack.pop()
        if (i, j) in seen:
            continue
        seen.add((i, j))

        if i == len(a) and j == len(b):
            return True

        if i < len(a) and a[i].can_be_empty:
            stack.append((i + 1, j))
        if j < len(b) and b[j].can_be_empty:
            stack.append((i, j + 1))

        if i < len(a) and j < len(b) and _segments_compatible(a[i], b[j]):
            next_i = i if a[i].kind is SegmentKind.ZERO_OR_MORE else i + 1
            next_j = j if b[j].kind is SegmentKind.ZERO_OR_MORE else j + 1
            stack.append((next_i, next_j))

    return False
