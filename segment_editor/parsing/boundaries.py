"""
Segment boundary calculator.

Splits a document into contiguous, non-overlapping character ranges:

* ``<Name> (Definition)``: everything before the first member,
* ``<Name>::<member>``: one range per member,
* ``<Name> (Closing)``: everything after the last member.

A member's range starts at its *effective start* (its syntactic start
extended backwards over a tightly attached doc-comment block, then over
the line's indentation) and runs up to the next member's start.  Stray
text between two members, such as a class field, is the earlier
member's *trailer*: it is kept apart from the member text so replacing
the member never discards it.  The
last member ends at its *effective end* (syntactic end plus a trailing
``,`` for object literals and comments on the same or the next line).

The same effective ranges, without the in-between text, are used to
extract members from pasted code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .js_ast import Comment, MemberNode, SourceText, has_blank_line, strip_comments
from .structure_parser import ParsedStructure, SourceStructure, parse_structure

logger = logging.getLogger(__name__)


class SegmentKind(str, Enum):
    DEFINITION = "definition"
    MEMBER = "member"
    CLOSING = "closing"


@dataclass(frozen=True)
class Boundary:
    key: str
    start: int
    end: int
    kind: SegmentKind
    content_end: Optional[int] = None  # member's effective end; the rest is trailer

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class MemberRange:
    """A member's own effective range, comments included."""
    key: str
    start: int
    end: int


@dataclass
class SegmentedSource:
    structure: SourceStructure
    boundaries: list[Boundary]
    texts: list[str]
    source: str
    trailers: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compute_boundaries(parsed: ParsedStructure) -> list[Boundary]:
    """Partition ``parsed.text`` into definition / member / closing ranges."""
    text = parsed.text
    structure = parsed.structure
    node = parsed.node
    ranges = effective_ranges(parsed)

    boundaries: list[Boundary] = []
    if ranges:
        definition_end = ranges[0].start
    else:
        definition_end = node.end
    boundaries.append(Boundary(structure.definition_key, 0, definition_end,
                               SegmentKind.DEFINITION))

    last_end = definition_end
    for index, member_range in enumerate(ranges):
        start = max(member_range.start, last_end)
        if index + 1 < len(ranges):
            end = max(ranges[index + 1].start, start)
        else:
            end = max(min(member_range.end, node.end), start)
        content_end = min(max(member_range.end, start), end)
        boundaries.append(Boundary(member_range.key, start, end, SegmentKind.MEMBER,
                                   content_end))
        last_end = end

    if last_end < len(text):
        boundaries.append(Boundary(structure.closing_key, last_end, len(text),
                                   SegmentKind.CLOSING))
    return boundaries


def effective_ranges(parsed: ParsedStructure) -> list[MemberRange]:
    """Effective [start, end) of every member, in source order."""
    source = parsed.source
    node = parsed.node
    members = parsed.members
    comments = [c for c in parsed.comments
                if c.start >= node.body_start and c.end <= node.body_end]

    ranges: list[MemberRange] = []
    floor = node.body_start
    for index, member in enumerate(members):
        next_start = members[index + 1].start if index + 1 < len(members) else None
        start = effective_start(member, floor, comments, source)
        end = min(effective_end(member, next_start, comments, source), node.end)
        ranges.append(MemberRange(parsed.structure.member_key(member.name), start, end))
        floor = end
    return ranges


def segment_source(text: str) -> SegmentedSource:
    """Parse *text* and slice it into segment texts."""
    parsed = parse_structure(text)
    boundaries = compute_boundaries(parsed)
    texts = [segment_text(text, b) for b in boundaries]
    trailers = [segment_trailer(text, b) for b in boundaries]
    logger.info(
        "[Boundaries] %s '%s' split into %d segment(s)",
        parsed.structure.kind.value, parsed.structure.name, len(boundaries),
    )
    return SegmentedSource(parsed.structure, boundaries, texts, text, trailers)


def segment_text(text: str, boundary: Boundary) -> str:
    """Editable text for *boundary*.

    Member texts stop at the member's effective end and drop trailing
    whitespace: the line breaks between two members are separators that
    reassembly regenerates.
    """
    if boundary.kind is SegmentKind.MEMBER:
        end = boundary.content_end if boundary.content_end is not None else boundary.end
        return text[boundary.start:end].rstrip()
    return text[boundary.start:boundary.end]


def segment_trailer(text: str, boundary: Boundary) -> str:
    """Non-member text between a member's effective end and the next member."""
    if boundary.kind is not SegmentKind.MEMBER or boundary.content_end is None:
        return ""
    trailer = text[boundary.content_end:boundary.end]
    if not trailer.strip():
        return ""
    return trailer.rstrip()


def extract_members(parsed: ParsedStructure) -> list[tuple[str, str]]:
    """``(key, code)`` for every member, sliced from its effective range."""
    text = parsed.text
    return [(r.key, text[r.start:r.end]) for r in effective_ranges(parsed)]


# ---------------------------------------------------------------------------
# Effective range heuristics
# ---------------------------------------------------------------------------

def effective_start(
    member: MemberNode,
    floor: int,
    comments: list[Comment],
    source: SourceText,
) -> int:
    """Walk backwards from *member* absorbing its leading comment block.

    A comment is absorbed when only whitespace, with no blank line,
    separates it from the current start, and it either starts on a line
    of its own or is preceded by nothing but whitespace and comments
    since *floor*.  The first comment failing the test stops the walk.
    """
    text = source.text
    start = member.start
    candidates = [c for c in comments if c.start >= floor and c.end <= member.start]

    for comment in reversed(candidates):
        gap = text[comment.end:start]
        if gap.strip() or has_blank_line(gap):
            break
        before = text[floor:comment.start]
        if strip_comments(before, floor, comments).strip() and \
                not _starts_own_line(text, comment.start):
            break
        start = comment.start

    return _snap_to_line_start(text, start, floor)


def effective_end(
    member: MemberNode,
    next_member_start: Optional[int],
    comments: list[Comment],
    source: SourceText,
) -> int:
    """Walk forwards from *member* absorbing trailing comments.

    A comment is absorbed when only whitespace separates it from the
    current end and it starts on the same line, or on the very next
    line.  A next-line comment that leads straight into the following
    member is left for that member as its doc comment.
    """
    text = source.text
    end = member.syntax_end

    for comment in comments:
        if comment.start < end:
            continue
        if next_member_start is not None and comment.start >= next_member_start:
            break
        if text[end:comment.start].strip():
            break

        end_line = source.line_of(max(end - 1, 0))
        comment_line = source.line_of(comment.start)
        if comment_line == end_line:
            end = comment.end
            continue
        if comment_line == end_line + 1:
            if next_member_start is not None and \
                    _leads_into(text, comment.end, next_member_start, comments):
                break
            end = comment.end
            continue
        break

    return end


def _starts_own_line(text: str, pos: int) -> bool:
    i = pos
    while i > 0 and text[i - 1] in " \t":
        i -= 1
    return i == 0 or text[i - 1] in "\r\n"


def _snap_to_line_start(text: str, pos: int, floor: int) -> int:
    i = pos
    while i > floor and text[i - 1] in " \t":
        i -= 1
    if i == 0 or text[i - 1] in "\r\n":
        return i
    return pos


def _leads_into(text: str, offset: int, target: int, comments: list[Comment]) -> bool:
    gap = text[offset:target]
    rest = strip_comments(gap, offset, comments)
    return not rest.strip() and not has_blank_line(gap)
