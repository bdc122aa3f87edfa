"""
Document model: the ordered set of named segments for one source file.

The document is the sole owner of segment text.  Anything rendering a
segment holds its key and asks the document for the current text.
``reassemble()`` is the only way to turn the segments back into a
complete source string.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional

from ..errors import DuplicateSegment, SegmentEditorError, UnknownSegment
from ..parsing.boundaries import SegmentedSource, SegmentKind, segment_source
from ..parsing.structure_parser import SourceStructure

logger = logging.getLogger(__name__)

_ENDS_WITH_BRACE = re.compile(r"\{\s*$")
_LEADING_LINE_BREAK = re.compile(r"^[ \t]*\r?\n")
_CONTINUATION = (";", ",", ")")


@dataclass
class Segment:
    key: str
    text: str
    order: int
    kind: SegmentKind = SegmentKind.MEMBER
    trailer: str = ""  # non-member code after the member; never replaced

    @property
    def rendered(self) -> str:
        return self.text + self.trailer

    @property
    def member_name(self) -> Optional[str]:
        if self.kind is not SegmentKind.MEMBER or "::" not in self.key:
            return None
        return self.key.split("::", 1)[1]


class Document:
    """Ordered, key-addressed segments of one structure."""

    def __init__(self, structure: SourceStructure, segments: list[Segment] | None = None):
        self.structure = structure
        self._segments: dict[str, Segment] = {}
        self._order: list[str] = []
        for segment in segments or []:
            if segment.key in self._segments:
                raise DuplicateSegment(segment.key)
            self._segments[segment.key] = segment
            self._order.append(segment.key)
        self._renumber()

    @classmethod
    def from_segmented(cls, segmented: SegmentedSource) -> "Document":
        segments = [
            Segment(key=b.key, text=text, order=i, kind=b.kind, trailer=trailer)
            for i, (b, text, trailer) in enumerate(zip(
                segmented.boundaries, segmented.texts,
                segmented.trailers or [""] * len(segmented.texts),
            ))
        ]
        return cls(segmented.structure, segments)

    @classmethod
    def from_source(cls, text: str) -> "Document":
        return cls.from_segmented(segment_source(text))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, key: object) -> bool:
        return key in self._segments

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments())

    def get_segment(self, key: str) -> Optional[Segment]:
        return self._segments.get(key)

    def keys(self) -> list[str]:
        return list(self._order)

    def segments(self) -> list[Segment]:
        return [self._segments[key] for key in self._order]

    def member_keys(self) -> list[str]:
        return [k for k in self._order if self._segments[k].kind is SegmentKind.MEMBER]

    @property
    def closing_key(self) -> Optional[str]:
        for key in self._order:
            if self._segments[key].kind is SegmentKind.CLOSING:
                return key
        return None

    def text_of(self, key: str) -> str:
        segment = self._segments.get(key)
        if segment is None:
            raise UnknownSegment(key)
        return segment.text

    def snapshot(self) -> dict[str, str]:
        return {key: self._segments[key].text for key in self._order}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def replace_text(self, key: str, new_text: str) -> bool:
        """Set a segment's text.  Returns False when nothing changed.

        The segment's trailer, if any, is left as it is.
        """
        segment = self._segments.get(key)
        if segment is not None and segment.text == new_text:
            return False
        if segment is None:
            raise UnknownSegment(key)
        segment.text = new_text
        logger.debug("[Document] Replaced text of %s", key)
        return True

    def insert_segment(self, key: str, text: str, before_key: Optional[str] = None) -> Segment:
        """Insert a new member segment.

        Goes before *before_key* when it exists, otherwise before the
        closing segment, otherwise at the end.
        """
        if key in self._segments:
            raise DuplicateSegment(key)

        if before_key is not None and before_key in self._segments:
            index = self._order.index(before_key)
        else:
            closing = self.closing_key
            index = self._order.index(closing) if closing is not None else len(self._order)

        segment = Segment(key=key, text=text, order=index, kind=SegmentKind.MEMBER)
        self._segments[key] = segment
        self._order.insert(index, key)
        self._renumber()
        logger.debug("[Document] Inserted %s at position %d", key, index)
        return segment

    def remove_segment(self, key: str) -> Segment:
        segment = self._segments.get(key)
        if segment is None:
            raise UnknownSegment(key)
        if segment.kind is not SegmentKind.MEMBER:
            raise SegmentEditorError(f"Cannot remove the {segment.kind.value} segment '{key}'.")
        del self._segments[key]
        self._order.remove(key)
        self._renumber()
        logger.debug("[Document] Removed %s", key)
        return segment

    def clear(self) -> None:
        self._segments.clear()
        self._order.clear()

    def _renumber(self) -> None:
        for index, key in enumerate(self._order):
            self._segments[key].order = index

    # ------------------------------------------------------------------
    # Reassembly
    # ------------------------------------------------------------------

    def reassemble(self) -> str:
        """Join all segments into one source string.

        Between two segments the earlier one loses its trailing
        whitespace, then:

        * a next segment opening with a line break supplies its own
          separation and nothing is added;
        * a next segment opening with ``;``, ``,`` or ``)`` continues
          the previous statement and is glued on directly;
        * otherwise one newline is added, plus a second (a blank line)
          unless the earlier text ends with ``{`` or the next segment
          is the closing segment.

        The result ends with exactly one newline, or is empty.
        """
        parts: list[str] = []
        for segment in self.segments():
            current = segment.rendered
            if not parts:
                parts.append(current.lstrip())
                continue

            previous = parts[-1].rstrip()
            parts[-1] = previous
            parts.append(self._separator(previous, segment))
            parts.append(current)

        result = "".join(parts).rstrip()
        return result + "\n" if result else ""

    @staticmethod
    def _separator(previous: str, segment: Segment) -> str:
        current = segment.rendered
        if not previous or _LEADING_LINE_BREAK.match(current):
            return ""
        if current.startswith(_CONTINUATION):
            return ""

        separator = "\n"
        if not _ENDS_WITH_BRACE.search(previous) and segment.kind is not SegmentKind.CLOSING:
            separator += "\n"
        return separator
