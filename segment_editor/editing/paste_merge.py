"""
Paste classifier and merge engine.

Pasted text is wrapped in a synthetic ``class <Name> { ... }`` and run
through the same parser and effective-range logic as a real document.
Each member found becomes a ``PasteCandidate`` keyed
``<Name>::<member>``; candidates whose key already exists are updates,
the rest are additions.

Merging applies every update first, then offers each addition to a
confirmation callback.  Parsing is side-effect free, so a
``PasteSyntaxError`` or ``EmptyPaste`` guarantees the document was not
touched.  Once updates start, items are applied independently and the
counts report what actually happened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..collaborators import ConfirmFn, resolve
from ..errors import (
    EmptyPaste,
    NoStructureFound,
    PasteSyntaxError,
    SegmentEditorError,
    SourceSyntaxError,
    UnsupportedStructureKind,
)
from ..parsing.boundaries import effective_ranges
from ..parsing.js_ast import StructureKind
from ..parsing.structure_parser import SourceStructure, parse_structure
from .document import Document

logger = logging.getLogger(__name__)

UndoEntry = dict[str, Optional[str]]  # key -> text before the merge; None = did not exist


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PasteCandidate:
    target_key: str
    code: str


@dataclass
class PasteClassification:
    updates: list[PasteCandidate] = field(default_factory=list)
    additions: list[PasteCandidate] = field(default_factory=list)

    @property
    def candidates(self) -> list[PasteCandidate]:
        return self.updates + self.additions


@dataclass
class MergeResult:
    replaced: int = 0
    added: int = 0
    skipped: int = 0
    changed: bool = False  # dirty-causing
    empty: bool = False    # nothing to merge

    @property
    def message(self) -> str:
        if self.empty:
            return "No methods found in paste."
        return (f"Paste complete: Replaced {self.replaced}, "
                f"Added {self.added}, Skipped {self.skipped}")


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def build_wrapper(structure: SourceStructure, pasted_text: str) -> str:
    if structure.kind is not StructureKind.CLASS:
        raise UnsupportedStructureKind(
            f"Pasting into {structure.kind.value} '{structure.name}' is not "
            "supported; only class structures accept pasted members."
        )
    return f"class {structure.name} {{\n{pasted_text.strip()}\n}}"


def extract_candidates(structure: SourceStructure, pasted_text: str) -> list[PasteCandidate]:
    """Parse *pasted_text* as members of *structure*.

    Raises ``EmptyPaste`` when there is nothing to merge and
    ``PasteSyntaxError`` (located in the pasted text) when it does not
    parse.  A member pasted twice keeps its last occurrence.
    """
    if not pasted_text or not pasted_text.strip():
        raise EmptyPaste("Clipboard empty or contains only whitespace.")

    wrapper = build_wrapper(structure, pasted_text)
    try:
        parsed = parse_structure(wrapper)
    except SourceSyntaxError as e:
        line, column = _paste_location(pasted_text, e.line, e.column)
        raise PasteSyntaxError(e.message, line, column) from e
    except NoStructureFound as e:
        raise EmptyPaste() from e

    by_key: dict[str, PasteCandidate] = {}
    text = parsed.text
    for member, member_range in zip(parsed.members, effective_ranges(parsed)):
        key = parsed.structure.member_key(member.base_name)
        code = text[member_range.start:member_range.end]
        if key in by_key:
            logger.warning("[PasteMerge] %s pasted more than once; keeping the last one", key)
            del by_key[key]
        by_key[key] = PasteCandidate(target_key=key, code=code)

    if not by_key:
        raise EmptyPaste()
    return list(by_key.values())


def classify_paste(document: Document, pasted_text: str) -> PasteClassification:
    """Split pasted members into updates (existing keys) and additions."""
    classification = PasteClassification()
    for candidate in extract_candidates(document.structure, pasted_text):
        if candidate.target_key in document:
            classification.updates.append(candidate)
        else:
            classification.additions.append(candidate)
    logger.info(
        "[PasteMerge] %d update(s), %d addition(s) for %s",
        len(classification.updates), len(classification.additions),
        document.structure.name,
    )
    return classification


def _paste_location(pasted_text: str, line: Optional[int], column: Optional[int]):
    """Map a wrapper line/column back onto the pasted text."""
    if line is None:
        return None, None
    stripped = pasted_text.lstrip()
    leading = pasted_text[:len(pasted_text) - len(stripped)]
    lead_lines = leading.count("\n")
    lead_columns = len(leading) - (leading.rfind("\n") + 1)

    last_line = pasted_text.count("\n") + 1
    mapped = line - 1 + lead_lines
    if line == 2 and column is not None:
        column += lead_columns
    if mapped < 1:
        return 1, 0
    if mapped > last_line:
        return last_line, column
    return mapped, column


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

class PasteMerger:
    """Applies a classification to a document."""

    def __init__(self, document: Document, confirm: ConfirmFn,
                 cancelled: Optional[Callable[[], bool]] = None):
        self.document = document
        self.confirm = confirm
        self.cancelled = cancelled or (lambda: False)

    async def merge(self, classification: PasteClassification) -> tuple[MergeResult, UndoEntry]:
        """Apply updates, then confirmed additions.

        Returns the counts and the undo entry to record.  The undo entry
        is empty when the merge changed nothing.
        """
        document = self.document
        result = MergeResult()

        undo: UndoEntry = {}
        for candidate in classification.updates:
            if candidate.target_key not in undo:
                undo[candidate.target_key] = document.text_of(candidate.target_key)

        for candidate in classification.updates:
            try:
                if document.replace_text(candidate.target_key, candidate.code):
                    result.changed = True
                    logger.debug("[PasteMerge] Updated %s", candidate.target_key)
                else:
                    logger.debug("[PasteMerge] %s unchanged", candidate.target_key)
                result.replaced += 1
            except SegmentEditorError as e:
                logger.error("[PasteMerge] Could not update %s: %s", candidate.target_key, e)

        for candidate in classification.additions:
            if self.cancelled():
                break
            try:
                accepted = await resolve(self.confirm(candidate.target_key))
            except Exception:
                logger.exception("[PasteMerge] Confirmation failed for %s", candidate.target_key)
                result.skipped += 1
                continue
            if self.cancelled():
                logger.info("[PasteMerge] Cancelled before adding %s", candidate.target_key)
                break
            if not accepted:
                logger.info("[PasteMerge] Addition of %s declined", candidate.target_key)
                result.skipped += 1
                continue
            try:
                document.insert_segment(candidate.target_key, candidate.code)
            except SegmentEditorError as e:
                logger.error("[PasteMerge] Could not add %s: %s", candidate.target_key, e)
                result.skipped += 1
                continue
            undo[candidate.target_key] = None
            result.added += 1
            result.changed = True

        if not result.changed:
            undo = {}
        logger.info("[PasteMerge] %s", result.message)
        return result, undo
