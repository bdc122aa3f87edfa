"""
Error taxonomy for the segment editor.

Every error carries a stable ``code`` so a UI can phrase load-time and
paste-time failures differently, plus optional line/column information
for syntax problems.
"""

from __future__ import annotations

from typing import Optional


class SegmentEditorError(Exception):
    """Base class for all segment editor failures."""

    code = "segment_editor_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class NoStructureFound(SegmentEditorError):
    code = "no_structure"

    def __init__(self, message: str = (
        "No top-level class declaration or object-literal variable "
        "declaration found."
    )):
        super().__init__(message)


class SourceSyntaxError(SegmentEditorError):
    """The document does not parse.  ``line`` is 1-based, ``column`` 0-based."""

    code = "syntax_error"

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line}, column {self.column})"

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload.update(line=self.line, column=self.column)
        return payload


class PasteSyntaxError(SourceSyntaxError):
    """Pasted text does not parse as class members.

    Line and column are relative to the pasted text, not the wrapper.
    """

    code = "paste_syntax_error"


class UnsupportedStructureKind(SegmentEditorError):
    code = "unsupported_structure_kind"


class UnknownSegment(SegmentEditorError):
    code = "unknown_segment"

    def __init__(self, key: str):
        super().__init__(f"Segment '{key}' does not exist.")
        self.key = key


class DuplicateSegment(SegmentEditorError):
    code = "duplicate_segment"

    def __init__(self, key: str):
        super().__init__(f"Segment '{key}' already exists.")
        self.key = key


class EmptyPaste(SegmentEditorError):
    """Recognized no-op: nothing to merge.  Not a failure."""

    code = "empty_paste"

    def __init__(self, message: str = "No methods found in pasted text."):
        super().__init__(message)


class SessionBusy(SegmentEditorError):
    code = "busy"

    def __init__(self, document_id: str):
        super().__init__(f"'{document_id}' is busy with another operation.")
        self.document_id = document_id


class SessionNotReady(SegmentEditorError):
    code = "not_ready"

    def __init__(self, document_id: str):
        super().__init__(f"'{document_id}' is not loaded.")
        self.document_id = document_id


class UnsavedChanges(SegmentEditorError):
    code = "unsaved_changes"

    def __init__(self, document_id: str):
        super().__init__(f"'{document_id}' has unsaved changes.")
        self.document_id = document_id


class StoreError(SegmentEditorError):
    """Loading or saving source text through a store failed."""

    code = "store_error"
