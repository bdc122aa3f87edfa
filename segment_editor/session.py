"""
Editor session: the per-document state machine.

::

    UNLOADED -> LOADING -> READY (clean <-> dirty) -> DESTROYED

``is_busy`` is orthogonal: it is held for the whole of a load, paste,
undo or save, and any other mutating call made meanwhile is rejected
with ``SessionBusy`` rather than queued.  Sessions share no state with
one another.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Optional

from .collaborators import ClipboardReader, ConfirmFn, never_confirm, resolve
from .config import Config
from .editing.document import Document, Segment
from .editing.paste_merge import MergeResult, PasteMerger, UndoEntry, classify_paste
from .errors import (
    EmptyPaste,
    SegmentEditorError,
    SessionBusy,
    SessionNotReady,
    StoreError,
)
from .parsing.structure_parser import SourceStructure
from .stores.base import SourceStore

logger = logging.getLogger(__name__)

Listener = Callable[["EditorSession"], None]


class SessionState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    DESTROYED = "destroyed"


class EditorSession:
    """Owns one document, its dirty flag and its undo history."""

    def __init__(
        self,
        document_id: str,
        store: SourceStore,
        clipboard: Optional[ClipboardReader] = None,
        confirm: Optional[ConfirmFn] = None,
        undo_depth: Optional[int] = None,
    ):
        self.document_id = document_id
        self.store = store
        self.clipboard = clipboard
        self.confirm: ConfirmFn = confirm or never_confirm
        self.undo_depth = undo_depth if undo_depth is not None else Config.UNDO_DEPTH
        if self.undo_depth < 0:
            raise ValueError(f"undo_depth must be 0 or more, got {self.undo_depth}")

        self.state = SessionState.UNLOADED
        self.document: Optional[Document] = None
        self.is_dirty = False
        self.is_busy = False
        self.undo_stack: deque[UndoEntry] = deque(maxlen=self.undo_depth)  # 0 disables undo
        self.last_error: Optional[SegmentEditorError] = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self.state is SessionState.READY and self.document is not None

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.LOADING

    @property
    def can_undo(self) -> bool:
        return self.is_loaded and bool(self.undo_stack)

    @property
    def structure(self) -> Optional[SourceStructure]:
        return self.document.structure if self.document is not None else None

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def segments(self) -> list[Segment]:
        self._require_loaded()
        return self.document.segments()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load(self) -> Document:
        """Fetch, parse and segment the document.

        A failure leaves the session unloaded with ``last_error`` set and
        re-raises; calling ``load()`` again retries from scratch.
        """
        if self.state is SessionState.DESTROYED:
            raise SessionNotReady(self.document_id)
        if self.is_busy:
            raise SessionBusy(self.document_id)

        previous_state = self.state
        self.state = SessionState.LOADING
        self.last_error = None
        logger.info("[Session] Loading %s", self.document_id)

        try:
            with self._busy():
                text = await asyncio.to_thread(self.store.load_source, self.document_id)
                document = Document.from_source(text)
        except Exception as e:
            logger.error("[Session] Failed to load %s: %s", self.document_id, e)
            self.last_error = e if isinstance(e, SegmentEditorError) else StoreError(str(e))
            self.document = None
            self.state = SessionState.UNLOADED
            self._notify()
            raise

        if self._is_destroyed():
            logger.info("[Session] %s destroyed while loading", self.document_id)
            return document

        self.document = document
        self.undo_stack.clear()
        self.is_dirty = False
        self.state = SessionState.READY
        logger.info(
            "[Session] Loaded %s: %s '%s' (%d segments, previously %s)",
            self.document_id, document.structure.kind.value,
            document.structure.name, len(document), previous_state.value,
        )
        self._notify()
        return document

    async def paste(self, text: Optional[str] = None) -> MergeResult:
        """Merge pasted members; reads the clipboard when *text* is None."""
        self._require_ready()

        result = MergeResult()
        with self._busy():
            if text is None:
                text = await self._read_clipboard()
            try:
                classification = classify_paste(self.document, text or "")
            except EmptyPaste as e:
                logger.info("[Session] Nothing to paste into %s: %s", self.document_id, e)
                result.empty = True
            else:
                merger = PasteMerger(self.document, self.confirm, cancelled=self._is_destroyed)
                result, undo = await merger.merge(classification)

        if self._is_destroyed():
            logger.info("[Session] %s destroyed during paste; result discarded", self.document_id)
            return result

        if result.changed:
            self._push_undo(undo)
            self._mark_dirty()
        else:
            logger.info("[Session] Paste made no changes to %s", self.document_id)
            self._notify()
        return result

    async def undo(self) -> bool:
        """Revert the most recent merge.  False when there is no history."""
        self._require_ready()
        if not self.undo_stack:
            logger.info("[Session] Undo ignored for %s: no history", self.document_id)
            return False

        with self._busy():
            entry = self.undo_stack.pop()
            restored = self._restore(entry)

        logger.info("[Session] Undo for %s restored %d segment(s)", self.document_id, restored)
        if restored:
            self._mark_dirty()
        else:
            self._notify()
        return True

    def edit_segment(self, key: str, text: str) -> bool:
        """Direct edit of one segment's text."""
        self._require_ready()
        changed = self.document.replace_text(key, text)
        if changed:
            self._mark_dirty()
        return changed

    def reassemble(self) -> str:
        self._require_loaded()
        return self.document.reassemble()

    async def save(self) -> str:
        """Write the reassembled source through the store and mark clean."""
        self._require_ready()
        with self._busy():
            text = self.document.reassemble()
            await asyncio.to_thread(self.store.save_source, self.document_id, text)
        if self._is_destroyed():
            return text
        logger.info("[Session] Saved %s", self.document_id)
        self.mark_clean()
        return text

    def mark_clean(self) -> None:
        if self.is_dirty:
            self.is_dirty = False
            logger.debug("[Session] %s marked clean", self.document_id)
            self._notify()

    def destroy(self) -> None:
        if self.state is SessionState.DESTROYED:
            return
        self.undo_stack.clear()
        if self.document is not None:
            self.document.clear()
        self.document = None
        self.is_dirty = False
        self.state = SessionState.DESTROYED
        logger.info("[Session] Destroyed %s", self.document_id)
        self._notify()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_destroyed(self) -> bool:
        return self.state is SessionState.DESTROYED

    def _require_loaded(self) -> None:
        if not self.is_loaded:
            raise SessionNotReady(self.document_id)

    def _require_ready(self) -> None:
        self._require_loaded()
        if self.is_busy:
            raise SessionBusy(self.document_id)

    @contextmanager
    def _busy(self):
        self.is_busy = True
        self._notify()
        try:
            yield
        finally:
            self.is_busy = False
            self._notify()

    async def _read_clipboard(self) -> Optional[str]:
        if self.clipboard is None:
            logger.warning("[Session] No clipboard reader configured")
            return None
        return await resolve(self.clipboard.read_text())

    def _push_undo(self, entry: UndoEntry) -> None:
        if not entry or not self.undo_stack.maxlen:
            return
        if len(self.undo_stack) == self.undo_stack.maxlen:
            logger.debug("[Session] Undo history pruned for %s", self.document_id)
        self.undo_stack.append(entry)

    def _restore(self, entry: UndoEntry) -> int:
        document = self.document
        restored = 0
        for key, previous in entry.items():
            if previous is None:
                if key in document:
                    document.remove_segment(key)
                    restored += 1
                continue
            if key not in document:
                logger.warning("[Session] Undo: segment %s not found in %s", key, self.document_id)
                continue
            if document.replace_text(key, previous):
                restored += 1
        return restored

    def _mark_dirty(self) -> None:
        if not self.is_dirty:
            self.is_dirty = True
            logger.debug("[Session] %s marked dirty", self.document_id)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("[Session] Listener failed for %s", self.document_id)
