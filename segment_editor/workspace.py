"""
Workspace: the set of open editor sessions.

Mirrors the project editor's tab hub: documents are opened into
sessions, one of them is active, paste and undo go to the active
session, and "save all" writes every dirty session concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from .collaborators import ClipboardReader, ConfirmFn
from .editing.paste_merge import MergeResult
from .errors import SegmentEditorError, SessionNotReady, UnsavedChanges
from .session import EditorSession
from .stores.base import SourceStore

logger = logging.getLogger(__name__)


@dataclass
class SaveReport:
    saved: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class Workspace:
    def __init__(
        self,
        store: SourceStore,
        clipboard: Optional[ClipboardReader] = None,
        confirm: Optional[ConfirmFn] = None,
        undo_depth: Optional[int] = None,
    ):
        self.store = store
        self.clipboard = clipboard
        self.confirm = confirm
        self.undo_depth = undo_depth
        self.sessions: dict[str, EditorSession] = {}
        self.active_id: Optional[str] = None

    async def open(self, document_id: str) -> EditorSession:
        """Open (or re-activate) a document and make it active.

        A session whose load failed stays open so the error can be
        shown; opening it again retries the load.
        """
        session = self.sessions.get(document_id)
        if session is None:
            session = EditorSession(
                document_id, self.store,
                clipboard=self.clipboard,
                confirm=self.confirm,
                undo_depth=self.undo_depth,
            )
            self.sessions[document_id] = session
        self.active_id = document_id

        if not session.is_loaded:
            await session.load()
        return session

    def get(self, document_id: str) -> Optional[EditorSession]:
        return self.sessions.get(document_id)

    def activate(self, document_id: str) -> EditorSession:
        session = self.sessions.get(document_id)
        if session is None:
            raise SessionNotReady(document_id)
        self.active_id = document_id
        return session

    @property
    def active(self) -> Optional[EditorSession]:
        if self.active_id is None:
            return None
        return self.sessions.get(self.active_id)

    def close(self, document_id: str, force: bool = False) -> None:
        session = self.sessions.get(document_id)
        if session is None:
            return
        if session.is_dirty and not force:
            raise UnsavedChanges(document_id)
        session.destroy()
        del self.sessions[document_id]
        if self.active_id == document_id:
            self.active_id = next(iter(self.sessions), None)
        logger.info("[Workspace] Closed %s", document_id)

    async def paste_into_active(self, text: Optional[str] = None) -> MergeResult:
        return await self._require_active().paste(text)

    async def undo_active(self) -> bool:
        return await self._require_active().undo()

    def dirty_documents(self) -> list[str]:
        return [doc_id for doc_id, s in self.sessions.items() if s.is_dirty]

    async def save_all(self) -> SaveReport:
        """Save every dirty session concurrently; failures stay dirty."""
        report = SaveReport()
        dirty = [self.sessions[doc_id] for doc_id in self.dirty_documents()]
        if not dirty:
            logger.info("[Workspace] No changes to save")
            return report

        results = await asyncio.gather(
            *(session.save() for session in dirty),
            return_exceptions=True,
        )
        for session, outcome in zip(dirty, results):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, (SegmentEditorError, OSError)):
                    raise outcome
                logger.error("[Workspace] Save failed for %s: %s", session.document_id, outcome)
                report.failed[session.document_id] = str(outcome)
            else:
                report.saved.append(session.document_id)

        logger.info(
            "[Workspace] Saved %d file(s), %d failed",
            len(report.saved), len(report.failed),
        )
        return report

    def close_all(self) -> None:
        for session in self.sessions.values():
            session.destroy()
        self.sessions.clear()
        self.active_id = None

    def _require_active(self) -> EditorSession:
        session = self.active
        if session is None:
            raise SessionNotReady(self.active_id or "<none>")
        return session
