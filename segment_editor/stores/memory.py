from typing import Dict, Optional

from ..errors import StoreError
from .base import SourceStore


class MemorySourceStore(SourceStore):
    """Keeps documents in a dict; handy for embedding and tests."""

    def __init__(self, documents: Optional[Dict[str, str]] = None):
        self.documents: Dict[str, str] = dict(documents or {})
        self.saves: list[tuple[str, str]] = []

    def load_source(self, document_id: str) -> str:
        if document_id not in self.documents:
            raise StoreError(f"No document named '{document_id}'.")
        return self.documents[document_id]

    def save_source(self, document_id: str, text: str) -> None:
        self.documents[document_id] = text
        self.saves.append((document_id, text))
