import logging
import os

from ..errors import StoreError
from .base import SourceStore

logger = logging.getLogger(__name__)


class FileSourceStore(SourceStore):
    """Documents are files under *root*; ids are root-relative paths."""

    def __init__(self, root: str = "."):
        self.root = os.path.abspath(root)

    def resolve(self, document_id: str) -> str:
        path = os.path.abspath(os.path.join(self.root, document_id))
        if os.path.commonpath([self.root, path]) != self.root:
            raise StoreError(f"'{document_id}' is outside {self.root}.")
        return path

    def load_source(self, document_id: str) -> str:
        path = self.resolve(document_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            logger.error("[FileStore] Could not read %s: %s", path, e)
            raise StoreError(f"Could not read '{document_id}': {e}") from e

    def save_source(self, document_id: str, text: str) -> None:
        path = self.resolve(document_id)
        dirpath = os.path.dirname(path)
        try:
            if dirpath:
                os.makedirs(dirpath, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            logger.error("[FileStore] Could not write %s: %s", path, e)
            raise StoreError(f"Could not write '{document_id}': {e}") from e
        logger.info("[FileStore] Saved %s (%d chars)", path, len(text))
