import logging
from typing import Optional

import requests

from ..config import Config
from ..errors import StoreError
from .base import SourceStore

logger = logging.getLogger(__name__)


class DevHubSourceStore(SourceStore):
    """Loads and saves project files through the dev-hub server's file API.

    ``GET  /api/file-content?path=<id>``  -> ``{"content": "..."}``
    ``POST /api/save-file`` with ``{"relativePath": <id>, "content": "..."}``
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or Config.DEVHUB_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else Config.HTTP_TIMEOUT
        self.http = session or requests.Session()

    def load_source(self, document_id: str) -> str:
        url = f"{self.base_url}/api/file-content"
        logger.debug(f"[DevHub] GET {url} path={document_id}")
        data: dict = {}
        try:
            response = self.http.get(url, params={"path": document_id}, timeout=self.timeout)
            data = self._json(response)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            detail = f" ({data['error']})" if data.get("error") else ""
            logger.error(f"[DevHub] Load error for {document_id}: {e}{detail}")
            raise StoreError(f"Failed to load '{document_id}': {e}{detail}") from e

        content = data.get("content")
        if not isinstance(content, str):
            raise StoreError(f"Failed to load '{document_id}': response has no content.")
        return content

    def save_source(self, document_id: str, text: str) -> None:
        url = f"{self.base_url}/api/save-file"
        payload = {"relativePath": document_id, "content": text}
        logger.debug(f"[DevHub] POST {url} path={document_id} ({len(text)} chars)")
        data: dict = {}
        try:
            response = self.http.post(url, json=payload, timeout=self.timeout)
            data = self._json(response)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            detail = ""
            if data.get("error"):
                detail = f" ({data['error']})"
            logger.error(f"[DevHub] Save error for {document_id}: {e}{detail}")
            raise StoreError(f"Failed to save '{document_id}': {e}{detail}") from e

    @staticmethod
    def _json(response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
