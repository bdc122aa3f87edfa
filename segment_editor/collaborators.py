"""Clipboard and confirmation collaborators plus sync/async call helpers."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

ConfirmFn = Callable[[str], Union[bool, Awaitable[bool]]]


async def resolve(value):
    """Await *value* if a collaborator handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def always_confirm(member_key: str) -> bool:
    return True


def never_confirm(member_key: str) -> bool:
    return False


class ClipboardReader(ABC):
    @abstractmethod
    def read_text(self) -> Optional[str]:
        """Current clipboard text, or None when empty or unavailable.

        Implementations may also return an awaitable.
        """
        pass


class TextClipboard(ClipboardReader):
    """Clipboard backed by a plain string."""

    def __init__(self, text: Optional[str] = None):
        self.text = text

    def set_text(self, text: Optional[str]) -> None:
        self.text = text

    def read_text(self) -> Optional[str]:
        return self.text
