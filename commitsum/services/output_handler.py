import logging
from abc import ABC, abstractmethod

import pyperclip

from commitsum.errors import ClipboardError

logger = logging.getLogger(__name__)


class Clipboard(ABC):
    @abstractmethod
    def copy(self, text: str) -> None:
        """Copies text to the clipboard, raising ClipboardError on failure."""


class SystemClipboard(Clipboard):
    """Copies to the system clipboard through pyperclip."""

    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            logger.error(f"Clipboard error: {e}")
            raise ClipboardError(str(e)) from e
