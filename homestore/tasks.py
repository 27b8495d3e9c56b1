from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from PySide6.QtWidgets import QMessageBox, QWidget

from .errors import HomeStoreError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncRunner:
    """Один event loop на всё приложение; каждое действие UI выполняется до конца.

    Слушатели менеджера вызываются внутри run(), поэтому они только
    перерисовывают виджеты и сами run() не вызывают.
    """

    def __init__(self, parent: Optional[QWidget] = None):
        self.loop = asyncio.new_event_loop()
        self.parent = parent

    def run(self, coro: Awaitable[T], title: str = "Ошибка") -> Optional[T]:
        try:
            return self.loop.run_until_complete(coro)
        except StorageError as e:
            logger.error("%s: %s", title, e)
            QMessageBox.critical(self.parent, title, f"Хранилище недоступно:\n{e}")
        except HomeStoreError as e:
            logger.info("%s: %s", title, e)
            QMessageBox.warning(self.parent, title, str(e))
        return None

    def close(self):
        self.loop.run_until_complete(self.loop.shutdown_default_executor())
        self.loop.close()
