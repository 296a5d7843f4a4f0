from collections import deque
from typing import Deque, List, Literal
import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)

NoticeLevel = Literal["info", "success", "error"]


class Notice(BaseModel):
    level: NoticeLevel
    title: str
    description: str = ""
    model_config = {"frozen": True}


class NoticeSink:
    """
    Collects user-facing notices (the storefront's toasts) until the
    presentation side drains them. Bounded: the oldest notice is dropped first.
    """

    def __init__(self, maxlen: int = 50):
        self._items: Deque[Notice] = deque(maxlen=maxlen)

    def push(self, level: NoticeLevel, title: str, description: str = "") -> Notice:
        notice = Notice(level=level, title=title, description=description)
        self._items.append(notice)
        logger.debug("notice level=%s title=%s", level, title)
        return notice

    def info(self, title: str, description: str = "") -> Notice:
        return self.push("info", title, description)

    def success(self, title: str, description: str = "") -> Notice:
        return self.push("success", title, description)

    def error(self, title: str, description: str = "") -> Notice:
        return self.push("error", title, description)

    def drain(self) -> List[Notice]:
        items = list(self._items)
        self._items.clear()
        return items

    def __len__(self) -> int:
        return len(self._items)
