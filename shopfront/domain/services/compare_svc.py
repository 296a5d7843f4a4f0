import logging
from typing import List

from shopfront.domain.models.product import Product
from shopfront.domain.models.result import OpResult
from shopfront.domain.services.constants import (
    COMPARE_MAX_ITEMS,
    NOTICE_COMPARE_ADDED,
    NOTICE_COMPARE_DUPLICATE,
    NOTICE_COMPARE_FULL,
)
from shopfront.domain.services.notices import NoticeSink
from shopfront.domain.services.observable import Observable

logger = logging.getLogger(__name__)


class CompareStore(Observable):
    """
    Side-by-side comparison selection: up to `max_items` distinct product
    snapshots, in insertion order. Session scoped, never persisted, no I/O.
    The panel-open flag is independent of the selection.
    """

    def __init__(self, notices: NoticeSink, max_items: int = COMPARE_MAX_ITEMS):
        super().__init__()
        self._notices = notices
        self.max_items = max_items
        self._items: List[Product] = []
        self._is_open = False

    @property
    def items(self) -> List[Product]:
        return list(self._items)

    @property
    def is_open(self) -> bool:
        return self._is_open

    def __len__(self) -> int:
        return len(self._items)

    def contains(self, product_id: str) -> bool:
        return any(p.id == product_id for p in self._items)

    def add(self, product: Product) -> OpResult:
        if len(self._items) >= self.max_items:
            description = NOTICE_COMPARE_FULL.format(max=self.max_items)
            self._notices.info("Compare limit reached", description)
            logger.debug("compare add rejected=full product_id=%s", product.id)
            return OpResult.failure("rejected", description)

        if self.contains(product.id):
            description = NOTICE_COMPARE_DUPLICATE.format(name=product.name)
            self._notices.info("Already in compare", description)
            logger.debug("compare add rejected=duplicate product_id=%s", product.id)
            return OpResult.failure("rejected", description)

        self._items.append(product)
        description = NOTICE_COMPARE_ADDED.format(name=product.name)
        self._notices.success("Added to compare", description)
        self.notify()
        return OpResult.success(description)

    def remove(self, product_id: str) -> None:
        kept = [p for p in self._items if p.id != product_id]
        if len(kept) != len(self._items):
            self._items = kept
            self.notify()

    def clear(self) -> None:
        self._items = []
        self.notify()

    def set_open(self, is_open: bool) -> None:
        if is_open != self._is_open:
            self._is_open = is_open
            self.notify()

    def close(self) -> None:
        self._items = []
        self._is_open = False
        self.notify()
        self.clear_listeners()
