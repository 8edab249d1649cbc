"""
app/services/order_resolver.py

Resolve order references on imported line items to order ids.

Unlike contacts, orders are never created on demand: an item naming an
order the tenant does not have fails its row.
"""

from __future__ import annotations

import logging
import threading

from sqlalchemy.exc import SQLAlchemyError

from app.domain.errors import OrderResolutionError
from app.repositories.import_record_repository import ImportRecordRepository
from db.models.order import Order

logger = logging.getLogger(__name__)


class OrderResolver:
    """
    Per-batch lookup of orders by order number, falling back to the order id
    when the reference is all digits.
    """

    def __init__(self, repository: ImportRecordRepository, tenant_id: int) -> None:
        self._repository = repository
        self._tenant_id = tenant_id
        self._cache: dict[tuple[int, str], int] = {}
        self._lock = threading.Lock()

    def resolve(self, reference: str) -> int:
        """
        Return the id of the tenant's order matching `reference`.

        Raises OrderResolutionError when the reference is blank, unknown,
        or the lookup fails. Misses are not cached.
        """

        wanted = (reference or "").strip()
        if not wanted:
            raise OrderResolutionError(order_number=reference or "", reason="order reference is empty")

        key = (self._tenant_id, wanted)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            order = self._find(wanted)
            if order is None:
                raise OrderResolutionError(order_number=wanted, reason="no such order")
            self._cache[key] = order.id
            return order.id

    def _find(self, reference: str) -> Order | None:
        try:
            order = self._repository.find_by_attribute(
                Order,
                tenant_id=self._tenant_id,
                attribute="order_number",
                value=reference,
            )
            if order is None and reference.isdigit():
                order = self._repository.find_by_attribute(
                    Order,
                    tenant_id=self._tenant_id,
                    attribute="id",
                    value=int(reference),
                )
        except SQLAlchemyError as exc:
            logger.warning("Order lookup failed tenant=%s reference=%r: %s", self._tenant_id, reference, exc)
            raise OrderResolutionError(order_number=reference, reason=exc.__class__.__name__) from exc
        return order
