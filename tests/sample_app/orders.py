from __future__ import annotations

import itertools
from typing import Any

from strata.logging import LoggerFactory

from sample_app.contracts import IOrderManager, IPricingEngine


class OrderManager(IOrderManager):
    _ids = itertools.count(1)

    def __init__(
        self,
        pricing: IPricingEngine,
        logger_factory: LoggerFactory | None = None,
    ) -> None:
        self.pricing = pricing
        self.logger_factory = logger_factory
        self.closed = False

    def place_order(self, sku: str, quantity: int) -> dict[str, Any]:
        total = self.pricing.quote(sku, quantity)
        return {
            "id": f"order-{next(self._ids)}",
            "sku": sku,
            "total": total,
            "currency": self.pricing.currency,
        }

    def cancel(self, order_id: str) -> None:
        raise LookupError(order_id)

    def close(self) -> None:
        self.closed = True
