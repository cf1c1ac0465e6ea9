"""Inventory capability the credit engine depends on"""

from typing import Protocol

from inventory_ledger.domain.models import StockReservation


class InventoryReservation(Protocol):
    """Takes items out of stock inside the caller's transaction"""

    def reserve(self, user_id: int, product_id: int, number_of_items: int) -> StockReservation:
        """
        Decrement stock for a product owned by user_id.

        Raises:
            ProductNotFoundError: product does not exist for this owner
            InsufficientStockError: fewer items on hand than requested
        """
        ...
