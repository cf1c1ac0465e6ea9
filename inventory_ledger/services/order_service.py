"""Purchase orders placed with suppliers"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import MissingFieldsError, NotFoundOrUnauthorized, ValidationError
from inventory_ledger.infrastructure.database.models import Order
from inventory_ledger.infrastructure.database.repositories import OrderRepository, SupplierRepository
from inventory_ledger.infrastructure.database.session import atomic
from inventory_ledger.utils.date_utils import SystemClock

logger = logging.getLogger(__name__)

DEFAULT_ORDER_STATUS = "Pending"


class OrderService:
    def __init__(self, db: Session, clock=None):
        self.db = db
        self.clock = clock or SystemClock()
        self.order_repo = OrderRepository(db)
        self.supplier_repo = SupplierRepository(db)

    def create_order(
        self,
        user_id: int,
        supplier_id: Optional[int],
        product_name: Optional[str],
        quantity: Optional[Decimal],
        quantity_unit: Optional[str],
        number_of_items: Optional[int],
        order_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> Order:
        required = (
            ("supplier_id", supplier_id),
            ("product_name", product_name),
            ("quantity", quantity),
            ("quantity_unit", quantity_unit),
            ("number_of_items", number_of_items),
        )
        missing = [name for name, value in required if value is None or value == ""]
        if missing:
            raise MissingFieldsError(*missing)
        _check_amounts(quantity, number_of_items)

        with atomic(self.db):
            self._require_supplier(supplier_id, user_id)
            order = self.order_repo.create_order(
                user_id,
                supplier_id=supplier_id,
                product_name=product_name.strip(),
                quantity=Decimal(quantity),
                quantity_unit=quantity_unit,
                number_of_items=number_of_items,
                order_date=order_date or self.clock.today(),
                status=status or DEFAULT_ORDER_STATUS,
            )

        logger.info(f"Order {order.id} created", extra={"user_id": user_id, "order_id": order.id})
        return order

    def get_order(self, order_id: int, user_id: int) -> Order:
        order = self.order_repo.get_for_owner(order_id, user_id)
        if order is None:
            raise NotFoundOrUnauthorized("Order not found")
        return order

    def list_orders(self, user_id: int) -> List[Order]:
        """Newest first"""
        return self.order_repo.list_for_owner(user_id)

    def count_orders(self, user_id: int) -> int:
        return self.order_repo.count_for_owner(user_id)

    def update_order(
        self,
        order_id: int,
        user_id: int,
        supplier_id: Optional[int] = None,
        product_name: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        quantity_unit: Optional[str] = None,
        number_of_items: Optional[int] = None,
        order_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> Order:
        _check_amounts(quantity, number_of_items)
        if product_name is not None and not product_name.strip():
            raise MissingFieldsError("product_name")

        with atomic(self.db):
            order = self.get_order(order_id, user_id)
            if supplier_id is not None and supplier_id != order.supplier_id:
                self._require_supplier(supplier_id, user_id)
                order.supplier_id = supplier_id
            if product_name is not None:
                order.product_name = product_name.strip()
            if quantity is not None:
                order.quantity = Decimal(quantity)
            if quantity_unit:
                order.quantity_unit = quantity_unit
            if number_of_items is not None:
                order.number_of_items = number_of_items
            if order_date is not None:
                order.order_date = order_date
            if status:
                order.status = status

        logger.info(f"Order {order_id} updated", extra={"user_id": user_id, "order_id": order_id})
        return order

    def delete_order(self, order_id: int, user_id: int) -> None:
        with atomic(self.db):
            self.order_repo.delete(self.get_order(order_id, user_id))

        logger.info(f"Order {order_id} deleted", extra={"user_id": user_id, "order_id": order_id})

    def _require_supplier(self, supplier_id: int, user_id: int) -> None:
        if self.supplier_repo.get_for_owner(supplier_id, user_id) is None:
            raise NotFoundOrUnauthorized("Supplier not found")


def _check_amounts(quantity: Optional[Decimal], number_of_items: Optional[int]) -> None:
    if quantity is not None and Decimal(quantity) <= 0:
        raise ValidationError("Quantity must be greater than zero")
    if number_of_items is not None and number_of_items <= 0:
        raise ValidationError("Number of items must be greater than zero")
