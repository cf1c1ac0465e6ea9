"""Cash sales; stock is reserved the same way credit sales reserve it"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import (
    InsufficientStockError,
    MissingFieldsError,
    NotFoundOrUnauthorized,
    ValidationError,
)
from inventory_ledger.domain.interest import ZERO, round_money
from inventory_ledger.domain.inventory import InventoryReservation
from inventory_ledger.domain.models import SaleItemInput, SalesStats
from inventory_ledger.infrastructure.database.models import Sale
from inventory_ledger.infrastructure.database.repositories import (
    CustomerRepository,
    SaleRepository,
    StockRepository,
)
from inventory_ledger.infrastructure.database.session import atomic
from inventory_ledger.infrastructure.observability.metrics import insufficient_stock_counter
from inventory_ledger.utils.date_utils import SystemClock

logger = logging.getLogger(__name__)


class SaleService:
    def __init__(self, db: Session, clock=None, inventory: Optional[InventoryReservation] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.inventory = inventory or StockRepository(db)
        self.sale_repo = SaleRepository(db)

    def record_sale(
        self,
        user_id: int,
        items: List[SaleItemInput],
        customer_id: Optional[int] = None,
        discount: Decimal = Decimal("0"),
        sale_date: Optional[date] = None,
        payment_status: str = "Paid",
    ) -> Sale:
        """
        Record a sale and take its items out of stock in one transaction.

        total_amount = sum(quantity x unit_price); final_amount = total - discount.
        """
        if not items:
            raise MissingFieldsError("items")
        for item in items:
            if item.quantity is None or item.quantity <= 0:
                raise ValidationError(f"Invalid quantity for product ID {item.product_id}")
            if item.unit_price is None or item.unit_price < 0:
                raise ValidationError(f"Invalid unit price for product ID {item.product_id}")

        total_amount = round_money(sum((Decimal(i.unit_price) * i.quantity for i in items), ZERO))
        discount = Decimal(discount or 0)
        if discount < 0 or discount > total_amount:
            raise ValidationError("Discount must be between zero and the sale total")

        try:
            with atomic(self.db):
                if customer_id is not None and CustomerRepository(self.db).get_for_owner(customer_id, user_id) is None:
                    raise NotFoundOrUnauthorized("Customer not found")

                for item in items:
                    self.inventory.reserve(user_id, item.product_id, item.quantity)

                sale = self.sale_repo.create_sale(
                    user_id,
                    items,
                    customer_id=customer_id,
                    sale_date=sale_date or self.clock.today(),
                    total_amount=total_amount,
                    discount=discount,
                    final_amount=round_money(total_amount - discount),
                    payment_status=payment_status,
                )
        except InsufficientStockError:
            insufficient_stock_counter.inc()
            raise

        logger.info(
            f"Sale {sale.id} recorded",
            extra={"user_id": user_id, "sale_id": sale.id, "final_amount": str(sale.final_amount)},
        )
        return sale

    def get_sale(self, sale_id: int, user_id: int) -> Sale:
        sale = self.sale_repo.get_for_owner(sale_id, user_id)
        if sale is None:
            raise NotFoundOrUnauthorized("Sale not found")
        return sale

    def list_sales(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        show_archived: bool = False,
    ) -> List[Sale]:
        return self.sale_repo.list_for_owner(
            user_id, start_date=start_date, end_date=end_date, show_archived=show_archived
        )

    def archive(self, sale_id: int, user_id: int) -> Sale:
        """Hide a sale from default listings and from the stats"""
        return self._set_archived(sale_id, user_id, True)

    def unarchive(self, sale_id: int, user_id: int) -> Sale:
        return self._set_archived(sale_id, user_id, False)

    def stats(self, user_id: int) -> SalesStats:
        """Totals over the owner's non-archived sales"""
        count, total, discount, final = self.sale_repo.totals(user_id)
        return SalesStats(
            total_sales=count,
            total_revenue=round_money(total),
            total_discount=round_money(discount),
            net_revenue=round_money(final),
        )

    def _set_archived(self, sale_id: int, user_id: int, archived: bool) -> Sale:
        with atomic(self.db):
            sale = self.get_sale(sale_id, user_id)
            sale.is_archived = archived

        logger.info(
            f"Sale {sale_id} {'archived' if archived else 'unarchived'}",
            extra={"user_id": user_id, "sale_id": sale_id},
        )
        return sale
