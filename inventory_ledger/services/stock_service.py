"""Stock ledger maintenance: items, restocking, low-stock and expiry alerts"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import (
    MissingFieldsError,
    NotFoundOrUnauthorized,
    ProductNotFoundError,
    StockInUseError,
    ValidationError,
)
from inventory_ledger.domain.models import ExpiringStock, StockCounts, StockUpdate
from inventory_ledger.infrastructure.database.models import StockItem
from inventory_ledger.infrastructure.database.repositories import StockRepository, SupplierRepository
from inventory_ledger.infrastructure.database.session import atomic
from inventory_ledger.utils.date_utils import SystemClock, days_between

logger = logging.getLogger(__name__)

NO_SUPPLIER = "N/A"


class StockService:
    """Owner-scoped stock items; quantity always equals items x package size"""

    def __init__(
        self,
        db: Session,
        low_stock_threshold: int = 10,
        reporting=None,
        clock=None,
        expiry_warning_days: int = 30,
    ):
        self.db = db
        self.low_stock_threshold = low_stock_threshold
        self.reporting = reporting
        self.clock = clock or SystemClock()
        self.expiry_warning_days = expiry_warning_days
        self.stock_repo = StockRepository(db)

    def create_item(
        self,
        user_id: int,
        product_name: str,
        category: str,
        number_of_items: int,
        package_size: Optional[Decimal] = None,
        quantity_unit: str = "units",
        actual_price: Decimal = Decimal("0"),
        selling_price: Decimal = Decimal("0"),
        low_stock_threshold: Optional[int] = None,
        expiry_date: Optional[date] = None,
        supplier_id: Optional[int] = None,
    ) -> StockItem:
        if not product_name or not category:
            raise MissingFieldsError(*[n for n, v in (("product_name", product_name), ("category", category)) if not v])
        if number_of_items < 0:
            raise ValidationError("Number of items cannot be negative")
        if actual_price < 0 or selling_price < 0:
            raise ValidationError("Prices cannot be negative")

        with atomic(self.db):
            if self.stock_repo.get_by_name(user_id, product_name) is not None:
                raise ValidationError(f"Product '{product_name}' already exists in stock")
            if supplier_id is not None:
                self._require_supplier(supplier_id, user_id)

            size = Decimal(package_size) if package_size is not None else Decimal("1")
            item = self.stock_repo.create_item(
                user_id,
                product_name=product_name,
                category=category,
                package_size=size,
                number_of_items=number_of_items,
                quantity_unit=quantity_unit,
                quantity=size * number_of_items,
                actual_price=actual_price,
                selling_price=selling_price,
                low_stock_threshold=low_stock_threshold,
                expiry_date=expiry_date,
                supplier_id=supplier_id,
            )

        logger.info(f"Stock item {item.id} created", extra={"user_id": user_id, "product_id": item.id})
        return item

    def get_item(self, product_id: int, user_id: int) -> StockItem:
        item = self.stock_repo.get_for_owner(product_id, user_id)
        if item is None:
            raise ProductNotFoundError(product_id)
        return item

    def list_items(self, user_id: int) -> List[StockItem]:
        return self.stock_repo.list_for_owner(user_id)

    def low_stock(self, user_id: int) -> List[StockItem]:
        """Items at or below their threshold (per-item, else the configured default)"""
        return self.stock_repo.list_low_stock(user_id, self.low_stock_threshold)

    def expiring_soon(self, user_id: int) -> List[ExpiringStock]:
        """Items not yet expired whose expiry date falls within the warning window"""
        today = self.clock.today()
        horizon = today + timedelta(days=self.expiry_warning_days)
        return [
            ExpiringStock(
                product_id=item.id,
                product_name=item.product_name,
                supplier_name=item.supplier.name if item.supplier else NO_SUPPLIER,
                quantity=Decimal(item.quantity),
                quantity_unit=item.quantity_unit,
                expiry_date=item.expiry_date,
                days_until_expiry=days_between(today, item.expiry_date),
            )
            for item in self.stock_repo.list_expiring(user_id, today, horizon)
        ]

    def counts(self, user_id: int) -> StockCounts:
        return StockCounts(
            total=self.stock_repo.count_for_owner(user_id),
            low_stock=len(self.low_stock(user_id)),
            expiring_soon=len(self.expiring_soon(user_id)),
        )

    def update_item(self, product_id: int, user_id: int, changes: StockUpdate) -> StockItem:
        """
        Edit an item's details.

        Quantity is recomputed from the resulting items and package size. Cached
        credit views of the owner are dropped since they carry product names.
        """
        if changes.product_name is not None and not changes.product_name.strip():
            raise MissingFieldsError("product_name")
        if changes.category is not None and not changes.category.strip():
            raise MissingFieldsError("category")
        if changes.number_of_items is not None and changes.number_of_items < 0:
            raise ValidationError("Number of items cannot be negative")
        if changes.package_size is not None and Decimal(changes.package_size) <= 0:
            raise ValidationError("Package size must be greater than zero")
        for price in (changes.actual_price, changes.selling_price):
            if price is not None and Decimal(price) < 0:
                raise ValidationError("Prices cannot be negative")

        with atomic(self.db):
            item = self.stock_repo.get_for_owner(product_id, user_id, for_update=True)
            if item is None:
                raise ProductNotFoundError(product_id)

            if changes.product_name is not None and changes.product_name != item.product_name:
                other = self.stock_repo.get_by_name(user_id, changes.product_name)
                if other is not None and other.id != product_id:
                    raise ValidationError(f"Product '{changes.product_name}' already exists in stock")
                item.product_name = changes.product_name
            if changes.supplier_id is not None and changes.supplier_id != item.supplier_id:
                self._require_supplier(changes.supplier_id, user_id)
                item.supplier_id = changes.supplier_id

            for name in ("category", "quantity_unit", "low_stock_threshold", "expiry_date"):
                value = getattr(changes, name)
                if value is not None:
                    setattr(item, name, value)
            for name in ("actual_price", "selling_price", "package_size"):
                value = getattr(changes, name)
                if value is not None:
                    setattr(item, name, Decimal(value))
            if changes.number_of_items is not None:
                item.number_of_items = changes.number_of_items
            self.stock_repo.adjust(item, 0)
            item.updated_at = self.clock.now()

        self._invalidate_views(user_id)
        logger.info(f"Stock item {product_id} updated", extra={"user_id": user_id, "product_id": product_id})
        return item

    def restock(self, product_id: int, user_id: int, number_of_items: int) -> StockItem:
        if number_of_items <= 0:
            raise ValidationError("Restock amount must be greater than zero")

        with atomic(self.db):
            item = self.stock_repo.get_for_owner(product_id, user_id, for_update=True)
            if item is None:
                raise ProductNotFoundError(product_id)
            self.stock_repo.adjust(item, number_of_items)

        logger.info(
            f"Stock item {product_id} restocked",
            extra={"user_id": user_id, "product_id": product_id, "added": number_of_items},
        )
        return item

    def delete_item(self, product_id: int, user_id: int) -> None:
        """Delete an item; refused while credit lines or sales reference it"""
        with atomic(self.db):
            item = self.stock_repo.get_for_owner(product_id, user_id, for_update=True)
            if item is None:
                raise ProductNotFoundError(product_id)

            credit_lines, sale_items = self.stock_repo.reference_counts(product_id)
            if credit_lines or sale_items:
                raise StockInUseError(product_id, credit_lines, sale_items)

            self.stock_repo.delete(item)

        logger.info(f"Stock item {product_id} deleted", extra={"user_id": user_id, "product_id": product_id})

    def _require_supplier(self, supplier_id: int, user_id: int) -> None:
        if SupplierRepository(self.db).get_for_owner(supplier_id, user_id) is None:
            raise NotFoundOrUnauthorized("Supplier not found")

    def _invalidate_views(self, user_id: int) -> None:
        if self.reporting is not None:
            self.reporting.invalidate_owner(user_id)
