"""Data access layer for stock, suppliers, orders, customers, sales and credit entities"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import InsufficientStockError, ProductNotFoundError
from inventory_ledger.domain.models import (
    CreditStatus,
    DueAccount,
    LineItemInput,
    SaleItemInput,
    StockReservation,
)
from inventory_ledger.infrastructure.database.models import (
    CreditAccount,
    CreditLineItem,
    CreditPayment,
    Customer,
    InterestCalculation,
    Order,
    Sale,
    SaleItem,
    StockItem,
    Supplier,
)
from inventory_ledger.utils.date_utils import days_between

CLOSED_STATUSES = (CreditStatus.PAID.value, CreditStatus.ARCHIVED.value)


def _as_decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class CustomerRepository:
    """Repository for customers"""

    def __init__(self, db: Session):
        self.db = db

    def create_customer(
        self,
        user_id: int,
        customer_name: str,
        phone_number: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
        credit_score: int = 100,
    ) -> Customer:
        customer = Customer(
            user_id=user_id,
            customer_name=customer_name,
            phone_number=phone_number,
            address=address,
            notes=notes,
            credit_score=credit_score,
        )
        self.db.add(customer)
        self.db.flush()
        return customer

    def get_for_owner(self, customer_id: int, user_id: int) -> Optional[Customer]:
        return (
            self.db.query(Customer)
            .filter(Customer.id == customer_id, Customer.user_id == user_id)
            .first()
        )

    def list_for_owner(self, user_id: int) -> List[Customer]:
        return (
            self.db.query(Customer)
            .filter(Customer.user_id == user_id)
            .order_by(Customer.customer_name)
            .all()
        )

    def delete(self, customer: Customer) -> None:
        """Delete a customer with their credit accounts and sales"""
        for account in self.db.query(CreditAccount).filter(CreditAccount.customer_id == customer.id).all():
            self.db.delete(account)
        for sale in self.db.query(Sale).filter(Sale.customer_id == customer.id).all():
            self.db.delete(sale)
        self.db.delete(customer)
        self.db.flush()


class SupplierRepository:
    """Repository for suppliers"""

    def __init__(self, db: Session):
        self.db = db

    def create_supplier(self, user_id: int, **fields) -> Supplier:
        supplier = Supplier(user_id=user_id, **fields)
        self.db.add(supplier)
        self.db.flush()
        return supplier

    def get_for_owner(self, supplier_id: int, user_id: int) -> Optional[Supplier]:
        return (
            self.db.query(Supplier)
            .filter(Supplier.id == supplier_id, Supplier.user_id == user_id)
            .first()
        )

    def list_for_owner(self, user_id: int) -> List[Supplier]:
        return self.db.query(Supplier).filter(Supplier.user_id == user_id).order_by(Supplier.name).all()

    def count_for_owner(self, user_id: int) -> int:
        return self.db.query(func.count(Supplier.id)).filter(Supplier.user_id == user_id).scalar() or 0

    def find_conflict(self, user_id: int, fields: Dict[str, str], exclude_id: Optional[int] = None) -> Optional[str]:
        """Name of the first field whose value another supplier of this owner already uses"""
        for name, value in fields.items():
            query = self.db.query(Supplier.id).filter(Supplier.user_id == user_id, getattr(Supplier, name) == value)
            if exclude_id is not None:
                query = query.filter(Supplier.id != exclude_id)
            if query.first() is not None:
                return name
        return None

    def reference_counts(self, supplier_id: int) -> Tuple[int, int]:
        """(stock item count, order count) referencing a supplier"""
        stock_count = self.db.query(func.count(StockItem.id)).filter(StockItem.supplier_id == supplier_id).scalar()
        order_count = self.db.query(func.count(Order.id)).filter(Order.supplier_id == supplier_id).scalar()
        return stock_count or 0, order_count or 0

    def delete(self, supplier: Supplier) -> None:
        self.db.delete(supplier)
        self.db.flush()


class OrderRepository:
    """Repository for purchase orders placed with suppliers"""

    def __init__(self, db: Session):
        self.db = db

    def create_order(self, user_id: int, **fields) -> Order:
        order = Order(user_id=user_id, **fields)
        self.db.add(order)
        self.db.flush()
        return order

    def get_for_owner(self, order_id: int, user_id: int) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()

    def list_for_owner(self, user_id: int) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.order_date.desc(), Order.id.desc())
            .all()
        )

    def count_for_owner(self, user_id: int) -> int:
        return self.db.query(func.count(Order.id)).filter(Order.user_id == user_id).scalar() or 0

    def delete(self, order: Order) -> None:
        self.db.delete(order)
        self.db.flush()


class StockRepository:
    """Repository for stock items; also the inventory reservation backend"""

    def __init__(self, db: Session):
        self.db = db

    def create_item(self, user_id: int, **fields) -> StockItem:
        item = StockItem(user_id=user_id, **fields)
        self.db.add(item)
        self.db.flush()
        return item

    def get_for_owner(self, product_id: int, user_id: int, for_update: bool = False) -> Optional[StockItem]:
        query = self.db.query(StockItem).filter(StockItem.id == product_id, StockItem.user_id == user_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_name(self, user_id: int, product_name: str) -> Optional[StockItem]:
        return (
            self.db.query(StockItem)
            .filter(StockItem.user_id == user_id, StockItem.product_name == product_name)
            .first()
        )

    def list_for_owner(self, user_id: int) -> List[StockItem]:
        return (
            self.db.query(StockItem)
            .filter(StockItem.user_id == user_id)
            .order_by(StockItem.product_name)
            .all()
        )

    def list_low_stock(self, user_id: int, default_threshold: int) -> List[StockItem]:
        threshold = func.coalesce(StockItem.low_stock_threshold, default_threshold)
        return (
            self.db.query(StockItem)
            .filter(
                StockItem.user_id == user_id,
                or_(StockItem.number_of_items <= threshold, StockItem.quantity <= threshold),
            )
            .order_by(StockItem.number_of_items, StockItem.quantity)
            .all()
        )

    def list_expiring(self, user_id: int, today: date, horizon: date) -> List[StockItem]:
        """Items expiring between today and horizon, soonest first"""
        return (
            self.db.query(StockItem)
            .filter(
                StockItem.user_id == user_id,
                StockItem.expiry_date.isnot(None),
                StockItem.expiry_date >= today,
                StockItem.expiry_date <= horizon,
            )
            .order_by(StockItem.expiry_date, StockItem.product_name)
            .all()
        )

    def count_for_owner(self, user_id: int) -> int:
        return self.db.query(func.count(StockItem.id)).filter(StockItem.user_id == user_id).scalar() or 0

    def reference_counts(self, product_id: int) -> Tuple[int, int]:
        """(credit line count, sale item count) referencing a product"""
        credit_count = self.db.query(func.count(CreditLineItem.id)).filter(CreditLineItem.product_id == product_id).scalar()
        sale_count = self.db.query(func.count(SaleItem.id)).filter(SaleItem.product_id == product_id).scalar()
        return credit_count or 0, sale_count or 0

    def delete(self, item: StockItem) -> None:
        self.db.delete(item)
        self.db.flush()

    def adjust(self, item: StockItem, delta_items: int) -> None:
        item.number_of_items = item.number_of_items + delta_items
        item.quantity = Decimal(item.number_of_items) * _as_decimal(item.package_size or 1)

    def reserve(self, user_id: int, product_id: int, number_of_items: int) -> StockReservation:
        """Lock the stock row and take `number_of_items` out of it"""
        item = self.get_for_owner(product_id, user_id, for_update=True)
        if item is None:
            raise ProductNotFoundError(product_id)

        if item.number_of_items < number_of_items:
            raise InsufficientStockError(product_id, item.number_of_items, number_of_items)

        self.adjust(item, -number_of_items)
        self.db.flush()
        return StockReservation(
            product_id=item.id,
            product_name=item.product_name,
            number_of_items=item.number_of_items,
            quantity=_as_decimal(item.quantity),
        )


class CreditRepository:
    """Repository for credit accounts and their line items"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, **fields) -> CreditAccount:
        account = CreditAccount(**fields)
        self.db.add(account)
        self.db.flush()  # Get ID without committing
        return account

    def add_line_item(self, account: CreditAccount, line: LineItemInput) -> CreditLineItem:
        item = CreditLineItem(
            credit_id=account.id,
            product_id=line.product_id,
            number_of_items=line.number_of_items,
            quantity_unit=line.quantity_unit,
            price_per_unit=line.price_per_unit,
        )
        account.line_items.append(item)
        self.db.flush()
        return item

    def replace_line_items(self, account: CreditAccount, lines: List[LineItemInput]) -> None:
        account.line_items.clear()
        self.db.flush()
        for line in lines:
            self.add_line_item(account, line)

    def get_for_owner(self, credit_id: int, user_id: int, for_update: bool = False) -> Optional[CreditAccount]:
        """Fetch an account scoped to its owner; for_update takes the row lock"""
        query = self.db.query(CreditAccount).filter(
            CreditAccount.id == credit_id,
            CreditAccount.user_id == user_id,
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_for_owner(
        self,
        user_id: int,
        show_archived: bool = False,
        customer_id: Optional[int] = None,
    ) -> List[CreditAccount]:
        query = self.db.query(CreditAccount).filter(CreditAccount.user_id == user_id)
        if not show_archived:
            query = query.filter(CreditAccount.status != CreditStatus.ARCHIVED.value)
        if customer_id is not None:
            query = query.filter(CreditAccount.customer_id == customer_id)
        return query.order_by(CreditAccount.created_at.desc(), CreditAccount.id.desc()).all()

    def list_open(self) -> List[CreditAccount]:
        """Accounts that still accrue interest (not Paid, not Archived)"""
        return (
            self.db.query(CreditAccount)
            .filter(CreditAccount.status.notin_(CLOSED_STATUSES))
            .order_by(CreditAccount.id)
            .all()
        )

    def find_due_for_interest(self, today: date, interval_days: int) -> List[DueAccount]:
        """Open accounts with a positive balance not accrued in the last interval_days"""
        candidates = (
            self.db.query(CreditAccount)
            .filter(
                CreditAccount.status.notin_(CLOSED_STATUSES),
                CreditAccount.remaining_amount > 0,
            )
            .order_by(CreditAccount.id)
            .all()
        )

        due = []
        for account in candidates:
            since = account.last_interest_calculation or _to_date(account.created_at)
            days = days_between(since, today)
            if account.last_interest_calculation is None or days >= interval_days:
                due.append(DueAccount(credit_id=account.id, user_id=account.user_id, days_since_last_calc=days))
        return due

    def delete(self, account: CreditAccount) -> None:
        self.db.delete(account)
        self.db.flush()

    def payment_total(self, credit_id: int, up_to: Optional[date] = None) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(CreditPayment.payment_amount), 0)).filter(
            CreditPayment.credit_id == credit_id
        )
        if up_to is not None:
            query = query.filter(CreditPayment.payment_date <= up_to)
        return _as_decimal(query.scalar())

    def payment_totals(self, credit_ids: Iterable[int]) -> Dict[int, Decimal]:
        ids = list(credit_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(CreditPayment.credit_id, func.sum(CreditPayment.payment_amount))
            .filter(CreditPayment.credit_id.in_(ids))
            .group_by(CreditPayment.credit_id)
            .all()
        )
        return {credit_id: _as_decimal(total) for credit_id, total in rows}

    def interest_total(self, credit_id: int) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(InterestCalculation.interest_amount), 0))
            .filter(InterestCalculation.credit_id == credit_id)
            .scalar()
        )
        return _as_decimal(total)


class PaymentRepository:
    """Repository for the payment journal"""

    def __init__(self, db: Session):
        self.db = db

    def add_payment(
        self,
        credit_id: int,
        user_id: int,
        payment_amount: Decimal,
        payment_date: date,
        payment_notes: str = "",
    ) -> CreditPayment:
        payment = CreditPayment(
            credit_id=credit_id,
            user_id=user_id,
            payment_amount=payment_amount,
            payment_date=payment_date,
            payment_notes=payment_notes,
        )
        self.db.add(payment)
        self.db.flush()
        return payment

    def list_for_account(self, credit_id: int) -> List[CreditPayment]:
        return (
            self.db.query(CreditPayment)
            .filter(CreditPayment.credit_id == credit_id)
            .order_by(CreditPayment.payment_date.desc(), CreditPayment.id.desc())
            .all()
        )


class InterestRepository:
    """Repository for interest calculation records"""

    def __init__(self, db: Session):
        self.db = db

    def add_calculation(self, credit_id: int, **fields) -> InterestCalculation:
        record = InterestCalculation(credit_id=credit_id, **fields)
        self.db.add(record)
        self.db.flush()
        return record

    def get_for_account(self, calculation_id: int, credit_id: int) -> Optional[InterestCalculation]:
        return (
            self.db.query(InterestCalculation)
            .filter(InterestCalculation.id == calculation_id, InterestCalculation.credit_id == credit_id)
            .first()
        )

    def list_for_account(self, credit_id: int) -> List[InterestCalculation]:
        return (
            self.db.query(InterestCalculation)
            .filter(InterestCalculation.credit_id == credit_id)
            .order_by(InterestCalculation.calculation_date.desc(), InterestCalculation.id.desc())
            .all()
        )

    def list_for_owner(self, user_id: int) -> List[InterestCalculation]:
        return (
            self.db.query(InterestCalculation)
            .join(CreditAccount, CreditAccount.id == InterestCalculation.credit_id)
            .filter(CreditAccount.user_id == user_id)
            .order_by(InterestCalculation.calculation_date.desc(), InterestCalculation.id.desc())
            .all()
        )

    def delete(self, record: InterestCalculation) -> None:
        self.db.delete(record)
        self.db.flush()


class SaleRepository:
    """Repository for cash sales"""

    def __init__(self, db: Session):
        self.db = db

    def create_sale(self, user_id: int, items: List[SaleItemInput], **fields) -> Sale:
        sale = Sale(user_id=user_id, **fields)
        self.db.add(sale)
        self.db.flush()

        for item in items:
            sale.items.append(
                SaleItem(
                    sale_id=sale.id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
            )
        self.db.flush()
        return sale

    def get_for_owner(self, sale_id: int, user_id: int) -> Optional[Sale]:
        return self.db.query(Sale).filter(Sale.id == sale_id, Sale.user_id == user_id).first()

    def list_for_owner(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        show_archived: bool = False,
        customer_id: Optional[int] = None,
    ) -> List[Sale]:
        query = self.db.query(Sale).filter(Sale.user_id == user_id)
        if start_date is not None:
            query = query.filter(Sale.sale_date >= start_date)
        if end_date is not None:
            query = query.filter(Sale.sale_date <= end_date)
        if not show_archived:
            query = query.filter(Sale.is_archived.is_(False))
        if customer_id is not None:
            query = query.filter(Sale.customer_id == customer_id)
        return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()

    def totals(self, user_id: int) -> Tuple[int, Decimal, Decimal, Decimal]:
        """(count, total, discount, final) over the owner's non-archived sales"""
        count, total, discount, final = (
            self.db.query(
                func.count(Sale.id),
                func.coalesce(func.sum(Sale.total_amount), 0),
                func.coalesce(func.sum(Sale.discount), 0),
                func.coalesce(func.sum(Sale.final_amount), 0),
            )
            .filter(Sale.user_id == user_id, Sale.is_archived.is_(False))
            .one()
        )
        return count or 0, _as_decimal(total), _as_decimal(discount), _as_decimal(final)


def _to_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value
