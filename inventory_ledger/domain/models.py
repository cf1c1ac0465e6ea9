"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class CreditStatus(str, Enum):
    """Lifecycle states of a credit account"""

    PENDING = "Pending"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    ARCHIVED = "Archived"


class AccrualMode(str, Enum):
    """Trigger variants of the interest accrual engine"""

    MANUAL_DAYS = "manual-days"
    MONTHLY_BATCH = "monthly-batch"
    DATE_RANGE = "date-range"


class InterestMethod(str, Enum):
    """Formula that produced an interest calculation record"""

    PRORATED_30 = "prorated_30"  # balance x rate x days/30
    SIMPLE_365 = "simple_365"  # principal x rate x days/365


@dataclass
class LineItemInput:
    """Product line requested on a credit sale"""

    product_id: int
    number_of_items: int
    price_per_unit: Decimal
    quantity_unit: str = "units"

    @property
    def total_price(self) -> Decimal:
        return self.price_per_unit * self.number_of_items


@dataclass
class NewCreditAccount:
    """Input for opening a credit account"""

    customer_id: Optional[int]
    user_id: Optional[int]
    products: List[LineItemInput]
    interest_rate: Optional[Decimal]
    notes: str = ""
    partial_payment: Decimal = Decimal("0")
    credit_date: Optional[date] = None
    due_date: Optional[date] = None


@dataclass
class CreditCreated:
    """Summary returned after a credit account is opened"""

    credit_id: int
    credit_amount: Decimal
    total_items: int
    paid_amount: Decimal
    remaining_amount: Decimal
    total_interest_amount: Decimal
    credit_date: date
    status: str


@dataclass
class CreditUpdate:
    """Editable fields of a credit account; None means unchanged"""

    customer_id: Optional[int] = None
    interest_rate: Optional[Decimal] = None
    notes: Optional[str] = None
    status: Optional[CreditStatus] = None
    due_date: Optional[date] = None
    products: Optional[List[LineItemInput]] = None


@dataclass
class PaymentEntry:
    """Single payment journal entry"""

    payment_id: int
    payment_date: date
    payment_amount: Decimal
    payment_notes: str
    user_id: int


@dataclass
class PaymentReceipt:
    """Account snapshot after a payment is recorded"""

    credit_id: int
    paid_amount: Decimal
    remaining_amount: Decimal
    total_interest_amount: Decimal
    status: str
    credit_date: date
    payment: PaymentEntry


@dataclass
class LineItemView:
    """Line item with its product name resolved from stock"""

    product_id: int
    product_name: str
    number_of_items: int
    quantity_unit: str
    price_per_unit: Decimal
    total_price: Decimal


@dataclass
class CreditAccountView:
    """Read view of a credit account assembled by the reporting layer"""

    credit_id: int
    user_id: int
    customer_id: int
    customer_name: Optional[str]
    credit_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    total_interest_amount: Decimal
    interest_rate: Decimal
    credit_date: date
    due_date: Optional[date]
    status: str
    notes: str
    products: List[LineItemView]
    total_items: int
    created_at: datetime
    last_interest_calculation: Optional[date]
    duration_days: int
    overdue_days: Optional[int]


@dataclass
class InterestRecordView:
    """Interest calculation with payments made up to its date"""

    calculation_id: int
    calculation_date: date
    principal_amount: Decimal
    payment_amount: Decimal
    remaining_balance: Decimal
    duration_days: int
    interest_rate: Decimal
    interest_amount: Decimal
    month_name: str
    year: int
    method: str
    credit_id: Optional[int] = None


@dataclass
class InterestHistory:
    """Interest calculations for one account, newest first"""

    credit_id: int
    customer_name: Optional[str]
    credit_amount: Decimal
    remaining_amount: Decimal
    history: List[InterestRecordView]
    total_interest: Decimal


@dataclass
class AccrualResult:
    """Outcome of a days-based accrual on one account"""

    credit_id: int
    calculation_id: int
    days: int
    interest_amount: Decimal
    remaining_before: Decimal
    updated_balance: Decimal


@dataclass
class DateRangeAccrual:
    """Outcome of a simple-interest accrual between two dates"""

    credit_id: int
    calculation_id: int
    customer_name: Optional[str]
    credit_amount: Decimal
    interest_rate: Decimal
    start_date: date
    end_date: date
    duration_days: int
    total_paid: Decimal
    interest_amount: Decimal
    outstanding: Decimal

    @property
    def current_outstanding(self) -> Decimal:
        """Outstanding amount clamped at zero for display"""
        return max(Decimal("0"), self.outstanding)


@dataclass
class DueAccount:
    """Credit account selected for scheduled accrual"""

    credit_id: int
    user_id: int
    days_since_last_calc: int


@dataclass
class AccountOutcome:
    """Per-account result inside an accrual batch"""

    credit_id: int
    success: bool
    days: Optional[int] = None
    interest_amount: Optional[Decimal] = None
    updated_balance: Optional[Decimal] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Aggregate result of an accrual batch"""

    run_date: date
    outcomes: List[AccountOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)


@dataclass
class StockReservation:
    """Stock levels after a reservation was applied"""

    product_id: int
    product_name: str
    number_of_items: int
    quantity: Decimal


@dataclass
class SaleItemInput:
    """Product line on a cash sale"""

    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass
class StockUpdate:
    """Editable fields of a stock item; None means unchanged"""

    product_name: Optional[str] = None
    category: Optional[str] = None
    package_size: Optional[Decimal] = None
    number_of_items: Optional[int] = None
    quantity_unit: Optional[str] = None
    actual_price: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None
    low_stock_threshold: Optional[int] = None
    expiry_date: Optional[date] = None
    supplier_id: Optional[int] = None


@dataclass
class ExpiringStock:
    """Stock item whose expiry date falls inside the warning window"""

    product_id: int
    product_name: str
    supplier_name: str
    quantity: Decimal
    quantity_unit: str
    expiry_date: date
    days_until_expiry: int


@dataclass
class StockCounts:
    total: int
    low_stock: int
    expiring_soon: int


@dataclass
class CustomerUpdate:
    """Editable fields of a customer; None means unchanged"""

    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_score: Optional[int] = None


@dataclass
class CustomerPurchases:
    """A customer's cash sales and credit accounts, newest first"""

    customer_id: int
    customer_name: str
    sales: list
    credits: List[CreditAccountView]


@dataclass
class SalesStats:
    total_sales: int
    total_revenue: Decimal
    total_discount: Decimal
    net_revenue: Decimal
