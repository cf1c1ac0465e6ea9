"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer, computed_field

from inventory_ledger.domain.models import (
    CreditStatus,
    CreditUpdate,
    CustomerUpdate,
    DateRangeAccrual,
    LineItemInput,
    NewCreditAccount,
    SaleItemInput,
    StockUpdate,
)

# Money travels as Decimal internally and as a JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Credit accounts


class CreditLineRequest(RequestModel):
    """Product line on POST /v1/credits"""

    product_id: Optional[int] = Field(None, validation_alias=_alias("product_id", "productId"))
    number_of_items: Optional[int] = Field(None, validation_alias=_alias("number_of_items", "numberOfItems"))
    quantity_unit: str = Field("units", validation_alias=_alias("quantity_unit", "quantityUnit"))
    price_per_unit: Optional[Decimal] = Field(None, validation_alias=_alias("price_per_unit", "pricePerUnit"))

    def to_domain(self) -> LineItemInput:
        return LineItemInput(
            product_id=self.product_id,
            number_of_items=self.number_of_items,
            price_per_unit=self.price_per_unit,
            quantity_unit=self.quantity_unit or "units",
        )


class CreditCreateRequest(RequestModel):
    """Request body for POST /v1/credits"""

    customer_id: Optional[int] = Field(None, validation_alias=_alias("customer_id", "customerId"))
    user_id: Optional[int] = Field(None, validation_alias=_alias("user_id", "userId"))
    products: List[CreditLineRequest] = Field(default_factory=list)
    interest_rate: Optional[Decimal] = Field(None, validation_alias=_alias("interest_rate", "interestRate"))
    notes: str = ""
    partial_payment: Decimal = Field(
        Decimal("0"),
        validation_alias=_alias("partial_payment", "partialPayment", "paid_amount", "paidAmount"),
    )
    credit_date: Optional[date] = Field(None, validation_alias=_alias("credit_date", "creditDate"))
    due_date: Optional[date] = Field(None, validation_alias=_alias("due_date", "dueDate"))

    def to_domain(self) -> NewCreditAccount:
        return NewCreditAccount(
            customer_id=self.customer_id,
            user_id=self.user_id,
            products=[p.to_domain() for p in self.products],
            interest_rate=self.interest_rate,
            notes=self.notes or "",
            partial_payment=self.partial_payment or Decimal("0"),
            credit_date=self.credit_date,
            due_date=self.due_date,
        )


class CreditUpdateRequest(RequestModel):
    """Request body for PUT /v1/credits/{credit_id}"""

    customer_id: Optional[int] = Field(None, validation_alias=_alias("customer_id", "customerId"))
    interest_rate: Optional[Decimal] = Field(None, validation_alias=_alias("interest_rate", "interestRate"))
    notes: Optional[str] = None
    status: Optional[CreditStatus] = None
    due_date: Optional[date] = Field(None, validation_alias=_alias("due_date", "dueDate"))
    products: Optional[List[CreditLineRequest]] = None

    def to_domain(self) -> CreditUpdate:
        return CreditUpdate(
            customer_id=self.customer_id,
            interest_rate=self.interest_rate,
            notes=self.notes,
            status=self.status,
            due_date=self.due_date,
            products=[p.to_domain() for p in self.products] if self.products is not None else None,
        )


class CreditCreatedResponse(ResponseModel):
    """Response for POST /v1/credits"""

    credit_id: int
    credit_amount: Money
    total_items: int
    paid_amount: Money
    remaining_amount: Money
    total_interest_amount: Money
    credit_date: date
    status: str


class LineItemResponse(ResponseModel):
    product_id: int
    product_name: str
    number_of_items: int
    quantity_unit: str
    price_per_unit: Money
    total_price: Money


class CreditAccountResponse(ResponseModel):
    """Response for GET /v1/credits/{credit_id}"""

    credit_id: int
    user_id: int
    customer_id: int
    customer_name: Optional[str] = None
    credit_amount: Money
    paid_amount: Money
    remaining_amount: Money
    total_interest_amount: Money
    interest_rate: Money
    credit_date: date
    due_date: Optional[date] = None
    status: str
    notes: str
    products: List[LineItemResponse]
    total_items: int
    created_at: Optional[datetime] = None
    last_interest_calculation: Optional[date] = None
    duration_days: int
    overdue_days: Optional[int] = None


class CreditListResponse(BaseModel):
    """Response for GET /v1/credits"""

    user_id: int
    credits: List[CreditAccountResponse]


class CreditStatusResponse(BaseModel):
    """Response for archive/unarchive"""

    credit_id: int
    status: str


# Payments


class PaymentRequest(RequestModel):
    """Request body for POST /v1/credits/{credit_id}/payments"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    payment_amount: Optional[Decimal] = Field(None, validation_alias=_alias("payment_amount", "paymentAmount"))
    payment_date: Optional[date] = Field(None, validation_alias=_alias("payment_date", "paymentDate"))
    payment_notes: str = Field("", validation_alias=_alias("payment_notes", "paymentNotes"))


class PaymentResponse(ResponseModel):
    payment_id: int
    payment_date: date
    payment_amount: Money
    payment_notes: str
    user_id: int


class PaymentReceiptResponse(ResponseModel):
    """Response for POST /v1/credits/{credit_id}/payments"""

    credit_id: int
    paid_amount: Money
    remaining_amount: Money
    total_interest_amount: Money
    status: str
    credit_date: date
    payment: PaymentResponse


class PaymentHistoryResponse(BaseModel):
    """Response for GET /v1/credits/{credit_id}/payments"""

    credit_id: int
    payments: List[PaymentResponse]


# Interest


class InterestAccrualRequest(RequestModel):
    """Request body for POST /v1/credits/{credit_id}/interest"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    days: Optional[int] = None


class InterestAccrualResponse(ResponseModel):
    credit_id: int
    calculation_id: int
    days: int
    interest_amount: Money
    remaining_before: Money
    updated_balance: Money


class DateRangeRequest(RequestModel):
    """Request body for POST /v1/credits/{credit_id}/interest/date-range"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    start_date: Optional[date] = Field(None, validation_alias=_alias("start_date", "startDate"))
    end_date: Optional[date] = Field(None, validation_alias=_alias("end_date", "endDate"))


class CreditDetails(BaseModel):
    credit_id: int
    customer_name: Optional[str] = None
    credit_amount: Money
    interest_rate: Money
    duration_days: int
    total_paid: Money
    interest_amount: Money
    current_outstanding: Money


class InterestBreakdownItem(BaseModel):
    date: date
    principal: Money
    payment: Money
    outstanding: Money
    days: int
    interest_rate: Money
    interest: Money


class InterestSummary(BaseModel):
    total_interest: Money
    total_payments: Money
    total_outstanding: Money


class DateRangeResponse(BaseModel):
    """Breakdown returned by a date-range accrual"""

    calculation_id: int
    start_date: date
    end_date: date
    credit_details: CreditDetails
    interest_breakdown: List[InterestBreakdownItem]
    summary: InterestSummary

    @classmethod
    def from_domain(cls, accrual: DateRangeAccrual) -> "DateRangeResponse":
        return cls(
            calculation_id=accrual.calculation_id,
            start_date=accrual.start_date,
            end_date=accrual.end_date,
            credit_details=CreditDetails(
                credit_id=accrual.credit_id,
                customer_name=accrual.customer_name,
                credit_amount=accrual.credit_amount,
                interest_rate=accrual.interest_rate,
                duration_days=accrual.duration_days,
                total_paid=accrual.total_paid,
                interest_amount=accrual.interest_amount,
                current_outstanding=accrual.current_outstanding,
            ),
            interest_breakdown=[
                InterestBreakdownItem(
                    date=accrual.end_date,
                    principal=accrual.credit_amount,
                    payment=accrual.total_paid,
                    outstanding=accrual.outstanding,
                    days=accrual.duration_days,
                    interest_rate=accrual.interest_rate,
                    interest=accrual.interest_amount,
                )
            ],
            summary=InterestSummary(
                total_interest=accrual.interest_amount,
                total_payments=accrual.total_paid,
                total_outstanding=accrual.current_outstanding,
            ),
        )


class InterestRecordResponse(ResponseModel):
    calculation_id: int
    credit_id: Optional[int] = None
    calculation_date: date
    principal_amount: Money
    payment_amount: Money
    remaining_balance: Money
    duration_days: int
    interest_rate: Money
    interest_amount: Money
    month_name: str
    year: int
    method: str


class InterestHistoryResponse(ResponseModel):
    """Response for GET /v1/credits/{credit_id}/interest/history"""

    credit_id: int
    customer_name: Optional[str] = None
    credit_amount: Money
    remaining_amount: Money
    history: List[InterestRecordResponse]
    total_interest: Money


class MonthlyBatchRequest(RequestModel):
    """Request body for POST /v1/interest/monthly-batch"""

    user_id: Optional[int] = Field(None, validation_alias=_alias("user_id", "userId"))


class AccountOutcomeResponse(ResponseModel):
    credit_id: int
    success: bool
    days: Optional[int] = None
    interest_amount: Optional[Money] = None
    updated_balance: Optional[Money] = None
    error: Optional[str] = None


class BatchResponse(ResponseModel):
    """Response for POST /v1/interest/monthly-batch"""

    run_date: date
    succeeded: int
    failed: int
    outcomes: List[AccountOutcomeResponse]


class CalculationItem(InterestRecordResponse):
    @computed_field
    @property
    def month(self) -> str:
        return f"{self.month_name} {self.year}"


class CalculationsResponse(BaseModel):
    """Response for GET /v1/interest/calculations"""

    user_id: int
    calculations: List[CalculationItem]


# Stock


class StockCreateRequest(RequestModel):
    """Request body for POST /v1/stock"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    product_name: str = Field(..., min_length=1, validation_alias=_alias("product_name", "productName"))
    category: str = Field(..., min_length=1)
    number_of_items: int = Field(0, ge=0, validation_alias=_alias("number_of_items", "numberOfItems"))
    package_size: Optional[Decimal] = Field(None, gt=0, validation_alias=_alias("package_size", "packageSize"))
    quantity_unit: str = Field("units", validation_alias=_alias("quantity_unit", "quantityUnit"))
    actual_price: Decimal = Field(Decimal("0"), ge=0, validation_alias=_alias("actual_price", "actualPrice"))
    selling_price: Decimal = Field(Decimal("0"), ge=0, validation_alias=_alias("selling_price", "sellingPrice"))
    low_stock_threshold: Optional[int] = Field(
        None, ge=0, validation_alias=_alias("low_stock_threshold", "lowStockThreshold")
    )
    expiry_date: Optional[date] = Field(None, validation_alias=_alias("expiry_date", "expiryDate"))
    supplier_id: Optional[int] = Field(None, validation_alias=_alias("supplier_id", "supplierId"))


class StockUpdateRequest(RequestModel):
    """Request body for PUT /v1/stock/{product_id}; omitted fields stay as they are"""

    product_name: Optional[str] = Field(None, validation_alias=_alias("product_name", "productName"))
    category: Optional[str] = None
    package_size: Optional[Decimal] = Field(None, validation_alias=_alias("package_size", "packageSize"))
    number_of_items: Optional[int] = Field(None, validation_alias=_alias("number_of_items", "numberOfItems"))
    quantity_unit: Optional[str] = Field(None, validation_alias=_alias("quantity_unit", "quantityUnit"))
    actual_price: Optional[Decimal] = Field(None, validation_alias=_alias("actual_price", "actualPrice"))
    selling_price: Optional[Decimal] = Field(None, validation_alias=_alias("selling_price", "sellingPrice"))
    low_stock_threshold: Optional[int] = Field(
        None, ge=0, validation_alias=_alias("low_stock_threshold", "lowStockThreshold")
    )
    expiry_date: Optional[date] = Field(None, validation_alias=_alias("expiry_date", "expiryDate"))
    supplier_id: Optional[int] = Field(None, validation_alias=_alias("supplier_id", "supplierId"))

    def to_domain(self) -> StockUpdate:
        return StockUpdate(**self.model_dump())


class RestockRequest(RequestModel):
    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    number_of_items: int = Field(..., validation_alias=_alias("number_of_items", "numberOfItems"))


class StockResponse(ResponseModel):
    id: int
    user_id: int
    product_name: str
    category: str
    package_size: Optional[Money] = None
    number_of_items: int
    quantity_unit: str
    quantity: Money
    actual_price: Money
    selling_price: Money
    low_stock_threshold: Optional[int] = None
    expiry_date: Optional[date] = None
    supplier_id: Optional[int] = None


class StockListResponse(BaseModel):
    user_id: int
    items: List[StockResponse]


class ExpiringStockResponse(ResponseModel):
    product_id: int
    product_name: str
    supplier_name: str
    quantity: Money
    quantity_unit: str
    expiry_date: date
    days_until_expiry: int


class ExpiringStockListResponse(BaseModel):
    user_id: int
    items: List[ExpiringStockResponse]


class StockCountsResponse(ResponseModel):
    user_id: int
    total: int
    low_stock: int
    expiring_soon: int


# Customers


class CustomerCreateRequest(RequestModel):
    """Request body for POST /v1/customers"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    customer_name: Optional[str] = Field(None, validation_alias=_alias("customer_name", "customerName"))
    phone_number: Optional[str] = Field(None, validation_alias=_alias("phone_number", "phoneNumber"))
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_score: Optional[int] = Field(None, validation_alias=_alias("credit_score", "creditScore"))


class CustomerUpdateRequest(RequestModel):
    """Request body for PUT /v1/customers/{customer_id}"""

    customer_name: Optional[str] = Field(None, validation_alias=_alias("customer_name", "customerName"))
    phone_number: Optional[str] = Field(None, validation_alias=_alias("phone_number", "phoneNumber"))
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_score: Optional[int] = Field(None, validation_alias=_alias("credit_score", "creditScore"))

    def to_domain(self) -> CustomerUpdate:
        return CustomerUpdate(**self.model_dump())


class CustomerResponse(ResponseModel):
    id: int
    user_id: int
    customer_name: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_score: int


class CustomerListResponse(BaseModel):
    user_id: int
    customers: List[CustomerResponse]


class CreditScoreResponse(BaseModel):
    customer_id: int
    credit_score: int


# Sales


class SaleItemRequest(RequestModel):
    product_id: int = Field(..., validation_alias=_alias("product_id", "productId"))
    quantity: int
    unit_price: Decimal = Field(..., validation_alias=_alias("unit_price", "unitPrice"))

    def to_domain(self) -> SaleItemInput:
        return SaleItemInput(product_id=self.product_id, quantity=self.quantity, unit_price=self.unit_price)


class SaleCreateRequest(RequestModel):
    """Request body for POST /v1/sales"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    customer_id: Optional[int] = Field(None, validation_alias=_alias("customer_id", "customerId"))
    items: List[SaleItemRequest] = Field(default_factory=list)
    discount: Decimal = Decimal("0")
    sale_date: Optional[date] = Field(None, validation_alias=_alias("sale_date", "saleDate"))
    payment_status: str = Field("Paid", validation_alias=_alias("payment_status", "paymentStatus"))


class SaleItemResponse(ResponseModel):
    product_id: int
    quantity: int
    unit_price: Money


class SaleResponse(ResponseModel):
    id: int
    user_id: int
    customer_id: Optional[int] = None
    sale_date: date
    total_amount: Money
    discount: Money
    final_amount: Money
    payment_status: str
    is_archived: bool = False
    items: List[SaleItemResponse]


class SaleListResponse(BaseModel):
    user_id: int
    sales: List[SaleResponse]


class SalesStatsResponse(ResponseModel):
    user_id: int
    total_sales: int
    total_revenue: Money
    total_discount: Money
    net_revenue: Money


class CustomerPurchasesResponse(ResponseModel):
    """Response for GET /v1/customers/{customer_id}/purchases"""

    customer_id: int
    customer_name: str
    sales: List[SaleResponse]
    credits: List[CreditAccountResponse]


# Suppliers


class SupplierCreateRequest(RequestModel):
    """Request body for POST /v1/suppliers"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    name: Optional[str] = None
    license_number: Optional[str] = Field(None, validation_alias=_alias("license_number", "licenseNumber"))
    phone: Optional[str] = None
    email: Optional[str] = None


class SupplierUpdateRequest(RequestModel):
    name: Optional[str] = None
    license_number: Optional[str] = Field(None, validation_alias=_alias("license_number", "licenseNumber"))
    phone: Optional[str] = None
    email: Optional[str] = None


class SupplierResponse(ResponseModel):
    id: int
    user_id: int
    name: str
    license_number: str
    phone: str
    email: str


class SupplierListResponse(BaseModel):
    user_id: int
    suppliers: List[SupplierResponse]


class CountResponse(BaseModel):
    user_id: int
    count: int


# Orders


class OrderCreateRequest(RequestModel):
    """Request body for POST /v1/orders"""

    user_id: int = Field(..., validation_alias=_alias("user_id", "userId"))
    supplier_id: Optional[int] = Field(None, validation_alias=_alias("supplier_id", "supplierId"))
    product_name: Optional[str] = Field(None, validation_alias=_alias("product_name", "productName"))
    quantity: Optional[Decimal] = None
    quantity_unit: Optional[str] = Field(None, validation_alias=_alias("quantity_unit", "quantityUnit"))
    number_of_items: Optional[int] = Field(None, validation_alias=_alias("number_of_items", "numberOfItems"))
    order_date: Optional[date] = Field(None, validation_alias=_alias("order_date", "orderDate"))
    status: Optional[str] = None


class OrderUpdateRequest(RequestModel):
    supplier_id: Optional[int] = Field(None, validation_alias=_alias("supplier_id", "supplierId"))
    product_name: Optional[str] = Field(None, validation_alias=_alias("product_name", "productName"))
    quantity: Optional[Decimal] = None
    quantity_unit: Optional[str] = Field(None, validation_alias=_alias("quantity_unit", "quantityUnit"))
    number_of_items: Optional[int] = Field(None, validation_alias=_alias("number_of_items", "numberOfItems"))
    order_date: Optional[date] = Field(None, validation_alias=_alias("order_date", "orderDate"))
    status: Optional[str] = None


class OrderResponse(ResponseModel):
    id: int
    user_id: int
    supplier_id: int
    supplier_name: str
    product_name: str
    quantity: Money
    quantity_unit: str
    number_of_items: int
    order_date: date
    status: str


class OrderListResponse(BaseModel):
    user_id: int
    orders: List[OrderResponse]
