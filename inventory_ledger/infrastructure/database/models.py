"""SQLAlchemy ORM models for suppliers, stock, customers, sales and credit accounts"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(12, 2)


class Customer(Base):
    """Customer of a store owner"""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    customer_name = Column(Text, nullable=False)
    phone_number = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    credit_score = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    credits = relationship("CreditAccount", back_populates="customer")


class Supplier(Base):
    """Supplier of a store owner; name, licence, phone and email are unique per owner"""

    __tablename__ = "suppliers"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_supplier_owner_name"),
        UniqueConstraint("user_id", "license_number", name="uq_supplier_owner_license"),
        UniqueConstraint("user_id", "phone", name="uq_supplier_owner_phone"),
        UniqueConstraint("user_id", "email", name="uq_supplier_owner_email"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(Text, nullable=False)
    license_number = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class StockItem(Base):
    """Product held in stock by an owner"""

    __tablename__ = "stock"
    __table_args__ = (UniqueConstraint("user_id", "product_name", name="uq_stock_owner_product"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)
    product_name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    package_size = Column(Numeric(10, 2), nullable=True)
    number_of_items = Column(Integer, nullable=False, default=0)
    quantity_unit = Column(Text, nullable=False, default="units")
    quantity = Column(Numeric(12, 2), nullable=False, default=0)
    actual_price = Column(MONEY, nullable=False, default=0)
    selling_price = Column(MONEY, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=True)
    expiry_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    supplier = relationship("Supplier")


class Order(Base):
    """Purchase order placed with a supplier"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    product_name = Column(Text, nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False)
    quantity_unit = Column(Text, nullable=False)
    number_of_items = Column(Integer, nullable=False)
    order_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="Pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    supplier = relationship("Supplier")

    @property
    def supplier_name(self) -> str:
        return self.supplier.name if self.supplier else "N/A"


class CreditAccount(Base):
    """Credit sale with its running balance"""

    __tablename__ = "credit_sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    credit_amount = Column(MONEY, nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=False, default=0)
    credit_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    paid_amount = Column(MONEY, nullable=False, default=0)
    remaining_amount = Column(MONEY, nullable=False)
    total_interest_amount = Column(MONEY, nullable=False, default=0)
    last_interest_calculation = Column(Date, nullable=True)
    status = Column(Text, nullable=False, default="Pending")
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("Customer", back_populates="credits")
    line_items = relationship(
        "CreditLineItem",
        back_populates="credit",
        cascade="all, delete-orphan",
        order_by="CreditLineItem.id",
    )
    payments = relationship(
        "CreditPayment",
        back_populates="credit",
        cascade="all, delete-orphan",
        order_by="CreditPayment.id",
    )
    interest_calculations = relationship(
        "InterestCalculation",
        back_populates="credit",
        cascade="all, delete-orphan",
        order_by="InterestCalculation.id",
    )


class CreditLineItem(Base):
    """Product snapshot taken when the credit sale was made"""

    __tablename__ = "credit_products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    credit_id = Column(Integer, ForeignKey("credit_sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("stock.id"), nullable=False, index=True)
    number_of_items = Column(Integer, nullable=False)
    quantity_unit = Column(Text, nullable=False, default="units")
    price_per_unit = Column(MONEY, nullable=False)

    credit = relationship("CreditAccount", back_populates="line_items")
    product = relationship("StockItem")


class CreditPayment(Base):
    """Payment journal entry against a credit account"""

    __tablename__ = "credit_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    credit_id = Column(Integer, ForeignKey("credit_sales.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    payment_amount = Column(MONEY, nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    credit = relationship("CreditAccount", back_populates="payments")


class InterestCalculation(Base):
    """Interest charged to a credit account for one period"""

    __tablename__ = "credit_interest_calculations"
    __table_args__ = (Index("idx_credit_calculation_date", "credit_id", "calculation_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    credit_id = Column(Integer, ForeignKey("credit_sales.id", ondelete="CASCADE"), nullable=False)
    calculation_date = Column(Date, nullable=False)
    principal_amount = Column(MONEY, nullable=False)
    remaining_balance = Column(MONEY, nullable=False, default=0)
    interest_rate = Column(Numeric(5, 2), nullable=False)
    interest_amount = Column(MONEY, nullable=False)
    duration_days = Column(Integer, nullable=True)
    month_name = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    method = Column(Text, nullable=False, default="prorated_30")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    credit = relationship("CreditAccount", back_populates="interest_calculations")


class Sale(Base):
    """Cash sale"""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    sale_date = Column(Date, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    discount = Column(MONEY, nullable=False, default=0)
    final_amount = Column(MONEY, nullable=False)
    payment_status = Column(Text, nullable=False, default="Paid")
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    customer = relationship("Customer")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id")


class SaleItem(Base):
    """Product line on a sale"""

    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("stock.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(MONEY, nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("StockItem")
