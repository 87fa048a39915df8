# db/model.py

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

TRANSACTION_TYPES = ("revenue", "expense")
BUSINESS_SIZES = ("small", "medium", "enterprise")

def _money(nullable: bool = False, default=None) -> Column:
    return Column(Numeric(14, 2, asdecimal=False), nullable=nullable, default=default)


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("type IN ('revenue', 'expense')", name="ck_categories_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    category_name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    description = Column(String(255))


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False, index=True)
    email = Column(String(150))
    industry = Column(String(100))
    business_size = Column(String(20), nullable=False, default="small", index=True)
    lifetime_value = _money(default=0)
    acquisition_date = Column(Date, nullable=False)

    transactions = relationship("Transaction", back_populates="customer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "industry": self.industry,
            "business_size": self.business_size,
            "lifetime_value": self.lifetime_value,
            "acquisition_date": self.acquisition_date.isoformat() if self.acquisition_date else None,
        }


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("type IN ('revenue', 'expense')", name="ck_transactions_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    transaction_date = Column(Date, nullable=False, index=True)
    description = Column(String(255))
    amount = _money()
    type = Column(String(20), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    recurring = Column(Boolean, nullable=False, default=False)
    recurring_frequency = Column(String(20))

    category = relationship("Category")
    customer = relationship("Customer", back_populates="transactions")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_date": self.transaction_date.isoformat() if self.transaction_date else None,
            "description": self.description,
            "amount": self.amount,
            "type": self.type,
            "category_id": self.category_id,
            "customer_id": self.customer_id,
            "recurring": bool(self.recurring),
            "recurring_frequency": self.recurring_frequency,
        }


class SalesPipelineEntry(Base):
    __tablename__ = "sales_pipeline"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    stage_name = Column(String(50), nullable=False)
    stage_order = Column(Integer, nullable=False)
    entry_date = Column(Date, nullable=False)
    exit_date = Column(Date)
    value = _money(default=0)
    converted = Column(Boolean, nullable=False, default=False)


class CashflowProjection(Base):
    __tablename__ = "cashflow"

    id = Column(Integer, primary_key=True, index=True)
    period_date = Column(Date, nullable=False, index=True)
    projected_inflow = _money(default=0)
    projected_outflow = _money(default=0)
    actual_inflow = _money(nullable=True)
    actual_outflow = _money(nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    notes = Column(Text)


class KpiMetric(Base):
    __tablename__ = "kpi_metrics"

    id = Column(Integer, primary_key=True, index=True)
    metric_name = Column(String(100), nullable=False)
    metric_value = Column(Numeric(14, 2, asdecimal=False), nullable=False)
    target_value = Column(Numeric(14, 2, asdecimal=False))
    metric_type = Column(String(20), nullable=False, default="percentage")
    description = Column(String(255))
    metric_date = Column(Date, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
