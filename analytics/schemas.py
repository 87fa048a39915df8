"""Request models for the write endpoints."""
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

TransactionType = Literal["revenue", "expense"]
BusinessSize = Literal["small", "medium", "enterprise"]

class TransactionCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    transaction_date: date
    description: Optional[str] = Field(None, max_length=255)
    amount: float = Field(..., gt=0)
    type: TransactionType
    category_id: int
    customer_id: Optional[int] = None
    recurring: bool = False
    recurring_frequency: Optional[str] = Field(None, max_length=20)

class TransactionUpdate(BaseModel):
    """Partial update; only the fields present in the request body are applied."""
    model_config = ConfigDict(extra="ignore")

    transaction_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=255)
    amount: Optional[float] = Field(None, gt=0)
    type: Optional[TransactionType] = None
    category_id: Optional[int] = None
    customer_id: Optional[int] = None
    recurring: Optional[bool] = None
    recurring_frequency: Optional[str] = Field(None, max_length=20)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "TransactionUpdate":
        for name in ("transaction_date", "amount", "type", "category_id", "recurring"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

class CustomerCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=150)
    email: Optional[str] = Field(None, max_length=150)
    industry: Optional[str] = Field(None, max_length=100)
    business_size: BusinessSize = "small"
    lifetime_value: float = Field(0, ge=0)
    acquisition_date: date = Field(default_factory=date.today)
