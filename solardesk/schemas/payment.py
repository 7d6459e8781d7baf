from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from decimal import Decimal
from datetime import date, datetime


PAYMENT_MODES = ["Cash", "UPI", "Cheque", "Subsidy"]

# Reserved identifier of the ledger entry materialized from Project.advance_payment
ADVANCE_ENTRY_ID = "advance"


class PaymentCreate(BaseModel):
    # Checked by the ledger so missing fields get one user-facing message
    amount: Optional[Decimal] = Field(None, description="Payment amount, must be positive")
    payment_mode: Optional[str] = Field(None, description="Payment mode: Cash, UPI, Cheque, Subsidy")
    payment_date: Optional[date] = Field(None, description="Date the payment was received")

    @field_validator("amount", "payment_mode", "payment_date", mode="before")
    @classmethod
    def blank_as_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    model_config = ConfigDict(from_attributes=True)


class LedgerEntry(BaseModel):
    id: str
    project_id: int
    amount: Decimal
    payment_mode: Optional[str] = None
    payment_date: Optional[date] = None
    created_at: Optional[datetime] = None
    is_advance: bool = False
    is_synthetic: bool = Field(False, description="True when materialized from the project rather than stored")
    deletable: bool = True
    elapsed: str = "N/A"

    model_config = ConfigDict(from_attributes=True)


class LedgerSummary(BaseModel):
    project_id: int
    proposal_amount: Decimal
    advance_payment: Decimal
    paid_amount: Decimal = Field(..., description="Sum of ledger payments excluding the advance")
    total_paid: Decimal = Field(..., description="Advance plus ledger payments")
    balance_amount: Decimal
    max_payment_amount: Decimal = Field(..., description="Recommended ceiling for the next payment")
    entry_count: int

    model_config = ConfigDict(from_attributes=True)


class LedgerResponse(BaseModel):
    status: str
    message: str
    data: List[LedgerEntry]
    summary: LedgerSummary


class ReceiptData(BaseModel):
    receipt_date: Optional[date] = None
    amount: Decimal
    received_from: str
    payment_mode: str
    place_of_supply: Optional[str] = None
    customer_address: Optional[str] = None
    receipt_number: str


class PaymentFormDefaults(BaseModel):
    payment_date: date
    payment_mode: str


class PaymentFormDefaultsUpdate(BaseModel):
    payment_date: Optional[date] = None
    payment_mode: Optional[str] = None
