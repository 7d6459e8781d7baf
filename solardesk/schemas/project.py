from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal
from datetime import date, datetime


class ProjectCreate(BaseModel):
    name: str = Field(..., max_length=255, description="Project name")
    customer_name: str = Field(..., max_length=255, description="Customer name")
    email: Optional[str] = Field(None, max_length=255, description="Customer email")
    phone: Optional[str] = Field(None, max_length=50, description="Customer phone")
    address: Optional[str] = Field(None, description="Installation address")
    state: Optional[str] = Field(None, max_length=50, description="Region code: AP, Telangana")
    dealing_personal: Optional[str] = Field(None, max_length=255, description="Staff member handling the customer")
    proposal_amount: Decimal = Field(Decimal("0"), ge=0, description="Proposal amount")
    advance_payment: Decimal = Field(Decimal("0"), ge=0, description="Advance payment received at signup")
    loan_amount: Decimal = Field(Decimal("0"), ge=0, description="Loan amount")
    project_type: Optional[str] = Field(None, max_length=20, description="Project type: DCR, Non DCR")
    payment_mode: Optional[str] = Field(None, max_length=20, description="Financing mode: Loan, Cash")
    status: Optional[str] = Field("active", max_length=50, description="Free-text status label")
    current_stage: Optional[str] = Field(None, max_length=100, description="Current lifecycle stage")
    start_date: Optional[date] = Field(None, description="Project start date")
    kwh: Decimal = Field(Decimal("0"), ge=0, description="Installed capacity in kWh")

    model_config = ConfigDict(from_attributes=True)


class CustomerDetailsUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, max_length=255, description="Customer name")
    email: Optional[str] = Field(None, max_length=255, description="Customer email")
    phone: Optional[str] = Field(None, max_length=50, description="Customer phone")
    address: Optional[str] = Field(None, description="Installation address")
    kwh: Optional[Decimal] = Field(None, ge=0, description="Installed capacity in kWh")
    loan_amount: Optional[Decimal] = Field(None, ge=0, description="Loan amount")
    start_date: Optional[date] = Field(None, description="Project start date")
    dealing_personal: Optional[str] = Field(None, max_length=255, description="Staff member handling the customer")

    model_config = ConfigDict(from_attributes=True)


class ProjectDetailsUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255, description="Project name")
    status: Optional[str] = Field(None, max_length=50, description="Free-text status label")
    project_type: Optional[str] = Field(None, max_length=20, description="Project type: DCR, Non DCR")
    proposal_amount: Optional[Decimal] = Field(None, ge=0, description="Proposal amount")
    loan_amount: Optional[Decimal] = Field(None, ge=0, description="Loan amount")
    start_date: Optional[date] = Field(None, description="Project start date")
    current_stage: Optional[str] = Field(None, max_length=100, description="Stage selected directly; empty clears it")
    kwh: Optional[Decimal] = Field(None, ge=0, description="Installed capacity in kWh")
    state: Optional[str] = Field(None, max_length=50, description="Region code: AP, Telangana")

    model_config = ConfigDict(from_attributes=True)


class ProjectResponse(BaseModel):
    id: int
    name: str
    customer_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    dealing_personal: Optional[str] = None
    proposal_amount: Decimal
    advance_payment: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    loan_amount: Decimal
    project_type: Optional[str] = None
    payment_mode: Optional[str] = None
    status: Optional[str] = None
    current_stage: Optional[str] = None
    start_date: Optional[date] = None
    kwh: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    progress_percentage: float = Field(
        0.0,
        description="Stage progress: (stage index + 1) / stage count * 100, 0 when the stage is unknown",
    )

    model_config = ConfigDict(from_attributes=True)


class ProjectListResponse(BaseModel):
    status: str
    message: str
    data: list[ProjectResponse]
    total: int

    model_config = ConfigDict(from_attributes=True)
