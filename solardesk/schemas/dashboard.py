from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from decimal import Decimal
from datetime import date, datetime


class DashboardStats(BaseModel):
    """Totals over every non-deleted project, regardless of the selected year"""
    total_customers: int
    active_projects: int
    completed_projects: int
    total_revenue: Optional[Decimal] = Field(None, description="Hidden (null) for restricted sessions")
    total_kwh: Decimal


class DashboardProjectRow(BaseModel):
    id: int
    name: str
    customer_name: str
    status: Optional[str] = None
    current_stage: Optional[str] = None
    stage_index: int
    progress_percentage: float
    proposal_amount: Decimal
    kwh: Decimal
    start_date: Optional[date] = None
    created_at: Optional[datetime] = None
    duration: str

    model_config = ConfigDict(from_attributes=True)


class DashboardResponse(BaseModel):
    selected_year: int
    year_options: List[int]
    sort_by: str
    sort_order: str
    stats: DashboardStats
    monthly_trends: List[int] = Field(..., description="Active projects of the selected year per creation month, Jan..Dec")
    active_projects: List[DashboardProjectRow]
