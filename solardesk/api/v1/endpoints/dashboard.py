from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from solardesk.core.auth import SessionContext, get_current_session
from solardesk.core.database import get_db
from solardesk.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/", response_model=dict, status_code=status.HTTP_200_OK)
def get_dashboard(
    year: Optional[int] = Query(None, description="Year to report on; defaults to the current year"),
    sort_by: str = Query("date", description="Sort field: date, amount or stage"),
    sort_order: str = Query("desc", description="Sort order: asc or desc"),
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Summary statistics, monthly trend and active projects table.

    Total revenue is withheld (null) for restricted users.
    """
    service = DashboardService(db)
    dashboard = service.get_dashboard(session, selected_year=year, sort_by=sort_by, sort_order=sort_order)
    return {
        "status": "success",
        "message": "Dashboard fetched successfully",
        "data": dashboard,
    }
