from typing import Iterable, List, Optional
from decimal import Decimal
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from solardesk.core.auth import SessionContext
from solardesk.core.logging import get_logger
from solardesk.models.project import DELETED_STATUS, Project
from solardesk.schemas.dashboard import DashboardProjectRow, DashboardResponse, DashboardStats
from solardesk.services.project_service import ProjectService
from solardesk.utils.stage_sequence import PROJECT_STAGES, StageSequence
from solardesk.utils.time_format import format_elapsed_duration

logger = get_logger("services.dashboard")

SORT_FIELDS = ["date", "amount", "stage"]
SORT_ORDERS = ["asc", "desc"]
YEAR_OPTION_COUNT = 5


def _as_datetime(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return None


def project_reference_date(project: Project) -> Optional[datetime]:
    """start_date, falling back to created_at"""
    return _as_datetime(project.start_date) or _as_datetime(project.created_at)


def _status_is(project: Project, expected: str) -> bool:
    return isinstance(project.status, str) and project.status.lower() == expected


def _amount(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def sort_projects(
    projects: Iterable[Project],
    sort_by: str = "date",
    sort_order: str = "desc",
    stages: StageSequence = None,
) -> List[Project]:
    """
    Sort by ``date`` (oldest first when ascending), ``amount`` or ``stage``.
    Unknown stages rank as -1; projects without any date sort as oldest.
    """
    stages = stages or PROJECT_STAGES

    if sort_by == "date":
        def key(project):
            return project_reference_date(project) or datetime.min
    elif sort_by == "amount":
        def key(project):
            return _amount(project.proposal_amount)
    elif sort_by == "stage":
        def key(project):
            return stages.index_of(project.current_stage)
    else:
        raise ValueError(f"Unsupported sort field: {sort_by}")

    return sorted(projects, key=key, reverse=sort_order == "desc")


def year_options(current_year: int) -> List[int]:
    return [current_year - offset for offset in range(YEAR_OPTION_COUNT)]


def aggregate_dashboard(
    projects: Iterable[Project],
    selected_year: int,
    sort_by: str = "date",
    sort_order: str = "desc",
    stages: StageSequence = None,
    hide_revenue: bool = False,
    now: Optional[datetime] = None,
) -> DashboardResponse:
    """
    Summary statistics over every project passed in, plus the monthly trend
    and sorted table over active projects of ``selected_year``.

    Projects carrying the soft-delete status are ignored.
    """
    stages = stages or PROJECT_STAGES
    now = now or datetime.now(timezone.utc)
    projects = [p for p in projects if not _status_is(p, DELETED_STATUS)]

    customers = {p.customer_name for p in projects if p.customer_name}
    stats = DashboardStats(
        total_customers=len(customers),
        active_projects=sum(1 for p in projects if _status_is(p, "active")),
        completed_projects=sum(1 for p in projects if _status_is(p, "completed")),
        total_revenue=None if hide_revenue else sum((_amount(p.proposal_amount) for p in projects), Decimal("0")),
        total_kwh=sum((_amount(p.kwh) for p in projects), Decimal("0")),
    )

    year_projects = [
        p for p in projects
        if (project_reference_date(p) is not None and project_reference_date(p).year == selected_year)
    ]
    year_active = [
        p for p in sort_projects(year_projects, sort_by, sort_order, stages)
        if _status_is(p, "active")
    ]

    monthly_trends = [0] * 12
    for project in year_active:
        created = _as_datetime(project.created_at) or project_reference_date(project)
        monthly_trends[created.month - 1] += 1

    rows = [
        DashboardProjectRow(
            id=p.id,
            name=p.name,
            customer_name=p.customer_name,
            status=p.status,
            current_stage=p.current_stage,
            stage_index=stages.index_of(p.current_stage),
            progress_percentage=stages.progress_percentage(p.current_stage),
            proposal_amount=_amount(p.proposal_amount),
            kwh=_amount(p.kwh),
            start_date=p.start_date,
            created_at=p.created_at,
            duration=format_elapsed_duration(p.start_date or p.created_at, now),
        )
        for p in year_active
    ]

    return DashboardResponse(
        selected_year=selected_year,
        year_options=year_options(now.year),
        sort_by=sort_by,
        sort_order=sort_order,
        stats=stats,
        monthly_trends=monthly_trends,
        active_projects=rows,
    )


class DashboardService:
    def __init__(self, db: Session, stages: StageSequence = None):
        self.db = db
        self.stages = stages or PROJECT_STAGES

    def get_dashboard(
        self,
        session: SessionContext,
        selected_year: Optional[int] = None,
        sort_by: str = "date",
        sort_order: str = "desc",
    ) -> DashboardResponse:
        if sort_by not in SORT_FIELDS:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid sort field. Must be one of: {', '.join(SORT_FIELDS)}",
            )
        if sort_order not in SORT_ORDERS:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid sort order. Must be one of: {', '.join(SORT_ORDERS)}",
            )

        now = datetime.now(timezone.utc)
        selected_year = selected_year or now.year
        logger.info(f"Building dashboard for {selected_year} sorted by {sort_by} {sort_order}")

        try:
            projects = ProjectService(self.db, self.stages).get_all_active_records()
            dashboard = aggregate_dashboard(
                projects,
                selected_year,
                sort_by=sort_by,
                sort_order=sort_order,
                stages=self.stages,
                hide_revenue=session.is_restricted,
                now=now,
            )
        except Exception as e:
            logger.error(f"Error building dashboard: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch reports data",
            )

        logger.info(
            f"Dashboard built: customers={dashboard.stats.total_customers}, "
            f"active={dashboard.stats.active_projects}, completed={dashboard.stats.completed_projects}, "
            f"year_active={len(dashboard.active_projects)}"
        )
        return dashboard
