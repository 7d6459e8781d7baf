from typing import Tuple, Optional
from decimal import Decimal
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from solardesk.core.auth import SessionContext
from solardesk.core.logging import get_logger
from solardesk.core.single_flight import SingleFlightGuard, mutation_guard
from solardesk.models.project import DELETED_STATUS, Project, not_deleted_clause
from solardesk.models.payment import Payment
from solardesk.schemas.project import ProjectCreate, CustomerDetailsUpdate, ProjectDetailsUpdate
from solardesk.services.payment_service import (
    ADVANCE_PAYMENT_MODE,
    advance_entry_date,
    compute_balance_amount,
)
from solardesk.utils.stage_sequence import PROJECT_STAGES, StageSequence

logger = get_logger("services.project")

REQUIRED_AMOUNT_FIELDS = ("proposal_amount", "advance_payment", "loan_amount", "kwh")


class ProjectService:
    def __init__(self, db: Session, stages: StageSequence = None, guard: SingleFlightGuard = None):
        self.db = db
        self.stages = stages or PROJECT_STAGES
        self.guard = guard or mutation_guard

    def _validate_stage(self, stage: Optional[str]):
        """Stage must be a sequence member or empty"""
        if stage and not self.stages.is_valid(stage):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid project stage. Must be one of: {', '.join(self.stages)}",
            )

    def _ensure_admin(self, session: SessionContext):
        if not session.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin privileges required",
            )

    def annotate(self, project: Project) -> Project:
        setattr(project, "progress_percentage", self.stages.progress_percentage(project.current_stage))
        return project

    def create_project(self, project_data: ProjectCreate, session: SessionContext) -> Project:
        """Create a project; a positive advance is also recorded as a flagged ledger row"""
        logger.info(f"Creating project '{project_data.name}' for {project_data.customer_name}")

        try:
            self._validate_stage(project_data.current_stage)

            project_dict = project_data.model_dump()
            if not project_dict.get("status"):
                project_dict["status"] = "active"
            if not project_dict.get("current_stage"):
                project_dict["current_stage"] = self.stages.stage_at(0)

            project = Project(**project_dict)
            project.paid_amount = Decimal("0")
            project.balance_amount = compute_balance_amount(
                project.proposal_amount, project.advance_payment, project.paid_amount
            )
            self.db.add(project)
            self.db.flush()

            if project.advance_payment and project.advance_payment > 0:
                # created_at is server-side; flush then refresh before dating the advance
                self.db.refresh(project)
                self.db.add(
                    Payment(
                        project_id=project.id,
                        amount=project.advance_payment,
                        payment_mode=ADVANCE_PAYMENT_MODE,
                        payment_date=advance_entry_date(project) or datetime.utcnow().date(),
                        is_advance=True,
                    )
                )

            self.db.commit()
            self.db.refresh(project)

            logger.info(f"Project {project.id} created successfully by user {session.user_id}")
            return self.annotate(project)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating project: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create project: {str(e)}",
            )

    def get_project_by_id(self, project_id: int) -> Project:
        """Get project by ID; soft-deleted projects are reported as missing"""
        project = (
            self.db.query(Project)
            .filter(Project.id == project_id, not_deleted_clause())
            .first()
        )
        if not project:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Project with ID {project_id} not found",
            )
        return self.annotate(project)

    def get_projects(
        self,
        skip: int = 0,
        limit: int = 100,
        status: str = None,
        customer_name: str = None,
    ) -> Tuple[list[Project], int]:
        """List non-deleted projects, most recent first"""
        query = self.db.query(Project).filter(not_deleted_clause())

        if status:
            query = query.filter(func.lower(Project.status) == status.lower())
        if customer_name:
            query = query.filter(Project.customer_name == customer_name)

        total = query.count()

        projects = query.order_by(
            Project.created_at.desc(),
            Project.id.desc()
        ).offset(skip).limit(limit).all()

        logger.info(f"Retrieved {len(projects)} projects (total: {total}) with filters: status={status}, customer_name={customer_name}")

        return [self.annotate(project) for project in projects], total

    def get_all_active_records(self) -> list[Project]:
        """Every non-deleted project, for aggregation"""
        return self.db.query(Project).filter(not_deleted_clause()).all()

    def _apply_update(self, project_id: int, update_dict: dict, flow: str, session: SessionContext) -> Project:
        self._ensure_admin(session)

        with self.guard.hold(project_id, flow):
            logger.info(f"Updating {flow} of project {project_id} by user {session.user_id}")
            try:
                project = self.get_project_by_id(project_id)

                for field, value in update_dict.items():
                    if value is None and field in REQUIRED_AMOUNT_FIELDS:
                        continue
                    setattr(project, field, value)

                project.balance_amount = compute_balance_amount(
                    project.proposal_amount, project.advance_payment, project.paid_amount
                )
                project.updated_at = datetime.now()

                self.db.commit()
                self.db.refresh(project)

                logger.info(f"Project {project.id} {flow} updated successfully")
                return self.annotate(project)

            except HTTPException:
                self.db.rollback()
                raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error updating {flow} of project {project_id}: {str(e)}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Failed to update {flow.replace('_', ' ')}",
                )

    def update_customer_details(
        self, project_id: int, customer_data: CustomerDetailsUpdate, session: SessionContext
    ) -> Project:
        """Customer edit flow"""
        update_dict = customer_data.model_dump(exclude_unset=True)
        if "customer_name" in update_dict and not (update_dict["customer_name"] or "").strip():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Customer name cannot be empty",
            )
        return self._apply_update(project_id, update_dict, "customer_details", session)

    def update_project_details(
        self, project_id: int, project_data: ProjectDetailsUpdate, session: SessionContext
    ) -> Project:
        """
        Project edit flow. ``current_stage`` may be set to any stage here,
        bypassing single-step transitions; an empty value clears it.
        """
        update_dict = project_data.model_dump(exclude_unset=True)
        if "name" in update_dict and not (update_dict["name"] or "").strip():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Project name cannot be empty",
            )
        if "current_stage" in update_dict:
            self._validate_stage(update_dict["current_stage"])
            update_dict["current_stage"] = update_dict["current_stage"] or None
        if (update_dict.get("status") or "").lower() == DELETED_STATUS:
            logger.warning(f"Status '{DELETED_STATUS}' set through project edit for project {project_id}")
        return self._apply_update(project_id, update_dict, "project_details", session)

    def delete_project(self, project_id: int, session: SessionContext) -> Project:
        """Soft delete: the row stays, status becomes 'deleted'"""
        return self._apply_update(project_id, {"status": DELETED_STATUS}, "project_details", session)
