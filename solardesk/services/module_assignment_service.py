from decimal import Decimal

from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from solardesk.core.logging import get_logger
from solardesk.models.module_assignment import CustomerModuleAssignment
from solardesk.schemas.module_assignment import ModuleAssignmentResponse, ModuleAssignmentSummary
from solardesk.services.project_service import ProjectService

logger = get_logger("services.module_assignment")


def assignment_kwh(watt, quantity) -> Decimal:
    """Capacity contributed by one assignment: watt * quantity / 1000"""
    return Decimal(watt or 0) * Decimal(quantity or 0) / Decimal(1000)


class ModuleAssignmentService:
    def __init__(self, db: Session):
        self.db = db

    def get_assignments_for_customer(self, customer_name: str) -> ModuleAssignmentSummary:
        try:
            assignments = (
                self.db.query(CustomerModuleAssignment)
                .filter(CustomerModuleAssignment.customer_name == customer_name)
                .order_by(CustomerModuleAssignment.id.asc())
                .all()
            )
        except Exception as e:
            logger.error(f"Error fetching module assignments for {customer_name}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch module assignments",
            )

        rows = []
        for assignment in assignments:
            watt = assignment.module.watt if assignment.module else 0
            rows.append(
                ModuleAssignmentResponse(
                    id=assignment.id,
                    customer_name=assignment.customer_name,
                    module_name=assignment.module.name if assignment.module else None,
                    module_watt=watt or 0,
                    inverter_name=assignment.inverter.name if assignment.inverter else None,
                    quantity=assignment.quantity or 0,
                    kwh=assignment_kwh(watt, assignment.quantity),
                )
            )

        return ModuleAssignmentSummary(
            customer_name=customer_name,
            assignments=rows,
            total_kwh=sum((row.kwh for row in rows), Decimal("0")),
        )

    def get_assignments_for_project(self, project_id: int) -> ModuleAssignmentSummary:
        project = ProjectService(self.db).get_project_by_id(project_id)
        return self.get_assignments_for_customer(project.customer_name)
