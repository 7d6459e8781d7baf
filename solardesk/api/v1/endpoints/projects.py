from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from solardesk.core.auth import SessionContext, get_current_session, require_admin
from solardesk.core.database import get_db
from solardesk.schemas.project import (
    ProjectCreate,
    CustomerDetailsUpdate,
    ProjectDetailsUpdate,
    ProjectResponse,
    ProjectListResponse,
)
from solardesk.services.project_service import ProjectService
from solardesk.services.module_assignment_service import ModuleAssignmentService

router = APIRouter()


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    session: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create a new project"""
    try:
        service = ProjectService(db)
        project = service.create_project(project_data, session)
        return {
            "status": "success",
            "message": "Project created successfully",
            "data": ProjectResponse.model_validate(project),
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create project: {str(e)}"
        )


@router.get("/", response_model=ProjectListResponse, status_code=status.HTTP_200_OK)
def get_projects(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records to return"),
    status_filter: str = Query(None, alias="status", description="Filter by status label (case-insensitive)"),
    customer_name: str = Query(None, description="Filter by customer name"),
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List non-deleted projects, most recent first."""
    try:
        service = ProjectService(db)
        projects, total = service.get_projects(
            skip=skip,
            limit=limit,
            status=status_filter,
            customer_name=customer_name,
        )
        return {
            "status": "success",
            "message": "Projects fetched successfully",
            "data": [ProjectResponse.model_validate(project) for project in projects],
            "total": total,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch projects: {str(e)}"
        )


@router.get("/{project_id}", response_model=dict, status_code=status.HTTP_200_OK)
def get_project(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get project by ID"""
    service = ProjectService(db)
    project = service.get_project_by_id(project_id)
    return {
        "status": "success",
        "message": "Project fetched successfully",
        "data": ProjectResponse.model_validate(project),
    }


@router.put("/{project_id}/customer", response_model=dict, status_code=status.HTTP_200_OK)
def update_customer_details(
    project_id: int,
    customer_data: CustomerDetailsUpdate,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Update the customer fields of a project"""
    service = ProjectService(db)
    project = service.update_customer_details(project_id, customer_data, session)
    return {
        "status": "success",
        "message": "Customer details updated successfully",
        "data": ProjectResponse.model_validate(project),
    }


@router.put("/{project_id}/details", response_model=dict, status_code=status.HTTP_200_OK)
def update_project_details(
    project_id: int,
    project_data: ProjectDetailsUpdate,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Update the project fields, including a direct stage correction"""
    service = ProjectService(db)
    project = service.update_project_details(project_id, project_data, session)
    return {
        "status": "success",
        "message": "Project details updated successfully",
        "data": ProjectResponse.model_validate(project),
    }


@router.delete("/{project_id}", status_code=status.HTTP_200_OK)
def delete_project(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Soft delete a project (status becomes 'deleted')"""
    service = ProjectService(db)
    service.delete_project(project_id, session)
    return {
        "status": "success",
        "message": "Project deleted successfully"
    }


@router.get("/{project_id}/module-assignments", response_model=dict, status_code=status.HTTP_200_OK)
def get_module_assignments(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Modules and inverters assigned to the project's customer, with installed kWh"""
    service = ModuleAssignmentService(db)
    summary = service.get_assignments_for_project(project_id)
    return {
        "status": "success",
        "message": "Module assignments fetched successfully",
        "data": summary,
    }
