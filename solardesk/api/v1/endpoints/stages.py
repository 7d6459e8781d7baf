from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from solardesk.core.auth import SessionContext, get_current_session
from solardesk.core.database import get_db
from solardesk.schemas.stage import StageTransitionResponse
from solardesk.services.stage_service import StageTransitionService

router = APIRouter()

UNKNOWN_STAGE_MESSAGE = "Project stage is not set or not recognised"


def _no_op_message(result: StageTransitionResponse, at_end: str) -> str:
    if result.stage_index < 0:
        return UNKNOWN_STAGE_MESSAGE
    return at_end


@router.get("/{project_id}/stage", response_model=dict, status_code=status.HTTP_200_OK)
def get_stage_progress(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = StageTransitionService(db)
    return {
        "status": "success",
        "message": "Stage progress fetched successfully",
        "data": service.get_progress(project_id),
    }


@router.post("/{project_id}/stage/advance", response_model=dict, status_code=status.HTTP_200_OK)
def advance_stage(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Move the project one stage forward; a no-op at the last stage"""
    result = StageTransitionService(db).advance(project_id, session)
    return {
        "status": "success",
        "message": "Stage advanced" if result.moved else _no_op_message(result, "Project is already at the last stage"),
        "data": result,
    }


@router.post("/{project_id}/stage/retreat", response_model=dict, status_code=status.HTTP_200_OK)
def retreat_stage(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Move the project one stage back; a no-op at the first stage"""
    result = StageTransitionService(db).retreat(project_id, session)
    return {
        "status": "success",
        "message": "Stage moved back" if result.moved else _no_op_message(result, "Project is already at the first stage"),
        "data": result,
    }
