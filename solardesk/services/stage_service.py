from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from solardesk.core.auth import SessionContext
from solardesk.core.logging import get_logger
from solardesk.core.single_flight import SingleFlightGuard, mutation_guard
from solardesk.models.project import Project, not_deleted_clause
from solardesk.schemas.stage import StageProgressResponse, StageTransitionResponse
from solardesk.utils.stage_sequence import PROJECT_STAGES, StageSequence

logger = get_logger("services.stage")

ADVANCE = 1
RETREAT = -1


class StageTransitionService:
    """
    Single-step movement of a project through the stage sequence.

    ``advance`` moves from index i to i+1 when 0 <= i < length-1 and
    ``retreat`` from i to i-1 when i > 0. Anything else, including an
    unknown or empty stage, is a no-op reported with ``moved=False``.
    """

    def __init__(self, db: Session, stages: StageSequence = None, guard: SingleFlightGuard = None):
        self.db = db
        self.stages = stages or PROJECT_STAGES
        self.guard = guard or mutation_guard

    def _get_project_or_404(self, project_id: int) -> Project:
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
        return project

    def describe(self, project: Project) -> StageProgressResponse:
        stage = project.current_stage
        return StageProgressResponse(
            project_id=project.id,
            current_stage=stage,
            stage_index=self.stages.index_of(stage),
            total_stages=self.stages.length,
            progress_percentage=self.stages.progress_percentage(stage),
            can_advance=self.stages.can_advance(stage),
            can_retreat=self.stages.can_retreat(stage),
            stages=list(self.stages),
        )

    def get_progress(self, project_id: int) -> StageProgressResponse:
        return self.describe(self._get_project_or_404(project_id))

    def _transition(self, project_id: int, step: int, session: SessionContext) -> StageTransitionResponse:
        action = "advance" if step == ADVANCE else "retreat"

        with self.guard.hold(project_id, "stage"):
            project = self._get_project_or_404(project_id)
            previous_stage = project.current_stage
            allowed = (
                self.stages.can_advance(previous_stage)
                if step == ADVANCE
                else self.stages.can_retreat(previous_stage)
            )

            if not allowed:
                logger.info(
                    f"Stage {action} for project {project_id} is a no-op at stage '{previous_stage}'"
                )
                return StageTransitionResponse(
                    **self.describe(project).model_dump(),
                    previous_stage=previous_stage,
                    moved=False,
                )

            new_stage = self.stages.stage_at(self.stages.index_of(previous_stage) + step)
            logger.info(
                f"Moving project {project_id} from '{previous_stage}' to '{new_stage}' by user {session.user_id}"
            )
            try:
                project.current_stage = new_stage
                self.db.commit()
                self.db.refresh(project)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error updating stage of project {project_id}: {str(e)}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Failed to update project stage",
                )

            return StageTransitionResponse(
                **self.describe(project).model_dump(),
                previous_stage=previous_stage,
                moved=True,
            )

    def advance(self, project_id: int, session: SessionContext) -> StageTransitionResponse:
        return self._transition(project_id, ADVANCE, session)

    def retreat(self, project_id: int, session: SessionContext) -> StageTransitionResponse:
        return self._transition(project_id, RETREAT, session)
