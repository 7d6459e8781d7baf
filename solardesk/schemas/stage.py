from pydantic import BaseModel, ConfigDict
from typing import Optional, List


class StageProgressResponse(BaseModel):
    project_id: int
    current_stage: Optional[str] = None
    stage_index: int
    total_stages: int
    progress_percentage: float
    can_advance: bool
    can_retreat: bool
    stages: List[str]

    model_config = ConfigDict(from_attributes=True)


class StageTransitionResponse(StageProgressResponse):
    previous_stage: Optional[str] = None
    moved: bool
