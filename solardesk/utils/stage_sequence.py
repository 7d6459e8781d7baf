"""
Ordered project lifecycle stages.

The sequence is fixed for the lifetime of the process and is loaded from
``settings.PROJECT_STAGES``. Lookups on an unknown or empty stage return
index -1, which every helper here treats as "no progress".
"""
from typing import Iterable, Optional, Tuple

from solardesk.core.config import settings


class StageSequence:
    """Immutable ordered list of stage names"""

    def __init__(self, stages: Iterable[str]):
        self._stages: Tuple[str, ...] = tuple(stages)
        self._positions = {stage: idx for idx, stage in enumerate(self._stages)}

    @property
    def stages(self) -> Tuple[str, ...]:
        return self._stages

    @property
    def length(self) -> int:
        return len(self._stages)

    def __len__(self) -> int:
        return self.length

    def __iter__(self):
        return iter(self._stages)

    def __contains__(self, stage: object) -> bool:
        return stage in self._positions

    def index_of(self, stage: Optional[str]) -> int:
        if not stage:
            return -1
        return self._positions.get(stage, -1)

    def stage_at(self, index: int) -> str:
        return self._stages[index]

    def is_valid(self, stage: Optional[str]) -> bool:
        return self.index_of(stage) >= 0

    def can_advance(self, stage: Optional[str]) -> bool:
        idx = self.index_of(stage)
        return 0 <= idx < self.length - 1

    def can_retreat(self, stage: Optional[str]) -> bool:
        return self.index_of(stage) > 0

    def progress_percentage(self, stage: Optional[str]) -> float:
        idx = self.index_of(stage)
        if idx < 0 or not self.length:
            return 0.0
        return (idx + 1) / self.length * 100


PROJECT_STAGES = StageSequence(settings.PROJECT_STAGES)
