import pytest
from fastapi import HTTPException

from solardesk.core.single_flight import SingleFlightGuard
from solardesk.services.stage_service import StageTransitionService
from solardesk.utils.stage_sequence import PROJECT_STAGES, StageSequence

from conftest import STAFF


ABC = StageSequence(["A", "B", "C"])


class TestStageSequence:

    def test_index_of_known_and_unknown(self):
        assert ABC.index_of("A") == 0
        assert ABC.index_of("C") == 2
        assert ABC.index_of("Z") == -1
        assert ABC.index_of("") == -1
        assert ABC.index_of(None) == -1

    def test_transition_predicates(self):
        assert ABC.can_advance("A")
        assert ABC.can_advance("B")
        assert not ABC.can_advance("C")
        assert not ABC.can_advance("unknown")

        assert not ABC.can_retreat("A")
        assert ABC.can_retreat("C")
        assert not ABC.can_retreat(None)

    def test_progress_percentage(self):
        assert ABC.progress_percentage("A") == pytest.approx(100 / 3)
        assert ABC.progress_percentage("C") == 100.0
        assert ABC.progress_percentage("unknown") == 0.0

    def test_default_sequence(self):
        assert PROJECT_STAGES.stage_at(0) == "Site Visit"
        assert PROJECT_STAGES.stage_at(len(PROJECT_STAGES) - 1) == "Completed"
        assert PROJECT_STAGES.progress_percentage("Site Visit") == 12.5
        assert "Installation" in PROJECT_STAGES


class TestStageTransitions:

    def test_advance_then_retreat(self, db, make_project):
        project = make_project(current_stage="B")
        service = StageTransitionService(db, stages=ABC)

        result = service.advance(project.id, STAFF)
        assert result.moved
        assert result.previous_stage == "B"
        assert result.current_stage == "C"
        assert result.stage_index == 2
        assert not result.can_advance

        again = service.advance(project.id, STAFF)
        assert not again.moved
        assert again.current_stage == "C"

        back = service.retreat(project.id, STAFF)
        assert back.moved
        assert back.current_stage == "B"

    def test_retreat_at_first_stage_is_noop(self, db, make_project):
        project = make_project(current_stage="A")
        result = StageTransitionService(db, stages=ABC).retreat(project.id, STAFF)

        assert not result.moved
        db.refresh(project)
        assert project.current_stage == "A"

    def test_unknown_stage_cannot_move(self, db, make_project):
        project = make_project(current_stage="Legacy Stage")
        service = StageTransitionService(db, stages=ABC)

        assert not service.advance(project.id, STAFF).moved
        assert not service.retreat(project.id, STAFF).moved
        assert service.get_progress(project.id).progress_percentage == 0.0

    def test_missing_project(self, db):
        with pytest.raises(HTTPException) as exc_info:
            StageTransitionService(db, stages=ABC).advance(999, STAFF)
        assert exc_info.value.status_code == 404

    def test_in_flight_transition_is_rejected(self, db, make_project):
        project = make_project(current_stage="A")
        guard = SingleFlightGuard()
        service = StageTransitionService(db, stages=ABC, guard=guard)

        assert guard.try_acquire(project.id, "stage")
        try:
            with pytest.raises(HTTPException) as exc_info:
                service.advance(project.id, STAFF)
            assert exc_info.value.status_code == 409
        finally:
            guard.release(project.id, "stage")

        assert service.advance(project.id, STAFF).current_stage == "B"
