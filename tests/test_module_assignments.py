from decimal import Decimal

import pytest
from fastapi import HTTPException

from solardesk.models.module_assignment import CustomerModuleAssignment, Inverter, SolarModule
from solardesk.services.module_assignment_service import ModuleAssignmentService, assignment_kwh


def test_assignment_kwh():
    assert assignment_kwh(540, 10) == Decimal("5.4")
    assert assignment_kwh(None, 3) == Decimal("0")


def test_assignments_for_project(db, make_project):
    project = make_project(customer_name="Ravi Kumar")
    panel = SolarModule(name="Mono PERC 540", watt=540)
    inverter = Inverter(name="Growatt 5kW")
    db.add_all([panel, inverter])
    db.flush()
    db.add_all([
        CustomerModuleAssignment(customer_name="Ravi Kumar", module_id=panel.id, inverter_id=inverter.id, quantity=10),
        CustomerModuleAssignment(customer_name="Someone Else", module_id=panel.id, quantity=4),
    ])
    db.commit()

    summary = ModuleAssignmentService(db).get_assignments_for_project(project.id)

    assert summary.customer_name == "Ravi Kumar"
    assert len(summary.assignments) == 1
    assert summary.assignments[0].module_name == "Mono PERC 540"
    assert summary.assignments[0].inverter_name == "Growatt 5kW"
    assert summary.total_kwh == Decimal("5.4")


def test_assignments_for_missing_project(db):
    with pytest.raises(HTTPException) as exc_info:
        ModuleAssignmentService(db).get_assignments_for_project(404)
    assert exc_info.value.status_code == 404
