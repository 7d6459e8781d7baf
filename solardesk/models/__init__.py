"""
Every mapped class is imported here so relationship strings resolve and
Base.metadata is complete for create_all and Alembic.
"""

from solardesk.models.project import Project
from solardesk.models.payment import Payment
from solardesk.models.module_assignment import SolarModule, Inverter, CustomerModuleAssignment

__all__ = [
    "Project",
    "Payment",
    "SolarModule",
    "Inverter",
    "CustomerModuleAssignment",
]
