from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from decimal import Decimal


class ModuleAssignmentResponse(BaseModel):
    id: int
    customer_name: str
    module_name: Optional[str] = None
    module_watt: int = 0
    inverter_name: Optional[str] = None
    quantity: int
    kwh: Decimal

    model_config = ConfigDict(from_attributes=True)


class ModuleAssignmentSummary(BaseModel):
    customer_name: str
    assignments: List[ModuleAssignmentResponse]
    total_kwh: Decimal
