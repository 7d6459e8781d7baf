from sqlalchemy import Column, BigInteger, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from solardesk.core.database import Base, BigIntegerPK


class SolarModule(Base):
    __tablename__ = "modules"

    id = Column(BigIntegerPK, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    watt = Column(Integer, nullable=False)


class Inverter(Base):
    __tablename__ = "inverters"

    id = Column(BigIntegerPK, primary_key=True, index=True)
    name = Column(String(255), nullable=False)


class CustomerModuleAssignment(Base):
    """Owned by the inventory side; read-only here."""

    __tablename__ = "customer_module_assignments"

    id = Column(BigIntegerPK, primary_key=True, index=True)
    customer_name = Column(String(255), nullable=False, index=True)
    module_id = Column(BigInteger, ForeignKey("modules.id"), nullable=True)
    inverter_id = Column(BigInteger, ForeignKey("inverters.id"), nullable=True)
    quantity = Column(Integer, default=0, nullable=False)

    module = relationship("SolarModule", lazy="joined")
    inverter = relationship("Inverter", lazy="joined")
