from sqlalchemy import Column, String, Date, Text, Numeric, CheckConstraint, or_
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import relationship
from solardesk.core.database import Base, BigIntegerPK

# Soft-delete marker stored in Project.status
DELETED_STATUS = "deleted"


class Project(Base):
    __tablename__ = "projects"

    id = Column(BigIntegerPK, primary_key=True, index=True)

    # Project Identification
    name = Column(String(255), nullable=False)

    # Customer Information
    customer_name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    state = Column(String(50), nullable=True)  # Region code: AP, Telangana
    dealing_personal = Column(String(255), nullable=True)

    # Financial Information
    proposal_amount = Column(Numeric(15, 2), default=0, nullable=False)
    advance_payment = Column(Numeric(15, 2), default=0, nullable=False)
    paid_amount = Column(Numeric(15, 2), default=0, nullable=False)  # Ledger total, excludes advance
    balance_amount = Column(Numeric(15, 2), default=0, nullable=False)
    loan_amount = Column(Numeric(15, 2), default=0, nullable=False)

    # Classification
    project_type = Column(String(20), nullable=True)  # DCR, Non DCR
    payment_mode = Column(String(20), nullable=True)  # Loan, Cash

    # Lifecycle
    status = Column(String(50), default="active", nullable=True)
    current_stage = Column(String(100), nullable=True)
    start_date = Column(Date, nullable=True)

    # Installed capacity
    kwh = Column(Numeric(10, 2), default=0, nullable=False)

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=True)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    # Relationships
    payments = relationship(
        "Payment",
        back_populates="project",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("proposal_amount >= 0", name="check_project_proposal_amount"),
        CheckConstraint("advance_payment >= 0", name="check_project_advance_payment"),
        CheckConstraint("loan_amount >= 0", name="check_project_loan_amount"),
        CheckConstraint("kwh >= 0", name="check_project_kwh"),
    )


def not_deleted_clause():
    """Status is NULL or anything but the soft-delete marker."""
    return or_(Project.status.is_(None), func.lower(Project.status) != DELETED_STATUS)
