from sqlalchemy import (
    Column,
    BigInteger,
    String,
    Date,
    Numeric,
    Boolean,
    CheckConstraint,
    ForeignKey,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.sql import func, expression
from sqlalchemy.orm import relationship

from solardesk.core.database import Base, BigIntegerPK


class Payment(Base):
    __tablename__ = "payment_history"

    id = Column(BigIntegerPK, primary_key=True, index=True)

    project_id = Column(
        BigInteger,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount = Column(Numeric(15, 2), nullable=False)
    payment_mode = Column(String(20), nullable=False)
    payment_date = Column(Date, nullable=False)

    # Marks the row recorded for the project's advance payment
    is_advance = Column(Boolean, default=False, server_default=expression.false(), nullable=False)

    created_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=True
    )

    project = relationship("Project", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        CheckConstraint(
            "payment_mode IN ('Cash', 'UPI', 'Cheque', 'Subsidy')",
            name="check_payment_mode",
        ),
    )
