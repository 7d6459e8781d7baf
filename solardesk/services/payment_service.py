from typing import List, Optional, Tuple
from decimal import Decimal
from datetime import date, datetime

from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from solardesk.core.auth import SessionContext
from solardesk.core.logging import get_logger
from solardesk.core.single_flight import SingleFlightGuard, mutation_guard
from solardesk.models.project import Project, not_deleted_clause
from solardesk.models.payment import Payment
from solardesk.schemas.payment import (
    ADVANCE_ENTRY_ID,
    PAYMENT_MODES,
    LedgerEntry,
    LedgerSummary,
    PaymentCreate,
    ReceiptData,
)
from solardesk.utils.time_format import format_time_ago

logger = get_logger("services.payment")

ZERO = Decimal("0")
ADVANCE_PAYMENT_MODE = "Cash"


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_balance_amount(proposal_amount, advance_payment, paid_amount) -> Decimal:
    """balance = proposal - (advance + paid)"""
    return _dec(proposal_amount) - (_dec(advance_payment) + _dec(paid_amount))


def advance_entry_date(project: Project) -> Optional[date]:
    """The advance is dated by the project start, falling back to creation."""
    if project.start_date:
        return project.start_date
    if isinstance(project.created_at, datetime):
        return project.created_at.date()
    return project.created_at


def build_receipt_data(project: Project, entry: LedgerEntry, is_advance: bool) -> ReceiptData:
    """Receipt fields for a ledger entry; the advance is always receipted as Cash."""
    return ReceiptData(
        receipt_date=entry.payment_date or (entry.created_at.date() if entry.created_at else None),
        amount=entry.amount,
        received_from=project.customer_name,
        payment_mode=ADVANCE_PAYMENT_MODE if is_advance else (entry.payment_mode or "-"),
        place_of_supply=project.state,
        customer_address=project.address,
        receipt_number=f"{project.id}-{entry.id}",
    )


def split_advance(project: Project, rows: List[Payment]) -> Tuple[List[Payment], List[Payment], bool]:
    """
    Partition ledger rows into (advance rows, other rows, needs synthetic entry).

    Rows flagged ``is_advance`` are the advance. Projects created before that
    flag existed fall back to the first row matching ``advance_payment`` by
    amount and date; without such a row the advance is synthesized.
    """
    advance_rows = [row for row in rows if row.is_advance]
    if advance_rows:
        return advance_rows, [row for row in rows if not row.is_advance], False

    advance_amount = _dec(project.advance_payment)
    if advance_amount <= 0:
        return [], list(rows), False

    advance_date = advance_entry_date(project)
    matched = next(
        (row for row in rows if _dec(row.amount) == advance_amount and row.payment_date == advance_date),
        None,
    )
    if matched is None:
        return [], list(rows), True
    return [matched], [row for row in rows if row is not matched], False


class PaymentLedgerService:
    def __init__(self, db: Session, guard: SingleFlightGuard = None):
        self.db = db
        self.guard = guard or mutation_guard

    # ------------- Internal helpers -------------

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

    def _get_rows(self, project_id: int) -> List[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.project_id == project_id)
            .order_by(Payment.created_at.asc(), Payment.id.asc())
            .all()
        )

    def to_entry(self, payment: Payment, now: Optional[datetime], is_advance: bool = None) -> LedgerEntry:
        if is_advance is None:
            is_advance = bool(payment.is_advance)
        return LedgerEntry(
            id=str(payment.id),
            project_id=payment.project_id,
            amount=_dec(payment.amount),
            payment_mode=ADVANCE_PAYMENT_MODE if is_advance else payment.payment_mode,
            payment_date=payment.payment_date,
            created_at=payment.created_at,
            is_advance=is_advance,
            is_synthetic=False,
            deletable=not is_advance,
            elapsed=format_time_ago(payment.payment_date or payment.created_at, now),
        )

    def _synthetic_advance_entry(self, project: Project, now: Optional[datetime]) -> LedgerEntry:
        advance_date = advance_entry_date(project)
        return LedgerEntry(
            id=ADVANCE_ENTRY_ID,
            project_id=project.id,
            amount=_dec(project.advance_payment),
            payment_mode=ADVANCE_PAYMENT_MODE,
            payment_date=advance_date,
            created_at=project.created_at,
            is_advance=True,
            is_synthetic=True,
            deletable=False,
            elapsed=format_time_ago(advance_date, now),
        )

    def _validate_payment(self, payment_data: PaymentCreate) -> None:
        if payment_data.amount is None or not payment_data.payment_date or not payment_data.payment_mode:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Please fill all payment details.",
            )
        if payment_data.amount <= 0:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Payment amount must be greater than zero.",
            )
        if payment_data.payment_mode not in PAYMENT_MODES:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid payment mode. Must be one of: {', '.join(PAYMENT_MODES)}",
            )

    def refresh_cached_totals(self, project: Project) -> None:
        """Recompute paid/balance from ledger rows; caller commits."""
        self.db.flush()
        _, other_rows, _ = split_advance(project, self._get_rows(project.id))
        paid_amount = sum((_dec(row.amount) for row in other_rows), ZERO)
        project.paid_amount = paid_amount
        project.balance_amount = compute_balance_amount(
            project.proposal_amount, project.advance_payment, paid_amount
        )

    # ------------- Public methods -------------

    def list_payments(
        self, project_id: int, now: Optional[datetime] = None
    ) -> Tuple[List[LedgerEntry], Project]:
        """Ledger entries oldest first, with the advance payment always first."""
        project = self._get_project_or_404(project_id)
        advance_rows, other_rows, needs_synthetic = split_advance(project, self._get_rows(project_id))

        entries = [self.to_entry(row, now, is_advance=True) for row in advance_rows]
        entries += [self.to_entry(row, now, is_advance=False) for row in other_rows]
        if needs_synthetic:
            entries.insert(0, self._synthetic_advance_entry(project, now))

        return entries, project

    def get_summary(self, project_id: int) -> LedgerSummary:
        project = self._get_project_or_404(project_id)
        advance_rows, other_rows, needs_synthetic = split_advance(project, self._get_rows(project_id))

        paid_amount = sum((_dec(row.amount) for row in other_rows), ZERO)
        advance_payment = _dec(project.advance_payment)
        balance = compute_balance_amount(project.proposal_amount, advance_payment, paid_amount)

        return LedgerSummary(
            project_id=project.id,
            proposal_amount=_dec(project.proposal_amount),
            advance_payment=advance_payment,
            paid_amount=paid_amount,
            total_paid=advance_payment + paid_amount,
            balance_amount=balance,
            max_payment_amount=max(balance, ZERO),
            entry_count=len(advance_rows) + len(other_rows) + (1 if needs_synthetic else 0),
        )


    def add_payment(
        self, project_id: int, payment_data: PaymentCreate, session: SessionContext
    ) -> Payment:
        """Record a payment and refresh the project's cached totals in the same transaction."""
        self._validate_payment(payment_data)

        with self.guard.hold(project_id, "payment"):
            logger.info(
                f"Adding {payment_data.payment_mode} payment of {payment_data.amount} "
                f"to project {project_id} by user {session.user_id}"
            )
            try:
                project = self._get_project_or_404(project_id)

                ceiling = compute_balance_amount(
                    project.proposal_amount, project.advance_payment, project.paid_amount
                )
                if payment_data.amount > ceiling:
                    logger.warning(
                        f"Payment of {payment_data.amount} exceeds remaining balance {ceiling} "
                        f"for project {project_id}"
                    )

                payment = Payment(
                    project_id=project.id,
                    amount=payment_data.amount,
                    payment_mode=payment_data.payment_mode,
                    payment_date=payment_data.payment_date,
                    is_advance=False,
                )
                self.db.add(payment)
                self.refresh_cached_totals(project)
                self.db.commit()
                self.db.refresh(payment)

                logger.info(f"Payment {payment.id} added to project {project_id}")
                return payment

            except HTTPException:
                self.db.rollback()
                raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error adding payment to project {project_id}: {str(e)}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Failed to add payment.",
                )

    def remove_payment(self, project_id: int, payment_id: str, session: SessionContext) -> bool:
        """
        Delete a ledger row. The advance entry, synthetic or flagged, is never
        deleted; those calls return False without touching the store.
        """
        if payment_id == ADVANCE_ENTRY_ID:
            logger.info(f"Ignoring delete of advance entry for project {project_id}")
            return False

        if not (session.is_admin or session.is_finance):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admin or finance users can delete payments",
            )

        try:
            row_id = int(payment_id)
        except (TypeError, ValueError):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Payment with ID {payment_id} not found",
            )

        with self.guard.hold(project_id, "payment"):
            logger.info(f"Deleting payment {row_id} of project {project_id} by user {session.user_id}")
            try:
                payment = (
                    self.db.query(Payment)
                    .filter(Payment.id == row_id, Payment.project_id == project_id)
                    .first()
                )
                if not payment:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail=f"Payment with ID {payment_id} not found",
                    )
                project = self._get_project_or_404(project_id)
                advance_rows, _, _ = split_advance(project, self._get_rows(project_id))
                if any(row.id == payment.id for row in advance_rows):
                    logger.info(f"Ignoring delete of advance payment row {row_id}")
                    return False

                self.db.delete(payment)
                self.refresh_cached_totals(project)
                self.db.commit()

                logger.info(f"Payment {row_id} deleted from project {project_id}")
                return True

            except HTTPException:
                self.db.rollback()
                raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error deleting payment {row_id}: {str(e)}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Failed to delete payment",
                )

    def get_receipt(self, project_id: int, payment_id: str) -> ReceiptData:
        entries, project = self.list_payments(project_id)
        entry = next((e for e in entries if e.id == str(payment_id)), None)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Payment with ID {payment_id} not found",
            )
        return build_receipt_data(project, entry, entry.is_advance)
