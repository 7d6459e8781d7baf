from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from solardesk.core.auth import SessionContext, get_current_session
from solardesk.core.database import get_db
from solardesk.schemas.payment import (
    LedgerResponse,
    PaymentCreate,
    PaymentFormDefaultsUpdate,
)
from solardesk.services.payment_service import PaymentLedgerService
from solardesk.services.payment_form_service import (
    get_payment_form_defaults,
    remember_payment_form_defaults,
)
from solardesk.services.project_service import ProjectService
from solardesk.utils.receipt_pdf import receipt_filename, render_payment_receipt_pdf

router = APIRouter()


@router.get("/{project_id}/payments", response_model=LedgerResponse, status_code=status.HTTP_200_OK)
def list_payments(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Payment ledger of a project, advance entry first, with running totals"""
    try:
        service = PaymentLedgerService(db)
        entries, _ = service.list_payments(project_id)
        return {
            "status": "success",
            "message": "Payments fetched successfully",
            "data": entries,
            "summary": service.get_summary(project_id),
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch payments: {str(e)}"
        )


@router.post("/{project_id}/payments", response_model=dict, status_code=status.HTTP_201_CREATED)
def add_payment(
    project_id: int,
    payment_data: PaymentCreate,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Record a payment; the date and mode are remembered as this user's form defaults"""
    service = PaymentLedgerService(db)
    payment = service.add_payment(project_id, payment_data, session)
    remember_payment_form_defaults(
        session,
        project_id,
        PaymentFormDefaultsUpdate(
            payment_date=payment_data.payment_date,
            payment_mode=payment_data.payment_mode,
        ),
    )
    return {
        "status": "success",
        "message": "Payment added successfully",
        "data": service.to_entry(payment, None),
        "summary": service.get_summary(project_id),
    }


@router.get("/{project_id}/payments/summary", response_model=dict, status_code=status.HTTP_200_OK)
def get_payment_summary(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = PaymentLedgerService(db)
    return {
        "status": "success",
        "message": "Payment summary fetched successfully",
        "data": service.get_summary(project_id),
    }


@router.delete("/{project_id}/payments/{payment_id}", response_model=dict, status_code=status.HTTP_200_OK)
def delete_payment(
    project_id: int,
    payment_id: str,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a ledger payment. The advance entry is never deleted."""
    service = PaymentLedgerService(db)
    deleted = service.remove_payment(project_id, payment_id, session)
    return {
        "status": "success",
        "message": "Payment deleted successfully" if deleted else "Advance payment cannot be deleted",
        "data": {"deleted": deleted, "summary": service.get_summary(project_id)},
    }


@router.get("/{project_id}/payments/{payment_id}/receipt", status_code=status.HTTP_200_OK)
def download_receipt(
    project_id: int,
    payment_id: str,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """PDF receipt for one ledger entry, including the advance"""
    receipt = PaymentLedgerService(db).get_receipt(project_id, payment_id)
    try:
        content = render_payment_receipt_pdf(receipt)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate receipt: {str(e)}"
        )
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{receipt_filename(receipt)}"'},
    )


@router.get("/{project_id}/payment-form", response_model=dict, status_code=status.HTTP_200_OK)
def get_payment_form(
    project_id: int,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    ProjectService(db).get_project_by_id(project_id)
    return {
        "status": "success",
        "message": "Payment form defaults fetched successfully",
        "data": get_payment_form_defaults(session, project_id),
    }


@router.put("/{project_id}/payment-form", response_model=dict, status_code=status.HTTP_200_OK)
def update_payment_form(
    project_id: int,
    form_data: PaymentFormDefaultsUpdate,
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    ProjectService(db).get_project_by_id(project_id)
    return {
        "status": "success",
        "message": "Payment form defaults saved",
        "data": remember_payment_form_defaults(session, project_id, form_data),
    }
