"""Payment receipt rendering with reportlab."""
import io
from decimal import Decimal

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from solardesk.core.config import settings
from solardesk.schemas.payment import ReceiptData


def format_amount(amount: Decimal) -> str:
    return f"{settings.RECEIPT_CURRENCY_SYMBOL} {Decimal(amount):,.2f}"


def receipt_filename(receipt: ReceiptData) -> str:
    return f"payment_receipt_{receipt.receipt_number}.pdf"


def render_payment_receipt_pdf(receipt: ReceiptData) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"Payment Receipt {receipt.receipt_number}",
    )
    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="Muted",
            parent=styles["Normal"],
            textColor=colors.HexColor("#475569"),
            fontSize=10,
        )
    )

    received_on = receipt.receipt_date.strftime("%d %b %Y") if receipt.receipt_date else "-"

    story = [
        Paragraph(settings.COMPANY_NAME, styles["Title"]),
        Paragraph("Payment Receipt", styles["Heading2"]),
        Paragraph(f"Receipt No: {receipt.receipt_number}", styles["Muted"]),
        Spacer(1, 8 * mm),
    ]

    rows = [
        ["Date", received_on],
        ["Received From", receipt.received_from],
        ["Amount", format_amount(receipt.amount)],
        ["Payment Mode", receipt.payment_mode],
        ["Place of Supply", receipt.place_of_supply or "-"],
        ["Customer Address", Paragraph(receipt.customer_address or "-", styles["Normal"])],
    ]
    table = Table(rows, colWidths=[50 * mm, 110 * mm])
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#F1F5F9")),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#CBD5E1")),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    story.append(table)
    story.append(Spacer(1, 12 * mm))
    story.append(Paragraph("This is a computer generated receipt.", styles["Muted"]))

    doc.build(story)
    return buffer.getvalue()
