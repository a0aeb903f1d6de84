"""
Payment Receipts

Renders the eCitizen payment receipt PDF for a completed transaction with
reportlab. Rendering is CPU-bound but small, so it runs inline.
"""

from io import BytesIO

from reportlab.lib.colors import Color, black, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from coop_portal.modules.integrations.models import PaymentStatus, PaymentTransaction
from coop_portal.modules.shared.errors import ConflictError

KENYA_RED = Color(139 / 255, 0, 0)
KENYA_GREEN = Color(0, 100 / 255, 0)

FOOTER_TEXT = "This is an official receipt from the Government of Kenya eCitizen platform."


class ReceiptUnavailableError(ConflictError):
    def __init__(self, bill_reference: str):
        super().__init__(
            message=f"No receipt is available for {bill_reference}: the payment has not completed.",
            error_code="RECEIPT_UNAVAILABLE",
        )


def format_amount(amount) -> str:
    """``2000`` -> ``KES 2,000``; cents are shown only when present."""
    value = float(amount)
    if value.is_integer():
        return f"KES {int(value):,}"
    return f"KES {value:,.2f}"


def receipt_filename(payment: PaymentTransaction) -> str:
    return f"Receipt-{payment.receipt_number}.pdf"


def receipt_fields(payment: PaymentTransaction) -> list[tuple[str, str]]:
    paid_at = payment.completed_at or payment.initiated_at
    return [
        ("Receipt Number", payment.receipt_number or ""),
        ("Bill Reference", payment.bill_reference),
        ("Date", paid_at.strftime("%d %b %Y %H:%M") if paid_at else ""),
        ("Service", payment.service_type.value.replace("_", " ").title()),
        ("Amount", format_amount(payment.amount)),
        ("Payment Method", payment.payment_method.value),
        ("Payer", payment.payer_name),
        ("Status", payment.payment_status.value),
    ]


def render_receipt(payment: PaymentTransaction) -> bytes:
    """
    Build the receipt PDF.

    Raises:
        ReceiptUnavailableError: If the payment is not COMPLETED
    """
    if payment.payment_status != PaymentStatus.COMPLETED or not payment.receipt_number:
        raise ReceiptUnavailableError(payment.bill_reference)

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"eCitizen Receipt {payment.receipt_number}")
    width, height = A4

    # Letterhead
    pdf.setFillColor(KENYA_RED)
    pdf.rect(0, height - 40 * mm, width, 40 * mm, stroke=0, fill=1)
    pdf.setFillColor(KENYA_GREEN)
    pdf.rect(0, height - 43 * mm, width, 3 * mm, stroke=0, fill=1)

    pdf.setFillColor(white)
    pdf.setFont("Helvetica-Bold", 20)
    pdf.drawCentredString(width / 2, height - 20 * mm, "REPUBLIC OF KENYA")
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawCentredString(width / 2, height - 32 * mm, "eCitizen Payment Receipt")

    pdf.setFillColor(black)
    y = height - 60 * mm
    for label, value in receipt_fields(payment):
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(20 * mm, y, f"{label}:")
        pdf.setFont("Helvetica", 10)
        pdf.drawString(65 * mm, y, value)
        y -= 9 * mm

    pdf.setFont("Helvetica", 8)
    pdf.drawCentredString(width / 2, y - 12 * mm, FOOTER_TEXT)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
