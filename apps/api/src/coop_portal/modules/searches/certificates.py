"""
Official Search Certificates

Renders the search certificate PDF for a paid search with reportlab, on the
same letterhead as the eCitizen receipts.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from io import BytesIO

from reportlab.lib.colors import Color, black, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from coop_portal.modules.cooperatives.models import Cooperative
from coop_portal.modules.integrations.receipts import KENYA_GREEN, KENYA_RED, format_amount
from coop_portal.modules.searches.models import SearchRequest

GREY = Color(0.4, 0.4, 0.4)

VERIFY_TEXT = (
    "This is an electronically generated certificate. "
    "For verification, visit www.cmis.go.ke/verify"
)


@dataclass
class CertificateContext:
    """Everything printed on a certificate besides the search itself."""

    cooperative: Cooperative
    type_name: str | None = None
    county_name: str | None = None
    issued_at: datetime | None = None


def _date(value) -> str:
    return value.strftime("%d/%m/%Y") if value else "N/A"


def certificate_filename(search: SearchRequest, cooperative: Cooperative) -> str:
    return f"Certificate_{search.certificate_number}_{cooperative.registration_number}.pdf"


def verification_code(search: SearchRequest, cooperative: Cooperative) -> str:
    return f"CERT:{search.certificate_number}:{cooperative.registration_number}"


def cooperative_fields(context: CertificateContext) -> list[tuple[str, str]]:
    cooperative = context.cooperative
    return [
        ("Name", cooperative.name),
        ("Registration Number", cooperative.registration_number or "N/A"),
        ("Type", context.type_name or "N/A"),
        ("County", context.county_name or "N/A"),
        ("Status", cooperative.status.value),
        ("Registration Date", _date(cooperative.registration_date)),
        ("Total Members", str(cooperative.total_members)),
        ("Share Capital", format_amount(cooperative.total_share_capital)),
        ("Registered Office", cooperative.address or "N/A"),
        ("Contact Email", cooperative.email or "N/A"),
        ("Contact Phone", cooperative.phone or "N/A"),
    ]


def requester_fields(search: SearchRequest) -> list[tuple[str, str]]:
    return [
        ("Name", search.requester_name),
        ("ID Number", search.requester_id_number or "N/A"),
        ("Email", search.requester_email or "N/A"),
        ("Phone", search.requester_phone or "N/A"),
        ("Purpose", search.purpose or "N/A"),
    ]


def _section(pdf, title: str, fields: list[tuple[str, str]], y: float, value_x: float) -> float:
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(20 * mm, y, title)
    y -= 9 * mm
    for label, value in fields:
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(20 * mm, y, f"{label}:")
        pdf.setFont("Helvetica", 10)
        pdf.drawString(value_x, y, value)
        y -= 7 * mm
    return y - 5 * mm


def render_certificate(search: SearchRequest, context: CertificateContext) -> bytes:
    """Build the certificate PDF. The search must already carry its number."""
    issued_at = context.issued_at or datetime.now(UTC)
    cooperative = context.cooperative

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Official Search Certificate {search.certificate_number}")
    width, height = A4

    # Double border
    pdf.setLineWidth(0.5)
    pdf.rect(10 * mm, 10 * mm, width - 20 * mm, height - 20 * mm)
    pdf.rect(12 * mm, 12 * mm, width - 24 * mm, height - 24 * mm)

    # Letterhead
    pdf.setFillColor(KENYA_RED)
    pdf.rect(0, height - 40 * mm, width, 40 * mm, stroke=0, fill=1)
    pdf.setFillColor(KENYA_GREEN)
    pdf.rect(0, height - 45 * mm, width, 5 * mm, stroke=0, fill=1)

    pdf.setFillColor(white)
    pdf.setFont("Helvetica-Bold", 22)
    pdf.drawCentredString(width / 2, height - 20 * mm, "REPUBLIC OF KENYA")
    pdf.setFont("Helvetica", 13)
    pdf.drawCentredString(width / 2, height - 30 * mm, "STATE DEPARTMENT FOR COOPERATIVES")

    pdf.setFillColor(black)
    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawCentredString(width / 2, height - 60 * mm, "OFFICIAL SEARCH CERTIFICATE")

    y = height - 75 * mm
    pdf.setFont("Helvetica", 10)
    pdf.drawString(20 * mm, y, f"Certificate No: {search.certificate_number}")
    pdf.drawRightString(width - 20 * mm, y, f"Date: {_date(issued_at)}")
    y -= 15 * mm

    y = _section(pdf, "COOPERATIVE INFORMATION", cooperative_fields(context), y, 70 * mm)
    if search.requester_name:
        y = _section(pdf, "REQUESTER INFORMATION", requester_fields(search), y, 50 * mm)

    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(20 * mm, y, "CERTIFICATION")
    y -= 9 * mm
    pdf.setFont("Helvetica", 10)
    text = pdf.beginText(20 * mm, y)
    text.textLines(
        "This is to certify that the above information has been extracted from the official\n"
        "records of the State Department for Cooperatives, Republic of Kenya,\n"
        f"as of {_date(issued_at)}."
    )
    pdf.drawText(text)
    y -= 25 * mm

    pdf.setFont("Helvetica", 8)
    pdf.drawString(20 * mm, y, f"Search Reference: {search.search_number}")
    pdf.drawString(20 * mm, y - 5 * mm, f"Payment Reference: {search.payment_reference or 'N/A'}")

    pdf.setFont("Helvetica-Oblique", 9)
    pdf.drawString(20 * mm, 35 * mm, "_________________________")
    pdf.drawString(20 * mm, 30 * mm, "Authorized Signature")

    pdf.setFont("Helvetica", 8)
    pdf.drawString(width - 80 * mm, 40 * mm, "Verification code:")
    pdf.drawString(width - 80 * mm, 35 * mm, verification_code(search, cooperative))

    pdf.setFillColor(GREY)
    pdf.setFont("Helvetica", 7)
    pdf.drawCentredString(width / 2, 18 * mm, VERIFY_TEXT)
    pdf.drawCentredString(
        width / 2, 14 * mm, f"Generated on: {issued_at.strftime('%d/%m/%Y %H:%M')}"
    )

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
