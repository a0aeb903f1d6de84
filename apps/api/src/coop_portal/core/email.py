"""
Email Service using Resend

Handles transactional emails for the cooperative portal:
- Account created (temporary password)
- Registration application approved / rejected / more information required
"""

import asyncio
import logging
import os
from html import escape

import resend

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = os.getenv("RESEND_API_KEY")

# Configurations
EMAIL_FROM = os.getenv("EMAIL_FROM", "Cooperative Portal <noreply@coop-portal.go.ke>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

_STYLES = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #8b0000; margin-bottom: 24px; }
    .button { display: inline-block; background-color: #006400; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
    .info-box { background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


def _render(title: str, body_html: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head><style>{_STYLES}</style></head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body_html}
            <div class="footer">
                <p>Cooperative Societies Administration Portal</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_account_created(
    to_email: str,
    full_name: str,
    temp_password: str,
) -> bool:
    """Send login details for a newly created account."""
    body = f"""
        <p>Hello {escape(full_name)},</p>
        <p>An account has been created for you on the Cooperative Portal.</p>
        <div class="info-box">
            <p><strong>Email:</strong> {escape(to_email)}</p>
            <p><strong>Temporary password:</strong> {escape(temp_password)}</p>
        </div>
        <p>You will be asked to change this password when you first sign in.</p>
        <a href="{FRONTEND_URL}/login" class="button">Sign In</a>
    """
    return await send_email(
        to_email=to_email,
        subject="Your Cooperative Portal account",
        html_content=_render("Welcome to the Cooperative Portal", body),
    )


async def send_registration_approved(
    to_email: str,
    contact_person: str,
    cooperative_name: str,
    registration_number: str,
) -> bool:
    """Send approval email to the registration applicant."""
    safe_name = escape(cooperative_name)
    body = f"""
        <p>Dear {escape(contact_person)},</p>
        <p>The registration application for <strong>{safe_name}</strong> has been approved.</p>
        <div class="info-box">
            <p><strong>Registration number:</strong> {escape(registration_number)}</p>
        </div>
        <a href="{FRONTEND_URL}/dashboard" class="button">Open Dashboard</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"{safe_name} has been registered",
        html_content=_render("Registration Approved", body),
    )


async def send_registration_rejected(
    to_email: str,
    contact_person: str,
    cooperative_name: str,
    rejection_reason: str,
) -> bool:
    """Send rejection email to the registration applicant."""
    safe_name = escape(cooperative_name)
    body = f"""
        <p>Dear {escape(contact_person)},</p>
        <p>We regret to inform you that the registration application for
        <strong>{safe_name}</strong> was not approved.</p>
        <div class="info-box">
            <p><strong>Reason:</strong></p>
            <p>{escape(rejection_reason)}</p>
        </div>
        <p>You may start a new application once the issues above are addressed.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Registration application for {safe_name}",
        html_content=_render("Registration Not Approved", body),
    )


async def send_additional_info_required(
    to_email: str,
    contact_person: str,
    cooperative_name: str,
    review_notes: str,
) -> bool:
    """Ask the registration applicant for more information."""
    safe_name = escape(cooperative_name)
    body = f"""
        <p>Dear {escape(contact_person)},</p>
        <p>The county reviewer needs more information about the application for
        <strong>{safe_name}</strong>.</p>
        <div class="info-box">
            <p>{escape(review_notes)}</p>
        </div>
        <a href="{FRONTEND_URL}/applications" class="button">Update Application</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Action required: {safe_name}",
        html_content=_render("Additional Information Required", body),
    )
