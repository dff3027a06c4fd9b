"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml2html as mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import booking_cancellation_template, booking_confirmation_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_booking_confirmation_email(
    to: str,
    patient_name: str,
    token_number: str,
    doctor_name: str,
    clinic_name: str,
    appointment_date: str,
    appointment_time: str,
    fee: Optional[float] = None,
) -> dict:
    """Send appointment confirmation email to a patient"""
    mjml_content = booking_confirmation_template(
        patient_name=patient_name,
        token_number=token_number,
        doctor_name=doctor_name,
        clinic_name=clinic_name,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        fee=fee,
        cta_url=f"{FRONTEND_URL}/patient/appointments",
    )
    return await send_email(
        to=to,
        subject=f"Appointment Confirmed - Token {token_number}",
        mjml_content=mjml_content,
    )


async def send_booking_cancellation_email(
    to: str,
    patient_name: str,
    token_number: str,
    doctor_name: str,
    appointment_date: str,
    appointment_time: str,
) -> dict:
    mjml_content = booking_cancellation_template(
        patient_name=patient_name,
        token_number=token_number,
        doctor_name=doctor_name,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        cta_url=f"{FRONTEND_URL}/doctors",
    )
    return await send_email(
        to=to,
        subject=f"Appointment Cancelled - Token {token_number}",
        mjml_content=mjml_content,
    )
