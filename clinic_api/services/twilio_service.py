"""
Twilio SMS Service
Sends booking SMS through the Twilio REST API
"""

import logging
from typing import Optional

import httpx

from ..config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_FROM_NUMBER

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


async def send_sms(to_phone: str, message_body: str, message_type: str) -> tuple[bool, Optional[str]]:
    """
    Send SMS via Twilio

    Args:
        to_phone: Recipient phone number (E.164)
        message_body: SMS message content
        message_type: Type of message, for logging

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not to_phone:
        return False, "No phone number provided"

    if not to_phone.startswith("+"):
        logger.warning(f"Phone number not in E.164 format: {to_phone}")
        return False, "Phone number must be in E.164 format (e.g., +1234567890)"

    if not (TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER):
        return False, "SMS disabled - Twilio credentials not configured"

    try:
        logger.info(f"🚀 Sending {message_type} SMS to Twilio API for {to_phone}")
        async with httpx.AsyncClient() as client:
            response = await client.post(
                TWILIO_MESSAGES_URL.format(sid=TWILIO_ACCOUNT_SID),
                auth=(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN),
                data={"To": to_phone, "From": TWILIO_FROM_NUMBER, "Body": message_body},
                timeout=10.0,
            )

        if response.status_code in [200, 201]:
            logger.info(
                f"✅ SMS sent successfully: {message_type} to {to_phone} "
                f"(SID: {response.json().get('sid')})"
            )
            return True, None

        error_data = response.json()
        error_message = error_data.get("message", "Unknown error")
        error_code = error_data.get("code")
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        return False, f"[{error_code}] {error_message}" if error_code else error_message

    except Exception as e:
        logger.error(f"❌ Failed to send SMS to {to_phone}: {str(e)}")
        return False, str(e)


async def send_booking_confirmation_sms(
    to_phone: str, patient_name: str, token_number: str, doctor_name: str, when: str
) -> tuple[bool, Optional[str]]:
    message = (
        f"Hi {patient_name}, your appointment with {doctor_name} on {when} is confirmed. "
        f"Your token number is {token_number}."
    )
    return await send_sms(to_phone, message, "booking_confirmation")


async def send_booking_cancellation_sms(
    to_phone: str, patient_name: str, token_number: str, when: str
) -> tuple[bool, Optional[str]]:
    message = f"Hi {patient_name}, your appointment {token_number} on {when} has been cancelled."
    return await send_sms(to_phone, message, "booking_cancellation")
