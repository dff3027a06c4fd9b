"""
Unified Notification Service
Handles both email and SMS notices for booking events. Runs after the
response is sent; failures are logged and never reach the caller.
"""

import logging
from typing import Optional

from .. import config
from ..shared.validators import validate_phone

logger = logging.getLogger(__name__)


async def send_notification(
    patient_email: Optional[str],
    patient_phone: Optional[str],
    patient_name: str,
    notification_type: str,
    email_func,
    sms_func,
    email_kwargs: dict,
    sms_kwargs: dict,
) -> dict:
    """
    Unified notification sender that handles both email and SMS

    Returns:
        Dict with email_sent and sms_sent status
    """
    result = {"email_sent": False, "sms_sent": False, "email_error": None, "sms_error": None}

    if not config.NOTIFICATIONS_ENABLED:
        logger.debug(f"ℹ️ Notifications disabled, skipping {notification_type} for {patient_name}")
        return result

    if patient_email:
        try:
            logger.info(f"📧 Sending {notification_type} email to {patient_email}")
            await email_func(to=patient_email, **email_kwargs)
            result["email_sent"] = True
        except Exception as e:
            result["email_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} email to {patient_email}: {e}")
    else:
        logger.debug(f"⚠️ No email address for {notification_type} notification to {patient_name}")

    if patient_phone:
        try:
            formatted_phone = validate_phone(patient_phone)
            success, error = await sms_func(to_phone=formatted_phone, **sms_kwargs)
            if success:
                result["sms_sent"] = True
            else:
                result["sms_error"] = error
                if error and "disabled" not in error.lower():
                    logger.warning(f"⚠️ {notification_type} SMS not sent to {formatted_phone}: {error}")
                else:
                    logger.debug(f"ℹ️ {notification_type} SMS skipped: {error}")
        except ValueError as e:
            result["sms_error"] = str(e)
            logger.warning(f"⚠️ Invalid phone number format for {patient_name}: {patient_phone}")
        except Exception as e:
            result["sms_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} SMS to {patient_phone}: {e}")

    return result


def _when(booking: dict) -> str:
    return f"{booking['date']} at {booking['time']}"


async def send_booking_confirmation_notification(booking: dict) -> dict:
    """Confirmation email + SMS for a new booking (payload is a BookingResponse dump)"""
    from ..email_service import send_booking_confirmation_email
    from .twilio_service import send_booking_confirmation_sms

    doctor_name = booking.get("doctorName") or "your doctor"
    return await send_notification(
        patient_email=booking.get("patientEmail"),
        patient_phone=booking.get("patientPhone"),
        patient_name=booking["patientName"],
        notification_type="booking_confirmation",
        email_func=send_booking_confirmation_email,
        sms_func=send_booking_confirmation_sms,
        email_kwargs={
            "patient_name": booking["patientName"],
            "token_number": booking["tokenNumber"],
            "doctor_name": doctor_name,
            "clinic_name": booking.get("clinicName") or "",
            "appointment_date": str(booking["date"]),
            "appointment_time": booking["time"],
            "fee": booking.get("doctorFee"),
        },
        sms_kwargs={
            "patient_name": booking["patientName"],
            "token_number": booking["tokenNumber"],
            "doctor_name": doctor_name,
            "when": _when(booking),
        },
    )


async def send_booking_cancellation_notification(booking: dict) -> dict:
    from ..email_service import send_booking_cancellation_email
    from .twilio_service import send_booking_cancellation_sms

    return await send_notification(
        patient_email=booking.get("patientEmail"),
        patient_phone=booking.get("patientPhone"),
        patient_name=booking["patientName"],
        notification_type="booking_cancellation",
        email_func=send_booking_cancellation_email,
        sms_func=send_booking_cancellation_sms,
        email_kwargs={
            "patient_name": booking["patientName"],
            "token_number": booking["tokenNumber"],
            "doctor_name": booking.get("doctorName") or "your doctor",
            "appointment_date": str(booking["date"]),
            "appointment_time": booking["time"],
        },
        sms_kwargs={
            "patient_name": booking["patientName"],
            "token_number": booking["tokenNumber"],
            "when": _when(booking),
        },
    )
