"""
MJML Email Templates
Booking notices sent to patients
"""

from typing import Optional

THEME = {
    "primary": "#14b8a6",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Helvetica, Arial, sans-serif" />
          <mj-text color="{THEME['text_secondary']}" font-size="15px" line-height="1.6" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" border-radius="12px" padding="24px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" color="{THEME['text_primary']}">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
        <mj-section>
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}">
              Please arrive 10 minutes before your appointment time.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_table(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f"<tr><td style=\"padding:4px 12px 4px 0;color:{THEME['text_muted']}\">{label}</td>"
        f"<td style=\"padding:4px 0;font-weight:600\">{value}</td></tr>"
        for label, value in rows
    )
    return f'<mj-table border="1px solid {THEME["border"]}" cellpadding="6px">{cells}</mj-table>'


def booking_confirmation_template(
    patient_name: str,
    token_number: str,
    doctor_name: str,
    clinic_name: str,
    appointment_date: str,
    appointment_time: str,
    fee: Optional[float] = None,
    cta_url: Optional[str] = None,
) -> str:
    rows = [
        ("Token", token_number),
        ("Doctor", doctor_name),
        ("Clinic", clinic_name),
        ("Date", appointment_date),
        ("Time", appointment_time),
    ]
    if fee is not None:
        rows.append(("Consultation fee", f"{fee:.2f}"))

    content = f"""
    <mj-text>Hi {patient_name}, your appointment is confirmed.</mj-text>
    {_details_table(rows)}
    <mj-text>Show your token number at the reception desk.</mj-text>
    """
    return get_base_template(
        title="Appointment Confirmed",
        preview_text=f"Token {token_number} on {appointment_date} at {appointment_time}",
        content_sections=content,
        cta_url=cta_url,
        cta_label="View my appointments" if cta_url else None,
    )


def booking_cancellation_template(
    patient_name: str,
    token_number: str,
    doctor_name: str,
    appointment_date: str,
    appointment_time: str,
    cta_url: Optional[str] = None,
) -> str:
    details = _details_table(
        [
            ("Token", token_number),
            ("Doctor", doctor_name),
            ("Date", appointment_date),
            ("Time", appointment_time),
        ]
    )
    content = f"""
    <mj-text>Hi {patient_name}, your appointment has been cancelled.</mj-text>
    {details}
    <mj-text color="{THEME['danger']}">This token is no longer valid.</mj-text>
    """
    return get_base_template(
        title="Appointment Cancelled",
        preview_text=f"Token {token_number} was cancelled",
        content_sections=content,
        cta_url=cta_url,
        cta_label="Book another appointment" if cta_url else None,
    )
