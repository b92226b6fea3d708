"""
MJML Email Templates
Templates for mailer requests and Dime.Scheduler appointment notifications.
Every template has an MJML variant (compiled to HTML by the email service)
and a plain-text variant.
"""

import html
from typing import Optional

from .schemas import TemplateData

# Dime.Scheduler brand colors
THEME = {
    "primary": "#0080a6",
    "secondary": "#64748b",
    "background": "#f8fafc",
    "card_bg": "#f1f5f9",
    "text_primary": "#1e293b",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e2e8f0",
    "priority_high": "#dc2626",
    "priority_medium": "#d97706",
    "priority_low": "#16a34a",
}

PRIORITY_COLORS = {
    "hoog": THEME["priority_high"],
    "gemiddeld": THEME["priority_medium"],
    "laag": THEME["priority_low"],
}

DEFAULT_MESSAGE = (
    "Bedankt voor het gebruik van onze service. "
    "Dit is een geautomatiseerd bericht van de Dime.Scheduler API."
)
TASK_ASSIGNMENT_MESSAGE = (
    "Dit is om u te informeren dat een nieuwe taak aan u is toegewezen. "
    "Bekijk de details hieronder en zorg ervoor dat u beschikbaar bent voor de geplande tijd."
)
FOOTER_TEXT = "Deze e-mail is automatisch verzonden door het Dime.Scheduler API systeem."


def _esc(value: Optional[str]) -> str:
    return html.escape(str(value), quote=True) if value else ""


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    extra_sections: str = "",
    company_name: str = "Dime.Scheduler",
    logo_url: Optional[str] = None,
    primary_color: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""
    primary = primary_color or THEME["primary"]

    if logo_url:
        header = f"""
            <mj-image src="{_esc(logo_url)}" alt="Logo" height="48px" width="160px" padding="0 0 8px 0" />
        """
    else:
        header = ""

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{_esc(title)}</mj-title>
        <mj-preview>{_esc(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="{primary}" padding="40px 32px 20px 32px">
          <mj-column>
            {header}
            <mj-text align="center" color="#ffffff" font-size="16px" padding="0">
              {_esc(company_name)}
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="20px 32px 40px 32px">
          <mj-column>
            <mj-text font-size="20px" font-weight="600" color="{primary}" padding="0 0 20px 0">
              Beste,
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>
        {extra_sections}

        <!-- Footer -->
        <mj-section background-color="{THEME['background']}" padding="32px">
          <mj-column>
            <mj-text align="center" font-size="14px" color="{THEME['secondary']}" padding="0 0 16px 0">
              {FOOTER_TEXT}
            </mj-text>
            <mj-text align="center" font-size="14px" padding="0">
              <a href="https://dimescheduler.com" style="color: {primary}; text-decoration: none; margin: 0 16px;">Bezoek Website</a>
              <a href="mailto:support@dimescheduler.com" style="color: {primary}; text-decoration: none; margin: 0 16px;">Contact Ondersteuning</a>
              <a href="https://dimescheduler.com/docs" style="color: {primary}; text-decoration: none; margin: 0 16px;">Documentatie</a>
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def task_detail_rows(data: TemplateData) -> list[tuple[str, str]]:
    """Label/value pairs shown in the task card; optional extras only when present"""
    rows = [
        ("Startdatum", data.startDate or "-"),
        ("Einddatum", data.endDate or "-"),
        ("Locatie", data.location or data.contactAddress or "-"),
        ("Beschrijving", data.description or data.taskDescription or "-"),
        ("Prioriteit", data.priority or "Gemiddeld"),
        ("Toegewezen door", data.assignedBy or "-"),
        ("Taak ID", data.taskId or "-"),
        ("Dossier", data.projectName or "-"),
    ]
    extras = [
        ("Opdracht", data.jobDescription),
        ("Opmerkingen", data.body),
        ("Telefoon", data.contactTelephone),
        ("E-mail", data.contactEmail),
    ]
    rows.extend((label, value) for label, value in extras if value)
    return rows


def message_template(data: TemplateData) -> str:
    """Generic message MJML template"""
    content = f"""
    <mj-text padding="0 0 32px 0">
      {_esc(data.message or DEFAULT_MESSAGE)}
    </mj-text>
    """
    return get_base_template(
        title=data.subject or data.companyName,
        preview_text=data.message or DEFAULT_MESSAGE,
        content_sections=content,
        company_name=data.companyName,
        logo_url=data.logoUrl,
        primary_color=data.primaryColor,
    )


def task_assignment_template(data: TemplateData) -> str:
    """Task assignment MJML template (Dime.Scheduler appointment notifications)"""
    primary = data.primaryColor or THEME["primary"]
    priority = data.priority or "Gemiddeld"
    priority_color = PRIORITY_COLORS.get(priority.lower(), THEME["priority_medium"])

    detail_lines = []
    for label, value in task_detail_rows(data):
        if label == "Prioriteit":
            rendered = f'<span style="color: {priority_color}; font-weight: 600;">{_esc(value)}</span>'
        else:
            rendered = _esc(value)
        detail_lines.append(
            f'<strong style="color: {THEME["text_secondary"]};">{label}:</strong> '
            f'<span style="color: {THEME["text_muted"]};">{rendered}</span>'
        )

    content = f"""
    <mj-text padding="0">
      {TASK_ASSIGNMENT_MESSAGE}
    </mj-text>
    """
    # Task card
    card = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="24px 32px">
          <mj-column>
            <mj-text font-size="18px" font-weight="700" color="{primary}" padding="0 0 8px 0">
              {_esc(data.taskTitle or data.subject or "Taak")}
            </mj-text>
            <mj-text font-size="14px" line-height="2" padding="0">
              {"<br/>".join(detail_lines)}
            </mj-text>
          </mj-column>
        </mj-section>
    """
    return get_base_template(
        title=data.subject or "Taak Toewijzing - Dime.Scheduler",
        preview_text=data.taskTitle or TASK_ASSIGNMENT_MESSAGE,
        content_sections=content,
        extra_sections=card,
        company_name=data.companyName,
        logo_url=data.logoUrl,
        primary_color=data.primaryColor,
    )


def render_mjml(data: TemplateData) -> str:
    if data.is_task_assignment:
        return task_assignment_template(data)
    return message_template(data)


def render_text(data: TemplateData) -> str:
    """Plain-text rendition of the same content"""
    lines = [
        f"{data.companyName} - {data.subject or 'Taak Toewijzing'}",
        "",
        "Beste,",
        "",
        TASK_ASSIGNMENT_MESSAGE if data.is_task_assignment else (data.message or DEFAULT_MESSAGE),
    ]

    if data.is_task_assignment:
        lines += [
            "",
            "TAAK TOEWIJZING DETAILS:",
            "========================",
            "",
            f"Taak Titel: {data.taskTitle or data.subject or '-'}",
        ]
        lines += [f"{label}: {value}" for label, value in task_detail_rows(data)]
        lines += ["", "Bekijk de taak details en bevestig uw beschikbaarheid."]

    lines += [
        "",
        "---",
        FOOTER_TEXT,
        "Bezoek: https://dimescheduler.com",
        "Ondersteuning: support@dimescheduler.com",
    ]
    return "\n".join(lines)
