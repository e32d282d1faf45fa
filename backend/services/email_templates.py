"""Email templates for contact form submissions.

Pure rendering: takes an already-sanitized submission and returns subject,
HTML and plain-text bodies. No I/O. The plain-text bodies undo the HTML
escaping, since they are never rendered as markup.

Both emails share the same table-based layout (email clients ignore most
CSS, so everything is inline).
"""

import html
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from helpers.language import Locale, get_contact_copy
from models.config import settings
from models.email_types import RenderedEmail
from models.schemas import SanitizedSubmission

BRAND = {
    "primary": "#1b2f75",
    "accent": "#137dc5",
    "white": "#ffffff",
    "gray50": "#f9fafb",
    "gray100": "#f3f4f6",
    "gray200": "#e5e7eb",
    "gray500": "#6b7280",
    "gray600": "#4b5563",
    "gray900": "#111827",
}

FONT_STACK = (
    "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, "
    "'Helvetica Neue', Arial, sans-serif"
)


@dataclass(frozen=True)
class ThankYouCopy:
    """Fixed thank-you wording for one locale."""

    subject: str  # {site_name}
    greeting: str  # {name}
    body: str
    next_title: str
    steps: tuple[str, ...]
    cta: str  # {contact_link}
    no_reply: str
    closing: str
    signature: str  # {site_name}
    sent_by: str
    rights: str


THANK_YOU_COPY: dict[Locale, ThankYouCopy] = {
    Locale.IT: ThankYouCopy(
        subject="Abbiamo ricevuto il tuo messaggio - {site_name}",
        greeting="Ciao {name},",
        body=(
            "Grazie per averci contattato. Abbiamo ricevuto il tuo messaggio "
            "e lo stiamo già esaminando."
        ),
        next_title="Cosa succede ora:",
        steps=(
            "Analizziamo la tua richiesta nel dettaglio",
            "Ti rispondiamo entro 24 ore lavorative con un’analisi personalizzata",
            "Se utile, organizziamo una call conoscitiva gratuita",
        ),
        cta="Per qualsiasi necessità o informazione aggiuntiva, scrivici a {contact_link}",
        no_reply=(
            "Questa email è stata generata automaticamente, ti preghiamo di "
            "non rispondere a questo indirizzo."
        ),
        closing="A presto,",
        signature="Il team di {site_name}",
        sent_by="Inviata da",
        rights="Tutti i diritti riservati.",
    ),
    Locale.EN: ThankYouCopy(
        subject="We received your message - {site_name}",
        greeting="Hi {name},",
        body=(
            "Thank you for reaching out. We've received your message and are "
            "already looking into it."
        ),
        next_title="What happens next:",
        steps=(
            "We analyze your request in detail",
            "We'll get back to you within 24 business hours with a personalized assessment",
            "If helpful, we'll set up a free introductory call",
        ),
        cta="For any questions or additional information, write to us at {contact_link}",
        no_reply="This email was generated automatically, please do not reply to this address.",
        closing="Best regards,",
        signature="The {site_name} team",
        sent_by="Sent by",
        rights="All rights reserved.",
    ),
}

_missing_locales = set(Locale) - set(THANK_YOU_COPY)
if _missing_locales:
    raise RuntimeError(
        f"THANK_YOU_COPY has no entry for: {sorted(m.value for m in _missing_locales)}"
    )


def format_timestamp(submitted_at: datetime) -> str:
    """Format a submission time as 'dd/mm/yyyy alle HH:MM' in the site time zone."""
    local = submitted_at.astimezone(ZoneInfo(settings.EMAIL_TIMEZONE))
    return local.strftime("%d/%m/%Y alle %H:%M")


# =========================================================================
# Shared layout
# =========================================================================


def _wrap_document(content: str, lang: str) -> str:
    """Wrap rows in a full HTML document with email client resets."""
    return f"""<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">
<html xmlns="http://www.w3.org/1999/xhtml" lang="{lang}">
<head>
  <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <meta name="x-apple-disable-message-reformatting" />
  <title>{settings.SITE_NAME}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BRAND["gray100"]}; font-family: {FONT_STACK};">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0" style="background-color: {BRAND["gray100"]};">
    <tr>
      <td align="center" style="padding: 32px 16px;">
        <table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0" style="max-width: 600px; width: 100%;">
          {content}
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def _logo_header(background: str, width: int) -> str:
    logo_url = f"{settings.SITE_URL}/images/logo-color.png"
    return f"""<tr>
  <td align="center" style="background-color: {background}; padding: 28px 32px; border-radius: 8px 8px 0 0;">
    <img src="{logo_url}" alt="{settings.SITE_NAME}" width="{width}" style="display: block; border: 0; outline: none;" />
  </td>
</tr>"""


def _footer(sent_by: str, rights: str, year: int) -> str:
    return f"""<tr>
  <td align="center" style="padding: 24px 16px 8px 16px;">
    <p style="margin: 0; font-size: 12px; line-height: 18px; color: {BRAND["gray500"]};">
      {sent_by} <a href="{settings.SITE_URL}" style="color: {BRAND["accent"]}; text-decoration: none;">{settings.SITE_NAME}</a>
    </p>
    <p style="margin: 8px 0 0 0; font-size: 12px; line-height: 18px; color: {BRAND["gray500"]};">
      &copy; {year} {settings.SITE_NAME}. {rights}
    </p>
  </td>
</tr>"""


def _card(inner: str) -> str:
    return f"""<tr>
  <td style="background-color: {BRAND["white"]}; padding: 24px 32px 32px 32px; border: 1px solid {BRAND["gray200"]}; border-top: none;">
    {inner}
  </td>
</tr>"""


def _label(text: str) -> str:
    return (
        f'<p style="margin: 0 0 4px 0; font-size: 11px; line-height: 16px; '
        f"font-weight: 600; text-transform: uppercase; letter-spacing: 0.5px; "
        f'color: {BRAND["gray500"]};">{text}</p>'
    )


def _field(label: str, value: str) -> str:
    return f"""<div style="margin-bottom: 16px;">
  {_label(label)}
  <p style="margin: 0; font-size: 15px; line-height: 22px; color: {BRAND["gray900"]};">{value}</p>
</div>"""


# =========================================================================
# Lead notification (to the business owner)
# =========================================================================


def build_lead_notification_subject(name: str) -> str:
    """Subject line for the lead notification."""
    return f"Nuovo contatto dal sito - {name}"


def build_lead_notification(data: SanitizedSubmission) -> RenderedEmail:
    """Build the lead notification sent to the owner.

    The owner reads Italian, so this email is not localized; the
    submission language is shown as metadata.
    """
    language_label = get_contact_copy(data.locale).language_label
    timestamp = format_timestamp(data.submitted_at)

    email_field = f"""<div style="margin-bottom: 16px;">
  {_label("Email")}
  <a href="mailto:{data.email}" style="font-size: 15px; line-height: 22px; color: {BRAND["accent"]}; text-decoration: none;">{data.email}</a>
</div>"""

    message_field = f"""<div style="margin-top: 8px;">
  {_label("Messaggio")}
  <div style="background-color: {BRAND["gray50"]}; padding: 16px; border-radius: 6px; border: 1px solid {BRAND["gray200"]};">
    <p style="margin: 0; font-size: 14px; line-height: 22px; color: {BRAND["gray900"]}; white-space: pre-wrap; word-wrap: break-word;">{data.message}</p>
  </div>
</div>"""

    title = f"""<h1 style="margin: 0 0 24px 0; font-size: 20px; line-height: 28px; font-weight: 700; color: {BRAND["primary"]};">
  Nuovo Lead dal Sito
</h1>"""

    meta = f"""<tr>
  <td align="center" style="padding: 16px 16px 8px 16px;">
    <p style="margin: 0; font-size: 12px; line-height: 18px; color: {BRAND["gray500"]};">
      Inviato il {timestamp} &middot; Lingua: {language_label}
    </p>
  </td>
</tr>"""

    content = "\n".join(
        [
            _logo_header(BRAND["primary"], 160),
            _card(
                title
                + _field("Nome", data.name)
                + email_field
                + _field("Azienda", data.company)
                + message_field
            ),
            meta,
            _footer("Inviata da", "Tutti i diritti riservati.", data.submitted_at.year),
        ]
    )

    text = f"""Nome: {html.unescape(data.name)}
Email: {data.email}
Azienda: {html.unescape(data.company)}

Messaggio:
{html.unescape(data.message)}

---
Inviato il {timestamp} (lingua: {language_label}) dal form di contatto di {settings.SITE_URL}"""

    return RenderedEmail(
        subject=build_lead_notification_subject(data.name),
        html=_wrap_document(content, "it"),
        text=text,
    )


# =========================================================================
# Thank-you (to the submitter)
# =========================================================================


def build_thank_you_subject(locale: Locale) -> str:
    """Subject line for the thank-you email."""
    return THANK_YOU_COPY[locale].subject.format(site_name=settings.SITE_NAME)


def build_thank_you(data: SanitizedSubmission) -> RenderedEmail:
    """Build the thank-you email sent to the submitter in their locale.

    Only the (sanitized) name is interpolated; everything else is fixed copy.
    """
    copy = THANK_YOU_COPY[data.locale]
    contact = settings.PUBLIC_CONTACT_EMAIL
    contact_link = (
        f'<a href="mailto:{contact}" style="color: {BRAND["accent"]}; '
        f'text-decoration: none; font-weight: 600;">{contact}</a>'
    )
    greeting = copy.greeting.format(name=data.name)
    signature = copy.signature.format(site_name=settings.SITE_NAME)

    steps_html = "".join(
        f"""<tr>
  <td valign="top" width="28" style="padding: 0 12px 12px 0;">
    <div style="width: 28px; height: 28px; line-height: 28px; text-align: center; background-color: {BRAND["accent"]}; border-radius: 14px; font-size: 13px; font-weight: 700; color: {BRAND["white"]};">{number}</div>
  </td>
  <td valign="middle" style="padding-bottom: 12px;">
    <p style="margin: 0; font-size: 14px; line-height: 22px; color: {BRAND["gray600"]};">{step}</p>
  </td>
</tr>"""
        for number, step in enumerate(copy.steps, start=1)
    )

    body = f"""<p style="margin: 0 0 20px 0; font-size: 17px; line-height: 26px; font-weight: 600; color: {BRAND["gray900"]};">{greeting}</p>
<p style="margin: 0 0 24px 0; font-size: 15px; line-height: 24px; color: {BRAND["gray600"]};">{copy.body}</p>
<p style="margin: 0 0 12px 0; font-size: 15px; line-height: 24px; font-weight: 600; color: {BRAND["gray900"]};">{copy.next_title}</p>
<table role="presentation" cellpadding="0" cellspacing="0" border="0" style="margin-bottom: 24px;">
  {steps_html}
</table>
<div style="background-color: {BRAND["gray50"]}; padding: 16px 20px; border-radius: 6px; border-left: 3px solid {BRAND["accent"]}; margin-bottom: 24px;">
  <p style="margin: 0; font-size: 14px; line-height: 22px; color: {BRAND["gray600"]};">{copy.cta.format(contact_link=contact_link)}</p>
</div>
<p style="margin: 0 0 24px 0; font-size: 12px; line-height: 18px; color: {BRAND["gray500"]}; font-style: italic;">{copy.no_reply}</p>
<p style="margin: 0 0 4px 0; font-size: 15px; line-height: 24px; color: {BRAND["gray600"]};">{copy.closing}</p>
<p style="margin: 0; font-size: 15px; line-height: 24px; font-weight: 600; color: {BRAND["primary"]};">{signature}</p>"""

    content = "\n".join(
        [
            _logo_header(BRAND["white"], 140),
            _card(body),
            _footer(copy.sent_by, copy.rights, data.submitted_at.year),
        ]
    )

    steps_text = "\n".join(
        f"{number}. {step}" for number, step in enumerate(copy.steps, start=1)
    )
    text = f"""{copy.greeting.format(name=html.unescape(data.name))}

{copy.body}

{copy.next_title}
{steps_text}

{copy.cta.format(contact_link=contact)}

{copy.no_reply}

{copy.closing}
{signature}
{settings.SITE_URL}"""

    return RenderedEmail(
        subject=build_thank_you_subject(data.locale),
        html=_wrap_document(content, data.locale.value),
        text=text,
    )
