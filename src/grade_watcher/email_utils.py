# src/grade_watcher/email_utils.py
import smtplib
import ssl
import logging
import unicodedata
from email.message import EmailMessage
from typing import Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape, TemplateError

from .config import (
    MailConfig,
    TEMPLATE_DIR,
    TEXT_TEMPLATE_FILENAME,
    HTML_TEMPLATE_FILENAME,
)
from .exceptions import NotificationSystemError
from .models import Grade

log = logging.getLogger(__name__)

REPORT_SUBJECT = "Grade Report"
ERROR_SUBJECT = "Get Grade Error"
SMTPS_PORT = 465

# --- Setup Jinja2 Environment ---
# autoescape only applies to the .html template; the plain-text report is left as is
jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(['html', 'xml']),
    trim_blocks=True,
    lstrip_blocks=True,
)


def display_width(text: str) -> int:
    """Terminal column width of `text`; wide (CJK) characters take two columns."""
    return sum(2 if unicodedata.east_asian_width(ch) in ('W', 'F') else 1 for ch in text)


def pad(text: str, width: int) -> str:
    return text + ' ' * max(width - display_width(text), 0)


def format_credit(credit: float) -> str:
    # 4.0 -> "4", 1.5 -> "1.5"
    return f"{credit:g}"


def column_widths(header: Sequence[str], rows: Sequence[Tuple]) -> Tuple[int, ...]:
    """Widest cell of each column, header included."""
    return tuple(
        max([display_width(title)] + [display_width(str(row[i])) for row in rows])
        for i, title in enumerate(header)
    )


jinja_env.filters['pad'] = pad
jinja_env.filters['credit'] = format_credit
jinja_env.globals['column_widths'] = column_widths

# --- Email Content Generation ---

def _render(template_name: str, grade: Grade) -> str:
    try:
        return jinja_env.get_template(template_name).render(grade=grade)
    except TemplateError as e:
        log.exception(f"Error rendering Jinja2 template '{template_name}' from {TEMPLATE_DIR}")
        raise NotificationSystemError(f"Cannot render grade report: {e}", original_exception=e) from e


def format_grade_text(grade: Grade) -> str:
    """Renders the plain-text grade report: GPA summary, then one table per semester."""
    return _render(TEXT_TEMPLATE_FILENAME, grade)


def format_grade_html(grade: Grade) -> str:
    """Renders the HTML grade report, with the same content as the text one."""
    return _render(HTML_TEMPLATE_FILENAME, grade)


def build_message(mail: MailConfig, subject: str, text_body: str, html_body: Optional[str] = None) -> EmailMessage:
    """
    Builds the message for all configured recipients.

    With `html_body`, the message is multipart/alternative with the plain
    text first, so clients prefer the HTML part.
    """
    em = EmailMessage()
    em['From'] = mail.username
    em['To'] = ', '.join(mail.sendto)
    em['Subject'] = subject
    em.set_content(text_body)
    if html_body is not None:
        em.add_alternative(html_body, subtype='html')
    return em


# --- Sending ---

def send_email(mail: MailConfig, subject: str, text_body: str, html_body: Optional[str] = None) -> None:
    """
    Sends an email to every recipient in `mail.sendto`.

    Port 465 uses implicit TLS; any other port uses STARTTLS.

    Raises:
        NotificationSystemError: If the SMTP exchange fails for any reason.
    """
    log.info("Sending email")
    em = build_message(mail, subject, text_body, html_body)
    context = ssl.create_default_context()

    try:
        if mail.port == SMTPS_PORT:
            with smtplib.SMTP_SSL(mail.server, mail.port, context=context) as smtp:
                smtp.login(mail.username, mail.password)
                smtp.send_message(em)
        else:
            with smtplib.SMTP(mail.server, mail.port) as smtp:
                smtp.starttls(context=context)
                smtp.login(mail.username, mail.password)
                smtp.send_message(em)
    except smtplib.SMTPAuthenticationError as e:
        log.error(f"SMTP Authentication Error for {mail.username}. Check MAIL_USERNAME/MAIL_PASSWORD.")
        raise NotificationSystemError("SMTP authentication failed", original_exception=e) from e
    except smtplib.SMTPRecipientsRefused as e:
        log.error(f"SMTP server refused recipients: {e.recipients}")
        raise NotificationSystemError(f"Recipients refused: {list(e.recipients)}", original_exception=e) from e
    except (smtplib.SMTPException, OSError) as e: # OSError covers connection and TLS failures
        log.error(f"Error sending email via {mail.server}:{mail.port}: {e}")
        raise NotificationSystemError(f"Send email failed: {e}", original_exception=e) from e

    log.info("Email sent")


def send_grade_report(mail: MailConfig, grade: Grade) -> None:
    """Sends the grade report with both text and HTML bodies."""
    send_email(mail, REPORT_SUBJECT, format_grade_text(grade), format_grade_html(grade))


def send_error_report(mail: MailConfig, message: str) -> None:
    """Sends a plain-text error notification."""
    send_email(mail, ERROR_SUBJECT, message)
