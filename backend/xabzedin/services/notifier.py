import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from xabzedin.config import settings
from xabzedin.messages import translate

logger = logging.getLogger(__name__)


def _build_email_html(title: str, body: str, action_label: str, action_url: str, color: str = "#00A651") -> str:
    """Build a single-call-to-action HTML email."""
    return f"""
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; max-width: 600px; margin: 0 auto;">
        <div style="background-color: {color}; color: white; padding: 20px; border-radius: 8px 8px 0 0;">
            <h2 style="margin: 0;">{escape(title)}</h2>
        </div>
        <div style="padding: 20px; background: white;">
            <p>{escape(body)}</p>
            <p style="text-align: center; margin-top: 20px;">
                <a href="{escape(action_url, quote=True)}"
                   style="background-color: {color}; color: white; padding: 12px 24px; border-radius: 6px; text-decoration: none; font-weight: bold;">
                    {escape(action_label)}
                </a>
            </p>
        </div>
        <div style="padding: 16px; background: #f8fafc; border-radius: 0 0 8px 8px; text-align: center; color: #6b7280;">
            <p style="margin: 0;">XabzedIn</p>
        </div>
    </body>
    </html>
    """


def _site_link(path: str) -> str:
    return f"{settings.site_url.rstrip('/')}{path}"


def build_confirmation_email(token: str) -> tuple[str, str]:
    """Return (subject, html) for an email-confirmation message."""
    link = _site_link(f"/auth/confirm?token={token}")
    html = _build_email_html(
        translate("email_confirmation_subject"),
        translate("email_confirmation_body"),
        translate("email_confirmation_action"),
        link,
    )
    return translate("email_confirmation_subject"), html


def build_password_reset_email(token: str) -> tuple[str, str]:
    link = _site_link(f"/auth/reset-password?token={token}")
    html = _build_email_html(
        translate("password_reset_subject"),
        translate("password_reset_body"),
        translate("password_reset_action"),
        link,
        color="#1e293b",
    )
    return translate("password_reset_subject"), html


def build_new_application_email(job_id: str, job_title: str, seeker_name: str) -> tuple[str, str]:
    subject = translate("new_application_subject", job_title=job_title)
    html = _build_email_html(
        subject,
        translate("new_application_body", job_title=job_title, seeker_name=seeker_name),
        translate("new_application_action"),
        _site_link(f"/dashboard/employer/jobs/{job_id}/applications"),
    )
    return subject, html


def send_email_resend(to: str, subject: str, html_body: str):
    """Send email using Resend API."""
    if not settings.resend_api_key:
        logger.warning("Resend API key not configured, skipping email")
        return

    try:
        import resend
        resend.api_key = settings.resend_api_key
        resend.Emails.send({
            "from": settings.notification_from_email,
            "to": [to],
            "subject": subject,
            "html": html_body,
        })
        logger.info("Email sent via Resend: %s", subject)
    except Exception:
        logger.exception("Failed to send email via Resend, trying SMTP fallback")
        send_email_smtp(to, subject, html_body)


def send_email_smtp(to: str, subject: str, html_body: str):
    """Send email using SMTP as fallback."""
    if not settings.smtp_user or not settings.smtp_password:
        logger.warning("SMTP not configured, skipping email to %s", to)
        return

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.smtp_user
        msg["To"] = to

        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.smtp_user, to, msg.as_string())

        logger.info("Email sent via SMTP: %s", subject)
    except Exception:
        logger.exception("Failed to send email via SMTP")


def send_email(to: str, subject: str, html_body: str):
    if not to:
        logger.info("No recipient for %r, skipping", subject)
        return

    if settings.resend_api_key:
        send_email_resend(to, subject, html_body)
    else:
        send_email_smtp(to, subject, html_body)
