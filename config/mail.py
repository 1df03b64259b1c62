import logging
import smtplib
from email.mime.text import MIMEText

from config import settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str) -> bool:
    if not settings.mail_enabled():
        logger.debug("Mail disabled, not sending %r to %s", subject, to_email)
        return False

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to_email

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            server.starttls()
            if settings.SMTP_USER:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(settings.MAIL_FROM, to_email, msg.as_string())
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Mail to %s failed: %s", to_email, e)
        return False


def send_access_decision(account) -> bool:
    if account.status == "approved":
        subject = "Your access request was approved"
        role = account.role.name if account.role else "an assigned"
        body = f"Hello {account.first_name},\n\nYour account has been approved with the {role} role."
    else:
        subject = "Your access request was declined"
        body = f"Hello {account.first_name},\n\nYour access request has been declined."
    return send_email(account.email, subject, body)
