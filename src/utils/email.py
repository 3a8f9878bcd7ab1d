import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from src.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationMessage:
    sender: str
    to: str
    subject: str
    body: str


class MailTransport(Protocol):
    def send(self, message: NotificationMessage) -> None:
        """Deliver one message, raise on any failure"""
        ...


class SmtpTransport:
    """Plain-text delivery through an SMTP relay, by default the local MTA on port 25"""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = False,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.starttls = starttls

    def build(self, message: NotificationMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = message.sender
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.body)
        return email

    def send(self, message: NotificationMessage) -> None:
        with smtplib.SMTP(self.host, self.port) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(self.build(message))


class SendGridTransport:
    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message: NotificationMessage) -> None:
        client = SendGridAPIClient(self.api_key)
        mail = Mail(
            from_email=message.sender,
            to_emails=message.to,
            subject=message.subject,
            plain_text_content=message.body,
        )
        client.send(mail)


def build_transport(settings: Settings) -> MailTransport:
    if settings.mail_transport == "sendgrid":
        if not settings.sendgrid_api_key:
            raise ValueError("mail_transport is 'sendgrid' but SENDGRID_API_KEY is not set")
        return SendGridTransport(settings.sendgrid_api_key)
    logger.info("Mailing through SMTP relay %s:%d", settings.smtp_host, settings.smtp_port)
    return SmtpTransport(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        starttls=settings.smtp_starttls,
    )
