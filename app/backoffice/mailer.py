from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

logger = logging.getLogger(__name__)


class MailerError(RuntimeError):
    pass


class Mailer:
    def __init__(self, *, sender: str) -> None:
        self.sender = sender

    def send(self, message: EmailMessage) -> None:
        raise NotImplementedError

    def send_new_password_email(self, *, to_email: str, name: str, new_password: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_email
        message["Subject"] = "New password requested"
        message.set_content(
            f"Hello {name},\n\n"
            f"A new password was generated for your account: {new_password}\n\n"
            "Sign in and change it as soon as possible.\n"
        )
        self.send(message)


class LogMailer(Mailer):
    """Development backend: writes messages to the log instead of sending them."""

    def send(self, message: EmailMessage) -> None:
        logger.info("Simulating email to=%s subject=%s", message["To"], message["Subject"])
        logger.debug("Email body:\n%s", message.get_content())


class SmtpMailer(Mailer):
    def __init__(
        self,
        *,
        sender: str,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
    ) -> None:
        super().__init__(sender=sender)
        self._host = host
        self._port = int(port)
        self._username = username
        self._password = password
        self._use_tls = bool(use_tls)

    def send(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self._host, self._port, timeout=30) as server:
                if self._use_tls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailerError(f"Could not send email to {message['To']}: {e}") from e
        logger.info("Email sent to=%s subject=%s", message["To"], message["Subject"])


def mailer_from_config(config: dict) -> Mailer:
    backend = (config.get("MAIL_BACKEND") or "log").strip().lower()
    sender = (config.get("MAIL_SENDER") or "").strip()
    if backend == "smtp":
        return SmtpMailer(
            sender=sender,
            host=(config.get("SMTP_HOST") or "localhost").strip(),
            port=int(config.get("SMTP_PORT") or 587),
            username=(config.get("SMTP_USERNAME") or "").strip(),
            password=config.get("SMTP_PASSWORD") or "",
            use_tls=bool(config.get("SMTP_USE_TLS", True)),
        )
    return LogMailer(sender=sender)
