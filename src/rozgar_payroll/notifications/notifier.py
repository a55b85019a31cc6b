from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class LoggingNotifier:
    """Writes messages to the log instead of delivering them (development)."""

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("notification to %s: %s", to, subject)


class SmtpNotifier:
    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_email: str = "",
        use_tls: bool = True,
        timeout: float = 10,
    ):
        self._host = host
        self._port = int(port)
        self._username = username
        self._password = password
        self._from_email = from_email or username
        self._use_tls = use_tls
        self._timeout = float(timeout)

    def send(self, to: str, subject: str, body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["From"] = self._from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain"))

        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            if self._use_tls:
                server.starttls()
            if self._username:
                server.login(self._username, self._password)
            server.send_message(msg)


def notify_quietly(notifier: Optional[Notifier], to: Optional[str], subject: str, body: str) -> bool:
    """Fire-and-forget delivery: failures are logged and never raised."""

    if notifier is None or not to:
        return False
    try:
        notifier.send(to, subject, body)
    except Exception:
        logger.exception("failed to deliver notification %r to %s", subject, to)
        return False
    return True
