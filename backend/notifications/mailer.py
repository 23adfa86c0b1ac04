# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Outbound mail: transports and the fire-and-forget outbox.

Auth flows never talk to SMTP directly.  They call ``outbox.enqueue(msg)``,
which returns immediately; a daemon worker thread drains the queue and hands
each message to the configured transport.  A failed delivery is logged and
dropped – it can never fail or roll back the request that produced it.
"""

import queue
import smtplib
import ssl
import threading
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from core.config import settings
from core.logger import logger, redact_email


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    html: str
    text: str


class SmtpTransport:
    """Deliver through an SMTP relay (STARTTLS on 587, implicit TLS on 465)."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        user: str = "",
        password: str = "",
        use_tls: bool = True,
        from_email: str = "",
        from_name: str = "",
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email or user
        self.from_name = from_name

    def send(self, message: MailMessage) -> None:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f'"{self.from_name}" <{self.from_email}>' if self.from_name else self.from_email
        mime["To"] = message.to
        mime.attach(MIMEText(message.text, "plain", "utf-8"))
        mime.attach(MIMEText(message.html, "html", "utf-8"))

        context = ssl.create_default_context()
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=30)
        with server:
            if self.use_tls and self.port != 465:
                server.starttls(context=context)
            if self.user and self.password:
                server.login(self.user, self.password)
            server.sendmail(self.from_email, [message.to], mime.as_string())


class LogTransport:
    """Development fallback when no SMTP relay is configured."""

    def send(self, message: MailMessage) -> None:
        logger.info("mail (not sent, SMTP unconfigured) to=%s subject=%r",
                    redact_email(message.to), message.subject)


def transport_from_settings():
    if settings.smtp_host:
        return SmtpTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_email=settings.mail_from,
            from_name=settings.project_title,
        )
    return LogTransport()


class Outbox:
    """Thread-backed queue decoupling mail delivery from the request path."""

    def __init__(self, transport=None) -> None:
        self.transport = transport or transport_from_settings()
        self._queue: "queue.Queue[MailMessage]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def enqueue(self, message: MailMessage) -> None:
        self._ensure_worker()
        self._queue.put(message)

    def join(self) -> None:
        """Block until every queued message has been handed to the transport."""
        self._queue.join()

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._run, name="mail-outbox", daemon=True)
                self._worker.start()

    def _run(self) -> None:
        while True:
            message = self._queue.get()
            try:
                self.transport.send(message)
                logger.info("mail sent to=%s subject=%r", redact_email(message.to), message.subject)
            except Exception:
                logger.exception("mail delivery failed to=%s subject=%r",
                                 redact_email(message.to), message.subject)
            finally:
                self._queue.task_done()


# Module-level singleton – from notifications.mailer import outbox
outbox = Outbox()
