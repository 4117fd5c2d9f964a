from __future__ import annotations

import logging
import mimetypes
import smtplib
from collections.abc import Sequence
from email.message import EmailMessage
from pathlib import Path

from shiftrecon.models.config_models import NotificationConfig
from shiftrecon.models.report_result import ReportKey

"""Report delivery over SMTP.

Delivery is best effort: ``Notifier.send`` reports success as a bool and
never raises or retries. The next scheduled run produces a fresh report.
"""

__all__ = [
    "Notifier",
    "render_message",
]

logger = logging.getLogger(__name__)


def render_message(template: str, key: ReportKey) -> str:
    return template.format(shift=key.shift, date=key.date)


class Notifier:
    def __init__(self, config: NotificationConfig) -> None:
        self.config = config

    def _build(
        self,
        recipients: Sequence[str],
        subject: str,
        body: str,
        attachment: Path | None,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.config.from_email
        msg["To"] = ", ".join(recipients)
        if self.config.cc_emails:
            msg["Cc"] = ", ".join(self.config.cc_emails)
        msg["Subject"] = subject
        msg.set_content(body)
        if attachment is not None:
            ctype, _ = mimetypes.guess_type(attachment.name)
            maintype, subtype = (ctype or "application/octet-stream").split("/", 1)
            msg.add_attachment(
                attachment.read_bytes(),
                maintype=maintype,
                subtype=subtype,
                filename=attachment.name,
            )
        return msg

    def send(
        self,
        recipients: Sequence[str],
        subject: str,
        body: str,
        attachment: Path | None = None,
    ) -> bool:
        """Send one message; returns True when the SMTP server accepted it."""
        if not recipients:
            logger.warning("notify: no recipients specified")
            return False
        if attachment is not None and not attachment.exists():
            logger.warning("notify: attachment not found: %s", attachment)
            return False

        try:
            msg = self._build(recipients, subject, body, attachment)
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=60) as smtp:
                if self.config.use_tls:
                    smtp.starttls()
                if self.config.password:
                    smtp.login(self.config.from_email, self.config.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("notify: SMTP error: %s", e)
            return False

        logger.info("notify: sent %r to %d recipient(s)", subject, len(recipients))
        return True

    def send_report(self, key: ReportKey, workbook: Path) -> bool:
        return self.send(
            list(self.config.to_emails),
            render_message(self.config.subject, key),
            render_message(self.config.body, key),
            workbook,
        )
