# ebay_watch/services/notifier.py
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from ebay_watch.config import Settings, settings as default_settings
from ebay_watch.errors import MailError
from ebay_watch.schemas import Listing, SearchCriteria
from ebay_watch.services import templates

logger = logging.getLogger(__name__)

ERROR_ALERT_SUBJECT = "eBay Monitor - Error Alert"


class Notifier:
    def __init__(self, cfg: Optional[Settings] = None):
        self.cfg = cfg or default_settings

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.cfg.SMTP_HOST, self.cfg.SMTP_PORT, timeout=self.cfg.SMTP_TIMEOUT)
        try:
            server.starttls()
            if self.cfg.EMAIL_USER and self.cfg.EMAIL_PASS:
                server.login(self.cfg.EMAIL_USER, self.cfg.EMAIL_PASS)
        except Exception:
            server.close()
            raise
        return server

    def _build(self, to: str, subject: str, text: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.cfg.sender_address or ""
        msg["To"] = str(to)
        msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _send_blocking(self, msg: MIMEMultipart) -> None:
        server = self._connect()
        try:
            server.send_message(msg)
        finally:
            server.quit()

    async def send_mail(self, to: str, subject: str, text: str, html_body: str) -> None:
        if not self.cfg.sender_address:
            raise MailError("EMAIL_USER / EMAIL_FROM is not configured")
        msg = self._build(to, subject, text, html_body)
        try:
            await asyncio.to_thread(self._send_blocking, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"sending mail to {to} failed: {e}") from e
        logger.info("Mail sent to %s: %s", to, subject)

    async def send_results(self, to_email: str, listings: list[Listing], criteria: SearchCriteria) -> None:
        await self.send_mail(
            to_email,
            templates.subject_line(listings, criteria),
            templates.results_text(listings, criteria),
            templates.results_html(listings, criteria),
        )

    async def send_error_alert(self, to_admin_email: str, error: BaseException) -> None:
        try:
            await self.send_mail(
                to_admin_email,
                ERROR_ALERT_SUBJECT,
                templates.error_text(error),
                templates.error_html(error),
            )
        except Exception:
            # never mask the failure that triggered the alert
            logger.exception("Failed to send error notification to %s", to_admin_email)

    def _verify_blocking(self) -> None:
        server = self._connect()
        try:
            server.noop()
        finally:
            server.quit()

    async def verify_transport(self) -> bool:
        try:
            await asyncio.to_thread(self._verify_blocking)
        except Exception as e:
            logger.error("Email transport check failed (%s:%s): %s", self.cfg.SMTP_HOST, self.cfg.SMTP_PORT, e)
            return False
        logger.info("Email transport ready (%s:%s)", self.cfg.SMTP_HOST, self.cfg.SMTP_PORT)
        return True
