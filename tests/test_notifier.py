"""
Tests for the SMTP notifier and its message templates.
"""

import smtplib
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from ebay_watch.errors import MailError
from ebay_watch.schemas import Listing, SearchCriteria
from ebay_watch.services import templates
from ebay_watch.services.notifier import ERROR_ALERT_SUBJECT, Notifier

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def listings():
    return [
        Listing(
            title="Canon AE-1 <Program>",
            price="125.50",
            bids=3,
            end_time=(NOW + timedelta(minutes=30)).isoformat(),
            condition="Used",
            url="https://www.ebay.com/itm/123",
            seller="camera_shop",
            shipping="9.99",
        ),
        Listing(title="Mystery lot"),
    ]


@pytest.fixture
def smtp():
    with patch("ebay_watch.services.notifier.smtplib.SMTP") as factory:
        yield factory


class TestTemplates:
    def test_time_left(self):
        assert templates.time_left((NOW + timedelta(minutes=30)).isoformat(), NOW) == "ends in 30 minutes"
        assert templates.time_left("2024-01-01T11:00:00.000Z", NOW) == "ended"
        assert templates.time_left(None, NOW) == "unknown"
        assert templates.time_left("garbage", NOW) == "unknown"

    def test_subject(self, listings):
        assert templates.subject_line(listings, SearchCriteria(keyword="camera")) == (
            'eBay Monitor: 2 listings for "camera" ending soon'
        )
        assert templates.subject_line(listings[:1], SearchCriteria()) == "eBay Monitor: 1 listing ending soon"

    def test_text_lists_title_price_and_bids(self, listings):
        text = templates.results_text(listings, SearchCriteria(keyword="camera", minPrice=10), NOW)
        assert "1. Canon AE-1 <Program>" in text
        assert "Price: $125.50 | Bids: 3 | Condition: Used" in text
        assert "ends in 30 minutes" in text
        assert "2. Mystery lot" in text
        assert "Price: N/A | Bids: 0 | Condition: Unknown" in text
        assert "price: 10 - ∞" in text

    def test_html_escapes_titles(self, listings):
        body = templates.results_html(listings, SearchCriteria(keyword="camera"), NOW)
        assert "Canon AE-1 &lt;Program&gt;" in body
        assert 'href="https://www.ebay.com/itm/123"' in body
        assert "3 bids" in body


class TestNotifier:
    @pytest.mark.asyncio
    async def test_send_results(self, cfg, smtp, listings):
        await Notifier(cfg).send_results("a@b.com", listings, SearchCriteria(keyword="camera"))

        smtp.assert_called_once_with(cfg.SMTP_HOST, cfg.SMTP_PORT, timeout=cfg.SMTP_TIMEOUT)
        server = smtp.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("monitor@example.com", "secret")
        msg = server.send_message.call_args.args[0]
        assert msg["To"] == "a@b.com"
        assert msg["From"] == "monitor@example.com"
        assert msg["Subject"] == 'eBay Monitor: 2 listings for "camera" ending soon'
        server.quit.assert_called_once()

    @pytest.mark.asyncio
    async def test_rejected_send_raises_mail_error(self, cfg, smtp, listings):
        smtp.return_value.send_message.side_effect = smtplib.SMTPDataError(554, b"rejected")
        with pytest.raises(MailError):
            await Notifier(cfg).send_results("a@b.com", listings, SearchCriteria())

    @pytest.mark.asyncio
    async def test_connection_failure_raises_mail_error(self, cfg, smtp, listings):
        smtp.side_effect = ConnectionRefusedError("no smtp here")
        with pytest.raises(MailError):
            await Notifier(cfg).send_results("a@b.com", listings, SearchCriteria())

    @pytest.mark.asyncio
    async def test_missing_sender(self, cfg, smtp, listings):
        cfg.EMAIL_USER = None
        with pytest.raises(MailError):
            await Notifier(cfg).send_results("a@b.com", listings, SearchCriteria())
        smtp.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_alert(self, cfg, smtp):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            error = e

        await Notifier(cfg).send_error_alert("admin@b.com", error)

        msg = smtp.return_value.send_message.call_args.args[0]
        assert msg["Subject"] == ERROR_ALERT_SUBJECT
        assert msg["To"] == "admin@b.com"

    @pytest.mark.asyncio
    async def test_error_alert_failure_is_swallowed(self, cfg, smtp, caplog):
        smtp.side_effect = OSError("network down")
        await Notifier(cfg).send_error_alert("admin@b.com", RuntimeError("boom"))
        assert "Failed to send error notification" in caplog.text

    @pytest.mark.asyncio
    async def test_verify_transport(self, cfg, smtp):
        assert await Notifier(cfg).verify_transport() is True
        smtp.return_value.noop.assert_called_once()

    @pytest.mark.asyncio
    async def test_verify_transport_failure_is_not_fatal(self, cfg, smtp, caplog):
        smtp.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        assert await Notifier(cfg).verify_transport() is False
        assert "Email transport check failed" in caplog.text
        smtp.return_value.close.assert_called_once()
