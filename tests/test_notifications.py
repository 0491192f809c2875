"""Tests for the SMTP staff notification."""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from nushu_service.shared.contact.database import ContactSubmission
from nushu_service.shared.contact.notifications import (
    SmtpNotificationDispatcher,
    build_notification_html,
    build_notification_text,
)


@pytest.fixture
def submission():
    return ContactSubmission(
        id="0b9a3c52-1f7e-4a52-9a53-0c1e8f6f2a10",
        name="Ada <script>",
        email="ada@example.com",
        message="I'd love to attend.",
        interested_event="Nushu Writing Workshop",
        status="new",
        created_at=datetime.utcnow(),
    )


@pytest.fixture
def smtp_env(monkeypatch):
    monkeypatch.setenv("CONTACT_EMAIL", "staff@example.org")
    monkeypatch.setenv("SMTP_HOST", "smtp.example.org")
    monkeypatch.setenv("SMTP_PORT", "2525")
    monkeypatch.setenv("SMTP_USER", "mailer@example.org")
    monkeypatch.setenv("SMTP_PASSWORD", "secret")
    monkeypatch.setenv("NOTIFICATION_TIMEOUT_SECONDS", "3")


class TestSmtpNotificationDispatcher:
    def test_skips_without_destination(self, monkeypatch, submission):
        monkeypatch.delenv("CONTACT_EMAIL", raising=False)
        monkeypatch.setenv("SMTP_USER", "mailer@example.org")
        monkeypatch.setenv("SMTP_PASSWORD", "secret")

        with patch("nushu_service.shared.contact.notifications.smtplib.SMTP") as smtp:
            SmtpNotificationDispatcher().send(submission)

        smtp.assert_not_called()

    def test_skips_without_credentials(self, monkeypatch, submission):
        monkeypatch.setenv("CONTACT_EMAIL", "staff@example.org")
        monkeypatch.delenv("SMTP_USER", raising=False)
        monkeypatch.delenv("SMTP_PASSWORD", raising=False)

        with patch("nushu_service.shared.contact.notifications.smtplib.SMTP") as smtp:
            SmtpNotificationDispatcher().send(submission)

        smtp.assert_not_called()

    def test_sends_one_message_with_timeout(self, smtp_env, submission):
        with patch("nushu_service.shared.contact.notifications.smtplib.SMTP") as smtp:
            server = MagicMock()
            smtp.return_value.__enter__.return_value = server

            SmtpNotificationDispatcher().send(submission)

        smtp.assert_called_once_with("smtp.example.org", 2525, timeout=3.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer@example.org", "secret")
        server.send_message.assert_called_once()
        msg = server.send_message.call_args[0][0]
        assert msg["To"] == "staff@example.org"
        assert msg["Reply-To"] == "ada@example.com"
        assert msg["Subject"] == "New Contact Form Submission from Ada <script>"

    def test_overall_deadline_stops_slow_delivery(self, smtp_env, submission):
        with patch("nushu_service.shared.contact.notifications.smtplib.SMTP") as smtp, \
                patch("nushu_service.shared.contact.notifications.time") as fake_time:
            server = MagicMock()
            smtp.return_value.__enter__.return_value = server
            # deadline at 3.0; starttls finishes at 3.5
            fake_time.monotonic.side_effect = [0.0, 0.5, 3.5]

            SmtpNotificationDispatcher().send(submission)

        server.sock.settimeout.assert_called_once_with(2.5)
        server.starttls.assert_called_once()
        server.login.assert_not_called()
        server.send_message.assert_not_called()

    def test_delivery_failure_is_absorbed(self, smtp_env, submission):
        with patch("nushu_service.shared.contact.notifications.smtplib.SMTP",
                   side_effect=TimeoutError("timed out")) as smtp:
            SmtpNotificationDispatcher().send(submission)

        assert smtp.call_count == 1


class TestNotificationBody:
    def test_text_includes_interested_event(self, submission):
        text = build_notification_text(submission)

        assert "Interested in Event: Nushu Writing Workshop" in text
        assert "I'd love to attend." in text

    def test_text_omits_empty_interested_event(self, submission):
        submission.interested_event = ""

        assert "Interested in Event" not in build_notification_text(submission)

    def test_html_escapes_user_input(self, submission):
        html = build_notification_html(submission)

        assert "<script>" not in html
        assert "Ada &lt;script&gt;" in html
