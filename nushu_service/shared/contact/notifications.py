"""Staff notification email for new contact submissions."""

import os
import time
import smtplib
import logging
from html import escape
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from nushu_service.shared.contact.database import ContactSubmission

DEFAULT_TIMEOUT_SECONDS = 5.0


class NotificationDispatcher:
    """
    Best-effort delivery of a new-submission notice.

    ``send`` must never raise: the submission is already stored when it
    runs, and the caller's contract is "your message was received".
    """

    def send(self, submission: ContactSubmission) -> None:
        try:
            self.deliver(submission)
        except Exception as e:
            logging.error(
                f"Failed to send contact notification for submission {submission.id}: {str(e)}",
                exc_info=True
            )

    def deliver(self, submission: ContactSubmission) -> None:
        raise NotImplementedError


def build_notification_text(submission: ContactSubmission) -> str:
    interested = f"Interested in Event: {submission.interested_event}\n" if submission.interested_event else ""
    return f"""
New contact form submission from the Nushu Association website:

From: {submission.name}
Email: {submission.email}
{interested}
Message:
{submission.message}

---
Reply directly to this email to respond to {submission.name} ({submission.email}).
"""


def build_notification_html(submission: ContactSubmission) -> str:
    name = escape(submission.name)
    email = escape(submission.email)
    interested = ""
    if submission.interested_event:
        interested = f"""
        <p style="margin-bottom: 15px;">
          <strong style="color: #8B6F47;">Interested in Event:</strong>
          <span style="background-color: #FAF6F1; padding: 4px 8px; border-radius: 4px; color: #8B6F47;">{escape(submission.interested_event)}</span>
        </p>"""
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #8B6F47; border-bottom: 2px solid #C17C5C; padding-bottom: 10px;">New Contact Form Submission</h2>
    <div style="margin-top: 20px; line-height: 1.6;">
        <p style="margin-bottom: 15px;"><strong style="color: #8B6F47;">From:</strong> {name}</p>
        <p style="margin-bottom: 15px;">
          <strong style="color: #8B6F47;">Email:</strong>
          <a href="mailto:{email}" style="color: #C17C5C;">{email}</a>
        </p>{interested}
        <div style="margin-top: 20px;">
          <strong style="color: #8B6F47;">Message:</strong>
          <div style="margin-top: 10px; padding: 15px; background-color: #FAF6F1; border-left: 4px solid #C17C5C; border-radius: 4px; white-space: pre-wrap;">{escape(submission.message)}</div>
        </div>
    </div>
    <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #E5DED3; color: #8B6F47; font-size: 12px;">
        <p>This message was sent from the Nushu Culture &amp; Research Association website contact form.</p>
    </div>
</body>
</html>
"""


def _tighten_timeout(server: smtplib.SMTP, deadline: float) -> None:
    """
    Shrink the socket timeout to what is left before ``deadline``.

    The SMTP timeout applies per socket operation; this bounds the whole
    delivery.
    """
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise TimeoutError("Contact notification delivery deadline exceeded")
    if server.sock is not None:
        server.sock.settimeout(remaining)


class SmtpNotificationDispatcher(NotificationDispatcher):
    """Sends the notice to CONTACT_EMAIL over SMTP with STARTTLS."""

    def deliver(self, submission: ContactSubmission) -> None:
        # Get email configuration from environment variables
        contact_email = os.environ.get("CONTACT_EMAIL")
        smtp_host = os.environ.get("SMTP_HOST", "smtp.gmail.com")
        smtp_port = int(os.environ.get("SMTP_PORT", "587"))
        smtp_user = os.environ.get("SMTP_USER")
        smtp_password = os.environ.get("SMTP_PASSWORD")
        timeout = float(os.environ.get("NOTIFICATION_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))

        if not contact_email:
            logging.warning("CONTACT_EMAIL not configured, skipping contact notification")
            return
        if not smtp_user or not smtp_password:
            logging.warning("SMTP credentials not configured, skipping contact notification")
            return

        msg = MIMEMultipart('alternative')
        msg['From'] = os.environ.get("NOTIFICATION_FROM", smtp_user)
        msg['To'] = contact_email
        msg['Reply-To'] = submission.email  # Allow staff to reply directly to the sender
        msg['Subject'] = f"New Contact Form Submission from {submission.name}"
        msg.attach(MIMEText(build_notification_text(submission), 'plain'))
        msg.attach(MIMEText(build_notification_html(submission), 'html'))

        deadline = time.monotonic() + timeout
        with smtplib.SMTP(smtp_host, smtp_port, timeout=timeout) as server:
            _tighten_timeout(server, deadline)
            server.starttls()  # Enable encryption
            _tighten_timeout(server, deadline)
            server.login(smtp_user, smtp_password)
            _tighten_timeout(server, deadline)
            server.send_message(msg)

        logging.info(f"Contact notification sent for submission {submission.id}")


_dispatcher = SmtpNotificationDispatcher()


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dependency returning the process-wide dispatcher."""
    return _dispatcher
