import logging

import requests

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
REQUEST_TIMEOUT = 10


class EmailDeliveryError(Exception):
    """Raised when the email provider does not accept a message."""


class SendGridEmailSender:
    """Send plain text and HTML emails through the SendGrid v3 REST API."""

    def __init__(self, api_key: str | None, sender: str, session: requests.Session | None = None):
        self.api_key = api_key
        self.sender = sender
        self.session = session or requests.Session()

    def send(self, to: str, subject: str, text: str, html: str):
        """
        Deliver one message.

        Args:
            to (str): Recipient address.
            subject (str): Subject line.
            text (str): Plain text body.
            html (str): HTML body.

        Raises:
            EmailDeliveryError: When no API key is configured or the provider rejects the request.
        """
        if not self.api_key:
            raise EmailDeliveryError("SENDGRID_API_KEY is not configured")

        message = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.sender},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": html},
            ],
        }
        try:
            response = self.session.post(
                SENDGRID_URL,
                json=message,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise EmailDeliveryError(f"Failed to send email to {to}: {exc}") from exc
        logger.info("Email sent to %s", to)


def create_email_sender(config: dict):
    return SendGridEmailSender(config.get("SENDGRID_API_KEY"), config["EMAIL_SENDER"])
