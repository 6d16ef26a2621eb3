"""Email notifications using Amazon SES.

Email is best effort: notification helpers log failures and return False
instead of raising into the request that triggered them.
"""

from html import escape
from typing import Any

import boto3
import structlog
from botocore.exceptions import ClientError

from flashsynch.config import Settings
from flashsynch.models.lead import Lead

logger = structlog.get_logger()


class EmailError(Exception):
    """Custom exception for email-related errors."""

    def __init__(self, message: str, code: str | None = None):
        """Initialize EmailError.

        Args:
            message: Error message.
            code: Error code.
        """
        super().__init__(message)
        self.message = message
        self.code = code


class EmailService:
    """Service for sending emails via Amazon SES."""

    def __init__(self, settings: Settings, region_name: str | None = None):
        """Initialize Email service.

        Args:
            settings: Runtime settings carrying the sender address.
            region_name: Optional AWS region override.
        """
        self.settings = settings
        self.region_name = region_name
        self._client = None

    @property
    def client(self):
        """Get SES client (lazy initialization)."""
        if self._client is None:
            self._client = boto3.client("ses", region_name=self.region_name)
        return self._client

    @property
    def sender(self) -> str | None:
        if not self.settings.from_email:
            return None
        return f"{self.settings.from_name} <{self.settings.from_email}>"

    def send_email(
        self,
        to: str,
        subject: str,
        body_text: str,
        body_html: str | None = None,
        reply_to: list[str] | None = None,
    ) -> str:
        """Send an email.

        Args:
            to: Recipient email address.
            subject: Email subject.
            body_text: Plain text body.
            body_html: HTML body.
            reply_to: Reply-to addresses.

        Returns:
            SES message ID.

        Raises:
            EmailError: If the sender is not configured or SES rejects the message.
        """
        if not self.sender:
            raise EmailError("Sender email address is not configured", code="SENDER_MISSING")

        body: dict[str, Any] = {"Text": {"Data": body_text, "Charset": "UTF-8"}}
        if body_html:
            body["Html"] = {"Data": body_html, "Charset": "UTF-8"}

        kwargs: dict[str, Any] = {
            "Source": self.sender,
            "Destination": {"ToAddresses": [to]},
            "Message": {
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": body,
            },
        }
        if reply_to:
            kwargs["ReplyToAddresses"] = reply_to

        try:
            response = self.client.send_email(**kwargs)
        except ClientError as e:
            error_message = e.response["Error"]["Message"]
            logger.error(
                "SES send failed",
                error_code=e.response["Error"]["Code"],
                error_message=error_message,
            )
            raise EmailError(f"Failed to send email: {error_message}", code="SES_ERROR") from e

        logger.info("Email sent", message_id=response["MessageId"], subject=subject)
        return response["MessageId"]

    def send_lead_notification(
        self,
        to_email: str | None,
        owner_name: str,
        card_name: str,
        lead: Lead,
    ) -> bool:
        """Tell a card owner about a new lead.

        Args:
            to_email: Owner's email address.
            owner_name: Owner's display name.
            card_name: Display name of the card that captured the lead.
            lead: The new lead.

        Returns:
            True if the email was handed to SES.
        """
        if not to_email or not self.sender:
            logger.info("Lead notification skipped", lead_id=lead.id, has_recipient=bool(to_email))
            return False

        details = lead.lead
        contacts_url = f"{self.settings.frontend_url}/contacts"
        rows = [
            ("Name", details.name),
            ("Email", details.email),
            ("Phone", details.phone),
            ("Company", details.company),
            ("Notes", details.notes),
        ]
        rows = [(label, value) for label, value in rows if value]

        body_text = "\n".join(
            [
                f"Hi {owner_name},",
                "",
                f"Someone shared their details through your card \"{card_name}\".",
                "",
                *[f"{label}: {value}" for label, value in rows],
                "",
                f"View your contacts: {contacts_url}",
            ]
        )
        body_html = (
            f"<p>Hi {escape(owner_name)},</p>"
            f"<p>Someone shared their details through your card "
            f"<strong>{escape(card_name)}</strong>.</p>"
            "<table>"
            + "".join(
                f"<tr><td><strong>{label}</strong></td><td>{escape(value)}</td></tr>"
                for label, value in rows
            )
            + "</table>"
            f'<p><a href="{escape(contacts_url)}">View your contacts</a></p>'
        )

        try:
            self.send_email(
                to=to_email,
                subject=f"New lead from {details.name}",
                body_text=body_text,
                body_html=body_html,
                reply_to=[details.email],
            )
            return True
        except EmailError as e:
            logger.warning("Lead notification failed", lead_id=lead.id, error=e.message)
            return False
