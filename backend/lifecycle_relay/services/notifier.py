"""Email notifications for lifecycle events via Microsoft Graph.

IMPORTANT: Notifications are best effort. Every public method returns False
instead of raising when the service is not configured or sending fails, so
a mail problem never turns a processed webhook into an error response.

Configuration Required:
- AZURE_AD_TENANT_ID
- AZURE_AD_CLIENT_ID
- AZURE_AD_CLIENT_SECRET
- NOTIFICATION_SENDER (mailbox the app may send as)
- NOTIFICATION_RECIPIENTS (JSON list or comma separated)
"""

import html
import json

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient
from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.email_address import EmailAddress
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.message import Message
from msgraph.generated.models.recipient import Recipient
from msgraph.generated.users.item.send_mail.send_mail_post_request_body import (
    SendMailPostRequestBody,
)

from lifecycle_relay.config import Settings
from lifecycle_relay.core.logging import get_logger
from lifecycle_relay.schemas.lifecycle import LifecycleEvent, LifecycleEventKind

logger = get_logger(__name__)

# (subject, lead sentence) per notified event kind
EVENT_MESSAGES: dict[LifecycleEventKind, tuple[str, str]] = {
    LifecycleEventKind.INSTALL: (
        "New App Installation",
        "A new user has installed your app:",
    ),
    LifecycleEventKind.UNINSTALL: (
        "App Uninstalled",
        "The app has been uninstalled:",
    ),
    LifecycleEventKind.SUBSCRIPTION_CREATED: (
        "New App Subscription Created",
        "A new subscription has been created:",
    ),
    LifecycleEventKind.SUBSCRIPTION_CANCELLED: (
        "App Subscription Cancelled",
        "A subscription has been cancelled:",
    ),
    LifecycleEventKind.SUBSCRIPTION_RENEWED: (
        "App Subscription Renewed",
        "A subscription has been renewed:",
    ),
    LifecycleEventKind.SUBSCRIPTION_CHANGED: (
        "App Subscription Changed",
        "A subscription has been changed:",
    ),
}


def build_email_body(event: LifecycleEvent, lead: str) -> str:
    """Render the HTML body: a lead sentence and the pretty-printed payload."""
    payload = event.raw_data or event.data.model_dump(exclude_none=True)
    pretty = json.dumps(payload, indent=2, sort_keys=True, default=str)
    return (
        '<div style="font-family: -apple-system, BlinkMacSystemFont, '
        "'Segoe UI', Roboto, sans-serif;\">"
        f"<p>{html.escape(lead)}</p>"
        f'<pre style="background: #f4f4f5; padding: 16px;">{html.escape(pretty)}</pre>'
        "</div>"
    )


class LifecycleNotifier:
    """Sends one summary email per handled lifecycle event."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: GraphServiceClient | None = None

    def is_configured(self) -> bool:
        """Check if Graph email notifications are enabled and configured."""
        return (
            self.settings.notifications_enabled
            and self.settings.is_graph_email_configured
        )

    def _get_client(self) -> GraphServiceClient | None:
        """Get or create Microsoft Graph client.

        Returns None if not configured, allowing graceful degradation.
        """
        if not self.is_configured():
            return None

        if self._client is None:
            credential = ClientSecretCredential(
                tenant_id=self.settings.azure_ad_tenant_id,
                client_id=self.settings.azure_ad_client_id,
                client_secret=self.settings.azure_ad_client_secret,
            )
            self._client = GraphServiceClient(
                credentials=credential,
                scopes=["https://graph.microsoft.com/.default"],
            )

        return self._client

    async def send_email(
        self,
        to: str | list[str],
        subject: str,
        body: str,
    ) -> bool:
        """Send an email via Microsoft Graph API.

        Args:
            to: Recipient email address(es)
            subject: Email subject
            body: HTML body content

        Returns:
            True if sent successfully, False otherwise
        """
        client = self._get_client()
        if not client:
            logger.debug("graph_email_not_configured", operation="send_email")
            return False

        recipients = [to] if isinstance(to, str) else to

        try:
            message = Message(
                subject=subject,
                body=ItemBody(
                    content_type=BodyType.Html,
                    content=body,
                ),
                to_recipients=[
                    Recipient(email_address=EmailAddress(address=email))
                    for email in recipients
                ],
            )

            request_body = SendMailPostRequestBody(
                message=message,
                save_to_sent_items=False,
            )

            await client.users.by_user_id(
                self.settings.notification_sender
            ).send_mail.post(request_body)

            logger.info(
                "graph_email_sent",
                to=recipients,
                subject=subject[:50],
            )
            return True

        except Exception as e:
            logger.error(
                "graph_email_send_failed",
                error=str(e),
                error_type=type(e).__name__,
                to=recipients,
            )
            return False

    async def notify(self, event: LifecycleEvent) -> bool:
        """Email a summary of ``event`` to the configured recipients.

        Returns:
            True if an email was sent; False when skipped or on failure
        """
        message = EVENT_MESSAGES.get(event.kind)
        if message is None:
            return False

        if not self.is_configured():
            logger.debug("lifecycle_notification_skipped", reason="not_configured")
            return False

        subject, lead = message
        return await self.send_email(
            to=self.settings.notification_recipients,
            subject=subject,
            body=build_email_body(event, lead),
        )
