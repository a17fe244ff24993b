"""Discord Notifier - Delivers the report to a Discord channel through a temporary webhook."""

import json
import logging
from typing import Any, Dict, Optional

import requests

from errors import DeliveryError

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"

# Discord rejects messages whose content exceeds this many characters
MAX_CONTENT_LENGTH = 2000

DEFAULT_FILENAME = "cost_report.png"


def truncate_content(content: str, limit: int = MAX_CONTENT_LENGTH) -> str:
    """Cut content at a line boundary so it fits within ``limit`` characters."""
    if len(content) <= limit:
        return content

    suffix = "\n..."
    budget = limit - len(suffix)
    cut = content.rfind("\n", 0, budget)
    if cut <= 0:
        cut = budget
    truncated = content[:cut] + suffix
    logger.warning(f"Message content truncated from {len(content)} to {len(truncated)} characters")
    return truncated


class DiscordNotifier:
    """
    Post a message with an optional PNG attachment to a Discord channel.

    A webhook is created in the channel with the bot token, used once to post
    the message, and deleted afterwards.
    """

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        webhook_name: str = "aws",
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        api_base: str = DISCORD_API_BASE,
    ) -> None:
        """
        Initialize the notifier.

        Args:
            bot_token: Discord bot token
            channel_id: Target channel ID
            webhook_name: Name of the temporary webhook (also the posting username)
            timeout: Per-request timeout in seconds
            session: requests Session to use (a new one by default)
            api_base: Discord API base URL
        """
        self.bot_token = bot_token
        self.channel_id = channel_id
        self.webhook_name = webhook_name
        self.timeout = timeout
        self.session = session or requests.Session()
        self.api_base = api_base.rstrip("/")

    @property
    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bot {self.bot_token}"}

    def _request(self, step: str, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Discord {step} request failed with status {status}: {e}")
            raise DeliveryError(
                f"Discord webhook {step} failed: {e}", step=step, status_code=status
            ) from e
        except requests.RequestException as e:
            logger.error(f"Discord {step} request failed: {e}")
            raise DeliveryError(f"Discord webhook {step} failed: {e}", step=step) from e
        return response

    @staticmethod
    def _json(response: requests.Response, step: str) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise DeliveryError(f"Discord webhook {step} returned invalid JSON", step=step) from e

    def create_webhook(self) -> Dict[str, Any]:
        """Create a webhook in the target channel and return its JSON description."""
        url = f"{self.api_base}/channels/{self.channel_id}/webhooks"
        response = self._request(
            "create", "POST", url, headers=self._auth_headers, json={"name": self.webhook_name}
        )
        webhook = self._json(response, "create")
        if "id" not in webhook or "token" not in webhook:
            raise DeliveryError("Discord webhook create response lacks id/token", step="create")
        logger.info(f"Created webhook {webhook['id']} in channel {self.channel_id}")
        return webhook

    def execute_webhook(
        self,
        webhook: Dict[str, Any],
        content: str,
        attachment: Optional[bytes] = None,
        filename: str = DEFAULT_FILENAME,
    ) -> Dict[str, Any]:
        """Post the message through the webhook and return the created message."""
        url = f"{self.api_base}/webhooks/{webhook['id']}/{webhook['token']}"
        payload: Dict[str, Any] = {
            "username": webhook.get("name") or self.webhook_name,
            "content": truncate_content(content),
        }

        kwargs: Dict[str, Any] = {"params": {"wait": "true"}}
        if attachment is not None:
            payload["attachments"] = [{"id": 0, "filename": filename}]
            kwargs["data"] = {"payload_json": json.dumps(payload)}
            kwargs["files"] = {"files[0]": (filename, attachment, "image/png")}
        else:
            kwargs["json"] = payload

        response = self._request("execute", "POST", url, **kwargs)
        return self._json(response, "execute")

    def delete_webhook(self, webhook_id: str) -> None:
        """Delete a webhook created by this notifier."""
        url = f"{self.api_base}/webhooks/{webhook_id}"
        self._request("delete", "DELETE", url, headers=self._auth_headers)
        logger.info(f"Deleted webhook {webhook_id}")

    def send(
        self, content: str, attachment: Optional[bytes] = None, filename: str = DEFAULT_FILENAME
    ) -> Optional[str]:
        """
        Deliver one message to the channel.

        Args:
            content: Message text
            attachment: PNG bytes to attach (optional)
            filename: Attachment filename

        Returns:
            ID of the posted message, if Discord returned one

        Raises:
            DeliveryError: If creating, executing or deleting the webhook fails
        """
        webhook = self.create_webhook()
        try:
            message = self.execute_webhook(webhook, content, attachment, filename)
        except DeliveryError:
            try:
                self.delete_webhook(webhook["id"])
            except DeliveryError as cleanup_error:
                logger.error(f"Could not clean up webhook {webhook['id']}: {cleanup_error}")
            raise

        self.delete_webhook(webhook["id"])
        message_id = message.get("id")
        logger.info(f"Report delivered to channel {self.channel_id} (message {message_id})")
        return message_id
