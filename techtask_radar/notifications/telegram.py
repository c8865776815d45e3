from __future__ import annotations

from typing import Optional

import httpx
from loguru import logger

TELEGRAM_API_BASE = "https://api.telegram.org"
SEND_MESSAGE_TIMEOUT = 10  # seconds


class TelegramSender:
    """Send messages to a channel via the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        client: Optional[httpx.Client] = None,
    ):
        self.bot_token = bot_token
        self.channel_id = channel_id
        self.client = client

    def _post(self, url: str, payload: dict) -> httpx.Response:
        if self.client is not None:
            return self.client.post(url, json=payload)
        with httpx.Client(timeout=SEND_MESSAGE_TIMEOUT) as client:
            return client.post(url, json=payload)

    def send(self, text: str) -> bool:
        """Send a message to the configured channel.

        Args:
            text: Message text in Telegram HTML format.

        Returns:
            True if sent successfully, False otherwise.
        """
        url = f"{TELEGRAM_API_BASE}/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": self.channel_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": False,
        }

        try:
            response = self._post(url, payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Telegram API error: {e.response.status_code} - {e.response.text}"
            )
            return False
        except httpx.RequestError as e:
            logger.error(f"Telegram request failed: {e}")
            return False

        logger.info(f"Telegram message sent to {self.channel_id}")
        return True
