"""
Telegram Notifier Module
Delivers messages to Telegram chats through the Bot API
"""

import logging
from typing import Optional, Sequence

import requests

from .errors import DeliveryError


logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org/bot{token}"


class TelegramNotifier:
    """Sends plain-text messages to every configured chat"""

    def __init__(self, token: str, session: Optional[requests.Session] = None, timeout: int = 30):
        """
        Initialize notifier

        Args:
            token: Bot token issued by @BotFather
            session: HTTP session (tests inject a dummy here)
            timeout: Per-request timeout in seconds
        """
        if not token:
            raise DeliveryError("telegram token is required")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _base_url(self) -> str:
        return TELEGRAM_API_BASE.format(token=self.token)

    def notify(self, chat_ids: Sequence[int], message: str):
        """
        Send a message to each chat in turn

        Raises:
            DeliveryError: On the first chat that could not be reached
        """
        for chat_id in chat_ids:
            self._send_message(chat_id, message)

    def _send_message(self, chat_id: int, text: str):
        url = f"{self._base_url()}/sendMessage"
        payload = {"chat_id": chat_id, "text": text}

        # Error texts from requests embed the URL, which carries the bot token
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise DeliveryError(f"send message to {chat_id}: {type(e).__name__}") from e

        if not 200 <= response.status_code < 300:
            raise DeliveryError(f"send message to {chat_id}: unexpected status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise DeliveryError(f"send message to {chat_id}: invalid response: {e}") from e

        if not isinstance(data, dict):
            raise DeliveryError(f"send message to {chat_id}: unexpected response of type {type(data).__name__}")

        if not data.get("ok", False):
            raise DeliveryError(f"send message to {chat_id}: {data.get('description', 'unknown error')}")

        logger.debug(f"Delivered message to chat {chat_id}")
