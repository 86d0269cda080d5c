"""Thin Telegram Bot API client."""
import logging
from typing import Optional

import requests

from kost.core.errors import ConfigError, UpstreamError

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramClient:
    def __init__(self, token: Optional[str]):
        if not token:
            raise ConfigError("Bot token not configured")
        self.token = token

    def call(self, method: str, payload: Optional[dict] = None) -> dict:
        try:
            response = requests.post(f"{API_BASE}/bot{self.token}/{method}", json=payload or {}, timeout=20)
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.exception("Telegram %s failed", method)
            raise UpstreamError(f"Telegram API error: {e}")

    def send_message(self, chat_id: int, text: str, reply_markup: Optional[dict] = None) -> dict:
        payload = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self.call("sendMessage", payload)

    def edit_message(self, chat_id: int, message_id: int, text: str) -> dict:
        return self.call("editMessageText", {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": "HTML",
        })

    def answer_callback(self, callback_id: str, text: Optional[str] = None) -> dict:
        return self.call("answerCallbackQuery", {"callback_query_id": callback_id, "text": text})

    def download_file(self, file_id: str) -> bytes:
        info = self.call("getFile", {"file_id": file_id})
        file_path = (info.get("result") or {}).get("file_path")
        if not file_path:
            raise UpstreamError("Gagal mengunduh foto.")
        try:
            response = requests.get(f"{API_BASE}/file/bot{self.token}/{file_path}", timeout=30)
            response.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamError(f"Gagal mengunduh foto: {e}")
        return response.content

    def set_webhook(self, url: str) -> dict:
        return self.call("setWebhook", {"url": url})
