import json
from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessage

from kost.core import ai_scan
from kost.core.config import settings
from kost.core.errors import ConfigError, UpstreamError


class FakeChat:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return AIMessage(content=self.reply)


@pytest.fixture
def chat(monkeypatch):
    fake = FakeChat()
    monkeypatch.setattr(ai_scan, "_llm", lambda model, api_key, max_tokens=1024: fake)
    return fake


def test_scan_receipt_image(chat):
    chat.reply = "```json\n" + json.dumps({
        "type": "expense", "category": "air", "amount": 87_500, "store": "PDAM", "confidence": "high",
    }) + "\n```"

    tx = ai_scan.scan_receipt_image(b"\x89PNG", "image/png", "gsk_test")

    assert (tx.category, tx.amount, tx.store) == ("air", 87_500, "PDAM")
    image_part = chat.calls[0][0].content[1]
    assert image_part["image_url"]["url"].startswith("data:image/png;base64,")


def test_scan_unreadable_reply(chat):
    chat.reply = "Maaf, gambar terlalu buram."
    with pytest.raises(UpstreamError):
        ai_scan.scan_receipt_image(b"img", "image/jpeg", "gsk_test")


def test_scan_model_error_reply(chat):
    chat.reply = '{"error": "tidak bisa membaca"}'
    with pytest.raises(UpstreamError):
        ai_scan.scan_receipt_image(b"img", "image/jpeg", "gsk_test")


def test_scan_request_failure(chat):
    chat.error = RuntimeError("503 from upstream")
    with pytest.raises(UpstreamError):
        ai_scan.scan_receipt_image(b"img", "image/jpeg", "gsk_test")


def test_text_fallback(chat):
    chat.reply = '{"type": "expense", "category": "wifi", "amount": 350000, "notes": "indihome"}'

    tx = ai_scan.parse_transaction_text_ai("bayar indihome tiga ratus lima puluh ribu", "gsk_test")

    assert (tx.category, tx.amount, tx.notes) == ("wifi", 350_000, "indihome")


def test_text_fallback_not_a_transaction(chat):
    chat.reply = '{"error": "bukan transaksi"}'
    assert ai_scan.parse_transaction_text_ai("selamat pagi", "gsk_test") is None


def test_resolve_key(monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_env")

    assert ai_scan.resolve_groq_key(SimpleNamespace(groq_api_key="gsk_row")) == "gsk_row"
    assert ai_scan.resolve_groq_key(SimpleNamespace(groq_api_key=None)) == "gsk_env"

    monkeypatch.setattr(settings, "GROQ_API_KEY", None)
    with pytest.raises(ConfigError):
        ai_scan.resolve_groq_key(None)
