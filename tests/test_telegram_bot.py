from datetime import datetime, timedelta, timezone

import pytest

from kost.core.config import settings
from kost.core.transactions import ParsedTransaction
from kost.models import AuditLog, Expense, PendingTransaction
from kost.services.telegram_bot import START_TEXT, KostBot

CHAT_ID = 4242


class FakeTelegram:
    def __init__(self):
        self.sent = []
        self.edited = []
        self.answered = []

    def send_message(self, chat_id, text, reply_markup=None):
        self.sent.append({"chat_id": chat_id, "text": text, "reply_markup": reply_markup})
        return {"ok": True}

    def edit_message(self, chat_id, message_id, text):
        self.edited.append({"chat_id": chat_id, "message_id": message_id, "text": text})
        return {"ok": True}

    def answer_callback(self, callback_id, text=None):
        self.answered.append(text)
        return {"ok": True}

    def download_file(self, file_id):
        return b"\xff\xd8photo"


@pytest.fixture
def telegram():
    return FakeTelegram()


@pytest.fixture
def bot(db, telegram):
    return KostBot(db, telegram, settings.PROPERTY_ID)


def _message(text=None, **extra):
    message = {"message_id": 1, "chat": {"id": CHAT_ID}, **extra}
    if text is not None:
        message["text"] = text
    return {"update_id": 1, "message": message}


def _callback(data):
    return {
        "update_id": 2,
        "callback_query": {"id": "cb-1", "data": data, "message": {"chat": {"id": CHAT_ID}, "message_id": 9}},
    }


def _pending_id(telegram):
    buttons = telegram.sent[-1]["reply_markup"]["inline_keyboard"][0]
    return buttons[0]["callback_data"].split(":", 1)[1]


def test_start_command(bot, telegram):
    bot.handle_update(_message("/start"))
    assert telegram.sent[-1]["text"] == START_TEXT


def test_unknown_command(bot, telegram):
    bot.handle_update(_message("/hapus"))
    assert "tidak dikenal" in telegram.sent[-1]["text"]


def test_text_then_save(bot, db, telegram):
    bot.handle_update(_message("pengeluaran listrik 150rb token"))

    confirmation = telegram.sent[-1]
    assert "Rp 150.000" in confirmation["text"]
    pending_id = _pending_id(telegram)
    assert pending_id.startswith(f"pending_{CHAT_ID}_")
    assert db.query(PendingTransaction).count() == 1

    bot.handle_update(_callback(f"save:{pending_id}"))

    expense = db.query(Expense).one()
    assert expense.status == "confirmed"
    assert expense.method == "cash"
    assert expense.created_by == "telegram_bot"
    assert expense.category == "listrik"
    assert expense.amount == 150_000
    assert db.query(PendingTransaction).count() == 0
    assert "Tersimpan" in telegram.edited[-1]["text"]
    assert db.query(AuditLog).filter(AuditLog.source == "telegram").count() == 1


def test_cancel_discards_pending(bot, db, telegram):
    bot.handle_update(_message("pemasukan modal 1jt"))
    pending_id = _pending_id(telegram)

    bot.handle_update(_callback(f"cancel:{pending_id}"))

    assert db.query(PendingTransaction).count() == 0
    assert db.query(Expense).count() == 0
    assert "dibatalkan" in telegram.edited[-1]["text"]


def test_expired_pending_is_not_saved(bot, db, telegram):
    bot.handle_update(_message("pengeluaran air 80rb"))
    pending_id = _pending_id(telegram)
    db.query(PendingTransaction).update(
        {"expires_at": datetime.now(timezone.utc) - timedelta(minutes=1)}, synchronize_session=False
    )
    db.commit()

    bot.handle_update(_callback(f"save:{pending_id}"))

    assert db.query(Expense).count() == 0
    assert "kedaluwarsa" in telegram.edited[-1]["text"]


def test_unreadable_text_without_ai(bot, db, telegram):
    bot.handle_update(_message("tolong catat yang tadi"))

    assert "Tidak bisa memahami" in telegram.sent[-1]["text"]
    assert db.query(PendingTransaction).count() == 0


def test_unreadable_text_uses_ai_fallback(bot, telegram, monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
    monkeypatch.setattr(
        "kost.services.telegram_bot.parse_transaction_text_ai",
        lambda text, api_key: ParsedTransaction(category="wifi", amount=350_000, notes="indihome"),
    )

    bot.handle_update(_message("tadi bayar indihome tiga ratus lima puluh"))

    assert "wifi" in telegram.sent[-1]["text"]
    assert telegram.sent[-1]["reply_markup"] is not None


def test_photo_is_scanned(bot, telegram, monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
    seen = {}

    def fake_scan(image, mime, api_key):
        seen["image"] = image
        return ParsedTransaction(category="perbaikan", amount=420_000, store="TB Sinar", confidence="low")

    monkeypatch.setattr("kost.services.telegram_bot.scan_receipt_image", fake_scan)

    bot.handle_update(_message(photo=[{"file_id": "small"}, {"file_id": "large"}]))

    assert seen["image"] == b"\xff\xd8photo"
    text = telegram.sent[-1]["text"]
    assert "TB Sinar" in text
    assert "Confidence rendah" in text


def test_photo_without_amount(bot, db, telegram, monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
    monkeypatch.setattr(
        "kost.services.telegram_bot.scan_receipt_image",
        lambda image, mime, api_key: ParsedTransaction(amount=0),
    )

    bot.handle_update(_message(photo=[{"file_id": "large"}]))

    assert "Tidak bisa mendeteksi" in telegram.sent[-1]["text"]
    assert db.query(PendingTransaction).count() == 0


def test_balance_command(bot, telegram, add_entry):
    today = datetime.now(timezone.utc).date().isoformat()
    add_entry(today, "modal", 2_000_000, type="income")
    add_entry(today, "listrik", 500_000)
    add_entry(today, "air", 100_000, status="draft")

    bot.handle_update(_message("/saldo"))

    text = telegram.sent[-1]["text"]
    assert "Rp 2.000.000" in text
    assert "Rp 500.000" in text
    assert "Rp 1.500.000" in text


def test_report_command_empty_month(bot, telegram):
    bot.handle_update(_message("/laporan"))
    assert "Belum ada transaksi" in telegram.sent[-1]["text"]


def test_errors_do_not_escape(bot, telegram, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("network down")

    monkeypatch.setattr(telegram, "send_message", broken)

    bot.handle_update(_message("/start"))


def test_webhook_without_token(client):
    res = client.post("/api/telegram/webhook", json=_message("/start"))
    assert res.status_code == 200
    assert res.json() == {"ok": True}


def test_webhook_dispatches_update(client, telegram, monkeypatch):
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr("kost.api.routes.telegram.TelegramClient", lambda token: telegram)

    res = client.post("/api/telegram/webhook", json=_message("/bantuan"))

    assert res.status_code == 200
    assert "Panduan" in telegram.sent[-1]["text"]
