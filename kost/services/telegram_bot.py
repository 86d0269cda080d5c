"""
Telegram bot for recording cash transactions.

Flow: a photo or a text message is parsed into a transaction, stored as pending
for 10 minutes and echoed back with Save / Cancel buttons. Save writes a
confirmed ledger row (method ``cash``, created by ``telegram_bot``) and mirrors
it to the cash sheet.
"""
import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from kost.core.ai_scan import parse_transaction_text_ai, resolve_groq_key, scan_receipt_image
from kost.core.audit import BOT_ACTOR, log_audit
from kost.core.errors import AppError, ConfigError
from kost.core.period import current_period, today_iso
from kost.core.telegram import TelegramClient
from kost.core.transactions import ParsedTransaction, parse_transaction_text
from kost.core.utils import format_rupiah
from kost.models.pending_transaction import PendingTransaction
from kost.services.dashboard import cash_totals, ledger_breakdown
from kost.services.ledger import create_expense, mirror_expense
from kost.services.property_settings import get_property_settings

logger = logging.getLogger(__name__)

PENDING_TTL = timedelta(minutes=10)
BOT_CREATED_BY = "telegram_bot"

START_TEXT = (
    "🏠 <b>Kost Annisa Bot</b>\n\n"
    "Saya membantu mencatat keuangan kos Anda.\n\n"
    "<b>📸 Kirim Foto</b>: foto nota/struk untuk analisa otomatis\n"
    "<b>✍️ Ketik Manual</b>, contoh:\n"
    "<code>pengeluaran listrik 150rb</code>\n"
    "<code>pemasukan sewa 500rb</code>\n\n"
    "<b>📊 Perintah:</b>\n"
    "/saldo: lihat saldo kas\n"
    "/laporan: ringkasan bulan ini\n"
    "/bantuan: panduan lengkap"
)

HELP_TEXT = (
    "📖 <b>Panduan Penggunaan</b>\n\n"
    "<b>1. Catat Pengeluaran</b>\n"
    "Ketik: <code>pengeluaran [kategori] [jumlah] [catatan]</code>\n"
    "Contoh: <code>pengeluaran listrik 285000</code>\n\n"
    "<b>2. Catat Pemasukan</b>\n"
    "Ketik: <code>pemasukan [kategori] [jumlah]</code>\n"
    "Contoh: <code>pemasukan modal 1jt</code>\n\n"
    "<b>3. Kirim Foto Nota</b>\n"
    "Kirim foto struk/nota/kwitansi, AI akan analisa otomatis\n\n"
    "<b>Kategori:</b> listrik, air, wifi, kebersihan, perbaikan, gaji, modal, lainnya\n\n"
    "<b>Format Jumlah:</b>\n"
    "• 150000 atau 150rb atau 150k\n"
    "• 1500000 atau 1.5jt atau 1,5jt"
)

EXAMPLES_TEXT = "<code>pengeluaran listrik 150rb</code>\n<code>pemasukan modal 1jt</code>"


def _type_label(entry_type: str) -> str:
    return "Pemasukan" if entry_type == "income" else "Pengeluaran"


def _item_line(item) -> str:
    qty = ""
    price = ""
    if item.qty > 1:
        qty_num = int(item.qty) if float(item.qty).is_integer() else item.qty
        qty = f"{qty_num}{' ' + item.unit if item.unit != 'pcs' else 'x'} "
        price = f" @{format_rupiah(item.price)}"
    return f"  • {qty}{item.name}{price}: <b>{format_rupiah(item.subtotal)}</b>\n"


class KostBot:
    def __init__(self, db: Session, client: TelegramClient, property_id: str):
        self.db = db
        self.client = client
        self.property_id = property_id

    # pending store

    def store_pending(self, chat_id: int, tx: ParsedTransaction) -> str:
        now = datetime.now(timezone.utc)
        self.db.query(PendingTransaction).filter(PendingTransaction.expires_at <= now).delete(
            synchronize_session=False
        )
        pending_id = f"pending_{chat_id}_{int(time.time() * 1000)}"
        self.db.merge(PendingTransaction(
            id=pending_id,
            chat_id=str(chat_id),
            payload=tx.model_dump_json(),
            expires_at=now + PENDING_TTL,
        ))
        self.db.commit()
        return pending_id

    def get_pending(self, pending_id: str) -> Optional[ParsedTransaction]:
        row = (
            self.db.query(PendingTransaction)
            .filter(
                PendingTransaction.id == pending_id,
                PendingTransaction.expires_at > datetime.now(timezone.utc),
            )
            .first()
        )
        if row is None:
            return None
        return ParsedTransaction(**json.loads(row.payload))

    def delete_pending(self, pending_id: str) -> None:
        self.db.query(PendingTransaction).filter(PendingTransaction.id == pending_id).delete(
            synchronize_session=False
        )
        self.db.commit()

    # dispatch

    def handle_update(self, update: dict) -> None:
        """Handle one webhook update. Errors are logged; Telegram always gets a 200."""
        try:
            if update.get("callback_query"):
                self.handle_callback(update["callback_query"])
                return

            message = update.get("message")
            if not message:
                return
            chat_id = message["chat"]["id"]
            text = message.get("text") or ""

            if text.startswith("/"):
                self.handle_command(chat_id, text)
            elif message.get("photo"):
                self.handle_photo(chat_id, message)
            elif text.strip():
                self.handle_text(chat_id, text)
            else:
                self.client.send_message(
                    chat_id,
                    "🤔 Kirim foto nota atau ketik transaksi. Contoh:\n<code>pengeluaran listrik 150rb</code>",
                )
        except Exception:
            logger.exception("Telegram update %s failed", update.get("update_id"))

    def handle_command(self, chat_id: int, text: str) -> None:
        command = text.split(" ")[0].split("@")[0].lower()
        if command == "/start":
            self.client.send_message(chat_id, START_TEXT)
        elif command == "/saldo":
            self.send_balance(chat_id)
        elif command == "/laporan":
            self.send_report(chat_id)
        elif command in ("/bantuan", "/help"):
            self.client.send_message(chat_id, HELP_TEXT)
        else:
            self.client.send_message(chat_id, "❓ Perintah tidak dikenal. Ketik /bantuan untuk panduan.")

    def send_balance(self, chat_id: int) -> None:
        period = current_period()
        income, expense = cash_totals(self.db, self.property_id, period)
        balance = income - expense
        marker = "💚" if balance >= 0 else "🔴"
        self.client.send_message(
            chat_id,
            f"📊 <b>Saldo Kas {period}</b>\n\n"
            f"💰 Pemasukan: <b>{format_rupiah(income)}</b>\n"
            f"💸 Pengeluaran: <b>{format_rupiah(expense)}</b>\n"
            f"{marker} Saldo: <b>{format_rupiah(balance)}</b>",
        )

    def send_report(self, chat_id: int) -> None:
        period = current_period()
        rows = ledger_breakdown(self.db, self.property_id, period)
        if not rows:
            self.client.send_message(chat_id, f"📋 Belum ada transaksi bulan ini ({period}).")
            return

        income_lines, expense_lines = "", ""
        total_income = total_expense = 0
        for row in rows:
            line = f"  • {row['category']}: {format_rupiah(row['total'])} ({row['count']}x)\n"
            if row["type"] == "income":
                income_lines += line
                total_income += row["total"]
            else:
                expense_lines += line
                total_expense += row["total"]

        text = f"📋 <b>Laporan Bulan {period}</b>\n\n"
        if income_lines:
            text += f"💰 <b>Pemasukan</b>\n{income_lines}\n"
        if expense_lines:
            text += f"💸 <b>Pengeluaran</b>\n{expense_lines}\n"
        text += "━━━━━━━━━━━━━━━━\n"
        text += f"💰 Total Masuk: <b>{format_rupiah(total_income)}</b>\n"
        text += f"💸 Total Keluar: <b>{format_rupiah(total_expense)}</b>\n"
        text += f"📊 Saldo: <b>{format_rupiah(total_income - total_expense)}</b>"
        self.client.send_message(chat_id, text)

    def handle_photo(self, chat_id: int, message: dict) -> None:
        self.client.send_message(chat_id, "🔍 Menganalisa foto nota...")
        largest = message["photo"][-1]
        try:
            api_key = resolve_groq_key(get_property_settings(self.db, self.property_id))
            image = self.client.download_file(largest["file_id"])
            tx = scan_receipt_image(image, "image/jpeg", api_key)
        except ConfigError as e:
            self.client.send_message(chat_id, f"❌ {e.message}")
            return
        except AppError as e:
            logger.warning("Receipt photo from chat %s not readable: %s", chat_id, e.message)
            self.client.send_message(chat_id, "❌ Gagal membaca nota. Coba foto lebih jelas atau ketik manual.")
            return

        if tx.amount <= 0:
            self.client.send_message(chat_id, "❌ Tidak bisa mendeteksi jumlah dari nota. Coba ketik manual.")
            return
        self.show_confirmation(chat_id, tx, self.store_pending(chat_id, tx))

    def handle_text(self, chat_id: int, text: str) -> None:
        tx = parse_transaction_text(text)
        if tx is None:
            try:
                api_key = resolve_groq_key(get_property_settings(self.db, self.property_id))
                tx = parse_transaction_text_ai(text, api_key)
            except AppError as e:
                logger.warning("Text fallback failed for chat %s: %s", chat_id, e.message)
                tx = None

        if tx is None or tx.amount <= 0:
            self.client.send_message(
                chat_id, f"❌ Tidak bisa memahami pesan.\n\nContoh format:\n{EXAMPLES_TEXT}"
            )
            return
        self.show_confirmation(chat_id, tx, self.store_pending(chat_id, tx))

    def show_confirmation(self, chat_id: int, tx: ParsedTransaction, pending_id: str) -> None:
        marker = "💰" if tx.type == "income" else "💸"
        text = (
            f"{marker} <b>Transaksi Terdeteksi</b>\n\n"
            f"📋 Jenis: <b>{_type_label(tx.type)}</b>\n"
            f"📁 Kategori: <b>{tx.category}</b>\n"
        )
        if tx.store:
            text += f"🏪 Toko: <b>{tx.store}</b>\n"
        text += f"💰 Total: <b>{format_rupiah(tx.amount)}</b>\n"
        if tx.items:
            text += "\n📦 <b>Rincian:</b>\n" + "".join(_item_line(item) for item in tx.items)
        else:
            text += f"📝 Catatan: {tx.notes}\n"
        if tx.confidence == "low":
            text += "\n⚠️ <i>Confidence rendah, periksa data</i>"
        text += "\n\nSimpan transaksi ini?"

        self.client.send_message(chat_id, text, {
            "inline_keyboard": [[
                {"text": "✅ Simpan", "callback_data": f"save:{pending_id}"},
                {"text": "❌ Batal", "callback_data": f"cancel:{pending_id}"},
            ]]
        })

    def handle_callback(self, query: dict) -> None:
        chat_id = query["message"]["chat"]["id"]
        message_id = query["message"]["message_id"]
        action, _, pending_id = (query.get("data") or "").partition(":")

        if action == "cancel":
            self.delete_pending(pending_id)
            self.client.answer_callback(query["id"], "Dibatalkan")
            self.client.edit_message(chat_id, message_id, "❌ Transaksi dibatalkan.")
            return

        if action != "save":
            return

        tx = self.get_pending(pending_id)
        if tx is None:
            self.client.answer_callback(query["id"], "Data sudah kedaluwarsa")
            self.client.edit_message(chat_id, message_id, "⏰ Data sudah kedaluwarsa. Silakan input ulang.")
            return

        expense = self.save_transaction(tx)
        self.delete_pending(pending_id)
        self.client.answer_callback(query["id"], "✅ Tersimpan!")

        text = f"✅ <b>Tersimpan!</b>\n\n📋 {_type_label(tx.type)}: {tx.category}\n"
        if tx.store:
            text += f"🏪 {tx.store}\n"
        text += f"💰 {format_rupiah(tx.amount)}\n"
        if tx.items:
            text += "".join(_item_line(item) for item in tx.items)
        else:
            text += f"📝 {tx.notes}\n"
        text += f"🆔 {expense.id}"
        self.client.edit_message(chat_id, message_id, text)

    def save_transaction(self, tx: ParsedTransaction):
        expense = create_expense(
            self.db,
            self.property_id,
            created_by=BOT_CREATED_BY,
            expense_date=tx.date or today_iso(),
            category=tx.category,
            amount=tx.amount,
            method="cash",
            status="confirmed",
            type=tx.type,
            notes=tx.notes[:500] or None,
        )
        log_audit(
            self.db,
            actor=BOT_ACTOR,
            action="created",
            entity_type="expense",
            entity_id=expense.id,
            source="telegram",
            property_id=self.property_id,
            description=f"{_type_label(tx.type)} {tx.category} {tx.amount} via Telegram",
        )
        warning = mirror_expense(self.db, expense, BOT_CREATED_BY, description_prefix="Telegram")
        if warning:
            logger.warning(warning)
        return expense
