"""
Parsing of free-form cash transactions.

Sources are the Telegram bot ("pengeluaran listrik 150rb") and language-model
output for receipts. Model output is treated as untrusted: the category is
forced into the known enum and the amount must come out as a positive integer.
"""
import json
import re
from typing import List, Optional

from pydantic import BaseModel

from kost.core.period import is_valid_date

CATEGORIES = ("listrik", "air", "wifi", "kebersihan", "perbaikan", "gaji", "modal", "lainnya")

CATEGORY_ALIASES = {
    "listrik": "listrik",
    "pln": "listrik",
    "electricity": "listrik",
    "electric": "listrik",
    "air": "air",
    "pdam": "air",
    "water": "air",
    "wifi": "wifi",
    "internet": "wifi",
    "kebersihan": "kebersihan",
    "sampah": "kebersihan",
    "cleaning": "kebersihan",
    "perbaikan": "perbaikan",
    "maintenance": "perbaikan",
    "renovasi": "perbaikan",
    "repair": "perbaikan",
    "gaji": "gaji",
    "modal": "modal",
    "sewa": "lainnya",
    "lainnya": "lainnya",
}

INCOME_PREFIX = re.compile(r"^(pemasukan|masuk|terima|income)", re.IGNORECASE)
TYPE_PREFIX = re.compile(r"^(pengeluaran|pemasukan|masuk|keluar|bayar|terima)\s*", re.IGNORECASE)
AMOUNT_TOKEN = re.compile(r"(\d[\d.,]*\s*(?:rb|ribu|k|jt|juta)?)", re.IGNORECASE)


class ReceiptItem(BaseModel):
    name: str
    qty: float = 1
    unit: str = "pcs"
    price: int = 0
    subtotal: int = 0


class ParsedTransaction(BaseModel):
    type: str = "expense"
    category: str = "lainnya"
    amount: int = 0
    notes: str = ""
    store: Optional[str] = None
    date: Optional[str] = None
    confidence: str = "low"
    items: List[ReceiptItem] = []


def normalize_category(raw: Optional[str]) -> str:
    if not raw:
        return "lainnya"
    return CATEGORY_ALIASES.get(str(raw).strip().lower(), "lainnya")


def parse_amount(text: str) -> int:
    """
    Parse an Indonesian-style amount.

    "150000" -> 150000, "150.000" -> 150000, "150rb" / "150k" -> 150000,
    "1.5jt" / "1,5jt" -> 1500000. Returns 0 when nothing usable is found.
    """
    s = str(text).strip().lower()
    suffix = re.search(r"(rb|ribu|k|jt|juta)$", s)
    if suffix:
        number = s[: suffix.start()].strip().replace(",", ".")
        # "1.5jt" keeps its decimal point; "1.500rb" is a thousands separator
        if number.count(".") > 1 or re.search(r"\.\d{3}$", number):
            number = number.replace(".", "")
        try:
            value = float(number)
        except ValueError:
            return 0
        multiplier = 1_000 if suffix.group(1) in ("rb", "ribu", "k") else 1_000_000
        return int(round(value * multiplier))

    digits = re.sub(r"\D", "", s.split(",")[0])
    return int(digits) if digits else 0


def coerce_amount(value) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(round(value))
    return parse_amount(str(value))


def parse_transaction_text(text: str) -> Optional[ParsedTransaction]:
    """Rule-based parser for bot messages; None when no positive amount is found."""
    lower = text.strip().lower()
    entry_type = "income" if INCOME_PREFIX.match(lower) else "expense"

    match = AMOUNT_TOKEN.search(lower)
    if not match:
        return None
    amount = parse_amount(match.group(1))
    if amount <= 0:
        return None

    category = "lainnya"
    for word in lower.split():
        if word in CATEGORY_ALIASES:
            category = CATEGORY_ALIASES[word]
            break

    notes = TYPE_PREFIX.sub("", text.strip(), count=1)
    notes = re.sub(re.escape(match.group(1)), "", notes, count=1, flags=re.IGNORECASE)
    notes = re.sub(rf"\b{category}\b", "", notes, count=1, flags=re.IGNORECASE)
    notes = " ".join(notes.split()) or category

    return ParsedTransaction(type=entry_type, category=category, amount=amount, notes=notes, confidence="high")


def extract_json(text: str) -> dict:
    """Pull the first {...} object out of a model reply (tolerates ```json fences)."""
    match = re.search(r"\{[\s\S]*\}", text or "")
    if not match:
        raise ValueError("AI tidak bisa membaca")
    return json.loads(match.group(0))


def _item_label(item: ReceiptItem) -> str:
    qty = ""
    price = ""
    if item.qty > 1:
        qty_num = int(item.qty) if float(item.qty).is_integer() else item.qty
        qty = f"{qty_num}{item.unit if item.unit != 'pcs' else 'x'} "
        price = f" @Rp {item.price:,}".replace(",", ".")
    subtotal = f"{item.subtotal:,}".replace(",", ".")
    return f"{qty}{item.name}{price} (Rp {subtotal})"


def transaction_from_model_output(parsed: dict, original_text: Optional[str] = None) -> ParsedTransaction:
    """
    Turn a decoded model reply into a ParsedTransaction.

    Raises:
        ValueError: if the model reported that it could not read the input
    """
    if parsed.get("error"):
        raise ValueError(str(parsed["error"]))

    items: List[ReceiptItem] = []
    for raw in parsed.get("items") or []:
        if not isinstance(raw, dict):
            continue
        qty = raw.get("qty") or 1
        try:
            qty = float(qty)
        except (TypeError, ValueError):
            qty = 1
        price = coerce_amount(raw.get("price"))
        subtotal = coerce_amount(raw.get("subtotal")) or price
        items.append(ReceiptItem(
            name=str(raw.get("name") or "Item"),
            qty=qty,
            unit=str(raw.get("unit") or "pcs"),
            price=price,
            subtotal=subtotal,
        ))

    notes = str(parsed.get("notes") or original_text or "")
    if items:
        notes = ", ".join(_item_label(i) for i in items)

    raw_date = parsed.get("date") or parsed.get("transaction_date")
    date = raw_date if is_valid_date(raw_date) else None

    confidence = parsed.get("confidence")
    if isinstance(confidence, (int, float)):
        confidence = "high" if confidence >= 0.7 else "low"

    return ParsedTransaction(
        type="income" if parsed.get("type") == "income" else "expense",
        category=normalize_category(parsed.get("category") or parsed.get("suggested_category")),
        amount=coerce_amount(parsed.get("amount", parsed.get("total_amount"))),
        notes=notes[:500],
        store=parsed.get("store") or parsed.get("merchant_name") or None,
        date=date,
        confidence=confidence if confidence in ("high", "low") else "low",
        items=items,
    )
