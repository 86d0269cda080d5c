"""
Language-model helpers via LangChain, pointed at Groq's OpenAI-compatible API.

- scan_receipt_image: read a receipt/transfer-proof photo into a ParsedTransaction
- parse_transaction_text_ai: fallback for bot messages the rule parser cannot read

Nothing here persists; callers validate and save.
"""
import base64
import logging
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from kost.core.config import settings
from kost.core.errors import ConfigError, UpstreamError
from kost.core.transactions import ParsedTransaction, extract_json, transaction_from_model_output

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}

RECEIPT_PROMPT = """Kamu adalah AI yang membaca nota/struk belanja atau bukti transfer untuk pembukuan kost.
Analisa gambar ini dan ekstrak informasi dalam format JSON berikut (HANYA JSON, tanpa teks lain):
{
  "type": "expense" atau "income",
  "category": salah satu dari: listrik, air, wifi, kebersihan, perbaikan, gaji, modal, lainnya,
  "amount": total nominal dalam angka bulat (tanpa titik/koma),
  "store": "nama toko/merchant jika ada",
  "date": "YYYY-MM-DD jika terbaca, null jika tidak",
  "items": [{"name": "nama barang", "qty": 1, "unit": "pcs", "price": 0, "subtotal": 0}],
  "confidence": "high" atau "low"
}
Aturan:
- Jika gambar adalah bukti transfer MASUK atau pembayaran sewa, type = "income"
- Jika gambar adalah nota belanja atau tagihan, type = "expense"
- Kategori: listrik (PLN, token), air (PDAM), wifi (internet), kebersihan (sabun, sampah),
  perbaikan (bahan bangunan, tukang), gaji (upah penjaga), modal (setoran pemilik), lainnya
- Jika gambar tidak bisa dibaca sama sekali, kembalikan {"error": "tidak bisa membaca"}"""

TEXT_SYSTEM_PROMPT = """Kamu adalah asisten pencatat keuangan kost. Ubah pesan pengguna menjadi JSON (HANYA JSON):
{"type": "expense" atau "income", "category": "listrik|air|wifi|kebersihan|perbaikan|gaji|modal|lainnya",
 "amount": angka bulat rupiah, "notes": "keterangan singkat"}
Contoh: "bayar token listrik 150rb" -> {"type": "expense", "category": "listrik", "amount": 150000, "notes": "token listrik"}
Jika pesan bukan transaksi, kembalikan {"error": "bukan transaksi"}"""


def resolve_groq_key(property_settings=None) -> str:
    """
    Per-property key first, then the environment.

    Raises:
        ConfigError: if no key is configured anywhere
    """
    key = getattr(property_settings, "groq_api_key", None) or settings.GROQ_API_KEY
    if not key:
        raise ConfigError("Groq API key belum dikonfigurasi. Isi di Pengaturan atau GROQ_API_KEY.")
    return key


def _llm(model: str, api_key: str, max_tokens: int = 1024) -> ChatOpenAI:
    return ChatOpenAI(
        model=model,
        api_key=api_key,
        base_url=settings.GROQ_BASE_URL,
        temperature=0,
        max_tokens=max_tokens,
    )


def _content_text(response) -> str:
    content = response.content if hasattr(response, "content") else str(response)
    if isinstance(content, list):
        content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
    return (content or "").strip()


def scan_receipt_image(image_bytes: bytes, image_mime: str, api_key: str) -> ParsedTransaction:
    """
    Read a receipt image.

    Raises:
        UpstreamError: if the model call fails or its reply cannot be decoded
    """
    data_url = f"data:{image_mime};base64,{base64.standard_b64encode(image_bytes).decode('utf-8')}"
    message = HumanMessage(
        content=[
            {"type": "text", "text": RECEIPT_PROMPT},
            {"type": "image_url", "image_url": {"url": data_url}},
        ]
    )
    try:
        response = _llm(settings.GROQ_VISION_MODEL, api_key).invoke([message])
    except Exception as e:
        logger.exception("Receipt scan request failed")
        raise UpstreamError(f"Vision API error: {e}")

    try:
        return transaction_from_model_output(extract_json(_content_text(response)))
    except ValueError as e:
        raise UpstreamError(f"AI tidak bisa membaca nota: {e}")


def parse_transaction_text_ai(text: str, api_key: str) -> Optional[ParsedTransaction]:
    """Model fallback for free text. Returns None when the text is not a transaction."""
    try:
        response = _llm(settings.GROQ_TEXT_MODEL, api_key, max_tokens=256).invoke([
            SystemMessage(content=TEXT_SYSTEM_PROMPT),
            HumanMessage(content=text),
        ])
    except Exception as e:
        logger.exception("Transaction text parse request failed")
        raise UpstreamError(f"AI API error: {e}")

    try:
        parsed = transaction_from_model_output(extract_json(_content_text(response)), original_text=text)
    except ValueError:
        return None
    if parsed.amount <= 0:
        return None
    return parsed
