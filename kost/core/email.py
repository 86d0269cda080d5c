import logging
from typing import Optional

import requests

from kost.core.config import settings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


def _reset_email_html(reset_link: str, user_name: Optional[str], ttl_minutes: int) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: 'Segoe UI', Arial, sans-serif; background: #f1f5f9; padding: 40px 0;">
  <div style="max-width: 480px; margin: 0 auto; background: white; border-radius: 16px; padding: 32px;">
    <h1 style="color: #1e3a5f; font-size: 22px;">Kost Annisa</h1>
    <p style="color: #334155;">Halo <strong>{user_name or 'Pengguna'}</strong>,</p>
    <p style="color: #64748b;">
      Kami menerima permintaan untuk mereset password akun Anda. Klik tombol di bawah untuk membuat password baru:
    </p>
    <p style="text-align: center; margin: 28px 0;">
      <a href="{reset_link}" style="background: #3b82f6; color: white; text-decoration: none; padding: 14px 32px; border-radius: 12px;">
        Reset Password
      </a>
    </p>
    <p style="color: #94a3b8; font-size: 13px;">
      Link ini berlaku selama <strong>{ttl_minutes} menit</strong>. Jika Anda tidak meminta reset password, abaikan email ini.
    </p>
  </div>
</body>
</html>"""


def send_reset_password_email(to_email: str, reset_link: str, user_name: Optional[str] = None) -> None:
    """
    Send the password-reset link through Resend.

    Raises:
        RuntimeError: if the API key is missing or Resend rejects the message
    """
    if not settings.RESEND_API_KEY:
        raise RuntimeError("RESEND_API_KEY not configured")

    response = requests.post(
        RESEND_URL,
        headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
        json={
            "from": settings.MAIL_FROM,
            "to": [to_email],
            "subject": "Reset Password - Kost Annisa",
            "html": _reset_email_html(reset_link, user_name, settings.RESET_TOKEN_EXPIRE_MINUTES),
        },
        timeout=15,
    )
    if not response.ok:
        raise RuntimeError(f"Gagal kirim email: {response.text}")
    logger.info("Reset password e-mail sent to %s", to_email)
