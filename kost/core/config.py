from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./kost.db"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Single-property deployments use this id for every query
    PROPERTY_ID: str = "prop_kostannisa"

    # Comma-separated; the first origin is used to build password reset links
    APP_ORIGINS: str = "http://localhost:3000"

    # Auth
    JWT_SECRET: str = "fallback-secret-for-dev"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    RESET_TOKEN_EXPIRE_MINUTES: int = 15

    # Groq (OpenAI-compatible, used for receipt scanning and text parsing)
    GROQ_API_KEY: Optional[str] = None
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_VISION_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    GROQ_TEXT_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"

    # Google Sheets
    GOOGLE_SERVICE_ACCOUNT_JSON: Optional[str] = None
    SHEETS_SPREADSHEET_ID: Optional[str] = None
    SHEETS_INCOME_SHEET_NAME: str = "Income"
    SHEETS_EXPENSE_SHEET_NAME: str = "Expenses"
    SHEETS_SYNC_RETRIES: int = 2

    # Resend (password reset e-mails)
    RESEND_API_KEY: Optional[str] = None
    MAIL_FROM: str = "Kost Annisa <onboarding@resend.dev>"

    # Telegram bot
    TELEGRAM_BOT_TOKEN: Optional[str] = None

    # Uploads
    UPLOADS_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 10
    DRIVE_APPS_SCRIPT_URL: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.APP_ORIGINS.split(",") if o.strip()]

settings = Settings()
