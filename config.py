from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = """You are Jess from Omni Mortgage, a helpful agent assisting with mortgage inquiries. Engage the user in a natural conversation about obtaining a home loan. Ask relevant questions one at a time, such as:
- If they're looking to refinance or get a new loan.
- If they're a first-time buyer.
- Their budget or help figuring it out by asking annual income.
- Savings for down payment.
- Any debts.
- Family situation (e.g., kids).
- Preferred area or neighborhood.
- Preferred property type.
- At the end, offer to set up a meeting with a loan specialist.

Keep responses concise, friendly, and suitable for voice conversation. Respond based on what the user says, and ask the next logical question. Do not repeat questions unnecessarily. If the user wants to end, acknowledge and stop."""

DEFAULT_SUMMARY_PROMPT = (
    "You are a concise summarizer for mortgage-related conversations. "
    "Produce a short structured summary (bullets) including: intent, key facts collected, "
    "next steps / follow-up questions."
)

REQUIRED_SMTP_SETTINGS = ("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "EMAIL_FROM", "EMAIL_TO")


class Settings(BaseSettings):
    """
    Relay service configuration.
    Read from the environment and from an optional .env file, without a prefix
    (XAI_API_KEY, SMTP_HOST, ...).
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    LOG_LEVEL: str = "INFO"

    PORT: int = 5000

    CORS_ORIGINS: List[str] = [
        "https://voice-agent-frontend-alpha.vercel.app",
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    MAX_BODY_BYTES: int = 1024 * 1024

    XAI_API_KEY: Optional[str] = None

    XAI_BASE_URL: str = "https://api.x.ai/v1"

    XAI_TIMEOUT: float = 30.0

    CHAT_MODEL: str = "grok-3-beta"
    CHAT_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 300

    SUMMARY_TEMPERATURE: float = 0.2
    SUMMARY_MAX_TOKENS: int = 250

    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT

    SUMMARY_PROMPT: str = DEFAULT_SUMMARY_PROMPT

    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_SECURE: bool = True
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None

    EMAIL_FROM: Optional[str] = None
    EMAIL_TO: Optional[str] = None
    EMAIL_SUBJECT: str = "Omni Mortgage — Call Summary & Recording"

    @property
    def completions_url(self) -> str:
        return self.XAI_BASE_URL.rstrip("/") + "/chat/completions"

    def missing_smtp_settings(self) -> List[str]:
        """Names of the required mail settings that are unset or empty."""
        return [name for name in REQUIRED_SMTP_SETTINGS if not getattr(self, name)]


settings = Settings()


def get_settings() -> Settings:
    return settings
