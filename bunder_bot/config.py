"""
config.py

Environment-driven settings. Values come from the process environment, with
`.env` and `.env.development` loaded through python-dotenv when present.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

PLACEHOLDERS = ("", "your-api-key", "doldurun", "your-telegram-bot-token", "changeme")

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
WEATHER_API_BASE = "https://api.openweathermap.org/data/2.5"

TRANSPORTS = ("telegram", "null")
PERSONAS = ("partners", "weather")


def _first_env(*names: str) -> Optional[str]:
    """Return the first configured value among `names`, ignoring placeholders."""
    for name in names:
        value = os.environ.get(name)
        if value is not None and value.strip() not in PLACEHOLDERS:
            return value.strip()
    return None


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def mask(secret: Optional[str], keep: int = 5) -> str:
    if not secret:
        return "<unset>"
    return f"{secret[:keep]}..."


def load_env_files(base_dir: Optional[str] = None) -> None:
    base = Path(base_dir) if base_dir else Path.cwd()
    for name in (".env", ".env.development"):
        p = base / name
        if p.exists():
            load_dotenv(p, override=False)


class Settings:
    """Static configuration for one bot process."""

    def __init__(
        self,
        telegram_token: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        gemini_model: str = "gemini-1.5-flash",
        gemini_api_base: str = GEMINI_API_BASE,
        weather_api_key: Optional[str] = None,
        weather_lang: str = "en",
        weather_api_base: str = WEATHER_API_BASE,
        agent_url: Optional[str] = None,
        persona: str = "partners",
        transport: str = "telegram",
        http_timeout: float = 10.0,
        log_level: str = "INFO",
        log_dir: Optional[str] = None,
        port: int = 4111,
    ):
        self.telegram_token = telegram_token
        self.gemini_api_key = gemini_api_key
        self.gemini_model = gemini_model
        self.gemini_api_base = gemini_api_base.rstrip("/")
        self.weather_api_key = weather_api_key
        self.weather_lang = weather_lang
        self.weather_api_base = weather_api_base.rstrip("/")
        self.agent_url = agent_url
        self.persona = persona if persona in PERSONAS else "partners"
        self.transport = transport if transport in TRANSPORTS else "telegram"
        self.http_timeout = float(http_timeout)
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.port = int(port)

    @classmethod
    def from_env(cls, load_files: bool = True) -> "Settings":
        if load_files:
            load_env_files()
        return cls(
            telegram_token=_first_env("TELEGRAM_BOT_TOKEN", "TELEGRAM_TOKEN"),
            gemini_api_key=_first_env("GOOGLE_GENERATIVE_AI_API_KEY", "GOOGLE_API_KEY", "GEMINI_API_KEY"),
            gemini_model=os.environ.get("GEMINI_MODEL", "gemini-1.5-flash"),
            gemini_api_base=os.environ.get("GEMINI_API_BASE", GEMINI_API_BASE),
            weather_api_key=_first_env("OPENWEATHER_API_KEY", "WEATHER_API_KEY"),
            weather_lang=os.environ.get("WEATHER_LANG", "en"),
            weather_api_base=os.environ.get("WEATHER_API_BASE", WEATHER_API_BASE),
            agent_url=_first_env("AGENT_URL"),
            persona=os.environ.get("BOT_PERSONA", "partners").lower(),
            transport=os.environ.get("BOT_TRANSPORT", "telegram").lower(),
            http_timeout=_env_number("HTTP_TIMEOUT", 10.0, float),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            log_dir=os.environ.get("LOG_DIR"),
            port=_env_number("PORT", 4111, int),
        )

    @property
    def ai_enabled(self) -> bool:
        return bool(self.gemini_api_key or self.agent_url)

    @property
    def weather_enabled(self) -> bool:
        return bool(self.weather_api_key)

    def validate(self) -> "Settings":
        """Fail fast on the bot token; warn about optional keys."""
        if self.transport == "telegram" and not self.telegram_token:
            raise ConfigError(
                "TELEGRAM_BOT_TOKEN is not set. Define it in the environment or in .env / .env.development, "
                "or set BOT_TRANSPORT=null to run offline."
            )
        if not self.gemini_api_key:
            logger.warning("GOOGLE_GENERATIVE_AI_API_KEY not set; AI replies fall back to canned answers")
        if not self.weather_api_key:
            logger.warning("OPENWEATHER_API_KEY not set; /weather and /forecast will report the service as unavailable")
        return self

    def describe(self) -> str:
        return (
            f"transport={self.transport} persona={self.persona} "
            f"telegram_token={mask(self.telegram_token)} gemini_key={mask(self.gemini_api_key)} "
            f"model={self.gemini_model} weather_key={mask(self.weather_api_key)} "
            f"agent_url={self.agent_url or '<unset>'}"
        )


__all__ = ["Settings", "mask", "load_env_files"]
