"""Error kinds shared by the responders and the single apology translation layer."""
from enum import Enum
from typing import NamedTuple, Optional


class ErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    EMPTY_RESPONSE = "empty_response"
    UPSTREAM = "upstream"
    CITY_NOT_FOUND = "city_not_found"
    INTERNAL = "internal"


class Reply(NamedTuple):
    """Outcome of a responder call: either reply text or an error kind."""

    text: Optional[str] = None
    error: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)

    @classmethod
    def success(cls, text: str) -> "Reply":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: ErrorKind) -> "Reply":
        return cls(error=kind)


_APOLOGIES = {
    ErrorKind.NOT_CONFIGURED: "Bu servis şu anda yapılandırılmamış. Lütfen sistem yöneticinize başvurun.",
    ErrorKind.EMPTY_RESPONSE: "Üzgünüm, şu anda AI servisine erişemiyorum. Lütfen daha sonra tekrar deneyin.",
    ErrorKind.UPSTREAM: "Üzgünüm, şu anda AI servisine erişemiyorum. Lütfen daha sonra tekrar deneyin.",
    ErrorKind.CITY_NOT_FOUND: "Üzgünüm, bu şehir için hava durumu bilgisi bulunamadı. Şehir adını kontrol edip tekrar deneyin.",
    ErrorKind.INTERNAL: "Üzgünüm, bir hata oluştu. Lütfen tekrar deneyin.",
}

WEATHER_APOLOGY = "Üzgünüm, hava durumu bilgisi şu anda alınamıyor. Lütfen daha sonra tekrar deneyin."


def apology(kind: Optional[ErrorKind]) -> str:
    return _APOLOGIES.get(kind, _APOLOGIES[ErrorKind.INTERNAL])


def redact(text: str, *secrets: Optional[str]) -> str:
    """Replace every non-empty secret in `text`; request URLs carry API keys as query params."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


def render(reply: Reply, fallback: Optional[str] = None) -> str:
    """Return the reply text, or the apology for its error kind.

    `fallback` overrides the generic apology for UPSTREAM / EMPTY_RESPONSE
    failures, which is how the weather responder keeps its own wording.
    """
    if reply.ok:
        return reply.text
    if fallback and reply.error in (ErrorKind.UPSTREAM, ErrorKind.EMPTY_RESPONSE):
        return fallback
    return apology(reply.error)


class ConfigError(RuntimeError):
    """Mandatory configuration is missing."""


class SessionNotFound(KeyError):
    def __init__(self, user_id: str):
        super().__init__(user_id)
        self.user_id = user_id

    def __str__(self):
        return f"Session not found for user: {self.user_id}"


class FieldValidationError(ValueError):
    """A value supplied during onboarding did not pass validation."""


__all__ = [
    "ErrorKind",
    "Reply",
    "apology",
    "render",
    "redact",
    "WEATHER_APOLOGY",
    "ConfigError",
    "SessionNotFound",
    "FieldValidationError",
]
