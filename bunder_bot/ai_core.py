"""
ai_core.py

AI reply engine. Sends the user's message to Gemini over its REST API with a
fixed persona prompt, retries once on an empty answer, and hands back a
`Reply`. When an agent endpoint is configured it is asked first and Gemini is
the fallback.
"""
import logging
from typing import List, Optional

import requests

from .errors import ErrorKind, Reply, redact, render

logger = logging.getLogger(__name__)

PERSONAS = {
    "partners": "Sen bir iş ortaklığı bulmaya yardımcı olan Bunder Bot adında bir asistansın.",
    "weather": "Sen bir hava durumu bilgisi sunan asistan botusun.",
}

PROMPT_TEMPLATE = """
Aşağıdaki kullanıcı mesajına Türkçe yanıt ver.
{persona}
Cevabın kısa ve net olsun. 150 kelimeyi geçme.

Kullanıcı mesajı: "{message}"
"""

FALLBACK_REPLY = render(Reply.failure(ErrorKind.EMPTY_RESPONSE))


def build_prompt(user_text: str, persona: str = "partners") -> str:
    return PROMPT_TEMPLATE.format(persona=PERSONAS.get(persona, PERSONAS["partners"]), message=user_text)


def _preview(text: str, n: int = 30) -> str:
    return (text or "")[:n].replace("\n", " ")


class GeminiClient:
    """Minimal client for the `generateContent` REST endpoint."""

    def __init__(self, api_key: str, model: str = "gemini-1.5-flash", api_base: str = "https://generativelanguage.googleapis.com/v1beta", timeout: float = 10.0, session=None):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def generate(self, prompt: str) -> str:
        """Return the first candidate's text, or "" when the response carries none."""
        resp = self.http.post(
            self.url,
            params={"key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json() or {}
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()


class AgentClient:
    """Client for a locally hosted agent exposing a `/chat` endpoint."""

    def __init__(self, url: str, timeout: float = 5.0, session=None):
        self.url = url
        self.timeout = timeout
        self.http = session or requests.Session()

    def chat(self, message: str, user_id: Optional[str] = None, context: Optional[List[dict]] = None) -> str:
        resp = self.http.post(
            self.url,
            json={"message": message, "userId": user_id, "context": list(context or [])},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json() or {}
        return str(data.get("response") or "").strip()


class AIResponder:
    """Turns a user message into an AI reply; never raises to the caller."""

    def __init__(self, gemini: Optional[GeminiClient] = None, agent: Optional[AgentClient] = None, persona: str = "partners"):
        self.gemini = gemini
        self.agent = agent
        self.persona = persona

    @classmethod
    def from_settings(cls, settings, session=None) -> "AIResponder":
        gemini = None
        if settings.gemini_api_key:
            gemini = GeminiClient(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                api_base=settings.gemini_api_base,
                timeout=settings.http_timeout,
                session=session,
            )
        agent = AgentClient(settings.agent_url, session=session) if settings.agent_url else None
        return cls(gemini=gemini, agent=agent, persona=settings.persona)

    @property
    def enabled(self) -> bool:
        return self.gemini is not None or self.agent is not None

    def _ask_agent(self, user_text: str, user_id: Optional[str], context: Optional[List[dict]]) -> str:
        if self.agent is None:
            return ""
        try:
            logger.info("Sending to agent: %r", _preview(user_text))
            return self.agent.chat(user_text, user_id=user_id, context=context)
        except Exception as e:
            logger.warning("Agent endpoint unavailable, falling back to Gemini: %s", e)
            return ""

    def generate(self, user_text: str, user_id: Optional[str] = None, context: Optional[List[dict]] = None) -> Reply:
        agent_text = self._ask_agent(user_text, user_id, context)
        if agent_text:
            return Reply.success(agent_text)

        if self.gemini is None:
            return Reply.failure(ErrorKind.NOT_CONFIGURED)

        prompt = build_prompt(user_text, self.persona)
        try:
            logger.info("Sending to Gemini: %r", _preview(user_text, 20))
            text = self.gemini.generate(prompt)
            if text:
                logger.info("Gemini response (%d chars): %r", len(text), _preview(text))
                return Reply.success(text)

            logger.warning("Gemini returned an empty response, retrying once")
            text = self.gemini.generate(prompt)
            if text:
                logger.info("Gemini response on retry (%d chars): %r", len(text), _preview(text))
                return Reply.success(text)
        except Exception as e:
            # no traceback: the request URL in the message carries the key
            logger.error("Gemini API error: %s: %s", type(e).__name__, redact(str(e), self.gemini.api_key))
            return Reply.failure(ErrorKind.UPSTREAM)

        logger.error("Gemini returned an empty response after retry")
        return Reply.failure(ErrorKind.EMPTY_RESPONSE)

    def respond(self, user_text: str, user_id: Optional[str] = None, context: Optional[List[dict]] = None) -> str:
        reply = self.generate(user_text, user_id=user_id, context=context)
        if reply.ok:
            return reply.text
        if reply.error == ErrorKind.NOT_CONFIGURED:
            return render(reply)
        return FALLBACK_REPLY


__all__ = ["GeminiClient", "AgentClient", "AIResponder", "build_prompt", "FALLBACK_REPLY", "PERSONAS"]
