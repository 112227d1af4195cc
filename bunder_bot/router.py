"""
router.py

Per-chat conversation logic. The router registers its handlers on a
transport and decides, for every command or free-text message, which
responder answers and how the chat's state moves on.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from . import onboarding
from .ai_core import AIResponder
from .content import Company, Content
from .errors import ErrorKind, apology
from .intents import Intent, canned_reply, classify
from .sessions import ContextStore, SessionState, SessionStore, UserState, UserStateStore, user_id_for
from .transport import Transport, parse_command
from .weather import WeatherClient

logger = logging.getLogger(__name__)

# (command, description) as shown in Telegram's command menu
COMMANDS: List[Tuple[str, str]] = [
    ("start", "Botu başlat"),
    ("help", "Yardım bilgisi"),
    ("about", "Bot hakkında bilgi"),
    ("howitworks", "Nasıl çalışır"),
    ("partners", "Örnek iş ortakları"),
    ("gemini", "Gemini AI ile sohbet"),
    ("weather", "Anlık hava durumu: /weather <şehir>"),
    ("forecast", "5 günlük tahmin: /forecast <şehir>"),
    ("onboard", "Şirket profilini oluştur"),
    ("profile", "Şirket profilini göster"),
    ("clear", "Konuşma geçmişini temizle"),
]

WELCOME = {
    "partners": (
        "Merhaba! Bunder Telegram Bot'una hoş geldiniz! 👋\n\n"
        "Bu bot, potansiyel iş ortaklarıyla bağlantı kurmanıza yardımcı olacak. "
        "Aşağıdaki komutları kullanabilirsiniz:\n\n"
        "/help - Yardım bilgisi\n"
        "/about - Bot hakkında bilgi\n"
        "/howitworks - Nasıl çalışır\n"
        "/partners - Örnek iş ortakları\n"
        "/gemini - Gemini AI ile sohbet\n"
        "/weather <şehir> - Anlık hava durumu\n"
        "/forecast <şehir> - 5 günlük hava tahmini\n"
        "/onboard - Şirket profilinizi oluşturun\n"
        "/profile - Şirket profilinizi görüntüleyin\n"
        "/clear - Konuşma geçmişini temizle"
    ),
    "weather": (
        "Merhaba! Hava Durumu Bilgi Botuna hoş geldiniz! 🌤\n\n"
        "Aşağıdaki komutları kullanabilirsiniz:\n\n"
        "/weather <şehir> - Anlık hava durumu\n"
        "/forecast <şehir> - 5 günlük hava tahmini\n"
        "/gemini - Gemini AI ile sohbet\n"
        "/help - Yardım bilgisi\n"
        "/clear - Konuşma geçmişini temizle"
    ),
}

PARTNERS_HEADER = "İşte size uygun olabilecek örnek iş ortakları:\n\n"
PARTNERS_FOOTER = "Herhangi bir şirket hakkında daha fazla bilgi için şirket adını yazabilirsiniz."
CONFIRM_YES = (
    "Harika! *{company}* ile iletişim talebiniz iletildi. En kısa sürede sizinle iletişime geçecekler.\n\n"
    "Başka bir konuda yardıma ihtiyacınız var mı?"
)
CONFIRM_NO = "Anlaşıldı. Başka bir şirket hakkında bilgi almak isterseniz, tekrar /partners komutunu kullanabilirsiniz."
GEMINI_MODE = "Gemini AI modundasınız. Sormak istediğiniz soruyu yazabilirsiniz."
CLEARED = "Konuşma geçmişiniz temizlendi. Yeni bir sohbete başlayabilirsiniz."
WEATHER_USAGE = "Lütfen bir şehir adı girin. Örnek: /{command} İstanbul"

CALLBACK_PREFIX = "company_"
AI_MIN_LENGTH = 20
MARKDOWN = "Markdown"


def company_list(companies: List[Company]) -> str:
    text = PARTNERS_HEADER
    for i, c in enumerate(companies, start=1):
        text += (
            f"{i}. *{c.name}*\n"
            f"   - Sektör: {c.industry}\n"
            f"   - Konum: {c.region}\n"
            f"   - Büyüklük: {c.size}\n"
            f"   - İlgi Alanları: {c.interests}\n\n"
        )
    return text + PARTNERS_FOOTER


def company_detail(c: Company) -> str:
    return (
        f"*{c.name}* hakkında detaylı bilgi:\n\n"
        f"🏢 *Şirket*: {c.name}\n"
        f"🔍 *Sektör*: {c.industry}\n"
        f"📍 *Konum*: {c.region}\n"
        f"📊 *Şirket Büyüklüğü*: {c.size}\n"
        f"🤝 *İşbirliği İlgi Alanları*: {c.interests}\n\n"
        "Bu şirketle iletişime geçmek ister misiniz? (Evet/Hayır)"
    )


def is_affirmative(text: str) -> bool:
    t = (text or "").strip().lower()
    return "evet" in t or "yes" in t or t == "e"


def wants_ai(text: str, state: UserState) -> bool:
    return len(text) > AI_MIN_LENGTH or "?" in text or state.last_command == "gemini"


class ConversationRouter:
    """Routes commands, free text and button presses for every chat."""

    def __init__(
        self,
        ai: Optional[AIResponder] = None,
        weather: Optional[WeatherClient] = None,
        content: Optional[Content] = None,
        sessions: Optional[SessionStore] = None,
        user_states: Optional[UserStateStore] = None,
        context: Optional[ContextStore] = None,
        persona: str = "partners",
    ):
        self.ai = ai or AIResponder(persona=persona)
        self.content = content or Content()
        self.weather = weather or WeatherClient(api_key=None, content=self.content)
        self.sessions = sessions or SessionStore()
        self.user_states = user_states or UserStateStore()
        self.context = context or ContextStore()
        self.persona = persona if persona in WELCOME else "partners"
        self.transport: Optional[Transport] = None

    @classmethod
    def from_settings(cls, settings, session=None) -> "ConversationRouter":
        content = Content()
        return cls(
            ai=AIResponder.from_settings(settings, session=session),
            weather=WeatherClient.from_settings(settings, session=session, content=content),
            content=content,
            persona=settings.persona,
        )

    def register(self, transport: Transport) -> Transport:
        self.transport = transport
        handlers = {
            "start": self.cmd_start,
            "help": self.cmd_help,
            "about": self.cmd_about,
            "howitworks": self.cmd_how_it_works,
            "partners": self.cmd_partners,
            "gemini": self.cmd_gemini,
            "weather": self.cmd_weather,
            "forecast": self.cmd_forecast,
            "onboard": self.cmd_onboard,
            "profile": self.cmd_profile,
            "clear": self.cmd_clear,
        }
        for name, handler in handlers.items():
            transport.on_command(name, self._guarded(handler))
        transport.on_message(self._guarded(self.on_text))
        transport.on_callback_query(self._guarded(self.on_callback))
        transport.every(ContextStore.EVICT_INTERVAL, self.context.evict_idle)
        return transport

    def _guarded(self, handler: Callable):
        async def run(chat_id: int, text: str):
            try:
                await handler(chat_id, text)
            except Exception:
                logger.exception("Error handling update for chat %s", chat_id)
                try:
                    await self.send(chat_id, apology(ErrorKind.INTERNAL))
                except Exception:
                    logger.exception("Could not deliver error reply to chat %s", chat_id)

        run.__name__ = getattr(handler, "__name__", "handler")
        return run

    async def send(self, chat_id: int, text: str, parse_mode: Optional[str] = None, buttons=None) -> None:
        await self.transport.send_message(chat_id, text, parse_mode=parse_mode, buttons=buttons)

    async def _typing(self, chat_id: int) -> None:
        try:
            await self.transport.send_typing(chat_id)
        except Exception as e:
            logger.debug("Typing indicator failed for chat %s: %s", chat_id, e)

    # commands

    async def cmd_start(self, chat_id: int, text: str) -> None:
        user_id = user_id_for(chat_id)
        self.user_states.set(chat_id, UserState(last_command="start", conversation_stage="initial"))
        self.sessions.get_or_create(user_id, chat_id)
        # no identity provider: /start marks the user as onboarded
        self.sessions.update(user_id, state=SessionState.ONBOARDING_COMPLETE, current_field=None)
        logger.info("Chat %s started the bot", chat_id)
        await self.send(chat_id, WELCOME[self.persona])

    async def _canned_command(self, chat_id: int, command: str, intent: Intent) -> None:
        self.user_states.set(chat_id, UserState(last_command=command))
        await self.send(chat_id, canned_reply(intent, self.content))

    async def cmd_help(self, chat_id: int, text: str) -> None:
        await self._canned_command(chat_id, "help", Intent.HELP)

    async def cmd_about(self, chat_id: int, text: str) -> None:
        await self._canned_command(chat_id, "about", Intent.ABOUT)

    async def cmd_how_it_works(self, chat_id: int, text: str) -> None:
        await self._canned_command(chat_id, Intent.HOW_IT_WORKS.value, Intent.HOW_IT_WORKS)

    async def cmd_partners(self, chat_id: int, text: str) -> None:
        companies = self.content.companies
        self.user_states.set(chat_id, UserState(last_command="partners", expecting_company_name=True))
        buttons = [[(c.name, f"{CALLBACK_PREFIX}{c.name}")] for c in companies]
        await self.send(chat_id, company_list(companies), parse_mode=MARKDOWN, buttons=buttons)

    async def cmd_gemini(self, chat_id: int, text: str) -> None:
        _, prompt = parse_command(text)
        self.user_states.set(chat_id, UserState(last_command="gemini"))
        if not prompt:
            await self.send(chat_id, GEMINI_MODE)
            return
        await self.send(chat_id, await self._ask_ai(chat_id, prompt))

    async def _weather_command(self, chat_id: int, text: str, command: str, lookup) -> None:
        _, city = parse_command(text)
        self.user_states.set(chat_id, UserState(last_command=command))
        if not city:
            await self.send(chat_id, WEATHER_USAGE.format(command=command))
            return
        logger.info("Chat %s asked /%s for %r", chat_id, command, city)
        await self.send(chat_id, await asyncio.to_thread(lookup, city))

    async def cmd_weather(self, chat_id: int, text: str) -> None:
        await self._weather_command(chat_id, text, "weather", self.weather.current_weather)

    async def cmd_forecast(self, chat_id: int, text: str) -> None:
        await self._weather_command(chat_id, text, "forecast", self.weather.forecast)

    async def cmd_onboard(self, chat_id: int, text: str) -> None:
        self.user_states.set(chat_id, UserState(last_command="onboard"))
        await self.send(chat_id, onboarding.start(self.sessions, user_id_for(chat_id), chat_id))

    async def cmd_profile(self, chat_id: int, text: str) -> None:
        await self.send(chat_id, onboarding.summary(self.sessions.get(user_id_for(chat_id))))

    async def cmd_clear(self, chat_id: int, text: str) -> None:
        self.context.clear(chat_id)
        self.user_states.clear(chat_id)
        self.sessions.clear(user_id_for(chat_id))
        logger.info("Chat %s cleared its conversation", chat_id)
        await self.send(chat_id, CLEARED)

    # callbacks and free text

    async def on_callback(self, chat_id: int, data: str) -> None:
        if not data.startswith(CALLBACK_PREFIX):
            logger.debug("Ignoring callback data %r", data)
            return
        company = self.content.company_by_name(data[len(CALLBACK_PREFIX):])
        if company is None:
            logger.info("Callback for unknown company %r", data)
            return
        await self._show_company(chat_id, company)

    async def _show_company(self, chat_id: int, company: Company) -> None:
        self.user_states.set(
            chat_id,
            UserState(last_command="companyDetail", selected_company=company.name, expecting_confirmation=True),
        )
        await self.send(chat_id, company_detail(company), parse_mode=MARKDOWN)

    async def _ask_ai(self, chat_id: int, text: str) -> str:
        await self._typing(chat_id)
        self.context.append(chat_id, "user", text)
        history = self.context.recent(chat_id)
        reply = await asyncio.to_thread(self.ai.respond, text, user_id_for(chat_id), history)
        self.context.append(chat_id, "assistant", reply)
        return reply

    async def on_text(self, chat_id: int, text: str) -> None:
        text = (text or "").strip()
        if not text:
            return
        state = self.user_states.get(chat_id)

        if state.expecting_company_name:
            company = self.content.find_company(text)
            if company is not None:
                await self._show_company(chat_id, company)
                return

        if state.expecting_confirmation and state.selected_company:
            self.user_states.set(chat_id, UserState(last_command="general"))
            if is_affirmative(text):
                logger.info("Chat %s requested contact with %s", chat_id, state.selected_company)
                await self.send(chat_id, CONFIRM_YES.format(company=state.selected_company), parse_mode=MARKDOWN)
            else:
                await self.send(chat_id, CONFIRM_NO)
            return

        session = self.sessions.get(user_id_for(chat_id))
        if session is not None and session.state == SessionState.ONBOARDING:
            await self.send(chat_id, onboarding.process(self.sessions, session.user_id, text))
            return

        # without an AI backend, long texts get the canned reply like short ones
        if self.ai.enabled and wants_ai(text, state):
            reply = await self._ask_ai(chat_id, text)
        else:
            reply = canned_reply(classify(text), self.content)
        await self.send(chat_id, reply)
        self.user_states.set(chat_id, UserState(last_command="general", last_intent=classify(text).value))


__all__ = ["ConversationRouter", "COMMANDS", "company_list", "company_detail", "is_affirmative"]
