import pytest
from conftest import FakeResponse, FakeSession, gemini_payload

from bunder_bot.ai_core import AIResponder, GeminiClient
from bunder_bot.config import Settings
from bunder_bot.content import Content
from bunder_bot.errors import ErrorKind, apology
from bunder_bot.router import CLEARED, CONFIRM_NO, GEMINI_MODE, WELCOME, ConversationRouter
from bunder_bot.sessions import OnboardingField, SessionState, user_id_for
from bunder_bot.transport import NullTransport
from bunder_bot.weather import WeatherClient

CHAT = 42


def _bot(*gemini_responses, weather_session=None, ai=None):
    session = FakeSession(*gemini_responses)
    ai = ai or AIResponder(gemini=GeminiClient(api_key="k", session=session))
    weather = WeatherClient(api_key="w", session=weather_session or FakeSession())
    router = ConversationRouter(ai=ai, weather=weather)
    transport = router.register(NullTransport())
    return router, transport, session


@pytest.mark.asyncio
async def test_partner_browsing_flow():
    router, transport, _ = _bot()

    await transport.dispatch(CHAT, "/start")
    assert transport.last_text(CHAT) == WELCOME["partners"]
    assert router.sessions.get(user_id_for(CHAT)).state == SessionState.ONBOARDING_COMPLETE

    await transport.dispatch(CHAT, "/partners")
    listing = transport.outbox[-1]
    assert "*TechSoft*" in listing.text
    assert listing.parse_mode == "Markdown"
    assert listing.buttons[0] == [("TechSoft", "company_TechSoft")]
    assert router.user_states.get(CHAT).expecting_company_name

    await transport.dispatch(CHAT, "TechSoft")
    assert "*TechSoft* hakkında detaylı bilgi" in transport.last_text(CHAT)
    state = router.user_states.get(CHAT)
    assert state.expecting_confirmation
    assert state.selected_company == "TechSoft"
    assert state.last_command == "companyDetail"

    await transport.dispatch(CHAT, "evet")
    assert "*TechSoft* ile iletişim talebiniz iletildi" in transport.last_text(CHAT)
    state = router.user_states.get(CHAT)
    assert state.last_command == "general"
    assert not state.expecting_confirmation
    assert state.selected_company is None


@pytest.mark.asyncio
async def test_declining_contact():
    router, transport, _ = _bot()
    await transport.press(CHAT, "company_LogiTrans")
    assert "*LogiTrans*" in transport.last_text(CHAT)
    await transport.dispatch(CHAT, "hayır")
    assert transport.last_text(CHAT) == CONFIRM_NO


@pytest.mark.asyncio
async def test_short_text_gets_canned_reply():
    router, transport, gemini = _bot()
    await transport.dispatch(CHAT, "merhaba")
    assert transport.last_text(CHAT) in Content().replies_for("greeting")
    assert router.user_states.get(CHAT).last_intent == "greeting"
    assert gemini.calls == []


@pytest.mark.asyncio
async def test_question_goes_to_ai_with_typing():
    router, transport, gemini = _bot(FakeResponse(payload=gemini_payload("Yapay zeka bir alandır.")))
    await transport.dispatch(CHAT, "Yapay zeka nedir?")
    assert transport.last_text(CHAT) == "Yapay zeka bir alandır."
    assert transport.typing == [CHAT]
    assert len(gemini.calls) == 1
    assert [t["role"] for t in router.context.recent(CHAT)] == ["user", "assistant"]
    assert router.user_states.get(CHAT).last_command == "general"


@pytest.mark.asyncio
async def test_gemini_mode_sends_next_message_to_ai():
    router, transport, gemini = _bot(FakeResponse(payload=gemini_payload("Selam!")))
    await transport.dispatch(CHAT, "/gemini")
    assert transport.last_text(CHAT) == GEMINI_MODE
    await transport.dispatch(CHAT, "hi")
    assert transport.last_text(CHAT) == "Selam!"
    assert len(gemini.calls) == 1


@pytest.mark.asyncio
async def test_gemini_with_prompt_answers_immediately():
    router, transport, gemini = _bot(FakeResponse(payload=gemini_payload("Cevap")))
    await transport.dispatch(CHAT, "/gemini Nasıl çalışır?")
    assert transport.last_text(CHAT) == "Cevap"
    assert 'Kullanıcı mesajı: "Nasıl çalışır?"' in gemini.calls[0][2]["json"]["contents"][0]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_weather_commands():
    payload = {
        "name": "Ankara",
        "weather": [{"description": "clear sky"}],
        "main": {"temp": 27, "feels_like": 28, "humidity": 30},
        "wind": {"speed": 2, "deg": 90},
    }
    router, transport, _ = _bot(weather_session=FakeSession(FakeResponse(payload=payload)))

    await transport.dispatch(CHAT, "/weather")
    assert "/weather İstanbul" in transport.last_text(CHAT)

    await transport.dispatch(CHAT, "/weather Ankara")
    text = transport.last_text(CHAT)
    assert "Ankara" in text
    assert "East" in text


@pytest.mark.asyncio
async def test_onboarding_through_router():
    router, transport, gemini = _bot()
    await transport.dispatch(CHAT, "/onboard")
    assert "company name" in transport.last_text(CHAT)

    await transport.dispatch(CHAT, "Acme Teknoloji Anonim Şirketi")
    assert "LinkedIn" in transport.last_text(CHAT)
    await transport.dispatch(CHAT, "not a link?")
    assert transport.last_text(CHAT).startswith("Invalid input:")

    session = router.sessions.get(user_id_for(CHAT))
    assert session.current_field == OnboardingField.LINKEDIN_URL
    assert session.onboarding_data == {"companyName": "Acme Teknoloji Anonim Şirketi"}
    assert gemini.calls == []

    await transport.dispatch(CHAT, "/profile")
    assert "Company: Acme Teknoloji Anonim Şirketi" in transport.last_text(CHAT)


@pytest.mark.asyncio
async def test_clear_drops_chat_state():
    router, transport, _ = _bot()
    await transport.dispatch(CHAT, "/start")
    await transport.dispatch(CHAT, "/partners")
    await transport.dispatch(CHAT, "/clear")
    assert transport.last_text(CHAT) == CLEARED
    assert router.sessions.get(user_id_for(CHAT)) is None
    assert router.user_states.get(CHAT).expecting_company_name is False


@pytest.mark.asyncio
async def test_unknown_command_is_ignored():
    _, transport, _ = _bot()
    await transport.dispatch(CHAT, "/doesnotexist")
    assert transport.outbox == []


@pytest.mark.asyncio
async def test_handler_errors_become_apology():
    class Broken:
        enabled = True

        def respond(self, *args, **kwargs):
            raise RuntimeError("boom")

    _, transport, _ = _bot(ai=Broken())
    await transport.dispatch(CHAT, "Bu mesaj yapay zekaya gitmeli mi?")
    assert transport.last_text(CHAT) == apology(ErrorKind.INTERNAL)


def test_eviction_is_scheduled():
    router, transport, _ = _bot()
    assert transport.intervals == [(30 * 60, router.context.evict_idle)]


@pytest.mark.asyncio
async def test_without_ai_key_long_text_gets_canned_reply():
    router, transport, _ = _bot(ai=AIResponder())
    await transport.dispatch(CHAT, "Bu bot bana nasıl yardımcı olabilir?")
    assert transport.last_text(CHAT) in Content().replies_for("help")
    assert transport.typing == []
    assert router.user_states.get(CHAT).last_intent == "help"

    # asking explicitly still says the AI service is not configured
    await transport.dispatch(CHAT, "/gemini Yapay zeka nedir?")
    assert transport.last_text(CHAT) == apology(ErrorKind.NOT_CONFIGURED)


@pytest.mark.asyncio
async def test_forecast_command():
    payload = {
        "city": {"name": "İzmir", "timezone": 10800},
        "list": [
            {"dt": 1704067200 + i * 10800, "main": {"temp": 12 + i}, "weather": [{"description": "few clouds"}]}
            for i in range(40)
        ],
    }
    weather = FakeSession(FakeResponse(payload=payload))
    router, transport, _ = _bot(weather_session=weather)

    await transport.dispatch(CHAT, "/forecast")
    assert "/forecast İstanbul" in transport.last_text(CHAT)

    await transport.dispatch(CHAT, "/forecast İzmir")
    lines = transport.last_text(CHAT).splitlines()
    assert lines[0] == "5-day forecast for İzmir:"
    assert len(lines) == 6
    assert weather.calls[0][1].endswith("/forecast")
    assert weather.calls[0][2]["params"]["q"] == "İzmir"
    assert router.user_states.get(CHAT).last_command == "forecast"


@pytest.mark.asyncio
async def test_how_it_works_command_uses_intent_name():
    router, transport, _ = _bot()
    await transport.dispatch(CHAT, "/howitworks")
    assert transport.last_text(CHAT) in Content().replies_for("how_it_works")
    assert router.user_states.get(CHAT).last_command == "how_it_works"


def test_each_router_loads_its_own_content():
    router = ConversationRouter.from_settings(Settings(transport="null"))
    other = ConversationRouter.from_settings(Settings(transport="null"))
    assert router.weather.content is router.content
    assert router.content is not other.content
    assert [c.name for c in router.content.companies] == [c.name for c in other.content.companies]
