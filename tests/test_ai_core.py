from conftest import FakeResponse, FakeSession, gemini_payload

from bunder_bot.ai_core import FALLBACK_REPLY, AgentClient, AIResponder, GeminiClient, build_prompt
from bunder_bot.errors import ErrorKind, apology


def _responder(*responses, agent=None):
    session = FakeSession(*responses)
    gemini = GeminiClient(api_key="test-key", session=session)
    return AIResponder(gemini=gemini, agent=agent), session


def test_prompt_carries_persona_and_message():
    prompt = build_prompt("Yapay zeka nedir?", persona="partners")
    assert "Bunder Bot" in prompt
    assert "150 kelime" in prompt
    assert 'Kullanıcı mesajı: "Yapay zeka nedir?"' in prompt


def test_gemini_request_shape():
    session = FakeSession(FakeResponse(payload=gemini_payload("Merhaba")))
    client = GeminiClient(api_key="abc", model="gemini-1.5-flash", session=session)
    assert client.generate("selam") == "Merhaba"

    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url.endswith("/models/gemini-1.5-flash:generateContent")
    assert kwargs["params"] == {"key": "abc"}
    assert kwargs["json"] == {"contents": [{"parts": [{"text": "selam"}]}]}


def test_empty_twice_gives_fallback_after_two_calls():
    responder, session = _responder(
        FakeResponse(payload=gemini_payload("")),
        FakeResponse(payload={"candidates": []}),
    )
    assert responder.respond("Bu uzun bir soru metnidir, cevap ver?") == FALLBACK_REPLY
    assert len(session.calls) == 2


def test_retry_recovers_from_single_empty_answer():
    responder, session = _responder(
        FakeResponse(payload=gemini_payload("")),
        FakeResponse(payload=gemini_payload("İkinci deneme")),
    )
    reply = responder.generate("soru?")
    assert reply.ok
    assert reply.text == "İkinci deneme"
    assert len(session.calls) == 2


def test_upstream_error_is_reported_not_raised():
    responder, _ = _responder(FakeResponse(status_code=500))
    reply = responder.generate("soru?")
    assert reply.error == ErrorKind.UPSTREAM
    assert responder.respond("soru?") == FALLBACK_REPLY


def test_missing_key_is_not_configured():
    responder = AIResponder()
    assert not responder.enabled
    assert responder.generate("soru?").error == ErrorKind.NOT_CONFIGURED
    assert responder.respond("soru?") == apology(ErrorKind.NOT_CONFIGURED)


def test_agent_answer_wins_over_gemini():
    agent_session = FakeSession(FakeResponse(payload={"response": "agent says hi"}))
    agent = AgentClient("http://localhost:5173/agents/telegramAgent/chat", session=agent_session)
    responder, gemini_session = _responder(agent=agent)

    context = [{"role": "user", "content": "önceki"}]
    assert responder.respond("merhaba?", user_id="telegram:7", context=context) == "agent says hi"
    assert gemini_session.calls == []
    body = agent_session.calls[0][2]["json"]
    assert body == {"message": "merhaba?", "userId": "telegram:7", "context": context}
    assert agent_session.calls[0][2]["timeout"] == 5.0


def test_agent_failure_falls_back_to_gemini():
    agent = AgentClient("http://localhost:5173/chat", session=FakeSession(FakeResponse(status_code=503)))
    responder, gemini_session = _responder(FakeResponse(payload=gemini_payload("gemini cevabı")), agent=agent)
    assert responder.respond("soru?") == "gemini cevabı"
    assert len(gemini_session.calls) == 1


def test_api_key_never_reaches_the_log(caplog):
    session = FakeSession(FakeResponse(status_code=401))
    responder = AIResponder(gemini=GeminiClient(api_key="SECRETGEMINIKEY123", session=session))
    assert responder.respond("soru?") == FALLBACK_REPLY

    # the failure is logged, but with the key scrubbed from the request URL
    assert "401" in caplog.text
    assert "key=***" in caplog.text
    assert "SECRETGEMINIKEY123" not in caplog.text
