import chat_service
from content_filter import BLOCKED_RESPONSES


def _reply(content, model="llama-3.3-70b-versatile"):
    return {"success": True, "choices": [{"message": {"role": "assistant", "content": content}}],
            "model": model, "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3}}


def _fail(error="down"):
    return {"success": False, "error": error}


def _user(text):
    return {"messages": [{"role": "user", "content": text}]}


def test_messages_are_required():
    payload, status = chat_service.process_chat_request({})
    assert status == 400
    payload, status = chat_service.process_chat_request({"messages": []})
    assert status == 400


def test_blocked_content_gets_redirect():
    payload, status = chat_service.process_chat_request(_user("gago ka"))
    assert status == 200
    assert payload["choices"][0]["message"]["content"] in BLOCKED_RESPONSES["profanity"]
    assert payload["usage"]["prompt_tokens"] == len("gago ka")


def test_mixed_image_and_code_request_asks_to_clarify():
    payload, status = chat_service.process_chat_request(
        _user("create a python script that can draw a picture"))
    assert status == 200
    content = payload["choices"][0]["message"]["content"]
    assert '"create a"' in content
    assert "**Generate an image**" in content
    assert payload["usage"]["completion_tokens"] == 50


def test_image_request_returns_markdown_image():
    payload, status = chat_service.process_chat_request(_user("draw a sunset over mountains"))
    assert status == 200
    content = payload["choices"][0]["message"]["content"]
    assert '"sunset over mountains"' in content
    assert "![Generated Image](https://image.pollinations.ai/prompt/" in content


def test_classify_image_request():
    assert chat_service.classify_image_request("make a poster for my club") == "image"
    assert chat_service.classify_image_request("make a function that sorts numbers") is None
    assert chat_service.classify_image_request("explain volcanoes") is None


def test_injection_is_rejected_before_providers(monkeypatch):
    monkeypatch.setattr(chat_service.groq_service, 'create_chat_completion',
                        lambda body: (_ for _ in ()).throw(AssertionError("should not be called")))
    payload, status = chat_service.process_chat_request(_user("<script>alert(1)</script> explain volcanoes"))
    assert status == 400
    assert payload["error"] == "Content policy violation"


def test_groq_reply_is_filtered_and_formatted(monkeypatch):
    monkeypatch.setattr(chat_service.groq_service, 'create_chat_completion',
                        lambda body: _reply("<think>hmm</think>Volcanoes erupt when pressure builds."))
    payload, status = chat_service.process_chat_request(_user("Tell me about volcanoes"))
    assert status == 200
    assert payload["choices"][0]["message"]["content"] == "Volcanoes erupt when pressure builds."


def test_gemini_is_used_when_groq_fails(monkeypatch):
    seen = {}

    def gemini(messages, temperature, max_tokens):
        seen["messages"] = messages
        return _reply("Gemini answer.", model="gemini-2.5-flash")

    monkeypatch.setattr(chat_service.groq_service, 'create_chat_completion', lambda body: _fail())
    monkeypatch.setattr(chat_service.gemini_service, 'create_chat_completion', gemini)

    body = {"messages": [{"role": "user", "content": [{"type": "text", "text": "Tell me about volcanoes"}]}]}
    payload, status = chat_service.process_chat_request(body)
    assert status == 200
    assert payload["model"] == "gemini-2.5-flash"
    assert seen["messages"] == [{"role": "user", "content": "Tell me about volcanoes"}]


def test_deepseek_is_the_last_provider(monkeypatch):
    actions = []

    def groq(body):
        actions.append(body.get('action'))
        return _reply("DeepSeek answer.", model="deepseek") if body.get('action') == 'deepseek' else _fail()

    monkeypatch.setattr(chat_service.groq_service, 'create_chat_completion', groq)
    monkeypatch.setattr(chat_service.gemini_service, 'create_chat_completion', lambda *a, **k: _fail())
    payload, status = chat_service.process_chat_request(_user("Tell me about volcanoes"))
    assert status == 200
    assert payload["model"] == "deepseek"
    assert actions == [None, 'deepseek']


def test_smart_fallback_when_everything_fails(monkeypatch):
    monkeypatch.setattr(chat_service.groq_service, 'create_chat_completion', lambda body: _fail())
    monkeypatch.setattr(chat_service.gemini_service, 'create_chat_completion', lambda *a, **k: _fail())
    payload, status = chat_service.process_chat_request(_user("hello"))
    assert status == 200
    assert payload["model"] == chat_service.SMART_FALLBACK_MODEL
    content = payload["choices"][0]["message"]["content"]
    assert payload["usage"]["completion_tokens"] == len(content)


def test_503_when_last_message_is_not_from_user(monkeypatch):
    monkeypatch.setattr(chat_service.groq_service, 'create_chat_completion', lambda body: _fail("Groq down"))
    monkeypatch.setattr(chat_service.gemini_service, 'create_chat_completion', lambda *a, **k: _fail())
    body = {"messages": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "Hello there"}]}
    payload, status = chat_service.process_chat_request(body)
    assert status == 503
    assert payload["details"] == "Primary: Groq down"


def test_quiz_requests_skip_the_content_filter(monkeypatch):
    monkeypatch.setattr(chat_service, 'filter_content',
                        lambda text: (_ for _ in ()).throw(AssertionError("filter should be skipped")))
    monkeypatch.setattr(chat_service.groq_service, 'create_chat_completion', lambda body: _reply("Here is your quiz."))
    payload, status = chat_service.process_chat_request(_user("quiz me on biology"))
    assert status == 200
    assert payload["choices"][0]["message"]["content"] == "Here is your quiz."
