import requests

import image_generation
from conftest import FakeResponse


def test_pollinations_fallback_without_key(monkeypatch):
    monkeypatch.delenv('TOGETHER_API_KEY', raising=False)
    result = image_generation.generate_image("a red fox", style="anime", aspect_ratio="16:9")
    assert result["imageUrl"].startswith(image_generation.POLLINATIONS_URL)
    assert "width=1344" in result["imageUrl"]
    assert "nologo=true" in result["imageUrl"]
    assert result["model"] == "Pollinations AI (Free)"
    assert result["style"] == "anime"
    assert "note" in result


def test_unknown_style_and_ratio_use_defaults(monkeypatch):
    monkeypatch.delenv('TOGETHER_API_KEY', raising=False)
    result = image_generation.generate_image("a red fox", style="oil-on-velvet", aspect_ratio="7:3")
    assert result["style"] == "realistic"
    assert result["aspectRatio"] == "1:1"


def test_enhanced_prompt_order():
    prompt = image_generation.build_enhanced_prompt("a red fox", "vintage")
    assert prompt.startswith("a red fox, vintage aesthetic")
    assert prompt.endswith(image_generation.TECHNICAL_SPECS)


def test_together_is_used_with_key(monkeypatch):
    sent = {}

    def fake_post(url, headers, json, timeout):
        sent.update(json)
        assert headers["Authorization"] == "Bearer t-key"
        return FakeResponse({"data": [{"url": "https://cdn.together/fox.png"}]})

    monkeypatch.setenv('TOGETHER_API_KEY', 't-key')
    monkeypatch.setattr(image_generation.requests, 'post', fake_post)

    result = image_generation.generate_image("a red fox")
    assert result["imageUrl"] == "https://cdn.together/fox.png"
    assert result["model"] == "FLUX.1-schnell (Together AI)"
    assert sent["steps"] == 6
    assert sent["guidance_scale"] == 7.5
    assert sent["model"] == image_generation.TOGETHER_MODEL


def test_together_failure_falls_back(monkeypatch):
    def fake_post(url, headers, json, timeout):
        raise requests.ConnectionError("down")

    monkeypatch.setenv('TOGETHER_API_KEY', 't-key')
    monkeypatch.setattr(image_generation.requests, 'post', fake_post)

    result = image_generation.generate_image("a red fox")
    assert result["model"] == "Pollinations AI (Free)"


def test_enhance_prompt_adds_quality_and_art_style():
    assert image_generation.enhance_prompt("a cat") == "a cat, high quality, detailed"
    assert image_generation.enhance_prompt("paint a cat").endswith(", professional art style")
    assert image_generation.enhance_prompt("a detailed cat") == "a detailed cat"


def test_chat_image_rejects_bad_prompt():
    result = image_generation.generate_chat_image("<script>x</script>")
    assert result == {"success": False, "error": "Invalid or inappropriate prompt"}


def test_chat_image_returns_url():
    result = image_generation.generate_chat_image("a lighthouse", seed=42)
    assert result["success"]
    assert "seed=42" in result["data"]["image_url"]
    assert result["data"]["model_used"] == "flux"
