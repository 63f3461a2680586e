from validation import content_warning, validate_ai_response, validate_model_request, validate_text_input


def test_empty_input_is_invalid():
    result = validate_text_input("")
    assert not result["is_valid"]
    assert result["sanitized"] == ""


def test_script_injection_is_rejected():
    result = validate_text_input("<script>alert(1)</script> explain gravity")
    assert not result["is_valid"]
    assert result["errors"] == ["Input contains potentially malicious content"]


def test_overlong_input_is_rejected():
    result = validate_text_input("a" * 10001)
    assert not result["is_valid"]
    assert "maximum length" in result["errors"][0]


def test_control_characters_are_stripped():
    result = validate_text_input("  hello\x00 world\x07 ")
    assert result["is_valid"]
    assert result["sanitized"] == "hello world"


def test_clean_ai_response_keeps_full_confidence():
    result = validate_ai_response("Plants use sunlight to make glucose.")
    assert result == {"is_valid": True, "confidence": 1.0, "warnings": [], "risk_level": "low"}


def test_certainty_claims_lower_confidence():
    result = validate_ai_response("I guarantee the answer is 4.")
    assert result["is_valid"]
    assert result["confidence"] == 0.8
    assert result["risk_level"] == "medium"


def test_urls_are_flagged_unless_generating():
    flagged = validate_ai_response("Read more at https://example.com/page")
    assert flagged["confidence"] == 0.75
    assert "Response contains specific URLs that may be fabricated" in flagged["warnings"]

    allowed = validate_ai_response("Read more at https://example.com/page", context="generate an image")
    assert allowed["confidence"] == 1.0


def test_stacked_markers_make_reply_invalid():
    text = ("I guarantee this is definitely right. Without a doubt. "
            "As of today see https://example.com")
    result = validate_ai_response(text)
    assert not result["is_valid"]
    assert result["risk_level"] == "high"


def test_model_request_checks_ranges():
    assert validate_model_request("llama-3.3-70b-versatile", {"temperature": 0.5})["is_valid"]
    result = validate_model_request("bad model!", {"temperature": 3, "max_tokens": 0})
    assert len(result["errors"]) == 3


def test_content_warning_formats_first_warning():
    assert content_warning({"warnings": []}) is None
    warning = content_warning({"warnings": ["Something odd"], "risk_level": "medium"})
    assert warning == "[MEDIUM] Content Validation Warning: Something odd"
