from content_filter import (ACADEMIC_CLARIFICATIONS, BLOCKED_RESPONSES, detect_language, filter_content,
                            generate_variations, is_educational_content, is_inappropriate,
                            should_request_academic_clarification)


def test_clean_question_passes_through():
    result = filter_content("Can you help me with my math homework?")
    assert not result["was_filtered"]
    assert result["filtered"] == "Can you help me with my math homework?"
    assert result["filter_result"]["category"] == "clean"


def test_filipino_profanity_is_redirected():
    result = filter_content("putangina mo")
    assert result["was_filtered"]
    assert result["filter_result"]["is_blocked"]
    assert result["filter_result"]["category"] == "profanity"
    assert result["filtered"] in BLOCKED_RESPONSES["profanity"]


def test_obfuscated_spellings_are_caught():
    assert is_inappropriate("pen1s")
    assert is_inappropriate("p e n i s")
    assert is_inappropriate("sinep")


def test_words_inside_other_words_are_not_flagged():
    assert not is_inappropriate("I am reading Charles Dickens in Sussex")
    assert not is_inappropriate("The pilot sat in the cockpit")


def test_academic_context_asks_for_clarification():
    result = filter_content("what is the anatomy of the penis")
    assert result["was_filtered"]
    assert result["filter_result"]["category"] == "academic_context"
    assert not result["filter_result"]["is_blocked"]
    assert result["filtered"] in ACADEMIC_CLARIFICATIONS
    assert should_request_academic_clarification("what is the anatomy of the penis")


def test_educational_requests_bypass_filter():
    assert is_educational_content("hard questions about physics")
    result = filter_content("Give me hard questions about physics")
    assert not result["was_filtered"]
    assert result["filter_result"]["reason"] == "Educational content - bypassed filtering"


def test_language_detection():
    assert detect_language("ang bata ay nasa bahay") == "filipino"
    assert detect_language("the cat and the dog") == "english"
    assert detect_language("xyz") == "mixed"


def test_variations_include_reversed_and_spaced():
    variations = generate_variations("tanga")
    assert "agnat" in variations
    assert "t a n g a" in variations
    assert "t@ng@" in variations
