from response_filter import final_cleanup, filter_response, fix_numbered_lists, format_response, needs_filtering


def test_thinking_blocks_are_removed():
    result = filter_response("<think>work it out</think>The answer is 4.")
    assert result["content"] == "The answer is 4."
    assert result["was_filtered"]
    assert "thinking-pattern-0" in result["filters_applied"]


def test_clean_reply_is_untouched():
    result = filter_response("Mitochondria produce ATP.")
    assert result == {"content": "Mitochondria produce ATP.", "was_filtered": False, "filters_applied": []}


def test_numbered_lists_are_renumbered_per_list():
    text = "1. a\n1. b\n\n1. c\nText\n1. d"
    assert fix_numbered_lists(text) == "1. a\n2. b\n\n3. c\nText\n1. d"


def test_bullets_keep_a_list_open():
    text = "1. first\n- detail\n1. second"
    assert fix_numbered_lists(text) == "1. first\n- detail\n2. second"


def test_formatting_keeps_paragraph_breaks():
    result = filter_response("First paragraph.\n\n\n\nSecond paragraph.")
    assert result["content"] == "First paragraph.\n\nSecond paragraph."
    assert "formatting-fixed" in result["filters_applied"]


def test_final_cleanup_collapses_repeated_punctuation():
    assert final_cleanup("Wow!!! Really?? Yes..") == "Wow! Really? Yes."


def test_needs_filtering():
    assert needs_filtering("<think>x</think> hi")
    assert not needs_filtering("plain answer")


def test_format_response_wraps_simple_equations():
    assert format_response("F = ma") == "$F = ma$"
    latex = "Use $a$ and $b$ and $c$"
    assert format_response(latex) == latex
