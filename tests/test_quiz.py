import json

import pytest

import quiz


def _quiz_json(answer=1):
    return json.dumps({
        "metadata": {"topic": "Cells"},
        "questions": [
            {"id": "x", "question": "What powers the cell?", "options": ["A", "B", "C", "D"],
             "correctAnswer": answer, "explanation": "Mitochondria."},
            {"question": "Which stores DNA?", "options": ["A", "B"], "correctAnswer": "1"},
        ],
    })


def test_parse_quiz_extracts_json_and_normalizes():
    result = quiz.parse_quiz("Sure! Here it is:\n" + _quiz_json(answer=7) + "\nEnjoy", "Cells", 2, 15, "secondary")
    ids = [q["id"] for q in result["questions"]]
    assert ids == ["q1", "q2"]
    assert result["questions"][0]["correctAnswer"] == 3
    assert result["questions"][1]["correctAnswer"] == 1
    assert result["questions"][1]["estimatedTime"] == 60


def test_unparseable_reply_gets_fallback_quiz():
    result = quiz.parse_quiz("not json at all", "Cells", 5, 10, "primary")
    assert len(result["questions"]) == 5
    assert result["metadata"]["educationalLevel"] == "primary"
    for q in result["questions"]:
        assert len(q["options"]) == 4
        assert 0 <= q["correctAnswer"] <= 3


def test_generate_quiz_uses_groq_settings(fake_groq):
    fake = fake_groq(_quiz_json())
    result = quiz.generate_quiz("Cells", question_count=100, level="galaxy")

    call = fake.calls[0]
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 8000
    assert call["top_p"] == 0.95
    assert call["frequency_penalty"] == 0.2
    assert call["presence_penalty"] == 0.1
    prompt = call["messages"][1]["content"]
    assert "Question Count: 30" in prompt
    assert "Educational Level: secondary" in prompt
    assert "Foundation (25%)" in prompt
    assert len(result["questions"]) == 2


def test_focus_areas_accept_a_single_string():
    prompt = quiz.build_quiz_prompt("Biology", 5, 10, "secondary", "cells")
    assert "Focus Areas: cells\n" in prompt
    listed = quiz.build_quiz_prompt("Biology", 5, 10, "secondary", ["cells", "genetics"])
    assert "Focus Areas: cells, genetics\n" in listed
    assert "Focus Areas: Comprehensive coverage\n" in quiz.build_quiz_prompt("Biology", 5, 10, "secondary", None)


def test_generate_quiz_raises_on_provider_error(fake_groq):
    fake_groq(RuntimeError("boom"))
    with pytest.raises(quiz.QuizGenerationError):
        quiz.generate_quiz("Cells")


def test_grade_quiz_scores_and_bands():
    parsed = quiz.parse_quiz(_quiz_json(answer=1), "Cells", 2, 15, "secondary")
    graded = quiz.grade_quiz(parsed, {"q1": 1, "q2": "0"})
    assert graded["score"] == 1
    assert graded["total"] == 2
    assert graded["percentage"] == 50.0
    assert graded["band"] == "beginning"
    assert graded["results"][0]["correct"] is True
    assert graded["results"][1]["selected"] == 0


@pytest.mark.parametrize("percentage,band", [(95, "excellent"), (75, "proficient"), (60, "developing"), (10, "beginning")])
def test_performance_band(percentage, band):
    assert quiz.performance_band(percentage) == band
