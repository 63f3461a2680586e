import json

import pytest

import tutor

STACKED = ("I guarantee this is definitely right. Without a doubt. "
           "As of today see https://example.com")

PROBLEMS = [
    {"number": 1, "question": "2 + 3", "answer": "5"},
    {"number": 2, "question": "1 / 2", "answer": "0.5"},
    {"number": 3, "question": "Capital of the Philippines", "answer": "Manila"},
]


def test_parse_user_answers_formats():
    assert tutor._parse_user_answers("1) 5\n2: 0.5; 3 - Manila") == {1: "5", 2: "0.5", 3: "Manila"}
    assert tutor._parse_user_answers("4 7 9") == {1: "4", 2: "7", 3: "9"}
    assert tutor._parse_user_answers({"1": "5", "x": "3", "2": ""}) == {1: "5"}
    assert tutor._parse_user_answers(["a", " ", "b"]) == {1: "a", 3: "b"}


def test_decimal_answers_are_not_read_as_numbers():
    assert tutor._parse_user_answers("0.5\n0.75\n4") == {1: "0.5", 2: "0.75", 3: "4"}
    assert tutor._parse_user_answers("2.5 7 9") == {1: "2.5", 2: "7", 3: "9"}
    assert tutor._parse_user_answers("1. 0.5\n2. 0.75") == {1: "0.5", 2: "0.75"}
    assert tutor._parse_user_answers(12) == {}


def test_decimal_answers_one_per_line_grade_correctly():
    problems = [{"number": 1, "question": "1/2", "answer": "0.5"},
                {"number": 2, "question": "3/4", "answer": "0.75"},
                {"number": 3, "question": "2 + 2", "answer": "4"}]
    assert tutor.grade_practice(problems, "0.5\n0.75\n4")["correct"] == 3
    assert tutor.grade_practice(problems, "0.5 0.75 4")["correct"] == 3


def test_answers_equal_rounds_numbers(monkeypatch):
    assert tutor._answers_equal("3.14159", "3.14")
    assert tutor._answers_equal("x + 1", "X+1")
    assert not tutor._answers_equal("12abc", "12")
    monkeypatch.setenv('MATH_DECIMALS', '0')
    assert tutor._answers_equal("2.4", "2")


def test_grade_practice_summary():
    result = tutor.grade_practice(PROBLEMS, "1) 5.00\n2) .5")
    assert result["correct"] == 2
    assert result["total"] == 3
    assert result["answer"] == "You got 2/3 correct.\n1) Correct\n2) Correct\n3) Missing"


def test_grade_practice_reports_expected_answer():
    result = tutor.grade_practice(PROBLEMS, {"1": "6", "2": "0.5", "3": "manila"})
    assert result["answer"].splitlines()[1] == "1) Incorrect. Expected: 5"
    assert result["results"][0] == {"number": 1, "status": "incorrect", "given": "6", "expected": "5"}
    assert result["correct"] == 2


def test_practice_set_is_truncated_and_renumbered(fake_groq):
    problems = [{"number": i, "question": f"Q{i}", "answer": i} for i in range(1, 13)]
    del problems[2]["answer"]
    fake = fake_groq("Here you go:\n" + json.dumps({"problems": problems}))

    result = tutor.generate_practice_set("solve 2x = 4, same difficulty", allow_harder=False)
    assert [p["number"] for p in result] == list(range(1, 10))
    assert result[2] == {"number": 3, "question": "Q4", "answer": "4"}
    assert "same difficulty as the concept" in fake.calls[0]["messages"][0]["content"]
    assert fake.calls[0]["temperature"] == 0.4


def test_practice_set_with_bad_json_is_empty(fake_groq):
    fake_groq("no problems today")
    assert tutor.generate_practice_set("fractions") == []
    assert tutor.practice_intro([]).startswith("I couldn't generate problems")


def test_wants_no_harder():
    assert tutor.wants_no_harder("Keep same level please")
    assert not tutor.wants_no_harder("give me more")


def test_start_lesson_returns_history(fake_groq):
    fake = fake_groq("Hello! Let's learn commas.")
    result = tutor.start_lesson('grammar', 'Commas', 'Punctuation')
    assert result == {"answer": "Hello! Let's learn commas.",
                      "history": [{"role": "tutor", "content": "Hello! Let's learn commas."}]}
    assert "master Commas" in fake.calls[0]["messages"][0]["content"]


def test_check_work_appends_turns(fake_groq):
    fake_groq("Nice work!")
    history = [{"role": "tutor", "content": "Welcome"}]
    result = tutor.check_work('math', "2x = 4", history)
    assert [t["role"] for t in result["history"]] == ["tutor", "student", "tutor"]
    assert result["history"][1]["content"] == 'Please help me solve this problem: "2x = 4"'


def test_ask_tutor_includes_context(fake_groq):
    fake = fake_groq("Great question!")
    history = [{"role": "tutor", "content": "Welcome to fractions"}]
    result = tutor.ask_tutor('math', 'Fractions', 'What is a denominator?', history)
    prompt = fake.calls[0]["messages"][0]["content"]
    assert "Tutor: Welcome to fractions" in prompt
    assert 'Student\'s question: "What is a denominator?"' in prompt
    assert result["history"][-1] == {"role": "tutor", "content": "Great question!"}


def test_unvalidated_reply_is_rejected(fake_groq):
    fake_groq(STACKED)
    with pytest.raises(tutor.TutorError) as err:
        tutor.start_lesson('math', 'Fractions')
    assert err.value.status == 502


def test_provider_failure_is_500(fake_groq):
    fake_groq(RuntimeError("down"))
    with pytest.raises(tutor.TutorError) as err:
        tutor.start_lesson('math', 'Fractions')
    assert err.value.status == 500


def test_unknown_subject_and_missing_question():
    with pytest.raises(tutor.TutorError) as err:
        tutor.start_lesson('history', 'Rome')
    assert err.value.status == 404

    with pytest.raises(tutor.TutorError) as err:
        tutor.ask_tutor('grammar', 'Commas', '  ')
    assert err.value.status == 400


@pytest.mark.parametrize("call", [
    lambda: tutor.check_work('math', 12),
    lambda: tutor.ask_tutor('math', 'Fractions', ['what?']),
    lambda: tutor.ask_tutor('math', 7, 'What is a denominator?'),
    lambda: tutor.start_lesson('grammar', {"name": "Commas"}),
])
def test_non_string_fields_are_rejected(call):
    with pytest.raises(tutor.TutorError) as err:
        call()
    assert err.value.status == 400
