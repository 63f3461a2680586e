# tutor.py
import os, logging, json, re

import groq_service
from quiz import extract_json_block
from validation import validate_ai_response

logger = logging.getLogger(__name__)

TUTOR_MODEL = "llama-3.3-70b-versatile"
SUBJECTS = ('grammar', 'math')
PRACTICE_SIZE = 10


class TutorError(Exception):
    def __init__(self, message, status=500):
        super().__init__(message)
        self.status = status


LESSON_PROMPTS = {
    'grammar': """Act as a friendly, encouraging English grammar tutor starting a lesson on "{lesson}" in {topic}.

Create an interactive tutoring session that includes:
1. Warm welcome and explain what we'll learn today
2. Ask about the student's experience with this topic
3. Provide clear explanations with examples
4. Offer practice exercises to work on together
5. Encourage questions and active participation
6. Use supportive, patient language

Start with: "Hello! I'm your grammar tutor, and I'm excited to help you master {lesson}! Let's start by talking about what you already know about this topic..." """,
    'math': """Act as an expert mathematics tutor starting a problem-solving session on "{lesson}" in {topic}.

Create an interactive tutoring session that includes:
1. Warm welcome and explain what we'll work on today
2. Present a sample problem to demonstrate the approach
3. Break down the problem-solving strategy step-by-step
4. Encourage the student to try similar problems
5. Offer hints and guidance when needed
6. Use encouraging, patient language throughout

Start with: "Hello! I'm your math tutor, and I'm excited to help you master {lesson}! Let's start with a sample problem so I can show you my approach..." """,
}

CHECK_PROMPTS = {
    'grammar': """As a patient grammar tutor, review this student's text and provide helpful feedback:

"{text}"

Provide:
1. Encouraging opening statement
2. Specific grammar corrections with explanations
3. Positive feedback on what they did well
4. Suggestions for improvement
5. Examples of corrected sentences
6. Tips for avoiding similar mistakes

Be supportive and educational, not just corrective. Format as a conversation with the student.""",
    'math': """As a patient math tutor, help the student solve this problem step-by-step:

"{text}"

Provide:
1. Encouraging opening statement
2. Clear identification of what type of problem this is
3. Step-by-step solution with explanations for each step
4. Check the answer and verify it makes sense
5. Similar problems they could try for practice
6. Tips for solving similar problems in the future

Be supportive and educational, breaking down complex steps into manageable parts.""",
}

CHECK_STUDENT_TURNS = {
    'grammar': 'Please check my writing: "{text}"',
    'math': 'Please help me solve this problem: "{text}"',
}

ASK_PROMPT = """You are an encouraging {subject} tutor teaching "{lesson}".

Previous conversation:
{context}

Student's question: "{question}"

Respond as a supportive tutor would:
1. Thank them for the question
2. Provide clear, helpful explanations
3. Use examples to illustrate points
4. Ask if they need clarification
5. Encourage continued learning
6. Connect to broader {subject} skills

Keep it conversational and supportive."""


def _call_tutor(prompt, temperature=0.5, max_tokens=1200):
    try:
        client = groq_service.get_groq_client()
        response = client.chat.completions.create(
            model=TUTOR_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens
        )
        answer = response.choices[0].message.content
    except Exception as e:
        logger.error(f"Tutor generation error: {e}")
        raise TutorError("Could not generate tutor response", 500) from e

    check = validate_ai_response(answer)
    if not check['is_valid']:
        logger.warning(f"Tutor reply failed validation: {check['warnings']}")
        raise TutorError("Tutor response failed validation", 502)
    return answer


def _history(history):
    if not isinstance(history, list):
        return []
    return [h for h in history if isinstance(h, dict) and isinstance(h.get('content'), str) and h['content']]


def _ensure_subject(subject):
    if subject not in SUBJECTS:
        raise TutorError(f"Unknown tutor subject: {subject}", 404)


def start_lesson(subject, lesson, topic=''):
    _ensure_subject(subject)
    if not isinstance(lesson, str) or not lesson.strip():
        raise TutorError("lesson is required", 400)
    answer = _call_tutor(LESSON_PROMPTS[subject].format(lesson=lesson, topic=topic or subject.title()))
    return {"answer": answer, "history": [{"role": "tutor", "content": answer}]}


def check_work(subject, text, history=None):
    """Grammar review of a passage, or a worked solution for a math problem."""
    _ensure_subject(subject)
    if not isinstance(text, str) or not text.strip():
        raise TutorError("text is required", 400)
    answer = _call_tutor(CHECK_PROMPTS[subject].format(text=text))
    turns = _history(history) + [
        {"role": "student", "content": CHECK_STUDENT_TURNS[subject].format(text=text)},
        {"role": "tutor", "content": answer},
    ]
    return {"answer": answer, "history": turns}


def ask_tutor(subject, lesson, question, history=None):
    _ensure_subject(subject)
    if not isinstance(question, str) or not question.strip():
        raise TutorError("question is required", 400)
    if not isinstance(lesson, str) or not lesson.strip():
        raise TutorError("Start a lesson before asking questions", 400)
    turns = _history(history)
    context = "\n\n".join(f"{'Tutor' if t.get('role') == 'tutor' else 'Student'}: {t['content']}" for t in turns)
    prompt = ASK_PROMPT.format(subject=subject, lesson=lesson, context=context or '(none yet)', question=question)
    answer = _call_tutor(prompt)
    turns += [{"role": "student", "content": question}, {"role": "tutor", "content": answer}]
    return {"answer": answer, "history": turns}


# ---------------- Math practice ----------------
def wants_no_harder(text: str) -> bool:
    t = text.lower() if isinstance(text, str) else ""
    keywords = [
        "no harder", "not harder", "same difficulty", "do not make harder",
        "don't make harder", "keep same level", "not give harder"
    ]
    return any(k in t for k in keywords)


def _get_decimal_places() -> int:
    try: return max(0, int(os.environ.get('MATH_DECIMALS', '2')))
    except ValueError: return 2


def _normalize_numeric_string(value: float, places: int) -> str:
    s = f"{round(value, places):.{places}f}"
    return s.rstrip('0').rstrip('.') if '.' in s else s


def generate_practice_set(concept: str, allow_harder: bool = True):
    level_note = ("make each problem strictly harder than the one before it" if allow_harder
                  else "keep every problem at the same difficulty as the concept")
    prompt = f"""
    Create exactly {PRACTICE_SIZE} math practice problems about the SAME underlying concept as:
    "{concept}"
    and {level_note}.
    Output STRICT JSON with this schema:
    {{
      "problems": [
        {{ "number": 1, "question": "...", "answer": "..." }}
      ]
    }}
    - "answer" should be concise. If numeric, provide a simplified numeric value.
    - Do not include any extra commentary or code fences.
    """
    try:
        client = groq_service.get_groq_client()
        response = client.chat.completions.create(
            model=TUTOR_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.4,
            max_tokens=1500
        )
        raw = response.choices[0].message.content
    except Exception as e:
        logger.error(f"Practice generation error: {e}")
        raise TutorError("Could not generate practice problems", 500) from e

    try:
        problems = json.loads(extract_json_block(raw)).get("problems", [])
    except (ValueError, AttributeError):
        problems = []
    formatted = []
    for p in problems[:PRACTICE_SIZE]:
        q = p.get("question") if isinstance(p, dict) else None
        a = p.get("answer") if isinstance(p, dict) else None
        if q and a is not None:
            formatted.append({"number": len(formatted) + 1, "question": q, "answer": str(a).strip()})
    logger.info(f"Generated {len(formatted)} practice problems (harder={allow_harder})")
    return formatted


def _parse_user_answers(answers) -> dict:
    # Accepts {"1": "5"}, "1) 5, 2) 12", "1: 5; 2: 12" or plain space-separated values
    if isinstance(answers, dict):
        parsed = {}
        for k, v in answers.items():
            try: parsed[int(k)] = str(v).strip()
            except (TypeError, ValueError): continue
        return {k: v for k, v in parsed.items() if v}
    if isinstance(answers, list):
        return {i: str(v).strip() for i, v in enumerate(answers, start=1) if str(v).strip()}

    text = answers if isinstance(answers, str) else ""
    parsed = {}
    for part in re.split(r"[\n;,]", text):
        # "1. 5" numbers an answer, "0.5" is one
        m = re.match(r"(\d{1,2})\s*(?:[\):\-]|\.(?!\d))\s*(.+)", part.strip())
        if m: parsed[int(m.group(1))] = m.group(2).strip()
    if not parsed:
        tokens = [t for t in text.replace("\n", " ").split(" ") if t.strip()]
        for i, tok in enumerate(tokens[:PRACTICE_SIZE], start=1): parsed[i] = tok
    return parsed


def _to_number(s):
    text = str(s).replace(",", "").strip() if s is not None else ""
    if not re.fullmatch(r"[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?", text):
        return None
    return float(text)


def _answers_equal(expected, given) -> bool:
    en, gn = _to_number(expected), _to_number(given)
    if en is not None and gn is not None:
        places = _get_decimal_places()
        return _normalize_numeric_string(en, places) == _normalize_numeric_string(gn, places)
    squash = lambda s: re.sub(r"\s+", "", str(s)).lower()
    return squash(expected) == squash(given)


def grade_practice(problems, answers):
    given_answers = _parse_user_answers(answers)
    results, lines = [], []
    correct_count = 0
    for p in problems:
        num, expected = p.get('number'), p.get('answer')
        given = given_answers.get(num)
        if given is None:
            results.append({"number": num, "status": "missing", "expected": expected})
            lines.append(f"{num}) Missing")
            continue
        if _answers_equal(expected, given):
            correct_count += 1
            results.append({"number": num, "status": "correct", "given": given})
            lines.append(f"{num}) Correct")
        else:
            results.append({"number": num, "status": "incorrect", "given": given, "expected": expected})
            lines.append(f"{num}) Incorrect. Expected: {expected}")
    summary = f"You got {correct_count}/{len(problems)} correct."
    return {
        "answer": summary + "\n" + "\n".join(lines),
        "correct": correct_count,
        "total": len(problems),
        "results": results,
    }


def practice_intro(problems) -> str:
    if not problems:
        return "I couldn't generate problems right now. Please rephrase your question."
    lines = [f"{p['number']}) {p['question']}" for p in problems]
    return (f"Here are {len(problems)} practice problems. When you're ready, reply with your answers in the form "
            "'1) answer, 2) answer, ...' or one per line.\n\n" + "\n".join(lines))
