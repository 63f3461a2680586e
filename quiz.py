# quiz.py
import json, logging, random, re

import groq_service

logger = logging.getLogger(__name__)

EDUCATIONAL_LEVELS = ('primary', 'secondary', 'tertiary', 'professional')
DIFFICULTIES = ["Foundation", "Intermediate", "Advanced", "Expert"]
MAX_QUESTIONS = 30

PERFORMANCE_INDICATORS = {
    "excellent": "90-100% - Demonstrates mastery and advanced application",
    "proficient": "75-89% - Shows solid understanding with good application",
    "developing": "60-74% - Basic understanding with some gaps",
    "beginning": "Below 60% - Needs foundational review and additional support",
}

SYSTEM_PROMPT = ("You are an educational assessment expert grounded in mastery-based learning and international "
                 "best practices. Create comprehensive, high-quality quizzes. Always respond in valid JSON format.")

FEATURES = [
    "Mastery-based curriculum alignment",
    "International best practices (PISA, Cambridge, IB)",
    "Bloom's Taxonomy integration",
    "Real-world application focus",
    "Adaptive difficulty progression",
    "Comprehensive assessment insights",
    "Automatic grading with performance bands",
]

STANDARDS = [
    "Singapore Ministry of Education curriculum",
    "PISA assessment framework",
    "Cambridge International standards",
    "UNESCO quality education guidelines",
    "Bloom's Taxonomy cognitive levels",
]

CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")


class QuizGenerationError(Exception):
    pass


def extract_json_block(text: str) -> str:
    if not text: return ""
    start = text.find('{'); end = text.rfind('}')
    return text[start:end+1] if start != -1 and end != -1 and end > start else text


def build_quiz_prompt(topic, question_count, time_limit, level, focus_areas):
    if not isinstance(focus_areas, list):
        focus_areas = [focus_areas] if focus_areas else []
    focus = ', '.join(str(f) for f in focus_areas) or 'Comprehensive coverage'
    return f"""Create a comprehensive, high-quality quiz.

QUIZ SPECIFICATION:
Topic: "{topic}"
Question Count: {question_count}
Educational Level: {level}
Time Limit: {time_limit} minutes
Focus Areas: {focus}

QUESTION DESIGN:
1. Questions span all levels of Bloom's taxonomy
2. Connect to practical applications and current global issues
3. Include diverse perspectives and international contexts
4. Emphasize analysis, synthesis and evaluation
5. Present authentic scenarios that require critical thinking

DIFFICULTY DISTRIBUTION:
- Foundation (25%): Basic understanding and recall
- Intermediate (35%): Application and analysis
- Advanced (30%): Synthesis and evaluation
- Expert (10%): Innovation and creation

Each question should need 45-90 seconds of thought. Explanations must say why the other options are wrong.

Respond in this exact JSON format:
{{
  "metadata": {{
    "topic": "{topic}",
    "totalQuestions": {question_count},
    "estimatedDuration": "{time_limit} minutes",
    "educationalLevel": "{level}",
    "standardsAlignment": ["Singapore MOE", "PISA", "Cambridge International"],
    "assessmentFramework": "Bloom's Taxonomy + Singapore TSP"
  }},
  "questions": [
    {{
      "id": "q1",
      "question": "Question text",
      "options": ["A. ...", "B. ...", "C. ...", "D. ..."],
      "correctAnswer": 0,
      "explanation": "150-250 word explanation",
      "difficulty": "Foundation|Intermediate|Advanced|Expert",
      "topic": "{topic}",
      "subtopic": "Specific area within the main topic",
      "cognitiveLevel": "Knowledge|Comprehension|Application|Analysis|Synthesis|Evaluation",
      "estimatedTime": 60,
      "skillsAssessed": ["Critical thinking", "Problem solving"],
      "realWorldApplication": "How this applies in real-world contexts"
    }}
  ],
  "assessmentInsights": {{
    "overallDifficulty": "Balanced progression from foundation to expert level",
    "cognitiveDistribution": "Knowledge: X%, Comprehension: Y%, Application: Z%, Analysis: A%, Synthesis: B%, Evaluation: C%",
    "skillsFocus": ["Primary skills assessed"],
    "preparationTips": ["Study strategies"],
    "performanceIndicators": {json.dumps(PERFORMANCE_INDICATORS)}
  }}
}}

Respond ONLY with valid JSON, no additional text."""


def fallback_quiz(topic, question_count, time_limit, level):
    """Structurally valid quiz used when the model's JSON cannot be parsed."""
    questions = []
    for i in range(question_count):
        questions.append({
            "id": f"q{i + 1}",
            "question": f"Advanced {topic} question {i + 1} requiring critical thinking and analysis",
            "options": [
                "A. Comprehensive option requiring deep understanding",
                "B. Alternative approach with valid reasoning",
                "C. Third perspective with nuanced considerations",
                "D. Final option challenging assumptions",
            ],
            "correctAnswer": random.randint(0, 3),
            "explanation": (f"This question tests your understanding of key {topic} concepts while developing "
                            "critical thinking skills."),
            "difficulty": random.choice(DIFFICULTIES),
            "topic": topic,
            "subtopic": f"Core {topic} Concepts",
            "cognitiveLevel": random.choice(["Application", "Analysis", "Synthesis", "Evaluation"]),
            "estimatedTime": 60,
            "skillsAssessed": ["Critical thinking", "Problem solving", "Subject mastery"],
            "realWorldApplication": f"Applies to professional and academic contexts in {topic}",
        })
    return {
        "metadata": {
            "topic": topic,
            "totalQuestions": question_count,
            "estimatedDuration": f"{time_limit} minutes",
            "educationalLevel": level,
            "standardsAlignment": ["Singapore MOE", "PISA", "Cambridge International"],
            "assessmentFramework": "Bloom's Taxonomy + Singapore TSP",
        },
        "questions": questions,
        "assessmentInsights": {
            "overallDifficulty": "Balanced progression from foundation to expert level",
            "cognitiveDistribution": "Comprehensive coverage of all cognitive levels",
            "skillsFocus": ["Critical thinking", "Problem solving", "Subject mastery", "21st century skills"],
            "preparationTips": ["Review key concepts", "Practice application scenarios", "Develop analytical thinking"],
            "performanceIndicators": dict(PERFORMANCE_INDICATORS),
        },
    }


def normalize_questions(quiz):
    questions = [q for q in quiz.get('questions') or [] if isinstance(q, dict)]
    for index, q in enumerate(questions, start=1):
        q['id'] = f"q{index}"
        options = q.get('options') if isinstance(q.get('options'), list) else []
        q['options'] = options
        try:
            answer = int(q.get('correctAnswer', 0))
        except (TypeError, ValueError):
            answer = 0
        q['correctAnswer'] = min(max(answer, 0), max(len(options) - 1, 0))
        q.setdefault('estimatedTime', 60)
    quiz['questions'] = questions
    return quiz


def parse_quiz(content, topic, question_count, time_limit, level):
    cleaned = CONTROL_CHARS.sub(' ', content or '').strip()
    try:
        quiz = json.loads(extract_json_block(cleaned))
        if not isinstance(quiz, dict) or not quiz.get('questions'):
            raise ValueError("quiz has no questions")
    except ValueError as e:
        logger.error(f"Quiz JSON parsing error: {e}")
        quiz = fallback_quiz(topic, question_count, time_limit, level)
    return normalize_questions(quiz)


def generate_quiz(topic, question_count=10, time_limit=15, level='secondary', focus_areas=None):
    """Ask Groq for a quiz on a topic; raises QuizGenerationError if the call fails."""
    question_count = min(max(int(question_count), 1), MAX_QUESTIONS)
    if level not in EDUCATIONAL_LEVELS:
        level = 'secondary'
    prompt = build_quiz_prompt(topic, question_count, time_limit, level, focus_areas)

    try:
        client = groq_service.get_groq_client()
        response = client.chat.completions.create(
            model="llama-3.3-70b-versatile",
            messages=[{"role": "system", "content": SYSTEM_PROMPT},
                      {"role": "user", "content": prompt}],
            temperature=0.7,
            max_tokens=8000,
            top_p=0.95,
            frequency_penalty=0.2,
            presence_penalty=0.1,
        )
        content = response.choices[0].message.content
    except Exception as e:
        logger.error(f"Advanced quiz API error: {e}")
        raise QuizGenerationError(str(e)) from e

    return parse_quiz(content, topic, question_count, time_limit, level)


def performance_band(percentage) -> str:
    if percentage >= 90: return "excellent"
    if percentage >= 75: return "proficient"
    if percentage >= 60: return "developing"
    return "beginning"


def grade_quiz(quiz, answers):
    """Score submitted option indexes against a quiz's correct answers."""
    answers = answers or {}
    results = []
    score = 0
    questions = (quiz or {}).get('questions') or []
    for q in questions:
        selected = answers.get(q.get('id'))
        try:
            selected = int(selected) if selected is not None else None
        except (TypeError, ValueError):
            selected = None
        correct = selected is not None and selected == q.get('correctAnswer')
        if correct:
            score += 1
        results.append({
            "id": q.get('id'),
            "correct": correct,
            "selected": selected,
            "correctAnswer": q.get('correctAnswer'),
            "explanation": q.get('explanation', ''),
        })
    total = len(questions)
    percentage = round(score * 100 / total, 1) if total else 0.0
    return {
        "score": score,
        "total": total,
        "percentage": percentage,
        "band": performance_band(percentage),
        "results": results,
    }
