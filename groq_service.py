# groq_service.py
import os, logging, re
from groq import Groq, APITimeoutError, APIError

from conversation_context import message_text
from validation import validate_text_input

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15.0

MODEL_CONFIG = {
    "general": {
        "model": "llama-3.3-70b-versatile",
        "description": "General conversation and mixed tasks",
        "max_tokens": 4096,
        "temperature": 0.7,
    },
    "coding": {
        "model": "llama-3.3-70b-versatile",
        "description": "Programming and code generation",
        "max_tokens": 8192,
        "temperature": 0.3,
    },
    "analysis": {
        "model": "llama-3.3-70b-versatile",
        "description": "Research and complex analysis",
        "max_tokens": 6144,
        "temperature": 0.4,
    },
    "writing": {
        "model": "llama-3.3-70b-versatile",
        "description": "Language and writing tasks",
        "max_tokens": 4096,
        "temperature": 0.8,
    },
    "fast": {
        "model": "llama-3.1-8b-instant",
        "description": "Quick responses",
        "max_tokens": 2048,
        "temperature": 0.7,
    },
    "deepseek": {
        "model": "deepseek-r1-distill-llama-70b",
        "description": "DeepSeek model for fallback",
        "max_tokens": 4096,
        "temperature": 0.7,
    },
}

ACTION_TASKS = {
    "code": "coding",
    "analysis": "analysis",
    "writing": "writing",
    "vision": "general",
    "ocr": "general",
    "deepseek": "deepseek",
}

CODING_RE = re.compile(r"code|program|function|class|variable|debug|algorithm|javascript|python|react|typescript|css|html")
ANALYSIS_RE = re.compile(r"analyze|research|compare|evaluate|investigate|study|examine|explain.*why|what.*causes|how.*works")
WRITING_RE = re.compile(r"write|essay|story|letter|email|article|blog|creative|compose|grammar|spelling|song|lyrics|poem|poetry|verse|chorus|rhyme")
SONG_RE = re.compile(r"\b(song|lyrics|verse|chorus|bridge|sing|music|rhyme|melody|write.*song|create.*song)\b")
LIST_RE = re.compile(r"\b(list|ideas|ways|methods|steps|reasons|examples|benefits|tips|suggestions)\b")
MATH_RE = re.compile(r"math|calculus|algebra|equation|solve|formula|derivative|integral")

CORE_RULES = """
Always format replies so they are readable, structured and consistent.
Use Markdown with clear line breaks, spacing and section headers.

NEVER include internal thinking or reasoning in your reply.
NEVER use <think>, <thinking>, [thinking] or similar tags.

FORMATTING RULES BY CONTENT TYPE:
1. Song lyrics: title with a music note, sections [Verse 1], [Chorus], [Bridge], one lyric line per line,
   blank line between sections, never a numbered list.
2. Poetry: title on top, one line per line of the poem, blank line between stanzas.
3. Scripts: SCENE HEADINGS in caps, character names in caps before dialogue, *italics* for directions.
4. Stories: bold title, blank lines between paragraphs, each speaker's dialogue on a new line.
5. Reports: **bold section headers**, numbered enumerations 1., 2., 3., tables for comparisons.
6. Academic papers: bold title, Abstract, Introduction, Methodology, Findings, Discussion, Conclusion.
7. Anything else: clean Markdown with headers, line breaks, lists and emphasis.

GENERAL RULES:
- Never collapse everything into one paragraph.
- Always preserve newlines.
- Keep text mobile-friendly: short lines, adequate spacing.
- Numbered lists always run 1., 2., 3., 4., 5. and never repeat 1."""

SONG_PROMPT = """You format song lyrics and nothing else.

Use exactly this layout:

🎵 [Song Title]

[Verse 1]
First line of verse
Second line of verse

[Chorus]
Chorus line one
Chorus line two

[Verse 2]
...

[Bridge]
...

Never use numbered lists or bullet points for lyrics.
Always start with 🎵 and the song title, label every section, put each lyric line on its own line
and leave a blank line between sections. Reply with the lyrics only."""

LIST_PROMPT = f"""You format lists.

Numbered lists always use sequential numbering:
1. First item
2. Second item
3. Third item

Never repeat the same number. Check the numbering before replying.
{CORE_RULES}"""

CODING_PROMPT = f"""You are an expert code assistant. {CORE_RULES}

CODING REQUIREMENTS:
1. If the request is vague, ask follow-up questions before generating code
2. Generate clean, commented code with explanations
3. Include error handling where appropriate
4. Ask about framework or library preferences when they are not specified
5. Break explanations into short paragraphs"""

MATH_PROMPT = f"""You present math solutions like a clean textbook. {CORE_RULES}

MATH FORMATTING RULES:
1. Section the work with headings: "Step 1", "Step 2", ...
2. Keep each step short and precise.
3. Use bullet points when listing items.
4. Format math with LaTeX: inline $f(x) = 3x^2$ and display $$f'(x) = 6x$$ for key formulas.
5. Put the **Final Answer** in its own block at the end.
6. Keep text and formulas separated.
7. If the request is vague, ask a follow-up question before solving."""

WRITING_PROMPT = f"""You are a writing assistant. Apply the formatting rules below for the user's content type.
{CORE_RULES}"""

GENERAL_PROMPT = f"""You are Gawin, a helpful learning assistant. Apply the formatting rules below for the user's content type.
{CORE_RULES}"""


def is_configured() -> bool:
    return bool(os.environ.get('GROQ_API_KEY'))


def get_groq_client():
    api_key = os.environ.get('GROQ_API_KEY')
    if not api_key:
        raise ValueError("GROQ_API_KEY environment variable is required")
    return Groq(api_key=api_key, timeout=REQUEST_TIMEOUT)


def _last_text(messages):
    return message_text(messages[-1]).lower() if messages else ''


def determine_task_type(request):
    """Pick a MODEL_CONFIG profile for a chat request."""
    action = request.get('action')
    if action in ACTION_TASKS:
        return ACTION_TASKS[action]

    messages = request.get('messages') or []
    for msg in messages:
        content = msg.get('content')
        if isinstance(content, list) and any(isinstance(p, dict) and p.get('type') == 'image_url' for p in content):
            # Groq no longer serves vision models
            return 'general'

    text = _last_text(messages)
    if CODING_RE.search(text):
        return 'coding'
    if ANALYSIS_RE.search(text):
        return 'analysis'
    if WRITING_RE.search(text):
        return 'writing'
    return 'general'


def add_system_prompts(messages, task_type):
    text = _last_text(messages)
    if SONG_RE.search(text):
        prompt = SONG_PROMPT
    elif LIST_RE.search(text):
        prompt = LIST_PROMPT
    elif task_type == 'coding':
        prompt = CODING_PROMPT
    elif task_type == 'analysis' or any(MATH_RE.search(message_text(m).lower()) for m in messages):
        prompt = MATH_PROMPT
    elif task_type == 'writing':
        prompt = WRITING_PROMPT
    else:
        prompt = GENERAL_PROMPT
    return [{"role": "system", "content": prompt}] + list(messages)


def validate_messages(messages):
    """Drop messages whose text fails input validation; flatten multi-part content to text."""
    valid = []
    for msg in messages or []:
        text = message_text(msg)
        if not validate_text_input(text)["is_valid"]:
            continue
        valid.append({"role": msg.get('role', 'user'), "content": text})
    return valid


def create_chat_completion(request):
    """Run a chat request against Groq and return a result dict."""
    if not is_configured():
        return {"success": False, "error": "Groq API key not configured"}

    messages = validate_messages(request.get('messages'))
    if not messages:
        return {"success": False, "error": "No valid messages provided"}

    task_type = determine_task_type(request)
    config = MODEL_CONFIG[task_type]
    logger.info(f"Using Groq {task_type} model: {config['model']}")

    max_tokens = request.get('max_tokens') or config['max_tokens']
    temperature = request.get('temperature')
    if temperature is None:
        temperature = config['temperature']

    try:
        client = get_groq_client()
        response = client.chat.completions.create(
            model=config['model'],
            messages=add_system_prompts(messages, task_type),
            max_tokens=max_tokens,
            temperature=temperature,
            stream=False,
        )
    except APITimeoutError:
        logger.error("Groq API request timeout")
        return {"success": False, "error": "Groq API request timeout"}
    except (APIError, ValueError) as e:
        logger.error(f"Groq service error: {e}")
        return {"success": False, "error": str(e) or "Groq API request failed"}

    if not response.choices:
        return {"success": False, "error": "No response choices returned from Groq API"}

    answer = (response.choices[0].message.content or '').strip()
    if not validate_text_input(answer)["is_valid"]:
        logger.warning("Groq response validation failed")
        return {"success": False, "error": "Response validation failed"}

    usage = getattr(response, 'usage', None)
    return {
        "success": True,
        "choices": [{"message": {"role": "assistant", "content": answer}}],
        "model": config['model'],
        "usage": {
            "prompt_tokens": getattr(usage, 'prompt_tokens', 0) or 0,
            "completion_tokens": getattr(usage, 'completion_tokens', 0) or 0,
            "total_tokens": getattr(usage, 'total_tokens', 0) or 0,
        },
    }


def get_available_models():
    return MODEL_CONFIG


def health_check():
    if not is_configured():
        return {"status": "offline", "message": "Groq API key not configured"}
    result = create_chat_completion({
        "messages": [{"role": "user", "content": 'Hello, respond with just "OK"'}],
        "action": None,
        "max_tokens": 5,
    })
    if result["success"]:
        return {"status": "healthy", "message": "Groq API operational"}
    return {"status": "degraded", "message": result.get("error") or "Service issues detected"}
