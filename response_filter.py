# response_filter.py
import random
import re

THINKING_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.I | re.S),
    re.compile(r"<thinking>.*?</thinking>", re.I | re.S),
    re.compile(r"\[thinking\].*?\[/thinking\]", re.I | re.S),
    re.compile(r"\*thinks\*.*?\*/thinks\*", re.I | re.S),
    re.compile(r"\(thinking:.*?\)", re.I | re.S),
    re.compile(r"Let me think.*?\.{3,}", re.I | re.S),
]

FORMULAIC_PATTERNS = [
    re.compile(r"^You're asking great questions!.*?natural when learning something new\.", re.I | re.S),
    re.compile(r"^I can sense you might be feeling.*?completely natural", re.I | re.S),
    re.compile(r"^That's.*?great question.*?let me help", re.I | re.S),
    re.compile(r"^I understand your.*?I'm here to help", re.I | re.S),
    re.compile(r"Remember, learning is a process.*?trust yourself as you learn\.", re.I | re.S),
    re.compile(r"You're capable of understanding this.*?trust yourself.*?learn\.", re.I | re.S),
    re.compile(r"Feel free to ask.*?staying curious.*?great.*?questions", re.I | re.S),
    re.compile(r"I'm here to support.*?learning journey.*?ask.*?questions", re.I | re.S),
]

REGEX_ARTIFACTS = [
    re.compile(r"/\^.*?\$/g?i?s?"),
    re.compile(r"\\[wWdDsSnrtbfv]\+"),
    re.compile(r"\[\^\]\+"),
    re.compile(r"\(\?:.*?\)"),
    re.compile(r"\\\("),
    re.compile(r"\\\)"),
]

RESPONSE_STARTERS = [
    "Let's dive into this!",
    "Great question!",
    "I'd be happy to help with that.",
    "That's an interesting point.",
    "Let me break this down for you.",
    "Here's what I can tell you:",
    "Excellent observation!",
    "That's a thoughtful question.",
    "I see what you're getting at.",
    "Let me explain this clearly:",
    "That's worth exploring.",
    "Here's how this works:",
    "Good thinking!",
    "Let me walk you through this.",
]

RESPONSE_ENDERS = [
    "Hope this helps!",
    "Let me know if you need more details.",
    "Does this answer your question?",
    "Feel free to ask if anything's unclear.",
    "Happy to explain further if needed.",
    "Any other questions about this?",
    "What would you like to know next?",
    "Anything else I can help with?",
]

NUMBERED_LINE = re.compile(r"^(\s*)\d+\.(\s+)")
BULLET_LINE = re.compile(r"^\s*[-•]\s")


def fix_numbered_lists(content: str) -> str:
    """Renumber each numbered list so it runs 1, 2, 3, ...

    Blank lines and bullet lines inside a list keep it open; any other
    line closes it.
    """
    lines = []
    counter = 0
    in_list = False
    for line in content.split('\n'):
        m = NUMBERED_LINE.match(line)
        if m:
            counter = counter + 1 if in_list else 1
            in_list = True
            line = NUMBERED_LINE.sub(lambda mm: f"{mm.group(1)}{counter}.{mm.group(2)}", line, count=1)
        elif line.strip() and not BULLET_LINE.match(line):
            in_list = False
        lines.append(line)
    return '\n'.join(lines)


def fix_formatting(content: str) -> str:
    fixed = fix_numbered_lists(content)
    fixed = re.sub(r"\*{3,}", "**", fixed)
    fixed = re.sub(r"\*\*([^*\n]+)\*\*[ \t]*\*\*([^*\n]+)\*\*", r"**\1 \2**", fixed)
    fixed = re.sub(r"\n{3,}", "\n\n", fixed)
    fixed = re.sub(r"[ \t]{2,}", " ", fixed)
    fixed = re.sub(r"\.[ \t]*\.", ".", fixed)
    fixed = re.sub(r"^[ \t]*[-•][ \t]+", "• ", fixed, flags=re.M)
    fixed = re.sub(r"`{4,}", "```", fixed)
    return fixed.strip()


def add_dynamic_variety(content: str) -> str:
    if not content.strip():
        return content
    if len(content) < 50 and not re.match(r"^(Here|Let|I|This|That|The)", content):
        content = f"{random.choice(RESPONSE_STARTERS)} {content}"
    if random.random() < 0.3 and not re.search(r"[.!?]$", content):
        content += f" {random.choice(RESPONSE_ENDERS)}"
    return content


def final_cleanup(content: str) -> str:
    content = re.sub(r"[ \t]+", " ", content)
    content = re.sub(r"\n[ \t]*\n[ \t]*\n+", "\n\n", content)
    content = re.sub(r"([.!?])[.!?]+", r"\1", content)
    return content.strip()


def _strip(patterns, label, content, applied):
    for index, pattern in enumerate(patterns):
        if pattern.search(content):
            content = pattern.sub("", content).strip()
            applied.append(f"{label}-{index}")
    return content


def filter_response(content):
    """Clean a model reply: leaked reasoning, stock phrases and messy formatting."""
    content = content or ""
    original_length = len(content)
    applied = []

    filtered = _strip(THINKING_PATTERNS, "thinking-pattern", content, applied)
    filtered = _strip(FORMULAIC_PATTERNS, "formulaic-pattern", filtered, applied)
    filtered = _strip(REGEX_ARTIFACTS, "regex-artifact", filtered, applied)

    formatted = fix_formatting(filtered)
    if formatted != filtered:
        filtered = formatted
        applied.append("formatting-fixed")

    was_filtered = bool(applied)
    if was_filtered and len(filtered) < original_length * 0.3:
        filtered = add_dynamic_variety(filtered)
        applied.append("dynamic-variety-added")

    return {"content": final_cleanup(filtered), "was_filtered": was_filtered, "filters_applied": applied}


def needs_filtering(content) -> bool:
    content = content or ""
    groups = THINKING_PATTERNS + FORMULAIC_PATTERNS + REGEX_ARTIFACTS
    return (any(p.search(content) for p in groups)
            or '<think>' in content
            or "You're asking great questions!" in content)


def format_response(text):
    """Auto-detect and wrap math expressions that the model forgot to format"""
    if not text or text.count('$') > 2:
        return text

    # F = ma
    text = re.sub(r'\b([A-Z]_?[a-z0-9]*)\s*=\s*([A-Za-z0-9_*/^()+-]+)\b', r'$\1 = \2$', text)
    # F_c
    text = re.sub(r'(?<!\$)\b([A-Z])_([a-z])\b(?!\s*=)', r'$\1_\2$', text)
    # m^2
    text = re.sub(r'(?<!\$)\b([a-z])\^(\d)\b', r'$\1^\2$', text)
    return text
