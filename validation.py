# validation.py
import re

MAX_INPUT_LENGTH = 10000

INJECTION_PATTERNS = [
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.I),
    re.compile(r"javascript:", re.I),
    re.compile(r"data:text/html", re.I),
    re.compile(r"vbscript:", re.I),
    re.compile(r"on\w+\s*=", re.I),
]

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

HALLUCINATION_PATTERNS = [
    re.compile(r"I cannot actually (browse|access|see|view|visit)", re.I),
    re.compile(r"As an AI, I (don't|cannot|can't) (actually|really)", re.I),
    re.compile(r"I don't have the ability to", re.I),
    re.compile(r"I cannot provide real-time", re.I),
    re.compile(r"I should note that I can't actually", re.I),
]

CERTAINTY_PATTERNS = [
    re.compile(r"I am (100%|completely|absolutely) (certain|sure|confident)", re.I),
    re.compile(r"This is (definitely|certainly|absolutely)", re.I),
    re.compile(r"Without a doubt", re.I),
    re.compile(r"I guarantee", re.I),
]

TEMPORAL_PATTERNS = [
    re.compile(r"The (latest|current|most recent)", re.I),
    re.compile(r"As of (today|now|this moment)", re.I),
    re.compile(r"Currently", re.I),
    re.compile(r"At this time", re.I),
]

URL_PATTERN = re.compile(r"https?://\S+")
MODEL_ID_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")


def validate_text_input(text):
    """Check user text for length and injection attempts and return a sanitized copy."""
    if not text or not isinstance(text, str):
        return {"is_valid": False, "errors": ["Input must be a non-empty string"], "sanitized": ""}

    errors = []
    if len(text) > MAX_INPUT_LENGTH:
        errors.append("Input exceeds maximum length of 10,000 characters")

    if any(p.search(text) for p in INJECTION_PATTERNS):
        errors.append("Input contains potentially malicious content")

    sanitized = CONTROL_CHARS.sub("", text).strip()
    return {"is_valid": not errors, "errors": errors, "sanitized": sanitized}


def validate_ai_response(response, context: str = ""):
    """Score a model reply for hallucination markers.

    Each marker lowers the confidence; the reply stays valid while
    confidence is above 0.3.
    """
    if not response or not isinstance(response, str):
        return {"is_valid": False, "confidence": 0.0,
                "warnings": ["Invalid response format"], "risk_level": "high"}

    warnings = []
    confidence = 1.0
    risk_level = "low"

    for pattern in HALLUCINATION_PATTERNS:
        if pattern.search(response):
            warnings.append("Response may contain AI limitations acknowledgment")
            confidence -= 0.1

    for pattern in CERTAINTY_PATTERNS:
        if pattern.search(response):
            warnings.append("Response contains suspicious certainty claims")
            confidence -= 0.2
            risk_level = "medium"

    has_temporal = any(p.search(response) for p in TEMPORAL_PATTERNS)
    if has_temporal and "as of my last update" not in response:
        warnings.append("Response may contain outdated temporal claims")
        confidence -= 0.15
        risk_level = "medium"

    context = context or ""
    if URL_PATTERN.search(response) and "generate" not in context and "create" not in context:
        warnings.append("Response contains specific URLs that may be fabricated")
        confidence -= 0.25
        risk_level = "high"

    if confidence < 0.6:
        risk_level = "high"
    elif confidence < 0.8:
        risk_level = "medium"

    return {
        "is_valid": confidence > 0.3,
        "confidence": round(max(0.0, confidence), 4),
        "warnings": warnings,
        "risk_level": risk_level,
    }


def validate_model_request(model_id, parameters=None):
    errors = []
    if not model_id or not isinstance(model_id, str):
        errors.append("Model ID is required and must be a string")
    elif not MODEL_ID_PATTERN.match(model_id):
        errors.append("Invalid model ID format")

    parameters = parameters or {}
    temperature = parameters.get("temperature")
    if temperature is not None:
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)) or not 0 <= temperature <= 2:
            errors.append("Temperature must be a number between 0 and 2")

    max_tokens = parameters.get("max_tokens")
    if max_tokens is not None:
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, (int, float)) or not 1 <= max_tokens <= 8192:
            errors.append("Max tokens must be a number between 1 and 8192")

    return {"is_valid": not errors, "errors": errors}


def content_warning(result):
    """One-line warning for a validate_ai_response result, or None when it is clean."""
    warnings = result.get("warnings") or []
    if not warnings:
        return None
    level = (result.get("risk_level") or "low").upper()
    return f"[{level}] Content Validation Warning: {warnings[0]}"
