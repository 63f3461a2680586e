# gemini_service.py
import os, logging
from google import genai
from google.genai import types

from conversation_context import message_text

logger = logging.getLogger(__name__)

model_name = "gemini-2.5-flash"
_genai_client = None


def is_configured() -> bool:
    return bool(os.environ.get('GEMINI_API_KEY'))


def get_genai_client():
    global _genai_client
    if _genai_client is None:
        api_key = os.environ.get('GEMINI_API_KEY')
        if not api_key:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        _genai_client = genai.Client(api_key=api_key)
    return _genai_client


def build_prompt(messages) -> str:
    """Flatten a chat transcript into one role-labelled prompt."""
    lines = ["You are Gawin, a patient and encouraging learning assistant. Continue this conversation."]
    for msg in messages:
        text = message_text(msg)
        if text:
            lines.append(f"{msg.get('role', 'user')}: {text}")
    lines.append("assistant:")
    return "\n\n".join(lines)


def create_chat_completion(messages, temperature=0.7, max_tokens=2048):
    if not is_configured():
        return {"success": False, "error": "Gemini API key not configured"}
    try:
        client = get_genai_client()
        response = client.models.generate_content(
            model=model_name,
            contents=build_prompt(messages),
            config=types.GenerateContentConfig(temperature=temperature, max_output_tokens=max_tokens),
        )
        answer = (response.text or '').strip()
    except Exception as e:
        logger.error(f"Gemini fallback error: {e}")
        return {"success": False, "error": str(e)}

    if not answer:
        return {"success": False, "error": "Empty response from Gemini"}

    return {
        "success": True,
        "choices": [{"message": {"role": "assistant", "content": answer}}],
        "model": model_name,
        "usage": {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
    }


def health_check():
    if not is_configured():
        return {"status": "offline", "message": "Gemini API key not configured"}
    return {"status": "healthy", "message": f"Gemini {model_name} configured"}
