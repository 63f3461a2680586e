# translation.py
import os, logging

import requests

logger = logging.getLogger(__name__)

GOOGLE_TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"
HTTP_TIMEOUT = 10

SUPPORTED_LANGUAGES = [
    {"code": "en", "name": "English", "nativeName": "English", "flag": "🇺🇸", "priority": 1},
    {"code": "tl", "name": "Filipino", "nativeName": "Filipino", "flag": "🇵🇭", "priority": 2},
    {"code": "es", "name": "Spanish", "nativeName": "Español", "flag": "🇪🇸", "priority": 3},
    {"code": "ko", "name": "Korean", "nativeName": "한국어", "flag": "🇰🇷", "priority": 4},
    {"code": "zh", "name": "Mandarin", "nativeName": "中文", "flag": "🇨🇳", "priority": 5},
    {"code": "ja", "name": "Japanese", "nativeName": "日本語", "flag": "🇯🇵", "priority": 6},
    {"code": "fr", "name": "French", "nativeName": "Français", "flag": "🇫🇷", "priority": 7},
    {"code": "th", "name": "Thai", "nativeName": "ไทย", "flag": "🇹🇭", "priority": 8},
    {"code": "id", "name": "Indonesian", "nativeName": "Bahasa Indonesia", "flag": "🇮🇩", "priority": 9},
    {"code": "vi", "name": "Vietnamese", "nativeName": "Tiếng Việt", "flag": "🇻🇳", "priority": 10},
    {"code": "de", "name": "German", "nativeName": "Deutsch", "flag": "🇩🇪", "priority": 11},
    {"code": "it", "name": "Italian", "nativeName": "Italiano", "flag": "🇮🇹", "priority": 12},
    {"code": "pt", "name": "Portuguese", "nativeName": "Português", "flag": "🇵🇹", "priority": 13},
    {"code": "ru", "name": "Russian", "nativeName": "Русский", "flag": "🇷🇺", "priority": 14},
    {"code": "ar", "name": "Arabic", "nativeName": "العربية", "flag": "🇸🇦", "priority": 15},
    {"code": "hi", "name": "Hindi", "nativeName": "हिन्दी", "flag": "🇮🇳", "priority": 16},
]


class TranslationError(Exception):
    pass


def _libretranslate_url():
    return os.environ.get('LIBRETRANSLATE_URL', 'https://libretranslate.de').rstrip('/')


def _post_json(url, payload, label):
    response = requests.post(url, json=payload, timeout=HTTP_TIMEOUT)
    if not response.ok:
        raise TranslationError(f"{label} error: {response.status_code}")
    return response.json()


def translate_with_google(text, source, target, detect_only=False):
    api_key = os.environ.get('GOOGLE_TRANSLATE_API_KEY')
    if not api_key:
        raise TranslationError("Google Translate API key not configured")

    if detect_only:
        data = _post_json(f"{GOOGLE_TRANSLATE_URL}/detect?key={api_key}", {"q": text}, "Google Detect API")
        detections = (data.get('data') or {}).get('detections') or [[{}]]
        best = detections[0][0] if detections and detections[0] else {}
        return {
            "success": True,
            "translatedText": text,
            "detectedLanguage": best.get('language') or 'unknown',
            "confidence": best.get('confidence') or 0.5,
            "originalText": text,
        }

    payload = {"q": text, "target": target, "format": "text"}
    if source:
        payload["source"] = source
    data = _post_json(f"{GOOGLE_TRANSLATE_URL}?key={api_key}", payload, "Google Translate API")
    translations = (data.get('data') or {}).get('translations') or [{}]
    first = translations[0]
    return {
        "success": True,
        "translatedText": first.get('translatedText') or text,
        "detectedLanguage": first.get('detectedSourceLanguage') or source or 'unknown',
        "confidence": 0.9,
        "originalText": text,
    }


def translate_with_libretranslate(text, source, target, detect_only=False):
    base = _libretranslate_url()
    if detect_only:
        data = _post_json(f"{base}/detect", {"q": text}, "LibreTranslate Detect")
        best = data[0] if isinstance(data, list) and data else {}
        return {
            "success": True,
            "translatedText": text,
            "detectedLanguage": best.get('language') or 'unknown',
            "confidence": best.get('confidence') or 0.5,
            "originalText": text,
        }

    data = _post_json(f"{base}/translate",
                      {"q": text, "source": source or 'auto', "target": target, "format": "text"},
                      "LibreTranslate")
    detected = data.get('detectedLanguage')
    if isinstance(detected, dict):
        detected = detected.get('language')
    return {
        "success": True,
        "translatedText": data.get('translatedText') or text,
        "detectedLanguage": detected or source or 'unknown',
        "confidence": 0.7,
        "originalText": text,
    }


def translate(text, target, source=None, detect_only=False):
    """Translate (or detect) with Google, then LibreTranslate, then an echo placeholder."""
    try:
        return translate_with_google(text, source, target, detect_only)
    except (TranslationError, requests.RequestException, ValueError) as e:
        logger.warning(f"Google Translate failed, trying fallback: {e}")

    try:
        return translate_with_libretranslate(text, source, target, detect_only)
    except (TranslationError, requests.RequestException, ValueError) as e:
        logger.error(f"All translation services failed: {e}")

    return {
        "success": True,
        "translatedText": text if detect_only else f"[Translation unavailable] {text}",
        "detectedLanguage": source or 'unknown',
        "confidence": 0.1,
        "originalText": text,
    }
