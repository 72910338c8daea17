"""
Supported response languages.
"""

DEFAULT_LANGUAGE = "en"

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "mr": "Marathi",
    "bn": "Bengali",
    "te": "Telugu",
    "ta": "Tamil",
    "gu": "Gujarati",
    "kn": "Kannada",
    "ml": "Malayalam",
    "pa": "Punjabi",
    "or": "Odia",
    "as": "Assamese",
    "ur": "Urdu",
}


def resolve_language_name(language_code: str | None) -> str:
    """Map a language code to its name, defaulting to English for unknown codes."""
    return LANGUAGE_NAMES.get(language_code or DEFAULT_LANGUAGE, LANGUAGE_NAMES[DEFAULT_LANGUAGE])
