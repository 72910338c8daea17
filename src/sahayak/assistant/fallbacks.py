"""
Static fallback content served when the text provider cannot answer.

Lookups are exact on the language code, with English as the default.
"""

from sahayak.health.languages import DEFAULT_LANGUAGE
from sahayak.shared.errors import (
    ContentBlockedError,
    ProviderAuthenticationError,
    QuotaExceededError,
)

FALLBACK_RESPONSES: dict[str, str] = {
    "en": (
        "I'm sorry, I'm having trouble connecting right now. Please try again in a moment. "
        "For urgent health concerns, please contact your healthcare provider immediately."
    ),
    "hi": (
        "क्षमा करें, मुझे अभी कनेक्ट करने में कठिनाई हो रही है। कृपया एक क्षण में पुनः प्रयास करें। "
        "तत्काल स्वास्थ्य चिंताओं के लिए, कृपया तुरंत अपने स्वास्थ्य सेवा प्रदाता से संपर्क करें।"
    ),
    "mr": (
        "मला माफ करा, मला आत्ता कनेक्ट करण्यात अडचण येत आहे. कृपया एका क्षणात पुन्हा प्रयत्न करा. "
        "तातडीच्या आरोग्य चिंतांसाठी, कृपया लगेच आपल्या आरोग्यसेवा प्रदात्याशी संपर्क साधा."
    ),
}

FALLBACK_TIPS: dict[str, list[str]] = {
    "en": [
        "1. Drink at least 8 glasses of water daily",
        "2. Get 7-8 hours of quality sleep",
        "3. Include fruits and vegetables in every meal",
    ],
    "hi": [
        "1. प्रतिदिन कम से कम 8 गिलास पानी पिएं",
        "2. 7-8 घंटे की गुणवत्तापूर्ण नींद लें",
        "3. हर भोजन में फल और सब्जियां शामिल करें",
    ],
}

SYMPTOM_FALLBACK = "Please consult a healthcare professional for symptom evaluation."

GENERIC_FAILURE_MESSAGE = "Failed to generate response"

# Checked in order; the first matching error type wins.
FAILURE_MESSAGES: tuple[tuple[type[Exception], str], ...] = (
    (ProviderAuthenticationError, "Invalid API key configuration"),
    (QuotaExceededError, "API quota exceeded"),
    (ContentBlockedError, "Content was blocked by safety filters"),
)


def get_fallback_response(language_code: str | None) -> str:
    return FALLBACK_RESPONSES.get(language_code or DEFAULT_LANGUAGE, FALLBACK_RESPONSES[DEFAULT_LANGUAGE])


def get_fallback_tips(language_code: str | None) -> list[str]:
    return list(FALLBACK_TIPS.get(language_code or DEFAULT_LANGUAGE, FALLBACK_TIPS[DEFAULT_LANGUAGE]))


def failure_message_for(error: Exception) -> str:
    """User-facing message for a failed generation, chosen by error type."""
    for error_type, message in FAILURE_MESSAGES:
        if isinstance(error, error_type):
            return message
    return GENERIC_FAILURE_MESSAGE
