"""
Prompt templates for text health guidance.

Assembly order is fixed: system preamble, user health context, recent
conversation, language directive, user message. Sections with nothing to
say are left out entirely, headers included.
"""

from collections.abc import Sequence

from sahayak.health.languages import resolve_language_name
from sahayak.health.models import HealthContext, UserProfile

HISTORY_WINDOW = 5

HEALTH_SYSTEM_PROMPT = """You are an AI-powered health assistant called "Aarogya Sahayak" (Health Helper). Your role is to provide helpful, accurate, and personalized health information while being empathetic and supportive.

IMPORTANT GUIDELINES:
1. Always provide health information for educational purposes only
2. Never diagnose medical conditions or replace professional medical advice
3. Always recommend consulting healthcare professionals for serious concerns
4. Be culturally sensitive and respectful
5. Provide responses in the user's preferred language
6. Focus on preventive care, lifestyle modifications, and general wellness
7. Ask clarifying questions when needed to provide better assistance
8. Maintain a warm, supportive, and professional tone

AREAS OF EXPERTISE:
- General health and wellness advice
- Diet and nutrition guidance
- Exercise and fitness recommendations
- Mental health and stress management
- Medication reminders and general information
- Symptom awareness (not diagnosis)
- Healthy lifestyle habits
- Preventive care recommendations

RESPONSE FORMAT:
- Keep responses concise but informative
- Use bullet points for lists when appropriate
- Include actionable advice when possible
- End with encouraging words or next steps
- Always remind users to consult healthcare providers for medical concerns"""

LANGUAGE_DIRECTIVE = "IMPORTANT: Respond in {language} language."


def build_health_prompt(user_message: str, context: HealthContext, language_code: str) -> str:
    """Assemble the full prompt for a health question.

    Args:
        user_message: The user's question.
        context: Profile and recent conversation.
        language_code: Code of the language to respond in.

    Returns:
        Prompt string ready for the provider.
    """
    sections = [HEALTH_SYSTEM_PROMPT]

    profile_block = _format_profile(context.user_profile)
    if profile_block:
        sections.append(profile_block)

    history_block = _format_history(context)
    if history_block:
        sections.append(history_block)

    sections.append(LANGUAGE_DIRECTIVE.format(language=resolve_language_name(language_code)))
    sections.append(f"USER MESSAGE: {user_message}")
    sections.append("RESPONSE:")

    return "\n\n".join(sections)


def _format_profile(profile: UserProfile | None) -> str:
    if profile is None:
        return ""

    lines = ["USER HEALTH CONTEXT:"]
    if profile.age is not None:
        lines.append(f"- Age: {profile.age}")
    if profile.gender:
        lines.append(f"- Gender: {profile.gender}")
    if profile.conditions:
        lines.append(f"- Health Conditions: {', '.join(profile.conditions)}")
    if profile.medications:
        lines.append(f"- Current Medications: {', '.join(profile.medications)}")
    if profile.allergies:
        lines.append(f"- Allergies: {', '.join(profile.allergies)}")
    return "\n".join(lines)


def _format_history(context: HealthContext) -> str:
    turns = context.conversation_history[:HISTORY_WINDOW]
    if not turns:
        return ""

    lines = ["RECENT CONVERSATION:"]
    lines.extend(f"{turn.role}: {turn.content}" for turn in turns)
    return "\n".join(lines)


def build_tips_prompt(profile: UserProfile | None, language_code: str) -> str:
    """Prompt asking for exactly three personalized daily tips."""
    parts = ["Generate 3 personalized daily health tips for a user. Make them practical and actionable."]

    if profile is not None:
        if profile.age is not None:
            parts.append(f"User is {profile.age} years old.")
        if profile.conditions:
            parts.append(f"User has the following health conditions: {', '.join(profile.conditions)}.")
        if profile.lifestyle is not None:
            parts.append(
                f"Lifestyle: exercise frequency is {profile.lifestyle.exercise_frequency}, "
                f"sleep hours: {profile.lifestyle.sleep_hours}."
            )

    parts.append(f"Respond in {resolve_language_name(language_code)}. Format as numbered list.")
    return " ".join(parts)


def build_symptom_prompt(
    symptoms: Sequence[str],
    profile: UserProfile | None,
    language_code: str,
) -> str:
    """Prompt for general symptom information. Explicitly not a diagnosis."""
    parts = [
        "Analyze the following symptoms and provide general information about possible causes "
        "and when to seek medical attention. Do NOT diagnose. "
        f"Symptoms: {', '.join(symptoms)}."
    ]

    if profile is not None:
        if profile.age is not None:
            parts.append(f"Patient age: {profile.age}.")
        if profile.gender:
            parts.append(f"Gender: {profile.gender}.")
        if profile.conditions:
            parts.append(f"Existing conditions: {', '.join(profile.conditions)}.")

    parts.append(
        "IMPORTANT: Emphasize that this is for informational purposes only and recommend "
        f"consulting a healthcare provider. Respond in {resolve_language_name(language_code)}."
    )
    return " ".join(parts)


def split_tips(text: str) -> list[str]:
    """Split a free-text tip list into lines, dropping blank ones."""
    return [line.strip() for line in text.splitlines() if line.strip()]
