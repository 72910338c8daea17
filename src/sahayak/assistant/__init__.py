"""
Text health guidance backed by a generative-text provider.
"""

from sahayak.assistant.gemini import GenerationConfig, GeminiTransport
from sahayak.assistant.text_adapter import TextGenerationAdapter

__all__ = [
    "GenerationConfig",
    "GeminiTransport",
    "TextGenerationAdapter",
]
