"""
Voice sessions backed by a voice-call provider.
"""

from sahayak.voice.adapter import VoiceSessionAdapter
from sahayak.voice.vapi import VapiTransport

__all__ = [
    "VapiTransport",
    "VoiceSessionAdapter",
]
