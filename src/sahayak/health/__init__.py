"""
Health context models and helpers.
"""

from sahayak.health.models import ConversationTurn, HealthContext, Lifestyle, UserProfile

__all__ = [
    "ConversationTurn",
    "HealthContext",
    "Lifestyle",
    "UserProfile",
]
