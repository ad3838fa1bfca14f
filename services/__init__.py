"""
CueBracket Services

Application services: the bracket facade and the event bus.
"""

from services.event_bus import EventBus
from services.bracket_service import BracketService

__all__ = ["EventBus", "BracketService"]
