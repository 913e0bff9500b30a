# Domain Package
from .models import Card, CardDifficulty, CardStats, Mastery, ReviewEvent, ReviewResponse
from .ports import CardStore, Clock, RandomSource, ReviewTracker

__all__ = [
    "Card",
    "CardDifficulty",
    "CardStats",
    "Mastery",
    "ReviewEvent",
    "ReviewResponse",
    "CardStore",
    "Clock",
    "RandomSource",
    "ReviewTracker",
]
