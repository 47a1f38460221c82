"""Lane-based task manager: urgency lanes that promote themselves, plus streaks, points and achievements."""

__version__ = "0.1.0"
