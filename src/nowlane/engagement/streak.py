# src/nowlane/engagement/streak.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .models import EngagementState
from .rules import Points


@dataclass(slots=True, frozen=True)
class StreakTransition:
    previous_streak: int
    new_streak: int
    bonus_points: int = 0
    protection_consumed: bool = False
    noop: bool = False

    @property
    def extended(self) -> bool:
        return self.bonus_points > 0


def days_between(first: str, second: str) -> int:
    """Signed number of whole calendar days from `first` to `second` (ISO dates)."""
    return (date.fromisoformat(second) - date.fromisoformat(first)).days


def advance_streak(state: EngagementState, today: str) -> StreakTransition:
    """
    Apply one day of activity to the streak (mutates state).

    - same day again         -> no-op
    - a date before the last -> no-op (last_active_date stays)
    - first activity ever    -> 1
    - next day               -> +1, protection flag clears
    - one missed day         -> +1 once per streak, protection flag set
    - anything longer        -> restart at 1

    Only an extension of an existing streak earns Points.STREAK_DAY.
    """
    prev = state.current_streak

    if state.last_active_date is not None and days_between(state.last_active_date, today) <= 0:
        return StreakTransition(previous_streak=prev, new_streak=prev, noop=True)

    consumed = False
    if state.last_active_date is None:
        new_streak = 1
        protection_used = state.streak_protection_used
    else:
        gap = days_between(state.last_active_date, today)
        if gap == 1:
            new_streak = prev + 1
            protection_used = False
        elif gap == 2 and not state.streak_protection_used:
            new_streak = prev + 1
            protection_used = True
            consumed = True
        else:
            new_streak = 1
            protection_used = False

    extended = state.last_active_date is not None and new_streak > prev
    bonus = Points.STREAK_DAY if extended else 0

    state.current_streak = new_streak
    state.longest_streak = max(state.longest_streak, new_streak)
    state.last_active_date = today
    state.streak_protection_used = protection_used
    state.points += bonus

    return StreakTransition(
        previous_streak=prev,
        new_streak=new_streak,
        bonus_points=bonus,
        protection_consumed=consumed,
    )
