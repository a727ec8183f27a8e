"""Time calculation service.
Converts between minutes and the human readable durations used in the UI.
"""

import math
import re
from typing import Union

Number = Union[int, float]


class TimeCalculationService:
    """
    Domain service for duration parsing and formatting.
    A week has 5 working days and a day has 8 working hours.
    """

    DAYS_PER_WEEK = 5
    HOURS_PER_DAY = 8

    _READABLE_PATTERN = re.compile(r"([0-9.,]+)([wdhm]|$)", re.IGNORECASE)

    def get_minutes_by_letter(self, letter: str) -> int:
        """Return the number of minutes one unit of the given letter stands for."""
        letter = letter.lower()
        if letter == "w":
            return self.DAYS_PER_WEEK * self.HOURS_PER_DAY * 60
        if letter == "d":
            return self.HOURS_PER_DAY * 60
        if letter == "h":
            return 60
        if letter in ("m", ""):
            return 1
        return 0

    def readable_to_minutes(self, readable: str) -> float:
        """
        Parse a duration like "1w 2d 3,5h 10m" into minutes.
        A bare number is taken as minutes.
        """
        if not readable:
            return 0.0

        minutes = 0.0
        for amount, letter in self._READABLE_PATTERN.findall(readable):
            try:
                value = float(amount.replace(",", "."))
            except ValueError:
                continue
            minutes += value * self.get_minutes_by_letter(letter)
        return minutes

    def readable_to_full_minutes(self, readable: str) -> int:
        """Same as readable_to_minutes, truncated to whole minutes."""
        return int(math.floor(self.readable_to_minutes(readable)))

    def minutes_to_readable(self, minutes: Number, use_weeks: bool = True) -> str:
        """Format minutes as "1w 2d 3h 4m"."""
        if minutes <= 0:
            return "0m"

        sizes = []
        if use_weeks:
            sizes.append(("w", self.get_minutes_by_letter("w")))
        sizes.append(("d", self.get_minutes_by_letter("d")))
        sizes.append(("h", self.get_minutes_by_letter("h")))

        remaining = int(minutes)
        parts = []
        for letter, size in sizes:
            count = remaining // size
            if count > 0:
                parts.append(f"{count}{letter}")
                remaining -= count * size
        if remaining > 0:
            parts.append(f"{remaining}m")

        return " ".join(parts) if parts else "0m"

    def format_duration(self, duration: Number, in_days: bool = False) -> str:
        """
        Format minutes as "HH:MM".
        With in_days, durations longer than one working day get " (X.XX PT)" appended.
        """
        duration = int(duration or 0)
        hours, minutes = divmod(duration, 60)
        text = f"{hours:02d}:{minutes:02d}"

        if in_days:
            days = duration / (self.HOURS_PER_DAY * 60)
            if days > 1.0:
                text += f" ({days:.2f} PT)"

        return text

    def format_quota(self, amount: Number, total: Number) -> str:
        """Share of amount in total as percentage string with two decimals."""
        if not total:
            return "0.00%"
        return f"{(amount / total) * 100:.2f}%"
